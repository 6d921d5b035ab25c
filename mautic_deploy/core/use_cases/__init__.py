"""Use cases — entrypoint-independent operations the CLI calls."""
