"""Core — models, configuration, observability, services and use cases."""
