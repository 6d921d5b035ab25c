"""Mautic deployment toolkit — apt lock handling, package installs, Nginx + SSL."""

__version__ = "0.1.0"
