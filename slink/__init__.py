"""slink: point at one remote machine and reuse a single SSH connection to it."""

__version__ = "0.1.0"
