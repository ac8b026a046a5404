"""Clinical Tables code search exposed as a single multi-method tool."""

__version__ = "0.1.2"
