"""Navigate and mutate a remote content store as a file tree."""

__version__ = "0.1.0"
