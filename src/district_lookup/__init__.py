"""ZIP code to political district resolution for civic-engagement tooling."""

__version__ = "0.1.0"
