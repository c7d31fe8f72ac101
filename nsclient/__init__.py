"""Platform API namespace client - create or update dynamic namespaces."""

__version__ = "0.5.0"
