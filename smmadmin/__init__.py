"""smmadmin - brand social media admin backend."""

__version__ = "1.0.0"
