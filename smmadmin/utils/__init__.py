"""Utility module for smmadmin providing common functionality."""

from .logging import setup_logging
from .decode import decode_webhook_payload
from .file import ensure_directory, remove_files
from .strings import parse_languages, join_hashtags, sanitize_html
from .dates import utcnow, to_utc, format_timestamp, parse_timestamp
from .credentials import normalize_app_credentials, canonicalize_credentials
from .network import NetworkConfig

__all__ = [
    # Logging utilities
    'setup_logging',

    # Data decoding
    'decode_webhook_payload',

    # File operations
    'ensure_directory',
    'remove_files',

    # String processing
    'parse_languages',
    'join_hashtags',
    'sanitize_html',

    # Timestamps
    'utcnow',
    'to_utc',
    'format_timestamp',
    'parse_timestamp',

    # Credentials
    'normalize_app_credentials',
    'canonicalize_credentials',

    # Network utilities
    'NetworkConfig',
]
