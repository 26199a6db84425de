"""Logging subsystem for pkcs7cryptographer.

Public API::

    from pkcs7cryptographer.logging import configure_logging

    configure_logging(settings.logging)
"""

from pkcs7cryptographer.logging.setup import configure_logging
from pkcs7cryptographer.logging.sanitize import sanitize_pem

__all__ = ["configure_logging", "sanitize_pem"]
