"""Configuration subsystem for pkcs7cryptographer.

Public API::

    from pkcs7cryptographer.config import load_settings, build_settings

    settings = load_settings("config.yaml")   # file-backed, validated
    settings = build_settings()               # all defaults
"""

from pkcs7cryptographer.config.loader import (
    ConfigValidationError,
    load_settings,
    settings_from_dict,
)
from pkcs7cryptographer.config.settings import (
    DEFAULT_VALIDITY_DAYS,
    CryptographerSettings,
    EncryptionSettings,
    IssuanceSettings,
    LoggingSettings,
    OutputSettings,
    SigningSettings,
    VerificationSettings,
    build_settings,
)

__all__ = [
    "DEFAULT_VALIDITY_DAYS",
    "ConfigValidationError",
    "CryptographerSettings",
    "EncryptionSettings",
    "IssuanceSettings",
    "LoggingSettings",
    "OutputSettings",
    "SigningSettings",
    "VerificationSettings",
    "build_settings",
    "load_settings",
    "settings_from_dict",
]
