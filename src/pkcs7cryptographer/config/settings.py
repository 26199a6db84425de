"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
Raw dictionaries (from YAML/JSON files or built in code) are turned
into a settings tree by :func:`build_settings`; unknown enum values
raise :class:`ValueError` here and are collected into a
:class:`~pkcs7cryptographer.config.loader.ConfigValidationError` by
the loader.

Access pattern::

    from pkcs7cryptographer.config import build_settings

    settings = build_settings({"encryption": {"cipher": "aes-128-cbc"}})
    settings.encryption.cipher     # ContentCipher.AES_128_CBC
"""

from __future__ import annotations

from dataclasses import dataclass

from pkcs7cryptographer.core.types import (
    DEFAULT_SIGN_FLAGS,
    ContentCipher,
    DigestAlgorithm,
    OutputEncoding,
    SignFlags,
    VerifyMode,
)

DEFAULT_VALIDITY_DAYS = 3650  # 10 years

# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SigningSettings:
    """PKCS7 signing options (flags, message digest)."""

    flags: SignFlags
    digest: DigestAlgorithm


def _build_signing(data: dict | None) -> SigningSettings:
    d = data or {}
    flags = d.get("flags")
    return SigningSettings(
        flags=DEFAULT_SIGN_FLAGS if flags is None else SignFlags.from_names(flags),
        digest=DigestAlgorithm(d.get("digest", "sha256")),
    )


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EncryptionSettings:
    """Enveloped-Data content cipher."""

    cipher: ContentCipher


def _build_encryption(data: dict | None) -> EncryptionSettings:
    d = data or {}
    return EncryptionSettings(
        cipher=ContentCipher(d.get("cipher", "aes-256-cbc")),
    )


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VerificationSettings:
    """How signer certificates are trusted during verification."""

    mode: VerifyMode


def _build_verification(data: dict | None) -> VerificationSettings:
    d = data or {}
    return VerificationSettings(
        mode=VerifyMode(d.get("mode", "direct")),
    )


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IssuanceSettings:
    """Certificate issuance from CSRs.

    ``digest`` defaults to SHA-256.  ``sha1`` is still accepted for
    compatibility with legacy relying parties but is logged as a
    warning on every issuance.
    """

    digest: DigestAlgorithm
    validity_days: int
    leaf_extensions: bool


def _build_issuance(data: dict | None) -> IssuanceSettings:
    d = data or {}
    return IssuanceSettings(
        digest=DigestAlgorithm(d.get("digest", "sha256")),
        validity_days=d.get("validity_days", DEFAULT_VALIDITY_DAYS),
        leaf_extensions=d.get("leaf_extensions", True),
    )


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OutputSettings:
    """Serialisation of ``sign`` / ``sign_and_encrypt`` results."""

    encoding: OutputEncoding


def _build_output(data: dict | None) -> OutputSettings:
    d = data or {}
    return OutputSettings(
        encoding=OutputEncoding(d.get("encoding", "der")),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Logging configuration (level, format)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "WARNING"),
        format=d.get("format", "text"),
    )


# ---------------------------------------------------------------------------
# Root settings aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CryptographerSettings:
    signing: SigningSettings
    encryption: EncryptionSettings
    verification: VerificationSettings
    issuance: IssuanceSettings
    output: OutputSettings
    logging: LoggingSettings


def build_settings(data: dict | None = None) -> CryptographerSettings:
    """Build the full typed settings tree from raw config data.

    Missing sections and keys fall back to their defaults, so
    ``build_settings()`` returns the default configuration.
    """
    d = data or {}
    return CryptographerSettings(
        signing=_build_signing(d.get("signing")),
        encryption=_build_encryption(d.get("encryption")),
        verification=_build_verification(d.get("verification")),
        issuance=_build_issuance(d.get("issuance")),
        output=_build_output(d.get("output")),
        logging=_build_logging(d.get("logging")),
    )
