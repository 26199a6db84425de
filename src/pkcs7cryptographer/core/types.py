"""Enumerated configuration values shared across the library.

String-valued enums inherit from :class:`enum.StrEnum` so their
``.value`` is the exact spelling used in configuration files.
:class:`SignFlags` is an :class:`enum.Flag` bitmask handed through to
the PKCS7 signature builder.
"""

from __future__ import annotations

from enum import Flag, StrEnum, auto

# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


class SignFlags(Flag):
    """Signing options passed through to the primitive provider.

    Detached signatures and S/MIME text mode are intentionally absent:
    Signed-Data produced here always carries its payload.
    """

    NONE = 0
    BINARY = auto()
    NO_ATTRIBUTES = auto()
    NO_CAPABILITIES = auto()
    NO_CERTS = auto()

    @classmethod
    def from_names(cls, names: list[str] | tuple[str, ...]) -> SignFlags:
        """Combine lower-case flag names (``"binary"``, ``"no_certs"``...)."""
        flags = cls.NONE
        for name in names:
            try:
                flags |= cls[name.upper()]
            except KeyError:
                supported = sorted(m.name.lower() for m in cls if m.value)
                msg = f"Unknown signing flag '{name}'; supported: {supported}"
                raise ValueError(msg) from None
        return flags


DEFAULT_SIGN_FLAGS = SignFlags.BINARY


class DigestAlgorithm(StrEnum):
    SHA1 = "sha1"
    SHA224 = "sha224"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"


# ---------------------------------------------------------------------------
# Enveloping
# ---------------------------------------------------------------------------


class ContentCipher(StrEnum):
    AES_256_CBC = "aes-256-cbc"
    AES_128_CBC = "aes-128-cbc"


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class VerifyMode(StrEnum):
    """How the signer certificate is located and trusted.

    Both modes verify against the caller-supplied certificate and
    require the trust store to accept it at the current instant.
    ``DIRECT`` ignores embedded certificates (the PKCS7
    ``NOINTERN | NOCHAIN`` behaviour).  ``CHAIN`` offers the embedded
    certificates to the trust store as intermediates.
    """

    DIRECT = "direct"
    CHAIN = "chain"


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OutputEncoding(StrEnum):
    DER = "der"
    PEM = "pem"
