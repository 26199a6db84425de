"""Shared types, structures and errors."""

from pkcs7cryptographer.core.errors import (
    DecryptionError,
    EncryptionError,
    InvalidFormatError,
    InvalidKeyPairError,
    InvalidRequestError,
    Pkcs7Error,
    UnsupportedKeyError,
    VerificationError,
)
from pkcs7cryptographer.core.types import (
    ContentCipher,
    DigestAlgorithm,
    OutputEncoding,
    SignFlags,
    VerifyMode,
)

__all__ = [
    "ContentCipher",
    "DecryptionError",
    "DigestAlgorithm",
    "EncryptionError",
    "InvalidFormatError",
    "InvalidKeyPairError",
    "InvalidRequestError",
    "OutputEncoding",
    "Pkcs7Error",
    "SignFlags",
    "UnsupportedKeyError",
    "VerificationError",
    "VerifyMode",
]
