"""PKCS7 signing, enveloping and certificate issuance.

Public API::

    from pkcs7cryptographer import Cryptographer, CertificateStore, Verified

    crypto = Cryptographer()
    signed = crypto.sign(b"payload", key, cert)
    result = crypto.verify(signed, cert, CertificateStore([cert]))
"""

from pkcs7cryptographer.ca.issuer import CertificateIssuer, issue_certificate
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
from pkcs7cryptographer.core.structures import (
    EnvelopedData,
    SignedData,
    Unverified,
    Verified,
)
from pkcs7cryptographer.core.types import ContentCipher, DigestAlgorithm, SignFlags, VerifyMode
from pkcs7cryptographer.cryptographer import Cryptographer
from pkcs7cryptographer.pkcs7.trust import CertificateStore, TrustStore

__version__ = "1.0.0"

__all__ = [
    "CertificateIssuer",
    "CertificateStore",
    "ContentCipher",
    "Cryptographer",
    "DecryptionError",
    "DigestAlgorithm",
    "EncryptionError",
    "EnvelopedData",
    "InvalidFormatError",
    "InvalidKeyPairError",
    "InvalidRequestError",
    "Pkcs7Error",
    "SignFlags",
    "SignedData",
    "TrustStore",
    "UnsupportedKeyError",
    "Unverified",
    "VerificationError",
    "Verified",
    "VerifyMode",
    "__version__",
    "issue_certificate",
]
