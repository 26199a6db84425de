"""PKCS7 sign / envelope / verify / decrypt operations.

Exports the module-level operations and the trust store types.
"""

from pkcs7cryptographer.pkcs7.decryptor import (
    decrypt,
    decrypt_and_verify,
    decrypt_and_verify_strict,
)
from pkcs7cryptographer.pkcs7.enveloper import envelope
from pkcs7cryptographer.pkcs7.signer import sign
from pkcs7cryptographer.pkcs7.trust import CertificateStore, TrustStore
from pkcs7cryptographer.pkcs7.verifier import verify, verify_strict

__all__ = [
    "CertificateStore",
    "TrustStore",
    "decrypt",
    "decrypt_and_verify",
    "decrypt_and_verify_strict",
    "envelope",
    "sign",
    "verify",
    "verify_strict",
]
