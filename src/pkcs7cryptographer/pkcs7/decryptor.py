"""Unwrap PKCS7 Enveloped-Data and verify the Signed-Data inside it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs7

from pkcs7cryptographer.core.errors import DecryptionError, InvalidFormatError, VerificationError
from pkcs7cryptographer.core.structures import EnvelopedData, SignedData, Unverified
from pkcs7cryptographer.core.types import VerifyMode
from pkcs7cryptographer.pkcs7.signer import key_matches_certificate
from pkcs7cryptographer.pkcs7.verifier import verify

if TYPE_CHECKING:
    from cryptography import x509
    from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

    from pkcs7cryptographer.core.structures import VerificationResult
    from pkcs7cryptographer.pkcs7.trust import TrustStore

log = logging.getLogger(__name__)


def decrypt(
    enveloped: EnvelopedData | bytes | str,
    recipient_key: PrivateKeyTypes,
    recipient_cert: x509.Certificate,
) -> bytes:
    """Return the plaintext content of *enveloped*.

    Raises
    ------
    InvalidFormatError
        If *enveloped* is malformed bytes.
    DecryptionError
        If no recipient entry matches *recipient_cert*, the key does not
        belong to *recipient_cert*, or the provider fails to decrypt.

    """
    if not isinstance(enveloped, EnvelopedData):
        enveloped = EnvelopedData.load(enveloped)

    if enveloped.find_recipient(recipient_cert) is None:
        msg = (
            "No recipient entry matches certificate "
            f"{recipient_cert.subject.rfc4514_string()} (serial={recipient_cert.serial_number:x})"
        )
        raise DecryptionError(msg)
    if not isinstance(recipient_key, rsa.RSAPrivateKey):
        msg = f"Envelope decryption requires an RSA key, got {type(recipient_key).__name__}"
        raise DecryptionError(msg)
    if not key_matches_certificate(recipient_key, recipient_cert):
        msg = "Recipient private key does not match the recipient certificate"
        raise DecryptionError(msg)

    try:
        plaintext = pkcs7.pkcs7_decrypt_der(enveloped.to_der(), recipient_cert, recipient_key, [])
    except (ValueError, TypeError) as exc:
        msg = f"Envelope decryption failed: {exc}"
        raise DecryptionError(msg) from exc

    log.debug(
        "Decrypted %d bytes for %s (cipher=%s)",
        len(plaintext),
        recipient_cert.subject.rfc4514_string(),
        enveloped.content_encryption_algorithm,
    )
    return plaintext


def decrypt_and_verify(  # noqa: PLR0913
    enveloped: EnvelopedData | bytes | str,
    recipient_key: PrivateKeyTypes,
    recipient_cert: x509.Certificate,
    signer_cert: x509.Certificate,
    trust_store: TrustStore,
    mode: VerifyMode = VerifyMode.DIRECT,
) -> VerificationResult:
    """Decrypt *enveloped*, then verify the inner Signed-Data.

    Inherits the verifier's result contract: a bad signature yields
    :class:`~pkcs7cryptographer.core.structures.Unverified`, not an
    exception.

    Raises
    ------
    InvalidFormatError
        If *enveloped* is malformed bytes.
    DecryptionError
        If decryption fails or the plaintext is not Signed-Data.

    """
    plaintext = decrypt(enveloped, recipient_key, recipient_cert)
    try:
        signed_data = SignedData.from_der(plaintext)
    except InvalidFormatError as exc:
        msg = f"Decrypted content is not Signed-Data: {exc.detail}"
        raise DecryptionError(msg) from exc
    return verify(signed_data, signer_cert, trust_store, mode)


def decrypt_and_verify_strict(  # noqa: PLR0913
    enveloped: EnvelopedData | bytes | str,
    recipient_key: PrivateKeyTypes,
    recipient_cert: x509.Certificate,
    signer_cert: x509.Certificate,
    trust_store: TrustStore,
    mode: VerifyMode = VerifyMode.DIRECT,
) -> bytes:
    """Like :func:`decrypt_and_verify` but raise on a bad signature."""
    result = decrypt_and_verify(
        enveloped,
        recipient_key,
        recipient_cert,
        signer_cert,
        trust_store,
        mode,
    )
    if isinstance(result, Unverified):
        raise VerificationError(result)
    return result.payload
