"""Wrap Signed-Data in a single-recipient PKCS7 Enveloped-Data structure.

Content-key generation, symmetric encryption and key transport are all
performed by ``cryptography``'s envelope builder.  The inner Signed-Data
is enveloped in binary mode so its DER encoding is carried verbatim.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers import algorithms
from cryptography.hazmat.primitives.serialization import Encoding, pkcs7

from pkcs7cryptographer.core.errors import EncryptionError
from pkcs7cryptographer.core.structures import EnvelopedData, SignedData
from pkcs7cryptographer.core.types import ContentCipher

if TYPE_CHECKING:
    from cryptography import x509

log = logging.getLogger(__name__)

_CIPHERS = {
    ContentCipher.AES_256_CBC: algorithms.AES256,
    ContentCipher.AES_128_CBC: algorithms.AES128,
}


def envelope(
    signed_data: SignedData | bytes,
    recipient_cert: x509.Certificate,
    cipher: ContentCipher = ContentCipher.AES_256_CBC,
) -> EnvelopedData:
    """Encrypt *signed_data* for *recipient_cert*.

    Raises
    ------
    EncryptionError
        If the cipher is not supported or the recipient's public key
        cannot be used for key transport (only RSA is).

    """
    content = signed_data.to_der() if isinstance(signed_data, SignedData) else bytes(signed_data)

    try:
        algorithm = _CIPHERS[ContentCipher(cipher)]
    except (KeyError, ValueError):
        msg = f"Unsupported content cipher '{cipher}'; supported: {sorted(c.value for c in _CIPHERS)}"
        raise EncryptionError(msg) from None

    if not isinstance(recipient_cert.public_key(), rsa.RSAPublicKey):
        msg = (
            "Recipient certificate key "
            f"({type(recipient_cert.public_key()).__name__}) cannot be used for key transport"
        )
        raise EncryptionError(msg)

    try:
        der = (
            pkcs7.PKCS7EnvelopeBuilder()
            .set_data(content)
            .set_content_encryption_algorithm(algorithm)
            .add_recipient(recipient_cert)
            .encrypt(Encoding.DER, [pkcs7.PKCS7Options.Binary])
        )
    except (ValueError, TypeError) as exc:
        msg = f"Envelope encryption failed: {exc}"
        raise EncryptionError(msg) from exc

    log.debug(
        "Enveloped %d bytes for %s (serial=%x, cipher=%s)",
        len(content),
        recipient_cert.subject.rfc4514_string(),
        recipient_cert.serial_number,
        cipher,
    )
    return EnvelopedData.from_der(der)
