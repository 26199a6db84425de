"""Produce PKCS7 Signed-Data with ``cryptography``'s signature builder.

The payload is embedded (never detached) and only the signer
certificate is attached; no further chain certificates are added.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat, pkcs7

from pkcs7cryptographer.core.errors import InvalidKeyPairError, Pkcs7Error, UnsupportedKeyError
from pkcs7cryptographer.core.structures import SignedData
from pkcs7cryptographer.core.types import DEFAULT_SIGN_FLAGS, DigestAlgorithm, SignFlags

if TYPE_CHECKING:
    from cryptography import x509
    from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

log = logging.getLogger(__name__)

_HASH_ALGORITHMS = {
    DigestAlgorithm.SHA224: hashes.SHA224(),
    DigestAlgorithm.SHA256: hashes.SHA256(),
    DigestAlgorithm.SHA384: hashes.SHA384(),
    DigestAlgorithm.SHA512: hashes.SHA512(),
}

_SIGN_OPTIONS = {
    SignFlags.BINARY: pkcs7.PKCS7Options.Binary,
    SignFlags.NO_ATTRIBUTES: pkcs7.PKCS7Options.NoAttributes,
    SignFlags.NO_CAPABILITIES: pkcs7.PKCS7Options.NoCapabilities,
    SignFlags.NO_CERTS: pkcs7.PKCS7Options.NoCerts,
}


def sign_options(flags: SignFlags) -> list[pkcs7.PKCS7Options]:
    """Translate a :class:`SignFlags` bitmask into builder options."""
    return [option for flag, option in _SIGN_OPTIONS.items() if flag in flags]


def key_matches_certificate(key: PrivateKeyTypes, certificate: x509.Certificate) -> bool:
    """Return whether *key* is the private half of *certificate*'s public key."""
    spki = (Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    return key.public_key().public_bytes(*spki) == certificate.public_key().public_bytes(*spki)


def sign(
    payload: bytes | str,
    signer_key: PrivateKeyTypes,
    signer_cert: x509.Certificate,
    flags: SignFlags | None = None,
    digest: DigestAlgorithm = DigestAlgorithm.SHA256,
) -> SignedData:
    """Sign *payload* and return the resulting Signed-Data.

    Parameters
    ----------
    payload:
        Data to sign.  ``str`` values are encoded as UTF-8.
    signer_key:
        RSA or EC private key matching *signer_cert*.
    signer_cert:
        Certificate embedded as the signer.
    flags:
        Options passed through to the signature builder; defaults to
        :data:`~pkcs7cryptographer.core.types.DEFAULT_SIGN_FLAGS`.
    digest:
        Message digest for the signature.

    Raises
    ------
    UnsupportedKeyError
        If *signer_key* is not an RSA or EC key.
    InvalidKeyPairError
        If *signer_key* does not match *signer_cert*.
    Pkcs7Error
        If the builder rejects the digest or flag combination.

    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    if flags is None:
        flags = DEFAULT_SIGN_FLAGS

    if not isinstance(signer_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        msg = f"PKCS7 signing requires an RSA or EC key, got {type(signer_key).__name__}"
        raise UnsupportedKeyError(msg)
    if not key_matches_certificate(signer_key, signer_cert):
        msg = "Signer private key does not match the signer certificate"
        raise InvalidKeyPairError(msg)

    hash_algorithm = _HASH_ALGORITHMS.get(DigestAlgorithm(digest))
    if hash_algorithm is None:
        msg = f"Digest '{digest}' is not supported for PKCS7 signing"
        raise Pkcs7Error(msg)

    builder = (
        pkcs7.PKCS7SignatureBuilder()
        .set_data(payload)
        .add_signer(signer_cert, signer_key, hash_algorithm)
    )
    try:
        der = builder.sign(Encoding.DER, sign_options(flags))
    except (ValueError, TypeError) as exc:
        msg = f"Signing failed: {exc}"
        raise Pkcs7Error(msg) from exc

    log.debug(
        "Signed %d bytes as %s (serial=%x, digest=%s, flags=%s)",
        len(payload),
        signer_cert.subject.rfc4514_string(),
        signer_cert.serial_number,
        digest,
        flags,
    )
    return SignedData.from_der(der)
