"""Verify PKCS7 Signed-Data against a caller-supplied certificate.

``cryptography`` has no PKCS7 verification API, so the signer infos
are read with ``asn1crypto`` and each signature is checked with the
signer's public key:

1. the signer is identified among the candidate certificates by
   issuer/serial or subject key identifier;
2. when signed attributes are present, their message digest must equal
   the digest of the encapsulated content, and the signature covers
   the DER ``SET OF`` encoding of the attributes;
3. otherwise the signature covers the content itself;
4. the signer certificate must equal the supplied one and be accepted
   by the trust store.

Failure policy
--------------
:func:`verify` never raises for a bad signature.  It returns
:class:`~pkcs7cryptographer.core.structures.Unverified` carrying the
untouched structure and a reason.  Callers **must** check the result
type before using the payload.  :func:`verify_strict` raises
:class:`~pkcs7cryptographer.core.errors.VerificationError` instead.
"""

from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING

from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.serialization import Encoding

from pkcs7cryptographer.core.errors import VerificationError
from pkcs7cryptographer.core.structures import SignedData, Unverified, VerificationResult, Verified
from pkcs7cryptographer.core.types import VerifyMode

if TYPE_CHECKING:
    from asn1crypto import cms

    from pkcs7cryptographer.pkcs7.trust import TrustStore

log = logging.getLogger(__name__)

_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

# Signed attributes are stored with an implicit [0] tag but signed as a
# universal SET OF.
_SET_OF_TAG = b"\x31"


def _find_signer(
    sid: cms.SignerIdentifier,
    candidates: list[x509.Certificate],
) -> x509.Certificate | None:
    if sid.name == "issuer_and_serial_number":
        serial = sid.chosen["serial_number"].native
        issuer = sid.chosen["issuer"]
        for cert in candidates:
            if cert.serial_number != serial:
                continue
            if asn1_x509.Certificate.load(cert.public_bytes(Encoding.DER)).issuer == issuer:
                return cert
    elif sid.name == "subject_key_identifier":
        key_id = sid.chosen.native
        for cert in candidates:
            try:
                ext = cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
            except x509.ExtensionNotFound:
                continue
            if ext.value.digest == key_id:
                return cert
    return None


def _verify_signature(
    public_key,
    signature_algorithm,
    signature: bytes,
    data: bytes,
    hash_algorithm: hashes.HashAlgorithm,
) -> None:
    """Raise :class:`InvalidSignature` unless *signature* covers *data*."""
    if isinstance(public_key, rsa.RSAPublicKey):
        if signature_algorithm["algorithm"].native == "rsassa_pss":
            params = signature_algorithm["parameters"]
            pss_hash = _HASHES[params["hash_algorithm"]["algorithm"].native]()
            mgf_hash = _HASHES[params["mask_gen_algorithm"]["parameters"]["algorithm"].native]()
            pad = padding.PSS(
                mgf=padding.MGF1(mgf_hash),
                salt_length=params["salt_length"].native,
            )
            public_key.verify(signature, data, pad, pss_hash)
        else:
            public_key.verify(signature, data, padding.PKCS1v15(), hash_algorithm)
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        public_key.verify(signature, data, ec.ECDSA(hash_algorithm))
    else:
        msg = f"Unsupported signer key type {type(public_key).__name__}"
        raise UnsupportedAlgorithm(msg)


def _check_signer_info(
    signer_info: cms.SignerInfo,
    payload: bytes,
    certificate: x509.Certificate,
) -> str | None:
    """Return ``None`` if *signer_info* verifies, else the failure reason."""
    digest_name = signer_info["digest_algorithm"]["algorithm"].native
    hash_cls = _HASHES.get(digest_name)
    if hash_cls is None:
        return f"unsupported digest algorithm '{digest_name}'"
    hash_algorithm = hash_cls()

    signed_attrs = signer_info["signed_attrs"]
    if signed_attrs.native:
        message_digest = None
        for attr in signed_attrs:
            if attr["type"].native == "message_digest":
                message_digest = attr["values"][0].native
        if message_digest is None:
            return "signed attributes carry no message digest"
        digest = hashes.Hash(hash_algorithm)
        digest.update(payload)
        if not hmac.compare_digest(digest.finalize(), message_digest):
            return "content digest does not match the signed message digest"
        signed_bytes = _SET_OF_TAG + signed_attrs.dump()[1:]
    else:
        signed_bytes = payload

    try:
        _verify_signature(
            certificate.public_key(),
            signer_info["signature_algorithm"],
            signer_info["signature"].native,
            signed_bytes,
            hash_algorithm,
        )
    except InvalidSignature:
        return "signature does not match the signer certificate"
    except (UnsupportedAlgorithm, KeyError, ValueError, TypeError) as exc:
        return f"signature could not be checked: {exc}"
    return None


def verify(
    signed_data: SignedData | bytes | str,
    signer_cert: x509.Certificate,
    trust_store: TrustStore,
    mode: VerifyMode = VerifyMode.DIRECT,
) -> VerificationResult:
    """Verify *signed_data* and return a tagged result.

    Parameters
    ----------
    signed_data:
        Parsed Signed-Data, or its DER/PEM encoding.
    signer_cert:
        Certificate expected to have produced every signature.
    trust_store:
        Must accept *signer_cert*, which must also be inside its
        validity window.
    mode:
        :attr:`VerifyMode.DIRECT` ignores embedded certificates.
        :attr:`VerifyMode.CHAIN` also uses them as intermediates when
        asking *trust_store*.

    Returns
    -------
    Verified | Unverified
        ``Verified(payload)`` on success; ``Unverified`` otherwise.
        A bad signature is **not** an exception.

    Raises
    ------
    InvalidFormatError
        If *signed_data* is malformed bytes.

    """
    if not isinstance(signed_data, SignedData):
        signed_data = SignedData.load(signed_data)
    mode = VerifyMode(mode)

    result = _verify(signed_data, signer_cert, trust_store, mode)
    if isinstance(result, Unverified):
        log.debug(
            "Signature verification failed for %s: %s",
            signer_cert.subject.rfc4514_string(),
            result.reason,
        )
    else:
        log.debug("Signature verified for %s (mode=%s)", signer_cert.subject.rfc4514_string(), mode)
    return result


def _verify(
    signed_data: SignedData,
    signer_cert: x509.Certificate,
    trust_store: TrustStore,
    mode: VerifyMode,
) -> VerificationResult:
    payload = signed_data.payload
    if payload is None:
        return Unverified(signed_data, "no encapsulated content (detached signature)")
    if signed_data.signer_count == 0:
        return Unverified(signed_data, "no signer information present")

    embedded = list(signed_data.certificates)
    if mode is VerifyMode.DIRECT:
        candidates, intermediates = [signer_cert], []
    else:
        candidates, intermediates = [signer_cert, *embedded], embedded

    for signer_info in signed_data.signer_infos:
        certificate = _find_signer(signer_info["sid"], candidates)
        if certificate is None:
            return Unverified(signed_data, "signer certificate not found")
        if certificate != signer_cert:
            return Unverified(signed_data, "embedded signer certificate differs from the supplied certificate")
        reason = _check_signer_info(signer_info, payload, certificate)
        if reason is not None:
            return Unverified(signed_data, reason)
        if not trust_store.is_trusted(certificate, intermediates):
            return Unverified(signed_data, "signer certificate is not trusted")

    return Verified(payload, signed_data)


def verify_strict(
    signed_data: SignedData | bytes | str,
    signer_cert: x509.Certificate,
    trust_store: TrustStore,
    mode: VerifyMode = VerifyMode.DIRECT,
) -> bytes:
    """Like :func:`verify` but return the payload or raise.

    Raises
    ------
    VerificationError
        If the signature does not verify.

    """
    result = verify(signed_data, signer_cert, trust_store, mode)
    if isinstance(result, Unverified):
        raise VerificationError(result)
    return result.payload
