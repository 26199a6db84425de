"""Key, certificate and CSR material loading.

The signing, enveloping and issuance code never decodes PEM or DER
itself.  It receives typed ``cryptography`` objects produced by a
:class:`MaterialLoader`.  :class:`DefaultMaterialLoader` accepts
already-parsed handles (returned unchanged) or PEM/DER encoded
``bytes``/``str`` and raises :class:`InvalidFormatError` for anything
it cannot decode.

PKCS7 PEM armoring is also handled here, on top of ``asn1crypto.pem``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from asn1crypto import pem
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, rsa

from pkcs7cryptographer.core.errors import InvalidFormatError
from pkcs7cryptographer.logging.sanitize import sanitize_pem

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

log = logging.getLogger(__name__)

PKCS7_PEM_LABEL = "PKCS7"

_PRIVATE_KEY_CLASSES = (
    rsa.RSAPrivateKey,
    ec.EllipticCurvePrivateKey,
    ed25519.Ed25519PrivateKey,
    ed448.Ed448PrivateKey,
    dsa.DSAPrivateKey,
)

_PEM_MARKER = b"-----BEGIN "

Material = bytes | str


# ---------------------------------------------------------------------------
# PKCS7 armor helpers
# ---------------------------------------------------------------------------


def unarmor(data: bytes) -> bytes:
    """Return DER bytes, stripping PEM armor when present."""
    if not pem.detect(data):
        return data
    try:
        _, _, der = pem.unarmor(data)
    except ValueError as exc:
        msg = f"Malformed PEM armor: {exc}"
        raise InvalidFormatError(msg) from exc
    return der


def armor_pkcs7(der: bytes) -> bytes:
    """Wrap DER-encoded PKCS7 data in ``-----BEGIN PKCS7-----`` armor."""
    return pem.armor(PKCS7_PEM_LABEL, der)


def _to_bytes(material: Material, what: str) -> bytes:
    if isinstance(material, str):
        return material.encode("utf-8")
    if isinstance(material, (bytes, bytearray, memoryview)):
        return bytes(material)
    msg = f"Cannot load {what} from {type(material).__name__}"
    raise InvalidFormatError(msg)


def _describe(data: bytes) -> str:
    """Render material for debug logs with PEM bodies redacted."""
    if _PEM_MARKER in data:
        return sanitize_pem(data.decode("ascii", errors="replace"))
    return f"<{len(data)} DER bytes>"


# ---------------------------------------------------------------------------
# Loader capability
# ---------------------------------------------------------------------------


@runtime_checkable
class MaterialLoader(Protocol):
    """Capability interface for turning input material into typed handles."""

    def load_private_key(
        self,
        material: PrivateKeyTypes | Material,
        password: bytes | None = None,
    ) -> PrivateKeyTypes: ...

    def load_certificate(self, material: x509.Certificate | Material) -> x509.Certificate: ...

    def load_csr(
        self,
        material: x509.CertificateSigningRequest | Material,
    ) -> x509.CertificateSigningRequest: ...


class DefaultMaterialLoader:
    """Load PEM or DER material with ``cryptography``'s deserialisers."""

    def load_private_key(
        self,
        material: PrivateKeyTypes | Material,
        password: bytes | None = None,
    ) -> PrivateKeyTypes:
        if isinstance(material, _PRIVATE_KEY_CLASSES):
            return material
        data = _to_bytes(material, "private key")
        try:
            if _PEM_MARKER in data:
                return serialization.load_pem_private_key(data, password=password)
            return serialization.load_der_private_key(data, password=password)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            # The material itself is never logged for keys.
            log.debug("Private key material could not be decoded (%d bytes)", len(data))
            msg = f"Invalid private key: {exc}"
            raise InvalidFormatError(msg) from exc

    def load_certificate(self, material: x509.Certificate | Material) -> x509.Certificate:
        if isinstance(material, x509.Certificate):
            return material
        data = _to_bytes(material, "certificate")
        try:
            if _PEM_MARKER in data:
                return x509.load_pem_x509_certificate(data)
            return x509.load_der_x509_certificate(data)
        except ValueError as exc:
            log.debug("Certificate material could not be decoded: %s", _describe(data))
            msg = f"Invalid certificate: {exc}"
            raise InvalidFormatError(msg) from exc

    def load_certificates(
        self,
        material: x509.Certificate | list[x509.Certificate] | Material,
    ) -> list[x509.Certificate]:
        """Load a bundle of one or more PEM certificates (or a single DER one)."""
        if isinstance(material, x509.Certificate):
            return [material]
        if isinstance(material, list):
            return [self.load_certificate(item) for item in material]
        data = _to_bytes(material, "certificate bundle")
        if _PEM_MARKER not in data:
            return [self.load_certificate(data)]
        try:
            return x509.load_pem_x509_certificates(data)
        except ValueError as exc:
            log.debug("Certificate bundle could not be decoded: %s", _describe(data))
            msg = f"Invalid certificate bundle: {exc}"
            raise InvalidFormatError(msg) from exc

    def load_csr(
        self,
        material: x509.CertificateSigningRequest | Material,
    ) -> x509.CertificateSigningRequest:
        if isinstance(material, x509.CertificateSigningRequest):
            return material
        data = _to_bytes(material, "certificate signing request")
        try:
            if _PEM_MARKER in data:
                return x509.load_pem_x509_csr(data)
            return x509.load_der_x509_csr(data)
        except ValueError as exc:
            log.debug("CSR material could not be decoded: %s", _describe(data))
            msg = f"Invalid certificate signing request: {exc}"
            raise InvalidFormatError(msg) from exc
