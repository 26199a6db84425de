"""High-level PKCS7 messaging facade.

:class:`Cryptographer` composes the signer, enveloper, verifier,
decryptor and certificate issuer behind one object configured from
:class:`~pkcs7cryptographer.config.settings.CryptographerSettings`.
Keys and certificates may be passed as ``cryptography`` objects or as
PEM/DER material; they are normalised by the configured
:class:`~pkcs7cryptographer.adapters.material.MaterialLoader`.

Usage::

    crypto = Cryptographer()
    envelope = crypto.sign_and_encrypt(b"hello world", key, cert, recipient_cert)
    result = crypto.decrypt_and_verify(envelope, recipient_key, recipient_cert, cert, store)
    if isinstance(result, Verified):
        print(result.payload)

.. warning::

   :meth:`Cryptographer.verify` and :meth:`Cryptographer.decrypt_and_verify`
   report a bad signature by returning
   :class:`~pkcs7cryptographer.core.structures.Unverified`, **not** by
   raising.  Use the ``*_strict`` variants where an exception is wanted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pkcs7cryptographer.adapters.material import DefaultMaterialLoader
from pkcs7cryptographer.ca.issuer import CertificateIssuer
from pkcs7cryptographer.config.settings import CryptographerSettings, build_settings
from pkcs7cryptographer.core.types import OutputEncoding
from pkcs7cryptographer.pkcs7 import decryptor, enveloper, signer, verifier
from pkcs7cryptographer.pkcs7.trust import CertificateStore, TrustStore

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cryptography import x509
    from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

    from pkcs7cryptographer.adapters.material import Material, MaterialLoader
    from pkcs7cryptographer.ca.cert_utils import Instant
    from pkcs7cryptographer.core.structures import (
        EnvelopedData,
        SignedData,
        VerificationResult,
    )
    from pkcs7cryptographer.core.types import SignFlags

    KeyInput = PrivateKeyTypes | Material
    CertInput = x509.Certificate | Material
    TrustInput = TrustStore | Iterable[x509.Certificate]

log = logging.getLogger(__name__)


class Cryptographer:
    """Sign, encrypt, decrypt, verify and issue certificates.

    Parameters
    ----------
    settings:
        Full settings tree; defaults when omitted.
    loader:
        Key/certificate loader; :class:`DefaultMaterialLoader` when
        omitted.

    """

    def __init__(
        self,
        settings: CryptographerSettings | None = None,
        loader: MaterialLoader | None = None,
    ) -> None:
        self._settings = settings or build_settings()
        self._loader = loader or DefaultMaterialLoader()
        self._issuer = CertificateIssuer(self._settings.issuance, self._loader)
        log.debug(
            "Cryptographer configured (cipher=%s, verify_mode=%s, output=%s)",
            self._settings.encryption.cipher,
            self._settings.verification.mode,
            self._settings.output.encoding,
        )

    @property
    def settings(self) -> CryptographerSettings:
        return self._settings

    # -- helpers -------------------------------------------------------------

    def _serialize(self, structure: SignedData | EnvelopedData) -> bytes:
        if self._settings.output.encoding is OutputEncoding.PEM:
            return structure.to_pem()
        return structure.to_der()

    def _trust_store(self, ca_store: TrustInput) -> TrustStore:
        if isinstance(ca_store, TrustStore):
            return ca_store
        return CertificateStore(self._loader.load_certificate(c) for c in ca_store)

    def _sign(
        self,
        data: bytes | str,
        key: KeyInput,
        certificate: CertInput,
        flags: SignFlags | None,
    ) -> SignedData:
        return signer.sign(
            data,
            self._loader.load_private_key(key),
            self._loader.load_certificate(certificate),
            flags=self._settings.signing.flags if flags is None else flags,
            digest=self._settings.signing.digest,
        )

    # -- public API ----------------------------------------------------------

    def sign(
        self,
        data: bytes | str,
        key: KeyInput,
        certificate: CertInput,
        flags: SignFlags | None = None,
    ) -> bytes:
        """Sign *data* and return the serialised Signed-Data."""
        return self._serialize(self._sign(data, key, certificate, flags))

    def sign_and_encrypt(  # noqa: PLR0913
        self,
        data: bytes | str,
        key: KeyInput,
        certificate: CertInput,
        public_certificate: CertInput,
        flags: SignFlags | None = None,
    ) -> bytes:
        """Sign *data*, then envelope it for *public_certificate*."""
        signed_data = self._sign(data, key, certificate, flags)
        enveloped = enveloper.envelope(
            signed_data,
            self._loader.load_certificate(public_certificate),
            cipher=self._settings.encryption.cipher,
        )
        return self._serialize(enveloped)

    def verify(
        self,
        data: SignedData | bytes | str,
        public_certificate: CertInput,
        ca_store: TrustInput,
    ) -> VerificationResult:
        """Verify Signed-Data produced by *public_certificate*'s owner.

        Returns ``Verified`` or ``Unverified``; never raises on a bad
        signature.
        """
        return verifier.verify(
            data,
            self._loader.load_certificate(public_certificate),
            self._trust_store(ca_store),
            mode=self._settings.verification.mode,
        )

    def verify_strict(
        self,
        data: SignedData | bytes | str,
        public_certificate: CertInput,
        ca_store: TrustInput,
    ) -> bytes:
        """Verify and return the payload, raising ``VerificationError`` on failure."""
        return verifier.verify_strict(
            data,
            self._loader.load_certificate(public_certificate),
            self._trust_store(ca_store),
            mode=self._settings.verification.mode,
        )

    def decrypt(
        self,
        data: EnvelopedData | bytes | str,
        key: KeyInput,
        certificate: CertInput,
    ) -> bytes:
        """Unwrap an envelope without verifying its content."""
        return decryptor.decrypt(
            data,
            self._loader.load_private_key(key),
            self._loader.load_certificate(certificate),
        )

    def decrypt_and_verify(  # noqa: PLR0913
        self,
        data: EnvelopedData | bytes | str,
        key: KeyInput,
        certificate: CertInput,
        public_certificate: CertInput,
        ca_store: TrustInput,
    ) -> VerificationResult:
        """Decrypt with the recipient *key*/*certificate*, then verify.

        *public_certificate* is the signer's certificate.
        """
        return decryptor.decrypt_and_verify(
            data,
            self._loader.load_private_key(key),
            self._loader.load_certificate(certificate),
            self._loader.load_certificate(public_certificate),
            self._trust_store(ca_store),
            mode=self._settings.verification.mode,
        )

    def decrypt_and_verify_strict(  # noqa: PLR0913
        self,
        data: EnvelopedData | bytes | str,
        key: KeyInput,
        certificate: CertInput,
        public_certificate: CertInput,
        ca_store: TrustInput,
    ) -> bytes:
        """Strict variant of :meth:`decrypt_and_verify`."""
        return decryptor.decrypt_and_verify_strict(
            data,
            self._loader.load_private_key(key),
            self._loader.load_certificate(certificate),
            self._loader.load_certificate(public_certificate),
            self._trust_store(ca_store),
            mode=self._settings.verification.mode,
        )

    def sign_certificate(
        self,
        csr: x509.CertificateSigningRequest | Material,
        key: KeyInput,
        certificate: CertInput,
        valid_until: Instant | None = None,
    ) -> x509.Certificate:
        """Issue a certificate for *csr* signed by *key*/*certificate*."""
        return self._issuer.issue(
            csr,
            self._loader.load_private_key(key),
            self._loader.load_certificate(certificate),
            valid_until=valid_until,
        )
