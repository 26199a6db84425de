"""Issue leaf certificates from certificate signing requests.

Issuance is a single synchronous operation:

1. proof of possession -- the CSR's self-signature must verify against
   its own public key, otherwise :class:`InvalidRequestError` is raised
   and nothing is issued;
2. construction -- issuer from the issuing certificate's subject,
   subject and public key from the CSR, a time-derived serial number
   and validity ``[now, valid_until]``;
3. signing with the issuer key and the configured digest.

The issuance digest defaults to SHA-256.  SHA-1 remains selectable for
legacy relying parties and is logged as a warning whenever it is used.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed448, ed25519

from pkcs7cryptographer.adapters.material import DefaultMaterialLoader
from pkcs7cryptographer.ca.cert_utils import build_leaf_extensions, normalize_instant, time_serial
from pkcs7cryptographer.config.settings import IssuanceSettings, build_settings
from pkcs7cryptographer.core.errors import InvalidRequestError, Pkcs7Error
from pkcs7cryptographer.core.types import DigestAlgorithm

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

    from pkcs7cryptographer.adapters.material import Material, MaterialLoader
    from pkcs7cryptographer.ca.cert_utils import Instant

log = logging.getLogger(__name__)

_HASH_ALGORITHMS = {
    DigestAlgorithm.SHA1: hashes.SHA1(),
    DigestAlgorithm.SHA224: hashes.SHA224(),
    DigestAlgorithm.SHA256: hashes.SHA256(),
    DigestAlgorithm.SHA384: hashes.SHA384(),
    DigestAlgorithm.SHA512: hashes.SHA512(),
}


class CertificateIssuer:
    """Sign CSRs with an issuer key and certificate.

    Parameters
    ----------
    settings:
        Issuance section of the configuration; defaults apply when
        omitted.
    loader:
        Material loader used when the CSR is passed encoded.

    """

    def __init__(
        self,
        settings: IssuanceSettings | None = None,
        loader: MaterialLoader | None = None,
    ) -> None:
        self._settings = settings or build_settings().issuance
        self._loader = loader or DefaultMaterialLoader()
        self._hash_algorithm = _HASH_ALGORITHMS[DigestAlgorithm(self._settings.digest)]

    @property
    def settings(self) -> IssuanceSettings:
        return self._settings

    def default_valid_until(self, now: datetime | None = None) -> datetime:
        """Return ``now + validity_days`` as configured."""
        now = now or datetime.now(UTC)
        return now + timedelta(days=self._settings.validity_days)

    def check_csr(
        self,
        csr: x509.CertificateSigningRequest | Material,
    ) -> x509.CertificateSigningRequest:
        """Parse *csr* and verify its self-signature.

        Raises
        ------
        InvalidFormatError
            If *csr* cannot be decoded.
        InvalidRequestError
            If the self-signature does not verify.

        """
        request = self._loader.load_csr(csr)
        try:
            valid = request.is_signature_valid
        except UnsupportedAlgorithm as exc:
            msg = "CSR can not be verified"
            raise InvalidRequestError(msg) from exc
        if not valid:
            msg = "CSR can not be verified"
            raise InvalidRequestError(msg)
        return request

    def _signing_algorithm(self, issuer_key: PrivateKeyTypes) -> hashes.HashAlgorithm | None:
        # EdDSA keys sign without a separate digest.
        if isinstance(issuer_key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)):
            return None
        if self._settings.digest == DigestAlgorithm.SHA1:
            log.warning(
                "Issuing certificate with SHA-1, a deprecated digest; "
                "set issuance.digest to sha256 or stronger",
            )
        return self._hash_algorithm

    def issue(
        self,
        csr: x509.CertificateSigningRequest | Material,
        issuer_key: PrivateKeyTypes,
        issuer_cert: x509.Certificate,
        valid_until: Instant | None = None,
    ) -> x509.Certificate:
        """Issue a certificate for *csr*.

        Parameters
        ----------
        csr:
            Parsed CSR or its PEM/DER encoding.
        issuer_key:
            Private key signing the new certificate.
        issuer_cert:
            Certificate whose subject becomes the issuer name.
        valid_until:
            End of validity; any instant accepted by
            :func:`~pkcs7cryptographer.ca.cert_utils.normalize_instant`.
            Defaults to now plus ``validity_days``.

        Returns
        -------
        x509.Certificate
            The signed certificate, re-parsed from its PEM encoding.

        Raises
        ------
        InvalidRequestError
            If the CSR self-signature does not verify.
        ValueError
            If *valid_until* is not after the issuance time.
        Pkcs7Error
            If the provider refuses to sign.

        """
        request = self.check_csr(csr)

        now = datetime.now(UTC).replace(microsecond=0)
        not_after = self.default_valid_until(now) if valid_until is None else normalize_instant(valid_until)
        if not_after <= now:
            msg = f"valid_until ({not_after.isoformat()}) must be after the issuance time ({now.isoformat()})"
            raise ValueError(msg)

        serial_number = time_serial()
        builder = (
            x509.CertificateBuilder()
            .serial_number(serial_number)
            .not_valid_before(now)
            .not_valid_after(not_after)
            .subject_name(request.subject)
            .public_key(request.public_key())
            .issuer_name(issuer_cert.subject)
        )
        if self._settings.leaf_extensions:
            for extension, critical in build_leaf_extensions(request, issuer_cert.public_key()):
                builder = builder.add_extension(extension, critical=critical)

        try:
            certificate = builder.sign(issuer_key, self._signing_algorithm(issuer_key))
        except (ValueError, TypeError) as exc:
            msg = f"Failed to sign certificate: {exc}"
            raise Pkcs7Error(msg) from exc

        log.info(
            "Issued certificate: serial=%x, subject=%s, issuer=%s, not_after=%s",
            serial_number,
            request.subject.rfc4514_string(),
            issuer_cert.subject.rfc4514_string(),
            not_after.isoformat(),
        )
        return x509.load_pem_x509_certificate(certificate.public_bytes(serialization.Encoding.PEM))


def issue_certificate(
    csr: x509.CertificateSigningRequest | Material,
    issuer_key: PrivateKeyTypes,
    issuer_cert: x509.Certificate,
    valid_until: Instant | None = None,
    settings: IssuanceSettings | None = None,
) -> x509.Certificate:
    """Issue a certificate with a one-off :class:`CertificateIssuer`."""
    return CertificateIssuer(settings).issue(csr, issuer_key, issuer_cert, valid_until=valid_until)
