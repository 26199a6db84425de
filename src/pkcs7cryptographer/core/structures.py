"""PKCS7 message structures and verification results.

:class:`SignedData` and :class:`EnvelopedData` wrap the canonical DER
encoding of a CMS ``ContentInfo`` together with its parsed
``asn1crypto`` representation.  Both are immutable; the DER bytes are
the source of truth and are what gets serialised or re-enveloped.

Verification returns a tagged result, :class:`Verified` or
:class:`Unverified`.  A failed verification is **not** an exception,
so callers must check the result type (or :attr:`ok`) before trusting
the payload::

    result = verify(signed, cert, store)
    if isinstance(result, Verified):
        use(result.payload)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, TypeAlias

from asn1crypto import cms
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from pkcs7cryptographer.adapters.material import armor_pkcs7, unarmor
from pkcs7cryptographer.core.errors import InvalidFormatError


@dataclass(frozen=True)
class _ContentInfo:
    """Common parsing and serialisation for CMS ``ContentInfo`` wrappers."""

    _content_type: ClassVar[str] = ""
    _label: ClassVar[str] = ""

    der: bytes
    info: cms.ContentInfo = field(repr=False, compare=False)

    @classmethod
    def from_der(cls, data: bytes):
        """Parse canonical DER bytes.

        Raises
        ------
        InvalidFormatError
            If *data* is not a well-formed ``ContentInfo`` of the
            expected content type.

        """
        if not isinstance(data, (bytes, bytearray)):
            msg = f"{cls._label} input must be bytes, got {type(data).__name__}"
            raise InvalidFormatError(msg)
        data = bytes(data)
        try:
            info = cms.ContentInfo.load(data, strict=True)
            content_type = info["content_type"].native
            # Walk the whole tree now so malformed inner fields fail here
            # rather than halfway through an operation.
            info.native  # noqa: B018
        except (ValueError, TypeError, KeyError) as exc:
            msg = f"Malformed {cls._label} structure: {exc}"
            raise InvalidFormatError(msg) from exc
        if content_type != cls._content_type:
            msg = f"Expected {cls._label} content, got '{content_type}'"
            raise InvalidFormatError(msg)
        return cls(der=data, info=info)

    @classmethod
    def load(cls, data: bytes | str):
        """Parse DER or PEM-armored input."""
        if isinstance(data, str):
            data = data.encode("ascii", errors="replace")
        return cls.from_der(unarmor(data))

    @property
    def content(self):
        return self.info["content"]

    def to_der(self) -> bytes:
        return self.der

    def to_pem(self) -> bytes:
        return armor_pkcs7(self.der)


# ---------------------------------------------------------------------------
# Signed-Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignedData(_ContentInfo):
    """A parsed PKCS7 Signed-Data value."""

    _content_type: ClassVar[str] = "signed_data"
    _label: ClassVar[str] = "Signed-Data"

    @property
    def payload(self) -> bytes | None:
        """Encapsulated content, or ``None`` for a detached signature."""
        return self.content["encap_content_info"]["content"].native

    @property
    def signer_infos(self) -> cms.SignerInfos:
        return self.content["signer_infos"]

    @property
    def signer_count(self) -> int:
        return len(self.signer_infos)

    @property
    def digest_algorithms(self) -> tuple[str, ...]:
        return tuple(alg["algorithm"].native for alg in self.content["digest_algorithms"])

    @property
    def certificates(self) -> tuple[x509.Certificate, ...]:
        """Certificates embedded in the structure, in encoded order."""
        certs = self.content["certificates"]
        if certs.native is None:
            return ()
        return tuple(
            x509.load_der_x509_certificate(choice.chosen.dump())
            for choice in certs
            if choice.name == "certificate"
        )


# ---------------------------------------------------------------------------
# Enveloped-Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecipientInfo:
    """Identification of one key-transport recipient of an envelope."""

    issuer: asn1_x509.Name = field(repr=False)
    serial_number: int
    key_encryption_algorithm: str

    def identifies(self, certificate: x509.Certificate) -> bool:
        """Return whether this entry was addressed to *certificate*."""
        if certificate.serial_number != self.serial_number:
            return False
        parsed = asn1_x509.Certificate.load(certificate.public_bytes(Encoding.DER))
        return parsed.issuer == self.issuer


@dataclass(frozen=True)
class EnvelopedData(_ContentInfo):
    """A parsed PKCS7 Enveloped-Data value."""

    _content_type: ClassVar[str] = "enveloped_data"
    _label: ClassVar[str] = "Enveloped-Data"

    @property
    def recipients(self) -> tuple[RecipientInfo, ...]:
        """Key-transport recipients identified by issuer and serial number.

        Other recipient kinds (key agreement, KEK, password) are skipped.
        """
        result = []
        for choice in self.content["recipient_infos"]:
            if choice.name != "ktri":
                continue
            ktri = choice.chosen
            rid = ktri["rid"]
            if rid.name != "issuer_and_serial_number":
                continue
            result.append(
                RecipientInfo(
                    issuer=rid.chosen["issuer"],
                    serial_number=rid.chosen["serial_number"].native,
                    key_encryption_algorithm=ktri["key_encryption_algorithm"]["algorithm"].native,
                ),
            )
        return tuple(result)

    @property
    def content_encryption_algorithm(self) -> str:
        """Symmetric cipher name as reported by asn1crypto (e.g. ``aes256_cbc``)."""
        return self.content["encrypted_content_info"]["content_encryption_algorithm"][
            "algorithm"
        ].native

    def find_recipient(self, certificate: x509.Certificate) -> RecipientInfo | None:
        for recipient in self.recipients:
            if recipient.identifies(certificate):
                return recipient
        return None


# ---------------------------------------------------------------------------
# Verification results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Verified:
    """Successful verification: the payload may be trusted."""

    ok: ClassVar[bool] = True

    payload: bytes
    signed_data: SignedData = field(repr=False)


@dataclass(frozen=True)
class Unverified:
    """Failed verification: the structure is returned untouched.

    The payload inside :attr:`signed_data` has **not** been
    authenticated and must not be trusted.
    """

    ok: ClassVar[bool] = False

    signed_data: SignedData = field(repr=False)
    reason: str


VerificationResult: TypeAlias = Verified | Unverified
