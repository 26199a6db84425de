"""Error taxonomy for PKCS7 signing, enveloping and certificate issuance.

Every failure raised by the library derives from :class:`Pkcs7Error`.
Signature verification failure is deliberately *not* part of this
hierarchy: :func:`~pkcs7cryptographer.pkcs7.verifier.verify` returns an
:class:`~pkcs7cryptographer.core.structures.Unverified` value instead.
Only the strict variants raise :class:`VerificationError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pkcs7cryptographer.core.structures import Unverified


class Pkcs7Error(Exception):
    """Base class for all library failures.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.

    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class InvalidFormatError(Pkcs7Error):
    """Malformed Signed-Data, Enveloped-Data, CSR, key or certificate input."""


class InvalidKeyPairError(Pkcs7Error):
    """The private key is not the counterpart of the certificate's public key."""


class UnsupportedKeyError(Pkcs7Error):
    """The key type cannot be used by the primitive provider for this operation."""


class EncryptionError(Pkcs7Error):
    """Building an Enveloped-Data structure failed."""


class DecryptionError(Pkcs7Error):
    """Unwrapping an Enveloped-Data structure failed."""


class InvalidRequestError(Pkcs7Error):
    """A certificate signing request failed its proof-of-possession check."""


class VerificationError(Pkcs7Error):
    """Raised by the strict verify variants when a signature does not verify.

    The unverified result is kept on :attr:`result` so callers can still
    inspect the structure that failed.
    """

    def __init__(self, result: Unverified) -> None:
        self.result = result
        super().__init__(f"Signature verification failed: {result.reason}")
