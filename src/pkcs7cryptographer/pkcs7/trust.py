"""Trust anchors for signer certificate validation.

:class:`TrustStore` is the capability the verifier consumes; it only
answers whether a certificate, together with candidate intermediates,
leads to a trusted anchor.  :class:`CertificateStore` is the shipped
implementation: a set of anchor certificates and a bounded issuer walk
using :meth:`cryptography.x509.Certificate.verify_directly_issued_by`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from cryptography import x509
from cryptography.exceptions import InvalidSignature

log = logging.getLogger(__name__)

_MAX_CHAIN_DEPTH = 8


@runtime_checkable
class TrustStore(Protocol):
    def is_trusted(
        self,
        certificate: x509.Certificate,
        chain: Sequence[x509.Certificate] = (),
    ) -> bool: ...


def _issued_by(subject: x509.Certificate, issuer: x509.Certificate) -> bool:
    try:
        subject.verify_directly_issued_by(issuer)
    except (ValueError, TypeError, InvalidSignature):
        return False
    return True


def _valid_at(certificate: x509.Certificate, when: datetime) -> bool:
    return certificate.not_valid_before_utc <= when <= certificate.not_valid_after_utc


class CertificateStore:
    """In-memory set of trust anchors.

    Parameters
    ----------
    anchors:
        Initially trusted certificates.
    at:
        Fixed validation instant; ``None`` means "now" at each check.
    max_depth:
        Maximum number of intermediates walked before giving up.

    """

    def __init__(
        self,
        anchors: Iterable[x509.Certificate] = (),
        *,
        at: datetime | None = None,
        max_depth: int = _MAX_CHAIN_DEPTH,
    ) -> None:
        self._anchors: set[x509.Certificate] = set(anchors)
        self._at = at
        self._max_depth = max_depth

    def add(self, certificate: x509.Certificate) -> None:
        self._anchors.add(certificate)

    def __contains__(self, certificate: object) -> bool:
        return certificate in self._anchors

    def __len__(self) -> int:
        return len(self._anchors)

    def _anchor_for(self, certificate: x509.Certificate, when: datetime) -> x509.Certificate | None:
        if certificate in self._anchors:
            return certificate
        for anchor in self._anchors:
            if _valid_at(anchor, when) and _issued_by(certificate, anchor):
                return anchor
        return None

    def is_trusted(
        self,
        certificate: x509.Certificate,
        chain: Sequence[x509.Certificate] = (),
    ) -> bool:
        """Return whether *certificate* chains to an anchor via *chain*.

        Every certificate on the path, anchors included, must be valid
        at the validation instant.
        """
        when = self._at or datetime.now(UTC)
        pool = [c for c in chain if c != certificate]
        current = certificate

        for _ in range(self._max_depth + 1):
            if not _valid_at(current, when):
                log.debug("Certificate %s is outside its validity window", current.subject.rfc4514_string())
                return False
            if self._anchor_for(current, when) is not None:
                return True
            parent = next((c for c in pool if _issued_by(current, c)), None)
            if parent is None:
                log.debug("No issuer found for %s", current.subject.rfc4514_string())
                return False
            pool.remove(parent)
            current = parent

        log.debug("Chain for %s exceeds depth %d", certificate.subject.rfc4514_string(), self._max_depth)
        return False
