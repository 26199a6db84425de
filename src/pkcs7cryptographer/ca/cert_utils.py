"""Certificate-building helpers for the issuer.

Covers validity-instant normalisation, time-derived serial numbers and
the standard leaf extensions added to issued certificates.
"""

from __future__ import annotations

import time
from datetime import UTC, date, datetime, time as dt_time
from typing import TYPE_CHECKING

from cryptography import x509

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.types import PublicKeyTypes

Instant = datetime | date | int | float | str

# RFC 5280 sec 4.1.2.2: at most 20 octets, positive.
_MAX_SERIAL_BITS = 159


def normalize_instant(value: Instant) -> datetime:
    """Convert any instant-like *value* to an aware UTC datetime.

    Accepts aware or naive :class:`datetime` (naive values are taken as
    UTC), :class:`date` (midnight UTC), POSIX timestamps and ISO-8601
    strings.  Sub-second precision is dropped since X.509 validity
    times carry whole seconds.
    """
    if isinstance(value, bool):
        msg = "A boolean is not a valid instant"
        raise TypeError(msg)
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            msg = f"Not an ISO-8601 instant: {value!r}"
            raise ValueError(msg) from None
    if isinstance(value, (int, float)):
        try:
            value = datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError) as exc:
            msg = f"Timestamp out of range: {value!r}"
            raise ValueError(msg) from exc
    elif isinstance(value, datetime):
        value = value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    elif isinstance(value, date):
        value = datetime.combine(value, dt_time.min, tzinfo=UTC)
    else:
        msg = f"Cannot interpret {type(value).__name__} as an instant"
        raise TypeError(msg)
    return value.replace(microsecond=0)


def time_serial() -> int:
    """Return a serial number derived from the current time in microseconds."""
    return time.time_ns() // 1000 & ((1 << _MAX_SERIAL_BITS) - 1)


def build_leaf_extensions(
    csr: x509.CertificateSigningRequest,
    issuer_public_key: PublicKeyTypes,
) -> list[tuple[x509.ExtensionType, bool]]:
    """Return ``(extension, critical)`` pairs for an end-entity certificate.

    Basic constraints (CA=false), subject and authority key identifiers,
    and the CSR's subject alternative names when it requests any.
    """
    extensions: list[tuple[x509.ExtensionType, bool]] = [
        (x509.BasicConstraints(ca=False, path_length=None), True),
        (x509.SubjectKeyIdentifier.from_public_key(csr.public_key()), False),
        (x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_public_key), False),
    ]
    try:
        san = csr.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        pass
    else:
        extensions.append((san.value, san.critical))
    return extensions
