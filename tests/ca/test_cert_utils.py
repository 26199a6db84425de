"""Tests for pkcs7cryptographer.ca.cert_utils."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from pkcs7cryptographer.ca.cert_utils import build_leaf_extensions, normalize_instant, time_serial


class TestNormalizeInstant:
    def test_aware_datetime_converted(self):
        value = datetime(2030, 6, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        assert normalize_instant(value) == datetime(2030, 6, 1, 12, 30, tzinfo=UTC)
        assert normalize_instant(value).tzinfo is UTC

    def test_naive_datetime_is_utc(self):
        assert normalize_instant(datetime(2030, 6, 1, 12, 0)) == datetime(2030, 6, 1, 12, 0, tzinfo=UTC)

    def test_microseconds_dropped(self):
        value = datetime(2030, 6, 1, 12, 0, 0, 987654, tzinfo=UTC)
        assert normalize_instant(value).microsecond == 0

    def test_date_is_midnight_utc(self):
        assert normalize_instant(date(2030, 1, 2)) == datetime(2030, 1, 2, tzinfo=UTC)

    def test_timestamp(self):
        assert normalize_instant(0) == datetime(1970, 1, 1, tzinfo=UTC)
        assert normalize_instant(86400.75) == datetime(1970, 1, 2, tzinfo=UTC)

    def test_iso_string(self):
        assert normalize_instant("2030-01-01T12:00:00+02:00") == datetime(2030, 1, 1, 10, 0, tzinfo=UTC)
        assert normalize_instant("2030-01-01") == datetime(2030, 1, 1, tzinfo=UTC)

    def test_bad_string(self):
        with pytest.raises(ValueError, match="ISO-8601"):
            normalize_instant("next tuesday")

    @pytest.mark.parametrize("value", [1e20, -1e20, 10**30])
    def test_timestamp_out_of_range(self, value):
        with pytest.raises(ValueError, match="out of range"):
            normalize_instant(value)

    @pytest.mark.parametrize("value", [True, None, [2030, 1, 1]])
    def test_bad_types(self, value):
        with pytest.raises(TypeError):
            normalize_instant(value)


class TestTimeSerial:
    def test_positive_and_bounded(self):
        serial = time_serial()
        assert serial > 0
        assert serial.bit_length() <= 159

    def test_monotonic_enough(self):
        assert time_serial() <= time_serial()


class TestLeafExtensions:
    def test_without_san(self):
        key = ec.generate_private_key(ec.SECP256R1())
        csr = (
            x509.CertificateSigningRequestBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "x")]))
            .sign(key, hashes.SHA256())
        )
        extensions = build_leaf_extensions(csr, key.public_key())
        types = [type(ext) for ext, _ in extensions]
        assert types == [x509.BasicConstraints, x509.SubjectKeyIdentifier, x509.AuthorityKeyIdentifier]
        assert extensions[0][1] is True
