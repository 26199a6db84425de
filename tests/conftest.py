"""Root conftest for the pkcs7cryptographer test suite."""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import yaml
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed448, ed25519, rsa
from cryptography.x509.oid import NameOID

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# Crypto material helpers
# ---------------------------------------------------------------------------


def _generate_rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _build_cert(  # noqa: PLR0913
    key,
    cn: str,
    issuer_key=None,
    issuer_cert: x509.Certificate | None = None,
    *,
    ca: bool = False,
    not_before: datetime | None = None,
    not_after: datetime | None = None,
) -> x509.Certificate:
    """Build a certificate for *key*; self-signed unless an issuer is given."""
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, cn)])
    now = datetime.now(UTC)
    signing_key = issuer_key or key
    issuer_name = issuer_cert.subject if issuer_cert is not None else subject
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer_name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before or now - timedelta(days=1))
        .not_valid_after(not_after or now + timedelta(days=365))
        .add_extension(
            x509.BasicConstraints(ca=ca, path_length=None),
            critical=True,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()),
            critical=False,
        )
    )
    algorithm = None if isinstance(signing_key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)) else hashes.SHA256()
    return builder.sign(signing_key, algorithm)


def _pem_key(key) -> bytes:
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def _pem_cert(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


# ---------------------------------------------------------------------------
# Fixtures -- RSA key generation is slow, so key pairs are session-scoped
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def make_cert():
    """Return the certificate factory used by the fixtures below."""
    return _build_cert


@pytest.fixture(scope="session")
def signer_key() -> rsa.RSAPrivateKey:
    return _generate_rsa_key()


@pytest.fixture(scope="session")
def signer_cert(signer_key) -> x509.Certificate:
    """Self-signed certificate for :func:`signer_key`."""
    return _build_cert(signer_key, "Test Signer")


@pytest.fixture(scope="session")
def recipient_key() -> rsa.RSAPrivateKey:
    return _generate_rsa_key()


@pytest.fixture(scope="session")
def recipient_cert(recipient_key) -> x509.Certificate:
    return _build_cert(recipient_key, "Test Recipient")


@pytest.fixture(scope="session")
def ca_key() -> rsa.RSAPrivateKey:
    return _generate_rsa_key()


@pytest.fixture(scope="session")
def ca_cert(ca_key) -> x509.Certificate:
    return _build_cert(ca_key, "Test Root CA", ca=True)


@pytest.fixture(scope="session")
def leaf_key() -> rsa.RSAPrivateKey:
    return _generate_rsa_key()


@pytest.fixture(scope="session")
def leaf_cert(leaf_key, ca_key, ca_cert) -> x509.Certificate:
    """Leaf certificate issued by :func:`ca_cert`."""
    return _build_cert(leaf_key, "Test Leaf", ca_key, ca_cert)


@pytest.fixture()
def pem_files(tmp_path, signer_key, signer_cert, recipient_key, recipient_cert, ca_key, ca_cert):
    """Write the session key material as PEM files and return their paths."""
    files = {
        "signer_key": (signer_key, _pem_key),
        "signer_cert": (signer_cert, _pem_cert),
        "recipient_key": (recipient_key, _pem_key),
        "recipient_cert": (recipient_cert, _pem_cert),
        "ca_key": (ca_key, _pem_key),
        "ca_cert": (ca_cert, _pem_cert),
    }
    paths = {}
    for name, (obj, encode) in files.items():
        path = tmp_path / f"{name}.pem"
        path.write_bytes(encode(obj))
        paths[name] = path
    return paths


@pytest.fixture()
def tmp_config_file(tmp_path: Path):
    """Return a writer that dumps a dict to a temp YAML file."""

    def _write(data: dict) -> Path:
        cfg = tmp_path / "config.yaml"
        cfg.write_text(
            yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )
        return cfg

    return _write


# ---------------------------------------------------------------------------
# Logger cleanup -- autouse so configure_logging never leaks between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def fresh_logging():
    """Restore the package root logger after every test."""
    root = logging.getLogger("pkcs7cryptographer")
    handlers = list(root.handlers)
    level = root.level
    propagate = root.propagate
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate
