"""Tests for the pkcs7crypt CLI entry point (pkcs7cryptographer.cli.main).

Commands run end to end against real key material written to
``tmp_path``; output goes to files so stdout capture stays text-only.
"""

from __future__ import annotations

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from pkcs7cryptographer.cli.main import EXIT_ERROR, EXIT_UNVERIFIED, _build_parser, main

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


@pytest.fixture
def parser():
    """Return a freshly built ArgumentParser."""
    return _build_parser()


@pytest.fixture
def message(tmp_path):
    path = tmp_path / "message.txt"
    path.write_bytes(b"hello world")
    return path


# ===========================================================================
# Parser construction
# ===========================================================================


class TestParser:
    def test_sign_arguments(self, parser):
        args = parser.parse_args(["sign", "--key", "k.pem", "--cert", "c.pem"])
        assert args.command == "sign"
        assert args.input == "-"
        assert args.output == "-"
        assert args.config is None
        assert args.pem is False

    def test_global_options(self, parser):
        args = parser.parse_args(["-c", "cfg.yaml", "--debug", "--pem", "verify", "--signer-cert", "s.pem"])
        assert args.config == "cfg.yaml"
        assert args.debug is True
        assert args.pem is True
        assert args.trust is None

    def test_command_required(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args([])

    def test_encrypt_requires_recipient(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["encrypt", "--key", "k", "--cert", "c"])

    def test_version(self, capsys):
        assert _run(["--version"]) == 0
        assert "pkcs7crypt 1.0.0" in capsys.readouterr().out


# ===========================================================================
# Commands
# ===========================================================================


class TestSignVerify:
    def test_round_trip(self, tmp_path, pem_files, message):
        signed = tmp_path / "message.p7"
        out = tmp_path / "verified.txt"
        assert (
            _run(
                [
                    "sign",
                    "--key", str(pem_files["signer_key"]),
                    "--cert", str(pem_files["signer_cert"]),
                    "--in", str(message),
                    "--out", str(signed),
                ]
            )
            == 0
        )
        assert signed.read_bytes()[:1] == b"\x30"
        assert (
            _run(
                [
                    "verify",
                    "--signer-cert", str(pem_files["signer_cert"]),
                    "--in", str(signed),
                    "--out", str(out),
                ]
            )
            == 0
        )
        assert out.read_bytes() == b"hello world"

    def test_pem_output(self, tmp_path, pem_files, message):
        signed = tmp_path / "message.p7.pem"
        _run(
            [
                "--pem",
                "sign",
                "--key", str(pem_files["signer_key"]),
                "--cert", str(pem_files["signer_cert"]),
                "--in", str(message),
                "--out", str(signed),
            ]
        )
        assert signed.read_bytes().startswith(b"-----BEGIN PKCS7-----")

    def test_wrong_signer_exits_unverified(self, tmp_path, pem_files, message, capsys):
        signed = tmp_path / "message.p7"
        _run(
            [
                "sign",
                "--key", str(pem_files["signer_key"]),
                "--cert", str(pem_files["signer_cert"]),
                "--in", str(message),
                "--out", str(signed),
            ]
        )
        out = tmp_path / "verified.txt"
        code = _run(
            [
                "verify",
                "--signer-cert", str(pem_files["recipient_cert"]),
                "--in", str(signed),
                "--out", str(out),
            ]
        )
        assert code == EXIT_UNVERIFIED
        assert not out.exists()
        assert "signature verification failed" in capsys.readouterr().err


class TestEncryptDecrypt:
    def test_round_trip(self, tmp_path, pem_files, message):
        envelope = tmp_path / "message.p7e"
        out = tmp_path / "plain.txt"
        assert (
            _run(
                [
                    "encrypt",
                    "--key", str(pem_files["signer_key"]),
                    "--cert", str(pem_files["signer_cert"]),
                    "--recipient-cert", str(pem_files["recipient_cert"]),
                    "--in", str(message),
                    "--out", str(envelope),
                ]
            )
            == 0
        )
        assert (
            _run(
                [
                    "decrypt",
                    "--key", str(pem_files["recipient_key"]),
                    "--cert", str(pem_files["recipient_cert"]),
                    "--signer-cert", str(pem_files["signer_cert"]),
                    "--trust", str(pem_files["signer_cert"]),
                    "--in", str(envelope),
                    "--out", str(out),
                ]
            )
            == 0
        )
        assert out.read_bytes() == b"hello world"

    def test_wrong_recipient_is_error(self, tmp_path, pem_files, message, capsys):
        envelope = tmp_path / "message.p7e"
        _run(
            [
                "encrypt",
                "--key", str(pem_files["signer_key"]),
                "--cert", str(pem_files["signer_cert"]),
                "--recipient-cert", str(pem_files["recipient_cert"]),
                "--in", str(message),
                "--out", str(envelope),
            ]
        )
        code = _run(
            [
                "decrypt",
                "--key", str(pem_files["signer_key"]),
                "--cert", str(pem_files["signer_cert"]),
                "--signer-cert", str(pem_files["signer_cert"]),
                "--in", str(envelope),
                "--out", str(tmp_path / "plain.txt"),
            ]
        )
        assert code == EXIT_ERROR
        assert "No recipient entry" in capsys.readouterr().err


class TestIssue:
    def test_issue_writes_pem(self, tmp_path, pem_files):
        key = ec.generate_private_key(ec.SECP256R1())
        csr = (
            x509.CertificateSigningRequestBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "cli-device")]))
            .sign(key, hashes.SHA256())
        )
        csr_path = tmp_path / "request.csr"
        csr_path.write_bytes(csr.public_bytes(serialization.Encoding.PEM))
        out = tmp_path / "issued.pem"

        code = _run(
            [
                "issue",
                "--csr", str(csr_path),
                "--key", str(pem_files["ca_key"]),
                "--cert", str(pem_files["ca_cert"]),
                "--valid-until", "2099-01-01T00:00:00+00:00",
                "--out", str(out),
            ]
        )
        assert code == 0
        cert = x509.load_pem_x509_certificate(out.read_bytes())
        assert cert.subject == csr.subject
        assert cert.not_valid_after_utc.year == 2099

    def test_configured_validity(self, tmp_path, pem_files, tmp_config_file):
        key = ec.generate_private_key(ec.SECP256R1())
        csr = (
            x509.CertificateSigningRequestBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "cli-device")]))
            .sign(key, hashes.SHA256())
        )
        csr_path = tmp_path / "request.csr"
        csr_path.write_bytes(csr.public_bytes(serialization.Encoding.DER))
        out = tmp_path / "issued.pem"
        config = tmp_config_file({"issuance": {"validity_days": 5, "leaf_extensions": False}})

        code = _run(
            [
                "-c", str(config),
                "issue",
                "--csr", str(csr_path),
                "--key", str(pem_files["ca_key"]),
                "--cert", str(pem_files["ca_cert"]),
                "--out", str(out),
            ]
        )
        assert code == 0
        cert = x509.load_pem_x509_certificate(out.read_bytes())
        assert (cert.not_valid_after_utc - cert.not_valid_before_utc).days == 5
        assert len(cert.extensions) == 0


class TestErrors:
    def test_missing_input_file(self, tmp_path, pem_files, capsys):
        code = _run(
            [
                "sign",
                "--key", str(pem_files["signer_key"]),
                "--cert", str(pem_files["signer_cert"]),
                "--in", str(tmp_path / "absent.txt"),
                "--out", str(tmp_path / "out.p7"),
            ]
        )
        assert code == EXIT_ERROR
        assert "pkcs7crypt: error:" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, pem_files, message, tmp_config_file, capsys):
        config = tmp_config_file({"encryption": {"cipher": "rot13"}})
        code = _run(
            [
                "-c", str(config),
                "sign",
                "--key", str(pem_files["signer_key"]),
                "--cert", str(pem_files["signer_cert"]),
                "--in", str(message),
                "--out", str(tmp_path / "out.p7"),
            ]
        )
        assert code == EXIT_ERROR
        assert "encryption.cipher" in capsys.readouterr().err

    def test_malformed_key(self, tmp_path, pem_files, message, capsys):
        bad_key = tmp_path / "bad.key"
        bad_key.write_bytes(b"not a key")
        code = _run(
            [
                "sign",
                "--key", str(bad_key),
                "--cert", str(pem_files["signer_cert"]),
                "--in", str(message),
                "--out", str(tmp_path / "out.p7"),
            ]
        )
        assert code == EXIT_ERROR
        assert "Invalid private key" in capsys.readouterr().err
