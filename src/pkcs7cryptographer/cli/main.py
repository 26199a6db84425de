"""pkcs7crypt command-line entry point.

Usage::

    pkcs7crypt sign --key signer.key --cert signer.pem --in message.txt --out message.p7
    pkcs7crypt encrypt --key signer.key --cert signer.pem --recipient-cert bob.pem --in message.txt
    pkcs7crypt verify --signer-cert signer.pem --trust ca-bundle.pem --in message.p7
    pkcs7crypt decrypt --key bob.key --cert bob.pem --signer-cert signer.pem --in message.p7e
    pkcs7crypt issue --csr request.csr --key ca.key --cert ca.pem --valid-until 2030-01-01
    pkcs7crypt -c config.yaml --pem sign ...
    python -m pkcs7cryptographer ...

``verify`` and ``decrypt`` exit with status 2 when the signature does
not verify; every other failure exits with status 1.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from cryptography.hazmat.primitives import serialization

EXIT_ERROR = 1
EXIT_UNVERIFIED = 2

log = logging.getLogger(__name__)


def _get_version() -> str:
    from pkcs7cryptographer import __version__

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkcs7crypt",
        description="PKCS7 signing, encryption and certificate issuance",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="PATH",
        default=None,
        help="Path to a configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--pem",
        action="store_true",
        default=False,
        help="Write PKCS7 output PEM-armored instead of DER.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def _io(p: argparse.ArgumentParser) -> None:
        p.add_argument("--in", dest="input", default="-", metavar="PATH", help="Input file ('-' for stdin)")
        p.add_argument("--out", dest="output", default="-", metavar="PATH", help="Output file ('-' for stdout)")

    sign = subparsers.add_parser("sign", help="Sign data into PKCS7 Signed-Data")
    sign.add_argument("--key", required=True, help="Signer private key (PEM/DER)")
    sign.add_argument("--cert", required=True, help="Signer certificate (PEM/DER)")
    _io(sign)

    encrypt = subparsers.add_parser("encrypt", help="Sign then envelope data for a recipient")
    encrypt.add_argument("--key", required=True, help="Signer private key (PEM/DER)")
    encrypt.add_argument("--cert", required=True, help="Signer certificate (PEM/DER)")
    encrypt.add_argument("--recipient-cert", required=True, help="Recipient certificate (PEM/DER)")
    _io(encrypt)

    verify = subparsers.add_parser("verify", help="Verify PKCS7 Signed-Data")
    verify.add_argument("--signer-cert", required=True, help="Signer certificate (PEM/DER)")
    verify.add_argument("--trust", default=None, help="Trust anchor bundle (PEM); defaults to the signer certificate")
    _io(verify)

    decrypt = subparsers.add_parser("decrypt", help="Decrypt an envelope and verify its signature")
    decrypt.add_argument("--key", required=True, help="Recipient private key (PEM/DER)")
    decrypt.add_argument("--cert", required=True, help="Recipient certificate (PEM/DER)")
    decrypt.add_argument("--signer-cert", required=True, help="Signer certificate (PEM/DER)")
    decrypt.add_argument("--trust", default=None, help="Trust anchor bundle (PEM); defaults to the signer certificate")
    _io(decrypt)

    issue = subparsers.add_parser("issue", help="Issue a certificate from a CSR")
    issue.add_argument("--csr", required=True, help="Certificate signing request (PEM/DER)")
    issue.add_argument("--key", required=True, help="Issuer private key (PEM/DER)")
    issue.add_argument("--cert", required=True, help="Issuer certificate (PEM/DER)")
    issue.add_argument("--valid-until", default=None, help="End of validity (ISO-8601); default from config")
    issue.add_argument("--out", dest="output", default="-", metavar="PATH", help="Output PEM file ('-' for stdout)")

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    print(f"pkcs7crypt: error: {message}", file=sys.stderr)


def _read(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def _write(path: str, data: bytes) -> None:
    if path == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    else:
        Path(path).write_bytes(data)


def _load_settings(args):
    from pkcs7cryptographer.config import build_settings, load_settings
    from pkcs7cryptographer.core.types import OutputEncoding

    settings = load_settings(args.config) if args.config else build_settings()
    if args.pem:
        settings = dataclasses.replace(
            settings,
            output=dataclasses.replace(settings.output, encoding=OutputEncoding.PEM),
        )
    return settings


def _trust_anchors(crypto_loader, args) -> list:
    source = args.trust or args.signer_cert
    return crypto_loader.load_certificates(_read(source))


def _run(args) -> int:  # noqa: C901
    from pkcs7cryptographer.adapters.material import DefaultMaterialLoader
    from pkcs7cryptographer.core.structures import Unverified
    from pkcs7cryptographer.cryptographer import Cryptographer

    settings = _load_settings(args)

    from pkcs7cryptographer.logging import configure_logging

    if args.debug:
        settings = dataclasses.replace(
            settings,
            logging=dataclasses.replace(settings.logging, level="DEBUG"),
        )
    configure_logging(settings.logging)

    loader = DefaultMaterialLoader()
    crypto = Cryptographer(settings, loader)
    command = args.command
    log.debug("Running %s command", command)

    if command == "sign":
        _write(args.output, crypto.sign(_read(args.input), _read(args.key), _read(args.cert)))
    elif command == "encrypt":
        _write(
            args.output,
            crypto.sign_and_encrypt(
                _read(args.input),
                _read(args.key),
                _read(args.cert),
                _read(args.recipient_cert),
            ),
        )
    elif command in {"verify", "decrypt"}:
        anchors = _trust_anchors(loader, args)
        if command == "verify":
            result = crypto.verify(_read(args.input), _read(args.signer_cert), anchors)
        else:
            result = crypto.decrypt_and_verify(
                _read(args.input),
                _read(args.key),
                _read(args.cert),
                _read(args.signer_cert),
                anchors,
            )
        if isinstance(result, Unverified):
            _print_error(f"signature verification failed: {result.reason}")
            return EXIT_UNVERIFIED
        _write(args.output, result.payload)
    elif command == "issue":
        certificate = crypto.sign_certificate(
            _read(args.csr),
            _read(args.key),
            _read(args.cert),
            valid_until=args.valid_until,
        )
        _write(args.output, certificate.public_bytes(serialization.Encoding.PEM))
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, runs the command, exits."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    from pkcs7cryptographer.config import ConfigValidationError
    from pkcs7cryptographer.core.errors import Pkcs7Error

    try:
        status = _run(args)
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(EXIT_ERROR)
    except (Pkcs7Error, OSError, ValueError, TypeError) as exc:
        if args.debug:
            raise
        _print_error(str(exc))
        sys.exit(EXIT_ERROR)
    sys.exit(status)
