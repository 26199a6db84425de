"""Certificate issuance from CSRs.

Exports the issuer, a one-call wrapper and the instant helper.
"""

from pkcs7cryptographer.ca.cert_utils import normalize_instant
from pkcs7cryptographer.ca.issuer import CertificateIssuer, issue_certificate

__all__ = ["CertificateIssuer", "issue_certificate", "normalize_instant"]
