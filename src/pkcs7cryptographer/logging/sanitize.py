"""Redaction of cryptographic material before it reaches log output.

PEM bodies are replaced with ``[REDACTED]`` while the BEGIN/END markers
are kept so the kind of object is still visible in diagnostics.
"""

from __future__ import annotations

import re

# Regex matching the base64 body inside PEM blocks
_PEM_BODY_RE = re.compile(
    r"(-----BEGIN [A-Z0-9 ]+-----)"
    r"([\s\S]*?)"
    r"(-----END [A-Z0-9 ]+-----)",
)


def sanitize_pem(text: str) -> str:
    """Replace the base64 body of every PEM block in *text*."""

    def _redact(m) -> str:
        return f"{m.group(1)}\n[REDACTED]\n{m.group(3)}"

    return _PEM_BODY_RE.sub(_redact, text)
