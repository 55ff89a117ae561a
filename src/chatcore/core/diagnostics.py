from __future__ import annotations

import re
from typing import List, Tuple

from chatcore.errors import TransportError

# Textual signatures, checked in order; the first match decides the hints.
_SIGNATURES: List[Tuple[str, re.Pattern[str]]] = [
    ("connection_refused", re.compile(r"connection refused|ERR_CONNECTION_REFUSED|ECONNREFUSED", re.I)),
    ("cors", re.compile(r"\bCORS\b|cross-origin|status: 403\b|\b403\b", re.I)),
    ("network", re.compile(r"network|failed to fetch|timed out|unreachable|name or service not known", re.I)),
    ("http_status", re.compile(r"HTTP error|status: \d{3}|HTTP \d{3}", re.I)),
]

_HINTS = {
    "connection_refused": [
        "Check that the Ollama server is running (`ollama serve`).",
        "Check that a firewall is not blocking the configured host and port.",
    ],
    "cors": [
        "The server refused this origin. Allow it with OLLAMA_ORIGINS or serve the UI through a proxy.",
    ],
    "network": [
        "Check the network connection and that OLLAMA_HOST points at the right address.",
    ],
    "http_status": [
        "The server answered with an error; check that the selected model is installed (`ollama list`).",
    ],
}


def classify(exc: BaseException) -> str:
    """Pick a failure family from the error's text, falling back to its declared kind."""
    # An answered request is an HTTP failure whatever its body says
    if isinstance(exc, TransportError) and exc.status is not None:
        return "cors" if exc.status == 403 else "http_status"
    text = str(exc)
    for kind, pattern in _SIGNATURES:
        if pattern.search(text):
            return kind
    if isinstance(exc, TransportError) and exc.kind in _HINTS:
        return exc.kind
    return "other"


def hints_for(exc: BaseException) -> List[str]:
    return list(_HINTS.get(classify(exc), []))


def describe_failure(exc: BaseException) -> str:
    """System-message text shown in the transcript after a failed turn."""
    lines = [f"Error: {exc}"]
    hints = hints_for(exc)
    if hints:
        lines.append("")
        lines.extend(f"- {h}" for h in hints)
    return "\n".join(lines)
