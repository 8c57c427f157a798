from __future__ import annotations

from .errors import InvalidCredential

CREDENTIAL_PREFIX = "sk-"
GEMINI_CREDENTIAL_PREFIX = "AIza"


def validate_credential(value: str | None, prefix: str = CREDENTIAL_PREFIX) -> str:
    """Check the credential's shape only and return it stripped.

    No network or cryptographic check happens here.
    """
    candidate = value.strip() if isinstance(value, str) else ""
    if not candidate.startswith(prefix):
        raise InvalidCredential(f"Please enter a valid API key (starts with {prefix})")
    return candidate


def credential_prefix(backend: str) -> str:
    return GEMINI_CREDENTIAL_PREFIX if backend == "gemini" else CREDENTIAL_PREFIX
