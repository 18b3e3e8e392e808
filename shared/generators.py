"""
Identifier and token generators — pure, side-effect-free functions.

Everything here draws from the ``secrets`` module: session and reset tokens
are bearer credentials, and record ids must not collide across a restore.
"""

from __future__ import annotations

import secrets


def generate_id() -> str:
    """Generate an opaque 24-character hex record id."""
    return secrets.token_hex(12)


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure URL-safe random token.

    Args:
        length: Number of random bytes before base64 encoding (default 32).
            The resulting string will be longer than *length* characters.

    Returns:
        URL-safe base64-encoded token string.
    """
    return secrets.token_urlsafe(length)
