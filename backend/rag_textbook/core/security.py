"""
Security utilities: JWT validation.

Tokens are issued by the auth service; this API only reads the ``sub``
claim, so it needs the shared secret and algorithm but never signs tokens.
"""

from jose import jwt, JWTError

from rag_textbook.config import get_settings


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token. Returns payload or None if invalid."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None
