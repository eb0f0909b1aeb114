"""Admin auth: X-Admin-Secret header."""
from fastapi import Header, HTTPException

from app.core.config import settings
from app.core.security import secrets_match


def require_admin(
    x_admin_secret: str | None = Header(None, alias="X-Admin-Secret"),
) -> None:
    """Header ile secret kontrolü (constant-time compare)."""
    expected = (settings.admin_secret or "").strip()
    if not expected:
        raise HTTPException(status_code=503, detail="Admin API is not configured (ADMIN_SECRET missing).")
    if not secrets_match(x_admin_secret, expected):
        raise HTTPException(status_code=403, detail="Forbidden.")
