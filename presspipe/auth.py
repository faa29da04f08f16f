"""Bearer token handling for the upstream CMS.

Tokens are issued by the external auth collaborator (the WordPress JWT
plugin). This module only inspects them: it rejects missing, malformed and
expired tokens before any upstream call is made and builds request headers.
"""

import time
from typing import Dict, Any, Optional

import jwt

from .exceptions import AuthenticationError, TokenExpiredError


class BearerToken:
    """A caller-supplied bearer token."""

    def __init__(self, token: Optional[str]) -> None:
        """Initialize and inspect the token.

        Args:
            token: Raw token, with or without a leading "Bearer "

        Raises:
            AuthenticationError: If the token is missing or malformed
            TokenExpiredError: If the token's exp claim has passed
        """
        parts = (token or "").split(None, 1)
        if parts and parts[0].lower() == "bearer":
            parts = parts[1:]
        token = parts[0].strip() if parts else ""
        if not token:
            raise AuthenticationError("Authentication required")

        self.token = token
        self.claims: Dict[str, Any] = self._decode_claims(token)
        self._check_expiry()

    @staticmethod
    def _decode_claims(token: str) -> Dict[str, Any]:
        """Read JWT claims without verifying the signature.

        The upstream verifies the signature; opaque (non-JWT) tokens have no
        claims.
        """
        if token.count(".") != 2:
            return {}

        try:
            claims = jwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": False},
            )
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Malformed bearer token: {e}")

        return claims if isinstance(claims, dict) else {}

    def _check_expiry(self) -> None:
        exp = self.claims.get("exp")
        if exp is None:
            return
        try:
            expires_at = float(exp)
        except (TypeError, ValueError):
            raise AuthenticationError("Malformed bearer token: invalid exp claim")
        if expires_at <= time.time():
            raise TokenExpiredError("Bearer token has expired", details={"exp": expires_at})

    @property
    def user_id(self) -> Optional[int]:
        """WordPress user id carried by the JWT plugin's ``data.user.id`` claim."""
        data = self.claims.get("data")
        if not isinstance(data, dict):
            return None
        user = data.get("user")
        if not isinstance(user, dict):
            return None
        try:
            return int(user.get("id"))
        except (TypeError, ValueError):
            return None

    @property
    def masked(self) -> str:
        """Token prefix safe to log."""
        return f"{self.token[:8]}..." if len(self.token) > 8 else "***"

    def headers(self) -> Dict[str, str]:
        """Headers for authenticated requests."""
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def __repr__(self) -> str:
        return f"BearerToken({self.masked})"
