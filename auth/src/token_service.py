"""
Bearer token issuance and verification (JWT via PyJWT).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

logger = logging.getLogger(__name__)


class TokenService:
    """Issues and verifies signed access tokens.

    Tokens carry the user id in ``sub`` plus the user's email, and expire after
    ``ttl``.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: str, email: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the decoded claims, or None if the token is invalid or expired."""
        if not token:
            return None
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected expired token")
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected invalid token: %s", e)
        return None
