import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import Settings
from .models import User

bearer_scheme = HTTPBearer(auto_error=False)


class PasswordHasher:
    """bcrypt hashing for stored credentials."""

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        return self.context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return self.context.verify(password, password_hash)


class TokenData(BaseModel):
    sub: uuid.UUID
    name: str
    email: str
    iat: int
    exp: int


class TokenIssuer:
    """
    Issues and verifies HS256 bearer tokens.

    A token binds the user's id (``sub``), username (``name``) and email, and
    is only accepted back if the signature, issuer, audience and expiry all
    check out.
    """

    algorithm = "HS256"

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        expires_in: timedelta = timedelta(hours=2),
    ):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            expires_in=timedelta(minutes=settings.jwt_expires_minutes),
        )

    def issue(self, user: User, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(user.id),
            "name": user.username,
            "email": user.email,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + self.expires_in).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenData:
        """
        Decode a token and return its claims.

        Raises jwt.ExpiredSignatureError for expired tokens and
        jwt.InvalidTokenError for anything else that fails verification.
        """
        payload = jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            audience=self.audience,
            issuer=self.issuer,
            options={"require": ["sub", "exp", "iss", "aud"]},
        )
        try:
            return TokenData(**payload)
        except ValueError as exc:
            raise jwt.InvalidTokenError("Malformed claims") from exc


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token: Optional[str] = Query(default=None),
) -> uuid.UUID:
    """Resolve the caller's user id from the bearer header or ``?token=``."""
    # the query parameter wins when both are sent
    raw = token or (credentials.credentials if credentials else None)
    if not raw:
        raise _unauthorized("Not authenticated")

    issuer: TokenIssuer = request.app.state.token_issuer
    try:
        return issuer.verify(raw).sub
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")
