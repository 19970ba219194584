from jose import jwt, ExpiredSignatureError, JWTError
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional
from pydantic import BaseModel, ValidationError as ClaimsValidationError

from storefront.errors import TokenExpired, TokenMalformed
from storefront.models.user import Role, User


class TrustTier(str, Enum):
    """Issuance path of a token; each tier has its own lifetime."""
    PASSWORD = "password"
    FEDERATED = "federated"


class TokenClaims(BaseModel):
    id: int
    email: str
    role: Role
    exp: int


class TokenService:
    """
    Issues and verifies signed bearer tokens.

    The signing secret is fixed when the service is built at startup; the
    service keeps no other state, so a token is valid exactly when its
    signature checks out and it has not expired.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttls: Optional[Dict[TrustTier, timedelta]] = None,
    ):
        if not secret_key:
            raise ValueError("Token signing secret must not be empty")

        self._secret_key = secret_key
        self._algorithm = algorithm
        self._ttls = {
            TrustTier.PASSWORD: timedelta(hours=1),
            TrustTier.FEDERATED: timedelta(days=1),
        }
        if ttls:
            self._ttls.update(ttls)

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(
            secret_key=settings.secret_key,
            algorithm=settings.algorithm,
            ttls={
                TrustTier.PASSWORD: timedelta(minutes=settings.password_token_expire_minutes),
                TrustTier.FEDERATED: timedelta(minutes=settings.federated_token_expire_minutes),
            },
        )

    def ttl_for(self, tier: TrustTier) -> timedelta:
        return self._ttls[tier]

    def issue(self, user: User, tier: TrustTier = TrustTier.PASSWORD) -> str:
        expire = datetime.utcnow() + self._ttls[tier]

        to_encode = {
            "id": user.id,
            "email": user.email,
            "role": Role(user.role).value,
            "exp": expire,
        }

        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except ExpiredSignatureError as e:
            raise TokenExpired() from e
        except JWTError as e:
            raise TokenMalformed() from e

        try:
            return TokenClaims(**payload)
        except ClaimsValidationError as e:
            raise TokenMalformed() from e
