"""
Request admission: bearer token check followed by a role check.

``admit`` is a plain function over (authorization header, required roles,
token service) so it can be exercised without a running app. ``require``
wraps it as a FastAPI dependency looked up from ``POLICY``, the single table
that says which roles may run which operation. An empty role set means any
holder of a valid token.
"""
from typing import AbstractSet, FrozenSet, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from storefront.errors import Forbidden, InvalidToken, MissingToken, TokenError
from storefront.models.user import Role
from storefront.utils.token import TokenClaims, TokenService

ANY_AUTHENTICATED: FrozenSet[Role] = frozenset()
ADMIN_ONLY: FrozenSet[Role] = frozenset({Role.ADMIN})
SHOPPERS: FrozenSet[Role] = frozenset({Role.ADMIN, Role.CUSTOMER})

POLICY = {
    "auth:verify": ANY_AUTHENTICATED,
    "auth:user": ANY_AUTHENTICATED,

    "cart:read": SHOPPERS,
    "cart:write": SHOPPERS,

    "orders:read": ANY_AUTHENTICATED,
    "orders:create": ANY_AUTHENTICATED,
    "orders:update_status": ANY_AUTHENTICATED,
    "orders:confirm_payment": ADMIN_ONLY,

    "refunds:create": ANY_AUTHENTICATED,

    "addresses:read": ANY_AUTHENTICATED,
    "addresses:write": ANY_AUTHENTICATED,

    "products:write": ADMIN_ONLY,
    "categories:write": ADMIN_ONLY,
}

# auto_error=False: a missing header must surface as MissingToken, not a 403
bearer_scheme = HTTPBearer(auto_error=False)


def extract_bearer(authorization: Optional[str]) -> str:
    if not authorization:
        raise MissingToken()

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise MissingToken()

    return token.strip()


def admit(
    authorization: Optional[str],
    required_roles: AbstractSet[Role],
    tokens: TokenService,
) -> TokenClaims:
    token = extract_bearer(authorization)

    try:
        claims = tokens.verify(token)
    except TokenError as e:
        raise InvalidToken(e.detail) from e

    if required_roles and claims.role not in required_roles:
        raise Forbidden()

    return claims


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def require(operation: str):
    """Dependency admitting a request for ``operation`` per ``POLICY``."""
    required_roles = POLICY[operation]

    def dependency(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        tokens: TokenService = Depends(get_token_service),
    ) -> TokenClaims:
        authorization = (
            f"{credentials.scheme} {credentials.credentials}" if credentials else None
        )
        claims = admit(authorization, required_roles, tokens)
        request.state.claims = claims
        return claims

    return dependency
