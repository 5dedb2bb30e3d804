# This project was developed with assistance from AI tools.
"""
Keycloak bearer-token authentication and role checks.

Tokens are verified against the realm's JWKS (cached, refreshed on unknown
``kid``). Set AUTH_DISABLED=true to skip verification in tests and local dev;
requests then run as a dev admin.
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status

from ..core.config import settings
from ..schemas.auth import TokenPayload, UserContext

logger = logging.getLogger(__name__)

_ROLE_VALUES = {role.value for role in UserRole}

_DEV_USER = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@doc-compliance.local",
    name="Dev User",
)


def _realm_url() -> str:
    return f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"


class JWKSCache:
    """Realm signing keys, re-fetched after ``ttl`` seconds or on demand."""

    def __init__(self, ttl: int):
        self._ttl = ttl
        self._keys: jwt.PyJWKSet | None = None
        self._fetched_at = 0.0

    def _refresh(self) -> jwt.PyJWKSet:
        response = httpx.get(f"{_realm_url()}/protocol/openid-connect/certs", timeout=5)
        response.raise_for_status()
        self._keys = jwt.PyJWKSet.from_dict(response.json())
        self._fetched_at = time.time()
        return self._keys

    def _key_set(self, force: bool = False) -> jwt.PyJWKSet:
        stale = (time.time() - self._fetched_at) > self._ttl
        if self._keys is None or stale or force:
            return self._refresh()
        return self._keys

    def signing_key(self, kid: str | None) -> jwt.PyJWK:
        try:
            for force in (False, True):
                for key in self._key_set(force=force).keys:
                    if key.key_id == kid:
                        return key
        except httpx.HTTPError as exc:
            logger.error("Failed to fetch JWKS from Keycloak: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Authentication service unavailable",
            ) from exc
        raise jwt.InvalidTokenError(f"No signing key for kid={kid}")


_jwks = JWKSCache(settings.JWKS_CACHE_TTL)


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme == "Bearer" and token:
        return token
    return None


def _decode(token: str) -> TokenPayload:
    kid = jwt.get_unverified_header(token).get("kid")
    payload = jwt.decode(
        token,
        _jwks.signing_key(kid).key,
        algorithms=["RS256"],
        issuer=_realm_url(),
        options={"verify_aud": False},
    )
    return TokenPayload(**payload)


def resolve_role(payload: TokenPayload) -> UserRole:
    """First application role found in realm_access.roles."""
    roles = [r for r in payload.realm_access.get("roles", []) if r in _ROLE_VALUES]
    if not roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No recognized role assigned",
        )
    if len(roles) > 1:
        logger.warning("User %s has roles %s, using %s", payload.sub, roles, roles[0])
    return UserRole(roles[0])


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency returning the authenticated caller."""
    if settings.AUTH_DISABLED:
        return _DEV_USER

    token = _bearer_token(request)
    if token is None:
        raise _unauthorized("Missing authentication token")

    try:
        payload = _decode(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    return UserContext(
        user_id=payload.sub,
        role=resolve_role(payload),
        email=payload.email,
        name=payload.name or payload.preferred_username,
    )


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory restricting a route to ``allowed_roles``."""

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "RBAC denied: user=%s role=%s needs one of %s",
                user.user_id,
                user.role.value,
                [r.value for r in allowed_roles],
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check
