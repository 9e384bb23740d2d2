# This project was developed with assistance from AI tools.
"""
Keycloak bearer-token authentication for the board review API.

Tokens are issued by the ``board-review`` realm. The realm role names used
by the management company (``managing-agent``, ``board-member`` ...) are
mapped onto UserRole here, and brokers additionally carry their brokerage
agent id in a custom claim that drives their data scope.

AUTH_DISABLED=true returns a local user with AUTH_DEV_ROLE instead.
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status

from ..core.auth import build_data_scope
from ..core.config import settings
from ..schemas.auth import TokenPayload, UserContext

logger = logging.getLogger(__name__)

# Realm role name -> UserRole. Enum values are accepted as-is too.
REALM_ROLES: dict[str, UserRole] = {
    "applicant": UserRole.APPLICANT,
    "co-applicant": UserRole.CO_APPLICANT,
    "guarantor": UserRole.GUARANTOR,
    "broker": UserRole.BROKER,
    "managing-agent": UserRole.TRANSACTION_AGENT,
    "transaction-agent": UserRole.TRANSACTION_AGENT,
    "board-member": UserRole.BOARD,
    "board-admin": UserRole.ADMIN,
    **{role.value: role for role in UserRole},
}

# When a user holds several mapped roles the earliest one here wins.
ROLE_PRECEDENCE: tuple[UserRole, ...] = (
    UserRole.ADMIN,
    UserRole.TRANSACTION_AGENT,
    UserRole.BOARD,
    UserRole.BROKER,
    UserRole.APPLICANT,
    UserRole.CO_APPLICANT,
    UserRole.GUARANTOR,
)

_BEARER = "Bearer "

_jwks: dict | None = None
_jwks_loaded_at: float = 0


def _realm_url() -> str:
    return f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"


def _load_jwks(refresh: bool = False) -> dict:
    """Return the realm's signing keys, re-fetching after JWKS_CACHE_TTL."""
    global _jwks, _jwks_loaded_at  # noqa: PLW0603

    now = time.time()
    if refresh or _jwks is None or now - _jwks_loaded_at > settings.JWKS_CACHE_TTL:
        response = httpx.get(f"{_realm_url()}/protocol/openid-connect/certs", timeout=5)
        response.raise_for_status()
        _jwks = response.json()
        _jwks_loaded_at = now
    return _jwks


def _find_key(jwks: dict, kid: str | None) -> jwt.PyJWK | None:
    return next((k for k in jwt.PyJWKSet.from_dict(jwks).keys if k.key_id == kid), None)


def _signing_key(token: str) -> jwt.PyJWK:
    kid = jwt.get_unverified_header(token).get("kid")
    try:
        key = _find_key(_load_jwks(), kid)
        if key is None:
            # Realm keys rotated since the last fetch.
            key = _find_key(_load_jwks(refresh=True), kid)
    except httpx.HTTPError as exc:
        logger.error("Keycloak JWKS fetch failed for realm %s: %s", settings.KEYCLOAK_REALM, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc
    if key is None:
        raise jwt.InvalidTokenError(f"Unknown signing key {kid}")
    return key


def _decode(token: str) -> TokenPayload:
    claims = jwt.decode(
        token,
        _signing_key(token).key,
        algorithms=["RS256"],
        issuer=_realm_url(),
        options={"verify_aud": False},
    )
    return TokenPayload(**claims)


def _resolve_role(payload: TokenPayload) -> UserRole | None:
    """Map the token's realm roles onto a single UserRole, or None."""
    granted = {
        REALM_ROLES[name]
        for name in payload.realm_access.get("roles", [])
        if name in REALM_ROLES
    }
    if not granted:
        return None
    role = next(r for r in ROLE_PRECEDENCE if r in granted)
    if len(granted) > 1:
        logger.warning(
            "User %s holds roles %s; acting as %s",
            payload.sub,
            sorted(r.value for r in granted),
            role.value,
        )
    return role


def _brokerage_id(payload: TokenPayload) -> str | None:
    value = (payload.model_extra or {}).get(settings.BROKERAGE_CLAIM)
    return str(value) if value else None


def user_from_token(payload: TokenPayload) -> UserContext:
    """Build the acting user from validated claims.

    Raises 403 when none of the token's realm roles belong to this service.
    """
    role = _resolve_role(payload)
    if role is None:
        logger.warning("User %s has no board review role", payload.sub)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No board review role assigned",
        )
    brokerage_id = _brokerage_id(payload) if role == UserRole.BROKER else None
    return UserContext(
        user_id=payload.sub,
        role=role,
        email=payload.email,
        name=payload.name or payload.preferred_username or payload.email,
        data_scope=build_data_scope(role, payload.sub, brokerage_id),
    )


def _dev_user() -> UserContext:
    role = settings.AUTH_DEV_ROLE
    user_id = f"dev-{role.value.lower()}"
    return UserContext(
        user_id=user_id,
        role=role,
        email=f"{user_id}@board-review.local",
        name=f"Local {role.value.replace('_', ' ').title()}",
        data_scope=build_data_scope(role, user_id),
    )


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(request: Request) -> UserContext:
    if settings.AUTH_DISABLED:
        return _dev_user()

    header = request.headers.get("Authorization", "")
    if not header.startswith(_BEARER):
        raise _unauthenticated("Missing authentication token")

    try:
        payload = _decode(header[len(_BEARER):])
    except jwt.ExpiredSignatureError as exc:
        raise _unauthenticated("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthenticated("Invalid token") from exc

    return user_from_token(payload)


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Restrict a route to ``allowed_roles``; everyone else gets 403."""

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "Role check failed: user=%s role=%s allowed=%s",
                user.user_id,
                user.role.value,
                [r.value for r in allowed_roles],
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"The {user.role.value} role may not perform this action",
            )
        return user

    return _check
