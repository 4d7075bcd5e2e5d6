# This project was developed with assistance from AI tools.
"""
Keycloak bearer-token authentication for the FBO portal.

Staff accounts (FBO officers through the CEO, plus administrators) carry a
realm role naming their place in the approval chain. Self-registered users
carry none and act as applicants.

Set AUTH_DISABLED=true to bypass validation (tests / local dev without Keycloak).
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
from ..schemas.auth import DataScope, TokenPayload, UserContext

logger = logging.getLogger(__name__)

# Most senior first; a token carrying several staff roles acts as the first match.
ROLE_PRECEDENCE: tuple[UserRole, ...] = (
    UserRole.ADMIN,
    UserRole.CEO,
    UserRole.SECRETARY_GENERAL,
    UserRole.HOD,
    UserRole.DIVISION_MANAGER,
    UserRole.FBO_OFFICER,
)

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


def _issuer() -> str:
    return f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"


class _KeySetCache:
    """Realm signing keys, refetched after ``JWKS_CACHE_TTL`` seconds."""

    def __init__(self):
        self.keys: dict | None = None
        self.fetched_at = 0.0

    def stale(self) -> bool:
        return self.keys is None or time.time() - self.fetched_at > settings.JWKS_CACHE_TTL

    def load(self) -> dict:
        response = httpx.get(f"{_issuer()}/protocol/openid-connect/certs", timeout=5)
        response.raise_for_status()
        self.keys = response.json()
        self.fetched_at = time.time()
        return self.keys


_key_cache = _KeySetCache()


def _get_jwks(force_refresh: bool = False) -> dict:
    if force_refresh or _key_cache.stale():
        return _key_cache.load()
    return _key_cache.keys


def _signing_key_for(token: str) -> jwt.PyJWK:
    """Match the token's ``kid`` to a realm key; a miss refetches once for key rotation."""
    kid = jwt.get_unverified_header(token).get("kid")
    try:
        for refresh in (False, True):
            for key in jwt.PyJWKSet.from_dict(_get_jwks(force_refresh=refresh)).keys:
                if key.key_id == kid:
                    return key
    except httpx.HTTPError as exc:
        logger.error("Keycloak JWKS unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc
    raise jwt.InvalidTokenError(f"Unknown signing key {kid}")


def _bearer_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def _decode_token(token: str) -> TokenPayload:
    """Verify signature and issuer. Keycloak public clients don't set a usable audience."""
    claims = jwt.decode(
        token,
        _signing_key_for(token).key,
        algorithms=["RS256"],
        issuer=_issuer(),
        options={"verify_aud": False},
    )
    return TokenPayload(**claims)


def _resolve_role(token_payload: TokenPayload) -> UserRole:
    """Pick the caller's workflow role from ``realm_access.roles``."""
    granted = set(token_payload.realm_access.get("roles", []))
    staff = [role for role in ROLE_PRECEDENCE if role.value in granted]
    if not staff:
        return UserRole.APPLICANT
    if len(staff) > 1:
        logger.info(
            "User %s holds roles %s; acting as %s",
            token_payload.sub, [r.value for r in staff], staff[0].value,
        )
    return staff[0]


def _user_from_claims(payload: TokenPayload) -> UserContext:
    role = _resolve_role(payload)
    full_name = payload.name or f"{payload.given_name} {payload.family_name}".strip()
    return UserContext(
        user_id=payload.sub,
        role=role,
        email=payload.email,
        name=full_name or payload.preferred_username,
        data_scope=build_data_scope(role, payload.sub),
    )


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

_DEV_ADMIN = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@fbo-portal.local",
    name="Dev User",
    data_scope=DataScope(full_pipeline=True),
)


async def get_current_user(request: Request) -> UserContext:
    """Resolve the caller from the bearer token (a dev admin when AUTH_DISABLED)."""
    if settings.AUTH_DISABLED:
        return _DEV_ADMIN

    token = _bearer_token(request)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers=_UNAUTHORIZED_HEADERS,
        )

    try:
        payload = _decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers=_UNAUTHORIZED_HEADERS,
        ) from exc
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers=_UNAUTHORIZED_HEADERS,
        ) from exc

    return _user_from_claims(payload)


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Route dependency admitting only ``allowed_roles``.

    Workflow authority (which role may move which status) is checked in the
    service layer; this only gates whole endpoints.
    """
    allowed = frozenset(allowed_roles)

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed:
            logger.warning(
                "Role %s denied for user %s (allowed: %s)",
                user.role.value, user.user_id, sorted(r.value for r in allowed),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions for role {user.role.value}",
            )
        return user

    return _check
