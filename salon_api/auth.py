import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import AUTH_API_KEY, AUTH_API_URL, AUTH_TIMEOUT_SECONDS
from .errors import AuthenticationError, AuthorizationError
from .permissions import (
    DEFAULT_PERMISSIONS,
    Action,
    PermissionTable,
    Resource,
    Role,
    allowed_actions,
    authorize,
)

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller for a single request."""

    user_id: str
    email: Optional[str] = None
    roles: frozenset = field(default_factory=frozenset)


def parse_roles(raw: Any) -> frozenset:
    """
    Convert role metadata from the identity service into a set of ``Role``.

    Accepts a comma-delimited string ("businessOwner,customer") or a list of
    tags. Unknown tags are dropped.
    """
    if not raw:
        return frozenset()
    if isinstance(raw, str):
        tags = raw.split(",")
    elif isinstance(raw, (list, tuple, set, frozenset)):
        tags = raw
    else:
        logger.warning(f"Unsupported role metadata type: {type(raw).__name__}")
        return frozenset()

    roles = set()
    for tag in tags:
        tag = str(tag).strip()
        if not tag:
            continue
        try:
            roles.add(Role(tag))
        except ValueError:
            logger.warning(f"Ignoring unknown role tag: {tag!r}")
    return frozenset(roles)


def principal_from_user(user: dict) -> Principal:
    """Build a principal from the identity service's user payload."""
    if not isinstance(user, dict):
        logger.error(f"Identity service returned an unexpected user payload: {type(user).__name__}")
        raise AuthenticationError()

    user_id = user.get("id")
    if not user_id:
        raise AuthenticationError()

    app_metadata = user.get("app_metadata") or {}
    if not isinstance(app_metadata, dict):
        logger.warning(f"Ignoring app_metadata of type {type(app_metadata).__name__} for user {user_id}")
        app_metadata = {}
    raw_roles = (
        app_metadata.get("roles") or app_metadata.get("role") or user.get("role")
    )
    return Principal(user_id=str(user_id), email=user.get("email"), roles=parse_roles(raw_roles))


class IdentityClient:
    """Resolves bearer tokens against the hosted auth service."""

    def __init__(
        self,
        base_url: Optional[str] = AUTH_API_URL,
        api_key: Optional[str] = AUTH_API_KEY,
        timeout: float = AUTH_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def get_principal(self, token: str) -> Principal:
        if not self.base_url:
            logger.error("AUTH_API_URL not configured")
            raise AuthenticationError()

        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Identity service request failed: {str(e)}")
            raise AuthenticationError() from e

        if response.status_code != 200:
            logger.info(f"Identity service rejected token: HTTP {response.status_code}")
            raise AuthenticationError()

        try:
            user = response.json()
        except ValueError as e:
            logger.error("Identity service returned a non-JSON body")
            raise AuthenticationError() from e

        principal = principal_from_user(user)
        logger.debug(f"User authenticated: {principal.user_id}")
        return principal


def get_identity_client() -> IdentityClient:
    return IdentityClient()


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityClient = Depends(get_identity_client),
) -> Principal:
    """Resolve the caller from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return await identity.get_principal(credentials.credentials)


def get_permission_table() -> PermissionTable:
    """Dependency hook so tests and alternative deployments can swap the table."""
    return DEFAULT_PERMISSIONS


def require_permission(resource: Resource, action: Action):
    """
    Build a route dependency that admits the caller only if one of their roles
    grants ``action`` on ``resource``.

    Missing or invalid credentials fail with 401 while resolving the principal;
    a resolved principal without the permission fails with 403. Returns the
    principal so handlers can use it.
    """

    async def guard(
        principal: Principal = Depends(get_current_principal),
        table: PermissionTable = Depends(get_permission_table),
    ) -> Principal:
        if not authorize(principal.roles, resource, action, table):
            granted = allowed_actions(principal.roles, resource, table)
            logger.warning(
                f"Denied {action.value} on {resource.value} for user {principal.user_id} "
                f"(roles: {sorted(role.value for role in principal.roles) or 'none'}; "
                f"granted: {sorted(a.value for a in granted) or 'none'})"
            )
            raise AuthorizationError()
        return principal

    return guard
