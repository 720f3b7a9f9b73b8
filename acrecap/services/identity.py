"""Resolve a caller's bearer credential to an identity.

Tokens are issued by the hosted auth provider (Supabase). When the project's
JWT secret is configured the token is verified locally; otherwise the provider's
``/auth/v1/user`` endpoint is asked to validate it. Any failure degrades the
caller to anonymous: nothing in here raises to the request handler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx
from jose import JWTError, jwt

from acrecap.core.settings import Settings

logger = logging.getLogger(__name__)

JWT_ALGORITHMS = ["HS256"]


@dataclass(frozen=True, slots=True)
class Identity:
    id: UUID
    email: str | None = None
    full_name: str | None = None
    phone: str | None = None
    source: str = "token"


def _parse_uuid(value: Any) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def identity_from_claims(subject: Any, claims: dict[str, Any]) -> Identity | None:
    user_id = _parse_uuid(subject)
    if user_id is None:
        return None
    metadata = claims.get("user_metadata") or {}
    return Identity(
        id=user_id,
        email=claims.get("email") or None,
        full_name=metadata.get("full_name") or None,
        phone=claims.get("phone") or None,
    )


class IdentityResolver:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    async def resolve(self, token: str | None, dev_user_id: str | None = None) -> Identity | None:
        if token:
            return await self.verify_token(token)
        if self.settings.allow_dev_header and dev_user_id:
            return self._from_dev_header(dev_user_id)
        return None

    async def verify_token(self, token: str) -> Identity | None:
        if self.settings.supabase_jwt_secret:
            return self._decode_locally(token)
        if self.settings.supabase_url and self.settings.supabase_service_role_key:
            return await self._fetch_user(token)
        logger.warning("Bearer token received but no identity provider is configured")
        return None

    def _decode_locally(self, token: str) -> Identity | None:
        try:
            claims = jwt.decode(
                token,
                self.settings.supabase_jwt_secret,
                algorithms=JWT_ALGORITHMS,
                audience=self.settings.jwt_audience,
            )
        except JWTError as exc:
            logger.info("Rejected bearer token: %s", exc)
            return None
        return identity_from_claims(claims.get("sub"), claims)

    async def _fetch_user(self, token: str) -> Identity | None:
        url = f"{self.settings.supabase_url.rstrip('/')}/auth/v1/user"
        headers = {
            "Authorization": f"Bearer {token}",
            "apikey": self.settings.supabase_service_role_key,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.webhook_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            return None

        if response.status_code != httpx.codes.OK:
            logger.info("Identity provider rejected token with status %s", response.status_code)
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Identity provider returned a non-JSON body")
            return None
        if not isinstance(payload, dict):
            return None
        return identity_from_claims(payload.get("id"), payload)

    def _from_dev_header(self, raw: str) -> Identity | None:
        user_id = _parse_uuid(raw.strip())
        if user_id is None:
            logger.warning("Ignoring x-user-id header that is not a UUID")
            return None
        return Identity(id=user_id, source="dev_header")
