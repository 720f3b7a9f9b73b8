from __future__ import annotations

import logging
from typing import Collection

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.models.profile import Profile
from acrecap.schemas.profiles import ProfileRole
from acrecap.services.identity import Identity

logger = logging.getLogger(__name__)


def is_allowlisted(identity: Identity, admin_emails: Collection[str]) -> bool:
    if not identity.email:
        return False
    return identity.email.strip().lower() in admin_emails


async def is_admin(
    db: AsyncSession,
    identity: Identity | None,
    admin_emails: Collection[str],
) -> bool:
    """Allowlisted e-mail first (no I/O), then the stored profile role."""
    if identity is None:
        return False
    if is_allowlisted(identity, admin_emails):
        return True
    try:
        profile = await db.get(Profile, identity.id)
    except SQLAlchemyError as exc:
        logger.warning("Profile lookup failed during admin check: %s", exc)
        await db.rollback()
        return False
    return profile is not None and profile.role == ProfileRole.ADMIN.value
