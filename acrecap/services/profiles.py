from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.core.errors import Conflict, InvalidToken, NotFound
from acrecap.models.profile import Profile
from acrecap.schemas.profiles import ProfileRole, ProfileUpdate
from acrecap.services.identity import Identity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def get_profile(db: AsyncSession, user_id: UUID) -> Profile | None:
    return await db.get(Profile, user_id)


async def list_profiles(db: AsyncSession) -> list[Profile]:
    result = await db.execute(select(Profile).order_by(Profile.email.asc()))
    return list(result.scalars().all())


async def update_own_profile(
    db: AsyncSession, identity: Identity, payload: ProfileUpdate
) -> Profile | None:
    profile = await db.get(Profile, identity.id)
    if profile is None:
        return None
    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(profile, field, value)
    profile.updated_at = _utcnow()
    await db.commit()
    return profile


async def set_role(db: AsyncSession, user_id: UUID, role: ProfileRole) -> Profile:
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise NotFound(f"Profile {user_id} not found")
    profile.role = role.value
    profile.updated_at = _utcnow()
    await db.commit()
    return profile


async def sync_profile(db: AsyncSession, identity: Identity) -> Profile:
    """Upsert the caller's profile from identity-provider data, keyed by id.

    Role is never touched here; new profiles start as ``user``.
    """
    if not identity.email:
        raise InvalidToken("Identity provider returned no email address")

    now = _utcnow()
    profile = await db.get(Profile, identity.id)
    if profile is None:
        profile = Profile(
            id=identity.id,
            email=identity.email,
            full_name=identity.full_name,
            phone=identity.phone,
            role=ProfileRole.USER.value,
            created_at=now,
            updated_at=now,
        )
        db.add(profile)
    else:
        profile.email = identity.email
        if identity.full_name:
            profile.full_name = identity.full_name
        if identity.phone:
            profile.phone = identity.phone
        profile.updated_at = now
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise Conflict(f"Email {identity.email} belongs to another profile") from exc
    return profile
