from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.api import deps
from acrecap.core.errors import InvalidToken, Unauthorized
from acrecap.db.session import get_db
from acrecap.schemas.profiles import (
    ProfileListResponse,
    ProfileRead,
    ProfileResponse,
    ProfileUpdate,
    RoleUpdate,
)
from acrecap.services import profiles as profile_service
from acrecap.services.identity import Identity, IdentityResolver

router = APIRouter(prefix="/users", tags=["users"])


def _profile_response(profile) -> ProfileResponse:
    return ProfileResponse(profile=ProfileRead.model_validate(profile) if profile else None)


@router.get("/me", response_model=ProfileResponse, summary="Current user's profile")
async def read_me(
    response: Response,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(deps.require_identity),
) -> ProfileResponse:
    response.headers["Cache-Control"] = "no-store"
    profile = await profile_service.get_profile(db, identity.id)
    return _profile_response(profile)


@router.put("/me", response_model=ProfileResponse, summary="Update own name or phone")
async def update_me(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(deps.require_identity),
) -> ProfileResponse:
    profile = await profile_service.update_own_profile(db, identity, payload)
    return _profile_response(profile)


@router.post("/role", response_model=ProfileResponse, summary="Set a user's role (admin)")
async def set_role(
    payload: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    _: Identity = Depends(deps.require_admin),
) -> ProfileResponse:
    profile = await profile_service.set_role(db, payload.user_id, payload.role)
    return _profile_response(profile)


@router.post("/sync", response_model=ProfileResponse, summary="Upsert profile from the auth provider")
async def sync_profile(
    db: AsyncSession = Depends(get_db),
    token: str | None = Depends(deps.get_bearer_token),
    resolver: IdentityResolver = Depends(deps.get_identity_resolver),
) -> ProfileResponse:
    if not token:
        raise Unauthorized()
    identity = await resolver.verify_token(token)
    if identity is None:
        raise InvalidToken()
    profile = await profile_service.sync_profile(db, identity)
    return _profile_response(profile)


@router.get("", response_model=ProfileListResponse, summary="List profiles (admin)")
async def list_profiles(
    db: AsyncSession = Depends(get_db),
    _: Identity = Depends(deps.require_admin),
) -> ProfileListResponse:
    profiles = await profile_service.list_profiles(db)
    return ProfileListResponse(profiles=[ProfileRead.model_validate(p) for p in profiles])
