from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.api import deps
from acrecap.db.session import get_db
from acrecap.schemas.backups import BackupListResponse, BackupRead, BackupResponse
from acrecap.services import backups as backup_service
from acrecap.services.identity import Identity

router = APIRouter(prefix="/backups", tags=["backups"])


@router.post("", response_model=BackupResponse, summary="Snapshot all submissions (admin)")
async def create_backup(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(deps.require_admin),
) -> BackupResponse:
    backup = await backup_service.create_backup(db, identity)
    return BackupResponse(backup=BackupRead.model_validate(backup))


@router.get("", response_model=BackupListResponse, summary="List backups (admin)")
async def list_backups(
    db: AsyncSession = Depends(get_db),
    _: Identity = Depends(deps.require_admin),
) -> BackupListResponse:
    backups = await backup_service.list_backups(db)
    return BackupListResponse(backups=[BackupRead.model_validate(b) for b in backups])
