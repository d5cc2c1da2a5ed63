"""API for backup and restore. Admin only."""

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.dependencies import AdminUser
from feedesk.core.database.session import get_db
from feedesk.modules.backup.schemas import BackupInfo, BackupRunResponse, RestoreResponse
from feedesk.modules.backup.service import BackupService
from feedesk.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/backup", tags=["Backup"])


@router.get("/export")
async def export_snapshot(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """
    Download a snapshot of every domain table as JSON.

    The body is the bare snapshot, so a saved export can be posted back
    to /backup/import unchanged.
    """
    return await BackupService(db).snapshot()


@router.post("/import", response_model=ApiResponse[RestoreResponse])
async def import_snapshot(
    current_user: AdminUser,
    snapshot: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Replace the tables present in the uploaded snapshot."""
    rows = await BackupService(db).restore(snapshot, restored_by_id=current_user.id)
    return ApiResponse(
        message="Data imported successfully",
        data=RestoreResponse(source="import", rows=rows),
    )


@router.get("", response_model=ApiResponse[list[BackupInfo]])
async def list_backups(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Stored backups, newest first."""
    backups = BackupService(db).list_backups()
    return ApiResponse(data=[BackupInfo(**b) for b in backups])


@router.post("/run", response_model=ApiResponse[BackupRunResponse])
async def run_backup(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Write a backup now."""
    path = await BackupService(db).write_backup(created_by_id=current_user.id)
    return ApiResponse(
        message="Backup completed",
        data=BackupRunResponse(timestamp=path.name, path=str(path)),
    )


@router.post("/restore/{timestamp}", response_model=ApiResponse[RestoreResponse])
async def restore_backup(
    timestamp: str,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Restore a stored backup."""
    rows = await BackupService(db).restore_from_backup(timestamp, restored_by_id=current_user.id)
    return ApiResponse(
        message="Backup restored",
        data=RestoreResponse(source=timestamp, rows=rows),
    )
