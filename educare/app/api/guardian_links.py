"""Educator actions on an existing guardian link."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from educare.app.db.session import get_db
from educare.app.dependencies.auth import get_current_educator
from educare.app.models.user import User
from educare.app.schemas.guardian_link import GuardianLinkRead, PermissionMatrix, RevokeRequest
from educare.app.services.guardian_links import remove_link, revoke_link, update_permissions

router = APIRouter(prefix="/guardian-links", tags=["guardian-links"])


@router.patch("/{link_id}/permissions", response_model=GuardianLinkRead)
async def patch_permissions(
    link_id: int,
    payload: PermissionMatrix,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_educator),
):
    link = update_permissions(db, current_user, link_id, payload.changes())
    return GuardianLinkRead.from_link(link)


@router.post("/{link_id}/revoke", response_model=GuardianLinkRead)
async def revoke(
    link_id: int,
    payload: RevokeRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_educator),
):
    link = revoke_link(db, current_user, link_id, payload.reason if payload else None)
    return GuardianLinkRead.from_link(link)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_educator),
):
    remove_link(db, current_user, link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
