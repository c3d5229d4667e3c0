import os
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from auth.dependencies import get_current_user, get_current_user_optional
from auth.jwt import UserContext
from cache import cache_service
from components.drive_files_view import DriveFilesView
from database import get_db
from schemas.drive_files import DriveFileRow
from services.drive_file_service import DriveFileService, drive_files_cache_key

router = APIRouter()

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "components", "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def list_drive_files(db: Session, record_id: str) -> List[DriveFileRow]:
    """Drive files of a record, newest first; served from Redis when cached."""
    cache_key = drive_files_cache_key(record_id)
    cached = cache_service.get_from_cache(cache_key)
    if cached is not None:
        return [DriveFileRow.model_validate(row) for row in cached]

    rows = [DriveFileRow.model_validate(r) for r in DriveFileService(db).list_for_record(record_id)]
    cache_service.set_in_cache(cache_key, [row.model_dump(mode="json") for row in rows])
    return rows


@router.get("/api/records/{record_id}/drive-files", response_model=List[DriveFileRow])
def get_record_drive_files(
    record_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    return list_drive_files(db, record_id)


async def get_page_viewer(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None, alias="x-user-id"),
    x_user_role: Optional[str] = Header(None, alias="x-user-role"),
) -> Tuple[Optional[UserContext], Optional[HTTPException]]:
    """Like get_current_user_optional, but hands back the auth failure instead of raising it."""
    try:
        user = await get_current_user_optional(
            authorization=authorization, x_user_id=x_user_id, x_user_role=x_user_role
        )
    except HTTPException as e:
        return None, e
    return user, None


@router.get("/records/{record_id}/drive-files", response_class=HTMLResponse)
def render_record_drive_files(
    request: Request,
    record_id: str,
    db: Session = Depends(get_db),
    viewer: Tuple[Optional[UserContext], Optional[HTTPException]] = Depends(get_page_viewer),
):
    """
    Record page component. Query failures, bad credentials and permission
    denial included, are rendered inside the component instead of failing
    the page.
    """
    current_user, auth_error = viewer

    def _query(rid: str) -> List[Dict[str, Any]]:
        if auth_error is not None:
            raise auth_error
        if current_user is None:
            raise HTTPException(status_code=403, detail="You do not have access to the files of this record.")
        return [row.model_dump() for row in list_drive_files(db, rid)]

    view = DriveFilesView(_query, record_id=record_id)
    return templates.TemplateResponse(request, "drive_files_table.html", view.context())
