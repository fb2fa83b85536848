from __future__ import annotations

import ipaddress
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from face_attendance.config import settings

router = APIRouter(tags=["ui"])

WEBUI_DIR = Path(__file__).resolve().parents[1] / "webui"


def is_loopback_host(host: str | None) -> bool:
    if not host:
        return False
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def ensure_local_access(request: Request) -> None:
    if not settings.LOCAL_ONLY:
        return
    client_host = request.client.host if request.client else None
    if not is_loopback_host(client_host):
        raise HTTPException(
            status_code=403,
            detail="Local-only mode enabled: the UI is available from this machine only.",
        )


@router.get("/ui", include_in_schema=False)
async def serve_ui(request: Request):
    """Register, Mark Attendance and Dashboard tabs."""
    ensure_local_access(request)
    index_path = WEBUI_DIR / "index.html"
    if not index_path.exists():
        raise HTTPException(status_code=500, detail="UI files are missing.")
    return FileResponse(index_path)
