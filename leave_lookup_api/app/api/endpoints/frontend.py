"""
Front‑end fallback route.

Any ``GET`` request that no API route claimed is answered from the
public directory: an existing file is served as is, anything else gets
``index.html`` so the single page front end can handle its own routes.
Paths below ``api/`` never fall back to the front end and paths that
would escape the public directory are refused.  When the entry point
itself is missing the caller receives a JSON 404.
"""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from leave_lookup_api.app.api.deps import get_settings
from leave_lookup_api.app.core.config import Settings

router = APIRouter()

INDEX_FILE = "index.html"


def resolve_public_file(public_dir: str, path: str) -> Path:
    """Return the file to serve for ``path``.

    Raises ``HTTPException(404)`` when neither the requested file nor the
    front‑end entry point exists.
    """
    root = Path(public_dir).resolve()
    if path:
        candidate = (root / path).resolve()
        if candidate != root and root in candidate.parents and candidate.is_file():
            return candidate
    index = root / INDEX_FILE
    if index.is_file():
        return index
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.get("/{full_path:path}", include_in_schema=False)
async def serve_frontend(full_path: str, app_settings: Settings = Depends(get_settings)) -> FileResponse:
    if full_path == "api" or full_path.startswith("api/"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return FileResponse(resolve_public_file(app_settings.public_dir, full_path))
