"""Files endpoints: tracked file set, store snapshot, per-file status and decorations."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.core.state import get_projection, get_store
from app.schemas.decoration import FileDecoration
from app.schemas.review import FileStatusResponse, TrackedFilesRequest, TrackedFilesResponse
from app.schemas.status import FileStatusRecord
from app.services.decoration import DecorationProjection, file_tooltip
from app.services.store import ReviewStore, normalize_path

router = APIRouter()


@router.get("", response_model=list[FileStatusRecord])
def list_files(store: Annotated[ReviewStore, Depends(get_store)]) -> list[FileStatusRecord]:
    """Snapshot of every file with review results, with per-category status and issues."""
    return store.values()


@router.get("/tracked", response_model=TrackedFilesResponse)
def get_tracked_files(store: Annotated[ReviewStore, Depends(get_store)]) -> TrackedFilesResponse:
    return TrackedFilesResponse(files=store.tracked_files)


@router.put("/tracked", response_model=TrackedFilesResponse)
def put_tracked_files(
    body: TrackedFilesRequest,
    store: Annotated[ReviewStore, Depends(get_store)],
) -> TrackedFilesResponse:
    """
    Replace the tracked file set (changed and untracked files from the diff scanner).

    Only tracked files are decorated, and legacy review results are applied to tracked files only.
    """
    store.set_tracked_files(body.files)
    return TrackedFilesResponse(files=store.tracked_files)


@router.get("/status", response_model=FileStatusResponse)
def get_file_status(
    path: Annotated[str, Query(min_length=1, description="Relative file path")],
    store: Annotated[ReviewStore, Depends(get_store)],
    projection: Annotated[DecorationProjection, Depends(get_projection)],
) -> FileStatusResponse:
    """Worst status across categories, badge and tooltip for one file."""
    path = normalize_path(path)
    record = store.get(path)
    return FileStatusResponse(
        file_path=path,
        tracked=store.is_tracked(path),
        worst_status=store.worst_status(path),
        badge=projection.project(path),
        decoration=projection.decorate(path),
        tooltip=file_tooltip(record) if record is not None else "",
    )


@router.get("/decorations", response_model=list[FileDecoration])
def get_decorations(
    projection: Annotated[DecorationProjection, Depends(get_projection)],
) -> list[FileDecoration]:
    """Badge, glyph and tooltip for every tracked file."""
    return projection.decorations()
