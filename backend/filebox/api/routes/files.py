"""File routes — the catalog as seen by the presentation layer."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from filebox.api.deps import get_catalog, raise_for_outcome
from filebox.schemas.files import CatalogSnapshot, FileRecord, RenameRequest
from filebox.schemas.auth import MessageResponse
from filebox.services.catalog import FileCatalog

router = APIRouter()


@router.get("", response_model=CatalogSnapshot)
async def list_files(catalog: FileCatalog = Depends(get_catalog)):
    """Current records and busy flag, without touching the store."""
    return catalog.snapshot()


@router.post("/refresh", response_model=CatalogSnapshot)
async def refresh_files(catalog: FileCatalog = Depends(get_catalog)):
    raise_for_outcome(await catalog.refresh())
    return catalog.snapshot()


@router.post("/upload", response_model=FileRecord)
async def upload_file(
    request: Request,
    kind: str = Query(..., description="image, document or pdf"),
    name: str | None = Query(None),
    catalog: FileCatalog = Depends(get_catalog),
):
    """Upload the raw request body as a new file."""
    payload = await request.body()
    outcome = raise_for_outcome(await catalog.add(payload, kind, name))
    return outcome.record


@router.patch("/{file_id:path}", response_model=FileRecord)
async def rename_file(
    file_id: str,
    body: RenameRequest,
    catalog: FileCatalog = Depends(get_catalog),
):
    outcome = raise_for_outcome(await catalog.rename(file_id, body.name))
    return outcome.record


@router.delete("/{file_id:path}", response_model=MessageResponse)
async def delete_file(file_id: str, catalog: FileCatalog = Depends(get_catalog)):
    """Delete a file. The client asks the user to confirm before calling this."""
    outcome = raise_for_outcome(await catalog.delete(file_id))
    return MessageResponse(message=outcome.message)
