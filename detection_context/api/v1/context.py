"""
Context entries API

List, write and delete the context entries stored for a detection.
"""

from fastapi import APIRouter, Response, status

from detection_context.core.deps import ContextStoreDep
from detection_context.schemas.context import ContextEntry, ContextEntryWrite, compute_object_key
from detection_context.services.renderer import sanitize

router = APIRouter()


@router.get("/detections/{detection_id}/context")
async def list_context_entries(detection_id: str, store: ContextStoreDep):
    entries = await store.list_entries(detection_id)
    return [entry.to_record() for entry in entries]


@router.put("/detections/{detection_id}/context/{entry_type}")
async def write_context_entry(
    detection_id: str,
    entry_type: str,
    payload: ContextEntryWrite,
    store: ContextStoreDep,
):
    """Create or overwrite the entry of this type for the detection"""
    object_key = compute_object_key(detection_id, entry_type)
    entry = ContextEntry(
        composite_id=detection_id,
        type=entry_type,
        title=sanitize(payload.title),
        content=sanitize(payload.content),
    )
    await store.write_entry(object_key, entry)
    return entry.to_record()


@router.delete("/context/{object_key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_context_entry(object_key: str, store: ContextStoreDep):
    await store.delete_entry(object_key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
