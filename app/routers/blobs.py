"""Serves local-backend blobs behind signed, expiring tokens."""

from fastapi import APIRouter, HTTPException
from starlette.responses import Response

from app.errors import BlobNotFoundError
from app.services.blob_store import LocalBlobStore, content_type_for, get_blob_store

router = APIRouter(prefix="/api/v1/blobs", tags=["Blobs"])


@router.get("/{token}")
def get_blob(token: str) -> Response:
    """Return blob bytes for a valid signed token."""
    store = get_blob_store()
    if not isinstance(store, LocalBlobStore):
        raise HTTPException(status_code=404, detail="Not found")

    key = store.resolve_token(token)
    if not key:
        raise HTTPException(status_code=403, detail="Invalid or expired link")
    try:
        data = store.get(key)
    except BlobNotFoundError:
        raise HTTPException(status_code=404, detail="Not found") from None
    return Response(content=data, media_type=content_type_for(key))
