# app/core/storage.py

from typing import Optional

from loguru import logger
from supabase import create_client, Client

from app.core.config import settings


class StorageUnavailableError(RuntimeError):
    pass


class DocumentStorage:
    """
    Thin wrapper over a Supabase Storage bucket.
    Every method is a single round trip; callers sequence them.
    """

    def __init__(self, client: Optional[Client], bucket: str):
        self.client = client
        self.bucket = bucket

    def _bucket(self):
        if self.client is None:
            raise StorageUnavailableError("Storage service unavailable (Supabase credentials missing).")
        return self.client.storage.from_(self.bucket)

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        self._bucket().upload(
            path=path,
            file=content,
            file_options={"content-type": content_type},
        )
        return path

    async def remove(self, path: str) -> None:
        # Removing a key that is already gone is not an error on Supabase
        self._bucket().remove([path])

    async def create_signed_url(self, path: str, expires_in: int) -> Optional[str]:
        response = self._bucket().create_signed_url(path, expires_in)

        # Handle different Supabase Python SDK response versions
        if isinstance(response, dict):
            return response.get("signedURL") or response.get("signedUrl")
        if hasattr(response, "signed_url"):
            return response.signed_url
        return str(response)


def _make_client() -> Optional[Client]:
    if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
        logger.warning("SUPABASE_URL / SUPABASE_KEY not set. Document storage disabled.")
        return None
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    except Exception:
        logger.exception("Supabase client init failed")
        return None


_storage: Optional[DocumentStorage] = None


def get_document_storage() -> DocumentStorage:
    global _storage
    if _storage is None:
        _storage = DocumentStorage(_make_client(), settings.STORAGE_BUCKET)
    return _storage
