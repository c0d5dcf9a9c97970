import hashlib
import logging
from dataclasses import dataclass

from app.schemas import ImageUpload

logger = logging.getLogger("estimator")

PREVIEW_URL_PREFIX = "/api/previews"


@dataclass(frozen=True)
class PreviewHandle:
    token: str

    @property
    def url(self) -> str:
        return f"{PREVIEW_URL_PREFIX}/{self.token}"


@dataclass
class _Preview:
    data: bytes
    content_type: str
    refs: int = 0


class PreviewStore:
    """In-memory image previews, the server-side stand-in for object URLs.

    Tokens are derived from the image content, so the same file selected in
    two sessions shares one entry; entries are reference counted and dropped
    when the last holder releases them.
    """

    def __init__(self):
        self._previews: dict[str, _Preview] = {}

    def __len__(self) -> int:
        return len(self._previews)

    def __contains__(self, token: str) -> bool:
        return token in self._previews

    @staticmethod
    def token_for(upload: ImageUpload) -> str:
        digest = hashlib.sha256()
        digest.update((upload.content_type or "").encode())
        digest.update(b"\0")
        digest.update(upload.data)
        return digest.hexdigest()[:32]

    def acquire(self, upload: ImageUpload) -> PreviewHandle:
        token = self.token_for(upload)
        preview = self._previews.get(token)
        if preview is None:
            preview = _Preview(data=upload.data, content_type=upload.content_type or "application/octet-stream")
            self._previews[token] = preview
        preview.refs += 1
        return PreviewHandle(token=token)

    def release(self, handle: PreviewHandle | None) -> None:
        if handle is None:
            return
        preview = self._previews.get(handle.token)
        if preview is None:
            logger.warning("Released unknown preview", extra={"extra_data": {"token": handle.token}})
            return
        preview.refs -= 1
        if preview.refs <= 0:
            del self._previews[handle.token]

    def get(self, token: str) -> tuple[bytes, str] | None:
        preview = self._previews.get(token)
        if preview is None:
            return None
        return preview.data, preview.content_type

    def clear(self) -> None:
        self._previews.clear()
