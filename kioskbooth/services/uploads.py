"""Fire-and-forget delivery of session artifacts to the remote backend.

Local files are the durable copy; nothing here may block or fail the kiosk
flow. ``submit`` raises ``UploadError`` so callers that care can react, the
background variants only log.
"""

import asyncio
import logging
from typing import Dict, Optional, Set

import httpx

from kioskbooth.config import settings
from kioskbooth.errors import UploadError

logger = logging.getLogger(__name__)


class UploadService:
    def __init__(self, base_url: str, http_client: Optional[httpx.AsyncClient] = None, enabled: bool = True):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient()
        self.enabled = enabled
        self._tasks: Set[asyncio.Task] = set()

    async def submit(self, endpoint: str, field: str, filename: str, data: bytes,
                     content_type: str = "image/jpeg", metadata: Optional[Dict[str, str]] = None) -> bool:
        try:
            response = await self.http_client.post(
                f"{self.base_url}/{endpoint}",
                data=metadata or {},
                files={field: (filename, data, content_type)},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UploadError(f"{endpoint} upload of {filename} failed: {e}") from e
        return True

    async def _submit_logged(self, endpoint: str, field: str, filename: str, data: bytes,
                             content_type: str, metadata: Optional[Dict[str, str]]) -> bool:
        try:
            await self.submit(endpoint, field, filename, data, content_type, metadata)
        except UploadError as e:
            logger.error("%s", e)
            return False
        logger.info("Uploaded %s to %s", filename, endpoint)
        return True

    def submit_in_background(self, endpoint: str, field: str, filename: str, data: bytes,
                             content_type: str = "image/jpeg",
                             metadata: Optional[Dict[str, str]] = None) -> Optional[asyncio.Task]:
        if not self.enabled:
            logger.info("Uploads disabled, skipping %s", filename)
            return None
        task = asyncio.get_running_loop().create_task(
            self._submit_logged(endpoint, field, filename, data, content_type, metadata)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def upload_photo(self, session_code: str, data: bytes, sequence: int) -> Optional[asyncio.Task]:
        return self.submit_in_background(
            "upload-photo", "photo", f"photo_{sequence}.jpg", data,
            metadata={"session_code": session_code, "sequence": str(sequence)},
        )

    def upload_frame(self, session_code: str, data: bytes) -> Optional[asyncio.Task]:
        return self.submit_in_background(
            "upload-frame", "frame", "final_frame.jpg", data, metadata={"session_code": session_code},
        )

    def upload_gif(self, session_code: str, data: bytes) -> Optional[asyncio.Task]:
        return self.submit_in_background(
            "upload-gif", "gif", "animation.gif", data, content_type="image/gif",
            metadata={"session_code": session_code},
        )

    async def complete_session(self, session_code: str, timeout: float = 10.0) -> Optional[str]:
        """Tell the backend the session is done; returns the share URL if it answers in time."""
        if not self.enabled:
            return None
        try:
            response = await self.http_client.post(
                f"{self.base_url}/complete-session",
                json={"session_code": session_code},
                timeout=timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Session completion signal failed: %s", e)
            return None

        if not isinstance(data, dict) or not data.get("success"):
            logger.warning("Backend refused to complete session %s", session_code)
            return None
        return data.get("qr_code_url")

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        await self.http_client.aclose()


upload_service = UploadService(settings.backend_url, enabled=not settings.test_mode)
