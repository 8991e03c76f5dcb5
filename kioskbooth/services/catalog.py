"""Remote frame template catalog."""

import base64
import binascii
import io
import logging
from typing import Dict, List, Optional

import httpx
from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from kioskbooth.config import settings
from kioskbooth.errors import TemplateLoadError
from kioskbooth.models.template import FrameTemplate

logger = logging.getLogger(__name__)


class TemplateCatalog:
    """Fetches templates from the backend and loads their background artwork."""

    def __init__(self, base_url: str, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 8.0):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient()
        self.timeout = timeout
        self._templates: Dict[str, FrameTemplate] = {}

    @property
    def templates(self) -> List[FrameTemplate]:
        return list(self._templates.values())

    async def fetch_templates(self) -> List[FrameTemplate]:
        """Fetch the catalog. Network or payload failures yield an empty catalog."""
        try:
            response = await self.http_client.get(f"{self.base_url}/frames", timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to fetch templates: %s", e)
            return []

        if not isinstance(data, dict) or not data.get("success"):
            logger.warning("Template catalog returned no templates")
            return []

        templates = []
        for payload in data.get("templates") or []:
            try:
                templates.append(FrameTemplate.from_catalog(payload))
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                logger.warning("Skipping invalid template %r: %s", payload.get("id"), e)

        self._templates = {template.id: template for template in templates}
        return templates

    async def get(self, template_id: str) -> Optional[FrameTemplate]:
        if template_id not in self._templates:
            await self.fetch_templates()
        return self._templates.get(template_id)

    async def default_template(self) -> Optional[FrameTemplate]:
        if not self._templates:
            await self.fetch_templates()
        templates = self.templates
        return templates[0] if templates else None

    async def load_background(self, template: FrameTemplate) -> Image.Image:
        """Load and decode the template artwork, raising ``TemplateLoadError`` on any failure."""
        source = template.image_url
        try:
            if source.startswith(("http://", "https://")):
                response = await self.http_client.get(source, timeout=self.timeout)
                response.raise_for_status()
                data = response.content
            elif source.startswith("data:"):
                data = base64.b64decode(source.split(",", 1)[1])
            else:
                with open(source, "rb") as f:
                    data = f.read()

            image = Image.open(io.BytesIO(data))
            image.load()
        except (httpx.HTTPError, OSError, IndexError, binascii.Error, UnidentifiedImageError) as e:
            raise TemplateLoadError(f"Could not load template {template.id}: {e}") from e

        return image

    async def close(self) -> None:
        await self.http_client.aclose()


template_catalog = TemplateCatalog(settings.backend_url, timeout=settings.request_timeout)
