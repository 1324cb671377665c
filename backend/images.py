import base64
import logging
import time
from typing import Callable, Optional
from urllib.parse import quote

import requests

from .config import Settings
from .transport import fetch

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"


class ImageRenderer:
    """Text-to-image via the Pollinations prompt endpoint, returned as a data URI."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.session = session or requests.Session()
        self.clock = clock

    def build_url(self, description: str) -> str:
        size = self.settings.image_size
        encoded = quote(description, safe="")
        return f"{self.settings.image_api_base}/prompt/{encoded}?width={size}&height={size}&nologo=true"

    def render(self, description: str) -> str:
        if not description or not description.strip():
            raise ValueError("Image description is required.")
        url = self.build_url(description.strip())
        logger.info("Rendering image for prompt %r", description[:80])
        result = fetch(self.session, "GET", url, timeout=self.settings.image_timeout, clock=self.clock)
        content_type = result.content_type.split(";")[0].strip()
        if not content_type.startswith("image/"):
            content_type = DEFAULT_CONTENT_TYPE
        encoded = base64.b64encode(result.content).decode("ascii")
        return f"data:{content_type};base64,{encoded}"
