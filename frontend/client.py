import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from backend.config import Settings
from backend.errors import ImageServiceError, ImageTimeoutError, PlanGenerationError
from backend.models import FitnessPlan, UserProfile
from backend.transport import fetch

logger = logging.getLogger(__name__)


class ServiceClient:
    """Plan and image services, either over HTTP (BACKEND_URL set) or in-process."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        planner: Any = None,
        renderer: Any = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.backend_url = self.settings.backend_url
        self.session = session or requests.Session()
        self._planner = planner
        self._renderer = renderer

    @property
    def local_mode(self) -> bool:
        return self.backend_url == ""

    @property
    def planner(self):
        if self._planner is None:
            from backend.planner import Planner
            self._planner = Planner(self.settings)
        return self._planner

    @property
    def renderer(self):
        if self._renderer is None:
            from backend.images import ImageRenderer
            self._renderer = ImageRenderer(self.settings, session=self.session)
        return self._renderer

    def health(self) -> Dict[str, Any]:
        if self.local_mode:
            return {"status": "ok", "mode": "local"}
        r = self.session.get(f"{self.backend_url}/health", timeout=5)
        r.raise_for_status()
        return r.json()

    def generate_plan(self, profile: UserProfile) -> FitnessPlan:
        if self.local_mode:
            return self.planner.generate_plan(profile)
        payload = profile.model_dump(by_alias=True)
        logger.info("Requesting plan from %s", self.backend_url)
        try:
            resp = self.session.post(f"{self.backend_url}/generate-plan", json=payload, timeout=self.settings.plan_timeout)
        except requests.RequestException as e:
            raise PlanGenerationError(f"Plan service unreachable: {e}") from e
        if not resp.ok:
            raise PlanGenerationError(self._error_detail(resp, "Failed to fetch plan from AI service."))
        try:
            return FitnessPlan.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise PlanGenerationError(f"Plan service returned an invalid plan: {e}") from e

    def fetch_image(self, prompt: str) -> str:
        """Return an image handle for ``prompt``; raises ImageFetchError subclasses."""
        if self.local_mode:
            return self.renderer.render(prompt)
        try:
            result = fetch(
                self.session,
                "POST",
                f"{self.backend_url}/image",
                timeout=self.settings.image_timeout,
                json={"description": prompt},
            )
        except ImageServiceError as e:
            # the backend's own deadline fired first
            if e.status_code == 504:
                raise ImageTimeoutError(self.settings.image_timeout) from e
            raise
        try:
            return result.json()["imageUrl"]
        except (ValueError, KeyError) as e:
            raise ImageServiceError(f"Image service returned an invalid response: {e}") from e

    @staticmethod
    def _error_detail(resp: requests.Response, default: str) -> str:
        try:
            data = resp.json()
        except ValueError:
            return default
        if isinstance(data, dict):
            detail = data.get("error") or data.get("detail")
            if isinstance(detail, str) and detail:
                return detail
        return default
