from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError

from backend.errors import PlanGenerationError
from backend.models import FitnessPlan, UserProfile

from .image_cache import ImageCache
from .image_controller import DayImageList, Fetcher, ItemKind

logger = logging.getLogger(__name__)

FIELD_MESSAGES = {
    "name": "Name is required",
    "age": "Age must be at least 14",
    "height": "Height must be at least 50 cm",
    "weight": "Weight must be at least 20 kg",
    "gender": "Select a gender",
    "goal": "Select a fitness goal",
    "level": "Select your current level",
    "location": "Select where you train",
    "diet": "Select a diet preference",
}


class Phase(str, Enum):
    FORM = "form"
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


@dataclass(frozen=True)
class PlanSnapshot:
    """The plan and the profile it was generated from; everything downstream reads this."""
    profile: UserProfile
    plan: FitnessPlan


def validate_profile(raw: Mapping[str, Any]) -> Tuple[Optional[UserProfile], Dict[str, str]]:
    """Build a profile from form values, or return per-field messages."""
    try:
        return UserProfile.model_validate(dict(raw)), {}
    except ValidationError as e:
        errors: Dict[str, str] = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "form"
            if field == "medicalHistory":
                field = "medical_history"
            errors.setdefault(field, FIELD_MESSAGES.get(field, err["msg"]))
        return None, errors


class PlanOrchestrator:
    def __init__(self, generate: Callable[[UserProfile], FitnessPlan]) -> None:
        self._generate = generate
        self.phase = Phase.FORM
        self.snapshot: Optional[PlanSnapshot] = None
        self.error: Optional[str] = None
        self._day_lists: Dict[Tuple[ItemKind, int], DayImageList] = {}

    def submit(self, profile: UserProfile) -> Optional[FitnessPlan]:
        self.phase = Phase.LOADING
        self.snapshot = None
        self.error = None
        self._day_lists = {}
        try:
            plan = self._generate(profile)
        except PlanGenerationError as e:
            logger.error("Plan generation failed for %s: %s", profile.name, e)
            self.error = f"An error occurred: {e}"
            self.phase = Phase.ERROR
            return None
        self.snapshot = PlanSnapshot(profile=profile, plan=plan)
        self.phase = Phase.READY
        return plan

    def reset(self) -> None:
        self.phase = Phase.FORM
        self.snapshot = None
        self.error = None
        self._day_lists = {}

    def day_list(self, kind: ItemKind, index: int, cache: ImageCache, fetch: Fetcher, **kwargs) -> DayImageList:
        """Image controller for one day card, created on first use and kept until reset."""
        if self.snapshot is None:
            raise RuntimeError("No plan has been generated yet")
        key = (kind, index)
        if key not in self._day_lists:
            plan = self.snapshot.plan
            if kind is ItemKind.WORKOUT:
                self._day_lists[key] = DayImageList.for_workout(plan.workout_plan[index], cache, fetch, **kwargs)
            else:
                self._day_lists[key] = DayImageList.for_diet(plan.diet_plan[index], cache, fetch, **kwargs)
        return self._day_lists[key]
