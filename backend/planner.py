from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError
from langchain_core.messages import HumanMessage, SystemMessage

from .config import Settings
from .errors import PlanGenerationError
from .models import FitnessPlan, UserProfile, PLAN_DAYS

logger = logging.getLogger(__name__)


PLAN_SCHEMA_HINT = {
    "motivationQuote": "string",
    "aiTips": ["string"],
    "workoutPlan": [
        {
            "day": "string, e.g. 'Day 1'",
            "focus": "string",
            "exercises": [{"name": "string", "sets": "integer > 0", "reps": "string", "rest": "string"}],
            "imageDescription": "string, max 75 words",
        }
    ],
    "dietPlan": [
        {
            "day": "string",
            "meals": [{"name": "string", "type": "Breakfast | Lunch | Dinner | Snack", "description": "string"}],
            "imageDescription": "string, max 75 words",
        }
    ],
}

SYSTEM_PROMPT = f"""You are an expert AI fitness and nutrition coach. Your sole task is to generate a comprehensive {PLAN_DAYS}-day fitness plan and diet plan based on the user's profile.

CRITICAL: Your entire response MUST be a single, valid JSON object that strictly follows this shape. Do not include any text, markdown or commentary outside of the JSON object.

{json.dumps(PLAN_SCHEMA_HINT, indent=2)}

PLAN REQUIREMENTS:
1. Workout Plan: exactly {PLAN_DAYS} days of routines. For each day write a concise, visually descriptive text-to-image prompt (max 75 words) in 'imageDescription' for a hero image of that workout.
2. Diet Plan: exactly {PLAN_DAYS} days of meal breakdowns. For each day write a concise, visually descriptive text-to-image prompt (max 75 words) in 'imageDescription' for that day's main meal.
3. Tips & Quote: a specific motivational quote and three actionable tips."""

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")


def build_user_prompt(profile: UserProfile) -> str:
    return (
        "USER PROFILE:\n"
        f"- Name: {profile.name}, Age: {profile.age}, Gender: {profile.gender}\n"
        f"- Body: {profile.height:g}cm / {profile.weight:g}kg\n"
        f"- Primary Goal: {profile.goal}\n"
        f"- Current Level: {profile.level}\n"
        f"- Location: {profile.location} (Design exercises for this location)\n"
        f"- Diet Preference: {profile.diet}\n"
        f"- Medical/Notes: {profile.medical_history or 'None'}"
    )


def parse_plan(text: str) -> FitnessPlan:
    cleaned = _FENCE_END.sub("", _FENCE_START.sub("", text.strip()))
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise PlanGenerationError(f"AI response was not valid JSON: {e}") from e
    try:
        return FitnessPlan.model_validate(data)
    except ValidationError as e:
        raise PlanGenerationError(f"AI response did not match the plan schema: {e.error_count()} error(s)") from e


class Planner:
    """Turns a user profile into a FitnessPlan with a single chat-model call."""

    def __init__(self, settings: Optional[Settings] = None, llm: Any = None) -> None:
        self.settings = settings or Settings.from_env()
        self._llm = llm

    @property
    def llm(self) -> Any:
        # ChatOpenAI refuses to build without a key, so defer until first use
        if self._llm is None:
            from langchain_openai import ChatOpenAI
            self._llm = ChatOpenAI(model=self.settings.chat_model, temperature=self.settings.temperature)
        return self._llm

    def generate_plan(self, profile: UserProfile) -> FitnessPlan:
        messages = [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=build_user_prompt(profile))]
        logger.info("Generating plan for %s (%s, %s)", profile.name, profile.goal, profile.level)
        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            logger.exception("Plan generation call failed")
            raise PlanGenerationError(f"Failed to generate plan from AI: {e}") from e

        text = getattr(response, "content", response)
        if not isinstance(text, str) or not text.strip():
            raise PlanGenerationError("AI failed to generate plan content.")
        plan = parse_plan(text)
        logger.info("Plan generated: %d workout days, %d diet days", len(plan.workout_plan), len(plan.diet_plan))
        return plan
