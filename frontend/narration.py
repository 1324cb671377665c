import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from backend.models import FitnessPlan

WORDS_PER_SECOND = 2.5


class Section(str, Enum):
    WORKOUT = "Workout"
    DIET = "Diet"


def workout_narration(plan: FitnessPlan) -> str:
    parts = []
    for day in plan.workout_plan:
        exercises = " ".join(f"{ex.name}. {ex.sets} sets of {ex.reps}." for ex in day.exercises)
        parts.append(f"For {day.day}, focus on {day.focus}. Exercises: {exercises}.")
    return " ".join(parts)


def diet_narration(plan: FitnessPlan) -> str:
    parts = []
    for day in plan.diet_plan:
        meals = " ".join(f"{meal.type}: {meal.name}." for meal in day.meals)
        parts.append(f"For {day.day}, your meal plan is: {meals}.")
    return " ".join(parts)


@dataclass(frozen=True)
class NarrationCommand:
    action: str  # "speak" | "stop"
    text: str = ""


class Narrator:
    """Tracks which section is being read; only one plays at a time.

    The browser gives no end-of-speech signal back to the script, so the flag
    expires after an estimate of the narration's length.
    """

    def __init__(self, rate: float = 1.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.rate = rate
        self._clock = clock
        self._speaking: Optional[Section] = None
        self._ends_at = 0.0

    @property
    def speaking(self) -> Optional[Section]:
        if self._speaking is not None and self._clock() >= self._ends_at:
            self._speaking = None
        return self._speaking

    def toggle(self, section: Section, plan: FitnessPlan) -> NarrationCommand:
        if self.speaking == section:
            self.stop()
            return NarrationCommand("stop")
        text = workout_narration(plan) if section is Section.WORKOUT else diet_narration(plan)
        self._speaking = section
        self._ends_at = self._clock() + estimated_duration(text, self.rate)
        return NarrationCommand("speak", text)

    def stop(self) -> None:
        self._speaking = None


def estimated_duration(text: str, rate: float = 1.0) -> float:
    return len(text.split()) / (WORDS_PER_SECOND * rate)


def browser_script(command: NarrationCommand, rate: float = 1.0) -> str:
    """HTML/JS that drives the browser's speech engine for ``command``."""
    if command.action == "stop":
        return "<script>window.parent.speechSynthesis.cancel();</script>"
    text = json.dumps(command.text).replace("</", "<\\/")
    return (
        "<script>\n"
        "const synth = window.parent.speechSynthesis;\n"
        "synth.cancel();\n"
        f"const utterance = new SpeechSynthesisUtterance({text});\n"
        f"utterance.rate = {rate};\n"
        "synth.speak(utterance);\n"
        "</script>"
    )
