import pytest

from backend.errors import ImageServiceError, PlanGenerationError
from backend.models import FitnessPlan
from frontend.image_controller import ItemKind, ItemStatus
from frontend.orchestrator import Phase, PlanOrchestrator, validate_profile

from conftest import FakeFetcher, make_plan_data, make_profile_data


class CountingGenerator:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def __call__(self, profile):
        self.calls.append(profile)
        if self.error is not None:
            raise self.error
        return FitnessPlan.model_validate(make_plan_data())


def test_validate_profile_ok():
    profile, errors = validate_profile(make_profile_data())
    assert errors == {}
    assert profile.name == "Alex"
    assert profile.medical_history == ""


def test_validate_profile_reports_each_field():
    raw = make_profile_data(name="", age=10, height=40, weight=15, goal=None, diet=None)
    profile, errors = validate_profile(raw)
    assert profile is None
    assert set(errors) == {"name", "age", "height", "weight", "goal", "diet"}
    assert errors["age"] == "Age must be at least 14"


def test_profile_is_immutable():
    profile, _ = validate_profile(make_profile_data())
    with pytest.raises(Exception):
        profile.age = 40


def test_submit_success_holds_snapshot(profile):
    gen = CountingGenerator()
    orch = PlanOrchestrator(gen)
    assert orch.phase is Phase.FORM

    plan = orch.submit(profile)
    assert len(gen.calls) == 1
    assert orch.phase is Phase.READY
    assert orch.snapshot.plan is plan
    assert orch.snapshot.profile is profile
    assert orch.error is None


def test_submit_failure_shows_single_error_and_no_plan(profile):
    gen = CountingGenerator(PlanGenerationError("Failed to generate plan from AI."))
    orch = PlanOrchestrator(gen)
    assert orch.submit(profile) is None
    assert len(gen.calls) == 1
    assert orch.phase is Phase.ERROR
    assert orch.snapshot is None
    assert orch.error == "An error occurred: Failed to generate plan from AI."

    orch.reset()
    assert orch.phase is Phase.FORM
    assert orch.error is None


def test_day_list_requires_plan(cache, fetcher):
    orch = PlanOrchestrator(CountingGenerator())
    with pytest.raises(RuntimeError):
        orch.day_list(ItemKind.WORKOUT, 0, cache, fetcher)


def test_day_lists_are_memoised_until_reset(profile, cache, fetcher, clock):
    orch = PlanOrchestrator(CountingGenerator())
    orch.submit(profile)
    first = orch.day_list(ItemKind.DIET, 2, cache, fetcher, clock=clock)
    assert orch.day_list(ItemKind.DIET, 2, cache, fetcher, clock=clock) is first
    assert orch.day_list(ItemKind.WORKOUT, 2, cache, fetcher, clock=clock) is not first

    orch.reset()
    orch.submit(profile)
    assert orch.day_list(ItemKind.DIET, 2, cache, fetcher, clock=clock) is not first


def test_image_failure_does_not_touch_snapshot(profile, cache, clock):
    orch = PlanOrchestrator(CountingGenerator())
    orch.submit(profile)
    snapshot = orch.snapshot
    fetcher = FakeFetcher(error=ImageServiceError("Failed to generate image."))

    workouts = orch.day_list(ItemKind.WORKOUT, 0, cache, fetcher, clock=clock)
    workouts.toggle(0)
    assert workouts.items[0].status is ItemStatus.FAILED
    assert orch.snapshot is snapshot
    assert orch.phase is Phase.READY
    other = orch.day_list(ItemKind.WORKOUT, 1, cache, fetcher, clock=clock)
    assert all(i.status is ItemStatus.IDLE for i in other.items)


def test_end_to_end_first_exercise_expansion(cache, clock):
    gen = CountingGenerator()
    orch = PlanOrchestrator(gen)
    profile, errors = validate_profile({
        "name": "Alex", "age": 30, "gender": "Male", "height": 170, "weight": 65,
        "goal": "Weight Loss", "level": "Beginner", "location": "Home", "diet": "Veg",
        "medicalHistory": "",
    })
    assert errors == {}
    orch.submit(profile)

    plan = orch.snapshot.plan
    assert len(plan.workout_plan) == 7
    assert len(plan.diet_plan) == 7

    fetcher = FakeFetcher()
    day1 = orch.day_list(ItemKind.WORKOUT, 0, cache, fetcher, clock=clock)
    day1.toggle(0)

    first = plan.workout_plan[0]
    assert fetcher.prompts == [
        f"{first.exercises[0].name}, {first.focus} exercise form, photorealistic, gym background"
    ]
    assert day1.items[0].status is ItemStatus.READY
    assert len(gen.calls) == 1
