import pytest
import requests

from backend.models import FitnessPlan, UserProfile
from frontend.image_cache import ImageCache


def make_profile_data(**overrides):
    base = {
        "name": "Alex",
        "age": 30,
        "gender": "Male",
        "height": 170,
        "weight": 65,
        "goal": "Weight Loss",
        "level": "Beginner",
        "location": "Home",
        "diet": "Veg",
        "medicalHistory": "",
    }
    base.update(overrides)
    return base


def make_plan_data(days=7):
    workouts = []
    diets = []
    for i in range(1, days + 1):
        workouts.append({
            "day": f"Day {i}",
            "focus": "Full Body" if i % 2 else "Cardio",
            "exercises": [
                {"name": "Push Ups", "sets": 3, "reps": "10-12 reps", "rest": "60s"},
                {"name": "Bodyweight Squats", "sets": 3, "reps": "15 reps", "rest": "45s"},
                {"name": "Plank", "sets": 2, "reps": "30-45s hold", "rest": "30s"},
            ],
            "imageDescription": f"A person training at home on day {i}, bright morning light",
        })
        diets.append({
            "day": f"Day {i}",
            "meals": [
                {"name": "Oats with Berries", "type": "Breakfast", "description": "Rolled oats, blueberries, almond milk"},
                {"name": "Chickpea Salad", "type": "Lunch", "description": "Chickpeas, cucumber, tomato, lemon"},
                {"name": "Paneer Stir Fry", "type": "Dinner", "description": "Paneer, peppers, brown rice"},
                {"name": "Greek Yogurt", "type": "Snack", "description": "Plain yogurt with honey"},
            ],
            "imageDescription": f"Colourful vegetarian meals laid out on a wooden table, day {i}",
        })
    return {
        "motivationQuote": "Small steps every day add up.",
        "aiTips": ["Drink water before meals", "Sleep 7-8 hours", "Walk after dinner"],
        "workoutPlan": workouts,
        "dietPlan": diets,
    }


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code=200, chunks=(b"",), headers=None, on_chunk=None, raise_on_read=None):
        self.status_code = status_code
        self.headers = headers or {}
        self._chunks = list(chunks)
        self._on_chunk = on_chunk
        self._raise_on_read = raise_on_read
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            if self._on_chunk:
                self._on_chunk()
            yield chunk
        if self._raise_on_read is not None:
            raise self._raise_on_read

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


class FakeFetcher:
    """Stands in for ServiceClient.fetch_image."""

    def __init__(self, handle="data:image/jpeg;base64,AAAA", error=None):
        self.handle = handle
        self.error = error
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.handle


@pytest.fixture
def profile():
    return UserProfile.model_validate(make_profile_data())


@pytest.fixture
def plan():
    return FitnessPlan.model_validate(make_plan_data())


@pytest.fixture
def cache(tmp_path):
    c = ImageCache(str(tmp_path / "cache" / "images.sqlite3"))
    yield c
    c.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
