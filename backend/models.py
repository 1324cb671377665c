from typing import List, Literal
from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["Male", "Female", "Other"]
Goal = Literal["Weight Loss", "Muscle Gain", "Maintenance", "Toning"]
Level = Literal["Beginner", "Intermediate", "Advanced"]
Location = Literal["Home", "Gym", "Outdoor"]
Diet = Literal["Veg", "Non-Veg", "Vegan", "Keto", "Paleo"]
MealType = Literal["Breakfast", "Lunch", "Dinner", "Snack"]

GENDERS = ["Male", "Female", "Other"]
GOALS = ["Weight Loss", "Muscle Gain", "Maintenance", "Toning"]
LEVELS = ["Beginner", "Intermediate", "Advanced"]
LOCATIONS = ["Home", "Gym", "Outdoor"]
DIETS = ["Veg", "Non-Veg", "Vegan", "Keto", "Paleo"]

PLAN_DAYS = 7


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    age: int = Field(ge=14)
    gender: Gender
    height: float = Field(ge=50, description="cm")
    weight: float = Field(ge=20, description="kg")
    goal: Goal
    level: Level
    location: Location
    diet: Diet
    medical_history: str = Field(default="", alias="medicalHistory")


class Exercise(BaseModel):
    name: str
    sets: int = Field(gt=0)
    reps: str = Field(description="e.g. 8-12 reps")
    rest: str = Field(description="e.g. 60s")


class DailyWorkout(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: str
    focus: str
    exercises: List[Exercise]
    image_description: str = Field(alias="imageDescription")


class Meal(BaseModel):
    name: str
    type: MealType
    description: str


class DailyDiet(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: str
    meals: List[Meal]
    image_description: str = Field(alias="imageDescription")


class FitnessPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    motivation_quote: str = Field(alias="motivationQuote")
    ai_tips: List[str] = Field(alias="aiTips")
    workout_plan: List[DailyWorkout] = Field(alias="workoutPlan", min_length=PLAN_DAYS, max_length=PLAN_DAYS)
    diet_plan: List[DailyDiet] = Field(alias="dietPlan", min_length=PLAN_DAYS, max_length=PLAN_DAYS)


class ImageRequest(BaseModel):
    description: str = ""


class ImageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(alias="imageUrl")
