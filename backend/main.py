import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .errors import ImageFetchError, PlanGenerationError
from .images import ImageRenderer
from .models import FitnessPlan, ImageRequest, ImageResponse, UserProfile
from .planner import Planner

settings = Settings.from_env()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="AI Fitness Coach API", version="0.1.0")

# CORS (allow Streamlit on localhost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

planner = Planner(settings)
renderer = ImageRenderer(settings)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/generate-plan", response_model=FitnessPlan, response_model_by_alias=True)
def generate_plan(profile: UserProfile):
    try:
        return planner.generate_plan(profile)
    except PlanGenerationError as e:
        logger.error("Plan generation failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/image", response_model=ImageResponse, response_model_by_alias=True)
def generate_image(body: ImageRequest):
    if not body.description.strip():
        raise HTTPException(status_code=400, detail="Image description is required.")
    try:
        image_url = renderer.render(body.description)
    except ImageFetchError as e:
        logger.error("Image generation failed: %s", e)
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ImageResponse(image_url=image_url)
