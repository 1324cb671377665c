import os
import sys
import json
import logging
from pathlib import Path

import streamlit as st
import streamlit.components.v1 as components
from dotenv import load_dotenv

load_dotenv()

st.set_page_config(page_title="AI Fitness Coach", page_icon="🤖", layout="centered")

# Ensure project root is on sys.path when running on Streamlit Cloud
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

# Load secrets into environment for SDKs that read os.environ
try:
    for name in ("OPENAI_API_KEY", "OPENAI_MODEL", "BACKEND_URL", "IMAGE_CACHE_PATH"):
        if name in st.secrets:
            os.environ[name] = str(st.secrets[name]).strip()
except FileNotFoundError:
    pass

from backend.config import Settings
from backend.models import DIETS, GENDERS, GOALS, LEVELS, LOCATIONS
from frontend.client import ServiceClient
from frontend.export import pdf_filename, render_plan_pdf
from frontend.image_cache import ImageCache
from frontend.image_controller import DayImageList, ItemKind, ItemStatus
from frontend.narration import Narrator, Section, browser_script
from frontend.orchestrator import Phase, PlanOrchestrator, validate_profile

settings = Settings.from_env()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@st.cache_resource
def get_image_cache(path: str) -> ImageCache:
    return ImageCache(path)


if "client" not in st.session_state:
    st.session_state.client = ServiceClient(settings)
if "orchestrator" not in st.session_state:
    st.session_state.orchestrator = PlanOrchestrator(st.session_state.client.generate_plan)
if "narrator" not in st.session_state:
    st.session_state.narrator = Narrator()
if "form_errors" not in st.session_state:
    st.session_state.form_errors = {}

client: ServiceClient = st.session_state.client
orchestrator: PlanOrchestrator = st.session_state.orchestrator
narrator: Narrator = st.session_state.narrator
cache = get_image_cache(settings.image_cache_path)


with st.sidebar:
    st.header("Configuration")
    mode_label = "Local (in-app)" if client.local_mode else f"Remote: {client.backend_url}"
    st.write(f"Mode: {mode_label}")
    if st.button("Health Check"):
        try:
            st.success(f"API OK: {client.health()}")
        except Exception as e:
            st.error(f"API not reachable: {e}")
    st.caption(f"{len(cache)} cached image(s), shared by every session on this server")


def start_over() -> None:
    logger.info("Discarding plan and returning to the profile form")
    narrator.stop()
    orchestrator.reset()


def field_error(name: str) -> None:
    msg = st.session_state.form_errors.get(name)
    if msg:
        st.caption(f":red[{msg}]")


def render_form() -> None:
    st.title("AI Fitness Coach Setup 🤖")
    st.caption("Tell us about yourself to generate your personalized plan.")
    with st.form("profile"):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name", key="name")
            field_error("name")
        with col2:
            age = st.number_input("Age", min_value=0, value=25, step=1, key="age")
            field_error("age")
        col1, col2, col3 = st.columns(3)
        with col1:
            height = st.number_input("Height (cm)", min_value=0.0, value=175.0, key="height")
            field_error("height")
        with col2:
            weight = st.number_input("Weight (kg)", min_value=0.0, value=70.0, key="weight")
            field_error("weight")
        with col3:
            gender = st.selectbox("Gender", GENDERS, index=None, placeholder="Gender", key="gender")
            field_error("gender")
        col1, col2 = st.columns(2)
        with col1:
            goal = st.selectbox("Fitness Goal", GOALS, index=None, placeholder="Select Goal", key="goal")
            field_error("goal")
            location = st.selectbox("Workout Location", LOCATIONS, index=None, placeholder="Select Location", key="location")
            field_error("location")
        with col2:
            level = st.selectbox("Current Level", LEVELS, index=None, placeholder="Select Level", key="level")
            field_error("level")
            diet = st.selectbox("Diet Preference", DIETS, index=None, placeholder="Select Diet", key="diet")
            field_error("diet")
        medical = st.text_area("Medical history / notes (optional)", key="medical")
        submitted = st.form_submit_button("Generate My Plan", type="primary")

    if not submitted:
        return
    profile, errors = validate_profile({
        "name": name,
        "age": int(age),
        "height": float(height),
        "weight": float(weight),
        "gender": gender,
        "goal": goal,
        "level": level,
        "location": location,
        "diet": diet,
        "medicalHistory": medical,
    })
    st.session_state.form_errors = errors
    if profile is None:
        st.rerun()
    with st.spinner("Building Your Personalized Plan... The AI is crafting a week of workouts and meals."):
        orchestrator.submit(profile)
    st.rerun()


def render_image(lst: DayImageList, index: int, key: str) -> None:
    item = lst.items[index]
    if item.status is ItemStatus.READY:
        st.image(item.image, use_container_width=True)
        if st.button("🔄 Clear cache and regenerate", key=f"{key}-regen"):
            with st.spinner("Creating image..."):
                lst.regenerate(index)
            st.rerun()
    elif item.status is ItemStatus.FAILED:
        st.error(f"Could not generate image. Error: {item.error}")
        if st.button("Try Again", key=f"{key}-retry"):
            with st.spinner("Creating image..."):
                lst.generate(index)
            st.rerun()
    elif item.status is ItemStatus.LOADING:
        st.info("Creating image...")
    else:
        label = "Click to Generate AI Image" if item.status is ItemStatus.ATTEMPTED_EMPTY else "Generate Visualization"
        if st.button(label, key=f"{key}-gen"):
            with st.spinner("Creating image... (This takes a few seconds)"):
                lst.generate(index)
            st.rerun()


def render_day(kind: ItemKind, day_index: int) -> None:
    lst = orchestrator.day_list(
        kind, day_index, cache, client.fetch_image,
        cooldown=settings.image_cooldown,
    )
    plan = orchestrator.snapshot.plan
    if kind is ItemKind.WORKOUT:
        day = plan.workout_plan[day_index]
        st.subheader(f"🏋️ {day.day} - {day.focus}")
        details = [f"{ex.sets} Sets / {ex.reps} / {ex.rest} Rest" for ex in day.exercises]
        labels = [f"{i + 1}. {ex.name}" for i, ex in enumerate(day.exercises)]
    else:
        day = plan.diet_plan[day_index]
        st.subheader(f"🥗 {day.day} - Meal Plan")
        details = [meal.description for meal in day.meals]
        labels = [f"{meal.type}: {meal.name}" for meal in day.meals]

    for i, item in enumerate(lst.items):
        key = f"{kind.value}-{day_index}-{i}"
        arrow = "▾" if item.is_open else "▸"
        if st.button(f"{arrow} {labels[i]}", key=f"{key}-toggle", help=details[i]):
            with st.spinner("Creating image..."):
                lst.toggle(i)
            st.rerun()
        st.caption(details[i])
        if item.is_open:
            render_image(lst, i, key)
    st.divider()


def render_read_button(section: Section) -> None:
    speaking = narrator.speaking == section
    label = f"🔇 Stop Reading {section.value}" if speaking else f"🔊 Read My {section.value} Plan"
    if st.button(label, key=f"read-{section.value}", use_container_width=True):
        command = narrator.toggle(section, orchestrator.snapshot.plan)
        components.html(browser_script(command, rate=narrator.rate), height=0)


def render_plan() -> None:
    snapshot = orchestrator.snapshot
    profile, plan = snapshot.profile, snapshot.plan
    st.title(f"Hello, {profile.name}! Your AI Plan is Ready 🎉")
    st.markdown(f"Goal: **{profile.goal}** | Level: {profile.level} | Location: {profile.location}")
    st.info(f"\"{plan.motivation_quote}\"\n\n— AI Coach")

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("🔁 Regenerate Plan", use_container_width=True):
            start_over()
            st.rerun()
    with col2:
        st.download_button(
            "⬇️ Download PDF",
            data=render_plan_pdf(snapshot),
            file_name=pdf_filename(snapshot),
            mime="application/pdf",
            use_container_width=True,
        )
    with col3:
        st.download_button(
            "Download Plan (JSON)",
            data=json.dumps(plan.model_dump(by_alias=True), indent=2),
            file_name="fitness_plan.json",
            mime="application/json",
            use_container_width=True,
        )

    workout_tab, diet_tab = st.tabs(["🏋️ Workout Plan", "🥗 Diet Plan"])
    with workout_tab:
        render_read_button(Section.WORKOUT)
        for i in range(len(plan.workout_plan)):
            render_day(ItemKind.WORKOUT, i)
    with diet_tab:
        render_read_button(Section.DIET)
        for i in range(len(plan.diet_plan)):
            render_day(ItemKind.DIET, i)

    st.markdown("---")
    st.subheader("⚡ AI Lifestyle Tips")
    for tip in plan.ai_tips:
        st.markdown(f"- {tip}")


if orchestrator.phase is Phase.ERROR:
    st.error(f"**Error Generating Plan**\n\n{orchestrator.error}\n\nPlease check your API key, your environment variables, and retry.")
    if st.button("Try Again"):
        start_over()
        st.rerun()
elif orchestrator.phase is Phase.READY:
    render_plan()
else:
    render_form()
