"""
Interview Simulator Configuration
=================================

This file contains ALL configuration for the interview simulator.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


# =============================================================================
# USER SETTINGS - Edit these to customize the simulator
# =============================================================================

# LLM provider: "vertex" (Gemini on Vertex AI) or "openai" (chat completions API)
LLM_PROVIDER = "vertex"

# Vertex AI
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# OpenAI-compatible chat completions
OPENAI_API_KEY = None
OPENAI_BASE_URL = "https://api.openai.com/v1"

# Interview settings
TURN_THRESHOLD = 5
WORKDIR = "./_interviews"
QUESTIONS_DIR = None  # Optional: directory of <domain>-questions.json files

# Reward policy
MIN_AUTHENTICITY_FOR_REWARD = 60
COINS_PER_ACCURACY_POINT = 100

# Logging
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# LLM
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash-lite"
OPENAI_MODEL_NAME = "gpt-3.5-turbo"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 512

# Sampling temperatures
QUESTION_TEMPERATURE = 0.7
ANALYSIS_TEMPERATURE = 0.0
QUESTION_MAX_TOKENS = 150
INTRODUCTION_MAX_TOKENS = 300

# Scoring
AI_SCORE_CAP = 40
HISTORY_LINES_IN_PROMPT = 6


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    llm_provider: str = LLM_PROVIDER
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    vertex_location: str = VERTEX_LOCATION
    openai_api_key: Optional[str] = None
    openai_base_url: str = OPENAI_BASE_URL
    model_name: str = MODEL_NAME
    turn_threshold: int = TURN_THRESHOLD
    min_authenticity_for_reward: int = MIN_AUTHENTICITY_FOR_REWARD
    coins_per_accuracy_point: int = COINS_PER_ACCURACY_POINT
    workdir: str = WORKDIR
    questions_dir: Optional[str] = QUESTIONS_DIR
    log_file: str = os.path.join(WORKDIR, "interview.log")
    log_level: str = LOG_LEVEL
    llm_timeout: int = LLM_TIMEOUT


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def get_config() -> Config:
    """Load configuration from module defaults overridden by environment variables."""
    provider = (os.getenv("INTERVIEW_LLM_PROVIDER") or LLM_PROVIDER).strip().lower()
    if provider not in ("vertex", "openai"):
        raise ConfigurationError(f"Unknown LLM provider: {provider!r} (expected 'vertex' or 'openai')")

    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
    api_key = os.getenv("OPENAI_API_KEY") or OPENAI_API_KEY

    if provider == "vertex" and project == "your-project-id":
        raise ConfigurationError("Please set GOOGLE_CLOUD_PROJECT in config.py or as environment variable")
    if provider == "openai" and not api_key:
        raise ConfigurationError("Please set OPENAI_API_KEY to use the openai provider")

    default_model = MODEL_NAME if provider == "vertex" else OPENAI_MODEL_NAME
    threshold = _int_env("INTERVIEW_TURN_THRESHOLD", TURN_THRESHOLD)
    if threshold < 1:
        raise ConfigurationError(f"INTERVIEW_TURN_THRESHOLD must be at least 1, got {threshold}")

    workdir = os.getenv("INTERVIEW_WORKDIR") or WORKDIR

    return Config(
        llm_provider=provider,
        google_cloud_project=project if provider == "vertex" else None,
        google_application_credentials=credentials,
        vertex_location=os.getenv("VERTEX_LOCATION") or VERTEX_LOCATION,
        openai_api_key=api_key,
        openai_base_url=os.getenv("OPENAI_BASE_URL") or OPENAI_BASE_URL,
        model_name=os.getenv("INTERVIEW_MODEL") or default_model,
        turn_threshold=threshold,
        min_authenticity_for_reward=_int_env("INTERVIEW_MIN_AUTHENTICITY", MIN_AUTHENTICITY_FOR_REWARD),
        coins_per_accuracy_point=_int_env("INTERVIEW_COINS_PER_POINT", COINS_PER_ACCURACY_POINT),
        workdir=workdir,
        questions_dir=os.getenv("INTERVIEW_QUESTIONS_DIR") or QUESTIONS_DIR,
        log_file=os.getenv("INTERVIEW_LOG_FILE") or os.path.join(workdir, "interview.log"),
        log_level=(os.getenv("INTERVIEW_LOG_LEVEL") or LOG_LEVEL).upper(),
        llm_timeout=_int_env("INTERVIEW_LLM_TIMEOUT", LLM_TIMEOUT),
    )


# Short names used across the package
DEFAULT_TURN_THRESHOLD = TURN_THRESHOLD
DEFAULT_VERTEX_LOCATION = VERTEX_LOCATION
DEFAULT_MODEL_NAME = MODEL_NAME
DEFAULT_LLM_TIMEOUT = LLM_TIMEOUT
DEFAULT_MAX_OUTPUT_TOKENS = MAX_OUTPUT_TOKENS
