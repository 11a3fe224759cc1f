import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from interview_sim.interview.testing import MockResponseAnalyzer, create_mock_controller, make_judgment


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "INTERVIEW_LLM_PROVIDER", "GOOGLE_CLOUD_PROJECT", "GOOGLE_APPLICATION_CREDENTIALS",
        "OPENAI_API_KEY", "OPENAI_BASE_URL", "VERTEX_LOCATION", "INTERVIEW_MODEL",
        "INTERVIEW_TURN_THRESHOLD", "INTERVIEW_WORKDIR", "INTERVIEW_QUESTIONS_DIR",
        "INTERVIEW_MIN_AUTHENTICITY", "INTERVIEW_COINS_PER_POINT", "INTERVIEW_LOG_FILE",
        "INTERVIEW_LOG_LEVEL", "INTERVIEW_LLM_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def human_verdict():
    return make_judgment(confidence=0.9, classification="human", reasoning="natural phrasing")


@pytest.fixture
def mock_setup(human_verdict):
    """Controller with threshold 3 whose final verdict is a confident 'human'."""
    analyzer = MockResponseAnalyzer(transcript_judgments=[human_verdict])
    return create_mock_controller(analyzer=analyzer, threshold=3)
