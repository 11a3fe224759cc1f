"""
Interview simulator: an AI-driven technical interview session engine.

Serves domain/level interview questions, collects text answers, and scores a
session for answer authenticity and technical accuracy using an LLM.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.controller import SessionController
from .interview.finalizer import SessionFinalizer, decide_reward
from .interview.models import Session, Turn, Judgment

__all__ = ["SessionController", "SessionFinalizer", "decide_reward", "Session", "Turn", "Judgment"]
