"""Interview session components.

This module contains the business logic for running an interview session:
the turn loop, question sources, answer analysis, and final scoring.
"""

# Session controller
from .controller import SessionController

# Data models
from .models import (
    Speaker, Classification, SessionStatus, TurnKind,
    QuestionRecord, Judgment, Turn, Session, FinalResult
)

# Schemas
from .schemas import JudgmentPayload, parse_judgment

# Collaborators
from .questions import QuestionSource, QuestionBank, LLMQuestionSource, DEFAULT_QUESTIONS
from .analysis import ResponseAnalyzer, LLMResponseAnalyzer
from .finalizer import (
    SessionFinalizer, build_transcript, authenticity_score,
    technical_accuracy, decide_reward, format_summary
)
from .prompts import PromptTemplate, PromptRegistry

# Event system
from .events import (
    InterviewEventBus, EventLogger, SessionMetrics,
    EventType, InterviewEvent, SessionStartedEvent, QuestionAskedEvent,
    AnswerAnalyzedEvent, AnalysisFailedEvent, PoolResetEvent,
    SessionFinishedEvent, FinalizationFailedEvent
)

__all__ = [
    # Controller
    "SessionController",

    # Data models
    "Speaker", "Classification", "SessionStatus", "TurnKind",
    "QuestionRecord", "Judgment", "Turn", "Session", "FinalResult",

    # Schemas
    "JudgmentPayload", "parse_judgment",

    # Collaborators
    "QuestionSource", "QuestionBank", "LLMQuestionSource", "DEFAULT_QUESTIONS",
    "ResponseAnalyzer", "LLMResponseAnalyzer",
    "SessionFinalizer", "build_transcript", "authenticity_score",
    "technical_accuracy", "decide_reward", "format_summary",
    "PromptTemplate", "PromptRegistry",

    # Events
    "InterviewEventBus", "EventLogger", "SessionMetrics",
    "EventType", "InterviewEvent", "SessionStartedEvent", "QuestionAskedEvent",
    "AnswerAnalyzedEvent", "AnalysisFailedEvent", "PoolResetEvent",
    "SessionFinishedEvent", "FinalizationFailedEvent",
]
