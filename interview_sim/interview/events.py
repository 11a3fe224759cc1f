"""
Event-driven notifications for the interview session engine.
"""
import logging
import time
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of session events."""
    SESSION_STARTED = "session_started"
    QUESTION_ASKED = "question_asked"
    ANSWER_ANALYZED = "answer_analyzed"
    ANALYSIS_FAILED = "analysis_failed"
    POOL_RESET = "pool_reset"
    SESSION_FINISHED = "session_finished"
    FINALIZATION_FAILED = "finalization_failed"


@dataclass
class InterviewEvent(ABC):
    """Base class for all session events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(InterviewEvent):
    """Event fired when a session is created."""
    def __init__(self, session_id: str, domain: str, level: str, threshold: int,
                 timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp or time.time(),
            data={"domain": domain, "level": level, "threshold": threshold}
        )


@dataclass
class QuestionAskedEvent(InterviewEvent):
    """Event fired when an interviewer question is appended."""
    def __init__(self, session_id: str, question_id: str, question: str,
                 timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.QUESTION_ASKED,
            session_id=session_id,
            timestamp=timestamp or time.time(),
            data={"question_id": question_id, "question": question}
        )


@dataclass
class AnswerAnalyzedEvent(InterviewEvent):
    """Event fired when a candidate answer received a judgment."""
    def __init__(self, session_id: str, answer_index: int, classification: str,
                 confidence: float, accuracy: Optional[float], timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.ANSWER_ANALYZED,
            session_id=session_id,
            timestamp=timestamp or time.time(),
            data={
                "answer_index": answer_index,
                "classification": classification,
                "confidence": confidence,
                "accuracy": accuracy
            }
        )


@dataclass
class AnalysisFailedEvent(InterviewEvent):
    """Event fired when an answer could not be analyzed."""
    def __init__(self, session_id: str, answer_index: int, error_message: str,
                 timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.ANALYSIS_FAILED,
            session_id=session_id,
            timestamp=timestamp or time.time(),
            data={"answer_index": answer_index, "error_message": error_message}
        )


@dataclass
class PoolResetEvent(InterviewEvent):
    """Event fired when a session's asked-question set is cleared after exhaustion."""
    def __init__(self, session_id: str, domain: str, level: str, served: int,
                 timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.POOL_RESET,
            session_id=session_id,
            timestamp=timestamp or time.time(),
            data={"domain": domain, "level": level, "served": served}
        )


@dataclass
class SessionFinishedEvent(InterviewEvent):
    """Event fired when a session is finalized."""
    def __init__(self, session_id: str, authenticity_score: int, technical_accuracy: float,
                 classification: str, coins: int, timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.SESSION_FINISHED,
            session_id=session_id,
            timestamp=timestamp or time.time(),
            data={
                "authenticity_score": authenticity_score,
                "technical_accuracy": technical_accuracy,
                "classification": classification,
                "coins": coins
            }
        )


@dataclass
class FinalizationFailedEvent(InterviewEvent):
    """Event fired when whole-transcript analysis failed."""
    def __init__(self, session_id: str, error_message: str, timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.FINALIZATION_FAILED,
            session_id=session_id,
            timestamp=timestamp or time.time(),
            data={"error_message": error_message}
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for session notifications."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        Handler errors are logged and never reach the emitter.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: InterviewEvent) -> None:
        self.logger.info(f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}")


class SessionMetrics:
    """Counts session events."""

    _COUNTERS = {
        EventType.SESSION_STARTED: "sessions_started",
        EventType.SESSION_FINISHED: "sessions_finished",
        EventType.QUESTION_ASKED: "questions_asked",
        EventType.ANSWER_ANALYZED: "answers_analyzed",
        EventType.ANALYSIS_FAILED: "analysis_failures",
        EventType.POOL_RESET: "pool_resets",
        EventType.FINALIZATION_FAILED: "finalization_failures",
    }

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        name = self._COUNTERS.get(event.event_type)
        if name:
            self._counts[name] += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return dict(self._counts)

    def reset(self) -> None:
        self._counts: Dict[str, int] = {name: 0 for name in self._COUNTERS.values()}
