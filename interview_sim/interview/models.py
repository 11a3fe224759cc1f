"""
Data models for the interview session engine.
"""
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, List, Set, Any

from ..config import DEFAULT_TURN_THRESHOLD


class Speaker(str, Enum):
    """Who authored a turn."""
    INTERVIEWER = "interviewer"
    CANDIDATE = "candidate"


class Classification(str, Enum):
    """Authenticity classification of an answer or a whole transcript."""
    HUMAN = "human"
    AI = "ai"
    UNCERTAIN = "uncertain"


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class TurnKind(str, Enum):
    """What an interviewer or candidate turn carries."""
    QUESTION = "question"
    ANSWER = "answer"
    NOTICE = "notice"
    SUMMARY = "summary"


def _now() -> str:
    return datetime.now().isoformat()


@dataclass
class QuestionRecord:
    """One question served by a question source."""
    id: str
    text: str
    original_text: Optional[str] = None
    role: Optional[str] = None


@dataclass
class Judgment:
    """Structured authenticity/accuracy verdict for one answer or a whole transcript."""
    confidence: float
    classification: Classification
    accuracy: Optional[float] = None
    indicators: List[str] = field(default_factory=list)
    reasoning: str = ""
    human_like_score: Optional[float] = None
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["classification"] = self.classification.value
        return data


@dataclass
class Turn:
    """Represents a single transcript entry."""
    speaker: Speaker
    text: str
    kind: TurnKind
    question_ref: Optional[str] = None
    analysis: Optional[Judgment] = None
    timestamp: str = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speaker": self.speaker.value,
            "text": self.text,
            "kind": self.kind.value,
            "question_ref": self.question_ref,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "timestamp": self.timestamp,
        }


@dataclass
class Session:
    """
    One interview attempt for a (domain, level) pair.

    At most one operation may be in flight per session; callers must wait for
    ``start``/``submit_answer``/``finalize`` to return before issuing the next.
    """
    domain: str
    level: str
    threshold: int = DEFAULT_TURN_THRESHOLD
    session_id: str = field(default_factory=lambda: f"session_{uuid.uuid4().hex[:12]}")
    turns: List[Turn] = field(default_factory=list)
    asked_question_ids: Set[str] = field(default_factory=set)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    final_verdict: Optional[Judgment] = None
    final_score: Optional[int] = None
    technical_accuracy: Optional[float] = None
    coins: Optional[int] = None
    finalization_failed: bool = False
    started_at: str = field(default_factory=_now)
    finished_at: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status == SessionStatus.FINISHED

    def candidate_turn_count(self) -> int:
        """Count candidate turns from the transcript itself."""
        return sum(1 for turn in self.turns if turn.speaker == Speaker.CANDIDATE)

    def last_question(self) -> Optional[Turn]:
        """Most recent interviewer turn that asked a question."""
        for turn in reversed(self.turns):
            if turn.speaker == Speaker.INTERVIEWER and turn.kind == TurnKind.QUESTION:
                return turn
        return None

    def history_lines(self) -> List[str]:
        """Transcript lines in 'Interviewer: ...' / 'Candidate: ...' form."""
        lines = []
        for turn in self.turns:
            prefix = "Candidate" if turn.speaker == Speaker.CANDIDATE else "Interviewer"
            lines.append(f"{prefix}: {turn.text}")
        return lines

    def snapshot(self) -> Dict[str, Any]:
        """Plain, JSON-serialisable view of the session for persistence collaborators."""
        return {
            "session_id": self.session_id,
            "domain": self.domain,
            "level": self.level,
            "turns": [turn.to_dict() for turn in self.turns],
            "status": self.status.value,
            "final_score": self.final_score,
            "technical_accuracy": self.technical_accuracy,
            "coins": self.coins,
            "final_verdict": self.final_verdict.to_dict() if self.final_verdict else None,
            "finalization_failed": self.finalization_failed,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


@dataclass
class FinalResult:
    """Scores produced when a session is finalized."""
    authenticity_score: int
    technical_accuracy: float
    verdict: Judgment
    coins: int = 0
