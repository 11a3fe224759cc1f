"""
Session finalization: whole-transcript verdict, scores and the summary turn.
"""
import logging
import math
from datetime import datetime
from typing import Iterable

from ..config import AI_SCORE_CAP, MIN_AUTHENTICITY_FOR_REWARD, COINS_PER_ACCURACY_POINT
from ..errors import AnalysisUnavailable, FinalizationFailed, SessionClosedError
from .analysis import ResponseAnalyzer
from .models import (
    Session, Turn, Judgment, FinalResult, Speaker, TurnKind, Classification, SessionStatus
)

logger = logging.getLogger("session_finalizer")

FINALIZATION_ERROR_NOTICE = "Error calculating final results. Please try again."


def round_half_up(value: float) -> int:
    """Round to the nearest int with .5 going up, e.g. 12.5 -> 13 and 2.5 -> 3."""
    return int(math.floor(value + 0.5))


def build_transcript(turns: Iterable[Turn]) -> str:
    """Chronological transcript with 'Interviewer:' / 'Candidate:' prefixes."""
    lines = []
    for turn in turns:
        prefix = "Candidate" if turn.speaker == Speaker.CANDIDATE else "Interviewer"
        lines.append(f"{prefix}: {turn.text}")
    return "\n\n".join(lines)


def authenticity_score(verdict: Judgment) -> int:
    """
    Score 0-100 for how human the transcript reads.

    Sessions classified as anything but human are capped at 40, however low
    the classifier's confidence was.
    """
    confidence = min(max(verdict.confidence, 0.0), 1.0)
    if verdict.classification == Classification.HUMAN:
        score = round_half_up(confidence * 100)
    else:
        score = round_half_up((1 - confidence) * AI_SCORE_CAP)
    return int(min(max(score, 0), 100))


def technical_accuracy(turns: Iterable[Turn]) -> float:
    """Mean accuracy over candidate turns that have one; 0.0 when none do."""
    values = [
        turn.analysis.accuracy
        for turn in turns
        if turn.speaker == Speaker.CANDIDATE and turn.analysis is not None and turn.analysis.accuracy is not None
    ]
    if not values:
        return 0.0
    # Six places hides float noise such as (0.8 + 0.6 + 1.0) / 3 == 0.8000000000000002
    return round(sum(values) / len(values), 6)


def decide_reward(authenticity: int,
                  accuracy: float,
                  min_authenticity: int = MIN_AUTHENTICITY_FOR_REWARD,
                  coins_per_point: int = COINS_PER_ACCURACY_POINT) -> int:
    """Coins granted for a finished session: ``accuracy * coins_per_point`` if authentic enough, else 0."""
    if authenticity < min_authenticity:
        return 0
    return round_half_up(accuracy * coins_per_point)


def format_summary(verdict: Judgment, score: int, accuracy: float) -> str:
    """Human-readable results message appended as the final interviewer turn."""
    confidence_percent = round_half_up(verdict.confidence * 100)
    accuracy_percent = round_half_up(accuracy * 100)

    lines = [
        "INTERVIEW COMPLETE",
        "",
        f"Final Score: {score}/100",
        f"Technical Accuracy: {accuracy_percent}%",
        "",
    ]
    if verdict.classification == Classification.HUMAN:
        lines.append("Authenticity: Human Response")
    elif verdict.classification == Classification.AI:
        lines.append("Authenticity: AI-Assisted Response")
    else:
        lines.append("Authenticity: Uncertain")
    lines.append(f"AI Detection Confidence: {confidence_percent}%")
    if verdict.summary:
        lines.extend(["", verdict.summary])
    lines.extend(["", "Thank you for completing the interview!"])
    return "\n".join(lines)


class SessionFinalizer:
    """Computes the session verdict and scores once the turn threshold is reached."""

    def __init__(self,
                 analyzer: ResponseAnalyzer,
                 min_authenticity: int = MIN_AUTHENTICITY_FOR_REWARD,
                 coins_per_point: int = COINS_PER_ACCURACY_POINT):
        self.analyzer = analyzer
        self.min_authenticity = min_authenticity
        self.coins_per_point = coins_per_point

    def finalize(self, session: Session) -> FinalResult:
        """
        Finalize a session in place.

        Safe to call again after a failure: it only reads the answer turns,
        and notice turns never carry an accuracy value.

        Raises:
            SessionClosedError: If the session is already finished
            FinalizationFailed: If the transcript could not be analyzed
        """
        if session.is_finished:
            raise SessionClosedError(session.session_id)

        # Notice turns stay in the session but are not part of the conversation being judged
        conversation = [turn for turn in session.turns if turn.kind != TurnKind.NOTICE]
        transcript = build_transcript(conversation)
        context = {
            "domain": session.domain,
            "level": session.level,
            "turn_count": len(conversation),
        }

        try:
            verdict = self.analyzer.analyze_transcript(transcript, context)
        except Exception as e:
            # Any analyzer failure is "analysis unavailable" here
            logger.error("Finalization of %s failed: %s", session.session_id, e)
            session.finalization_failed = True
            session.turns.append(Turn(
                speaker=Speaker.INTERVIEWER,
                text=FINALIZATION_ERROR_NOTICE,
                kind=TurnKind.NOTICE,
            ))
            cause = e if isinstance(e, AnalysisUnavailable) else AnalysisUnavailable(str(e))
            raise FinalizationFailed(session.session_id, cause) from e

        score = authenticity_score(verdict)
        accuracy = technical_accuracy(session.turns)
        coins = decide_reward(score, accuracy, self.min_authenticity, self.coins_per_point)

        session.final_verdict = verdict
        session.final_score = score
        session.technical_accuracy = accuracy
        session.coins = coins
        session.finalization_failed = False
        session.turns.append(Turn(
            speaker=Speaker.INTERVIEWER,
            text=format_summary(verdict, score, accuracy),
            kind=TurnKind.SUMMARY,
        ))
        session.status = SessionStatus.FINISHED
        session.finished_at = datetime.now().isoformat()

        logger.info(
            "Session %s finished: authenticity=%d accuracy=%.3f classification=%s",
            session.session_id, score, accuracy, verdict.classification.value
        )
        return FinalResult(
            authenticity_score=score,
            technical_accuracy=accuracy,
            verdict=verdict,
            coins=coins,
        )
