"""
Session controller: drives one interview from the opening question to the verdict.
"""
import logging
from typing import Optional

from ..config import DEFAULT_TURN_THRESHOLD
from ..errors import ConfigurationError, PoolExhausted, SessionClosedError, FinalizationFailed
from .analysis import ResponseAnalyzer
from .events import (
    InterviewEventBus, SessionStartedEvent, QuestionAskedEvent, AnswerAnalyzedEvent,
    AnalysisFailedEvent, PoolResetEvent, SessionFinishedEvent, FinalizationFailedEvent
)
from .finalizer import SessionFinalizer
from .models import Session, Turn, Speaker, TurnKind
from .questions import QuestionSource

logger = logging.getLogger("session_controller")

ANALYSIS_ERROR_NOTICE = (
    "Your answer was recorded, but it could not be analyzed right now. "
    "Let's continue with the next question."
)


class SessionController:
    """
    Orchestrates interview sessions.

    The controller holds no per-session state: everything that changes during
    an interview lives on the Session passed in by the caller, so independent
    sessions never interfere. Callers must not start a second operation on a
    session while one is still running.
    """

    def __init__(self,
                 question_source: QuestionSource,
                 analyzer: ResponseAnalyzer,
                 finalizer: Optional[SessionFinalizer] = None,
                 threshold: int = DEFAULT_TURN_THRESHOLD,
                 event_bus: Optional[InterviewEventBus] = None):
        if threshold < 1:
            raise ConfigurationError(f"Turn threshold must be at least 1, got {threshold}")
        self.question_source = question_source
        self.analyzer = analyzer
        self.finalizer = finalizer or SessionFinalizer(analyzer)
        self.threshold = threshold
        self.event_bus = event_bus or InterviewEventBus()

    def start(self, domain: str, level: str) -> Session:
        """
        Create a session and ask its opening question.

        Raises:
            ConfigurationError: Unknown domain
            LevelError: Unknown level within the domain
        """
        self.question_source.validate(domain, level)

        session = Session(domain=domain, level=level, threshold=self.threshold)
        logger.info(f"Starting session {session.session_id} for {domain}/{level} ({self.threshold} answers)")
        self.event_bus.emit(SessionStartedEvent(session.session_id, domain, level, self.threshold))

        self._ask_question(session, preamble=self.question_source.introduction(domain, level))
        return session

    def submit_answer(self, session: Session, text: str) -> Session:
        """
        Record an answer, analyze it, then ask the next question or finalize.

        Blank answers are ignored. An analysis failure never loses the answer:
        it is kept without a judgment and a notice turn is added.

        Raises:
            SessionClosedError: If the session is already finished
        """
        if session.is_finished:
            raise SessionClosedError(session.session_id)
        if not text or not text.strip():
            return session
        if session.candidate_turn_count() >= session.threshold:
            # All answers are in but finalization failed earlier: retry it, keep the transcript as is
            logger.info(f"Session {session.session_id} already has {session.threshold} answers, retrying finalization")
            self._finalize_quietly(session)
            return session

        question_turn = session.last_question()
        answer_index = session.candidate_turn_count() + 1
        context = {
            "question": question_turn.text if question_turn else "",
            "domain": session.domain,
            "level": session.level,
        }

        # The answer turn is appended only once its analysis (or failure) is known
        failure: Optional[Exception] = None
        try:
            judgment = self.analyzer.analyze_answer(text, context)
        except Exception as e:
            judgment = None
            failure = e

        session.turns.append(Turn(
            speaker=Speaker.CANDIDATE,
            text=text,
            kind=TurnKind.ANSWER,
            question_ref=question_turn.question_ref if question_turn else None,
            analysis=judgment,
        ))

        if failure is not None:
            logger.warning(f"Answer {answer_index} of {session.session_id} could not be analyzed: {failure}")
            session.turns.append(Turn(
                speaker=Speaker.INTERVIEWER,
                text=ANALYSIS_ERROR_NOTICE,
                kind=TurnKind.NOTICE,
            ))
            self.event_bus.emit(AnalysisFailedEvent(session.session_id, answer_index, str(failure)))
        else:
            self.event_bus.emit(AnswerAnalyzedEvent(
                session.session_id, answer_index, judgment.classification.value,
                judgment.confidence, judgment.accuracy
            ))

        if session.candidate_turn_count() >= session.threshold:
            self._finalize_quietly(session)
        else:
            self._ask_question(session)
        return session

    def finalize(self, session: Session) -> Session:
        """
        Compute the verdict and scores for a session.

        May be called again after a failure as many times as needed.

        Raises:
            SessionClosedError: If the session is already finished
            FinalizationFailed: If the transcript could not be analyzed
        """
        try:
            result = self.finalizer.finalize(session)
        except FinalizationFailed as e:
            self.event_bus.emit(FinalizationFailedEvent(session.session_id, str(e.cause)))
            raise

        self.event_bus.emit(SessionFinishedEvent(
            session.session_id, result.authenticity_score, result.technical_accuracy,
            result.verdict.classification.value, result.coins
        ))
        return session

    def _finalize_quietly(self, session: Session) -> None:
        try:
            self.finalize(session)
        except FinalizationFailed as e:
            # Recorded on the session (flag + notice turn); the caller retries through finalize()
            logger.warning(f"{e}")

    def _ask_question(self, session: Session, preamble: Optional[str] = None) -> Turn:
        """
        Fetch an unseen question, resetting the asked-set once if the pool ran out.

        A preamble (the interviewer's introduction) is prepended to the question text.
        """
        history = session.history_lines()
        record = self.question_source.next(session.domain, session.level, session.asked_question_ids, history)
        if record is None:
            served = len(session.asked_question_ids)
            logger.info(f"Question pool {session.domain}/{session.level} exhausted after {served}, resetting")
            session.asked_question_ids.clear()
            self.event_bus.emit(PoolResetEvent(session.session_id, session.domain, session.level, served))
            record = self.question_source.next(session.domain, session.level, session.asked_question_ids, history)
            if record is None:
                raise PoolExhausted(session.domain, session.level)

        session.asked_question_ids.add(record.id)
        turn = Turn(
            speaker=Speaker.INTERVIEWER,
            text=f"{preamble}\n\n{record.text}" if preamble else record.text,
            kind=TurnKind.QUESTION,
            question_ref=record.id,
        )
        session.turns.append(turn)
        logger.info(f"Question {session.candidate_turn_count() + 1}/{session.threshold} [{record.id}]: {record.text}")
        self.event_bus.emit(QuestionAskedEvent(session.session_id, record.id, record.text))
        return turn
