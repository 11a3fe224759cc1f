"""
Testing infrastructure with mock collaborators for the session engine.
"""
import json
from typing import Dict, Any, List, Optional, Sequence, Union, AbstractSet

from ..errors import AnalysisUnavailable, ConfigurationError, LevelError
from .analysis import ResponseAnalyzer
from .controller import SessionController
from .events import InterviewEventBus, SessionMetrics
from .models import Judgment, Classification, QuestionRecord, Session, Speaker, TurnKind, SessionStatus
from .questions import QuestionSource
from .schemas import extract_json_object

ScriptedJudgment = Union[Judgment, Exception]


def make_judgment(confidence: float = 0.9,
                  classification: str = "human",
                  accuracy: Optional[float] = None,
                  indicators: Optional[List[str]] = None,
                  reasoning: str = "mock reasoning") -> Judgment:
    """Build a Judgment with test-friendly defaults."""
    return Judgment(
        confidence=confidence,
        classification=Classification(classification),
        accuracy=accuracy,
        indicators=list(indicators or []),
        reasoning=reasoning,
    )


class MockLLMClient:
    """Mock LLM client returning scripted responses; Exception entries are raised."""

    def __init__(self, mock_responses: Sequence[Union[str, Dict[str, Any], Exception]]):
        self.mock_responses = list(mock_responses)
        self.current_response_idx = 0
        self.request_history: List[Dict[str, Any]] = []

    def _next_response(self):
        if self.current_response_idx >= len(self.mock_responses):
            raise RuntimeError("MockLLMClient ran out of scripted responses")
        response = self.mock_responses[self.current_response_idx]
        self.current_response_idx += 1
        if isinstance(response, Exception):
            raise response
        return response

    def generate_content(self, prompt: str, temperature: float = 0.0, **kwargs) -> str:
        self.request_history.append({"prompt": prompt, "temperature": temperature, "kwargs": kwargs})
        response = self._next_response()
        return response if isinstance(response, str) else json.dumps(response)

    def generate_json(self, prompt: str) -> Dict[str, Any]:
        self.request_history.append({"prompt": prompt, "json": True})
        response = self._next_response()
        if isinstance(response, str):
            return extract_json_object(response)
        return response


class MockResponseAnalyzer(ResponseAnalyzer):
    """Analyzer returning scripted judgments per mode; Exception entries are raised."""

    def __init__(self,
                 answer_judgments: Optional[Sequence[ScriptedJudgment]] = None,
                 transcript_judgments: Optional[Sequence[ScriptedJudgment]] = None,
                 default_answer: Optional[Judgment] = None):
        self.answer_judgments = list(answer_judgments or [])
        self.transcript_judgments = list(transcript_judgments or [])
        self.default_answer = default_answer or make_judgment(accuracy=0.5)
        self.answer_calls: List[Dict[str, Any]] = []
        self.transcript_calls: List[Dict[str, Any]] = []

    @staticmethod
    def _resolve(item: ScriptedJudgment) -> Judgment:
        if isinstance(item, Exception):
            raise item
        return item

    def analyze_answer(self, answer_text: str, context: Dict[str, Any]) -> Judgment:
        self.answer_calls.append({"answer": answer_text, "context": dict(context)})
        if self.answer_judgments:
            return self._resolve(self.answer_judgments.pop(0))
        return self.default_answer

    def analyze_transcript(self, transcript: str, context: Dict[str, Any]) -> Judgment:
        self.transcript_calls.append({"transcript": transcript, "context": dict(context)})
        if not self.transcript_judgments:
            raise AnalysisUnavailable("MockResponseAnalyzer has no transcript judgment scripted")
        return self._resolve(self.transcript_judgments.pop(0))


class MockQuestionSource(QuestionSource):
    """Serves questions from a fixed list per (domain, level) in order."""

    def __init__(self, pools: Dict[str, Dict[str, List[str]]], introduction: Optional[str] = None):
        self.pools = pools
        self.introduction_text = introduction
        self.calls: List[Dict[str, Any]] = []

    def validate(self, domain: str, level: str) -> None:
        if domain not in self.pools:
            raise ConfigurationError(f"Unknown domain {domain}")
        if level not in self.pools[domain]:
            raise LevelError(domain, level)

    def next(self, domain: str, level: str, asked_ids: AbstractSet[str],
             history: Optional[Sequence[str]] = None) -> Optional[QuestionRecord]:
        self.calls.append({"domain": domain, "level": level, "asked": set(asked_ids)})
        for i, text in enumerate(self.pools[domain][level]):
            qid = f"{domain}-{level}-{i}"
            if qid not in asked_ids:
                return QuestionRecord(id=qid, text=text, original_text=text)
        return None

    def introduction(self, domain: str, level: str) -> Optional[str]:
        return self.introduction_text


def create_mock_controller(analyzer: Optional[ResponseAnalyzer] = None,
                           threshold: int = 5,
                           pools: Optional[Dict[str, Dict[str, List[str]]]] = None) -> Dict[str, Any]:
    """Create a controller wired to mock collaborators and a metrics subscriber."""
    question_source = MockQuestionSource(pools or {
        "JavaScript": {
            "beginner": [
                "What is the difference between let, const, and var?",
                "Explain what a closure is in JavaScript",
                "What is event bubbling and how does it work?",
            ],
        },
    })
    analyzer = analyzer or MockResponseAnalyzer()
    event_bus = InterviewEventBus()
    metrics = SessionMetrics()
    event_bus.subscribe_all(metrics.handle_event)
    controller = SessionController(question_source, analyzer, threshold=threshold, event_bus=event_bus)
    return {
        "controller": controller,
        "question_source": question_source,
        "analyzer": analyzer,
        "event_bus": event_bus,
        "metrics": metrics,
    }


def validate_session(session: Session) -> List[str]:
    """
    Check structural invariants of a session transcript.

    Returns:
        List of violations (empty if valid)
    """
    issues = []
    turns = session.turns

    if not turns:
        issues.append("No turns recorded")
        return issues

    if turns[0].speaker != Speaker.INTERVIEWER:
        issues.append("First turn is not from the interviewer")

    for i, turn in enumerate(turns):
        if turn.speaker == Speaker.CANDIDATE and (i == 0 or turns[i - 1].speaker != Speaker.INTERVIEWER):
            issues.append(f"Candidate turn {i} does not follow an interviewer turn")
        if turn.speaker == Speaker.INTERVIEWER and i > 0 and turns[i - 1].speaker == Speaker.INTERVIEWER:
            if turns[i - 1].kind not in (TurnKind.NOTICE, TurnKind.SUMMARY) and turn.kind not in (TurnKind.NOTICE, TurnKind.SUMMARY):
                issues.append(f"Consecutive interviewer questions at turn {i}")

    answers = session.candidate_turn_count()
    if session.status == SessionStatus.IN_PROGRESS and answers > session.threshold:
        issues.append(f"{answers} answers exceed threshold {session.threshold}")
    if session.status == SessionStatus.FINISHED:
        if answers != session.threshold:
            issues.append(f"Finished with {answers} answers, expected {session.threshold}")
        if turns[-1].kind != TurnKind.SUMMARY:
            issues.append("Finished session does not end with a summary turn")
        if session.final_score is None or not (0 <= session.final_score <= 100):
            issues.append(f"Final score out of range: {session.final_score}")

    return issues
