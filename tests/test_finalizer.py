import pytest

from interview_sim.errors import AnalysisUnavailable, FinalizationFailed, SessionClosedError
from interview_sim.interview.finalizer import (
    SessionFinalizer, authenticity_score, build_transcript, decide_reward, format_summary, round_half_up,
    technical_accuracy,
    FINALIZATION_ERROR_NOTICE
)
from interview_sim.interview.models import Session, Speaker, SessionStatus, Turn, TurnKind
from interview_sim.interview.testing import MockResponseAnalyzer, make_judgment


def _question(text):
    return Turn(speaker=Speaker.INTERVIEWER, text=text, kind=TurnKind.QUESTION, question_ref="q")


def _answer(text, accuracy=None, analyzed=True):
    analysis = make_judgment(accuracy=accuracy) if analyzed else None
    return Turn(speaker=Speaker.CANDIDATE, text=text, kind=TurnKind.ANSWER, question_ref="q", analysis=analysis)


def _ready_session(accuracies=(0.5,)):
    session = Session(domain="Python", level="beginner", threshold=len(accuracies))
    for i, accuracy in enumerate(accuracies):
        session.turns.append(_question(f"Question {i}"))
        session.turns.append(_answer(f"Answer {i}", accuracy))
    return session


@pytest.mark.parametrize("confidence,classification,expected", [
    (0.9, "human", 90),
    (1.0, "human", 100),
    (0.0, "ai", 40),
    (1.0, "ai", 0),
    (0.5, "uncertain", 20),
])
def test_authenticity_score(confidence, classification, expected):
    assert authenticity_score(make_judgment(confidence=confidence, classification=classification)) == expected


def test_authenticity_score_never_exceeds_cap_for_non_human():
    for step in range(11):
        verdict = make_judgment(confidence=step / 10, classification="ai")
        assert 0 <= authenticity_score(verdict) <= 40


def test_authenticity_score_clamps_confidence():
    assert authenticity_score(make_judgment(confidence=1.5, classification="human")) == 100
    assert authenticity_score(make_judgment(confidence=-0.2, classification="ai")) == 40


def test_technical_accuracy_is_mean_of_analyzed_answers():
    turns = [
        _question("Q1"), _answer("A1", 0.8),
        _question("Q2"), _answer("A2", 0.6),
        _question("Q3"), _answer("A3", 1.0),
        _question("Q4"), _answer("A4", analyzed=False),
    ]
    assert technical_accuracy(turns) == 0.8


def test_technical_accuracy_without_values_is_zero():
    assert technical_accuracy([_question("Q1"), _answer("A1", analyzed=False)]) == 0.0
    assert technical_accuracy([_question("Q1"), _answer("A1", accuracy=None)]) == 0.0


@pytest.mark.parametrize("authenticity,accuracy,expected", [
    (59, 0.9, 0),
    (60, 0.75, 75),
    (100, 0.0, 0),
    (85, 1.0, 100),
])
def test_decide_reward(authenticity, accuracy, expected):
    assert decide_reward(authenticity, accuracy) == expected


def test_decide_reward_with_custom_policy():
    assert decide_reward(50, 0.5, min_authenticity=40, coins_per_point=10) == 5


def test_build_transcript():
    transcript = build_transcript([_question("What is a tuple?"), _answer("An immutable sequence")])
    assert transcript == "Interviewer: What is a tuple?\n\nCandidate: An immutable sequence"


def test_format_summary_mentions_scores():
    verdict = make_judgment(confidence=0.9, classification="human")
    verdict.summary = "Answers read naturally."
    text = format_summary(verdict, 90, 0.7)

    assert text.startswith("INTERVIEW COMPLETE")
    assert "Final Score: 90/100" in text
    assert "Technical Accuracy: 70%" in text
    assert "Authenticity: Human Response" in text
    assert "AI Detection Confidence: 90%" in text
    assert "Answers read naturally." in text


def test_finalize_appends_summary_and_finishes():
    analyzer = MockResponseAnalyzer(transcript_judgments=[make_judgment(confidence=0.75)])
    session = _ready_session((0.4, 0.6))

    result = SessionFinalizer(analyzer).finalize(session)

    assert result.authenticity_score == 75
    assert result.technical_accuracy == 0.5
    assert result.coins == 50
    assert session.status == SessionStatus.FINISHED
    assert session.finished_at is not None
    assert session.final_verdict is result.verdict
    assert session.turns[-1].kind == TurnKind.SUMMARY
    call = analyzer.transcript_calls[0]
    assert call["transcript"].startswith("Interviewer: Question 0")
    assert call["context"]["turn_count"] == 4


def test_finalize_failure_marks_session():
    analyzer = MockResponseAnalyzer(transcript_judgments=[ValueError("bad json")])
    session = _ready_session()

    with pytest.raises(FinalizationFailed) as exc_info:
        SessionFinalizer(analyzer).finalize(session)

    assert isinstance(exc_info.value.cause, AnalysisUnavailable)
    assert session.finalization_failed
    assert session.status == SessionStatus.IN_PROGRESS
    assert session.final_score is None
    assert session.turns[-1].text == FINALIZATION_ERROR_NOTICE


def test_finalize_rejects_finished_session():
    analyzer = MockResponseAnalyzer(transcript_judgments=[make_judgment()])
    session = _ready_session()
    finalizer = SessionFinalizer(analyzer)
    finalizer.finalize(session)

    with pytest.raises(SessionClosedError):
        finalizer.finalize(session)


@pytest.mark.parametrize("confidence,classification,expected", [
    (0.125, "human", 13),
    (0.005, "human", 1),
    (0.9375, "ai", 3),
    (0.6875, "uncertain", 13),
])
def test_authenticity_score_rounds_half_up(confidence, classification, expected):
    assert authenticity_score(make_judgment(confidence=confidence, classification=classification)) == expected


def test_round_half_up():
    assert [round_half_up(v) for v in (12.5, 2.5, 0.5, 2.4999, 60.00000000000001)] == [13, 3, 1, 2, 60]


def test_reward_and_summary_round_half_up():
    assert decide_reward(80, 0.125) == 13
    verdict = make_judgment(confidence=0.125, classification="ai")
    text = format_summary(verdict, authenticity_score(verdict), 0.625)
    assert "Technical Accuracy: 63%" in text
    assert "AI Detection Confidence: 13%" in text


def test_retry_transcript_leaves_out_notices():
    analyzer = MockResponseAnalyzer(transcript_judgments=[AnalysisUnavailable("timeout"), make_judgment()])
    session = _ready_session()
    finalizer = SessionFinalizer(analyzer)
    with pytest.raises(FinalizationFailed):
        finalizer.finalize(session)

    finalizer.finalize(session)

    retry = analyzer.transcript_calls[1]
    assert FINALIZATION_ERROR_NOTICE not in retry["transcript"]
    assert retry["context"]["turn_count"] == 2
    assert any(turn.text == FINALIZATION_ERROR_NOTICE for turn in session.turns)


def test_finalize_stores_coins_on_session():
    analyzer = MockResponseAnalyzer(transcript_judgments=[make_judgment(confidence=0.5)])
    session = _ready_session((1.0,))
    SessionFinalizer(analyzer).finalize(session)
    assert session.coins == 0
    assert session.snapshot()["coins"] == 0
