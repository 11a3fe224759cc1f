import pytest

from interview_sim.errors import (
    AnalysisUnavailable, ConfigurationError, LevelError, PoolExhausted, SessionClosedError, FinalizationFailed
)
from interview_sim.interview.controller import SessionController, ANALYSIS_ERROR_NOTICE
from interview_sim.interview.events import EventType
from interview_sim.interview.finalizer import FINALIZATION_ERROR_NOTICE
from interview_sim.interview.models import Speaker, SessionStatus, TurnKind
from interview_sim.interview.testing import (
    MockQuestionSource, MockResponseAnalyzer, create_mock_controller, make_judgment, validate_session
)


def _answer_all(controller, session, count):
    for i in range(count):
        controller.submit_answer(session, f"My answer number {i + 1}")


def test_start_asks_first_question(mock_setup):
    controller = mock_setup["controller"]
    session = controller.start("JavaScript", "beginner")

    assert session.status == SessionStatus.IN_PROGRESS
    assert len(session.turns) == 1
    first = session.turns[0]
    assert first.speaker == Speaker.INTERVIEWER
    assert first.kind == TurnKind.QUESTION
    assert first.question_ref == "JavaScript-beginner-0"
    assert session.asked_question_ids == {"JavaScript-beginner-0"}
    assert mock_setup["metrics"].get_metrics()["sessions_started"] == 1


def test_start_rejects_unknown_domain_and_level(mock_setup):
    controller = mock_setup["controller"]
    with pytest.raises(ConfigurationError):
        controller.start("COBOL", "beginner")
    with pytest.raises(LevelError) as exc_info:
        controller.start("JavaScript", "wizard")
    assert exc_info.value.level == "wizard"


def test_threshold_below_one_is_rejected():
    with pytest.raises(ConfigurationError):
        SessionController(MockQuestionSource({}), MockResponseAnalyzer(), threshold=0)


def test_turns_alternate_until_summary(mock_setup):
    controller = mock_setup["controller"]
    session = controller.start("JavaScript", "beginner")
    _answer_all(controller, session, 3)

    assert session.is_finished
    assert session.candidate_turn_count() == 3
    assert len(session.turns) == 7
    assert session.turns[-1].kind == TurnKind.SUMMARY
    assert validate_session(session) == []


def test_answers_reference_the_question_they_reply_to(mock_setup):
    controller = mock_setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "let and const are block scoped")

    answer = session.turns[1]
    assert answer.speaker == Speaker.CANDIDATE
    assert answer.question_ref == session.turns[0].question_ref
    assert answer.analysis is not None
    context = mock_setup["analyzer"].answer_calls[0]["context"]
    assert context["question"] == session.turns[0].text
    assert context["domain"] == "JavaScript"


def test_single_answer_session_is_scored():
    analyzer = MockResponseAnalyzer(
        answer_judgments=[make_judgment(confidence=0.9, classification="human", accuracy=0.7)],
        transcript_judgments=[make_judgment(confidence=0.9, classification="human")],
    )
    setup = create_mock_controller(analyzer=analyzer, threshold=1)
    controller = setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "var is function scoped")

    assert session.is_finished
    assert session.final_score == 90
    assert session.technical_accuracy == 0.7
    assert len(session.turns) == 3
    assert "Final Score: 90/100" in session.turns[-1].text
    assert session.coins == 70
    assert setup["metrics"].get_metrics()["sessions_finished"] == 1


def test_blank_answer_is_ignored(mock_setup):
    controller = mock_setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "   \n\t")
    controller.submit_answer(session, "")

    assert len(session.turns) == 1
    assert mock_setup["analyzer"].answer_calls == []


def test_analysis_failure_keeps_the_answer(mock_setup):
    mock_setup["analyzer"].answer_judgments = [AnalysisUnavailable("analyzer down")]
    controller = mock_setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "A closure captures variables")

    kinds = [turn.kind for turn in session.turns]
    assert kinds == [TurnKind.QUESTION, TurnKind.ANSWER, TurnKind.NOTICE, TurnKind.QUESTION]
    assert session.turns[1].analysis is None
    assert session.turns[1].text == "A closure captures variables"
    assert session.turns[2].text == ANALYSIS_ERROR_NOTICE
    assert validate_session(session) == []
    assert mock_setup["metrics"].get_metrics()["analysis_failures"] == 1


def test_unexpected_analyzer_error_is_treated_like_unavailable(mock_setup):
    mock_setup["analyzer"].answer_judgments = [RuntimeError("socket closed")]
    controller = mock_setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "Bubbling goes up the DOM")

    assert session.turns[1].analysis is None
    assert session.turns[2].kind == TurnKind.NOTICE
    assert session.turns[3].kind == TurnKind.QUESTION


def test_finished_session_rejects_changes(mock_setup):
    controller = mock_setup["controller"]
    session = controller.start("JavaScript", "beginner")
    _answer_all(controller, session, 3)
    turn_count = len(session.turns)

    with pytest.raises(SessionClosedError):
        controller.submit_answer(session, "one more thing")
    with pytest.raises(SessionClosedError):
        controller.finalize(session)
    assert len(session.turns) == turn_count


def test_pool_is_reset_when_exhausted():
    setup = create_mock_controller(
        analyzer=MockResponseAnalyzer(transcript_judgments=[make_judgment()]),
        threshold=3,
        pools={"Python": {"beginner": ["What is a list?", "What is a dict?"]}},
    )
    controller = setup["controller"]
    resets = []
    setup["event_bus"].subscribe(EventType.POOL_RESET, resets.append)

    session = controller.start("Python", "beginner")
    controller.submit_answer(session, "An ordered mutable sequence")
    controller.submit_answer(session, "A hash map")

    questions = [turn for turn in session.turns if turn.kind == TurnKind.QUESTION]
    assert [q.question_ref for q in questions] == ["Python-beginner-0", "Python-beginner-1", "Python-beginner-0"]
    assert len(resets) == 1
    assert resets[0].data["served"] == 2
    assert session.asked_question_ids == {"Python-beginner-0"}
    assert setup["metrics"].get_metrics()["pool_resets"] == 1


def test_empty_pool_raises_pool_exhausted():
    setup = create_mock_controller(pools={"Python": {"beginner": []}})
    with pytest.raises(PoolExhausted):
        setup["controller"].start("Python", "beginner")


def test_sessions_do_not_share_asked_questions(mock_setup):
    controller = mock_setup["controller"]
    first = controller.start("JavaScript", "beginner")
    controller.submit_answer(first, "Block scoping")
    second = controller.start("JavaScript", "beginner")

    assert first.asked_question_ids == {"JavaScript-beginner-0", "JavaScript-beginner-1"}
    assert second.asked_question_ids == {"JavaScript-beginner-0"}
    assert first.session_id != second.session_id


def test_finalization_failure_can_be_retried():
    analyzer = MockResponseAnalyzer(
        transcript_judgments=[AnalysisUnavailable("timeout"), make_judgment(confidence=0.8)],
    )
    setup = create_mock_controller(analyzer=analyzer, threshold=1)
    controller = setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "let is block scoped")

    assert not session.is_finished
    assert session.finalization_failed
    assert session.turns[-1].text == FINALIZATION_ERROR_NOTICE
    assert setup["metrics"].get_metrics()["finalization_failures"] == 1

    controller.finalize(session)

    assert session.is_finished
    assert not session.finalization_failed
    assert session.final_score == 80
    assert session.turns[-1].kind == TurnKind.SUMMARY
    assert session.candidate_turn_count() == 1


def test_finalize_raises_when_analysis_keeps_failing():
    analyzer = MockResponseAnalyzer(
        transcript_judgments=[AnalysisUnavailable("timeout"), AnalysisUnavailable("still down")],
    )
    setup = create_mock_controller(analyzer=analyzer, threshold=1)
    controller = setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "let is block scoped")

    with pytest.raises(FinalizationFailed) as exc_info:
        controller.finalize(session)
    assert isinstance(exc_info.value.cause, AnalysisUnavailable)
    assert session.finalization_failed
    assert session.status == SessionStatus.IN_PROGRESS


def test_answer_after_failed_finalization_retries_without_recording():
    analyzer = MockResponseAnalyzer(
        transcript_judgments=[AnalysisUnavailable("timeout"), make_judgment(confidence=0.7)],
    )
    setup = create_mock_controller(analyzer=analyzer, threshold=1)
    controller = setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "first answer")
    controller.submit_answer(session, "extra answer")

    assert session.is_finished
    assert session.candidate_turn_count() == 1
    assert len(analyzer.answer_calls) == 1
    assert session.final_score == 70


def test_low_authenticity_earns_no_coins():
    analyzer = MockResponseAnalyzer(
        default_answer=make_judgment(accuracy=1.0),
        transcript_judgments=[make_judgment(confidence=0.95, classification="ai")],
    )
    setup = create_mock_controller(analyzer=analyzer, threshold=2)
    controller = setup["controller"]
    session = controller.start("JavaScript", "beginner")
    _answer_all(controller, session, 2)

    assert session.final_score <= 40
    assert session.technical_accuracy == 1.0
    assert session.coins == 0
    assert "AI-Assisted" in session.turns[-1].text


def test_events_follow_the_session(mock_setup):
    controller = mock_setup["controller"]
    seen = []
    mock_setup["event_bus"].subscribe_all(lambda event: seen.append(event.event_type))
    session = controller.start("JavaScript", "beginner")
    _answer_all(controller, session, 3)

    assert seen[0] == EventType.SESSION_STARTED
    assert seen[-1] == EventType.SESSION_FINISHED
    metrics = mock_setup["metrics"].get_metrics()
    assert metrics["questions_asked"] == 3
    assert metrics["answers_analyzed"] == 3
    assert metrics["analysis_failures"] == 0


def test_failing_event_handler_does_not_break_the_session(mock_setup):
    def broken_handler(event):
        raise RuntimeError("handler bug")

    mock_setup["event_bus"].subscribe(EventType.QUESTION_ASKED, broken_handler)
    session = mock_setup["controller"].start("JavaScript", "beginner")
    assert len(session.turns) == 1


def test_analysis_failure_mid_interview_keeps_session_running():
    analyzer = MockResponseAnalyzer(answer_judgments=[AnalysisUnavailable("analyzer down")])
    setup = create_mock_controller(analyzer=analyzer, threshold=5)
    controller = setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "Closures capture their lexical scope")

    assert session.status == SessionStatus.IN_PROGRESS
    assert session.turns[1].analysis is None
    assert session.turns[2].kind == TurnKind.NOTICE
    assert session.turns[-1].kind == TurnKind.QUESTION
    assert len(setup["question_source"].calls) == 2


def test_results_stay_with_their_own_session():
    analyzer = MockResponseAnalyzer(
        default_answer=make_judgment(accuracy=0.8),
        transcript_judgments=[
            make_judgment(confidence=0.9, classification="human"),
            make_judgment(confidence=0.9, classification="ai"),
        ],
    )
    controller = create_mock_controller(analyzer=analyzer, threshold=1)["controller"]
    first = controller.start("JavaScript", "beginner")
    second = controller.start("JavaScript", "beginner")
    controller.submit_answer(first, "Hoisting differs")
    controller.submit_answer(second, "Hoisting differs")

    assert (first.final_score, first.coins) == (90, 80)
    assert (second.final_score, second.coins) == (4, 0)


def test_introduction_opens_the_first_question():
    setup = create_mock_controller(threshold=2)
    setup["question_source"].introduction_text = "Hi, I lead the JavaScript team."
    controller = setup["controller"]
    session = controller.start("JavaScript", "beginner")
    controller.submit_answer(session, "const cannot be reassigned")

    assert len(session.turns) == 3
    assert session.turns[0].text == (
        "Hi, I lead the JavaScript team.\n\nWhat is the difference between let, const, and var?"
    )
    assert session.turns[0].kind == TurnKind.QUESTION
    assert session.turns[2].text == "Explain what a closure is in JavaScript"
