#!/usr/bin/env python3
"""
Main entry point for the interview simulator.
Allows running a text interview with: python -m interview_sim DOMAIN LEVEL
"""
import os
import sys
from typing import List, Optional

from .config import get_config
from .errors import ConfigurationError, FinalizationFailed
from .infrastructure.data import SessionArchive
from .infrastructure.llm import create_llm_client
from .interview.analysis import LLMResponseAnalyzer
from .interview.controller import SessionController
from .interview.events import InterviewEventBus, EventLogger, SessionMetrics
from .interview.finalizer import SessionFinalizer
from .interview.prompts import PromptRegistry
from .interview.questions import QuestionBank, LLMQuestionSource
from .utils import setup_logging

USAGE = "Usage: python -m interview_sim DOMAIN LEVEL [--threshold=N] [--list]"


def _print_catalog(bank: QuestionBank) -> None:
    print("Available interviews:")
    for domain in bank.domains():
        print(f"  {domain}: {', '.join(bank.levels(domain))}")


def _read_answer_prompt(prompt: str = "\nYour answer> ") -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface for a single text interview."""
    args = list(sys.argv[1:] if argv is None else argv)

    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"❌ Configuration Error: {e}")
        return 1

    threshold = config.turn_threshold
    positional = []
    show_list = False
    for arg in args:
        if arg.startswith("--threshold="):
            try:
                threshold = int(arg.split("=", 1)[1])
            except ValueError:
                print("❌ Invalid threshold value. Use --threshold=1 or higher")
                return 1
        elif arg == "--list":
            show_list = True
        elif arg.startswith("--"):
            print(f"❌ Unknown option: {arg}\n{USAGE}")
            return 1
        else:
            positional.append(arg)

    try:
        bank = QuestionBank.from_directory(config.questions_dir) if config.questions_dir else QuestionBank()
    except (ConfigurationError, OSError, ValueError) as e:
        print(f"❌ Could not load questions: {e}")
        return 1

    if show_list:
        _print_catalog(bank)
        return 0
    if len(positional) != 2:
        print(USAGE)
        return 1
    domain, level = positional

    log_file = setup_logging(config.log_file, config.log_level)

    event_bus = InterviewEventBus()
    metrics = SessionMetrics()
    event_bus.subscribe_all(EventLogger().handle_event)
    event_bus.subscribe_all(metrics.handle_event)

    prompts = PromptRegistry()
    try:
        llm_client = create_llm_client(config)
        analyzer = LLMResponseAnalyzer(llm_client, prompts)
        controller = SessionController(
            LLMQuestionSource(bank, llm_client, prompts),
            analyzer,
            finalizer=SessionFinalizer(
                analyzer,
                min_authenticity=config.min_authenticity_for_reward,
                coins_per_point=config.coins_per_accuracy_point,
            ),
            threshold=threshold,
            event_bus=event_bus,
        )
        session = controller.start(domain, level)
    except ConfigurationError as e:
        print(f"❌ {e}")
        _print_catalog(bank)
        return 1

    print(f"\n🎙️  {domain} / {level} interview - {threshold} questions")
    print(f"📝 Detailed logs: {log_file}")
    print("=" * 50)

    shown = 0
    while not session.is_finished:
        for turn in session.turns[shown:]:
            print(f"\n🤖 {turn.text}")
        shown = len(session.turns)

        if session.finalization_failed:
            try:
                controller.finalize(session)
            except FinalizationFailed:
                retry = _read_answer_prompt("\nRetry scoring? [Y/n] ")
                if retry is None or retry.strip().lower() in ("n", "no"):
                    break
            continue

        answer = _read_answer_prompt()
        if answer is None:
            print("\nInterview abandoned.")
            return 1
        controller.submit_answer(session, answer)

    for turn in session.turns[shown:]:
        print(f"\n🤖 {turn.text}")

    if session.coins is not None:
        print("=" * 50)
        print(f"🪙 Coins earned: {session.coins}")

    archive = SessionArchive(os.path.join(config.workdir, "sessions"))
    path = archive.save(session)
    print(f"📁 Session saved to: {path}")
    print(f"📈 Session metrics: {metrics.get_metrics()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
