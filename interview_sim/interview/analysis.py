"""
Answer and transcript analysis.

A response analyzer judges a single answer in the context of its question, or
a whole transcript at the end of a session. Every failure mode (transport,
timeout, malformed or out-of-range output) surfaces as AnalysisUnavailable so
the session loop can treat them identically.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from ..errors import AnalysisUnavailable
from .models import Judgment
from .prompts import PromptRegistry
from .schemas import parse_judgment

logger = logging.getLogger("response_analyzer")


class ResponseAnalyzer(ABC):
    """Judges authenticity and accuracy of candidate answers."""

    @abstractmethod
    def analyze_answer(self, answer_text: str, context: Dict[str, Any]) -> Judgment:
        """
        Analyze one answer.

        Args:
            answer_text: The candidate's answer
            context: ``{"question": ..., "domain": ..., "level": ...}``

        Raises:
            AnalysisUnavailable: If no valid judgment could be produced
        """

    @abstractmethod
    def analyze_transcript(self, transcript: str, context: Dict[str, Any]) -> Judgment:
        """
        Analyze a whole interview transcript.

        Args:
            transcript: 'Interviewer: ...' / 'Candidate: ...' lines
            context: ``{"domain": ..., "level": ...}``

        Raises:
            AnalysisUnavailable: If no valid judgment could be produced
        """


class LLMResponseAnalyzer(ResponseAnalyzer):
    """Response analyzer backed by an LLM JSON call."""

    def __init__(self, llm_client, prompts: Optional[PromptRegistry] = None):
        self.llm_client = llm_client
        self.prompts = prompts or PromptRegistry()

    def analyze_answer(self, answer_text: str, context: Dict[str, Any]) -> Judgment:
        prompt = self.prompts.render(
            "analyze_answer",
            domain=context.get("domain", ""),
            level=context.get("level", ""),
            question=context.get("question") or "",
            answer=answer_text,
        )
        return self._judge(prompt, "answer")

    def analyze_transcript(self, transcript: str, context: Dict[str, Any]) -> Judgment:
        prompt = self.prompts.render(
            "detect_transcript",
            domain=context.get("domain", ""),
            level=context.get("level", ""),
            turn_count=context.get("turn_count", transcript.count("\n\n") + 1 if transcript else 0),
            transcript=transcript,
        )
        return self._judge(prompt, "transcript")

    def _judge(self, prompt: str, mode: str) -> Judgment:
        try:
            raw = self.llm_client.generate_json(prompt)
            judgment = parse_judgment(raw)
        except Exception as e:
            logger.error("%s analysis failed: %s", mode.capitalize(), e)
            raise AnalysisUnavailable(f"{mode} analysis unavailable: {e}") from e

        logger.info(
            "%s analysis: %s (confidence %.2f, accuracy %s)",
            mode.capitalize(), judgment.classification.value, judgment.confidence, judgment.accuracy
        )
        return judgment
