"""
Interview prompt templates.

Every prompt sent to the LLM is a named template plus a substitution map.
Rendering is pure: no I/O, no state, and a missing value raises ``KeyError``
instead of producing a half-filled prompt.
"""
from dataclasses import dataclass
from string import Template
from typing import Dict, Any, List, Mapping, Optional, Sequence


@dataclass(frozen=True)
class PromptTemplate:
    """A named prompt with ``$placeholder`` fields."""
    name: str
    template: str

    @property
    def fields(self) -> List[str]:
        """Placeholder names used by the template, in order of first use."""
        seen: List[str] = []
        for match in Template.pattern.finditer(self.template):
            name = match.group("named") or match.group("braced")
            if name and name not in seen:
                seen.append(name)
        return seen

    def render(self, values: Mapping[str, Any]) -> str:
        return Template(self.template).substitute(values).strip()


ASK_QUESTION = PromptTemplate("ask_question", """
You are $role, conducting a technical interview for a $level level candidate.

DOMAIN: $domain
LEVEL: $level
CURRENT QUESTION: "$question"

INTERVIEW INSTRUCTIONS:
1. Ask this question clearly and professionally
2. Adapt the phrasing based on the candidate's level ($level)
3. Maintain your role as $role
4. Be concise but clear
5. Do not provide hints or answers
6. Wait for the candidate's response

$history
Ask the question now:
""")

INTRODUCTION = PromptTemplate("introduction", """
You are $role, conducting a technical interview for a $level level candidate.

Generate a welcoming introduction that includes:
1. A warm, professional greeting with your role
2. Brief overview of what to expect in the interview
3. Clear expectations and basic requirements
4. Mention that responses should be authentic and in their own words
5. An encouraging tone to reduce anxiety
6. Smooth transition to the first question

Requirements:
- Keep it under 150 words
- Sound human and approachable
- Be domain-appropriate for $domain
- Level-appropriate for $level candidate

Generate a natural, conversational introduction:
""")

ANALYZE_ANSWER = PromptTemplate("analyze_answer", """
You are an AI detection specialist analyzing technical interview responses. Your task is to identify if the CANDIDATE's answer shows signs of AI assistance, and to grade its technical correctness.

CRITICAL ANALYSIS GUIDELINES:
- Focus ONLY on the CANDIDATE's response (ignore the interviewer question)
- Technical interviews often have precise, well-structured answers - this doesn't automatically mean AI
- Look for UNNATURAL patterns, not just "good" answers

KEY AI INDICATORS TO DETECT:
1. UNNATURAL CONSISTENCY: Perfect grammar and structure regardless of question complexity
2. LACK OF PERSONALIZATION: No specific examples, anecdotes, or personal experiences
3. GENERIC RESPONSES: Answers that could apply to any similar question without specificity
4. UNNATURAL DEPTH: Beginner candidates giving expert-level comprehensive answers
5. REPETITIVE PATTERNS: Same sentence structures, transition words, or phrasing patterns
6. MISSING HUMAN ELEMENTS: No hesitation markers, self-correction, or natural conversational flow

INTERVIEW CONTEXT:
- Domain: $domain
- Expected Level: $level
- Candidate should have $level-appropriate knowledge

QUESTION: $question
CANDIDATE'S ANSWER: $answer

Respond with STRICT JSON format only:
{
  "confidence": 0.0 to 1.0,
  "classification": "human" or "ai",
  "accuracy": 0.0 to 1.0 (technical correctness of the answer, independent of authenticity),
  "key_indicators": ["specific pattern 1", "pattern 2"],
  "reasoning": "Detailed analysis focusing on why this classification was chosen"
}
""")

DETECT_TRANSCRIPT = PromptTemplate("detect_transcript", """
Analyze the following interview transcript and determine if the CANDIDATE's responses show signs of AI assistance or generation.

INTERVIEW CONTEXT:
- Domain: $domain
- Level: $level
- Total conversation turns: $turn_count

FULL TRANSCRIPT:
$transcript

ANALYSIS CRITERIA:
1. Response Patterns: Look for unusually consistent sentence structure, perfect grammar, or lack of human hesitation
2. Content Depth: Check if answers are overly generic or lack personal experience examples
3. Timing Patterns: Note if responses show artificial consistency in length and complexity
4. Domain Knowledge: Assess if answers match the expected level for $level level
5. Conversational Flow: Look for unnatural transitions or overly structured responses

RESPONSE FORMAT (JSON only):
{
  "confidence": 0.85,
  "classification": "human" | "ai",
  "key_indicators": ["indicator1", "indicator2"],
  "reasoning": "Brief explanation of the classification decision",
  "human_like_score": 0.75,
  "analysis_summary": "Short summary of findings"
}

Provide ONLY the JSON response, no additional text.
""")

INTERVIEWER_SYSTEM_PROMPT = "You are a technical interviewer. Stay in character and ask questions clearly."


class PromptRegistry:
    """Named prompt templates with per-instance overrides."""

    DEFAULTS = (ASK_QUESTION, INTRODUCTION, ANALYZE_ANSWER, DETECT_TRANSCRIPT)

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        self._templates: Dict[str, PromptTemplate] = {t.name: t for t in self.DEFAULTS}
        for name, text in (overrides or {}).items():
            self.register(PromptTemplate(name, text))

    def register(self, template: PromptTemplate) -> None:
        self._templates[template.name] = template

    def get(self, name: str) -> PromptTemplate:
        try:
            return self._templates[name]
        except KeyError:
            raise KeyError(f"Unknown prompt template: {name}")

    def render(self, name: str, **values: Any) -> str:
        return self.get(name).render(values)

    def names(self) -> List[str]:
        return sorted(self._templates)


def format_history(history: Sequence[str], limit: Optional[int] = None) -> str:
    """Render prior transcript lines as a CONVERSATION HISTORY block ('' when empty)."""
    lines = list(history)
    if limit is not None:
        lines = lines[-limit:] if limit > 0 else []
    if not lines:
        return ""
    return "CONVERSATION HISTORY:\n" + "\n".join(lines) + "\n"
