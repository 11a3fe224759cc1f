"""
Structured schemas and parsing for LLM analysis output.
"""
import json
from typing import Optional, Dict, Any, List, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from .models import Judgment, Classification


class JudgmentPayload(BaseModel):
    """Shape of the JSON the analysis prompts ask the LLM to return."""
    confidence: float = Field(ge=0.0, le=1.0)
    classification: Classification = Classification.UNCERTAIN
    accuracy: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    key_indicators: List[str] = Field(default_factory=list)
    reasoning: str = ""
    human_like_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    analysis_summary: str = ""

    @field_validator("classification", mode="before")
    @classmethod
    def normalise_classification(cls, value: Any) -> Any:
        if isinstance(value, str):
            label = value.strip().lower()
            if label in ("human", "ai"):
                return label
        return Classification.UNCERTAIN

    @field_validator("key_indicators", mode="before")
    @classmethod
    def coerce_indicators(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]

    @field_validator("reasoning", "analysis_summary", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    def to_judgment(self) -> Judgment:
        return Judgment(
            confidence=self.confidence,
            classification=self.classification,
            accuracy=self.accuracy,
            indicators=list(self.key_indicators),
            reasoning=self.reasoning,
            human_like_score=self.human_like_score,
            summary=self.analysis_summary,
        )


def extract_json_object(raw_response: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of an LLM response.

    Tries the whole text first, then the outermost ``{...}`` substring.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    try:
        data = json.loads(raw_response)
    except json.JSONDecodeError:
        start = raw_response.find("{")
        end = raw_response.rfind("}")
        if start != -1 and end != -1 and end > start:
            try:
                data = json.loads(raw_response[start:end + 1])
            except json.JSONDecodeError:
                raise ValueError(f"Could not extract valid JSON from LLM response: {raw_response}")
        else:
            raise ValueError(f"No JSON found in LLM response: {raw_response}")

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def parse_judgment(raw: Union[str, Dict[str, Any]]) -> Judgment:
    """
    Validate analyzer output and convert it into a Judgment.

    Args:
        raw: Parsed JSON dict or raw LLM text

    Returns:
        Judgment object

    Raises:
        ValueError: If the output is not JSON or fails validation
    """
    data = extract_json_object(raw) if isinstance(raw, str) else raw
    # Older prompts answered with "indicators"/"summary" instead of the long names
    if "indicators" in data and "key_indicators" not in data:
        data = dict(data, key_indicators=data["indicators"])
    if "summary" in data and "analysis_summary" not in data:
        data = dict(data, analysis_summary=data["summary"])

    try:
        payload = JudgmentPayload.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid judgment structure: {e}")
    return payload.to_judgment()
