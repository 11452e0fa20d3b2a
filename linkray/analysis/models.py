"""Schema for the analyzer's output.

Model replies are loosely shaped JSON.  :class:`AnalysisResult` applies all
coercion and defaulting in its validators, so every instance has an integer
score in [0, 100], at most five tags and non-empty text fields.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SUMMARY = "Unable to generate summary"
DEFAULT_CATEGORY = "Unknown"
DEFAULT_REASON = "No explanation provided."
DEFAULT_RISK_SCORE = 50
MAX_TAGS = 5


def _text_or(value: Any, default: str) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


class AnalysisResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: str = DEFAULT_SUMMARY
    risk_score: int = DEFAULT_RISK_SCORE
    reason: Optional[str] = None
    category: str = DEFAULT_CATEGORY
    tags: list[str] = Field(default_factory=list)

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, value: Any) -> str:
        return _text_or(value, DEFAULT_SUMMARY)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> str:
        return _text_or(value, DEFAULT_CATEGORY)

    @field_validator("reason", mode="before")
    @classmethod
    def _reason(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return _text_or(value, DEFAULT_REASON)

    @field_validator("risk_score", mode="before")
    @classmethod
    def _risk_score(cls, value: Any) -> int:
        """Coerce to an int in [0, 100]; anything unusable becomes 50."""
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return DEFAULT_RISK_SCORE
        try:
            number = float(value.strip() if isinstance(value, str) else value)
        except (ValueError, OverflowError):
            return DEFAULT_RISK_SCORE
        if not math.isfinite(number):
            return DEFAULT_RISK_SCORE
        return max(0, min(100, int(round(number))))

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        tags: list[str] = []
        for item in value:
            if item is None or isinstance(item, (dict, list)):
                continue
            tag = str(item).strip()
            if tag:
                tags.append(tag)
        return tags[:MAX_TAGS]

    @classmethod
    def from_model_output(cls, raw: dict[str, Any], wants_reason: bool = False) -> "AnalysisResult":
        """Build a result from a parsed model reply.

        ``reason`` is only kept (and defaulted) when the prompt asked for it.
        """
        data = dict(raw)
        if wants_reason:
            data["reason"] = _text_or(data.get("reason"), DEFAULT_REASON)
        else:
            data.pop("reason", None)
        return cls.model_validate(data)


SAFE_DEFAULT_RESULT = AnalysisResult(
    summary="Unable to analyze this website content.",
    risk_score=DEFAULT_RISK_SCORE,
    category=DEFAULT_CATEGORY,
    tags=["unanalyzed"],
)
