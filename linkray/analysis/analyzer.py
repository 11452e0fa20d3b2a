"""AI analyzer with ordered model fallback.

``AIAnalyzer.analyze`` renders one prompt and submits it to each backend in
turn until one replies with a JSON object.  A backend that raises, or whose
reply does not parse into an object, is skipped.  This fallback walk is the
only retry mechanism in the pipeline.

What happens when every backend has failed is decided in exactly one place,
:meth:`AIAnalyzer._on_exhausted`, according to the analyzer's
:class:`FailurePolicy`.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Any, Optional, Sequence

from linkray.analysis.backends import ModelBackend
from linkray.analysis.models import SAFE_DEFAULT_RESULT, AnalysisResult
from linkray.analysis.prompts import QUICK_PROMPT, PromptTemplate
from linkray.errors import AIAnalysisFailedError
from linkray.scraper.models import ScrapedContent

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


class FailurePolicy(str, Enum):
    RAISE = "raise"
    SAFE_DEFAULT = "safe_default"


class InvalidModelResponse(ValueError):
    """The backend replied, but not with a JSON object."""


def parse_model_json(text: str) -> dict[str, Any]:
    """Parse a model reply into a dict, tolerating markdown code fences.

    Raises:
        InvalidModelResponse: If the cleaned text is not a JSON object.
    """
    cleaned = _FENCE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise InvalidModelResponse(f"reply is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise InvalidModelResponse(f"expected a JSON object, got {type(data).__name__}")
    return data


class AIAnalyzer:
    """Submit extracted site content to a ranked list of model backends."""

    def __init__(
        self,
        backends: Sequence[ModelBackend],
        policy: FailurePolicy = FailurePolicy.RAISE,
    ) -> None:
        self.backends = list(backends)
        self.policy = FailurePolicy(policy)

    def analyze(
        self,
        content: ScrapedContent,
        template: PromptTemplate = QUICK_PROMPT,
    ) -> AnalysisResult:
        """Return the normalized result from the first backend that answers.

        Raises:
            AIAnalysisFailedError: All backends failed and the policy is
                :attr:`FailurePolicy.RAISE`.
        """
        prompt = template.render(content)
        last_error: Optional[Exception] = None

        for backend in self.backends:
            try:
                raw = parse_model_json(backend.complete(prompt))
            except Exception as exc:  # noqa: BLE001
                logger.warning("Model %s failed: %r", backend.name, exc)
                last_error = exc
                continue

            logger.info("Model %s produced an analysis", backend.name)
            return AnalysisResult.from_model_output(raw, wants_reason=template.wants_reason)

        return self._on_exhausted(last_error)

    def _on_exhausted(self, last_error: Optional[Exception]) -> AnalysisResult:
        logger.error(
            "All %d model backend(s) failed; last error: %r", len(self.backends), last_error
        )
        if self.policy is FailurePolicy.SAFE_DEFAULT:
            return SAFE_DEFAULT_RESULT.model_copy(deep=True)
        raise AIAnalysisFailedError()
