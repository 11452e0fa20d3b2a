"""AI analysis package: prompts, model backends and the fallback analyzer."""

from linkray.analysis.analyzer import AIAnalyzer, FailurePolicy
from linkray.analysis.backends import LangChainBackend, ModelBackend, build_backends
from linkray.analysis.models import AnalysisResult
from linkray.analysis.prompts import DEEP_PROMPT, QUICK_PROMPT, PromptTemplate

__all__ = [
    "AIAnalyzer",
    "FailurePolicy",
    "ModelBackend",
    "LangChainBackend",
    "build_backends",
    "AnalysisResult",
    "PromptTemplate",
    "QUICK_PROMPT",
    "DEEP_PROMPT",
]
