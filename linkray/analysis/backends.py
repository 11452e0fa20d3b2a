"""Generative-AI model backends for the analyzer's fallback list.

Each backend wraps exactly one model identifier.  The analyzer walks an
ordered list of backends and stops at the first usable answer, so the list
order is the quota order: most generous free tiers first.

Providers
---------
``gemini`` (default)
    Google Generative AI via ``langchain-google-genai``.  Requires
    ``GOOGLE_API_KEY`` (or ``GEMINI_API_KEY``).

``openai``
    ``langchain-openai``.  Requires ``OPENAI_API_KEY``.

``ollama``
    Local Ollama server via ``langchain-ollama``; configure
    ``OLLAMA_BASE_URL``.

A fallback entry may pin its own provider with ``provider:model``; bare
entries use ``settings.llm_provider``.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, Optional

from linkray.config import Settings, settings as default_settings

_PROVIDERS = ("gemini", "openai", "ollama")


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class ModelBackend(ABC):
    """One entry of the fallback list."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier used in logs, e.g. ``gemini:gemma-3-27b-it``."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Send *prompt* and return the raw text of the model's reply.

        May raise any exception; the analyzer treats it as a failure of this
        backend and moves on.
        """


# ---------------------------------------------------------------------------
# LangChain implementation
# ---------------------------------------------------------------------------

def _get_llm(provider: str, model: str, ollama_base_url: str) -> Any:
    """Return a LangChain chat model asked to reply with JSON only."""
    if provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=model,
            temperature=0,
            model_kwargs={"response_format": {"type": "json_object"}},
        )

    if provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(model=model, temperature=0, format="json", base_url=ollama_base_url)

    from langchain_google_genai import ChatGoogleGenerativeAI

    kwargs: dict[str, Any] = {}
    api_key = os.environ.get("GOOGLE_API_KEY") or os.environ.get("GEMINI_API_KEY")
    if api_key:
        kwargs["google_api_key"] = api_key
    return ChatGoogleGenerativeAI(
        model=model,
        temperature=0,
        response_mime_type="application/json",
        **kwargs,
    )


class LangChainBackend(ModelBackend):
    """A single provider/model pair invoked through LangChain."""

    def __init__(self, provider: str, model: str, ollama_base_url: str = "") -> None:
        if provider not in _PROVIDERS:
            raise ValueError(f"Unknown LLM provider {provider!r}; use one of {_PROVIDERS}")
        self.provider = provider
        self.model = model
        self._ollama_base_url = ollama_base_url
        self._llm: Optional[Any] = None

    @property
    def name(self) -> str:
        return f"{self.provider}:{self.model}"

    def complete(self, prompt: str) -> str:
        if self._llm is None:
            self._llm = _get_llm(self.provider, self.model, self._ollama_base_url)
        response = self._llm.invoke(prompt)
        content = response.content if hasattr(response, "content") else response
        if isinstance(content, list):
            # Some providers return content blocks rather than a plain string.
            content = "".join(
                block.get("text", "") if isinstance(block, dict) else str(block)
                for block in content
            )
        return str(content)

    def __repr__(self) -> str:
        return f"LangChainBackend({self.name!r})"


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def parse_backend_spec(entry: str, default_provider: str) -> tuple[str, str]:
    """Split ``"provider:model"`` into its parts; bare model names get *default_provider*."""
    provider, sep, model = entry.partition(":")
    if sep and provider in _PROVIDERS:
        return provider, model
    return default_provider, entry


def build_backends(cfg: Optional[Settings] = None) -> list[ModelBackend]:
    """Return the ordered fallback list described by ``AI_MODEL_FALLBACKS``."""
    cfg = cfg or default_settings
    backends: list[ModelBackend] = []
    for entry in cfg.ai_model_fallbacks:
        provider, model = parse_backend_spec(entry, cfg.llm_provider)
        backends.append(LangChainBackend(provider, model, ollama_base_url=cfg.ollama_base_url))
    return backends
