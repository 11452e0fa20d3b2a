"""Analysis profiles: the two product variants of one pipeline.

QuickAnalyze reads only the submitted page; DeepAnalyze crawls the site and
asks the model for a reasoned, longer assessment.  Everything else (fetcher,
extractor, analyzer, cache) is shared.
"""

from __future__ import annotations

from dataclasses import dataclass

from linkray.analysis.prompts import DEEP_PROMPT, QUICK_PROMPT, PromptTemplate
from linkray.config import Settings
from linkray.db.models import MODE_DEEP, MODE_QUICK


@dataclass(frozen=True)
class AnalysisProfile:
    mode: str
    max_pages: int
    template: PromptTemplate
    page_chars: int
    # Single-page scans report why the page could not be fetched; crawls
    # report only that nothing usable was found.
    surface_fetch_errors: bool = False

    @property
    def accepted_modes(self) -> tuple[str, ...]:
        """Cached modes that may answer this profile; a deep row also answers quick."""
        return (MODE_QUICK, MODE_DEEP) if self.mode == MODE_QUICK else (MODE_DEEP,)

    def satisfied_by(self, cached_mode: str) -> bool:
        return cached_mode in self.accepted_modes


def quick_profile(cfg: Settings) -> AnalysisProfile:
    return AnalysisProfile(
        mode=MODE_QUICK,
        max_pages=1,
        template=QUICK_PROMPT,
        page_chars=cfg.quick_page_chars,
        surface_fetch_errors=True,
    )


def deep_profile(cfg: Settings) -> AnalysisProfile:
    return AnalysisProfile(
        mode=MODE_DEEP,
        max_pages=cfg.deep_max_pages,
        template=DEEP_PROMPT,
        page_chars=cfg.deep_page_chars,
    )
