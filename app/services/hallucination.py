"""Hallucination filter for chunk transcripts.

Whisper-style models invent stock phrases on silence and sometimes pick up
injected ad copy. A chunk is flagged when any heuristic fires; a flagged chunk
keeps its place in the session (and its audio) but its text is emptied.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml

from app.config import get_settings

logger = logging.getLogger("session_scribe")

DEFAULT_PHRASES_FILE = Path(__file__).resolve().parent.parent / "data" / "hallucination_phrases.yaml"
LIST_FIELDS = ("filler_phrases", "provenance_markers", "domain_suffixes", "promotional_phrases", "advertising_phrases")


@dataclass
class HallucinationConfig:
    """Phrase lists driving the filter."""

    short_text_length: int = 100
    filler_phrases: list[str] = field(default_factory=list)
    repeated_phrase: str = "thank you"
    repeated_phrase_limit: int = 3
    provenance_markers: list[str] = field(default_factory=list)
    domain_suffixes: list[str] = field(default_factory=list)
    promotional_phrases: list[str] = field(default_factory=list)
    advertising_phrases: list[str] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "HallucinationConfig":
        """Load a config from YAML. Unknown keys are ignored."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        config = cls(**known)
        # Matching is case-insensitive
        for name in LIST_FIELDS:
            setattr(config, name, [p.lower() for p in getattr(config, name)])
        config.repeated_phrase = config.repeated_phrase.lower()
        return config


@dataclass
class FilterResult:
    """Outcome of filtering one transcript."""

    text: str
    confidence: float
    flagged: bool
    reasons: list[str] = field(default_factory=list)
    original_text: str = ""


class HallucinationFilter:
    """Flags transcripts matching known artifact patterns."""

    def __init__(self, config: HallucinationConfig) -> None:
        self.config = config

    def reasons(self, text: str) -> list[str]:
        """Return the names of every heuristic that fires for text."""
        cfg = self.config
        lowered = text.lower().strip()
        found = []

        if len(text) < cfg.short_text_length and any(p in lowered for p in cfg.filler_phrases):
            found.append("short_filler")

        repeats = lowered.count(cfg.repeated_phrase) if cfg.repeated_phrase else 0
        if repeats >= cfg.repeated_phrase_limit:
            found.append("repeated_phrase")

        if any(marker in lowered for marker in cfg.provenance_markers):
            found.append("provenance_marker")

        has_domain = any(suffix in lowered for suffix in cfg.domain_suffixes)
        if (has_domain and any(p in lowered for p in cfg.promotional_phrases)) or any(
            p in lowered for p in cfg.advertising_phrases
        ):
            found.append("advertising")

        return found

    def is_hallucination(self, text: str) -> bool:
        return bool(self.reasons(text))

    def apply(self, text: str, confidence: float) -> FilterResult:
        """Empty the text and zero the confidence of a flagged transcript."""
        reasons = self.reasons(text)
        if reasons:
            logger.info("Detected likely hallucination %s: %r", reasons, text)
            return FilterResult(text="", confidence=0.0, flagged=True, reasons=reasons, original_text=text)
        return FilterResult(text=text, confidence=confidence, flagged=False, original_text=text)


@lru_cache
def get_hallucination_filter() -> HallucinationFilter:
    """Get cached filter built from the configured phrase file."""
    settings = get_settings()
    path = settings.HALLUCINATION_PHRASES_FILE or DEFAULT_PHRASES_FILE
    return HallucinationFilter(HallucinationConfig.from_yaml(path))
