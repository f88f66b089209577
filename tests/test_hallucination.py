"""Tests for the hallucination filter."""

import pytest

from app.services.hallucination import (
    DEFAULT_PHRASES_FILE,
    HallucinationConfig,
    HallucinationFilter,
    get_hallucination_filter,
)


@pytest.fixture(name="hfilter")
def hfilter_fixture() -> HallucinationFilter:
    return HallucinationFilter(HallucinationConfig.from_yaml(DEFAULT_PHRASES_FILE))


class TestHeuristics:
    """Each heuristic on its own."""

    def test_short_filler_flagged(self, hfilter: HallucinationFilter):
        assert hfilter.reasons("Thanks for watching!") == ["short_filler"]

    def test_long_text_with_filler_not_flagged(self, hfilter: HallucinationFilter):
        text = (
            "We went over the housing application in detail and agreed that the landlord letter "
            "is the missing piece, so I will call the office on Monday. Bye for now."
        )
        assert len(text) >= 100
        assert hfilter.reasons(text) == []

    def test_repeated_thank_you_flagged(self, hfilter: HallucinationFilter):
        text = "Thank you. " * 3 + "We covered a lot of ground today and the plan for next week is clear."
        assert "repeated_phrase" in hfilter.reasons(text)

    def test_provenance_marker_flagged_regardless_of_length(self, hfilter: HallucinationFilter):
        text = "x" * 200 + " Transcribed by Otter.ai"
        assert "provenance_marker" in hfilter.reasons(text)

    def test_domain_with_promotional_phrase_flagged(self, hfilter: HallucinationFilter):
        text = "x" * 120 + " Visit example.com today"
        assert "advertising" in hfilter.reasons(text)

    def test_domain_without_promotion_not_flagged(self, hfilter: HallucinationFilter):
        text = "She said she applied through the benefits portal at gov.org last week and is waiting on it."
        assert hfilter.reasons(text) == []

    def test_known_ad_phrase_flagged(self, hfilter: HallucinationFilter):
        assert "advertising" in hfilter.reasons("x" * 150 + " beadaholique")

    def test_matching_is_case_insensitive(self, hfilter: HallucinationFilter):
        assert hfilter.is_hallucination("THANK YOU VERY MUCH")


class TestApply:
    """Tests for suppression."""

    def test_flagged_text_is_emptied_with_zero_confidence(self, hfilter: HallucinationFilter):
        result = hfilter.apply("Thank you.", 0.95)
        assert result.flagged
        assert result.text == ""
        assert result.confidence == 0.0
        assert result.original_text == "Thank you."

    def test_clean_text_is_unchanged(self, hfilter: HallucinationFilter):
        result = hfilter.apply("How have you been sleeping lately?", 0.95)
        assert not result.flagged
        assert result.text == "How have you been sleeping lately?"
        assert result.confidence == 0.95

    def test_apply_is_idempotent(self, hfilter: HallucinationFilter):
        for text in ("Thank you.", "How have you been sleeping lately?", "Transcribed by Otter.ai"):
            once = hfilter.apply(text, 0.9)
            twice = hfilter.apply(once.text, once.confidence)
            assert (twice.text, twice.confidence) == (once.text, once.confidence)


class TestConfig:
    """Tests for phrase list loading."""

    def test_custom_yaml(self, tmp_path):
        path = tmp_path / "phrases.yaml"
        path.write_text("filler_phrases:\n  - Lorem Ipsum\nunknown_key: 1\n", encoding="utf-8")
        hfilter = HallucinationFilter(HallucinationConfig.from_yaml(path))
        assert hfilter.is_hallucination("lorem ipsum dolor")
        assert not hfilter.is_hallucination("Thanks for watching")

    def test_default_filter_is_cached(self):
        assert get_hallucination_filter() is get_hallucination_filter()
