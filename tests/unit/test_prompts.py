"""
Unit tests for tactician/prompts.py
"""
from tactician.models import AnalysisResult, ReportType, ScrapedContent
from tactician.prompts import (
    EXTRACTED_TEXT_BEGIN,
    EXTRACTED_TEXT_END,
    SECTION_HEADERS,
    SYSTEM_PROMPT,
    build_analysis_context,
    build_analysis_prompt,
    build_strategy_prompt,
    combine_report_texts,
)


class TestBuildAnalysisPrompt:

    def test_headers_present_in_order(self, profile):
        prompt = build_analysis_prompt("Ground T12 x 5000", profile)

        positions = [prompt.rfind(h) for h in SECTION_HEADERS]
        assert all(p >= 0 for p in positions)
        assert positions == sorted(positions)

    def test_every_profile_field_present(self, profile):
        prompt = build_analysis_prompt("text", profile)

        assert "March Size: 350000" in prompt
        assert "Embassy Capacity: 1200000" in prompt
        assert "Highest Ground Tier: T14" in prompt
        assert "Highest Ranged Tier: T13" in prompt
        assert "Highest Mounted Tier: T12" in prompt
        assert "Highest Siege Tier: T11" in prompt
        assert "Profile Set Up: yes" in prompt

    def test_extracted_text_is_delimited(self, profile):
        prompt = build_analysis_prompt("  Siege T10 x 300  ", profile)

        begin = prompt.index(EXTRACTED_TEXT_BEGIN)
        end = prompt.index(EXTRACTED_TEXT_END)
        assert begin < prompt.index("Siege T10 x 300") < end

    def test_embeds_system_prompt(self, profile):
        assert build_analysis_prompt("x", profile).startswith(SYSTEM_PROMPT)

    def test_deterministic(self, profile):
        assert build_analysis_prompt("x", profile) == build_analysis_prompt("x", profile)


class TestCombineReportTexts:

    def test_numbered_in_order_with_placeholder(self):
        combined = combine_report_texts(["first", None, "third"])

        assert combined == (
            "--- Battle Report 1 ---\nfirst\n\n"
            "--- Battle Report 2 [OCR Failed] ---\n\n"
            "--- Battle Report 3 ---\nthird"
        )

    def test_empty(self):
        assert combine_report_texts([]) == ""


class TestContextPrompts:

    def test_analysis_context(self):
        result = AnalysisResult(ReportType.DEFENSE, "intel here", "march here", "data")
        context = build_analysis_context(result)

        assert "CURRENT ANALYSIS (Defense)" in context
        assert "intel here" in context
        assert "march here" in context

    def test_no_analysis_no_context(self):
        assert build_analysis_context(None) == ""

    def test_strategy_prompt_without_reference(self):
        assert build_strategy_prompt("best T12 counter?") == "best T12 counter?"

    def test_strategy_prompt_with_reference(self):
        scraped = ScrapedContent(
            title="Troop Guide",
            content="x" * 3000,
            tips=tuple(f"tip number {i} with enough words" for i in range(12)),
            url="https://evonyguidewiki.com/troops",
        )

        prompt = build_strategy_prompt("what counters siege?", scraped)

        assert prompt.startswith("Reference from Troop Guide:")
        assert "x" * 2000 in prompt and "x" * 2001 not in prompt
        assert "10. tip number 9" in prompt
        assert "tip number 10" not in prompt
        assert "Source: https://evonyguidewiki.com/troops" in prompt
        assert prompt.endswith("Question: what counters siege?")
