"""
Response Parser - semi-structured AI reply -> AnalysisResult

Sections are delimited by the sentinel headers from tactician.prompts. A reply
that echoes a header inside another section's body truncates that section at
the echo; parsing stays lenient and only logs out-of-order or missing headers.
"""

import logging
import re
from typing import Dict, Protocol

from config.constants import ANONYMIZED_DATA_MAX_CHARS

from .errors import ResponseParseError
from .models import AnalysisResult, ReportType
from .prompts import (
    DATA_EXTRACTION,
    ENEMY_INTEL,
    RECOMMENDED_MARCH,
    SECTION_HEADERS,
    TACTICAL_SUMMARY,
)

logger = logging.getLogger(__name__)

NO_INTEL = "No intel extracted."
NO_RECOMMENDATIONS = "No specific recommendations."

_HEADER_RE = re.compile("|".join(re.escape(h) for h in SECTION_HEADERS), re.IGNORECASE)

# Report titles as printed on the screenshots; matched against OCR text, never the reply
_REPORT_TITLES = (
    (re.compile(r"alliance\s+war", re.IGNORECASE), ReportType.ALLIANCE_WAR),
    (re.compile(r"scout(?:ing)?\s+report", re.IGNORECASE), ReportType.SCOUT),
    (re.compile(r"defen[cs]e\s+report", re.IGNORECASE), ReportType.DEFENSE),
)


class ResponseParser(Protocol):
    """Anything that turns a raw AI reply into an AnalysisResult."""

    def parse(self, raw_text: str, original_extracted_text: str) -> AnalysisResult:
        ...


def extract_sections(raw_text: str) -> Dict[str, str]:
    """
    Split a reply into its four sections.

    Each header's body runs up to the next known header (of any kind) or the
    end of the text. Only the first occurrence of a header counts.

    Returns:
        Mapping of every header in SECTION_HEADERS to its stripped body
        ("" when the header is absent)
    """
    sections = {header: "" for header in SECTION_HEADERS}
    matches = list(_HEADER_RE.finditer(raw_text))
    order = []

    for i, match in enumerate(matches):
        header = match.group(0).upper()
        if header in order:
            continue
        order.append(header)
        end = matches[i + 1].start() if i + 1 < len(matches) else len(raw_text)
        sections[header] = raw_text[match.end():end].strip()

    missing = [h for h in SECTION_HEADERS if h not in order]
    if missing and order:
        logger.warning(f"AI reply is missing section headers: {', '.join(missing)}")
    expected = [h for h in SECTION_HEADERS if h in order]
    if order != expected:
        logger.warning(f"AI reply headers out of order: {', '.join(order)}")

    return sections


def classify_report_type(raw_text: str, report_text: str = "") -> ReportType:
    """
    Monster if the reply mentions a monster; otherwise a player-vs-player report.

    The PvP kind comes from a report title in the OCR text (report_text) and
    defaults to Attack.
    """
    if "monster" in raw_text.lower():
        return ReportType.MONSTER
    for pattern, report_type in _REPORT_TITLES:
        if pattern.search(report_text or ""):
            return report_type
    return ReportType.ATTACK


class SectionResponseParser:
    """Header-delimited parser for the analysis prompt's reply format."""

    def __init__(self, anonymized_max_chars: int = ANONYMIZED_DATA_MAX_CHARS):
        self.anonymized_max_chars = anonymized_max_chars

    def parse(self, raw_text: str, original_extracted_text: str) -> AnalysisResult:
        """
        Parse one AI reply.

        Raises:
            ResponseParseError: If the reply is empty
        """
        if not raw_text or not raw_text.strip():
            raise ResponseParseError("AI reply was empty")

        sections = extract_sections(raw_text)

        if not any(sections.values()):
            # No usable headers: keep the whole reply as the summary
            logger.warning("AI reply has no recognizable sections; using it as summary")
            summary = raw_text.strip()
        else:
            summary = self._build_summary(sections[ENEMY_INTEL], sections[TACTICAL_SUMMARY])

        anonymized = sections[DATA_EXTRACTION] or original_extracted_text[:self.anonymized_max_chars]

        return AnalysisResult(
            report_type=classify_report_type(raw_text, original_extracted_text),
            summary=summary,
            recommendations=sections[RECOMMENDED_MARCH] or NO_RECOMMENDATIONS,
            anonymized_data=anonymized,
        )

    @staticmethod
    def _build_summary(intel: str, tactical: str) -> str:
        parts = []
        if intel:
            parts.append(f"Enemy Intel:\n{intel}")
        if tactical:
            parts.append(f"Tactical Summary:\n{tactical}")
        return "\n\n".join(parts) or NO_INTEL
