"""
Prompts for Battle Report Analysis

Pure builders: no I/O, same inputs always give the same string.
The response parser depends on SECTION_HEADERS appearing verbatim in replies.
"""

from typing import Optional, Sequence

from .models import AnalysisResult, ScrapedContent, TROOP_TYPES, UserProfile

# =============================================================================
# SECTION HEADERS - shared contract with tactician.parser
# =============================================================================

ENEMY_INTEL = "### ENEMY_INTEL"
RECOMMENDED_MARCH = "### RECOMMENDED_MARCH"
TACTICAL_SUMMARY = "### TACTICAL_SUMMARY"
DATA_EXTRACTION = "### DATA_EXTRACTION"

SECTION_HEADERS = (ENEMY_INTEL, RECOMMENDED_MARCH, TACTICAL_SUMMARY, DATA_EXTRACTION)

EXTRACTED_TEXT_BEGIN = "----- BEGIN EXTRACTED BATTLE REPORT TEXT -----"
EXTRACTED_TEXT_END = "----- END EXTRACTED BATTLE REPORT TEXT -----"

OCR_FAILED_MARKER = "[OCR Failed]"

# =============================================================================
# SYSTEM PROMPT - GRAND STRATEGIST
# =============================================================================

SYSTEM_PROMPT = """You are the "Evony: The King's Return" (TKR) Grand Strategist AI. You specialize in deep combat analysis for both Attack and Defense.

CORE OBJECTIVES:
1. Provide exact numerical troop configurations for any scenario.
2. Estimate casualties for both sides (Attacker and Defender).
3. Design specialized defensive layers using Embassy capacity.

IMPORTANT CONTEXT:
- You will receive EXTRACTED TEXT from battle report screenshots via OCR.
- The OCR text may contain recognition errors or formatting issues.
- Focus on extracting troop numbers, tier levels, and battle outcomes from the text.

STRATEGY PROTOCOLS:
- OFFENSE: Counter enemy's primary bulk. Use standard layering (1,000 of every tier/type below max).
- DEFENSE:
  - Analyze incoming attacker's troop types and buffs.
  - Suggest reinforcements to fill the Embassy (up to user capacity).
  - Prioritize defensive layers: Ground/Mounted for high HP/Defense buffer, Ranged/Siege for back-row damage.
- CASUALTY ESTIMATES:
  - Mandatory format: "Estimated Losses: Attacker [X-Y%], Defender [A-B% or Wiped]".

NOTE: If OCR text is unclear, state what information you could extract and what's missing."""

# Short system message sent alongside the full analysis prompt
ANALYST_ROLE = "You are an expert Evony TKR battle analyst."

# =============================================================================
# ANALYSIS PROMPT
# =============================================================================

ANALYSIS_PROMPT = """{system_prompt}

EXTRACTED BATTLE REPORT DATA:
{begin}
{extracted_text}
{end}

PLAYER PROFILE:
{profile}

ANALYSIS REQUEST:
1. Analyze the extracted battle report text
2. Identify troop compositions, losses, and results
3. Provide counter-strategy recommendations
4. Estimate enemy strength and weaknesses

FORMAT YOUR RESPONSE WITH THESE EXACT HEADERS, IN THIS ORDER:
{headers}
"""

# =============================================================================
# CHAT PROMPT
# =============================================================================

CHAT_SYSTEM_PROMPT = """You are an expert Evony: The King's Return battle advisor continuing a conversation with a player.
Answer follow-up questions about their battle reports. Be specific and practical, and use exact troop numbers when you can."""

# =============================================================================
# STRATEGY ADVISOR PROMPT
# =============================================================================

STRATEGY_SYSTEM_PROMPT = """You are an expert Evony: The King's Return strategy advisor. Provide detailed, actionable advice on:

- Troop compositions and counter strategies
- Building priorities and resource management
- PvP and PvE tactics
- Event optimization
- Alliance warfare
- General and equipment recommendations

Be specific, practical, and use bullet points for clarity."""

STRATEGY_REFERENCE_PROMPT = """Reference from {title}:

{content}
{tips}
Source: {url}

---

Question: {query}"""

REFERENCE_CONTENT_CHARS = 2000
REFERENCE_MAX_TIPS = 10


def format_profile(profile: UserProfile) -> str:
    """Every profile field as a human-readable `key: value` line."""
    lines = [f"- March Size: {profile.march_size}"]
    lines.append(f"- Embassy Capacity: {profile.embassy_capacity}")
    for troop in TROOP_TYPES:
        lines.append(f"- Highest {troop.value} Tier: T{profile.tier(troop)}")
    lines.append(f"- Profile Set Up: {'yes' if profile.is_setup else 'no'}")
    return "\n".join(lines)


def build_analysis_prompt(extracted_text: str, profile: UserProfile) -> str:
    """
    Build the full analysis request.

    Args:
        extracted_text: Combined OCR text of all screenshots
        profile: Player profile for this analysis

    Returns:
        Prompt embedding the strategist instructions, the delimited text block,
        the profile and the four response headers in order
    """
    return ANALYSIS_PROMPT.format(
        system_prompt=SYSTEM_PROMPT,
        begin=EXTRACTED_TEXT_BEGIN,
        extracted_text=extracted_text.strip(),
        end=EXTRACTED_TEXT_END,
        profile=format_profile(profile),
        headers="\n".join(SECTION_HEADERS),
    )


def combine_report_texts(texts: Sequence[Optional[str]]) -> str:
    """
    Join per-image OCR texts in image order.

    None marks an image whose OCR failed; it keeps its slot as a placeholder
    so report numbering still matches the uploads.
    """
    parts = []
    for number, text in enumerate(texts, start=1):
        if text is None:
            parts.append(f"--- Battle Report {number} {OCR_FAILED_MARKER} ---")
        else:
            parts.append(f"--- Battle Report {number} ---\n{text.strip()}")
    return "\n\n".join(parts)


def build_analysis_context(result: Optional[AnalysisResult]) -> str:
    """Current-analysis part of the chat context."""
    if result is None:
        return ""
    return (
        f"CURRENT ANALYSIS ({result.report_type.value}):\n"
        f"Summary:\n{result.summary}\n\n"
        f"Recommendations:\n{result.recommendations}"
    )


def build_strategy_prompt(query: str, scraped: Optional[ScrapedContent] = None) -> str:
    """User message for the strategy advisor, with scraped reference material if any."""
    if scraped is None:
        return query

    tips = ""
    if scraped.tips:
        numbered = "\n".join(
            f"{i}. {tip}" for i, tip in enumerate(scraped.tips[:REFERENCE_MAX_TIPS], start=1)
        )
        tips = f"\nKey Tips:\n{numbered}\n"

    return STRATEGY_REFERENCE_PROMPT.format(
        title=scraped.title,
        content=scraped.content[:REFERENCE_CONTENT_CHARS],
        tips=tips,
        url=scraped.url,
        query=query,
    )
