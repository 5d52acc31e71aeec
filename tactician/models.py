"""
Domain models for battle report analysis.

UserProfile and AnalysisResult are immutable; ChatMessage is the one
mutable record, and only until its stream finishes.
"""

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from config.constants import MAX_TIER, MIN_TIER


class TroopType(Enum):
    GROUND = "Ground"
    RANGED = "Ranged"
    MOUNTED = "Mounted"
    SIEGE = "Siege"


TROOP_TYPES = tuple(TroopType)


class ReportType(Enum):
    ATTACK = "Attack"
    DEFENSE = "Defense"
    ALLIANCE_WAR = "Alliance War"
    SCOUT = "Scout"
    MONSTER = "Monster"
    UNKNOWN = "Unknown"


class ChatRole(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class UserProfile:
    """Player profile supplied by the surrounding app, read-only here."""
    highest_tiers: Mapping[TroopType, int]
    march_size: int
    embassy_capacity: int
    is_setup: bool = True

    def __post_init__(self):
        missing = [t.value for t in TROOP_TYPES if t not in self.highest_tiers]
        if missing:
            raise ValueError(f"Missing tier for troop types: {', '.join(missing)}")
        for troop, tier in self.highest_tiers.items():
            if not MIN_TIER <= int(tier) <= MAX_TIER:
                raise ValueError(
                    f"{troop.value} tier must be between {MIN_TIER} and {MAX_TIER}, got {tier}"
                )
        if self.march_size < 0:
            raise ValueError("march_size must be non-negative")
        if self.embassy_capacity < 0:
            raise ValueError("embassy_capacity must be non-negative")
        # Freeze the mapping so the profile cannot drift between calls
        object.__setattr__(self, "highest_tiers", dict(self.highest_tiers))

    def tier(self, troop: TroopType) -> int:
        return self.highest_tiers[troop]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserProfile":
        """Build from the app's stored record (camelCase or snake_case keys)."""
        raw_tiers = data.get("highestTiers", data.get("highest_tiers", {}))
        tiers = {}
        for key, value in raw_tiers.items():
            troop = key if isinstance(key, TroopType) else TroopType(str(key).capitalize())
            tiers[troop] = int(value)
        return cls(
            highest_tiers=tiers,
            march_size=int(data.get("marchSize", data.get("march_size", 0))),
            embassy_capacity=int(data.get("embassyCapacity", data.get("embassy_capacity", 0))),
            is_setup=bool(data.get("isSetup", data.get("is_setup", True))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "highestTiers": {t.value: tier for t, tier in self.highest_tiers.items()},
            "marchSize": self.march_size,
            "embassyCapacity": self.embassy_capacity,
            "isSetup": self.is_setup,
        }


@dataclass(frozen=True)
class RawImage:
    """An uploaded screenshot. index is only used for user-facing numbering."""
    data: bytes
    mime_type: str = "image/png"
    index: int = 0

    @classmethod
    def from_data_url(cls, data_url: str, index: int = 0) -> "RawImage":
        """Decode a 'data:image/png;base64,...' URL."""
        header, sep, payload = data_url.partition(",")
        if not sep or not header.startswith("data:"):
            raise ValueError("Not a data URL")
        mime_type = header[5:].split(";")[0] or "image/png"
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 image payload: {e}") from e
        return cls(data=data, mime_type=mime_type, index=index)

    @classmethod
    def from_bytes(cls, data: bytes, index: int = 0, mime_type: str = "image/png") -> "RawImage":
        return cls(data=data, mime_type=mime_type, index=index)


@dataclass(frozen=True)
class OcrResult:
    text: str
    confidence: float  # 0-100


@dataclass(frozen=True)
class Source:
    title: str
    uri: str


@dataclass(frozen=True)
class AnalysisResult:
    report_type: ReportType
    summary: str
    recommendations: str
    anonymized_data: str
    sources: Tuple[Source, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reportType": self.report_type.value,
            "summary": self.summary,
            "recommendations": self.recommendations,
            "anonymizedData": self.anonymized_data,
            "sources": [{"title": s.title, "uri": s.uri} for s in self.sources],
        }


@dataclass
class ChatMessage:
    """
    One turn of a chat session.

    Assistant messages grow in place while their stream is in flight and
    are frozen with finalize() once it ends.
    """
    role: ChatRole
    content: str = ""
    finalized: bool = field(default=False, compare=False)

    def append(self, fragment: str) -> None:
        self._check_mutable()
        self.content += fragment

    def replace(self, content: str) -> None:
        self._check_mutable()
        self.content = content

    def finalize(self) -> None:
        self.finalized = True

    def _check_mutable(self) -> None:
        if self.finalized:
            raise RuntimeError("ChatMessage is finalized")

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=ChatRole.USER, content=content, finalized=True)

    @classmethod
    def assistant(cls, content: str = "", finalized: bool = False) -> "ChatMessage":
        return cls(role=ChatRole.ASSISTANT, content=content, finalized=finalized)


@dataclass(frozen=True)
class ScrapedContent:
    title: str
    content: str
    tips: Tuple[str, ...]
    url: str


@dataclass(frozen=True)
class StrategyAnswer:
    response: str
    source: Optional[ScrapedContent] = None
