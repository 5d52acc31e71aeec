"""
Battle History - SQLite persistence for analyzed battles.

Public analysis (type, summary, recommendations, troop composition) can be
shared with the community; raw OCR text and the profile snapshot stay private
to the owner. Reads never raise: a database error yields an empty result.
"""

import asyncio
import json
import logging
import re
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from config.constants import HISTORY_CONTEXT_LIMIT

from .models import AnalysisResult, ReportType, TROOP_TYPES, UserProfile

logger = logging.getLogger(__name__)

_TROOP_PATTERNS = {
    troop.value.lower(): re.compile(rf"{troop.value}.*?T(\d+)", re.IGNORECASE)
    for troop in TROOP_TYPES
}

_PUBLIC_COLUMNS = "id, report_type, summary, recommendations, troop_composition_json, created_at"

SUMMARY_PREVIEW_CHARS = 200
STRATEGY_PREVIEW_CHARS = 180
COMMUNITY_CONTEXT_LIMIT = 3


@dataclass
class BattleRecord:
    """A stored battle. Private fields are only filled for the owner's own queries."""
    id: int
    report_type: str
    summary: str
    recommendations: str
    troop_composition: Dict[str, List[str]] = field(default_factory=dict)
    created_at: str = ""
    original_ocr: Optional[List[str]] = None
    profile_snapshot: Optional[Dict[str, Any]] = None


class BattleHistoryStore(Protocol):
    """Persistence collaborator used by the orchestrator and chat."""

    async def save_analysis(
        self,
        user_id: str,
        result: AnalysisResult,
        raw_texts: Sequence[str],
        profile: UserProfile,
        share: bool = True,
    ) -> None:
        ...

    async def find_relevant_history(self, user_id: str, keywords: Sequence[str]) -> List[BattleRecord]:
        ...

    async def build_context(self, user_id: str, keywords: Sequence[str]) -> str:
        ...


def extract_troop_composition(texts: Sequence[str]) -> Dict[str, List[str]]:
    """
    Tier numbers per troop type, without player names.

    >>> extract_troop_composition(["Ground Troops T12 x 50000"])
    {'ground': ['12'], 'ranged': [], 'mounted': [], 'siege': []}
    """
    composition = {name: [] for name in _TROOP_PATTERNS}
    for text in texts:
        for name, pattern in _TROOP_PATTERNS.items():
            match = pattern.search(text)
            if match:
                composition[name].append(match.group(1))
    return composition


def format_battles_for_context(battles: Sequence[BattleRecord], source: str = "personal") -> str:
    """Render battles as an AI context block ('personal' or 'community')."""
    if not battles:
        return ""

    header = "YOUR PAST BATTLES" if source == "personal" else "COMMUNITY KNOWLEDGE (Anonymous)"
    lines = [f"{header} ({len(battles)} battles):"]

    for i, battle in enumerate(battles, start=1):
        lines.append("")
        lines.append(f"--- Battle {i} ({battle.created_at[:10]}) ---")
        lines.append(f"Type: {battle.report_type}")
        lines.append(f"Analysis: {_preview(battle.summary, SUMMARY_PREVIEW_CHARS)}")
        lines.append(f"Strategy: {_preview(battle.recommendations, STRATEGY_PREVIEW_CHARS)}")
        if any(battle.troop_composition.values()):
            lines.append(f"Troops: {json.dumps(battle.troop_composition)}")

    if source == "community":
        lines.append("")
        lines.append("Note: This is AI analysis only - no player identities or raw data shared.")

    return "\n".join(lines)


def _preview(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _keyword_clause(keywords: Sequence[str]):
    """SQL fragment matching any keyword in summary or recommendations."""
    terms = [k.strip() for k in keywords if k and k.strip()]
    if not terms:
        return "", []

    parts = []
    params = []
    for term in terms:
        pattern = f"%{_escape_like(term)}%"
        parts.append("(summary LIKE ? ESCAPE '\\' OR recommendations LIKE ? ESCAPE '\\')")
        params.extend([pattern, pattern])
    return " AND (" + " OR ".join(parts) + ")", params


class SqliteBattleHistory:
    """
    SQLite battle history store.

    Blocking sqlite3 calls run in a worker thread with one connection per
    call, so the store can be shared across tasks.
    """

    def __init__(self, db_path: str = "data/battle_history.db", context_limit: int = HISTORY_CONTEXT_LIMIT):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.context_limit = context_limit
        self._init_db()
        logger.info(f"Battle history initialized: {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self):
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS battle_reports (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,

                    -- Public: shared with the community when is_shared = 1
                    report_type TEXT NOT NULL,
                    summary TEXT NOT NULL,
                    recommendations TEXT NOT NULL,
                    troop_composition_json TEXT NOT NULL DEFAULT '{}',
                    is_shared INTEGER NOT NULL DEFAULT 1,

                    -- Private: owner only
                    original_ocr_json TEXT,
                    profile_snapshot_json TEXT,

                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_battle_reports_user
                ON battle_reports(user_id, created_at)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_battle_reports_shared
                ON battle_reports(is_shared, created_at)
            """)

    # ========== Writes ==========

    async def save_analysis(
        self,
        user_id: str,
        result: AnalysisResult,
        raw_texts: Sequence[str],
        profile: UserProfile,
        share: bool = True,
    ) -> None:
        """Store one analysis. Raises sqlite3.Error on failure."""
        await asyncio.to_thread(self._save, user_id, result, list(raw_texts), profile, share)
        logger.info(
            "Battle saved "
            + ("(analysis shared with community, raw data private)" if share else "(fully private)")
        )

    def _save(self, user_id, result, raw_texts, profile, share) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO battle_reports (
                    user_id, report_type, summary, recommendations,
                    troop_composition_json, is_shared,
                    original_ocr_json, profile_snapshot_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                user_id,
                result.report_type.value,
                result.summary,
                result.recommendations,
                json.dumps(extract_troop_composition(raw_texts)),
                1 if share else 0,
                json.dumps(raw_texts),
                json.dumps(profile.to_dict()),
                datetime.now().isoformat(),
            ))

    # ========== Reads ==========

    def _query(self, sql: str, params: Sequence[Any], what: str) -> List[sqlite3.Row]:
        try:
            with self._get_connection() as conn:
                return conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error {what}: {e}")
            return []

    async def find_relevant_history(self, user_id: str, keywords: Sequence[str]) -> List[BattleRecord]:
        """The user's own battles mentioning any keyword, newest first."""
        clause, params = _keyword_clause(keywords)
        rows = await asyncio.to_thread(
            self._query,
            f"SELECT {_PUBLIC_COLUMNS} FROM battle_reports WHERE user_id = ?{clause} "
            f"ORDER BY created_at DESC, id DESC LIMIT ?",
            [user_id, *params, self.context_limit],
            "searching my battles",
        )
        return [self._row_to_record(row) for row in rows]

    async def search_community(
        self,
        keywords: Sequence[str],
        exclude_user_id: Optional[str] = None,
        limit: int = 10,
    ) -> List[BattleRecord]:
        """Shared battles (public fields only), optionally excluding one user's own."""
        clause, params = _keyword_clause(keywords)
        where = "is_shared = 1"
        if exclude_user_id is not None:
            where += " AND user_id != ?"
            params = [exclude_user_id, *params]
        rows = await asyncio.to_thread(
            self._query,
            f"SELECT {_PUBLIC_COLUMNS} FROM battle_reports WHERE {where}{clause} "
            f"ORDER BY created_at DESC, id DESC LIMIT ?",
            [*params, limit],
            "searching community",
        )
        return [self._row_to_record(row) for row in rows]

    async def find_similar_battles(
        self,
        report_type: ReportType,
        troop_types: Sequence[str],
        limit: int = 5,
    ) -> List[BattleRecord]:
        """Shared battles of the same type that used any of the given troop types."""
        rows = await asyncio.to_thread(
            self._query,
            f"SELECT {_PUBLIC_COLUMNS} FROM battle_reports "
            f"WHERE is_shared = 1 AND report_type = ? "
            f"ORDER BY created_at DESC, id DESC LIMIT ?",
            [report_type.value, limit * 3],
            "finding similar battles",
        )
        wanted = [t.lower() for t in troop_types]
        similar = []
        for row in rows:
            record = self._row_to_record(row)
            if any(record.troop_composition.get(t) for t in wanted):
                similar.append(record)
        return similar[:limit]

    async def get_my_battles(self, user_id: str, limit: int = 10) -> List[BattleRecord]:
        """The user's own battles, including private data."""
        rows = await asyncio.to_thread(
            self._query,
            "SELECT * FROM battle_reports WHERE user_id = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            [user_id, limit],
            "fetching my battles",
        )
        return [self._row_to_record(row, private=True) for row in rows]

    async def get_battle_count(self, user_id: str) -> int:
        rows = await asyncio.to_thread(
            self._query,
            "SELECT COUNT(*) AS n FROM battle_reports WHERE user_id = ?",
            [user_id],
            "counting battles",
        )
        return rows[0]["n"] if rows else 0

    async def get_community_stats(self) -> Dict[str, int]:
        rows = await asyncio.to_thread(
            self._query,
            "SELECT report_type, COUNT(*) AS n FROM battle_reports WHERE is_shared = 1 GROUP BY report_type",
            [],
            "getting stats",
        )
        counts = {row["report_type"]: row["n"] for row in rows}
        total = sum(counts.values())
        monster = counts.get(ReportType.MONSTER.value, 0)
        return {
            "total_battles": total,
            "pvp_battles": total - monster,
            "monster_battles": monster,
        }

    async def build_context(self, user_id: str, keywords: Sequence[str]) -> str:
        """
        Personal plus community history as one context blob.

        Best-effort: returns "" when nothing matches or the database fails.
        """
        mine = await self.find_relevant_history(user_id, keywords)
        community = await self.search_community(
            keywords, exclude_user_id=user_id, limit=self.context_limit
        )

        blocks = []
        if mine:
            blocks.append(format_battles_for_context(mine, "personal"))
        if community:
            blocks.append(format_battles_for_context(community[:COMMUNITY_CONTEXT_LIMIT], "community"))
        return "\n\n".join(blocks)

    @staticmethod
    def _row_to_record(row: sqlite3.Row, private: bool = False) -> BattleRecord:
        record = BattleRecord(
            id=row["id"],
            report_type=row["report_type"],
            summary=row["summary"],
            recommendations=row["recommendations"],
            troop_composition=json.loads(row["troop_composition_json"] or "{}"),
            created_at=row["created_at"],
        )
        if private:
            record.original_ocr = json.loads(row["original_ocr_json"] or "[]")
            record.profile_snapshot = json.loads(row["profile_snapshot_json"] or "null")
        return record
