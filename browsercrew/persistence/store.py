"""Simple SQLite-based storage for plans and long-term facts."""

from __future__ import annotations

import json
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from browsercrew.types import Milestone


class RunStore:
    """SQLite store for plan audit records and durable long-term memory facts."""

    def __init__(self, db_path: str = "data/browsercrew.db"):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file
        """
        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)

        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS plans (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    run_id TEXT NOT NULL,
                    task TEXT NOT NULL,
                    mode TEXT NOT NULL,
                    reasoning TEXT,
                    milestones_json TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS facts (
                    fact_key TEXT PRIMARY KEY,
                    fact TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ========== Plans ==========

    def save_plan(self, run_id: str, task: str, mode: str, reasoning: str, milestones: Sequence[Milestone]) -> int:
        """Append a plan to the audit table.

        Args:
            run_id: Identifier of the orchestrator run
            task: The user task the plan was made for
            mode: "initial" or "replan"
            reasoning: Planner's reasoning text
            milestones: Milestones in execution order

        Returns:
            Row id of the stored plan
        """
        milestones_json = json.dumps(
            [
                {
                    "description": m.description,
                    "completion_criteria": m.completion_criteria,
                    "terminal": m.terminal,
                    "justification": m.justification,
                }
                for m in milestones
            ],
            ensure_ascii=False,
        )
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.execute(
                """INSERT INTO plans (run_id, task, mode, reasoning, milestones_json, created_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (run_id, task, mode, reasoning, milestones_json, self._now()),
            )
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def list_plans(self, run_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """List stored plans, oldest first, optionally for a single run."""
        conn = sqlite3.connect(self.db_path)
        try:
            if run_id is None:
                cursor = conn.execute(
                    "SELECT run_id, task, mode, reasoning, milestones_json, created_at FROM plans ORDER BY id"
                )
            else:
                cursor = conn.execute(
                    """SELECT run_id, task, mode, reasoning, milestones_json, created_at
                       FROM plans WHERE run_id = ? ORDER BY id""",
                    (run_id,),
                )
            return [
                {
                    "run_id": row[0],
                    "task": row[1],
                    "mode": row[2],
                    "reasoning": row[3],
                    "milestones": json.loads(row[4]),
                    "created_at": row[5],
                }
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # ========== Long-term facts ==========

    def add_fact(self, fact_key: str, fact: str) -> bool:
        """Store a fact under its normalized key.

        Returns:
            True if the fact was new, False if the key already existed
        """
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO facts (fact_key, fact, created_at) VALUES (?, ?, ?)",
                (fact_key, fact, self._now()),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def load_facts(self) -> List[str]:
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.execute("SELECT fact FROM facts ORDER BY created_at, rowid")
            return [row[0] for row in cursor.fetchall()]
        finally:
            conn.close()

    def clear_facts(self):
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("DELETE FROM facts")
            conn.commit()
        finally:
            conn.close()
