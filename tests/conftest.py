import copy
import sys
from collections import deque
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lumi.db.supabase import SupabaseError  # noqa: E402


def _matches(row, filters):
    for column, value in (filters or {}).items():
        if value is None:
            if row.get(column) is not None:
                return False
        elif row.get(column) is None or str(row.get(column)) != str(value):
            return False
    return True


class FakeStore:
    """In-memory stand-in for SupabaseClient with the same async interface"""

    def __init__(self, tables=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.calls = []
        # table -> callable(payload) returning an error message to reject the insert
        self.insert_rejections = {}
        # tables whose inserts succeed but return no row
        self.empty_inserts = set()
        # table -> message; selects on these tables raise SupabaseError
        self.select_failures = {}
        # table -> message; updates on these tables raise SupabaseError
        self.update_failures = {}
        # called with (table, values, filters) before each update is applied
        self.before_update = None
        self._next_id = 1

    def rows(self, table):
        return self.tables.setdefault(table, [])

    async def select(self, table, columns="*", filters=None, order=None, limit=None):
        self.calls.append(("select", table, filters))
        if table in self.select_failures:
            raise SupabaseError(self.select_failures[table], status_code=500)

        rows = [r for r in self.rows(table) if _matches(r, filters)]
        if order:
            column, ascending = order
            rows.sort(key=lambda r: str(r.get(column) or ""), reverse=not ascending)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def select_one(self, table, columns="*", filters=None):
        rows = await self.select(table, columns=columns, filters=filters, limit=1)
        return rows[0] if rows else None

    async def insert(self, table, payload):
        self.calls.append(("insert", table, payload))
        reject = self.insert_rejections.get(table)
        if reject:
            message = reject(payload)
            if message:
                raise SupabaseError(message, status_code=400, code="23514")
        if table in self.empty_inserts:
            return None

        row = dict(payload)
        row.setdefault("id", f"{table}-{self._next_id}")
        self._next_id += 1
        now = datetime.now(timezone.utc).isoformat()
        row.setdefault("created_at", now)
        if table == "chat_history":
            row.setdefault("timestamp", now)
        self.rows(table).append(row)
        return copy.deepcopy(row)

    async def update(self, table, values, filters):
        self.calls.append(("update", table, filters))
        if self.before_update:
            self.before_update(table, values, filters)
        if table in self.update_failures:
            raise SupabaseError(self.update_failures[table], status_code=500)

        updated = []
        for row in self.rows(table):
            if _matches(row, filters):
                row.update(values)
                updated.append(copy.deepcopy(row))
        return updated

    def inserts(self, table):
        return [payload for kind, name, payload in self.calls if kind == "insert" and name == table]


class FakeLLM:
    """Queued replies for generate_structured_content / generate_text"""

    def __init__(self):
        self.structured = deque()
        self.texts = deque()
        self.prompts = []

    def queue_json(self, *values):
        self.structured.extend(values)

    def queue_text(self, *values):
        self.texts.extend(values)

    async def generate_structured_content(self, prompt, persona, model=None):
        self.prompts.append(("structured", prompt, persona, model))
        value = self.structured.popleft()
        if isinstance(value, Exception):
            raise value
        return copy.deepcopy(value)

    async def generate_text(self, prompt, persona, model=None):
        self.prompts.append(("text", prompt, persona, model))
        value = self.texts.popleft()
        if isinstance(value, Exception):
            raise value
        return value

    def health_check(self):
        return {"provider": "fake", "configured": True, "model": "fake-model", "status": "ready"}


LESSON_JSON = {
    "introduction": "Fractions describe parts of a whole.",
    "objectives": ["Read fractions", "Compare fractions"],
    "key_points": ["Numerator counts parts", "Denominator names the parts"],
    "detailed_content": "A fraction a/b means a parts out of b equal parts.",
    "summary": "Fractions are parts of a whole.",
    "practice_exercises": ["Shade 3/4 of a square"],
}


def quiz_json(count):
    return {
        "questions": [
            {
                "question": f"Question {i}?",
                "options": ["A", "B", "C", "D"],
                "correct_answer": "A",
                "explanation": "A is right.",
            }
            for i in range(1, count + 1)
        ]
    }


@pytest.fixture
def store():
    return FakeStore(
        {
            "users": [
                {"id": "user-1", "xp": 0, "level": 1, "persona": "friendly", "created_at": "2024-01-01"},
            ]
        }
    )


@pytest.fixture
def llm():
    return FakeLLM()
