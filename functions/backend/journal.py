"""
In-memory journal store: create, update, delete and compound filtering.

Entries live only in process memory; a restart loses them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Iterable, Optional

from shared.constants import (
    DEFAULT_MOOD,
    JOURNAL_MOODS,
    JOURNAL_TEMPLATES,
)


class JournalValidationError(ValueError):
    pass


class EntryNotFoundError(LookupError):
    pass


@dataclass
class JournalEntry:
    id: str
    title: str
    content: str
    date: datetime
    tags: list[str] = field(default_factory=list)
    mood: str = DEFAULT_MOOD

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "date": self.date.isoformat(),
            "tags": list(self.tags),
            "mood": self.mood,
        }


def _require_text(value: Optional[str]) -> None:
    if value is None or not value.strip():
        raise JournalValidationError("Please fill in title and content")


def _validate_mood(mood: str) -> None:
    if mood not in JOURNAL_MOODS:
        raise JournalValidationError(f"Unknown mood: {mood}")


def _dedupe_tags(tags: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        if tag not in seen:
            seen.append(tag)
    return seen


class JournalStore:
    """Ordered collection of journal entries, newest first."""

    def __init__(self, entries: Optional[Iterable[JournalEntry]] = None):
        self.entries: list[JournalEntry] = list(entries or [])

    def all_entries(self) -> list[JournalEntry]:
        return list(self.entries)

    def get(self, entry_id: str) -> Optional[JournalEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def create(
        self,
        title: str,
        content: str,
        tags: Iterable[str] = (),
        mood: str = DEFAULT_MOOD,
        *,
        now: Optional[datetime] = None,
    ) -> JournalEntry:
        _require_text(title)
        _require_text(content)
        _validate_mood(mood)
        entry = JournalEntry(
            id=uuid.uuid4().hex,
            title=title,
            content=content,
            date=now or datetime.now(),
            tags=_dedupe_tags(tags),
            mood=mood,
        )
        self.entries.insert(0, entry)
        return entry

    def update(
        self,
        entry_id: str,
        *,
        title: Optional[str] = None,
        content: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        mood: Optional[str] = None,
    ) -> JournalEntry:
        """
        Replace the given fields of an entry. Fields left as None keep their
        current value; id and date never change.
        """
        for index, entry in enumerate(self.entries):
            if entry.id != entry_id:
                continue
            changes: dict = {}
            if title is not None:
                _require_text(title)
                changes["title"] = title
            if content is not None:
                _require_text(content)
                changes["content"] = content
            if tags is not None:
                changes["tags"] = _dedupe_tags(tags)
            if mood is not None:
                _validate_mood(mood)
                changes["mood"] = mood
            updated = replace(entry, **changes)
            self.entries[index] = updated
            return updated
        raise EntryNotFoundError(entry_id)

    def delete(self, entry_id: str) -> None:
        # Deleting an unknown id is a no-op.
        self.entries = [e for e in self.entries if e.id != entry_id]

    def filter(
        self,
        search_text: str = "",
        tags: Optional[Iterable[str]] = None,
        on_date: Optional[date] = None,
    ) -> list[JournalEntry]:
        needle = (search_text or "").lower()
        wanted_tags = set(tags or ())
        results = []
        for entry in self.entries:
            matches_search = (
                needle in entry.title.lower() or needle in entry.content.lower()
            )
            matches_tags = not wanted_tags or bool(wanted_tags.intersection(entry.tags))
            matches_date = on_date is None or entry.date.date() == on_date
            if matches_search and matches_tags and matches_date:
                results.append(entry)
        return results


def apply_template(name: str) -> tuple[str, str]:
    """Return the (title, content) a template pre-fills."""
    for template in JOURNAL_TEMPLATES:
        if template.name == name:
            return template.name, template.content
    raise LookupError(name)


def apply_prompt(content: str, prompt: str) -> str:
    return f"{content}\n\n{prompt}" if content else prompt


def sample_entries() -> list[JournalEntry]:
    """Entries every new journal starts with."""
    return [
        JournalEntry(
            id="1",
            title="Morning Reflections",
            content=(
                "Woke up feeling refreshed today. Spent 20 minutes meditating "
                "before the kids woke up. It's amazing how those quiet moments "
                "set the tone for my entire day. I'm grateful for the sunshine "
                "streaming through my window and the smell of fresh coffee."
            ),
            date=datetime(2024, 12, 4),
            tags=["#selfcare"],
            mood="😊",
        ),
        JournalEntry(
            id="2",
            title="Balancing Act",
            content=(
                "Today was challenging at work - had back-to-back meetings but "
                "managed to take a 10-minute walk during lunch. Called mom after "
                "dinner and it filled my heart. Need to remember that it's okay "
                "to not be perfect at everything."
            ),
            date=datetime(2024, 12, 3),
            tags=["#work", "#family"],
            mood="😌",
        ),
        JournalEntry(
            id="3",
            title="Weekend Self-Care",
            content=(
                "Finally took that bubble bath I've been promising myself. Put on "
                "a face mask, lit my favorite candle, and read for an hour. My "
                "body was telling me to slow down and I actually listened. Small "
                "wins matter."
            ),
            date=datetime(2024, 12, 1),
            tags=["#selfcare"],
            mood="🥰",
        ),
    ]
