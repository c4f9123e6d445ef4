"""
cases.workflow.feedback — Append-only feedback log and private shaykh notes.
"""

from __future__ import annotations

from typing import Iterable

from .config import CaseAction
from .engine import TransitionEngine, TransitionResult
from .records import Actor, CaseRecord, FeedbackRecord


class FeedbackLedger:
    """
    Feedback entries are only ever appended.  Each entry snapshots the
    author's role at write time.  Shaykh notes are a single overwritable
    field whose visibility is decided on read by
    ``policy.can_view_shaykh_notes``.
    """

    def __init__(self, engine: TransitionEngine | None = None) -> None:
        self.engine = engine or TransitionEngine()

    def append(self, case: CaseRecord, actor: Actor, comment: str) -> TransitionResult:
        return self.engine.apply(case, CaseAction.ADD_FEEDBACK, actor, {"comment": comment})

    def set_shaykh_notes(self, case: CaseRecord, actor: Actor, notes: str) -> TransitionResult:
        return self.engine.apply(case, CaseAction.ADD_SHAYKH_NOTES, actor, {"notes": notes})

    @staticmethod
    def ordered(entries: Iterable[FeedbackRecord]) -> list[FeedbackRecord]:
        # Insertion order is chronological; never re-sort by date.
        return list(entries)
