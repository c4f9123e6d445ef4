"""
cases.workflow — Case lifecycle and transition authorization.

Pure Python, no database access.  Every mutation of a case goes through
``TransitionEngine.apply``; persistence lives in ``cases.repository``.

Module map
----------
config     Status sets, actions and per-type transition tables.
records    Frozen snapshots (``CaseRecord``, ``MeetingRecord``,
           ``FeedbackRecord``) and the ``Actor`` context.
policy     Declarative authorization table and read-side visibility.
engine     ``TransitionEngine`` and ``TransitionResult``.
meetings   ``MeetingScheduler`` and the upcoming/past ``partition``.
feedback   ``FeedbackLedger``.
"""

from .config import (
    CaseAction,
    CaseType,
    CaseTypeConfig,
    CompletionOutcome,
    CounselStatus,
    FatwaStatus,
    MeetingStatus,
    config_for,
)
from .engine import Outcome, TransitionEngine, TransitionResult
from .feedback import FeedbackLedger
from .meetings import MeetingPartition, MeetingScheduler, partition
from .policy import (
    DenyReason,
    allowed_actions,
    authorize,
    authorize_certificate_upload,
    can_view_shaykh_notes,
)
from .records import Actor, CaseRecord, FeedbackRecord, MeetingRecord

__all__ = [
    "Actor",
    "CaseAction",
    "CaseRecord",
    "CaseType",
    "CaseTypeConfig",
    "CompletionOutcome",
    "CounselStatus",
    "DenyReason",
    "FatwaStatus",
    "FeedbackLedger",
    "FeedbackRecord",
    "MeetingPartition",
    "MeetingRecord",
    "MeetingScheduler",
    "MeetingStatus",
    "Outcome",
    "TransitionEngine",
    "TransitionResult",
    "allowed_actions",
    "authorize",
    "authorize_certificate_upload",
    "can_view_shaykh_notes",
    "config_for",
    "partition",
]
