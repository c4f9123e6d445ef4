"""
Unit tests for the per-type status sets and transition tables.

Pure Python: no database, no HTTP.
"""

from __future__ import annotations

from django.test import SimpleTestCase

from cases.workflow.config import (
    CASE_TYPE_CONFIGS,
    CaseAction,
    CaseType,
    CounselStatus,
    FatwaStatus,
    all_status_choices,
    config_for,
)


class TestTransitionTables(SimpleTestCase):

    def test_every_case_type_has_a_config(self):
        self.assertEqual(set(CASE_TYPE_CONFIGS), set(CaseType.values))

    def test_initial_status_is_pending_for_every_type(self):
        for case_type in CaseType.values:
            cfg = config_for(case_type)
            self.assertEqual(cfg.initial_status, "pending")
            self.assertTrue(cfg.is_valid_status(cfg.initial_status))

    def test_terminal_statuses_have_no_outgoing_transitions(self):
        for cfg in CASE_TYPE_CONFIGS.values():
            for status in cfg.terminal_statuses:
                self.assertEqual(
                    cfg.outgoing(status),
                    [],
                    msg=f"{cfg.case_type}: terminal '{status}' has outgoing actions",
                )

    def test_every_target_belongs_to_the_type(self):
        for cfg in CASE_TYPE_CONFIGS.values():
            for (source, action), targets in cfg.transitions.items():
                self.assertTrue(cfg.is_valid_status(source), msg=(cfg.case_type, source))
                self.assertTrue(targets, msg=(cfg.case_type, source, action))
                for target in targets:
                    self.assertTrue(cfg.is_valid_status(target), msg=(cfg.case_type, target))

    def test_fatwa_lifecycle_edges(self):
        cfg = config_for(CaseType.FATWA)
        self.assertEqual(cfg.targets(FatwaStatus.PENDING, CaseAction.ASSIGN), (FatwaStatus.ASSIGNED,))
        self.assertEqual(cfg.targets(FatwaStatus.ASSIGNED, CaseAction.ANSWER), (FatwaStatus.ANSWERED,))
        self.assertEqual(cfg.targets(FatwaStatus.ANSWERED, CaseAction.APPROVE), (FatwaStatus.APPROVED,))
        self.assertEqual(cfg.targets(FatwaStatus.ANSWERED, CaseAction.UNAPPROVE), (FatwaStatus.ASSIGNED,))
        self.assertEqual(cfg.terminal_statuses, frozenset({FatwaStatus.APPROVED}))

    def test_fatwa_has_no_meetings_complete_or_cancel(self):
        cfg = config_for(CaseType.FATWA)
        for status in FatwaStatus.values:
            for action in (CaseAction.SCHEDULE_MEETING, CaseAction.COMPLETE, CaseAction.CANCEL):
                self.assertIsNone(cfg.targets(status, action), msg=(status, action))

    def test_counsel_types_share_shape(self):
        marriage = config_for(CaseType.MARRIAGE)
        reconciliation = config_for(CaseType.RECONCILIATION)
        self.assertEqual(dict(marriage.transitions), dict(reconciliation.transitions))
        self.assertEqual(marriage.terminal_statuses, reconciliation.terminal_statuses)

    def test_counsel_complete_has_two_outcomes(self):
        cfg = config_for(CaseType.RECONCILIATION)
        for status in (CounselStatus.ASSIGNED, CounselStatus.IN_PROGRESS):
            self.assertEqual(
                set(cfg.targets(status, CaseAction.COMPLETE)),
                {CounselStatus.RESOLVED, CounselStatus.UNRESOLVED},
            )
        self.assertIsNone(cfg.targets(CounselStatus.PENDING, CaseAction.COMPLETE))

    def test_first_meeting_on_assigned_case_starts_progress(self):
        cfg = config_for(CaseType.MARRIAGE)
        self.assertEqual(
            cfg.targets(CounselStatus.ASSIGNED, CaseAction.SCHEDULE_MEETING),
            (CounselStatus.IN_PROGRESS,),
        )

    def test_unknown_pair_is_illegal(self):
        cfg = config_for(CaseType.MARRIAGE)
        self.assertIsNone(cfg.targets(CounselStatus.PENDING, CaseAction.ANSWER))

    def test_unknown_case_type_raises_key_error(self):
        with self.assertRaises(KeyError):
            config_for("divorce")

    def test_status_choices_are_a_union_without_duplicates(self):
        values = [value for value, _ in all_status_choices()]
        self.assertEqual(len(values), len(set(values)))
        self.assertEqual(set(values), set(FatwaStatus.values) | set(CounselStatus.values))
