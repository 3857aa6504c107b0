"""Tests for seofix.services.fix_writer: guarded draft and live writes."""

import asyncio
import unittest

from support import RecordingAdapter, add_fix, make_audit, memory_session

from seofix.services.cms_adapter import CMSAdapter
from seofix.models import FixRecord
from seofix.services.errors import (
    InvalidStateError,
    InvalidValueError,
    NotFoundError,
    RemoteWriteError,
    UnsupportedOperationError,
)
from seofix.services.fix_ledger import (
    APPLIED,
    APPROVED,
    FAILED,
    PENDING,
    PUBLISHED,
    REJECTED,
    get_fix,
    is_actionable,
)
from seofix.services.field_mapping import ArrayAppend
from seofix.services.fix_writer import apply_fix, publish_fix


class PublishOnlyAdapter(CMSAdapter):
    platform = "wordpress"
    supports_path_lookup = True


class RejectingAdapter(RecordingAdapter):
    """Records the draft write, then rejects the fix from another session."""

    def __init__(self, db, fix_id: str) -> None:
        super().__init__()
        self.db = db
        self.fix_id = fix_id

    async def patch_draft(self, document_id, fields):
        result = await super().patch_draft(document_id, fields)
        self.db.query(FixRecord).filter(FixRecord.id == self.fix_id).update(
            {"status": REJECTED}, synchronize_session=False
        )
        self.db.commit()
        return result


class TestApplyFix(unittest.TestCase):
    def setUp(self) -> None:
        self.db = memory_session()
        make_audit(self.db, [])
        self.adapter = RecordingAdapter()

    def tearDown(self) -> None:
        self.db.close()

    def test_apply_writes_draft_only(self) -> None:
        add_fix(self.db, "f1", status=APPROVED, proposed_value="New description")
        outcome = asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        self.assertTrue(outcome.remote_write)
        self.assertEqual(self.adapter.draft_writes, [("seo-1", {"metaDescription": "New description"})])
        self.assertEqual(self.adapter.published_writes, [])
        fix = get_fix(self.db, "f1")
        self.assertEqual(fix.status, APPLIED)
        self.assertIsNotNone(fix.applied_at)
        self.assertFalse(is_actionable(fix.status))

    def test_pending_auto_approved(self) -> None:
        add_fix(self.db, "f1")
        asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        self.assertEqual(get_fix(self.db, "f1").status, APPLIED)

    def test_pending_without_auto_approve_refused(self) -> None:
        add_fix(self.db, "f1")
        with self.assertRaises(InvalidStateError) as ctx:
            asyncio.run(apply_fix(self.db, self.adapter, "f1", auto_approve=False))
        self.assertEqual(ctx.exception.status, PENDING)
        self.assertEqual(self.adapter.draft_writes, [])
        self.assertEqual(get_fix(self.db, "f1").status, PENDING)

    def test_rejected_refused(self) -> None:
        add_fix(self.db, "f1", status=REJECTED)
        with self.assertRaises(InvalidStateError):
            asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        self.assertEqual(self.adapter.draft_writes, [])

    def test_reapply_is_noop(self) -> None:
        add_fix(self.db, "f1", status=APPROVED)
        asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        outcome = asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        self.assertFalse(outcome.remote_write)
        self.assertEqual(len(self.adapter.draft_writes), 1)

    def test_reapply_with_new_value_refused(self) -> None:
        add_fix(self.db, "f1", status=APPLIED)
        with self.assertRaises(InvalidStateError):
            asyncio.run(apply_fix(self.db, self.adapter, "f1", override="Something else"))
        self.assertEqual(get_fix(self.db, "f1").proposed_value, "Proposed")

    def test_override_persisted_and_written(self) -> None:
        add_fix(self.db, "f1", status=APPROVED)
        asyncio.run(apply_fix(self.db, self.adapter, "f1", override="Edited by reviewer"))
        self.assertEqual(self.adapter.draft_writes[0][1], {"metaDescription": "Edited by reviewer"})
        self.assertEqual(get_fix(self.db, "f1").proposed_value, "Edited by reviewer")

    def test_robots_index_written_as_bool(self) -> None:
        add_fix(
            self.db,
            "f1",
            status=APPROVED,
            issue_type="noindex_set",
            field_path="robotsSettings.index",
            proposed_value="true",
        )
        asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        self.assertEqual(self.adapter.draft_writes[0][1], {"robotsSettings.index": True})

    def test_robots_index_unreadable_override_refused_before_mutation(self) -> None:
        add_fix(
            self.db,
            "f1",
            status=APPROVED,
            issue_type="noindex_set",
            field_path="robotsSettings.index",
            proposed_value="true",
        )
        with self.assertRaises(InvalidValueError):
            asyncio.run(apply_fix(self.db, self.adapter, "f1", override="yes"))
        self.assertEqual(self.adapter.draft_writes, [])
        fix = get_fix(self.db, "f1")
        self.assertEqual(fix.status, APPROVED)
        self.assertEqual(fix.proposed_value, "true")

    def test_robots_index_false_override_written(self) -> None:
        add_fix(
            self.db,
            "f1",
            status=APPROVED,
            issue_type="noindex_set",
            field_path="robotsSettings.index",
            proposed_value="true",
        )
        asyncio.run(apply_fix(self.db, self.adapter, "f1", override=" False "))
        self.assertEqual(self.adapter.draft_writes[0][1], {"robotsSettings.index": False})

    def test_viewport_tag_written_as_append(self) -> None:
        add_fix(
            self.db,
            "f1",
            status=APPROVED,
            issue_type="mobile_not_optimized",
            field_path="additionalMetaTags",
            proposed_value='[{"name": "viewport", "content": "width=device-width, initial-scale=1"}]',
        )
        asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        written = self.adapter.draft_writes[0][1]["additionalMetaTags"]
        self.assertIsInstance(written, ArrayAppend)
        self.assertEqual(written.items[0]["name"], "viewport")

    def test_concurrent_reject_after_write_is_logged(self) -> None:
        add_fix(self.db, "f1", status=APPROVED)
        adapter = RejectingAdapter(self.db, "f1")
        with self.assertLogs("seofix.services.fix_writer", level="WARNING") as logs:
            with self.assertRaises(InvalidStateError) as ctx:
                asyncio.run(apply_fix(self.db, adapter, "f1"))
        self.assertEqual(ctx.exception.status, REJECTED)
        self.assertEqual(len(adapter.draft_writes), 1)
        self.assertEqual(logs.records[0].document_id, "seo-1")
        self.assertEqual(get_fix(self.db, "f1").status, REJECTED)

    def test_missing_document_checked_before_mutation(self) -> None:
        add_fix(self.db, "f1", document_id=None)
        with self.assertRaises(NotFoundError):
            asyncio.run(apply_fix(self.db, self.adapter, "f1", override="Edited"))
        fix = get_fix(self.db, "f1")
        self.assertEqual(fix.status, PENDING)
        self.assertEqual(fix.proposed_value, "Proposed")

    def test_adapter_without_drafts_refused_before_mutation(self) -> None:
        add_fix(self.db, "f1")
        with self.assertRaises(UnsupportedOperationError):
            asyncio.run(apply_fix(self.db, PublishOnlyAdapter(), "f1"))
        self.assertEqual(get_fix(self.db, "f1").status, PENDING)

    def test_remote_failure_marks_failed_and_reraises(self) -> None:
        add_fix(self.db, "f1", status=APPROVED)
        with self.assertRaises(RemoteWriteError):
            asyncio.run(apply_fix(self.db, RecordingAdapter(fail_writes=True), "f1"))
        fix = get_fix(self.db, "f1")
        self.assertEqual(fix.status, FAILED)
        self.assertIn("Mutation failed", fix.error_message)
        self.assertTrue(is_actionable(fix.status))

    def test_failed_fix_can_be_retried(self) -> None:
        add_fix(self.db, "f1", status=FAILED, error_message="earlier failure")
        asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        fix = get_fix(self.db, "f1")
        self.assertEqual(fix.status, APPLIED)
        self.assertIsNone(fix.error_message)

    def test_unknown_fix(self) -> None:
        with self.assertRaises(NotFoundError):
            asyncio.run(apply_fix(self.db, self.adapter, "nope"))


class TestPublishFix(unittest.TestCase):
    def setUp(self) -> None:
        self.db = memory_session()
        make_audit(self.db, [])
        self.adapter = RecordingAdapter()

    def tearDown(self) -> None:
        self.db.close()

    def test_publish_writes_live_document(self) -> None:
        add_fix(self.db, "f1", proposed_value="Live value")
        outcome = asyncio.run(publish_fix(self.db, self.adapter, "f1"))
        self.assertTrue(outcome.remote_write)
        self.assertEqual(self.adapter.published_writes, [("seo-1", {"metaDescription": "Live value"})])
        self.assertEqual(self.adapter.draft_writes, [])
        fix = get_fix(self.db, "f1")
        self.assertEqual(fix.status, PUBLISHED)
        self.assertIsNotNone(fix.published_at)
        self.assertIsNotNone(fix.applied_at)

    def test_publish_twice_writes_once(self) -> None:
        add_fix(self.db, "f1")
        asyncio.run(publish_fix(self.db, self.adapter, "f1"))
        second = asyncio.run(publish_fix(self.db, self.adapter, "f1"))
        self.assertFalse(second.remote_write)
        self.assertEqual(len(self.adapter.published_writes), 1)

    def test_publish_after_apply(self) -> None:
        add_fix(self.db, "f1", status=APPROVED)
        asyncio.run(apply_fix(self.db, self.adapter, "f1"))
        applied_at = get_fix(self.db, "f1").applied_at
        asyncio.run(publish_fix(self.db, self.adapter, "f1"))
        fix = get_fix(self.db, "f1")
        self.assertEqual(fix.status, PUBLISHED)
        self.assertEqual(fix.applied_at, applied_at)

    def test_rejected_refused(self) -> None:
        add_fix(self.db, "f1", status=REJECTED)
        with self.assertRaises(InvalidStateError):
            asyncio.run(publish_fix(self.db, self.adapter, "f1"))
        self.assertEqual(self.adapter.published_writes, [])

    def test_override_written(self) -> None:
        add_fix(self.db, "f1")
        asyncio.run(publish_fix(self.db, self.adapter, "f1", override="Edited"))
        self.assertEqual(self.adapter.published_writes[0][1], {"metaDescription": "Edited"})
        self.assertEqual(get_fix(self.db, "f1").proposed_value, "Edited")

    def test_robots_index_unreadable_override_refused(self) -> None:
        add_fix(
            self.db,
            "f1",
            issue_type="noindex_set",
            field_path="robotsSettings.index",
            proposed_value="true",
        )
        with self.assertRaises(InvalidValueError):
            asyncio.run(publish_fix(self.db, self.adapter, "f1", override="yes"))
        self.assertEqual(self.adapter.published_writes, [])
        fix = get_fix(self.db, "f1")
        self.assertEqual(fix.status, PENDING)
        self.assertEqual(fix.proposed_value, "true")

    def test_remote_failure_marks_failed(self) -> None:
        add_fix(self.db, "f1")
        with self.assertRaises(RemoteWriteError):
            asyncio.run(publish_fix(self.db, RecordingAdapter(fail_writes=True), "f1"))
        self.assertEqual(get_fix(self.db, "f1").status, FAILED)

    def test_publish_only_adapter_refused(self) -> None:
        add_fix(self.db, "f1")
        with self.assertRaises(UnsupportedOperationError):
            asyncio.run(publish_fix(self.db, PublishOnlyAdapter(), "f1"))


if __name__ == "__main__":
    unittest.main()
