"""Unit tests for seofix.services.field_mapping: field paths and the issue-type table."""

import unittest

from seofix.services.errors import InvalidValueError
from seofix.services.field_mapping import (
    ISSUE_FIELD_MAP,
    META_DESCRIPTION,
    OG_DESCRIPTION,
    OG_TITLE,
    PAGE_CONTENT,
    SEO_SETTINGS,
    ArrayAppend,
    FieldKind,
    FieldPath,
    document_types,
    lookup,
    targets_for,
)


class TestFieldPath(unittest.TestCase):
    def test_parse_dotted(self) -> None:
        path = FieldPath.parse("heroSection.image.alt")
        self.assertEqual(path.keys, ("heroSection", "image", "alt"))
        self.assertEqual(path.dotted, "heroSection.image.alt")
        self.assertEqual(str(path), "heroSection.image.alt")

    def test_of_equals_parse(self) -> None:
        self.assertEqual(FieldPath.of("robotsSettings", "index"), FieldPath.parse("robotsSettings.index"))

    def test_invalid_keys_rejected(self) -> None:
        for bad in ("", "  ", "hero-section", "a..b", "1abc", "meta description"):
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    FieldPath.parse(bad)

    def test_empty_tuple_rejected(self) -> None:
        with self.assertRaises(ValueError):
            FieldPath(())


class TestIssueFieldMap(unittest.TestCase):
    def test_unmapped_issue_has_no_target(self) -> None:
        self.assertIsNone(lookup("slow_server_response"))
        self.assertEqual(targets_for("slow_server_response"), ())

    def test_aliases_share_descriptor(self) -> None:
        for issue in ("missing_meta_description", "description_too_short", "description_too_long"):
            with self.subTest(issue=issue):
                self.assertIs(lookup(issue), META_DESCRIPTION)

    def test_single_target_carries_finding_issue_type(self) -> None:
        targets = targets_for("title_too_long")
        self.assertEqual(len(targets), 1)
        self.assertEqual(targets[0].issue_type, "title_too_long")
        self.assertEqual(targets[0].descriptor.field_path.dotted, "metaTitle")
        self.assertIs(targets[0].descriptor.kind, FieldKind.TITLE)

    def test_og_tags_fan_out_to_title_and_description(self) -> None:
        targets = targets_for("missing_og_tags")
        self.assertEqual([t.issue_type for t in targets], ["missing_og_tags", "missing_og_description"])
        self.assertEqual([t.descriptor for t in targets], [OG_TITLE, OG_DESCRIPTION])

    def test_hero_fields_live_on_page_content(self) -> None:
        descriptor = lookup("missing_image_alt")
        self.assertEqual(descriptor.document_type, PAGE_CONTENT)
        self.assertEqual(descriptor.field_path.keys, ("heroSection", "image", "alt"))

    def test_site_level_issue_types(self) -> None:
        expected = {
            "missing_robots": "robotsSettings.index",
            "incomplete_nap": "localBusinessSchema",
            "inconsistent_address": "localBusinessSchema",
            "inconsistent_phone": "localBusinessSchema",
            "no_location_in_title": "metaTitle",
            "missing_location_keywords": "locationKeywords",
            "no_reviews_link": "reviewsUrl",
            "mobile_not_optimized": "additionalMetaTags",
        }
        for issue, path in expected.items():
            with self.subTest(issue=issue):
                self.assertEqual(lookup(issue).field_path.dotted, path)
                self.assertEqual(lookup(issue).document_type, SEO_SETTINGS)
        self.assertIs(lookup("mobile_not_optimized").kind, FieldKind.META_TAGS)

    def test_document_types(self) -> None:
        self.assertEqual(document_types(), frozenset({SEO_SETTINGS, PAGE_CONTENT}))

    def test_every_path_is_valid(self) -> None:
        for issue, descriptor in ISSUE_FIELD_MAP.items():
            with self.subTest(issue=issue):
                self.assertEqual(FieldPath.parse(descriptor.field_path.dotted), descriptor.field_path)


class TestFieldKindCoerce(unittest.TestCase):
    def test_robots_index_becomes_bool(self) -> None:
        self.assertIs(FieldKind.ROBOTS_INDEX.coerce("true"), True)
        self.assertIs(FieldKind.ROBOTS_INDEX.coerce(" False "), False)

    def test_robots_index_rejects_unreadable_text(self) -> None:
        for raw in ("yes", "1", "on", "", "truthy"):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidValueError):
                    FieldKind.ROBOTS_INDEX.coerce(raw)

    def test_meta_tags_become_array_append(self) -> None:
        value = FieldKind.META_TAGS.coerce('[{"name": "viewport", "content": "width=device-width"}]')
        self.assertEqual(value, ArrayAppend(({"name": "viewport", "content": "width=device-width"},)))
        single = FieldKind.META_TAGS.coerce('{"name": "robots", "content": "index"}')
        self.assertEqual(len(single.items), 1)

    def test_meta_tags_rejects_malformed_text(self) -> None:
        for raw in ("viewport", "[]", '[{"name": "viewport"}]', "[1, 2]"):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidValueError):
                    FieldKind.META_TAGS.coerce(raw)

    def test_text_kinds_unchanged(self) -> None:
        self.assertEqual(FieldKind.META_DESCRIPTION.coerce("Hello"), "Hello")


if __name__ == "__main__":
    unittest.main()
