"""Tests for seofix.services.bulk_apply with a scripted publish-only adapter."""

import asyncio
import unittest
from dataclasses import dataclass

import httpx

from seofix.services.bulk_apply import bulk_apply
from seofix.services.cms_adapter import CMSAdapter, EntityRef
from seofix.services.errors import RemoteWriteError
from seofix.services.wordpress_adapter import WordPressAdapter, WordPressCredentials


@dataclass
class Instruction:
    target_url: str
    field: str
    new_value: str


class ScriptedAdapter(CMSAdapter):
    """Resolves known slugs; writes to entity id 13 are rejected."""

    platform = "wordpress"
    supports_path_lookup = True

    def __init__(self, entities: dict[str, EntityRef]) -> None:
        self.entities = entities
        self.writes: list[tuple[int | str, str, str]] = []

    async def locate_by_path(self, url_path: str) -> EntityRef | None:
        return self.entities.get(url_path.rstrip("/").rsplit("/", 1)[-1])

    async def apply_field(self, entity: EntityRef, field: str, value: str) -> dict:
        if entity.id == 13:
            raise RemoteWriteError("WordPress returned 400: Invalid parameter(s): meta", 400)
        self.writes.append((entity.id, field, value))
        return {"id": entity.id}


class BrokenLookupAdapter(ScriptedAdapter):
    """Lookups for "bad" fail with a plain exception, as a malformed response would."""

    async def locate_by_path(self, url_path: str) -> EntityRef | None:
        if url_path.endswith("/bad"):
            raise KeyError("id")
        return await super().locate_by_path(url_path)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


class TestBulkApply(unittest.TestCase):
    def test_all_items_applied_with_pacing(self) -> None:
        adapter = ScriptedAdapter(
            {"about": EntityRef(id=7, type="page"), "hello": EntityRef(id=12, type="post")}
        )
        sleep = SleepRecorder()
        result = asyncio.run(
            bulk_apply(
                adapter,
                "acme.com",
                [
                    Instruction("https://acme.com/about/", "title", "About Acme"),
                    Instruction("https://acme.com/blog/hello", "meta_description", "Hi there"),
                ],
                delay_sec=0.3,
                sleep=sleep,
            )
        )
        self.assertTrue(result.success)
        self.assertEqual((result.total, result.applied, result.failed, result.dropped), (2, 2, 0, 0))
        self.assertEqual(adapter.writes, [(7, "title", "About Acme"), (12, "meta_description", "Hi there")])
        # Pauses between items only.
        self.assertEqual(sleep.calls, [0.3])

    def test_cap_drops_extra_items(self) -> None:
        adapter = ScriptedAdapter({"about": EntityRef(id=7, type="page")})
        sleep = SleepRecorder()
        instructions = [Instruction("https://acme.com/about", "title", f"T{i}") for i in range(60)]
        with self.assertLogs("seofix.services.bulk_apply", level="WARNING"):
            result = asyncio.run(
                bulk_apply(adapter, "acme.com", instructions, max_items=50, sleep=sleep)
            )
        self.assertEqual(result.total, 50)
        self.assertEqual(result.dropped, 10)
        self.assertEqual(len(adapter.writes), 50)
        self.assertEqual(len(sleep.calls), 49)

    def test_failures_do_not_stop_the_batch(self) -> None:
        adapter = ScriptedAdapter(
            {"broken": EntityRef(id=13, type="page"), "about": EntityRef(id=7, type="page")}
        )
        result = asyncio.run(
            bulk_apply(
                adapter,
                "acme.com",
                [
                    Instruction("https://acme.com/missing-page", "title", "Nope"),
                    Instruction("https://acme.com/broken", "title", "Rejected"),
                    Instruction("https://acme.com/about", "title", "About Acme"),
                ],
                sleep=SleepRecorder(),
            )
        )
        self.assertFalse(result.success)
        self.assertEqual((result.applied, result.failed), (1, 2))
        missing, broken, ok = result.results
        self.assertEqual(missing.error, "No page or post found for /missing-page.")
        self.assertIn("Invalid parameter", broken.error)
        self.assertTrue(ok.success)
        self.assertIsNone(ok.error)
        self.assertEqual(adapter.writes, [(7, "title", "About Acme")])

    def test_unsupported_adapter_reports_each_item(self) -> None:
        result = asyncio.run(
            bulk_apply(
                CMSAdapter(),
                "acme.com",
                [Instruction("https://acme.com/about", "title", "x")],
                sleep=SleepRecorder(),
            )
        )
        self.assertFalse(result.success)
        self.assertIn("does not support locating content", result.results[0].error)

    def test_unexpected_error_recorded_per_item(self) -> None:
        adapter = BrokenLookupAdapter({"about": EntityRef(id=7, type="page")})
        with self.assertLogs("seofix.services.bulk_apply", level="WARNING") as logs:
            result = asyncio.run(
                bulk_apply(
                    adapter,
                    "acme.com",
                    [
                        Instruction("https://acme.com/bad", "title", "Nope"),
                        Instruction("https://acme.com/about", "title", "About Acme"),
                    ],
                    sleep=SleepRecorder(),
                )
            )
        self.assertEqual(result.total, 2)
        self.assertFalse(result.success)
        broken, ok = result.results
        self.assertFalse(broken.success)
        self.assertIn("Unexpected error", broken.error)
        self.assertTrue(ok.success)
        self.assertIsNotNone(logs.records[0].exc_info)
        self.assertEqual(adapter.writes, [(7, "title", "About Acme")])

    def test_wordpress_item_without_id_does_not_stop_the_batch(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            slug = request.url.params.get("slug")
            if request.method == "GET" and slug == "bad":
                return httpx.Response(200, json=[{"slug": "bad"}])
            if request.method == "GET" and slug == "about":
                return httpx.Response(200, json=[{"id": 7, "slug": "about", "title": {"rendered": "About"}}])
            if request.method == "POST":
                return httpx.Response(200, json={"id": 7})
            return httpx.Response(200, json=[])

        adapter = WordPressAdapter(
            WordPressCredentials(
                api_url="https://acme.com/wp-json/",
                username="editor",
                app_password="abcd efgh",
                seo_plugin="none",
            ),
            transport=httpx.MockTransport(handler),
        )
        result = asyncio.run(
            bulk_apply(
                adapter,
                "acme.com",
                [
                    Instruction("https://acme.com/bad", "title", "Nope"),
                    Instruction("https://acme.com/about", "title", "About Acme"),
                ],
                sleep=SleepRecorder(),
            )
        )
        self.assertEqual(result.total, 2)
        self.assertEqual((result.applied, result.failed), (1, 1))
        self.assertEqual(result.results[0].error, "No page or post found for /bad.")

    def test_empty_batch(self) -> None:
        result = asyncio.run(bulk_apply(ScriptedAdapter({}), "acme.com", [], sleep=SleepRecorder()))
        self.assertTrue(result.success)
        self.assertEqual(result.total, 0)


if __name__ == "__main__":
    unittest.main()
