import asyncio
import json
import unittest

from devil_muse.services.cms_client import CmsQueryResult
from devil_muse.services.context_fetchers import ContextBundle, ContextFetcher, first_tag


class FakeCms:
    def __init__(self, items_by_collection: dict[str, list[dict]] | None = None) -> None:
        self.items_by_collection = items_by_collection or {}
        self.calls: list[tuple[str, dict, int]] = []

    async def query(self, collection, filter=None, limit=10):
        self.calls.append((collection, filter, limit))
        items = list(self.items_by_collection.get(collection, []))
        return CmsQueryResult(items=items, reason="ok" if items else "empty")


class FirstTagTestCase(unittest.TestCase):
    def test_first_tag_normalizes_inputs(self) -> None:
        self.assertIsNone(first_tag(None))
        self.assertIsNone(first_tag([]))
        self.assertIsNone(first_tag(""))
        self.assertIsNone(first_tag(["  "]))
        self.assertEqual(first_tag("@Vex"), "@Vex")
        self.assertEqual(first_tag(["@Vex", "@Other"]), "@Vex")


class EmptyTagTestCase(unittest.TestCase):
    def test_absent_tags_return_defaults_without_network(self) -> None:
        cms = FakeCms({"Characters": [{"data": {"chatbot": "never read"}}]})
        fetcher = ContextFetcher(cms)

        for tags in (None, [], ""):
            self.assertEqual(asyncio.run(fetcher.get_character_context(tags)), "")
            self.assertEqual(asyncio.run(fetcher.get_chat_history(tags)), [])
            self.assertEqual(asyncio.run(fetcher.get_related_chapters(tags)), [])
            self.assertEqual(asyncio.run(fetcher.get_catalyst_intel(tags)), "")

        self.assertEqual(cms.calls, [])

    def test_unmatched_tags_return_same_defaults(self) -> None:
        cms = FakeCms()
        fetcher = ContextFetcher(cms)

        self.assertEqual(asyncio.run(fetcher.get_character_context(["@Nobody"])), "")
        self.assertEqual(asyncio.run(fetcher.get_chat_history(["@Nobody"])), [])
        self.assertEqual(asyncio.run(fetcher.get_related_chapters(["@Nowhere"])), [])
        self.assertEqual(asyncio.run(fetcher.get_catalyst_intel(["@Nothing"])), "")
        self.assertEqual(len(cms.calls), 4)


class FailedLookupTestCase(unittest.TestCase):
    def test_failed_query_logs_reason_and_returns_default(self) -> None:
        class FailingCms:
            async def query(self, collection, filter=None, limit=10):
                return CmsQueryResult(reason="transport_error")

        with self.assertLogs("devil_muse.services.context_fetchers", level="INFO") as logs:
            result = asyncio.run(ContextFetcher(FailingCms()).get_catalyst_intel(["@Storm"]))

        self.assertEqual(result, "")
        self.assertIn("collection=Catalyst no context: transport_error", "\n".join(logs.output))


class CharacterContextTestCase(unittest.TestCase):
    def test_uses_only_first_tag_with_exact_match(self) -> None:
        cms = FakeCms({"Characters": [{"data": {"chatbot": "Speaks in riddles."}}]})
        result = asyncio.run(ContextFetcher(cms).get_character_context(["@Vex", "@Ignored"]))

        self.assertEqual(result, "Speaks in riddles.")
        self.assertEqual(cms.calls, [("Characters", {"charactertags": {"$eq": "@Vex"}}, 1)])

    def test_missing_personality_field_is_empty(self) -> None:
        cms = FakeCms({"Characters": [{"data": {"name": "Vex"}}]})
        self.assertEqual(asyncio.run(ContextFetcher(cms).get_character_context("@Vex")), "")


class ChatHistoryTestCase(unittest.TestCase):
    def test_malformed_log_only_empties_its_own_session(self) -> None:
        good = [{"type": "user", "text": "why?"}, {"type": "bot", "text": "because."}]
        cms = FakeCms(
            {
                "ChatWithCharacters": [
                    {"data": {"chatBox": json.dumps(good)}},
                    {"data": {"chatBox": "{not json"}},
                    {"data": {"chatBox": good}},
                    {"data": {}},
                ]
            }
        )
        sessions = asyncio.run(ContextFetcher(cms).get_chat_history(["@Vex"]))

        self.assertEqual(
            sessions,
            [{"messages": good}, {"messages": []}, {"messages": good}, {"messages": []}],
        )
        self.assertEqual(cms.calls, [("ChatWithCharacters", {"charactertags": {"$eq": "@Vex"}}, 5)])


class RelatedChaptersTestCase(unittest.TestCase):
    def test_long_chapters_truncate_to_1500_chars(self) -> None:
        cms = FakeCms(
            {
                "BackupChapters": [
                    {"data": {"title": "Ash", "chapterContent": "x" * 4000}},
                    {"data": {"chapterContent": "short"}},
                ]
            }
        )
        chapters = asyncio.run(ContextFetcher(cms).get_related_chapters(["@Story"]))

        self.assertEqual(len(chapters[0]["content"]), 1500)
        self.assertEqual(chapters[0]["title"], "Ash")
        self.assertEqual(chapters[1], {"title": "Untitled", "content": "short"})
        self.assertEqual(cms.calls, [("BackupChapters", {"storyTag": {"$eq": "@Story"}}, 3)])


class CatalystIntelTestCase(unittest.TestCase):
    def test_serializes_first_record_with_contains_filter(self) -> None:
        data = {"title": "@Storm rising", "stakes": "everything"}
        cms = FakeCms({"Catalyst": [{"data": data}, {"data": {"title": "second"}}]})
        intel = asyncio.run(ContextFetcher(cms).get_catalyst_intel(["@Storm"]))

        self.assertEqual(json.loads(intel), data)
        self.assertEqual(cms.calls, [("Catalyst", {"title": {"$contains": "@Storm"}}, 1)])


class GatherTestCase(unittest.TestCase):
    def test_gather_skips_lookups_that_are_not_requested(self) -> None:
        cms = FakeCms(
            {
                "Characters": [{"data": {"chatbot": "cold"}}],
                "Catalyst": [{"data": {"title": "@Spark"}}],
            }
        )
        bundle = asyncio.run(ContextFetcher(cms).gather(character_tags=["@Vex"], catalyst_tags=["@Spark"]))

        self.assertIsInstance(bundle, ContextBundle)
        self.assertEqual(bundle.character_context, "cold")
        self.assertEqual(bundle.chat_history, [])
        self.assertEqual(bundle.related_chapters, [])
        self.assertIn("@Spark", bundle.catalyst_intel)
        self.assertEqual(sorted(call[0] for call in cms.calls), ["Catalyst", "Characters"])

    def test_gather_four_way(self) -> None:
        cms = FakeCms(
            {
                "ChatWithCharacters": [{"data": {"chatBox": "[]"}}],
                "BackupChapters": [{"data": {"title": "One", "chapterContent": "text"}}],
            }
        )
        bundle = asyncio.run(
            ContextFetcher(cms).gather(
                character_tags=["@Vex"],
                story_tags=["@Story"],
                catalyst_tags=None,
                include_history=True,
                include_chapters=True,
            )
        )
        self.assertEqual(bundle.chat_history, [{"messages": []}])
        self.assertEqual(bundle.related_chapters, [{"title": "One", "content": "text"}])
        self.assertEqual(bundle.catalyst_intel, "")
        self.assertEqual(len(cms.calls), 3)


if __name__ == "__main__":
    unittest.main()
