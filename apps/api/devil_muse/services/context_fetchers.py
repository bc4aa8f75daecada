from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence


_LOGGER = logging.getLogger(__name__)

CHARACTERS_COLLECTION = "Characters"
CHAT_SESSIONS_COLLECTION = "ChatWithCharacters"
CHAPTERS_COLLECTION = "BackupChapters"
CATALYST_COLLECTION = "Catalyst"

CHAPTER_CONTENT_MAX_CHARS = 1500
CHAT_SESSION_LIMIT = 5
RELATED_CHAPTER_LIMIT = 3

TagInput = str | Sequence[str] | None


class CmsQueryClient(Protocol):
    async def query(self, collection: str, filter: dict[str, Any] | None = None, limit: int = 10) -> Any: ...


@dataclass
class ContextBundle:
    character_context: str = ""
    chat_history: list[dict[str, Any]] = field(default_factory=list)
    related_chapters: list[dict[str, str]] = field(default_factory=list)
    catalyst_intel: str = ""


def first_tag(tags: TagInput) -> str | None:
    """Only the first tag of a list is ever used for lookups."""
    if tags is None:
        return None
    if isinstance(tags, str):
        candidate = tags
    else:
        items = list(tags)
        if not items:
            return None
        candidate = items[0]
    text = str(candidate or "").strip()
    return text or None


def _record_data(item: dict[str, Any]) -> dict[str, Any]:
    data = item.get("data")
    return data if isinstance(data, dict) else {}


def _decode_chat_box(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    return raw if isinstance(raw, list) else []


class ContextFetcher:
    def __init__(self, cms: CmsQueryClient) -> None:
        self.cms = cms

    async def _lookup(self, collection: str, filter: dict[str, Any], limit: int) -> Any:
        result = await self.cms.query(collection, filter, limit)
        if not result.ok:
            _LOGGER.info("collection=%s no context: %s", collection, result.reason)
        return result

    async def get_character_context(self, character_tags: TagInput) -> str:
        tag = first_tag(character_tags)
        if tag is None:
            return ""
        result = await self._lookup(CHARACTERS_COLLECTION, {"charactertags": {"$eq": tag}}, 1)
        if not result.items:
            return ""
        personality = _record_data(result.items[0]).get("chatbot")
        return personality if isinstance(personality, str) else ""

    async def get_chat_history(self, character_tags: TagInput) -> list[dict[str, Any]]:
        tag = first_tag(character_tags)
        if tag is None:
            return []
        result = await self._lookup(
            CHAT_SESSIONS_COLLECTION,
            {"charactertags": {"$eq": tag}},
            CHAT_SESSION_LIMIT,
        )
        _LOGGER.info("tag=%s chat sessions=%d", tag, len(result.items))
        return [{"messages": _decode_chat_box(_record_data(item).get("chatBox"))} for item in result.items]

    async def get_related_chapters(self, story_tags: TagInput) -> list[dict[str, str]]:
        tag = first_tag(story_tags)
        if tag is None:
            return []
        result = await self._lookup(CHAPTERS_COLLECTION, {"storyTag": {"$eq": tag}}, RELATED_CHAPTER_LIMIT)
        chapters: list[dict[str, str]] = []
        for item in result.items:
            data = _record_data(item)
            title = str(data.get("title") or "Untitled")
            content = str(data.get("chapterContent") or "")
            chapters.append({"title": title, "content": content[:CHAPTER_CONTENT_MAX_CHARS]})
        return chapters

    async def get_catalyst_intel(self, catalyst_tags: TagInput) -> str:
        tag = first_tag(catalyst_tags)
        if tag is None:
            return ""
        result = await self._lookup(CATALYST_COLLECTION, {"title": {"$contains": tag}}, 1)
        if not result.items:
            return ""
        data = result.items[0].get("data")
        if data is None:
            return ""
        return json.dumps(data, ensure_ascii=False, indent=2)

    async def gather(
        self,
        *,
        character_tags: TagInput = None,
        story_tags: TagInput = None,
        catalyst_tags: TagInput = None,
        include_history: bool = False,
        include_chapters: bool = False,
    ) -> ContextBundle:
        """Run the needed lookups concurrently; each one already degrades to its empty default."""

        async def _empty_list() -> list[Any]:
            return []

        character, history, chapters, catalyst = await asyncio.gather(
            self.get_character_context(character_tags),
            self.get_chat_history(character_tags) if include_history else _empty_list(),
            self.get_related_chapters(story_tags) if include_chapters else _empty_list(),
            self.get_catalyst_intel(catalyst_tags),
        )
        bundle = ContextBundle(
            character_context=character,
            chat_history=history,
            related_chapters=chapters,
            catalyst_intel=catalyst,
        )
        _LOGGER.info(
            "context gathered: personality=%s sessions=%d chapters=%d catalyst=%s",
            "yes" if bundle.character_context else "no",
            len(bundle.chat_history),
            len(bundle.related_chapters),
            "yes" if bundle.catalyst_intel else "no",
        )
        return bundle
