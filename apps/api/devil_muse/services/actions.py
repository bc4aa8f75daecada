from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol, Sequence

from devil_muse.schemas.devil_pov import (
    AnalysisRequest,
    ChapterRewriteRequest,
    CharacterChatRequest,
    DevilPovActionRequest,
    InvokeRequest,
    SelectionRewriteRequest,
    TagGenerationRequest,
    TagList,
)
from devil_muse.services import prompts
from devil_muse.services.analysis import parse_markers
from devil_muse.services.context_fetchers import ContextBundle, ContextFetcher


_LOGGER = logging.getLogger(__name__)

CHAT_HISTORY_WINDOW = 70
SESSION_PREVIEW_MESSAGES = 5


class ActionInputError(ValueError):
    """Required input text is missing or blank."""


class UnknownActionError(ValueError):
    pass


class DevilAction(str, Enum):
    UNHINGE = "unhinge"
    UNLEASH = "unleash"
    NO_MERCY = "noMercy"
    INVOKE = "invoke"
    INTENSIFY = "intensify"
    CHARACTER_CHAT = "characterChat"
    DEVIL_POV = "devilPOV"
    OVERUSE_SCANNER = "overuse_scanner"
    PACING_ANALYZER = "pacing_analyzer"
    SENTENCE_MECHANICS = "sentence_mechanics"
    DIALOGUE_CRITIC = "dialogue_critic"
    AI_CRITIC = "ai_critic"
    STRUCTURAL_CHECK = "structural_check"
    TAG_GENERATION = "tag_generation"


DEFAULT_ACTION = DevilAction.DEVIL_POV


class FallbackCaller(Protocol):
    async def call(self, messages: Sequence[dict[str, Any]], temperature: float = ..., max_tokens: int = ...) -> str: ...


class FixedModelCaller(Protocol):
    async def call(self, messages: Sequence[dict[str, Any]], max_tokens: int = ...) -> str: ...


@dataclass
class ActionDependencies:
    caller: FallbackCaller
    analysis_caller: FixedModelCaller
    tag_caller: FixedModelCaller
    context: ContextFetcher


Handler = Callable[[dict[str, Any], ActionDependencies], Awaitable[Any]]


def resolve_action(raw_action: Any, *, strict: bool = False) -> DevilAction:
    """Map the request discriminator onto an action; unknown values use the default."""
    if raw_action is None or raw_action == "":
        return DEFAULT_ACTION
    try:
        return DevilAction(str(raw_action))
    except ValueError:
        if strict:
            raise UnknownActionError(f"Unknown action: {raw_action}")
        _LOGGER.info("unknown action=%s, using %s", raw_action, DEFAULT_ACTION.value)
        return DEFAULT_ACTION


def _require_text(value: str | None, message: str) -> str:
    if not value or not value.strip():
        raise ActionInputError(message)
    return value


def _tag_list(tags: TagList) -> list[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        return [tags] if tags else []
    return [str(tag) for tag in tags]


def _joined_line(label: str, tags: TagList) -> str:
    items = _tag_list(tags)
    return f"{label}: {', '.join(items)}" if items else ""


def _append_context_sections(system_prompt: str, *, personality_section: str, bundle: ContextBundle) -> str:
    if bundle.character_context:
        system_prompt += personality_section.format(content=bundle.character_context)
    if bundle.catalyst_intel:
        system_prompt += prompts.CATALYST_SECTION.format(content=bundle.catalyst_intel)
    return system_prompt


def _chapters_block(header: str, chapters: list[dict[str, str]]) -> str:
    block = f"\n\n{header}\n"
    for chapter in chapters:
        block += f"[{chapter['title']}]\n{chapter['content']}\n\n"
    return block


def _sessions_block(sessions: list[dict[str, Any]]) -> str:
    block = "\n\nCONVERSATIONS THE AUTHOR HAS HAD WITH YOU:\n"
    for idx, session in enumerate(sessions, start=1):
        block += f"\n[Session {idx}]\n"
        for message in (session.get("messages") or [])[-SESSION_PREVIEW_MESSAGES:]:
            if not isinstance(message, dict):
                continue
            speaker = "AUTHOR" if message.get("type") == "user" else "YOU"
            block += f"{speaker}: {message.get('text', '')}\n"
    return block


async def handle_unhinge(payload: dict[str, Any], deps: ActionDependencies) -> str:
    request = ChapterRewriteRequest.model_validate(payload)
    chapter = _require_text(request.chapter_content, "No content to unhinge")
    messages = [
        {"role": "system", "content": prompts.UNHINGE_SYSTEM_PROMPT},
        {"role": "user", "content": prompts.UNHINGE_USER_PREFIX + chapter},
    ]
    return await deps.caller.call(messages, 0.9, 3000)


async def handle_unleash(payload: dict[str, Any], deps: ActionDependencies) -> str:
    request = ChapterRewriteRequest.model_validate(payload)
    chapter = _require_text(request.chapter_content, "No content to continue from")
    bundle = await deps.context.gather(
        character_tags=request.character_tags,
        catalyst_tags=request.catalyst_tags,
    )
    system_prompt = _append_context_sections(
        prompts.UNLEASH_SYSTEM_PROMPT,
        personality_section=prompts.CHARACTER_SECTION,
        bundle=bundle,
    )
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": prompts.UNLEASH_USER_PREFIX + chapter},
    ]
    return await deps.caller.call(messages, 0.85, 2000)


async def handle_no_mercy(payload: dict[str, Any], deps: ActionDependencies) -> str:
    request = SelectionRewriteRequest.model_validate(payload)
    selected = _require_text(request.selected_text, "No text selected for rewrite")
    messages = [
        {"role": "system", "content": prompts.NO_MERCY_SYSTEM_PROMPT},
        {"role": "user", "content": prompts.NO_MERCY_USER_PREFIX + selected},
    ]
    return await deps.caller.call(messages, 0.9, 1500)


async def handle_invoke(payload: dict[str, Any], deps: ActionDependencies) -> str:
    request = InvokeRequest.model_validate(payload)
    user_prompt = _require_text(request.user_prompt, "No prompt provided for invoke")
    bundle = await deps.context.gather(
        character_tags=request.character_tags,
        catalyst_tags=request.catalyst_tags,
    )
    system_prompt = prompts.INVOKE_SYSTEM_TEMPLATE.format(
        context_before=request.context_before or "",
        context_after=request.context_after or "",
        user_prompt=user_prompt,
    )
    system_prompt = _append_context_sections(
        system_prompt,
        personality_section=prompts.CHARACTER_SECTION,
        bundle=bundle,
    )
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]
    return await deps.caller.call(messages, 0.85, 800)


async def handle_intensify(payload: dict[str, Any], deps: ActionDependencies) -> str:
    request = SelectionRewriteRequest.model_validate(payload)
    selected = _require_text(request.selected_text, "No text selected to intensify")
    messages = [
        {"role": "system", "content": prompts.INTENSIFY_SYSTEM_PROMPT},
        {"role": "user", "content": prompts.INTENSIFY_USER_PREFIX + selected},
    ]
    return await deps.caller.call(messages, 0.8, 1500)


async def handle_character_chat(payload: dict[str, Any], deps: ActionDependencies) -> str:
    request = CharacterChatRequest.model_validate(payload)
    user_message = _require_text(request.user_message, "No message provided")
    current_session = list(request.chat_history or [])
    _LOGGER.info(
        "character chat: character=%s tags=%s session messages=%d",
        request.character_name,
        _tag_list(request.character_tags),
        len(current_session),
    )

    # Catalyst intel for chat is keyed by the character tags.
    bundle = await deps.context.gather(
        character_tags=request.character_tags,
        story_tags=request.story_tags,
        catalyst_tags=request.character_tags,
        include_history=True,
        include_chapters=True,
    )

    character_name = request.character_name or ""
    personality = request.chatbot_instructions or bundle.character_context or ""
    if request.persona_type == prompts.AUTHOR_MODE_PERSONA:
        system_prompt = prompts.CHARACTER_CHAT_AUTHOR_MODE_TEMPLATE.format(
            character_name=character_name,
            personality=personality,
        )
    else:
        system_prompt = prompts.CHARACTER_CHAT_SYSTEM_TEMPLATE.format(character_name=character_name)
        if personality:
            system_prompt += f"YOUR CORE PERSONALITY:\n{personality}\n\n"
        system_prompt += "\n".join(
            [
                _joined_line("Your character traits", request.character_tags),
                _joined_line("Story tags", request.story_tags),
                _joined_line("Your tone", request.tone_tags),
            ]
        )

    if bundle.catalyst_intel:
        system_prompt += prompts.CATALYST_SECTION.format(content=bundle.catalyst_intel)
    if bundle.related_chapters:
        system_prompt += _chapters_block("RELATED CHAPTERS YOU APPEAR IN:", bundle.related_chapters)

    _LOGGER.info(
        "character chat prompt: chars=%d chapters=%d sending last %d of %d session messages",
        len(system_prompt),
        len(bundle.related_chapters),
        min(len(current_session), CHAT_HISTORY_WINDOW),
        len(current_session),
    )
    messages = [
        {"role": "system", "content": system_prompt},
        *current_session[-CHAT_HISTORY_WINDOW:],
        {"role": "user", "content": user_message},
    ]
    return await deps.caller.call(messages, 0.85, 500)


async def handle_devil_pov(payload: dict[str, Any], deps: ActionDependencies) -> str:
    request = DevilPovActionRequest.model_validate(payload)
    previous_chapter = _require_text(request.previous_chapter, "No chapter provided")

    bundle = await deps.context.gather(
        character_tags=request.character_tags,
        story_tags=request.story_tags,
        catalyst_tags=request.catalyst_tags,
        include_history=True,
        include_chapters=True,
    )

    system_prompt = prompts.DEVIL_POV_SYSTEM_TEMPLATE.format(
        character_name=request.character_name or "the antagonist",
        character_traits=_joined_line("Character traits", request.character_tags),
        story_context=_joined_line("Story", request.story_tags),
        tone_context=_joined_line("Tone", request.tone_tags),
    )
    system_prompt = _append_context_sections(
        system_prompt,
        personality_section=prompts.PERSONALITY_SECTION,
        bundle=bundle,
    )
    if bundle.related_chapters:
        system_prompt += _chapters_block("RELATED CHAPTERS FROM THIS STORY:", bundle.related_chapters)
    if bundle.chat_history:
        system_prompt += _sessions_block(bundle.chat_history)
    system_prompt += prompts.DEVIL_POV_CLOSING

    _LOGGER.info(
        "devil pov prompt: chars=%d sessions=%d chapters=%d",
        len(system_prompt),
        len(bundle.chat_history),
        len(bundle.related_chapters),
    )
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": prompts.DEVIL_POV_USER_TEMPLATE.format(previous_chapter=previous_chapter)},
    ]
    return await deps.caller.call(messages, 0.9, 2500)


def _analysis_handler(template: str, max_tokens: int, parse_error: str) -> Handler:
    async def handle(payload: dict[str, Any], deps: ActionDependencies) -> list[dict[str, Any]]:
        request = AnalysisRequest.model_validate(payload)
        text = _require_text(request.text, "No text provided for analysis")
        messages = [{"role": "user", "content": template.format(text=text)}]
        raw = await deps.analysis_caller.call(messages, max_tokens)
        return parse_markers(raw, error_message=parse_error)

    return handle


handle_overuse_scanner = _analysis_handler(
    prompts.OVERUSE_SCANNER_PROMPT, 3000, "Failed to parse analysis response"
)
handle_pacing_analyzer = _analysis_handler(
    prompts.PACING_ANALYZER_PROMPT, 3000, "Failed to parse pacing analysis"
)
handle_sentence_mechanics = _analysis_handler(
    prompts.SENTENCE_MECHANICS_PROMPT, 2500, "Failed to parse mechanics analysis"
)
handle_dialogue_critic = _analysis_handler(
    prompts.DIALOGUE_CRITIC_PROMPT, 2500, "Failed to parse dialogue analysis"
)
handle_structural_check = _analysis_handler(
    prompts.STRUCTURAL_CHECK_PROMPT, 2500, "Failed to parse structural analysis"
)


def critic_persona_label(persona: str) -> str:
    return persona.replace("_", " ", 1).upper()


async def handle_ai_critic(payload: dict[str, Any], deps: ActionDependencies) -> list[dict[str, Any]]:
    request = AnalysisRequest.model_validate(payload)
    text = _require_text(request.text, "No text provided for critique")
    persona = request.persona if request.persona in prompts.CRITIC_PERSONAS else prompts.DEFAULT_CRITIC_PERSONA
    messages = [
        {
            "role": "user",
            "content": prompts.AI_CRITIC_PROMPT.format(
                persona_prompt=prompts.CRITIC_PERSONAS[persona],
                persona_label=critic_persona_label(persona),
                text=text,
            ),
        }
    ]
    raw = await deps.analysis_caller.call(messages, 3500)
    return parse_markers(raw, error_message="Failed to parse critic response")


async def handle_tag_generation(payload: dict[str, Any], deps: ActionDependencies) -> dict[str, str]:
    request = TagGenerationRequest.model_validate(payload)
    name = _require_text(request.name, "No name provided for tag generation")
    existing = [tag for tag in (request.existing_tags or []) if tag]
    avoid = prompts.TAG_AVOID_CLAUSE.format(tags=", ".join(existing)) if existing else ""
    template = prompts.CHARACTER_TAG_PROMPT if request.type == "character" else prompts.STORY_TAG_PROMPT
    messages = [{"role": "user", "content": template.format(name=name, avoid=avoid)}]
    tag = (await deps.tag_caller.call(messages, 50)).strip()
    _LOGGER.info("generated %s tag=%s", request.type or "story", tag)
    return {"tag": tag}


ACTION_HANDLERS: dict[DevilAction, Handler] = {
    DevilAction.UNHINGE: handle_unhinge,
    DevilAction.UNLEASH: handle_unleash,
    DevilAction.NO_MERCY: handle_no_mercy,
    DevilAction.INVOKE: handle_invoke,
    DevilAction.INTENSIFY: handle_intensify,
    DevilAction.CHARACTER_CHAT: handle_character_chat,
    DevilAction.DEVIL_POV: handle_devil_pov,
    DevilAction.OVERUSE_SCANNER: handle_overuse_scanner,
    DevilAction.PACING_ANALYZER: handle_pacing_analyzer,
    DevilAction.SENTENCE_MECHANICS: handle_sentence_mechanics,
    DevilAction.DIALOGUE_CRITIC: handle_dialogue_critic,
    DevilAction.AI_CRITIC: handle_ai_critic,
    DevilAction.STRUCTURAL_CHECK: handle_structural_check,
    DevilAction.TAG_GENERATION: handle_tag_generation,
}


async def run_action(action: DevilAction, payload: dict[str, Any], deps: ActionDependencies) -> Any:
    return await ACTION_HANDLERS[action](payload, deps)
