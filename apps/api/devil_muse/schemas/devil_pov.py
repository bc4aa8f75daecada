from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


TagList = Optional[Union[str, list[str]]]


class _ActionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class DevilPovRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    action: Any = None


class DevilPovResponse(BaseModel):
    status: str = "success"
    result: Any
    charsGenerated: int
    processingTime: int


class ErrorEnvelope(BaseModel):
    error: str
    details: str


class AnalysisMarker(BaseModel):
    icon: str
    type: str
    message: str
    detail: str


class ChapterRewriteRequest(_ActionPayload):
    chapter_content: Optional[str] = Field(default=None, alias="chapterContent")
    character_tags: TagList = Field(default=None, alias="characterTags")
    story_tags: TagList = Field(default=None, alias="storyTags")
    catalyst_tags: TagList = Field(default=None, alias="catalystTags")


class SelectionRewriteRequest(_ActionPayload):
    selected_text: Optional[str] = Field(default=None, alias="selectedText")


class InvokeRequest(_ActionPayload):
    user_prompt: Optional[str] = Field(default=None, alias="userPrompt")
    context_before: Optional[str] = Field(default=None, alias="contextBefore")
    context_after: Optional[str] = Field(default=None, alias="contextAfter")
    character_tags: TagList = Field(default=None, alias="characterTags")
    story_tags: TagList = Field(default=None, alias="storyTags")
    catalyst_tags: TagList = Field(default=None, alias="catalystTags")


class CharacterChatRequest(_ActionPayload):
    user_message: Optional[str] = Field(default=None, alias="userMessage")
    character_id: Optional[str] = Field(default=None, alias="characterId")
    character_name: Optional[str] = Field(default=None, alias="characterName")
    persona_type: Optional[str] = Field(default=None, alias="personaType")
    chatbot_instructions: Optional[str] = Field(default=None, alias="chatbotInstructions")
    character_tags: TagList = Field(default=None, alias="characterTags")
    story_tags: TagList = Field(default=None, alias="storyTags")
    tone_tags: TagList = Field(default=None, alias="toneTags")
    chat_history: Optional[list[dict[str, Any]]] = Field(default=None, alias="chatHistory")


class DevilPovActionRequest(_ActionPayload):
    previous_chapter: Optional[str] = Field(default=None, alias="previousChapter")
    character_name: Optional[str] = Field(default=None, alias="characterName")
    character_tags: TagList = Field(default=None, alias="characterTags")
    story_tags: TagList = Field(default=None, alias="storyTags")
    tone_tags: TagList = Field(default=None, alias="toneTags")
    catalyst_tags: TagList = Field(default=None, alias="catalystTags")


class AnalysisRequest(_ActionPayload):
    text: Optional[str] = None
    persona: Optional[str] = None


class TagGenerationRequest(_ActionPayload):
    name: Optional[str] = None
    type: Optional[str] = None
    existing_tags: Optional[list[str]] = Field(default=None, alias="existingTags")
