"""
Content and result models.

``ContentPayload`` is what the page-extraction side hands over; ``ParsedResult``
and ``FollowUpResult`` are what the response parser produces.
"""

import math
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from summary_bridge.models.base import WireModel


class ReferenceLink(WireModel):
    url: str
    text: str = ""


class RelevantLink(WireModel):
    url: str
    text: str = ""
    reason: str = ""


class Comment(WireModel):
    text: str = ""
    likes: float = 0
    author: str = ""
    is_reply: bool = False

    @field_validator("likes", mode="before")
    @classmethod
    def _unknown_likes_are_zero(cls, value: Any) -> Any:
        # Unparseable counts ("1.2K", NaN serialised as null) reach us as junk
        if isinstance(value, bool):
            return 0
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                return 0
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            return 0
        return value


class ContentPayload(WireModel):
    """Extracted page content. ``transcript`` holds the body text for every content kind."""
    title: str = ""
    url: str = ""
    transcript: str = ""
    description: str = ""
    byline: str = ""
    site_name: str = ""
    excerpt: str = ""
    creator_comments: list[Comment] = []
    viewer_comments: list[Comment] = []
    links: list[ReferenceLink] = Field(
        default_factory=list,
        validation_alias=AliasChoices("links", "descriptionLinks"),
    )


class CustomSectionResult(WireModel):
    id: str
    label: str
    text: str = ""
    items: list[str] = []


class ParsedResult(WireModel):
    summary: str
    key_learnings: list[str]
    action_items: list[str] = []
    relevant_links: list[RelevantLink] = []
    custom_sections: list[CustomSectionResult] = []


class ClassifiedItem(WireModel):
    type: Literal["insight", "action"]
    text: str


class FollowUpResult(WireModel):
    insights: list[str] = []
    actions: list[str] = []
