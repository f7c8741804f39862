"""
Output templates — the user-configurable ordered list of sections the model
must produce.

Built-in section kinds are a closed set; any other id is a custom section
carrying only its label and format. Header text is always the section label
uppercased, and the prompt builder and the response parser both read headers
from ``resolve_sections`` so they cannot drift apart.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator, model_validator


class SectionKind(str, Enum):
    SUMMARY = "summary"
    KEY_LEARNINGS = "key_learnings"
    ACTION_ITEMS = "action_items"
    CREATOR_ADDITIONS = "creator_additions"
    RELEVANT_LINKS = "relevant_links"
    CUSTOM = "custom"


DEFAULT_LABELS: dict[SectionKind, str] = {
    SectionKind.SUMMARY: "Summary",
    SectionKind.KEY_LEARNINGS: "Key Learnings",
    SectionKind.ACTION_ITEMS: "Action Items",
    SectionKind.CREATOR_ADDITIONS: "Creator Additions",
    SectionKind.RELEVANT_LINKS: "Relevant Links",
}

_BUILTIN_IDS = {kind.value: kind for kind in SectionKind if kind is not SectionKind.CUSTOM}


class Section(BaseModel):
    id: str
    label: str
    enabled: bool = True
    format: Literal["prose", "bullets"] = "bullets"

    @field_validator("format", mode="before")
    @classmethod
    def _legacy_format(cls, value: Any) -> Any:
        # The settings page stores prose sections as "paragraphs"
        if value == "paragraphs":
            return "prose"
        return value

    @property
    def kind(self) -> SectionKind:
        return _BUILTIN_IDS.get(self.id, SectionKind.CUSTOM)

    @property
    def header(self) -> str:
        return self.label.strip().upper()


class OutputTemplate(BaseModel):
    sections: list[Section] = []

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, value: Any) -> Any:
        if isinstance(value, list):
            return {"sections": value}
        return value

    @field_validator("sections")
    @classmethod
    def _unique_ids(cls, sections: list[Section]) -> list[Section]:
        seen: set[str] = set()
        for section in sections:
            if section.id in seen:
                raise ValueError(f"duplicate section id: {section.id}")
            seen.add(section.id)
        return sections

    def enabled_sections(self) -> list[Section]:
        return [s for s in self.sections if s.enabled]


def default_sections(creator_additions: bool = True) -> list[Section]:
    kinds = [SectionKind.SUMMARY, SectionKind.KEY_LEARNINGS]
    if creator_additions:
        kinds.append(SectionKind.CREATOR_ADDITIONS)
    kinds += [SectionKind.ACTION_ITEMS, SectionKind.RELEVANT_LINKS]
    return [
        Section(
            id=kind.value,
            label=DEFAULT_LABELS[kind],
            format="prose" if kind is SectionKind.SUMMARY else "bullets",
        )
        for kind in kinds
    ]


def resolve_sections(template: Optional[OutputTemplate], creator_additions: bool = True) -> list[Section]:
    """Active sections: the template's enabled ones, or the hardcoded default set
    when the template is absent, empty, or fully disabled."""
    if template is not None:
        enabled = template.enabled_sections()
        if enabled:
            return enabled
    return default_sections(creator_additions)


def uses_default(template: Optional[OutputTemplate]) -> bool:
    return template is None or not template.enabled_sections()
