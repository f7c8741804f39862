"""
Response parser — recover structured sections from free-form model output.

Sections are found by a line scanner: a line starting with an active header
(optionally behind markdown ``#``/``**`` decoration) followed by a colon opens
that section, and it runs until the next header line. A header word in the
middle of a sentence never splits a section. Headers are matched
case-insensitively with no check for quoted excerpts, so a body line that
itself opens with a header and a colon is still taken as a boundary.

Parsing never fails: missing pieces degrade to fallbacks so the caller always
gets a usable ``ParsedResult``.
"""

import json
import logging
import re
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from summary_bridge.models.result import (
    ClassifiedItem,
    CustomSectionResult,
    FollowUpResult,
    ParsedResult,
    ReferenceLink,
    RelevantLink,
)
from summary_bridge.models.template import OutputTemplate, Section, SectionKind, resolve_sections

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK_CHARS = 500
PLAIN_TEXT_SINGLE_LIMIT = 500
MAX_SENTENCE_ITEMS = 5
MIN_SENTENCE_CHARS = 20

CREATOR_PREFIX = "[From Creator] "
EMPTY_SUMMARY = "Summary could not be generated."
NO_LEARNINGS = [
    "No key learnings could be extracted from the response.",
    "Please try generating the summary again.",
]
DEFAULT_LINK_REASON = "Relevant to the content"

NEGATIVE_ITEM_PHRASES = ("no specific", "none", "n/a", "no action items", "no additional", "not applicable")
NEGATIVE_LINK_PHRASES = ("none", "no links", "no relevant", "not provided", "n/a")

_BULLET_RE = re.compile(r"^(?:[-•]|\d+\.)")
_BULLET_MARK_RE = re.compile(r"^[-•]\s*")
_ORDINAL_MARK_RE = re.compile(r"^\d+\.\s*")
_LINK_ORDINAL_RE = re.compile(r"^[-•*]?\s*(?:Link\s*)?(\d+)[.:\-\s)]", re.IGNORECASE)
_LINK_PREFIX_RE = re.compile(r"^(?:Link\s*)?\d+[.:\-\s)]+", re.IGNORECASE)
_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_ITEMS_OBJECT_RE = re.compile(r'\{[\s\S]*"items"[\s\S]*\}')
_SENTENCE_SPLIT_RE = re.compile(r"(?<=\.)\s+(?=[A-Z])")


def _header_pattern(sections: Sequence[Section]) -> re.Pattern[str]:
    # Longest first so "ACTION ITEMS" wins over a custom "ACTION" header
    headers = sorted({s.header for s in sections}, key=len, reverse=True)
    alternation = "|".join(re.escape(h) for h in headers)
    return re.compile(
        rf"^\s*(?:#{{1,6}}\s*)?(?:\*\*)?(?P<header>{alternation})(?:\*\*)?\s*:\s*(?:\*\*)?\s*(?P<rest>.*)$",
        re.IGNORECASE,
    )


def split_sections(text: str, sections: Sequence[Section]) -> dict[str, str]:
    """Map each section id whose header appears in ``text`` to the text under it.

    Only the first occurrence of a header counts.
    """
    if not sections:
        return {}
    by_header: dict[str, list[Section]] = {}
    for section in sections:
        by_header.setdefault(section.header, []).append(section)

    pattern = _header_pattern(sections)
    bodies: dict[str, list[str]] = {}
    current: Optional[str] = None  # None while scanning for a header
    for line in text.splitlines():
        match = pattern.match(line)
        if match:
            header = match.group("header").upper()
            if header in bodies:
                current = None
                continue
            current = header
            bodies[header] = [match.group("rest")] if match.group("rest") else []
            continue
        if current is not None:
            bodies[current].append(line)

    found: dict[str, str] = {}
    for header, lines in bodies.items():
        for section in by_header.get(header, []):
            found[section.id] = "\n".join(lines).strip()
    return found


def extract_bullets(text: str) -> list[str]:
    """Lines starting with ``-``, ``•`` or ``N.``, with the marker stripped."""
    items = []
    for line in text.splitlines():
        line = line.strip()
        if not _BULLET_RE.match(line):
            continue
        item = _ORDINAL_MARK_RE.sub("", _BULLET_MARK_RE.sub("", line)).strip()
        if item:
            items.append(item)
    return items


def _is_negative(text: str, phrases: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in phrases)


def match_links(text: str, references: Sequence[ReferenceLink]) -> list[RelevantLink]:
    """Re-attach 1-based link citations in ``text`` to entries of ``references``."""
    if not text or not references or _is_negative(text, NEGATIVE_LINK_PHRASES):
        return []
    links: list[RelevantLink] = []
    seen: set[str] = set()
    for line in text.splitlines():
        line = line.strip()
        match = _LINK_ORDINAL_RE.match(line)
        if not match:
            continue
        index = int(match.group(1)) - 1
        if not 0 <= index < len(references):
            continue
        ref = references[index]
        if ref.url in seen:
            continue
        seen.add(ref.url)
        reason = _LINK_PREFIX_RE.sub("", re.sub(r"^[-•*]\s*", "", line)).strip()
        links.append(RelevantLink(url=ref.url, text=ref.text, reason=reason or DEFAULT_LINK_REASON))
    return links


def parse_response(
    raw: str,
    references: Sequence[ReferenceLink] = (),
    template: Optional[OutputTemplate] = None,
) -> ParsedResult:
    cleaned = raw.strip()
    sections = resolve_sections(template)
    bodies = split_sections(cleaned, sections)

    def body_of(kind: SectionKind) -> Optional[str]:
        for section in sections:
            if section.kind is kind and section.id in bodies:
                return bodies[section.id]
        return None

    summary = body_of(SectionKind.SUMMARY)
    if summary is None:
        logger.debug("No summary header found, falling back to the start of the response")
        summary = cleaned[:SUMMARY_FALLBACK_CHARS].strip()

    key_learnings = extract_bullets(body_of(SectionKind.KEY_LEARNINGS) or "")

    creator = body_of(SectionKind.CREATOR_ADDITIONS) or ""
    if creator and not _is_negative(creator, NEGATIVE_ITEM_PHRASES):
        key_learnings += [CREATOR_PREFIX + item for item in extract_bullets(creator)]

    actions = body_of(SectionKind.ACTION_ITEMS) or ""
    action_items = [] if _is_negative(actions, NEGATIVE_ITEM_PHRASES) else extract_bullets(actions)

    relevant_links = match_links(body_of(SectionKind.RELEVANT_LINKS) or "", references)

    custom_sections = [
        CustomSectionResult(
            id=section.id,
            label=section.label,
            text=bodies[section.id],
            items=extract_bullets(bodies[section.id]) if section.format == "bullets" else [],
        )
        for section in sections
        if section.kind is SectionKind.CUSTOM and section.id in bodies
    ]

    if not key_learnings:
        key_learnings = list(NO_LEARNINGS)

    return ParsedResult(
        summary=summary or EMPTY_SUMMARY,
        key_learnings=key_learnings,
        action_items=action_items,
        relevant_links=relevant_links,
        custom_sections=custom_sections,
    )


def _load_items_object(raw: str) -> Optional[Any]:
    candidates = [m.group(1) for m in _FENCED_JSON_RE.finditer(raw)]
    match = _ITEMS_OBJECT_RE.search(raw)
    if match:
        candidates.append(match.group(0))
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict) and isinstance(data.get("items"), list):
            return data
    return None


def parse_as_plain_text(text: str) -> list[str]:
    """Bullet lines if there are any, else the text itself or its first sentences."""
    items = extract_bullets(text)
    if items:
        return items
    trimmed = text.strip()
    if not trimmed:
        return []
    if len(trimmed) < PLAIN_TEXT_SINGLE_LIMIT:
        return [trimmed]
    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(trimmed)]
    return [s for s in sentences if len(s) > MIN_SENTENCE_CHARS][:MAX_SENTENCE_ITEMS]


def parse_follow_up(raw: str) -> FollowUpResult:
    """Split a follow-up answer into insights and actions. Never raises."""
    data = _load_items_object(raw)
    if data is None:
        logger.debug("Follow-up response had no usable JSON items, parsing as plain text")
        return FollowUpResult(insights=parse_as_plain_text(raw), actions=[])

    result = FollowUpResult()
    for entry in data["items"]:
        try:
            item = ClassifiedItem.model_validate(entry)
        except ValidationError:
            logger.debug(f"Skipping unclassifiable follow-up item: {entry!r}")
            continue
        text = item.text.strip()
        if not text:
            continue
        if item.type == "insight":
            result.insights.append(text)
        else:
            result.actions.append(text)
    return result
