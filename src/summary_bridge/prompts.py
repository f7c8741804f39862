"""
Prompt builder — turns extracted content into a model-ready prompt.

The prompt ends with an explicit output contract: one header line per active
section (the section label uppercased, followed by a colon). The response
parser reads the same headers from ``resolve_sections``.

Truncation is deliberate and bounded: long bodies and descriptions are cut and
marked so the model knows text is missing.
"""

from typing import Optional, Sequence

from summary_bridge.models.result import Comment, ContentPayload, ReferenceLink
from summary_bridge.models.template import OutputTemplate, Section, SectionKind, resolve_sections, uses_default

TRUNCATION_MARKER = "...[truncated]"
MAX_BODY_CHARS = 50_000
MAX_VIDEO_DESCRIPTION_CHARS = 5_000
MAX_ARTICLE_DESCRIPTION_CHARS = 2_000

MIN_CREATOR_COMMENT_CHARS = 15
MIN_VIEWER_COMMENT_CHARS = 30
MIN_VIEWER_COMMENT_LIKES = 10
MAX_VIEWER_COMMENTS = 10

VIDEO_KINDS = {"youtube_video", "video_with_captions"}
# Framing for content kinds the extension does not know about
FALLBACK_KIND = "webpage"

DEFAULT_INSTRUCTIONS = """Analyze this YouTube video and extract the most valuable insights.

Focus on:
- Main arguments and conclusions
- Actionable advice and recommendations
- Interesting facts or statistics mentioned
- Key concepts explained

Make the summary engaging and the learnings practical."""

KIND_INSTRUCTIONS = {
    "youtube_video": DEFAULT_INSTRUCTIONS,
    "video_with_captions": """Analyze this video transcript and extract the most valuable insights.

Focus on:
- Main topics covered
- Key concepts explained
- Actionable advice
- Important details and examples

Make the summary clear and the learnings practical.""",
    "article": """Summarize this article and extract the most important insights.

Focus on:
- The main thesis and arguments
- Key evidence and supporting points
- Practical takeaways
- Any notable quotes or data

Keep the summary concise but comprehensive.""",
    "webpage": """Summarize this web page content and extract useful information.

Focus on:
- Main purpose and content of the page
- Key information presented
- Useful takeaways

Be concise and focus on the most valuable content.""",
    "selected_text": """Analyze and summarize the selected text, extracting key insights.

Focus on:
- Main ideas and arguments
- Important details
- Practical implications""",
}

KIND_INTROS = {
    "youtube_video": "You are analyzing a YouTube video transcript.",
    "video_with_captions": "You are analyzing a video transcript.",
    "article": "You are analyzing an article.",
    "webpage": "You are analyzing the content of a web page.",
    "selected_text": "You are analyzing a passage of text selected by the user.",
}

NO_ACTION_ITEMS = "No specific action items identified."
NO_CREATOR_ADDITIONS = "No additional insights from creator comments."
NO_LINKS = "No links provided"

# Body written under each header of the built-in sections
_SECTION_GUIDES: dict[SectionKind, str] = {
    SectionKind.SUMMARY: "[Write your summary here - 2-3 paragraphs based on the instructions above]",
    SectionKind.KEY_LEARNINGS: (
        "- [First key learning or takeaway]\n"
        "- [Second key learning or takeaway]\n"
        "- [Third key learning or takeaway]\n"
        "- [Continue with more learnings as appropriate]"
    ),
    SectionKind.CREATOR_ADDITIONS: (
        "[Insights from the creator's comments/replies that add to or clarify the main content]\n"
        "- [First creator addition]\n"
        "- [Continue as appropriate]\n"
        f'(If the creator comments add nothing new, write "{NO_CREATOR_ADDITIONS}")'
    ),
    SectionKind.ACTION_ITEMS: (
        "- [Specific, practical step the reader can take]\n"
        "- [Continue as appropriate]\n"
        f'(If there are no clear action items, write "{NO_ACTION_ITEMS}")'
    ),
    SectionKind.RELEVANT_LINKS: (
        "[Review the numbered links above. Include ANY links that could be useful resources for someone "
        "interested in this topic - tools, documentation, courses, related content, etc. Be generous - if a "
        "link might be helpful, include it. Format each as: the link number followed by a brief reason.]\n"
        "- 1. [Why this link is useful]\n"
        "- 2. [Why this link is useful]\n"
        f'(If no links were provided, write "{NO_LINKS}")'
    ),
}


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def is_video(content_kind: str) -> bool:
    return content_kind in VIDEO_KINDS


def select_creator_comments(comments: Sequence[Comment]) -> list[Comment]:
    return [c for c in comments if len(c.text.strip()) >= MIN_CREATOR_COMMENT_CHARS]


def select_viewer_comments(comments: Sequence[Comment]) -> list[Comment]:
    kept = [
        c for c in comments
        if len(c.text.strip()) >= MIN_VIEWER_COMMENT_CHARS and c.likes >= MIN_VIEWER_COMMENT_LIKES
    ]
    kept.sort(key=lambda c: c.likes, reverse=True)
    return kept[:MAX_VIEWER_COMMENTS]


def format_references(references: Sequence[ReferenceLink]) -> str:
    """Render references 1-indexed; the model cites them back by these numbers."""
    return "\n".join(f"{i}. {ref.text}: {ref.url}" for i, ref in enumerate(references, start=1))


def _context_blocks(content: ContentPayload, references: Sequence[ReferenceLink], content_kind: str,
                    creator: list[Comment], viewers: list[Comment]) -> tuple[list[str], list[str]]:
    video = is_video(content_kind)
    before: list[str] = []
    after: list[str] = []

    if content.description:
        limit = MAX_VIDEO_DESCRIPTION_CHARS if video else MAX_ARTICLE_DESCRIPTION_CHARS
        label = "Video Description" if video else "Description"
        before.append(f"{label}:\n{truncate(content.description, limit)}")

    metadata = [
        (name, value) for name, value in (
            ("Author", content.byline), ("Site", content.site_name),
            ("Excerpt", truncate(content.excerpt, MAX_ARTICLE_DESCRIPTION_CHARS)), ("URL", content.url),
        ) if value
    ]
    if metadata:
        before.append("Page Metadata:\n" + "\n".join(f"{name}: {value}" for name, value in metadata))

    if references:
        header = "Links from Description" if video else "Links from Page"
        before.append(f"{header}:\n{format_references(references)}")

    if creator:
        lines = "\n".join(f'- "{c.text.strip()}"' + (f" [{int(c.likes)} likes]" if c.likes else "")
                          for c in creator)
        after.append(
            "CREATOR COMMENTS/REPLIES (written by the content creator - treat these as authoritative "
            f"additions or clarifications to the main content):\n{lines}"
        )

    if viewers:
        lines = "\n".join(f"- [{int(c.likes)} likes] {c.text.strip()}" for c in viewers)
        after.append(f"Top Viewer Comments (what resonated with the audience):\n{lines}")

    return before, after


def _section_guide(section: Section) -> str:
    kind = section.kind
    if kind is SectionKind.SUMMARY and section.format == "prose":
        return _SECTION_GUIDES[kind]
    if kind is not SectionKind.CUSTOM and kind is not SectionKind.SUMMARY:
        return _SECTION_GUIDES[kind]
    if section.format == "prose":
        return f"[Write the {section.label.lower()} as free-flowing prose paragraphs]"
    return (f"- [First {section.label.lower()} item]\n"
            f"- [Second {section.label.lower()} item]\n"
            "- [Continue as appropriate]")


def build_output_contract(sections: Sequence[Section], custom: bool) -> str:
    blocks = [f"{section.header}:\n{_section_guide(section)}" for section in sections]
    headers = ", ".join(f"{section.header}:" for section in sections)
    rules = f"Always include the {headers} sections with the exact headers shown above."
    if custom:
        rules += (
            "\nWrite each header exactly as shown - in capital letters, followed by a colon, on its own line. "
            "Sections marked as lists must use one \"- \" bullet per line; the others are free prose."
        )
    return "\n\n".join(blocks) + "\n\n" + rules


def build_prompt(
    content: ContentPayload,
    references: Optional[Sequence[ReferenceLink]] = None,
    content_kind: str = "youtube_video",
    custom_instructions: Optional[str] = None,
    template: Optional[OutputTemplate] = None,
) -> str:
    """Build the summary prompt for ``content``.

    Args:
        content: Extracted page content; ``transcript`` is the body text.
        references: Links the model may cite by 1-based number. Defaults to ``content.links``.
        content_kind: ``youtube_video``, ``video_with_captions``, ``article``, ``webpage`` or ``selected_text``.
        custom_instructions: User instructions embedded verbatim; a default block is used when absent.
        template: Output template; empty or fully disabled means the default section set.
    """
    references = list(content.links if references is None else references)
    creator = select_creator_comments(content.creator_comments)
    viewers = select_viewer_comments(content.viewer_comments)

    kind = content_kind if content_kind in KIND_INTROS else FALLBACK_KIND
    intro = KIND_INTROS[kind]
    instructions = custom_instructions or KIND_INSTRUCTIONS[kind]
    video = is_video(content_kind)

    sections = [
        s for s in resolve_sections(template, creator_additions=bool(creator))
        if s.kind is not SectionKind.CREATOR_ADDITIONS or creator
    ]
    before, after = _context_blocks(content, references, content_kind, creator, viewers)

    parts = [
        f"{intro} Follow these analysis instructions from the user:",
        f"---\n{instructions}\n---",
        f"{'Video Title' if video else 'Title'}: {content.title}",
        *before,
        f"{'Transcript' if video else 'Content'}:\n{truncate(content.transcript, MAX_BODY_CHARS)}",
        *after,
        "IMPORTANT: You MUST format your response EXACTLY as follows (this format is required for parsing):",
        build_output_contract(sections, custom=not uses_default(template)),
    ]
    return "\n\n".join(parts)


def build_follow_up_prompt(
    title: str,
    transcript: str,
    query: str,
    existing_learnings: Sequence[str] = (),
) -> str:
    """Prompt for a follow-up question, answered as a JSON list of insight/action items."""
    existing = ""
    if existing_learnings:
        listed = "\n".join(f"- {learning}" for learning in existing_learnings)
        existing = (f"Already extracted learnings (avoid repeating these; add only new information):\n"
                    f"{listed}\n\n")

    return f"""You are helping a user dig deeper into content they already summarized. Answer their follow-up question using the transcript below.

Title: {title}

Transcript:
{truncate(transcript, MAX_BODY_CHARS)}

{existing}The user's follow-up question:
{query}

Respond ONLY with a JSON object in this exact format:
{{
  "items": [
    {{"type": "insight", "text": "A fact, idea or explanation from the content"}},
    {{"type": "action", "text": "A concrete step the user can take"}}
  ]
}}

Use "type": "insight" for knowledge and "type": "action" for things to do. Each "text" must be a single self-contained sentence or two. Return an empty "items" array if the content does not answer the question."""
