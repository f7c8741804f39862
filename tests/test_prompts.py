"""Tests for prompt construction."""

from summary_bridge.models.result import Comment, ContentPayload, ReferenceLink
from summary_bridge.models.template import OutputTemplate
from summary_bridge.prompts import (
    DEFAULT_INSTRUCTIONS,
    TRUNCATION_MARKER,
    build_follow_up_prompt,
    build_prompt,
    select_viewer_comments,
)


def content(**kwargs) -> ContentPayload:
    kwargs.setdefault("title", "Test Video")
    kwargs.setdefault("transcript", "This is a transcript")
    return ContentPayload(**kwargs)


class TestBuildPrompt:
    def test_basic_prompt(self):
        prompt = build_prompt(content())
        assert "Test Video" in prompt
        assert "This is a transcript" in prompt
        for header in ("SUMMARY:", "KEY LEARNINGS:", "ACTION ITEMS:", "RELEVANT LINKS:"):
            assert header in prompt

    def test_custom_instructions_replace_default(self):
        prompt = build_prompt(content(), custom_instructions="Focus on technical details only")
        assert "Focus on technical details only" in prompt
        assert DEFAULT_INSTRUCTIONS not in prompt

    def test_default_instructions(self):
        assert "Main arguments and conclusions" in build_prompt(content())

    def test_article_instructions(self):
        prompt = build_prompt(content(title="An Essay"), content_kind="article")
        assert "The main thesis and arguments" in prompt
        assert "Content:\nThis is a transcript" in prompt

    def test_unknown_kind_uses_webpage_framing(self):
        prompt = build_prompt(content(), content_kind="podcast")
        assert "You are analyzing the content of a web page." in prompt
        assert "Main purpose and content of the page" in prompt
        assert "YouTube" not in prompt

    def test_long_transcript_truncated(self):
        long_transcript = "a" * 60_000
        prompt = build_prompt(content(transcript=long_transcript))
        assert TRUNCATION_MARKER in prompt
        assert "a" * 50_000 + TRUNCATION_MARKER in prompt
        assert len(prompt) < len(long_transcript) + 5_000

    def test_long_description_truncated(self):
        prompt = build_prompt(content(description="b" * 6_000))
        assert "b" * 5_000 + TRUNCATION_MARKER in prompt

    def test_article_description_limit_is_shorter(self):
        prompt = build_prompt(content(description="b" * 3_000), content_kind="article")
        assert "b" * 2_000 + TRUNCATION_MARKER in prompt

    def test_links_are_one_indexed(self):
        links = [ReferenceLink(text="Link 1", url="https://example.com/1"),
                 ReferenceLink(text="Link 2", url="https://example.com/2")]
        prompt = build_prompt(content(description="Description", links=links))
        assert "Links from Description:" in prompt
        assert "1. Link 1: https://example.com/1" in prompt
        assert "2. Link 2: https://example.com/2" in prompt

    def test_creator_comments(self):
        comments = [Comment(text="This is an important clarification from me", likes=100)]
        prompt = build_prompt(content(creator_comments=comments))
        assert "CREATOR COMMENTS/REPLIES" in prompt
        assert "authoritative additions" in prompt
        assert "This is an important clarification from me" in prompt
        assert "CREATOR ADDITIONS:" in prompt

    def test_short_creator_comments_filtered(self):
        comments = [Comment(text="Short", likes=100), Comment(text="This is a longer valid comment", likes=50)]
        prompt = build_prompt(content(creator_comments=comments))
        assert '"Short"' not in prompt
        assert "This is a longer valid comment" in prompt

    def test_viewer_comment_filtering(self):
        comments = [
            Comment(text="Short", likes=100),
            Comment(text="This comment is long enough but has few likes", likes=5),
            Comment(text="This is a great comment with good engagement", likes=50),
        ]
        prompt = build_prompt(content(viewer_comments=comments))
        assert "Top Viewer Comments" in prompt
        assert "[50 likes]" in prompt
        assert "This is a great comment with good engagement" in prompt
        assert "[5 likes]" not in prompt

    def test_unparseable_likes_count_as_zero(self):
        comments = ContentPayload.model_validate({"viewerComments": [
            {"text": "A long enough viewer comment with null likes", "likes": None},
            {"text": "A long enough viewer comment with text likes", "likes": "1.2K"},
            {"text": "A long enough viewer comment with real likes", "likes": "12"},
        ]}).viewer_comments
        assert [c.likes for c in comments] == [0, 0, 12]
        assert select_viewer_comments(comments) == [comments[2]]

    def test_viewer_comments_sorted_and_capped(self):
        comments = [Comment(text=f"Viewer comment number {i} with enough text", likes=10 + i) for i in range(15)]
        kept = select_viewer_comments(comments)
        assert len(kept) == 10
        assert kept[0].likes == 24

    def test_no_creator_additions_without_creator_comments(self):
        assert "CREATOR ADDITIONS:" not in build_prompt(content())

    def test_template_headers_are_uppercased_labels(self):
        template = OutputTemplate.model_validate([
            {"id": "summary", "label": "Overview", "enabled": True, "format": "paragraphs"},
            {"id": "key_learnings", "label": "Key Learnings", "enabled": True, "format": "bullets"},
            {"id": "quotes", "label": "Notable Quotes", "enabled": True, "format": "bullets"},
            {"id": "action_items", "label": "Action Items", "enabled": False, "format": "bullets"},
        ])
        prompt = build_prompt(content(), template=template)
        assert "OVERVIEW:" in prompt
        assert "NOTABLE QUOTES:" in prompt
        assert "ACTION ITEMS:" not in prompt
        assert prompt.index("OVERVIEW:") < prompt.index("KEY LEARNINGS:") < prompt.index("NOTABLE QUOTES:")

    def test_fully_disabled_template_uses_defaults(self):
        template = OutputTemplate.model_validate([{"id": "summary", "label": "Summary", "enabled": False}])
        prompt = build_prompt(content(), template=template)
        assert "ACTION ITEMS:" in prompt
        assert "RELEVANT LINKS:" in prompt


class TestFollowUpPrompt:
    def test_query_and_transcript(self):
        prompt = build_follow_up_prompt("Test Video", "This is the transcript", "What tools were mentioned?")
        assert "Test Video" in prompt
        assert "This is the transcript" in prompt
        assert "What tools were mentioned?" in prompt
        assert "follow-up question" in prompt

    def test_existing_learnings(self):
        prompt = build_follow_up_prompt("Test Video", "Transcript", "Query", ["Learning 1", "Learning 2"])
        assert "Already extracted learnings" in prompt
        assert "Learning 1" in prompt
        assert "Learning 2" in prompt
        assert "avoid repeating" in prompt

    def test_truncates_transcript(self):
        assert TRUNCATION_MARKER in build_follow_up_prompt("T", "a" * 60_000, "Query")

    def test_requests_classified_json(self):
        prompt = build_follow_up_prompt("Test Video", "Transcript", "Query")
        for fragment in ("insight", "action", '"items"', '"type"', "JSON"):
            assert fragment in prompt
