"""
Unit tests for parsing, sanitizing and fallback shaping of generated content.
"""

import json

import pytest

from service_gateway.app.domain.content import (
    ParseFailure,
    build_response,
    fallback_content,
    fingerprint,
    normalize_related,
    parse_model_output,
    sanitize_link,
    sanitize_links,
)

ALLOWED = ["khanacademy.org", "wikimedia.org", "youtube.com"]


class TestFingerprint:
    """Test cases for cache key derivation."""

    @pytest.mark.parametrize("object_name, subject", [
        ("Apple", "Biology"),
        ("  apple ", "biology  "),
        ("APPLE", "BIOLOGY"),
    ])
    def test_case_and_whitespace_insensitive(self, object_name, subject):
        """Test equivalent inputs share a key."""
        assert fingerprint(object_name, subject) == "apple::biology"

    def test_distinct_inputs_differ(self):
        """Test different objects do not collide."""
        assert fingerprint("apple", "biology") != fingerprint("pear", "biology")
        assert fingerprint("apple", "biology") != fingerprint("apple", "history")


class TestParseModelOutput:
    """Test cases for parse_model_output."""

    def test_plain_json(self, valid_content):
        """Test a bare JSON object parses."""
        generated = parse_model_output(json.dumps(valid_content))

        assert generated.title == "Sunflowers and Light"
        assert generated.fun_facts == ["A sunflower head holds up to 2,000 seeds."]

    def test_json_wrapped_in_prose(self, valid_content):
        """Test the first-to-last brace substring is used as a fallback."""
        raw = "Sure! Here you go:\n```json\n" + json.dumps(valid_content) + "\n```\nEnjoy."

        generated = parse_model_output(raw)

        assert generated.title == "Sunflowers and Light"

    @pytest.mark.parametrize("raw", [
        "",
        "I cannot help with that.",
        "{ not json at all }",
        "} backwards {",
    ])
    def test_unparseable_text(self, raw):
        """Test text without a usable object is a parse failure."""
        with pytest.raises(ParseFailure):
            parse_model_output(raw)

    def test_non_object_json(self):
        """Test a JSON array is rejected."""
        with pytest.raises(ParseFailure):
            parse_model_output('["title", "text"]')

    @pytest.mark.parametrize("content", [
        {"text": "No title here."},
        {"title": "No text"},
        {"title": "   ", "text": "Blank title."},
        {"title": "T", "text": "X", "funFacts": "not a list"},
        {"title": "T", "text": "X", "explanation": None},
        {"title": "T", "text": "X", "surprise": "extra field"},
    ])
    def test_schema_violations(self, content):
        """Test content outside the expected schema is a parse failure."""
        with pytest.raises(ParseFailure):
            parse_model_output(json.dumps(content))

    def test_optional_fields_default(self):
        """Test only title and text are required."""
        generated = parse_model_output('{"title": "T", "text": "X"}')

        assert generated.explanation == ""
        assert generated.fun_facts == []
        assert generated.links == []
        assert generated.related_objects == []

    def test_non_list_links_treated_as_absent(self):
        """Test malformed link and related collections are ignored."""
        generated = parse_model_output('{"title": "T", "text": "X", "links": "nope", "relatedObjects": {"a": 1}}')

        assert generated.links == []
        assert generated.related_objects == []


class TestSanitizeLinks:
    """Test cases for link allow-listing."""

    def test_allowed_link_kept(self):
        """Test an allow-listed link survives unchanged."""
        link = sanitize_link(
            {"title": "Cells", "url": "https://www.khanacademy.org/science/cells", "source": "Khan"},
            ALLOWED,
        )

        assert link.title == "Cells"
        assert link.url == "https://www.khanacademy.org/science/cells"
        assert link.source == "Khan"

    def test_title_defaults_to_hostname(self):
        """Test a missing title is replaced by the hostname."""
        link = sanitize_link({"url": "https://commons.wikimedia.org/wiki/Sunflower"}, ALLOWED)

        assert link.title == "commons.wikimedia.org"
        assert link.source == ""

    @pytest.mark.parametrize("candidate", [
        {"title": "Bad", "url": "https://evil.example.com/page"},
        {"title": "No url"},
        {"title": "Not a string", "url": 42},
        {"title": "Relative", "url": "/watch?v=123"},
        {"title": "Garbage", "url": "not a url"},
        {"title": "Bad port", "url": "https://youtube.com:99999/watch"},
        {"title": "Script", "url": "javascript://youtube.com/%0aalert(1)"},
        "https://www.youtube.com/watch?v=1",
        None,
    ])
    def test_rejected_candidates(self, candidate):
        """Test malformed or disallowed links are dropped."""
        assert sanitize_link(candidate, ALLOWED) is None

    def test_mixed_list(self):
        """Test only the good links survive and order is preserved."""
        links = sanitize_links([
            {"title": "Video", "url": "https://www.youtube.com/watch?v=1"},
            {"title": "Bad", "url": "http://phishing.test/"},
            "junk",
            {"title": "Image", "url": "http://upload.wikimedia.org/x.png"},
        ], ALLOWED)

        assert [link.title for link in links] == ["Video", "Image"]


class TestNormalizeRelated:
    """Test cases for related object normalization."""

    def test_keeps_at_most_three(self):
        """Test the list is cut to three entries."""
        assert normalize_related(["a", "b", "c", "d", "e"]) == ["a", "b", "c"]

    def test_trims_and_drops_empties_before_limiting(self):
        """Test blank entries do not use up the limit."""
        assert normalize_related(["  daisy ", "", "   ", "seed", None, "bee", "pollen"]) == ["daisy", "seed", "bee"]

    def test_scalars_are_stringified(self):
        """Test numbers become strings and containers are skipped."""
        assert normalize_related([7, {"name": "x"}, ["y"], "leaf"]) == ["7", "leaf"]


class TestBuildResponse:
    """Test cases for response shaping."""

    def test_build_response(self, valid_content):
        """Test sanitization is applied when shaping the response."""
        response = build_response(parse_model_output(json.dumps(valid_content)), ["khanacademy.org"])
        wire = response.to_wire()

        assert wire["title"] == "Sunflowers and Light"
        assert [link["title"] for link in wire["links"]] == ["Phototropism"]
        assert wire["relatedObjects"] == ["daisy", "seed", "bee"]
        assert wire["funFacts"] == ["A sunflower head holds up to 2,000 seeds."]

    def test_fallback_is_deterministic(self):
        """Test the fallback depends only on the request."""
        first = fallback_content("Sunflower", "Biology")
        second = fallback_content("Sunflower", "Biology")

        assert first == second
        assert "Sunflower" in first.title and "Biology" in first.title
        assert first.text
        assert first.links == []
        assert first.related_objects == []
