"""Tests for structured output parsing"""

import pytest
from pydantic import BaseModel

from ragas_panel.domain.errors import StructuredOutputError
from ragas_panel.scoring.structured_output import (
    extract_json_text,
    format_instructions,
    parse_structured,
)


class Verdict(BaseModel):
    verdict: bool
    reasoning: str = ""


class TestExtractJsonText:
    """extract_json_text"""

    def test_code_block(self):
        raw = 'Here you go:\n```json\n{"verdict": true}\n```\nThanks'
        assert extract_json_text(raw) == '{"verdict": true}'

    def test_code_block_without_language(self):
        assert extract_json_text('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_embedded_object(self):
        assert extract_json_text('The answer is {"a": {"b": 2}} ok.') == '{"a": {"b": 2}}'

    def test_plain_text_returned_as_is(self):
        assert extract_json_text("  no json here ") == "no json here"


class TestParseStructured:
    """parse_structured"""

    def test_parses_model(self):
        result = parse_structured('```json\n{"verdict": true, "reasoning": "fine"}\n```', Verdict)
        assert result == Verdict(verdict=True, reasoning="fine")

    def test_str_returns_raw(self):
        assert parse_structured("anything", str) == "anything"

    def test_empty_response(self):
        with pytest.raises(StructuredOutputError, match="Empty response from model"):
            parse_structured("   ", Verdict)

    def test_invalid_json(self):
        with pytest.raises(StructuredOutputError, match="Failed to parse Verdict"):
            parse_structured("I think it is fine", Verdict)

    def test_missing_field(self):
        with pytest.raises(StructuredOutputError):
            parse_structured('{"reasoning": "no verdict"}', Verdict)


class TestFormatInstructions:
    """format_instructions"""

    def test_includes_schema(self):
        text = format_instructions(Verdict)
        assert "JSON Schema" in text
        assert '"verdict"' in text

    def test_str_has_no_instructions(self):
        assert format_instructions(str) == ""
