"""
Structured output parsing

Turns a judge model's raw text into a typed response (a pydantic model),
and renders the format instructions appended to prompts.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ragas_panel.domain.errors import StructuredOutputError

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

_CODE_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def extract_json_text(raw: str) -> str:
    """
    Extract the JSON portion of a response

    Parse order:
    1. Fenced code block
    2. Outermost {...} span
    3. The whole text
    """
    text = raw.strip()
    match = _CODE_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text


def parse_structured(raw: str, response_type: type[Any]) -> Any:
    """
    Parse raw model output into ``response_type``

    Args:
        raw: Raw model output
        response_type: A pydantic model class, or ``str`` for the raw text

    Returns:
        The parsed response

    Raises:
        StructuredOutputError: When the response is empty or does not match the type
    """
    if response_type is str:
        return raw
    if not raw or not raw.strip():
        raise StructuredOutputError("Empty response from model")
    json_text = extract_json_text(raw)
    try:
        return response_type.model_validate_json(json_text)
    except ValidationError as e:
        raise StructuredOutputError(
            f"Failed to parse {response_type.__name__} from response: {raw[:200]}"
        ) from e


def format_instructions(response_type: type[Any]) -> str:
    """Instructions telling the model which JSON shape to return"""
    if response_type is str:
        return ""
    schema = json.dumps(response_type.model_json_schema(), indent=2)
    return (
        "\n\nYour response should be in JSON format.\n"
        "Do not include any explanations, only provide a RFC8259 compliant JSON response "
        "following this format without deviation.\n"
        f"Here is the JSON Schema instance your output must adhere to:\n```{schema}```\n"
    )
