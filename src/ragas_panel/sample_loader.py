"""
Sample Loader

Loads evaluation samples from JSON files.
Accepts either a list of samples or an object with a "samples" list.
"""

import json
from pathlib import Path

from ragas_panel.domain.entities import Sample


def _parse_sample(data: dict, index: int) -> Sample:
    """Build a Sample from its JSON representation"""
    if "user_input" not in data:
        raise KeyError(f"Required field 'user_input' is missing in sample #{index}")
    contexts = data.get("retrieved_contexts") or []
    if isinstance(contexts, str):
        contexts = [contexts]
    return Sample(
        user_input=data["user_input"],
        response=data.get("response", ""),
        retrieved_contexts=list(contexts),
        reference=data.get("reference"),
        sample_id=str(data.get("sample_id", index)),
    )


def load_samples(file_path: str | Path) -> list[Sample]:
    """
    Load samples from a JSON file

    Args:
        file_path: Path to the samples JSON file

    Returns:
        list[Sample]: Samples in file order (sample_id defaults to the index)

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If a required field is missing
        ValueError: If the file has an unexpected shape
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("samples")
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of samples or an object with 'samples': {file_path}")

    return [_parse_sample(item, i) for i, item in enumerate(data)]
