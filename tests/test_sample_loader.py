"""
sample_loader.pyのテスト
"""

import json

import pytest

from ragas_panel.sample_loader import load_samples


def _write(tmp_path, data):
    path = tmp_path / "samples.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadSamples:
    """load_samples関数のテスト"""

    def test_list_format(self, tmp_path):
        path = _write(tmp_path, [
            {"user_input": "q1", "response": "a1", "retrieved_contexts": ["c1"], "reference": "r1"},
            {"user_input": "q2"},
        ])
        samples = load_samples(path)

        assert len(samples) == 2
        assert samples[0].retrieved_contexts == ["c1"]
        assert samples[0].reference == "r1"
        assert samples[1].response == ""
        assert samples[1].reference is None

    def test_object_format_and_ids(self, tmp_path):
        path = _write(tmp_path, {"samples": [{"sample_id": "custom", "user_input": "q"}, {"user_input": "q"}]})
        samples = load_samples(path)
        assert [s.sample_id for s in samples] == ["custom", "1"]

    def test_single_context_string(self, tmp_path):
        path = _write(tmp_path, [{"user_input": "q", "retrieved_contexts": "only one"}])
        assert load_samples(path)[0].retrieved_contexts == ["only one"]

    def test_missing_user_input(self, tmp_path):
        path = _write(tmp_path, [{"response": "a"}])
        with pytest.raises(KeyError, match="user_input"):
            load_samples(path)

    def test_invalid_shape(self, tmp_path):
        path = _write(tmp_path, {"items": []})
        with pytest.raises(ValueError, match="Expected a list of samples"):
            load_samples(path)

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_samples(tmp_path / "missing.json")
