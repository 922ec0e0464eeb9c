"""Tests for input file limits."""

from __future__ import annotations

import pytest

from contractcore.canonical import canonical_hash, canonical_json
from contractcore.security import InputLimits, SecurityError, load_json_file, nesting_depth, parse_json


class TestInputLimits:
    """Test size and depth limits on JSON inputs."""

    def test_nesting_depth(self):
        assert nesting_depth("x") == 0
        assert nesting_depth({"a": [1, {"b": 2}]}) == 3

    def test_too_deep(self):
        document = []
        for _ in range(10):
            document = [document]
        with pytest.raises(SecurityError, match="nesting exceeds 5"):
            parse_json(str(document), InputLimits(max_depth=5))

    def test_invalid_json(self):
        with pytest.raises(SecurityError, match="not valid JSON"):
            parse_json("{oops", source="data.json")

    def test_file_too_large(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('{"User": []}')
        with pytest.raises(SecurityError, match="too large"):
            load_json_file(path, InputLimits(max_file_size=4))

    def test_load_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('{"User": [{"id": "u1"}]}')
        assert load_json_file(path) == {"User": [{"id": "u1"}]}


class TestCanonicalJson:
    """Test canonical serialization used for report digests."""

    def test_key_order_does_not_matter(self):
        assert canonical_json({"b": 1, "a": [b"\x00", 2.5]}) == '{"a":["AA==",2.5],"b":1}'
        assert canonical_hash({"a": 1, "b": 2}) == canonical_hash({"b": 2, "a": 1})

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            canonical_json({"x": float("nan")})

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError, match="Unsupported algorithm"):
            canonical_hash({}, algorithm="md5")
