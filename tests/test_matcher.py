"""Tests for the type matcher."""

from __future__ import annotations

import base64

import pytest

from contractcore.ast import (
    ArrayType,
    Contract,
    ForeignRecord,
    MapType,
    ObjectField,
    ObjectType,
    Primitive,
    PrimitiveKind,
    Property,
    PublicKey,
)
from contractcore.config import LENIENT_CONFIG, ValidationConfig
from contractcore.publickey import generate_jwk
from contractcore.report import ErrorKind
from contractcore.validate.matcher import is_bytes_text, matches, primitive_matches

STRING = Primitive(PrimitiveKind.STRING)
NUMBER = Primitive(PrimitiveKind.NUMBER)
BOOLEAN = Primitive(PrimitiveKind.BOOLEAN)
BYTES = Primitive(PrimitiveKind.BYTES)


class TestPrimitives:
    """Test exact-kind primitive matching."""

    @pytest.mark.parametrize("kind,value", [
        (PrimitiveKind.STRING, "hello"),
        (PrimitiveKind.STRING, ""),
        (PrimitiveKind.NUMBER, 0),
        (PrimitiveKind.NUMBER, -3.5),
        (PrimitiveKind.BOOLEAN, False),
        (PrimitiveKind.BYTES, b"\x00\x01"),
        (PrimitiveKind.BYTES, "AAE="),
    ])
    def test_accepts(self, kind, value):
        assert primitive_matches(kind, value)

    @pytest.mark.parametrize("kind,value", [
        (PrimitiveKind.STRING, 1),
        (PrimitiveKind.NUMBER, "1"),
        (PrimitiveKind.NUMBER, True),
        (PrimitiveKind.NUMBER, float("nan")),
        (PrimitiveKind.BOOLEAN, 1),
        (PrimitiveKind.BOOLEAN, "true"),
        (PrimitiveKind.BYTES, "not base64!"),
        (PrimitiveKind.BYTES, [0, 1]),
    ])
    def test_rejects_without_coercion(self, kind, value):
        assert not primitive_matches(kind, value)

    def test_bytes_text_can_be_disabled(self):
        config = ValidationConfig(accept_bytes_text=False)
        assert not primitive_matches(PrimitiveKind.BYTES, "AAE=", config)
        assert primitive_matches(PrimitiveKind.BYTES, b"\x00\x01", config)

    def test_bytes_text_requires_padding(self):
        assert is_bytes_text(base64.b64encode(b"abcd").decode())
        assert not is_bytes_text("YWJjZA")

    def test_mismatch_reports_expected_and_actual(self):
        errors = matches(NUMBER, "12", "age")

        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.TYPE_MISMATCH
        assert errors[0].path == "age"
        assert errors[0].expected == "number"
        assert errors[0].actual == "string"

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_number_named_in_mismatch(self, value):
        errors = matches(NUMBER, value, "score")

        assert errors[0].actual == "non-finite number"
        assert errors[0].message == "expected number, got non-finite number"


class TestObjects:
    """Test closed-object matching."""

    ADDRESS = ObjectType(fields=(
        ObjectField("street", STRING),
        ObjectField("zip", NUMBER, required=False),
        ObjectField("geo", ObjectType(fields=(ObjectField("lat", NUMBER),))),
    ))

    def test_valid_object(self):
        value = {"street": "Main", "zip": 12345, "geo": {"lat": 1.5}}
        assert matches(self.ADDRESS, value, "address") == []

    def test_optional_field_may_be_absent(self):
        assert matches(self.ADDRESS, {"street": "Main", "geo": {"lat": 0}}, "address") == []

    def test_missing_required_nested_field(self):
        errors = matches(self.ADDRESS, {"street": "Main", "geo": {}}, "address")

        assert [(e.kind, e.path) for e in errors] == [
            (ErrorKind.MISSING_REQUIRED_FIELD, "address.geo.lat"),
        ]

    def test_unexpected_key_rejected_when_strict(self):
        errors = matches(self.ADDRESS, {"street": "Main", "geo": {"lat": 0}, "city": "X"}, "address")

        assert [(e.kind, e.path) for e in errors] == [
            (ErrorKind.UNEXPECTED_FIELD, "address.city"),
        ]

    def test_unexpected_key_allowed_when_lenient(self):
        value = {"street": "Main", "geo": {"lat": 0}, "city": "X"}
        assert matches(self.ADDRESS, value, "address", config=LENIENT_CONFIG) == []

    def test_non_mapping(self):
        errors = matches(self.ADDRESS, ["Main"], "address")
        assert errors[0].kind == ErrorKind.TYPE_MISMATCH
        assert errors[0].actual == "array"

    def test_all_errors_collected(self):
        errors = matches(self.ADDRESS, {"street": 1, "zip": "x", "geo": {"lat": "y"}}, "a")
        assert [e.path for e in errors] == ["a.street", "a.zip", "a.geo.lat"]


class TestArrays:
    """Test homogeneous primitive arrays."""

    def test_valid_array(self):
        assert matches(ArrayType(STRING), ["a", "b"], "tags") == []
        assert matches(ArrayType(STRING), [], "tags") == []

    def test_element_mismatch_path(self):
        errors = matches(ArrayType(NUMBER), [1, "two", 3], "scores")

        assert len(errors) == 1
        assert errors[0].path == "scores[1]"

    def test_string_is_not_an_array(self):
        errors = matches(ArrayType(STRING), "abc", "tags")
        assert errors[0].expected == "string[]"


class TestMaps:
    """Test map matching."""

    def test_value_mismatch_at_key_path(self):
        errors = matches(MapType(STRING, NUMBER), {"a": "x"}, "field")

        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.TYPE_MISMATCH
        assert errors[0].path == "field.a"
        assert errors[0].expected == "number"
        assert errors[0].actual == "string"

    def test_number_keys_accept_numeric_text(self):
        assert matches(MapType(NUMBER, STRING), {"1": "a", 2: "b"}, "m") == []

    def test_number_keys_reject_other_text(self):
        errors = matches(MapType(NUMBER, STRING), {"one": "a"}, "m")
        assert errors[0].path == "m.one"
        assert errors[0].expected == "number key"

    @pytest.mark.parametrize("key", ["1_000", " 7 ", "+1", "01", "1.", ".5", "nan", "Infinity"])
    def test_number_keys_follow_json_number_syntax(self, key):
        errors = matches(MapType(NUMBER, STRING), {key: "a"}, "m")
        assert [e.expected for e in errors] == ["number key"]

    def test_number_keys_accept_json_number_forms(self):
        value = {"-3": "a", "0": "b", "2.50": "c", "1e6": "d", "6.02E+23": "e"}
        assert matches(MapType(NUMBER, STRING), value, "m") == []

    def test_not_a_mapping(self):
        errors = matches(MapType(STRING, STRING), "a=b", "m")
        assert errors[0].expected == "map<string, string>"


class TestForeignRecords:
    """Test identifier-shape checks for record references."""

    USER = Contract(name="User", attributes=(Property("id", STRING),))
    COUNTER = Contract(name="Counter", attributes=(Property("id", NUMBER),))

    def test_bare_identifier(self):
        assert matches(ForeignRecord("User"), "u1", "author", {"User": self.USER}) == []

    def test_identifier_object(self):
        assert matches(ForeignRecord("User"), {"id": "u1"}, "author", {"User": self.USER}) == []

    def test_identifier_object_with_extra_keys(self):
        errors = matches(ForeignRecord("User"), {"id": "u1", "name": "x"}, "author", {"User": self.USER})
        assert errors[0].expected == "User reference"

    def test_identifier_kind_follows_target_contract(self):
        contracts = {"Counter": self.COUNTER}
        assert matches(ForeignRecord("Counter"), 7, "c", contracts) == []
        assert matches(ForeignRecord("Counter"), "7", "c", contracts)[0].kind == ErrorKind.TYPE_MISMATCH

    def test_unknown_target_defaults_to_string_identifier(self):
        assert matches(ForeignRecord("Elsewhere"), "x1", "ref") == []
        assert len(matches(ForeignRecord("Elsewhere"), 1, "ref")) == 1

    def test_custom_identifier_field(self):
        config = ValidationConfig(id_fields={"User": "handle"})
        assert matches(ForeignRecord("User"), {"handle": "ann"}, "author", config=config) == []


class TestPublicKeys:
    """Test public-key values."""

    def test_generated_key(self):
        assert matches(PublicKey(), generate_jwk(), "owner") == []

    def test_wrong_curve_name(self):
        jwk = {**generate_jwk(), "crv": "P-256"}
        errors = matches(PublicKey(), jwk, "owner")

        assert errors[0].kind == ErrorKind.TYPE_MISMATCH
        assert errors[0].expected == "PublicKey"
        assert "crv" in errors[0].message

    def test_plain_string_rejected(self):
        assert matches(PublicKey(), "0x04abcd", "owner")[0].actual == "string"

    # Key fixtures of the contract language; PK2 has one character of y changed.
    PK1 = {
        "kty": "EC",
        "crv": "secp256k1",
        "alg": "ES256K",
        "use": "sig",
        "x": "nnzHFO4bZ239bIuAo8t0wQwXH3fPwbKQnpWPzOptv0Q=",
        "y": "Z1-oY62A6q5kCRGfBuk6E3IrSUjPCK2F6_EwVhW22lY=",
    }
    PK2 = {**PK1, "y": "Y1-oY62A6q5kCRGfBuk6E3IrSUjPCK2F6_EwVhW22lY="}

    def test_shape_only_by_default(self):
        assert matches(PublicKey(), self.PK1, "owner") == []
        assert matches(PublicKey(), self.PK2, "owner") == []

    def test_curve_point_checked_when_enabled(self):
        config = ValidationConfig(verify_key_points=True)

        assert matches(PublicKey(), self.PK1, "owner", config=config) == []
        errors = matches(PublicKey(), self.PK2, "owner", config=config)
        assert [e.kind for e in errors] == [ErrorKind.TYPE_MISMATCH]
        assert "not on secp256k1" in errors[0].message
