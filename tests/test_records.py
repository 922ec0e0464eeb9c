"""Tests for record and call-argument validation."""

from __future__ import annotations

import pytest

from contractcore.ast import (
    Contract,
    Directive,
    ForeignRecord,
    MapType,
    Method,
    ObjectField,
    ObjectType,
    Parameter,
    Primitive,
    PrimitiveKind,
    Property,
    PublicKey,
)
from contractcore.config import LENIENT_CONFIG
from contractcore.publickey import generate_jwk
from contractcore.report import ErrorKind
from contractcore.validate.records import is_required, validate_arguments, validate_record

STRING = Primitive(PrimitiveKind.STRING)
NUMBER = Primitive(PrimitiveKind.NUMBER)
BOOLEAN = Primitive(PrimitiveKind.BOOLEAN)

USER = Contract(name="User", attributes=(
    Property("id", STRING),
    Property("name", STRING),
    Property("age", NUMBER, required=False),
    Property("nickname", STRING, directives=(Directive("optional"),)),
    Property("settings", ObjectType(fields=(ObjectField("dark", BOOLEAN),)), required=False),
    Property("scores", MapType(STRING, NUMBER), required=False),
))

ACCOUNT = Contract(name="Account", attributes=(
    Property("id", STRING),
    Property("owner", PublicKey()),
    Property("user", ForeignRecord("User")),
    Method(name="transfer", attributes=(
        Parameter("to", ForeignRecord("User")),
        Parameter("amount", NUMBER),
        Parameter("memo", STRING, required=False),
    )),
))

CONTRACTS = {"User": USER, "Account": ACCOUNT}


def summary(errors):
    return [(e.kind, e.path) for e in errors]


class TestValidateRecord:
    """Test per-record validation."""

    def test_valid_record(self):
        record = {"id": "u1", "name": "Ann", "age": 30, "settings": {"dark": True}}
        assert validate_record(USER, record, CONTRACTS) == []

    def test_missing_required(self):
        errors = validate_record(USER, {"id": "u1"}, CONTRACTS)

        assert summary(errors) == [(ErrorKind.MISSING_REQUIRED_FIELD, "name")]
        assert errors[0].expected == "string"

    def test_null_counts_as_absent(self):
        assert summary(validate_record(USER, {"id": "u1", "name": None})) == [
            (ErrorKind.MISSING_REQUIRED_FIELD, "name"),
        ]
        assert validate_record(USER, {"id": "u1", "name": "Ann", "age": None}) == []

    def test_optional_directive_suppresses_required(self):
        assert validate_record(USER, {"id": "u1", "name": "Ann"}) == []
        assert not is_required(USER.get_property("nickname"))
        assert is_required(USER.get_property("name"))

    def test_type_mismatch(self):
        errors = validate_record(USER, {"id": "u1", "name": "Ann", "age": "30"})

        assert summary(errors) == [(ErrorKind.TYPE_MISMATCH, "age")]
        assert (errors[0].expected, errors[0].actual) == ("number", "string")

    def test_unexpected_field(self):
        errors = validate_record(USER, {"id": "u1", "name": "Ann", "email": "a@b.c"})
        assert summary(errors) == [(ErrorKind.UNEXPECTED_FIELD, "email")]

    def test_unexpected_field_allowed_when_lenient(self):
        record = {"id": "u1", "name": "Ann", "email": "a@b.c"}
        assert validate_record(USER, record, config=LENIENT_CONFIG) == []

    def test_collects_every_error(self):
        record = {"name": 5, "settings": {"dark": "yes", "font": 12}, "scores": {"a": 1, "b": "x"}, "x": 1}
        assert summary(validate_record(USER, record)) == [
            (ErrorKind.MISSING_REQUIRED_FIELD, "id"),
            (ErrorKind.TYPE_MISMATCH, "name"),
            (ErrorKind.TYPE_MISMATCH, "settings.dark"),
            (ErrorKind.UNEXPECTED_FIELD, "settings.font"),
            (ErrorKind.TYPE_MISMATCH, "scores.b"),
            (ErrorKind.UNEXPECTED_FIELD, "x"),
        ]

    def test_record_not_an_object(self):
        errors = validate_record(USER, ["u1", "Ann"])
        assert summary(errors) == [(ErrorKind.TYPE_MISMATCH, "")]

    def test_public_key_and_reference_shapes(self):
        record = {"id": "a1", "owner": generate_jwk(), "user": {"id": "u1"}}
        assert validate_record(ACCOUNT, record, CONTRACTS) == []

    @pytest.mark.parametrize("record", [
        {},
        {"id": "u1"},
        {"id": "u1", "name": "Ann"},
        {"id": "u1", "name": "Ann", "nickname": "A"},
        {"id": "u1", "name": "Ann", "extra": True},
        {"id": 1, "name": "Ann"},
    ])
    def test_ok_iff_required_present_typed_and_closed(self, record):
        declared = {p.name for p in USER.properties}
        required_ok = all(
            isinstance(record.get(p.name), str)
            for p in USER.properties if is_required(p)
        )
        closed = set(record) <= declared
        assert (validate_record(USER, record) == []) == (required_ok and closed)


class TestValidateArguments:
    """Test method call arguments against signatures."""

    def test_valid_call(self):
        assert validate_arguments(ACCOUNT, "transfer", ["u1", 10], CONTRACTS) == []
        assert validate_arguments(ACCOUNT, "transfer", ["u1", 10, "rent"], CONTRACTS) == []

    def test_missing_argument(self):
        errors = validate_arguments(ACCOUNT, "transfer", ["u1"], CONTRACTS)
        assert summary(errors) == [(ErrorKind.MISSING_REQUIRED_FIELD, "transfer.amount")]

    def test_wrong_argument_type(self):
        errors = validate_arguments(ACCOUNT, "transfer", [42, "10"], CONTRACTS)
        assert summary(errors) == [
            (ErrorKind.TYPE_MISMATCH, "transfer.to"),
            (ErrorKind.TYPE_MISMATCH, "transfer.amount"),
        ]

    def test_surplus_arguments(self):
        errors = validate_arguments(ACCOUNT, "transfer", ["u1", 1, "m", "extra"], CONTRACTS)
        assert summary(errors) == [(ErrorKind.UNEXPECTED_FIELD, "transfer[3]")]

    def test_unknown_method(self):
        errors = validate_arguments(ACCOUNT, "close", [])
        assert summary(errors) == [(ErrorKind.UNRESOLVED_PATH, "close")]
