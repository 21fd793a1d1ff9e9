"""Tests for the cardinality engine.

Covers: notation derivation from PK/FK facts (including unknown facts),
notation parsing, and the accepted fact shapes.
"""
from __future__ import annotations

import pytest

from schema3d.cardinality import (
    calculate_cardinality,
    column_facts,
    is_many,
    parse_cardinality,
)
from schema3d.types import Column, ColumnFacts, ParsedCardinality


# ============================================================================
# calculate_cardinality
# ============================================================================


class TestCalculateCardinality:
    def test_unique_not_null_fk_to_primary_key_is_one_to_one(self):
        result = calculate_cardinality(
            {"isPrimaryKey": True, "isUnique": True},
            {"isUnique": True, "isNullable": False},
        )
        assert result == "1:1"

    def test_non_unique_not_null_fk_is_one_to_one_or_more(self):
        result = calculate_cardinality(
            {"isPrimaryKey": True},
            {"isUnique": False, "isNullable": False},
        )
        assert result == "1:1..N"

    def test_non_unique_nullable_fk_is_optional_to_zero_or_more(self):
        result = calculate_cardinality(
            {"isPrimaryKey": True},
            {"isUnique": False, "isNullable": True},
        )
        assert result == "0..1:0..N"

    def test_missing_pk_facts_fall_back_to_optional_parent(self):
        result = calculate_cardinality(None, {"isUnique": False, "isNullable": True})
        assert result == "0..1:0..N"

    def test_unique_nullable_fk_is_optional_one_to_one(self):
        result = calculate_cardinality(
            {"isPrimaryKey": True}, {"isUnique": True, "isNullable": True}
        )
        assert result == "0..1:0..1"

    def test_unknown_nullability_gives_unqualified_many(self):
        result = calculate_cardinality({"isPrimaryKey": True}, {"isUnique": False})
        assert result == "0..1:N"

    def test_non_key_parent_column_is_optional(self):
        result = calculate_cardinality(
            {"isPrimaryKey": False, "isUnique": False},
            {"isUnique": False, "isNullable": False},
        )
        assert result == "0..1:1..N"

    def test_accepts_column_objects(self):
        pk = Column(name="id", type="INT", is_primary_key=True, is_nullable=False)
        fk = Column(name="user_id", type="INT", is_foreign_key=True, is_nullable=False)
        assert calculate_cardinality(pk, fk) == "1:1..N"

    def test_accepts_snake_case_mappings(self):
        result = calculate_cardinality(
            {"is_primary_key": True}, {"is_unique": True, "is_nullable": False}
        )
        assert result == "1:1"


# ============================================================================
# parse_cardinality
# ============================================================================


class TestParseCardinality:
    def test_parses_many_to_many(self):
        assert parse_cardinality("0..N:0..N") == ParsedCardinality(
            left="0..N", right="0..N", left_is_many=True, right_is_many=True
        )

    def test_parses_one_to_many(self):
        parsed = parse_cardinality("1:1..N")
        assert parsed.left == "1"
        assert parsed.right == "1..N"
        assert not parsed.left_is_many
        assert parsed.right_is_many

    def test_parses_optional_one_to_one(self):
        parsed = parse_cardinality("0..1:1")
        assert not parsed.left_is_many
        assert not parsed.right_is_many

    @pytest.mark.parametrize(
        "symbol,expected",
        [("1", False), ("0..1", False), ("N", True), ("1..N", True), ("0..N", True)],
    )
    def test_is_many(self, symbol, expected):
        assert is_many(symbol) is expected


# ============================================================================
# column_facts
# ============================================================================


class TestColumnFacts:
    def test_none_stays_none(self):
        assert column_facts(None) is None

    def test_missing_mapping_keys_are_unknown(self):
        facts = column_facts({"isUnique": True})
        assert facts == ColumnFacts(is_primary_key=None, is_unique=True, is_nullable=None)

    def test_facts_pass_through(self):
        facts = ColumnFacts(is_primary_key=True)
        assert column_facts(facts) is facts
