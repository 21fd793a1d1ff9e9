"""Tests for the Mermaid ER parser.

Covers: entity blocks and attribute keys, crow's-foot token decoding,
relationship orientation, foreign-key synthesis and matching, and
inference for FK-marked columns without a relationship line.
"""
from __future__ import annotations

import logging

import pytest

from schema3d.mermaid import (
    decode_token,
    parse_mermaid_schema,
    parse_relationship_line,
    preprocess_lines,
)


def col(schema, table: str, column: str):
    return schema.table(table).column(column)


# ============================================================================
# Entity definitions
# ============================================================================


class TestEntityDefinitions:
    def test_parses_an_entity_with_attributes(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  CUSTOMER {\n"
            "    int id PK\n"
            "    string name\n"
            "    string email UK\n"
            "  }"
        )
        assert schema is not None
        assert schema.format == "mermaid"
        table = schema.table("CUSTOMER")
        assert [c.name for c in table.columns] == ["id", "name", "email"]
        assert table.column("id").is_primary_key
        assert not table.column("id").is_nullable
        assert table.column("email").is_unique
        assert table.column("name").type == "string"

    def test_multiple_keys_and_comments(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  CARD {\n"
            "    int id PK\n"
            '    int owner_id FK, UK "one card per owner"\n'
            "  }\n"
            "  OWNER {\n"
            "    int id PK\n"
            "  }"
        )
        owner_id = col(schema, "CARD", "owner_id")
        assert owner_id.is_unique
        assert owner_id.is_foreign_key
        assert owner_id.references.table == "OWNER"

    def test_comments_and_blank_lines_are_ignored(self):
        schema = parse_mermaid_schema(
            "%% leading comment\n"
            "erDiagram\n"
            "\n"
            "  %% a comment\n"
            "  USER {\n"
            "    int id PK\n"
            "  }\n"
        )
        assert [t.name for t in schema.tables] == ["USER"]

    def test_entity_only_named_in_relationship_is_created(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  CUSTOMER {\n"
            "    int id PK\n"
            "  }\n"
            "  CUSTOMER ||--o{ ORDER : places"
        )
        assert schema.table("ORDER") is not None

    def test_preprocess_lines(self):
        assert preprocess_lines("  a  \n\n %% c\nb") == ["a", "b"]

    @pytest.mark.parametrize(
        "text",
        ["", "graph TD\n  A --> B", "CUSTOMER {\n int id PK\n}", "erDiagram\n"],
    )
    def test_no_header_or_entities_returns_none(self, text):
        assert parse_mermaid_schema(text) is None

    def test_unrecognised_lines_warn(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema = parse_mermaid_schema(
                "erDiagram\n"
                "  USER {\n"
                "    int id PK\n"
                "  }\n"
                "  this is not mermaid"
            )
        assert schema is not None
        assert "this is not mermaid" in caplog.text


# ============================================================================
# Tokens and relationship lines
# ============================================================================


class TestTokens:
    @pytest.mark.parametrize(
        "token,symbol",
        [
            ("||", "1"),
            ("|o", "0..1"),
            ("o|", "0..1"),
            ("}|", "1..N"),
            ("|{", "1..N"),
            ("}o", "0..N"),
            ("o{", "0..N"),
        ],
    )
    def test_decode_token(self, token, symbol):
        assert decode_token(token) == symbol

    def test_unknown_token_is_unqualified_many(self):
        assert decode_token("<>") == "N"

    def test_relationship_line(self):
        line = parse_relationship_line('CUSTOMER ||--o{ ORDER : "places"')
        assert line.entity1 == "CUSTOMER"
        assert line.entity2 == "ORDER"
        assert line.left == "1"
        assert line.right == "0..N"
        assert line.label == "places"
        assert line.identifying

    def test_dotted_line_is_non_identifying(self):
        line = parse_relationship_line("PERSON }|..|{ CAR : drives")
        assert line.left == "1..N"
        assert line.right == "1..N"
        assert not line.identifying

    def test_non_relationship_line(self):
        assert parse_relationship_line("CUSTOMER {") is None

    def test_malformed_connector_is_many_to_many(self, caplog):
        with caplog.at_level(logging.WARNING):
            line = parse_relationship_line("A ||-o{ B : x")
        assert line.entity1 == "A"
        assert line.entity2 == "B"
        assert line.left == "N"
        assert line.right == "N"
        assert line.label == "x"
        assert "Malformed relationship connector" in caplog.text

    def test_malformed_connector_still_links_entities(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  CUSTOMER {\n"
            "    int id PK\n"
            "  }\n"
            "  ORDER {\n"
            "    int id PK\n"
            "  }\n"
            "  CUSTOMER ||-o{ ORDER : places"
        )
        fk = col(schema, "ORDER", "customer_id")
        assert fk.references.table == "CUSTOMER"
        assert fk.references.cardinality == "N:N"


# ============================================================================
# Foreign keys from relationships
# ============================================================================


class TestRelationships:
    def test_synthesizes_fk_on_the_many_side(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  CUSTOMER {\n"
            "    int id PK\n"
            "  }\n"
            "  ORDER {\n"
            "    int id PK\n"
            "  }\n"
            "  CUSTOMER ||--o{ ORDER : places"
        )
        fk = col(schema, "ORDER", "customer_id")
        assert fk is not None
        assert fk.is_foreign_key
        assert fk.type == "int"
        assert fk.references.table == "CUSTOMER"
        assert fk.references.column == "id"
        assert fk.references.cardinality == "1:0..N"
        assert not fk.is_nullable
        assert not fk.is_unique

    def test_many_on_the_left_puts_fk_on_the_left(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  CUSTOMER {\n"
            "    int id PK\n"
            "  }\n"
            "  ORDER {\n"
            "    int id PK\n"
            "  }\n"
            "  ORDER }o--|| CUSTOMER : placed_by"
        )
        assert col(schema, "ORDER", "customer_id").references.cardinality == "1:0..N"
        assert col(schema, "CUSTOMER", "order_id") is None

    def test_reuses_declared_fk_column(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  USER {\n"
            "    int id PK\n"
            "  }\n"
            "  POST {\n"
            "    int id PK\n"
            "    int user_id FK\n"
            "  }\n"
            "  USER |o--o{ POST : writes"
        )
        post = schema.table("POST")
        assert [c.name for c in post.columns] == ["id", "user_id"]
        assert post.column("user_id").references.table == "USER"
        assert post.column("user_id").is_nullable

    def test_label_selects_among_several_fks(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  COURSE {\n"
            "    int id PK\n"
            "  }\n"
            "  PREREQUISITE {\n"
            "    int id PK\n"
            "    int course_id FK\n"
            "    int required_course_id FK\n"
            "  }\n"
            '  COURSE ||--o{ PREREQUISITE : "required_course_id"\n'
            '  COURSE ||--o{ PREREQUISITE : "course_id"'
        )
        table = schema.table("PREREQUISITE")
        assert table.column("course_id").references.table == "COURSE"
        assert table.column("required_course_id").references.table == "COURSE"
        assert len(table.columns) == 3

    def test_one_to_one_uses_the_entity_holding_the_fk(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  PROFILE {\n"
            "    int id PK\n"
            "    int user_id FK\n"
            "  }\n"
            "  USER {\n"
            "    int id PK\n"
            "  }\n"
            "  PROFILE ||--|| USER : belongs_to"
        )
        assert col(schema, "PROFILE", "user_id").references.table == "USER"
        assert col(schema, "USER", "profile_id") is None

    def test_synthesized_one_to_one_fk_is_unique(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  USER {\n"
            "    int id PK\n"
            "  }\n"
            "  PASSPORT {\n"
            "    int id PK\n"
            "  }\n"
            "  USER ||--|| PASSPORT : holds"
        )
        fk = col(schema, "PASSPORT", "user_id")
        assert fk.is_unique
        assert fk.references.cardinality == "1:1"

    def test_parent_without_primary_key_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema = parse_mermaid_schema(
                "erDiagram\n"
                "  TAG {\n"
                "    string label\n"
                "  }\n"
                "  ITEM {\n"
                "    int id PK\n"
                "  }\n"
                "  TAG ||--o{ ITEM : labels"
            )
        assert col(schema, "ITEM", "tag_id") is None
        assert "no primary key" in caplog.text


# ============================================================================
# FK-marked columns without relationship lines
# ============================================================================


class TestDanglingForeignKeys:
    def test_inferred_by_name(self):
        schema = parse_mermaid_schema(
            "erDiagram\n"
            "  author {\n"
            "    int id PK\n"
            "  }\n"
            "  book {\n"
            "    int id PK\n"
            "    int author_id FK\n"
            "  }"
        )
        fk = col(schema, "book", "author_id")
        assert fk.is_foreign_key
        assert fk.references.table == "author"
        assert fk.references.column == "id"

    def test_unresolvable_flag_is_cleared(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema = parse_mermaid_schema(
                "erDiagram\n"
                "  book {\n"
                "    int id PK\n"
                "    int publisher_id FK\n"
                "  }"
            )
        fk = col(schema, "book", "publisher_id")
        assert not fk.is_foreign_key
        assert fk.references is None
        assert "clearing the flag" in caplog.text
