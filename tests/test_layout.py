"""Tests for the layout engine.

Covers: determinism, flat 2D output, collision freedom, finite
output, re-centring, layer assignment, subset layout, options and
argument validation for all three algorithms.
"""
from __future__ import annotations

import math

import pytest

from schema3d.layout import (
    LayoutOptions,
    apply_layout_to_schema,
    apply_layout_to_subset,
    assign_layers,
    center_of_mass,
)
from schema3d.layout.geometry import separate_duplicates
from schema3d.layout.graph import build_schema_graph
from schema3d.types import Column, DatabaseSchema, Reference, Table

ALGORITHMS = ["force", "hierarchical", "circular"]
VIEW_MODES = ["2D", "3D"]


def table(name: str, *refs: str) -> Table:
    columns = [Column(name="id", type="INT", is_primary_key=True, is_nullable=False)]
    for ref in refs:
        columns.append(
            Column(
                name=f"{ref}_id",
                type="INT",
                is_foreign_key=True,
                references=Reference(table=ref, column="id"),
            )
        )
    return Table(name=name, columns=tuple(columns))


def shop() -> DatabaseSchema:
    return DatabaseSchema(
        format="sql",
        tables=(
            table("customers"),
            table("products"),
            table("orders", "customers"),
            table("order_items", "orders", "products"),
            table("reviews", "customers", "products"),
            table("settings"),
        ),
    )


def positions(schema: DatabaseSchema) -> list[tuple[float, float, float]]:
    return [t.position for t in schema.tables]


# ============================================================================
# Properties shared by every algorithm
# ============================================================================


@pytest.mark.parametrize("algorithm", ALGORITHMS)
@pytest.mark.parametrize("view_mode", VIEW_MODES)
class TestAllAlgorithms:
    def test_deterministic(self, algorithm, view_mode):
        first = apply_layout_to_schema(shop(), algorithm, view_mode)
        second = apply_layout_to_schema(shop(), algorithm, view_mode)
        assert positions(first) == positions(second)

    def test_no_two_tables_share_a_position(self, algorithm, view_mode):
        laid_out = apply_layout_to_schema(shop(), algorithm, view_mode)
        assert len(set(positions(laid_out))) == len(laid_out.tables)

    def test_positions_are_finite(self, algorithm, view_mode):
        laid_out = apply_layout_to_schema(shop(), algorithm, view_mode)
        for pos in positions(laid_out):
            assert all(math.isfinite(v) for v in pos)

    def test_centered_on_center_of_mass(self, algorithm, view_mode):
        laid_out = apply_layout_to_schema(shop(), algorithm, view_mode)
        for v in center_of_mass(positions(laid_out)):
            assert abs(v) < 1e-6

    def test_tables_and_columns_unchanged(self, algorithm, view_mode):
        schema = shop()
        laid_out = apply_layout_to_schema(schema, algorithm, view_mode)
        assert [t.name for t in laid_out.tables] == [t.name for t in schema.tables]
        assert [t.columns for t in laid_out.tables] == [t.columns for t in schema.tables]
        # Input untouched
        assert all(t.position == (0.0, 0.0, 0.0) for t in schema.tables)

    def test_single_table(self, algorithm, view_mode):
        schema = DatabaseSchema(format="sql", tables=(table("only"),))
        laid_out = apply_layout_to_schema(schema, algorithm, view_mode)
        assert laid_out.tables[0].position == (0.0, 0.0, 0.0)

    def test_empty_schema(self, algorithm, view_mode):
        schema = DatabaseSchema(format="sql")
        assert apply_layout_to_schema(schema, algorithm, view_mode).tables == ()

    def test_disconnected_tables(self, algorithm, view_mode):
        schema = DatabaseSchema(
            format="sql", tables=tuple(table(f"t{i}") for i in range(12))
        )
        laid_out = apply_layout_to_schema(schema, algorithm, view_mode)
        assert len(set(positions(laid_out))) == 12


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_2d_layouts_are_flat(algorithm):
    laid_out = apply_layout_to_schema(shop(), algorithm, "2D")
    assert all(t.position[1] == 0 for t in laid_out.tables)


@pytest.mark.parametrize("algorithm", ["force", "circular"])
def test_3d_layouts_use_vertical_axis(algorithm):
    laid_out = apply_layout_to_schema(shop(), algorithm, "3D")
    assert any(abs(t.position[1]) > 1e-9 for t in laid_out.tables)


# ============================================================================
# Hierarchical layers
# ============================================================================


class TestLayers:
    def test_layer_is_one_below_deepest_parent(self):
        graph = build_schema_graph(shop().tables)
        assert assign_layers(graph, 6) == [0, 0, 1, 2, 1, 0]

    def test_cycles_terminate(self):
        tables = (table("a", "c"), table("b", "a"), table("c", "b"))
        layers = assign_layers(build_schema_graph(tables), 3)
        assert all(0 <= layer <= 2 for layer in layers)

    def test_self_reference_is_ignored(self):
        tables = (table("categories", "categories"),)
        assert assign_layers(build_schema_graph(tables), 1) == [0]

    def test_layers_stack_along_depth(self):
        laid_out = apply_layout_to_schema(shop(), "hierarchical", "2D")
        z = {t.name: t.position[2] for t in laid_out.tables}
        assert z["customers"] == z["products"] == z["settings"]
        assert z["orders"] > z["customers"]
        assert z["order_items"] > z["orders"]


# ============================================================================
# Graph construction
# ============================================================================


class TestSchemaGraph:
    def test_edges_are_deduplicated_child_to_parent(self):
        tables = (
            table("users"),
            Table(
                name="follows",
                columns=(
                    Column(name="follower", type="INT", references=Reference("users", "id")),
                    Column(name="followed", type="INT", references=Reference("users", "id")),
                ),
            ),
        )
        graph = build_schema_graph(tables)
        assert graph.pairs == [(1, 0)]
        assert graph.parents(1) == [0]
        assert graph.children(0) == [1]


# ============================================================================
# Subset layout, options, arguments
# ============================================================================


class TestSubsetLayout:
    def test_hidden_tables_keep_positions(self):
        base = apply_layout_to_schema(shop(), "circular", "3D")
        subset = apply_layout_to_subset(base, ["orders", "CUSTOMERS"], "force", "2D")
        for before, after in zip(base.tables, subset.tables):
            if before.name in ("orders", "customers"):
                assert after.position[1] == 0
            else:
                assert after.position == before.position

    def test_no_visible_tables_returns_schema(self):
        schema = shop()
        assert apply_layout_to_subset(schema, [], "force") is schema


class TestOptions:
    def test_options_override_defaults(self):
        tight = apply_layout_to_schema(
            shop(), "circular", "2D", LayoutOptions(min_radius=20.0, radius_per_table=0.1)
        )
        radius = math.hypot(tight.tables[0].position[0], tight.tables[0].position[2])
        assert radius == pytest.approx(20.0)

    def test_iteration_count_is_bounded(self):
        one_step = apply_layout_to_schema(shop(), "force", "2D", LayoutOptions(iterations=1))
        full = apply_layout_to_schema(shop(), "force", "2D")
        assert positions(one_step) != positions(full)


class TestArguments:
    def test_unknown_layout(self):
        with pytest.raises(ValueError, match="Unknown layout"):
            apply_layout_to_schema(shop(), "spiral", "2D")

    def test_unknown_view_mode(self):
        with pytest.raises(ValueError, match="Unknown view mode"):
            apply_layout_to_schema(shop(), "force", "4D")


class TestGeometry:
    def test_duplicates_are_separated_deterministically(self):
        points = [(0.0, 0.0, 0.0)] * 4
        first = separate_duplicates(points, "2D")
        assert len(set(first)) == 4
        assert all(p[1] == 0.0 for p in first)
        assert first == separate_duplicates(points, "2D")
