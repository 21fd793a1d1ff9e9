from __future__ import annotations

from dataclasses import dataclass

from grandalf.graphs import Edge, Graph, Vertex

from ..types import Table

# ============================================================================
# Foreign-key graph
#
# One grandalf vertex per table (declaration order), one edge per distinct
# child -> parent table pair. Self-references carry no layout information and
# are left out. Vertex data is the table's index in the input sequence.
# ============================================================================


@dataclass(slots=True)
class SchemaGraph:
    vertices: list[Vertex]
    edges: list[Edge]
    graph: Graph

    def parents(self, index: int) -> list[int]:
        """Indices of the tables `index` references."""
        return [e.v[1].data for e in self.vertices[index].e_out()]

    def children(self, index: int) -> list[int]:
        return [e.v[0].data for e in self.vertices[index].e_in()]

    @property
    def pairs(self) -> list[tuple[int, int]]:
        return [(e.v[0].data, e.v[1].data) for e in self.edges]


def build_schema_graph(tables: tuple[Table, ...] | list[Table]) -> SchemaGraph:
    vertices = [Vertex(i) for i in range(len(tables))]
    index = {t.name.lower(): i for i, t in enumerate(tables)}

    edges: list[Edge] = []
    seen: set[tuple[int, int]] = set()
    for i, table in enumerate(tables):
        for col in table.columns:
            if col.references is None:
                continue
            j = index.get(col.references.table.lower())
            if j is None or j == i or (i, j) in seen:
                continue
            seen.add((i, j))
            edges.append(Edge(vertices[i], vertices[j]))

    try:
        graph = Graph(vertices, edges)
    except Exception as err:
        raise RuntimeError(f"Could not build foreign-key graph: {err}") from err

    return SchemaGraph(vertices=vertices, edges=edges, graph=graph)
