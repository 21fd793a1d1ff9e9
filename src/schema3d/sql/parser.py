from __future__ import annotations

import logging
import re
from collections.abc import Iterator

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError
from sqlglot.tokens import TokenType

from ..errors import SchemaError
from ..normalizer import normalize
from ..types import (
    DEFAULT_SCHEMA_NAME,
    DatabaseSchema,
    RawColumn,
    RawReference,
    RawTable,
)

logger = logging.getLogger(__name__)

# ============================================================================
# SQL DDL parser
#
# Splits the script into statements with sqlglot's tokenizer and parses each
# one on its own, so a broken statement only costs itself:
#
#   CREATE TABLE ...          -> table (inline + table-level constraints)
#   ALTER TABLE ... ADD ...   -> columns / constraints on an earlier table
#   CREATE [OR REPLACE] VIEW  -> view with column lineage (second pass, so
#                                views may precede the tables they select)
#   anything else             -> ignored
# ============================================================================

GO_RE = re.compile(r"^[ \t]*GO[ \t]*;?[ \t]*$", re.IGNORECASE | re.MULTILINE)
BRACKETED_RE = re.compile(r"\[[A-Za-z_][^\]\n]*\]")

# Tokens that start a new statement even without a preceding semicolon
STATEMENT_STARTS = {TokenType.CREATE, TokenType.ALTER}

KEY_MARKERS = (exp.PrimaryKeyColumnConstraint, exp.UniqueColumnConstraint)
CLUSTER_TYPES = (exp.ClusteredColumnConstraint, exp.NonClusteredColumnConstraint)

DATE_TIME_RE = re.compile(r"DATE|TIME", re.IGNORECASE)
NUMERIC_RE = re.compile(r"DECIMAL|NUMERIC|FLOAT|DOUBLE|REAL", re.IGNORECASE)


def parse_sql_schema(
    text: str,
    name: str = DEFAULT_SCHEMA_NAME,
    dialect: str | None = None,
) -> DatabaseSchema | None:
    """Parse SQL DDL into a schema; None when no table or view results."""
    dialect = dialect or sniff_dialect(text)
    builder = _SchemaBuilder(dialect)
    views: list[exp.Create] = []

    for statement in parse_statements(text, dialect):
        try:
            if _is_create(statement, "TABLE"):
                builder.add_table(statement)
            elif _is_create(statement, "VIEW"):
                views.append(statement)
            elif statement.key in ("alter", "altertable"):
                builder.apply_alter(statement)
            else:
                logger.debug("Ignoring %s statement", statement.key.upper())
        except SchemaError as err:
            logger.warning("Skipping statement: %s", err)

    for view in views:
        try:
            builder.add_view(view)
        except SchemaError as err:
            logger.warning("Skipping view: %s", err)

    if not builder.tables:
        return None
    return normalize(builder.tables, "sql", name, dialect)


def sniff_dialect(text: str) -> str:
    if BRACKETED_RE.search(text):
        return "tsql"
    if "`" in text:
        return "mysql"
    return "postgres"


def parse_statements(text: str, dialect: str | None) -> Iterator[exp.Expression]:
    for chunk in split_statements(text, dialect):
        statement = parse_statement(chunk, dialect)
        if statement is not None:
            yield statement


def split_statements(text: str, dialect: str | None = None) -> list[str]:
    """Split a script on top-level semicolons and CREATE/ALTER keywords."""
    return [text[start:end] for start, end in statement_spans(text, dialect)]


def statement_spans(text: str, dialect: str | None = None) -> list[tuple[int, int]]:
    """(start, end) offsets of each statement, terminators excluded."""
    # Same-length substitution keeps offsets valid for the original text
    text = GO_RE.sub(lambda m: ";".ljust(len(m.group())), text)
    try:
        tokens = sqlglot.tokenize(text, read=dialect)
    except SqlglotError as err:
        logger.warning("Could not tokenize SQL (%s); treating it as one statement", err)
        stripped = text.strip()
        if not stripped:
            return []
        start = text.index(stripped)
        return [(start, start + len(stripped))]

    spans: list[tuple[int, int]] = []
    first: int | None = None
    last = 0
    depth = 0
    for token in tokens:
        if token.token_type == TokenType.SEMICOLON:
            if first is not None:
                spans.append((first, last))
            first = None
            depth = 0
            continue

        if token.token_type in STATEMENT_STARTS and depth == 0 and first is not None:
            spans.append((first, last))
            first = None
        if token.token_type == TokenType.L_PAREN:
            depth += 1
        elif token.token_type == TokenType.R_PAREN:
            depth = max(depth - 1, 0)

        if first is None:
            first = token.start
        last = token.end + 1

    if first is not None:
        spans.append((first, last))
    return spans


def parse_statement(sql: str, dialect: str | None) -> exp.Expression | None:
    # Sniffed dialect first, then sqlglot's generic dialect, then MySQL
    last_error: SqlglotError | None = None
    for candidate in dict.fromkeys((dialect, None, "mysql")):
        try:
            return sqlglot.parse_one(sql, read=candidate)
        except SqlglotError as err:
            last_error = err
    logger.warning("Skipping unparseable statement %r: %s", _preview(sql), last_error)
    return None


def _preview(sql: str, limit: int = 60) -> str:
    flat = " ".join(sql.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def is_schema_statement(statement: exp.Expression | None) -> bool:
    """CREATE TABLE with a column list, CREATE VIEW, or ALTER TABLE."""
    if statement is None:
        return False
    if _is_create(statement, "TABLE"):
        return isinstance(statement.this, exp.Schema)
    return _is_create(statement, "VIEW") or statement.key in ("alter", "altertable")


def _is_create(statement: exp.Expression, kind: str) -> bool:
    return (
        isinstance(statement, exp.Create)
        and str(statement.args.get("kind") or "").upper() == kind
    )


# ============================================================================
# Schema builder
# ============================================================================


class _SchemaBuilder:
    """Accumulates raw tables across statements."""

    def __init__(self, dialect: str | None) -> None:
        self.dialect = dialect
        self.tables: list[RawTable] = []

    def find(self, name: str) -> RawTable | None:
        # Latest declaration wins, matching the normalizer's conflict rule
        key = name.lower()
        for table in reversed(self.tables):
            if table.name.lower() == key:
                return table
        return None

    # --- CREATE TABLE ---

    def add_table(self, create: exp.Create) -> None:
        schema = create.this
        if not isinstance(schema, exp.Schema):
            raise SchemaError(f"CREATE TABLE {_node_name(schema)} has no column list")

        table = RawTable(name=_node_name(schema.this))
        constraints: list[exp.Expression] = []
        for element in schema.expressions:
            if isinstance(element, exp.ColumnDef):
                table.columns.append(self._column(element))
            else:
                constraints.append(element)
        for element in constraints:
            _apply_table_constraint(table, element)

        if not table.columns:
            raise SchemaError(f"CREATE TABLE {table.name} declares no columns")
        self.tables.append(table)

    def _column(self, coldef: exp.ColumnDef) -> RawColumn:
        kind = coldef.args.get("kind")
        col = RawColumn(
            name=coldef.name,
            type=kind.sql(dialect=self.dialect) if kind is not None else "",
        )
        for constraint in coldef.args.get("constraints") or []:
            kind = (
                constraint.args.get("kind")
                if isinstance(constraint, exp.ColumnConstraint)
                else constraint
            )
            if isinstance(kind, exp.PrimaryKeyColumnConstraint):
                col.is_primary_key = True
            elif isinstance(kind, exp.NotNullColumnConstraint):
                col.is_nullable = bool(kind.args.get("allow_null"))
            elif isinstance(kind, exp.UniqueColumnConstraint):
                col.is_unique = True
            elif isinstance(kind, exp.Reference):
                target, target_columns = _reference_target(kind)
                col.is_foreign_key = True
                col.references = RawReference(
                    table=target,
                    column=target_columns[0] if target_columns else None,
                )
        return col

    # --- ALTER TABLE ---

    def apply_alter(self, statement: exp.Expression) -> None:
        name = _node_name(statement.this)
        table = self.find(name)
        if table is None:
            raise SchemaError(f"ALTER TABLE on undeclared table {name!r}")

        for action in statement.args.get("actions") or []:
            for coldef in action.find_all(exp.ColumnDef):
                table.columns.append(self._column(coldef))
            _apply_table_constraint(table, action)

    # --- CREATE VIEW ---

    def add_view(self, create: exp.Create) -> None:
        target = create.this
        renames: list[str] = []
        if isinstance(target, exp.Schema):
            renames = [_identifier_name(e) for e in target.expressions]
            target = target.this
        name = _node_name(target)

        query = create.expression
        select = None
        if isinstance(query, exp.Select):
            select = query
        elif query is not None:
            select = query.find(exp.Select)
        if select is None:
            raise SchemaError(f"VIEW {name} has no SELECT")

        aliases, sources = _source_tables(select)
        columns: list[RawColumn] = []
        for projection in select.expressions:
            columns.extend(self._view_columns(projection, aliases, sources))
        if not columns:
            raise SchemaError(f"VIEW {name} has no resolvable columns")

        for col, rename in zip(columns, renames):
            col.name = rename
        self.tables.append(RawTable(name=name, columns=columns, is_view=True))

    def _view_columns(
        self,
        projection: exp.Expression,
        aliases: dict[str, str],
        sources: list[str],
    ) -> list[RawColumn]:
        alias = ""
        node = projection
        if isinstance(projection, exp.Alias):
            alias = projection.alias
            node = projection.this

        # SELECT * / SELECT t.*
        star_qualifier = None
        if isinstance(node, exp.Star):
            star_qualifier = ""
        elif isinstance(node, exp.Column) and isinstance(node.this, exp.Star):
            star_qualifier = node.table
        if star_qualifier is not None:
            base = self._source(star_qualifier, aliases, sources)
            if base is None:
                logger.warning("Cannot expand %s: unknown source table", node.sql())
                return []
            return [
                RawColumn(
                    name=c.name,
                    type=c.type,
                    source_table=base.name,
                    source_column=c.name,
                )
                for c in base.columns
            ]

        # Passthrough column: [qualifier.]column
        if isinstance(node, exp.Column):
            base = self._source(node.table, aliases, sources, column=node.name)
            base_col = base.column(node.name) if base is not None else None
            return [
                RawColumn(
                    name=alias or node.name,
                    type=base_col.type if base_col is not None else self._type("TEXT"),
                    source_table=base.name if base is not None else aliases.get(
                        node.table.lower(), node.table or None
                    ),
                    source_column=node.name,
                )
            ]

        # Expression: no lineage
        return [
            RawColumn(
                name=alias or node.sql(dialect=self.dialect),
                type=self._infer_type(node),
            )
        ]

    def _source(
        self,
        qualifier: str,
        aliases: dict[str, str],
        sources: list[str],
        column: str | None = None,
    ) -> RawTable | None:
        if qualifier:
            return self.find(aliases.get(qualifier.lower(), qualifier))
        candidates = [t for t in (self.find(s) for s in sources) if t is not None]
        if column is not None:
            for table in candidates:
                if table.column(column) is not None:
                    return table
        return candidates[0] if candidates else None

    def _infer_type(self, node: exp.Expression) -> str:
        if isinstance(node, exp.Cast):
            return node.to.sql(dialect=self.dialect)
        if isinstance(node, exp.Avg):
            return self._type("DECIMAL")
        if isinstance(node, exp.AggFunc):
            return self._type("INTEGER")
        text = node.sql(dialect=self.dialect)
        if DATE_TIME_RE.search(text):
            return self._type("TIMESTAMP")
        if NUMERIC_RE.search(text):
            return self._type("DECIMAL")
        return self._type("TEXT")

    def _type(self, name: str) -> str:
        # Rendered the same way declared types are, so CAST(... AS t) re-parses equal
        return exp.DataType.build(name).sql(dialect=self.dialect)


# ============================================================================
# AST helpers
# ============================================================================


def _apply_table_constraint(table: RawTable, element: exp.Expression) -> None:
    """Apply PRIMARY KEY / FOREIGN KEY / UNIQUE clauses to declared columns."""
    for pk in element.find_all(exp.PrimaryKey):
        for name in (_identifier_name(e) for e in pk.expressions):
            col = _constraint_column(table, name)
            if col is not None:
                col.is_primary_key = True
                col.is_nullable = False

    for fk in element.find_all(exp.ForeignKey):
        reference = fk.args.get("reference")
        if reference is None:
            continue
        target, target_columns = _reference_target(reference)
        for i, name in enumerate(_identifier_name(e) for e in fk.expressions):
            col = _constraint_column(table, name)
            if col is None:
                continue
            col.is_foreign_key = True
            col.references = RawReference(
                table=target,
                column=target_columns[i] if i < len(target_columns) else None,
            )

    for unique in element.find_all(exp.UniqueColumnConstraint):
        columns = unique.this
        if not isinstance(columns, exp.Schema):
            continue
        names = [_identifier_name(e) for e in columns.expressions]
        # Composite uniqueness does not make any single column unique
        if len(names) == 1:
            col = _constraint_column(table, names[0])
            if col is not None:
                col.is_unique = True

    _apply_clustered_keys(table, element)


def _apply_clustered_keys(table: RawTable, element: exp.Expression) -> None:
    """T-SQL keys: `PRIMARY KEY CLUSTERED (a ASC)`, `UNIQUE NONCLUSTERED (a)`.

    sqlglot yields a bare key marker followed by a (Non)Clustered node that
    holds the ordered column list.
    """
    for cluster in element.find_all(*CLUSTER_TYPES):
        if cluster.find_ancestor(exp.ColumnDef) is not None:
            continue
        marker = _cluster_marker(cluster)
        if marker is None:
            continue
        items = cluster.this if isinstance(cluster.this, list) else [cluster.this]
        names = [_identifier_name(e) for e in items if isinstance(e, exp.Expression)]

        if isinstance(marker, exp.PrimaryKeyColumnConstraint):
            for name in names:
                col = _constraint_column(table, name)
                if col is not None:
                    col.is_primary_key = True
                    col.is_nullable = False
        elif len(names) == 1:
            col = _constraint_column(table, names[0])
            if col is not None:
                col.is_unique = True


def _cluster_marker(cluster: exp.Expression) -> exp.Expression | None:
    enclosing = cluster.find_ancestor(*KEY_MARKERS)
    if enclosing is not None:
        return enclosing

    # Otherwise the marker is the sibling right before it
    parent = cluster.parent
    siblings = parent.args.get(cluster.arg_key) if parent is not None else None
    if not isinstance(siblings, list):
        return None
    position = next((i for i, s in enumerate(siblings) if s is cluster), 0)
    if position == 0:
        return None
    previous = siblings[position - 1]
    if isinstance(previous, exp.ColumnConstraint):
        previous = previous.args.get("kind")
    return previous if isinstance(previous, KEY_MARKERS) else None


def _constraint_column(table: RawTable, name: str) -> RawColumn | None:
    col = table.column(name)
    if col is None:
        logger.warning("Constraint on %s names unknown column %r", table.name, name)
    return col


def _reference_target(reference: exp.Expression) -> tuple[str, list[str]]:
    target = reference.this
    if isinstance(target, exp.Schema):
        return _node_name(target.this), [_identifier_name(e) for e in target.expressions]
    return _node_name(target), []


def _source_tables(select: exp.Select) -> tuple[dict[str, str], list[str]]:
    """Alias map and source tables of a SELECT, FROM table first."""
    aliases: dict[str, str] = {}
    sources: list[str] = []

    from_clause = select.find(exp.From)
    first = from_clause.find(exp.Table) if from_clause is not None else None
    tables = ([first] if first is not None else []) + list(select.find_all(exp.Table))

    for table in tables:
        name = table.name
        if not name:
            continue
        aliases.setdefault(name.lower(), name)
        if table.alias:
            aliases[table.alias.lower()] = name
        if name not in sources:
            sources.append(name)
    return aliases, sources


def _identifier_name(node: exp.Expression) -> str:
    ident = node.find(exp.Identifier)
    return ident.name if ident is not None else node.name


def _node_name(node: exp.Expression | None) -> str:
    if node is None:
        return ""
    if isinstance(node, exp.Table):
        return node.name
    return _identifier_name(node)
