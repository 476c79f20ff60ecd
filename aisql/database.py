"""
Database Management Module

Handles the database connection, the one-time schema snapshot, and running
confirmed queries. Result rows are rendered as aligned text with pandas.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import QueryExecutionError, ResultFormattingError, SchemaLoadError


POSTGRES_SCHEMA_QUERY = """select table_name, column_name, data_type
from INFORMATION_SCHEMA.COLUMNS
where table_schema != 'information_schema' and table_schema != 'pg_catalog';"""

SQLITE_SCHEMA_QUERY = """select m.name, p.name, p.type
from sqlite_master m join pragma_table_info(m.name) p
where m.type = 'table' and m.name not like 'sqlite_%'
order by m.rowid, p.cid;"""


@dataclass(frozen=True)
class SchemaField:
    """One column of a table as reported by the database"""
    column: str
    datatype: str


TableSchema = List[SchemaField]
DatabaseSchema = Dict[str, TableSchema]


@dataclass
class QueryResult:
    """Outcome of an executed statement"""
    columns: List[str] = field(default_factory=list)
    rows: List[Tuple[Any, ...]] = field(default_factory=list)
    rowcount: int = -1

    @property
    def returns_rows(self) -> bool:
        return bool(self.columns)


class DatabaseManager:
    """
    Owns the single database connection used for the whole session.

    The schema is read once with get_schema(); every confirmed question then
    goes through execute_query() on the same connection.
    """

    def __init__(self, connection_string: str, timeout: Optional[float] = None):
        self.connection_string = connection_string
        self.timeout = timeout
        self._engine = None
        self._conn = None

    @property
    def engine(self) -> Engine:
        """Lazily created SQLAlchemy engine"""
        if self._engine is None:
            self._engine = create_engine(self.connection_string, connect_args=self._connect_args())
        return self._engine

    @property
    def backend(self) -> str:
        return self.engine.dialect.name

    def _connect_args(self) -> Dict[str, Any]:
        if self.timeout is None:
            return {}
        if self.connection_string.startswith("sqlite"):
            return {"timeout": self.timeout}
        if self.connection_string.startswith("postgresql"):
            return {"connect_timeout": max(1, int(self.timeout))}
        return {}

    def connect(self) -> Connection:
        """Get or open the session connection"""
        if self._conn is None or self._conn.closed:
            self._conn = self.engine.connect()
        return self._conn

    def get_schema(self) -> DatabaseSchema:
        """
        Read table and column metadata with a single query.

        Tables and columns keep the order the database returns them in.

        Returns:
            Mapping of table name -> ordered list of SchemaField

        Raises:
            SchemaLoadError: connection, query or row decoding failed
        """
        try:
            query = SQLITE_SCHEMA_QUERY if self.backend == "sqlite" else POSTGRES_SCHEMA_QUERY
            conn = self.connect()
            rows = conn.execute(text(query)).fetchall()
            conn.rollback()
        except SQLAlchemyError as e:
            raise SchemaLoadError(f"Could not read schema: {e}") from e
        except ImportError as e:
            raise SchemaLoadError(f"No database driver installed for {self.connection_string.split(':')[0]}: {e}") from e

        schema: DatabaseSchema = {}
        for row in rows:
            try:
                table_name, column, datatype = row
            except ValueError as e:
                raise SchemaLoadError(f"Unexpected schema row {tuple(row)!r}") from e
            if not all(isinstance(value, str) for value in (table_name, column, datatype)):
                raise SchemaLoadError(f"Unexpected schema row {tuple(row)!r}")

            schema.setdefault(table_name, []).append(SchemaField(column=column, datatype=datatype))

        logger.info(f"Schema loaded: {len(schema)} tables, {sum(len(f) for f in schema.values())} columns")
        return schema

    def execute_query(self, sql: str) -> QueryResult:
        """
        Run a statement verbatim and commit it.

        The text is passed straight to the driver, so bind-parameter syntax
        and percent signs in the generated SQL are left alone.

        Raises:
            QueryExecutionError: the database rejected the statement
        """
        conn = self.connect()
        try:
            result = conn.execution_options(no_parameters=True).exec_driver_sql(sql)
            if result.returns_rows:
                columns = list(result.keys())
                rows = [tuple(row) for row in result.fetchall()]
                query_result = QueryResult(columns=columns, rows=rows, rowcount=len(rows))
            else:
                query_result = QueryResult(rowcount=result.rowcount)
            conn.commit()
        except SQLAlchemyError as e:
            conn.rollback()
            raise QueryExecutionError(str(e)) from e

        logger.debug(f"Query returned {query_result.rowcount} rows")
        return query_result

    def close(self):
        """Close the connection and dispose of the engine"""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


def format_results(result: QueryResult) -> str:
    """
    Render a QueryResult as an aligned text table.

    Raises:
        ResultFormattingError: the rows do not fit the column header
    """
    if not result.returns_rows:
        return f"{result.rowcount} rows affected"

    if not result.rows:
        return "  ".join(result.columns) + "\n(0 rows)"

    try:
        df = pd.DataFrame.from_records(result.rows, columns=result.columns)
        table = df.to_string(index=False)
    except (ValueError, TypeError) as e:
        raise ResultFormattingError(f"Could not format results: {e}") from e

    return f"{table}\n({len(result.rows)} rows)"
