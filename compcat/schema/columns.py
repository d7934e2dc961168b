"""Column descriptions for guarded DDL."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.types import TypeEngine


@dataclass(frozen=True)
class ColumnSpec:
    """One column a guarded step adds if missing.

    ``type_`` is the SQLAlchemy type class a reflected column must be an
    instance of to count as matching; ``sql_type`` is the DDL spelling.
    """

    name: str
    type_: type[TypeEngine]
    sql_type: str
    nullable: bool = True

    def ddl(self) -> str:
        """Column definition following the column name in ADD COLUMN."""
        if self.nullable:
            return f"{self.sql_type} DEFAULT NULL"
        return f"{self.sql_type} NOT NULL"

    def matches(self, reflected_type: object) -> bool:
        return isinstance(reflected_type, self.type_)


@dataclass(frozen=True)
class ColumnProblem:
    """A difference between the live schema and the expected columns."""

    table: str
    column: str | None
    problem: str

    def __str__(self) -> str:
        if self.column is None:
            return f"{self.table}: {self.problem}"
        return f"{self.table}.{self.column}: {self.problem}"
