from __future__ import annotations

from functools import cached_property
from typing import Any, Iterable, Mapping, Sequence

import polars as pl

from tabpipe.errors import UnknownColumnError
from tabpipe.schema import ColumnHints, Schema


class Table:
    '''
    In-memory table: a `pl.DataFrame` plus per column metadata (variable
    labels, value labels, declared missing codes) that polars has no slot for.

    Tables are values, every pipeline stage returns a new one.

    '''
    def __init__(
        self,
        frame: pl.DataFrame | Mapping[str, Sequence[Any]],
        *,
        hints: Mapping[str, ColumnHints] | None = None,
        name: str | None = None,
    ) -> None:
        if not isinstance(frame, pl.DataFrame):
            frame = pl.DataFrame(frame)

        self._frame = frame
        self.name = name

        hints = dict(hints or {})
        for col in hints:
            if col not in frame.schema:
                raise UnknownColumnError(col, tuple(frame.columns))

        self._hints: dict[str, ColumnHints] = {
            k: v for k, v in hints.items() if not v.is_empty
        }

    @staticmethod
    def from_rows(
        rows: Iterable[Mapping[str, Any]] | Iterable[Sequence[Any]],
        schema: Mapping[str, Any] | Sequence[str] | None = None,
        *,
        name: str | None = None,
    ) -> Table:
        rows = list(rows)
        orient = 'row' if rows and not isinstance(rows[0], Mapping) else None
        return Table(
            pl.DataFrame(rows, schema=schema, orient=orient),
            name=name
        )

    def __len__(self) -> int:
        return self._frame.height

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented

        return (
            self._frame.equals(other._frame)
            and self._frame.schema == other._frame.schema
            and self._hints == other._hints
        )

    def __repr__(self) -> str:
        name = f'{self.name!r}, ' if self.name else ''
        return f'Table({name}{self.height} rows x {self.width} columns)'

    @property
    def frame(self) -> pl.DataFrame:
        return self._frame

    @property
    def hints(self) -> dict[str, ColumnHints]:
        return dict(self._hints)

    @property
    def height(self) -> int:
        return self._frame.height

    @property
    def width(self) -> int:
        return self._frame.width

    @property
    def columns(self) -> list[str]:
        return self._frame.columns

    @cached_property
    def schema(self) -> Schema:
        return Schema.from_polars(self._frame.schema, self._hints)

    def column(self, name: str) -> pl.Series:
        self.schema.index(name)
        return self._frame.get_column(name)

    def rows(self) -> list[tuple[Any, ...]]:
        return self._frame.rows()

    def to_dicts(self) -> list[dict[str, Any]]:
        return self._frame.to_dicts()

    def replace(
        self,
        frame: pl.DataFrame,
        *,
        renamed: Mapping[str, str] | None = None,
        dropped: Iterable[str] = (),
        hints: Mapping[str, ColumnHints] | None = None,
    ) -> Table:
        '''
        Derive a new table from `frame`, carrying over this table's hints for
        the columns that survive.

        `renamed` maps old -> new names, `dropped` names columns whose hints
        must not be carried even if a column of the same name remains
        (a replaced column), and `hints` adds or overrides entries.

        '''
        renamed = renamed or {}
        dropped = set(dropped)

        carried: dict[str, ColumnHints] = {}
        for col, h in self._hints.items():
            if col in dropped:
                continue

            new_name = renamed.get(col, col)
            if new_name in frame.schema:
                carried[new_name] = h

        carried.update(hints or {})
        return Table(frame, hints=carried, name=self.name)

    def with_hints(self, name: str, hints: ColumnHints) -> Table:
        self.schema.index(name)
        return self.replace(self._frame, hints={name: hints})

    def pretty_str(self) -> str:
        '''Return a human-readable representation of the table.'''
        lines = [
            f'Table: {self.name or "<unnamed>"}',
            f'Rows: {self.height:,}',
            '',
            self.schema.pretty_str(),
        ]
        return '\n'.join(lines)
