from __future__ import annotations

from functools import cached_property
from typing import Any, Iterable, Iterator, Mapping

import msgspec
import polars as pl

from tabpipe.dtypes import (
    DataTypeLike,
    SemanticType,
    dtype_tag,
    semantic_type,
)
from tabpipe.errors import (
    ColumnRangeError,
    DuplicateNameError,
    UnknownColumnError,
)
from tabpipe.structs import FrozenStruct


# value label codes are numbers in .sav/.dta files, but strings are allowed
# for string coded variables
LabelCode = int | float | str


class ValueLabels(FrozenStruct, frozen=True):
    '''
    Mapping from stored codes to human readable labels, e.g. the survey
    answer `1 -> "Strongly agree"`.

    '''
    codes: tuple[LabelCode, ...]
    labels: tuple[str, ...]

    @staticmethod
    def from_mapping(m: Mapping[LabelCode, str]) -> ValueLabels:
        return ValueLabels(
            codes=tuple(m.keys()),
            labels=tuple(str(v) for v in m.values())
        )

    def as_dict(self) -> dict[LabelCode, str]:
        return dict(zip(self.codes, self.labels, strict=True))

    def label_for(self, code: LabelCode) -> str | None:
        return self.as_dict().get(code)

    def __len__(self) -> int:
        return len(self.codes)


class ColumnHints(msgspec.Struct, frozen=True):
    # variable label ("What is your age?")
    label: str | None = None
    value_labels: ValueLabels | None = None
    # user declared missing codes from statistical files, informational only
    missing_values: tuple[LabelCode, ...] = ()

    @property
    def is_empty(self) -> bool:
        return (
            self.label is None
            and self.value_labels is None
            and not self.missing_values
        )


class Column(msgspec.Struct, dict=True, frozen=True):
    name: str
    type: DataTypeLike
    hints: ColumnHints = ColumnHints()

    @property
    def labelled(self) -> bool:
        return self.hints.value_labels is not None

    @property
    def kind(self) -> SemanticType:
        return semantic_type(self.type, labelled=self.labelled)


ColumnLike = (
    tuple[str, DataTypeLike]
    | tuple[str, DataTypeLike, ColumnHints]
    | Column
)


def column_from_like(c: ColumnLike) -> Column:
    if isinstance(c, Column):
        return c

    name, typ = c[0], c[1]
    hints = c[2] if len(c) == 3 else ColumnHints()
    return Column(name, typ, hints)


class ColumnRange(msgspec.Struct, frozen=True):
    '''
    Reference to the contiguous block of columns between `start` and `end`
    (both inclusive), as positioned in the table at resolution time.

    '''
    start: str
    end: str


def col_range(start: str, end: str) -> ColumnRange:
    return ColumnRange(start, end)


ColumnRef = str | ColumnRange


class Schema:
    '''
    Ordered, name unique collection of `Column`s with validated string keyed
    lookup.

    '''
    def __init__(self, columns: Iterable[ColumnLike]):
        self._columns: tuple[Column, ...] = tuple(
            (column_from_like(c) for c in columns)
        )

        self._index: dict[str, int] = {}
        for i, col in enumerate(self._columns):
            if col.name in self._index:
                raise DuplicateNameError(
                    f'Column name {col.name!r} appears more than once'
                )

            self._index[col.name] = i

    @staticmethod
    def from_polars(
        schema: pl.Schema | Mapping[str, DataTypeLike],
        hints: Mapping[str, ColumnHints] | None = None
    ) -> Schema:
        hints = hints or {}
        return Schema(
            Column(name, dtype, hints.get(name, ColumnHints()))
            for name, dtype in schema.items()
        )

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __getitem__(self, name: str) -> Column:
        return self._columns[self.index(name)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented

        return self._columns == other._columns

    def __repr__(self) -> str:
        return f'Schema({list(self.names)})'

    def index(self, name: str) -> int:
        try:
            return self._index[name]

        except KeyError:
            raise UnknownColumnError(name, self.names) from None

    def require(self, names: Iterable[str]) -> None:
        '''Raise `UnknownColumnError` for the first name not in the schema.'''
        for name in names:
            self.index(name)

    def resolve(self, refs: Iterable[ColumnRef]) -> list[str]:
        '''
        Resolve a sequence of names and ranges into a flat list of column
        names, keeping the first occurrence of repeated names.

        '''
        out: dict[str, None] = {}
        for ref in refs:
            match ref:
                case ColumnRange():
                    start = self.index(ref.start)
                    end = self.index(ref.end)
                    if start > end:
                        raise ColumnRangeError(
                            f'Column range start {ref.start!r} is positioned'
                            f' after end {ref.end!r}'
                        )

                    for col in self._columns[start:end + 1]:
                        out.setdefault(col.name, None)

                case str():
                    self.index(ref)
                    out.setdefault(ref, None)

                case _:
                    raise TypeError(f'Invalid column reference: {ref!r}')

        return list(out)

    @cached_property
    def names(self) -> tuple[str, ...]:
        return tuple(col.name for col in self._columns)

    @cached_property
    def categorical_columns(self) -> tuple[Column, ...]:
        return tuple(col for col in self._columns if col.kind == 'categorical')

    @cached_property
    def nested_columns(self) -> tuple[Column, ...]:
        return tuple(col for col in self._columns if col.kind == 'nested')

    def pretty_str(self) -> str:
        '''Return a human-readable representation of the schema.'''
        lines = ['Schema:']
        for col in self._columns:
            extra: list[Any] = []
            if col.hints.label:
                extra.append(repr(col.hints.label))
            if col.hints.value_labels is not None:
                extra.append(f'{len(col.hints.value_labels)} value labels')
            if col.hints.missing_values:
                extra.append(f'missing={list(col.hints.missing_values)}')
            extra_str = f' ({", ".join(extra)})' if extra else ''
            name = dtype_tag(col.type)
            lines.append(f'  - {col.name}: {col.kind}[{name}]{extra_str}')

        return '\n'.join(lines)
