'''
Grouped summaries.

Rows are partitioned by the distinct tuples of the group key columns (missing
is a value like any other here, so rows with a missing key form their own
group) and each group is reduced to one row of summary statistics.

Groups are emitted in first-seen order.

'''
from __future__ import annotations

import logging
from typing import Literal, Sequence, get_args

import polars as pl

from tabpipe.errors import DuplicateNameError, UnsupportedTypeError
from tabpipe.schema import Schema
from tabpipe.structs import FrozenStruct
from tabpipe.table import Table


log = logging.getLogger(__name__)


ReducerFn = Literal[
    'mean',
    'std',
    'sum',
    'min',
    'max',
    'median',
    'count',
    'n',
    'n_missing',
]

# reducers that need a numeric column
numeric_reducers: frozenset[str] = frozenset(('mean', 'std', 'sum', 'median'))

# minimum non-missing values for a defined result
min_values: dict[str, int] = {
    'mean': 1,
    'std': 2,
    'min': 1,
    'max': 1,
    'median': 1,
}


class Reducer(FrozenStruct, frozen=True):
    '''
    One summary statistic over one column. The output column is named
    `<column>_<fn>` unless `name` is given; `n` ignores `column`.

    '''
    column: str | None
    fn: ReducerFn
    name: str | None = None

    def __post_init__(self) -> None:
        if self.fn not in get_args(ReducerFn):
            raise ValueError(f'Unknown reducer: {self.fn!r}')

    @property
    def output_name(self) -> str:
        if self.name:
            return self.name

        if self.fn == 'n':
            return 'n'

        return f'{self.column}_{self.fn}'

    def validate(self, schema: Schema) -> None:
        if self.fn == 'n':
            return

        if self.column is None:
            raise ValueError(f'Reducer {self.fn!r} needs a column')

        dtype = schema[self.column].type
        if self.fn in numeric_reducers and not dtype.is_numeric():
            raise UnsupportedTypeError(
                f'Can not compute {self.fn} of non numeric column'
                f' {self.column!r} ({dtype})'
            )

        if self.fn in ('min', 'max') and dtype.is_nested():
            raise UnsupportedTypeError(
                f'Can not compute {self.fn} of nested column {self.column!r}'
            )

    def expr(self, *, skip_missing: bool = True) -> pl.Expr:
        if self.fn == 'n':
            return pl.len().alias(self.output_name)

        c = pl.col(self.column)
        match self.fn:
            case 'mean':
                stat = c.mean()

            case 'std':
                stat = c.std(ddof=1)

            case 'sum':
                stat = c.sum()

            case 'min':
                stat = c.min()

            case 'max':
                stat = c.max()

            case 'median':
                stat = c.median()

            case 'count':
                stat = c.count()

            case 'n_missing':
                stat = c.null_count()

        if self.fn in min_values:
            stat = (
                pl.when(c.count() >= min_values[self.fn])
                .then(stat)
                .otherwise(None)
            )

        if not skip_missing and self.fn not in ('count', 'n_missing'):
            stat = (
                pl.when(c.null_count() > 0)
                .then(None)
                .otherwise(stat)
            )

        return stat.alias(self.output_name)


def reducer(column: str | None, fn: ReducerFn, name: str | None = None) -> Reducer:
    return Reducer(column=column, fn=fn, name=name)


def group_and_summarize(
    table: Table,
    group_keys: str | Sequence[str],
    reducers: Sequence[Reducer],
    *,
    skip_missing: bool = True,
) -> Table:
    '''
    Reduce each group of rows to one row: the group key values followed by
    one column per reducer.

    With `skip_missing=True` statistics are computed over the non-missing
    values; otherwise a single missing value makes the statistic missing.
    `mean` needs one non-missing value and `std` two, fewer yield missing.

    '''
    if isinstance(group_keys, str):
        group_keys = [group_keys]

    schema = table.schema
    keys = schema.resolve(group_keys)

    out_names = list(keys)
    for r in reducers:
        r.validate(schema)
        if r.output_name in out_names:
            raise DuplicateNameError(
                f'Summary column {r.output_name!r} clashes with another output column'
            )

        out_names.append(r.output_name)

    aggs = [r.expr(skip_missing=skip_missing) for r in reducers]

    if keys:
        frame = table.frame.group_by(keys, maintain_order=True).agg(aggs)

    else:
        frame = table.frame.select(aggs)

    log.debug(f'summarized {table.height} rows into {frame.height} groups by {keys}')

    # key columns keep their metadata, summaries are new columns
    return Table(
        frame,
        hints={k: h for k, h in table.hints.items() if k in keys},
        name=table.name,
    )
