'''
Column projection: select, drop, rename & relocate columns by name or by
contiguous name range.

'''
from __future__ import annotations

from typing import Mapping

import polars as pl

from tabpipe.errors import DuplicateNameError
from tabpipe.schema import ColumnRef
from tabpipe.table import Table


def select(table: Table, *refs: ColumnRef) -> Table:
    '''
    Keep only the referenced columns, in the requested order.

    '''
    names = table.schema.resolve(refs)
    return table.replace(table.frame.select(names))


def drop(table: Table, *refs: ColumnRef) -> Table:
    names = set(table.schema.resolve(refs))
    return table.replace(
        table.frame.select([c for c in table.columns if c not in names])
    )


def rename(table: Table, mapping: Mapping[str, str]) -> Table:
    '''
    Rename columns simultaneously (`{'a': 'b', 'b': 'a'}` swaps them), fails
    if a new name collides with a column that keeps its name or with another
    new name.

    '''
    schema = table.schema
    schema.require(mapping)

    mapping = {old: new for old, new in mapping.items() if old != new}
    if not mapping:
        return table

    kept = set(schema.names) - set(mapping)
    seen: set[str] = set()
    for old, new in mapping.items():
        if new in kept:
            raise DuplicateNameError(
                f'Can not rename {old!r} to {new!r}: column already exists'
            )

        if new in seen:
            raise DuplicateNameError(
                f'Can not rename {old!r} to {new!r}: name used by another rename'
            )

        seen.add(new)

    return table.replace(
        table.frame.select(
            [pl.col(c).alias(mapping.get(c, c)) for c in table.columns]
        ),
        renamed=mapping
    )


def relocate(
    table: Table,
    *refs: ColumnRef,
    before: str | None = None,
    after: str | None = None,
) -> Table:
    '''
    Move the referenced columns, as a block, in front of `before` or behind
    `after`; to the front if neither is given.

    '''
    if before is not None and after is not None:
        raise ValueError('relocate takes before or after, not both')

    schema = table.schema
    moving = schema.resolve(refs)
    anchor = before if before is not None else after
    if anchor is not None:
        schema.index(anchor)
        if anchor in moving:
            raise ValueError(f'Can not relocate columns relative to themselves ({anchor!r})')

    rest = [c for c in schema.names if c not in moving]
    if anchor is None:
        order = moving + rest

    else:
        pos = rest.index(anchor) + (1 if after is not None else 0)
        order = rest[:pos] + moving + rest[pos:]

    return table.replace(table.frame.select(order))
