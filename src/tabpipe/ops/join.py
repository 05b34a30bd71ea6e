'''
Relational joins between two tables.

Output row order is fully determined:

    1. for every left row, in order, one row per matching right row (in right
       order); `left` & `full` joins emit unmatched left rows in place with
       the right-only columns missing.
    2. `right` & `full` joins then append the right rows that matched no left
       row, in right order, with the left-only columns missing.

Key columns appear once. Missing key values never match each other.

'''
from __future__ import annotations

import logging
from typing import Literal, Sequence

import polars as pl

from tabpipe.dtypes import class_of, is_categorical, is_string_like
from tabpipe.errors import (
    DuplicateNameError,
    MissingKeyColumnError,
    NoCommonKeyError,
    UnsupportedTypeError,
)
from tabpipe.schema import ColumnHints
from tabpipe.table import Table


log = logging.getLogger(__name__)


JoinHow = Literal['left', 'right', 'inner', 'full']

_left_idx = '__tabpipe_left_row'
_right_idx = '__tabpipe_right_row'


def infer_common_keys(left: Table, right: Table) -> list[str]:
    '''
    Column names present in both tables, in left table order. Inspect the
    result before joining on it, same named columns are not always the same
    variable.

    '''
    keys = [c for c in left.columns if c in right.schema]
    if not keys:
        raise NoCommonKeyError(
            'Tables share no column names to join on:'
            f' left={left.columns}, right={right.columns}'
        )

    return keys


def _key_casts(
    left: Table,
    right: Table,
    keys: Sequence[str],
) -> list[pl.Expr]:
    '''
    Casts needed to make key dtypes comparable on both sides: numeric pairs
    widen to Float64, text & categorical pairs compare as text.

    '''
    casts: list[pl.Expr] = []
    for k in keys:
        lt = left.schema[k].type
        rt = right.schema[k].type
        # an all missing key column takes the type of the other side
        if lt == pl.Null or rt == pl.Null:
            target = rt if lt == pl.Null else lt
            if target == pl.Null or is_categorical(target):
                target = pl.String

            casts.append(pl.col(k).cast(target))
            continue

        if lt == rt and class_of(lt) is not pl.Categorical:
            continue

        if lt.is_numeric() and rt.is_numeric():
            casts.append(pl.col(k).cast(pl.Float64))

        elif (
            (is_string_like(lt) or is_categorical(lt))
            and (is_string_like(rt) or is_categorical(rt))
        ):
            casts.append(pl.col(k).cast(pl.String))

        else:
            raise UnsupportedTypeError(
                f'Join key {k!r} has incompatible types: {lt} and {rt}'
            )

    return casts


def join(
    left: Table,
    right: Table,
    keys: str | Sequence[str] | None = None,
    how: JoinHow = 'left',
    *,
    suffix: str = '_right',
) -> Table:
    '''
    Join `right` onto `left` on equal `keys`, if no keys are given the column
    names common to both tables are used.

    Multiple right matches for a left row fan out into one output row each.

    '''
    if how not in ('left', 'right', 'inner', 'full'):
        raise ValueError(f'Unknown join mode: {how!r}')

    if keys is None:
        keys = infer_common_keys(left, right)
        log.info(f'joining on inferred common columns: {keys}')

    elif isinstance(keys, str):
        keys = [keys]

    keys = list(dict.fromkeys(keys))
    if not keys:
        raise NoCommonKeyError('Join needs at least one key column')

    for table in (left, right):
        for k in keys:
            if k not in table.schema:
                raise MissingKeyColumnError(k, table.schema.names)

    # rename clashing right-only columns up front so unmatched rows from each
    # side line up when concatenated
    right_renames: dict[str, str] = {}
    for c in right.columns:
        if c in keys or c not in left.schema:
            continue

        new = c + suffix
        if new in left.schema or new in right.schema:
            raise DuplicateNameError(
                f'Can not suffix clashing column {c!r}: {new!r} already exists'
            )

        right_renames[c] = new

    casts = _key_casts(left, right, keys)
    lf = left.frame.with_columns(casts).with_row_index(_left_idx)
    rf = (
        right.frame
        .rename(right_renames)
        .with_columns(casts)
        .with_row_index(_right_idx)
    )

    parts = [lf.join(rf, on=keys, how='inner')]

    if how in ('left', 'full'):
        parts.append(lf.join(rf, on=keys, how='anti'))

    body = (
        pl.concat(parts, how='diagonal_relaxed')
        .sort([_left_idx, _right_idx], nulls_last=True, maintain_order=True)
    )

    if how in ('right', 'full'):
        tail = rf.join(lf, on=keys, how='anti').sort(_right_idx)
        body = pl.concat([body, tail], how='diagonal_relaxed')

    right_only = [right_renames.get(c, c) for c in right.columns if c not in keys]
    frame = body.select([*left.columns, *right_only])

    hints: dict[str, ColumnHints] = dict(left.hints)
    for c, h in right.hints.items():
        if c not in keys:
            hints[right_renames.get(c, c)] = h

    log.debug(
        f'{how} join on {keys}: {left.height} x {right.height} -> {frame.height} rows'
    )
    return Table(frame, hints=hints, name=left.name)
