from __future__ import annotations

from functools import reduce
from operator import and_
from typing import Sequence

import polars as pl

from tabpipe.errors import UnsupportedTypeError
from tabpipe.expr import ExprLike, to_expr, validate
from tabpipe.table import Table


Predicate = ExprLike | Sequence[ExprLike]


def predicate_expr(predicate: Predicate) -> pl.Expr:
    '''
    Build one boolean expression from a predicate or a sequence of predicates
    (AND-combined).

    '''
    if isinstance(predicate, Sequence) and not isinstance(predicate, str):
        if not predicate:
            return pl.lit(True)

        return reduce(and_, (to_expr(p) for p in predicate))

    return to_expr(predicate)


def filter_rows(table: Table, predicate: Predicate) -> Table:
    '''
    Keep the rows where `predicate` is true. Comparisons against missing
    values are never true, so rows with a missing compared value are dropped.
    Kept rows retain their order.

    '''
    expr = validate(predicate_expr(predicate), table.schema)

    try:
        mask = table.frame.select(expr.alias('__mask')).to_series()

    except (
        pl.exceptions.InvalidOperationError,
        pl.exceptions.ComputeError,
        pl.exceptions.SchemaError,
    ) as e:
        raise UnsupportedTypeError(f'Predicate can not be evaluated: {e}') from e

    if mask.dtype != pl.Boolean:
        raise UnsupportedTypeError(
            f'Predicate must evaluate to a boolean, got {mask.dtype}'
        )

    # a scalar predicate broadcasts to every row
    if mask.len() == 1 and table.height != 1:
        mask = pl.repeat(mask.item(), table.height, eager=True, dtype=pl.Boolean)

    return table.replace(table.frame.filter(mask.fill_null(False)))
