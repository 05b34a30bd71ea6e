'''
Expression surface shared by the row filter and the column deriver.

Expressions are plain `polars` expressions. Besides building them in python
(`col('age') >= 18`) they can be given as text, which is how declarative
pipelines spell them:

    "age >= 18 AND sex = 'F'"
    "weight / (height * height)"
    "CAST(income AS DOUBLE)"

Column references are checked against the table schema before evaluation so
a misspelled name fails with `UnknownColumnError` instead of a polars error.

'''
from __future__ import annotations

from typing import Any, Sequence

import polars as pl
from polars import col as col, lit as lit

from tabpipe.dtypes import DataTypeLike, dtype_for
from tabpipe.errors import InsufficientDomainError, SpecError
from tabpipe.schema import Schema
from tabpipe.structs import FrozenStruct


ExprLike = pl.Expr | str | int | float | bool | None


def parse(text: str) -> pl.Expr:
    '''Parse a SQL style text expression into a polars expression.'''
    try:
        return pl.sql_expr(text)

    except pl.exceptions.PolarsError as e:
        raise SpecError(f'Invalid expression {text!r}: {e}') from e


def to_expr(e: ExprLike) -> pl.Expr:
    match e:
        case pl.Expr():
            return e

        case str():
            return parse(e)

        case _:
            return pl.lit(e)


def referenced_columns(expr: pl.Expr) -> list[str]:
    return expr.meta.root_names()


def validate(expr: pl.Expr, schema: Schema) -> pl.Expr:
    '''Raise `UnknownColumnError` if `expr` references a column not in `schema`.'''
    schema.require(referenced_columns(expr))
    return expr


# named functions


def mean(name: str) -> pl.Expr:
    return pl.col(name).mean()


def std(name: str) -> pl.Expr:
    '''Sample standard deviation.'''
    return pl.col(name).std(ddof=1)


def cast(e: ExprLike, target: str | DataTypeLike) -> pl.Expr:
    '''
    Element-wise type cast, values that do not convert become missing.

    '''
    if isinstance(e, str):
        e = pl.col(e)

    return to_expr(e).cast(dtype_for(target), strict=False)


class Sample(FrozenStruct, frozen=True):
    '''
    Pseudo-random fill over a declared domain: either the integer range
    `low..high` (inclusive) or an explicit sequence of `values`.

    With `replace=True` values may repeat across rows, otherwise every row
    gets a distinct value and the domain must hold at least as many values
    as there are rows.

    '''
    low: int | None = None
    high: int | None = None
    values: list[Any] | None = None
    replace: bool = True
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.values is None and (self.low is None or self.high is None):
            raise SpecError('Sample needs either values or a low..high range')

        if self.values is not None and self.low is not None:
            raise SpecError('Sample takes values or a low..high range, not both')

        if self.values is None and self.low > self.high:
            raise SpecError(
                f'Sample range low ({self.low}) is greater than high ({self.high})'
            )

    @property
    def domain_size(self) -> int:
        if self.values is not None:
            return len(self.values)

        return self.high - self.low + 1

    def domain(self) -> pl.Series:
        if self.values is not None:
            return pl.Series(self.values)

        return pl.int_range(self.low, self.high + 1, eager=True)

    def draw(self, n: int, name: str = 'sample') -> pl.Series:
        if n == 0:
            return self.domain().head(0).alias(name)

        if self.domain_size == 0 or (not self.replace and n > self.domain_size):
            raise InsufficientDomainError(
                f'Can not draw {n} values without replacement from a domain'
                f' of {self.domain_size}'
                if not self.replace
                else f'Can not draw {n} values from an empty domain'
            )

        return self.domain().sample(
            n=n,
            with_replacement=self.replace,
            shuffle=True,
            seed=self.seed,
        ).alias(name)


def sample(
    low_or_values: int | Sequence[Any],
    high: int | None = None,
    *,
    replace: bool = True,
    seed: int | None = None,
) -> Sample:
    '''
    `sample(1, 10)` samples integers from 1 to 10, `sample(['a', 'b'])`
    samples from the given values.

    '''
    if isinstance(low_or_values, int):
        return Sample(
            low=low_or_values, high=high, replace=replace, seed=seed
        )

    return Sample(values=list(low_or_values), replace=replace, seed=seed)
