from __future__ import annotations

import logging
from typing import Any

import polars as pl

from tabpipe.dtypes import is_categorical
from tabpipe.errors import UnsupportedTypeError
from tabpipe.expr import ExprLike, Sample, to_expr, validate
from tabpipe.schema import ColumnHints
from tabpipe.table import Table


log = logging.getLogger(__name__)


def mutate(table: Table, name: str, expression: ExprLike | Sample) -> Table:
    '''
    Add a column computed from `expression`, or replace the column of the same
    name (keeping its position). Metadata of a replaced column is dropped.

    Arithmetic follows floating point rules: dividing by zero yields a
    non-finite value, not an error.

    '''
    if isinstance(expression, Sample):
        series = expression.draw(table.height, name=name)
        frame = table.frame.with_columns(series)

    else:
        expr = validate(to_expr(expression), table.schema)
        try:
            frame = table.frame.with_columns(expr.alias(name))

        except (
            pl.exceptions.InvalidOperationError,
            pl.exceptions.ComputeError,
            pl.exceptions.SchemaError,
        ) as e:
            raise UnsupportedTypeError(
                f'Can not derive column {name!r}: {e}'
            ) from e

    if name in table.schema:
        log.debug(f'replaced column {name!r}')

    return table.replace(frame, dropped=(name,))


def _code_text(v: Any) -> str:
    if isinstance(v, float) and v.is_integer():
        return str(int(v))

    return str(v)


def as_factor(table: Table, name: str) -> Table:
    '''
    Convert a column into an `Enum` of labels.

    Value labelled code columns map each code to its label, category order
    follows the declared label order and codes without a label keep their
    code as text. Columns without value labels use their sorted distinct
    values as categories.

    '''
    col = table.schema[name]
    if is_categorical(col.type):
        return table

    if col.type.is_nested():
        raise UnsupportedTypeError(f'Can not convert nested column {name!r} to a factor')

    series = table.frame.get_column(name)
    present = series.drop_nulls().unique(maintain_order=True).to_list()

    mapping: dict[Any, str] = {}
    if col.hints.value_labels is not None:
        mapping.update(col.hints.value_labels.as_dict())
        unlabelled = sorted(v for v in present if v not in mapping)

    else:
        unlabelled = sorted(present)

    for v in unlabelled:
        mapping[v] = _code_text(v)

    categories = list(dict.fromkeys(mapping.values()))
    frame = table.frame.with_columns(
        pl.col(name).replace_strict(
            mapping,
            default=None,
            return_dtype=pl.Enum(categories),
        )
    )

    hints = ColumnHints(label=col.hints.label)
    return table.replace(frame, dropped=(name,), hints={name: hints})
