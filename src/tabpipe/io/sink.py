'''
Table sinks: write `Table`s as delimited text, spreadsheets, statistical
binary (SPSS `.sav`, Stata `.dta`) or columnar interchange files.

Existing files at the target path are overwritten without warning.

'''
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import polars as pl
import pyreadstat

from tabpipe._utils import path_size
from tabpipe.dtypes import class_of, is_categorical
from tabpipe.errors import FormatError, UnsupportedTypeError
from tabpipe.io.formats import (
    FrameFormats,
    check_format,
    default_delimiter,
    format_from_path,
    statistical_formats,
)
from tabpipe.table import Table


log = logging.getLogger(__name__)


def _check_flat(table: Table, format: str) -> None:
    nested = table.schema.nested_columns
    if nested:
        raise UnsupportedTypeError(
            f'{format} can not store nested columns: {[c.name for c in nested]}'
        )


def _warn_dropped_metadata(table: Table, format: str) -> None:
    if table.hints:
        log.warning(
            f'{format} can not store column labels, dropping metadata of:'
            f' {list(table.hints)}'
        )


def _categories_as_text(frame: pl.DataFrame) -> pl.DataFrame:
    return frame.with_columns(
        [
            pl.col(name).cast(pl.String)
            for name, dtype in frame.schema.items()
            if is_categorical(dtype)
        ]
    )


def write_delimited(
    table: Table,
    path: Path,
    *,
    delimiter: str,
    float_precision: int | None = None,
) -> None:
    _check_flat(table, 'csv')
    _warn_dropped_metadata(table, 'csv')
    _categories_as_text(table.frame).write_csv(
        path,
        separator=delimiter,
        include_header=True,
        float_precision=float_precision,
    )


def write_spreadsheet(table: Table, path: Path, *, sheet: str = 'Sheet1') -> None:
    _check_flat(table, 'xlsx')
    _warn_dropped_metadata(table, 'xlsx')
    _categories_as_text(table.frame).write_excel(path, worksheet=sheet)


def _category_codes(
    frame: pl.DataFrame,
    name: str,
) -> tuple[pl.Expr, dict[int, str]]:
    '''
    Integer codes (starting at 1) & value labels for a categorical column.

    '''
    dtype = frame.schema[name]
    if class_of(dtype) is pl.Enum:
        categories = list(dtype.categories)

    else:
        categories = (
            frame.get_column(name)
            .cast(pl.String)
            .drop_nulls()
            .unique(maintain_order=True)
            .to_list()
        )

    codes = {cat: i + 1 for i, cat in enumerate(categories)}
    expr = pl.col(name).cast(pl.String).replace_strict(
        codes, default=None, return_dtype=pl.Int32
    )
    return expr, {i: cat for cat, i in codes.items()}


def _integer_codes(frame: pl.DataFrame, name: str, labels: dict) -> tuple[pl.Expr, dict]:
    '''
    Stata only labels integer variables: integral float codes are narrowed,
    anything else can not be represented.

    '''
    dtype = frame.schema[name]
    if dtype.is_integer():
        return pl.col(name), {int(k): v for k, v in labels.items()}

    values = frame.get_column(name).drop_nulls()
    if (
        dtype.is_float()
        and all(float(k).is_integer() for k in labels)
        and (values.len() == 0 or (values == values.round(0)).all())
    ):
        return (
            pl.col(name).cast(pl.Int32),
            {int(k): v for k, v in labels.items()}
        )

    raise UnsupportedTypeError(
        f'dta value labels need integer codes, column {name!r} is {dtype}'
    )


def write_statistical(
    table: Table,
    path: Path,
    format: str,
    *,
    file_label: str | None = None,
) -> None:
    _check_flat(table, format)

    frame = table.frame
    hints = table.hints

    casts: list[pl.Expr] = []
    value_labels: dict[str, dict[Any, str]] = {}
    for name, dtype in frame.schema.items():
        if is_categorical(dtype):
            expr, labels = _category_codes(frame, name)
            casts.append(expr)
            value_labels[name] = labels
            continue

        h = hints.get(name)
        if h is None or h.value_labels is None:
            continue

        labels = h.value_labels.as_dict()
        if format == 'dta':
            expr, labels = _integer_codes(frame, name, labels)
            casts.append(expr)

        value_labels[name] = labels

    frame = frame.with_columns(casts)
    column_labels = [
        hints[c].label if c in hints else None for c in frame.columns
    ]

    kwargs: dict[str, Any] = {
        'file_label': file_label or '',
        'column_labels': column_labels,
        'variable_value_labels': value_labels,
    }
    if format == 'sav':
        missing = {
            c: list(h.missing_values)
            for c, h in hints.items()
            if h.missing_values
        }
        if missing:
            kwargs['missing_ranges'] = missing

    writer = pyreadstat.write_sav if format == 'sav' else pyreadstat.write_dta
    try:
        writer(frame.to_pandas(), str(path), **kwargs)

    except (pyreadstat.ReadstatError, pyreadstat.PyreadstatError) as e:
        raise FormatError(f'Can not write {format} file {path}: {e}') from e


def save(
    table: Table,
    path: str | Path,
    format: FrameFormats | None = None,
    *,
    delimiter: str | None = None,
    float_precision: int | None = None,
    sheet: str = 'Sheet1',
    file_label: str | None = None,
) -> Path:
    '''
    Write `table` to `path`, replacing any existing file. Parent directories
    are created as needed.

    Delimited text and spreadsheets store categorical columns as their label
    text and drop column metadata; statistical binary keeps variable labels
    & value labels, writing `Enum` columns as integer codes with labels.

    Raises `UnsupportedTypeError` for columns the format can not represent.

    '''
    path = Path(path)
    format = check_format(format or format_from_path(path))
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        match format:
            case 'csv':
                write_delimited(
                    table,
                    path,
                    delimiter=delimiter or default_delimiter(path),
                    float_precision=float_precision,
                )

            case 'xlsx':
                write_spreadsheet(table, path, sheet=sheet)

            case _ if format in statistical_formats:
                write_statistical(table, path, format, file_label=file_label)

            case 'parquet':
                _warn_dropped_metadata(table, format)
                table.frame.write_parquet(path)

            case 'ipc':
                _warn_dropped_metadata(table, format)
                table.frame.write_ipc(path)

    except (FormatError, UnsupportedTypeError) as e:
        log.error(f'Error saving {path}: {e}')
        raise

    log.info(
        f'Saved {table.height:,} rows to {path} ({format}, {path_size(path):,} bytes)'
    )
    return path
