'''
Table sources: load delimited text, statistical binary (SPSS `.sav`, Stata
`.dta`) and columnar interchange files into `Table`s.

Statistical files keep their metadata: variable labels, value labels and
declared missing codes end up in the columns' `ColumnHints`. Values stay as
stored codes, except SPSS user-missing codes which read as missing.

'''
from __future__ import annotations

import logging
from functools import reduce
from operator import or_
from pathlib import Path
from typing import Any, Mapping, Sequence

import polars as pl
import pyarrow as pa
import pyreadstat

from tabpipe.errors import FormatError, SchemaInferenceError
from tabpipe.io.formats import (
    SourceFormats,
    check_format,
    default_delimiter,
    format_from_path,
)
from tabpipe.schema import ColumnHints, ValueLabels
from tabpipe.table import Table


log = logging.getLogger(__name__)


def _read_header(path: Path, delimiter: str, encoding: str) -> list[str | None]:
    '''
    Raw header row, before polars de-duplicates repeated names.

    '''
    try:
        header = pl.read_csv(
            path,
            separator=delimiter,
            has_header=False,
            n_rows=1,
            infer_schema=False,
            encoding=encoding,
        )

    except pl.exceptions.NoDataError as e:
        raise FormatError(f'{path} is empty, expected a header row') from e

    if header.height == 0:
        raise FormatError(f'{path} is empty, expected a header row')

    return list(header.row(0))


def _check_header(path: Path, header: Sequence[str | None]) -> None:
    seen: set[str] = set()
    for i, name in enumerate(header):
        if name is None or not name.strip():
            raise SchemaInferenceError(
                f'{path}: header field {i} has no column name'
            )

        if name in seen:
            raise SchemaInferenceError(
                f'{path}: column name {name!r} appears more than once in header'
            )

        seen.add(name)


def read_delimited(
    path: Path,
    *,
    delimiter: str,
    n_rows: int | None = None,
    schema_overrides: Mapping[str, Any] | None = None,
    null_values: str | Sequence[str] | None = None,
    encoding: str = 'utf-8',
) -> pl.DataFrame:
    if encoding.lower() in ('utf-8', 'utf8'):
        encoding = 'utf8'

    _check_header(path, _read_header(path, delimiter, encoding))

    try:
        return pl.read_csv(
            path,
            separator=delimiter,
            has_header=True,
            n_rows=n_rows,
            schema_overrides=schema_overrides,
            null_values=null_values,
            # scan every row, a late non numeric value turns a column into text
            infer_schema_length=None,
            encoding=encoding,
        )

    except pl.exceptions.NoDataError as e:
        raise FormatError(f'{path} has no data: {e}') from e

    except (
        pl.exceptions.DuplicateError,
        pl.exceptions.SchemaError,
        pl.exceptions.SchemaFieldNotFoundError,
    ) as e:
        raise SchemaInferenceError(f'{path}: {e}') from e

    except (
        pl.exceptions.ComputeError,
        pl.exceptions.InvalidOperationError,
    ) as e:
        # with declared types, a failed parse means a value does not fit
        if schema_overrides:
            raise SchemaInferenceError(
                f'{path}: values do not match declared types: {e}'
            ) from e

        raise FormatError(f'{path} is not valid delimited text: {e}') from e


def _hints_from_meta(meta: Any) -> dict[str, ColumnHints]:
    '''
    Turn a pyreadstat `metadata_container` into per column hints.

    '''
    labels: Mapping[str, str | None] = meta.column_names_to_labels or {}
    value_labels: Mapping[str, Mapping] = meta.variable_value_labels or {}
    missing_ranges: Mapping[str, list[dict]] = (
        getattr(meta, 'missing_ranges', None) or {}
    )

    hints: dict[str, ColumnHints] = {}
    for name in meta.column_names:
        vl = value_labels.get(name)
        missing = tuple(
            r['lo'] for r in missing_ranges.get(name, [])
            if r.get('lo') == r.get('hi')
        )
        hints[name] = ColumnHints(
            label=labels.get(name) or None,
            value_labels=ValueLabels.from_mapping(vl) if vl else None,
            missing_values=missing,
        )

    return hints


def _missing_as_null(
    frame: pl.DataFrame,
    missing_ranges: Mapping[str, list[dict]],
) -> pl.DataFrame:
    '''
    Values inside a declared user-missing range read as missing, the codes
    themselves stay in the column hints.

    '''
    exprs: list[pl.Expr] = []
    for name, ranges in missing_ranges.items():
        if name not in frame.schema or not ranges:
            continue

        c = pl.col(name)
        hit = reduce(or_, [(c >= r['lo']) & (c <= r['hi']) for r in ranges])
        exprs.append(pl.when(hit).then(None).otherwise(c).alias(name))

    return frame.with_columns(exprs)


def read_statistical(
    path: Path,
    format: str,
    *,
    n_rows: int | None = None,
    encoding: str | None = None,
) -> tuple[pl.DataFrame, dict[str, ColumnHints]]:
    kwargs: dict[str, Any] = {
        'apply_value_formats': False,
        'row_limit': n_rows or 0,
        'encoding': encoding,
    }
    if format == 'sav':
        # keep user-missing codes as values so their ranges land in the meta
        kwargs['user_missing'] = True
        reader = pyreadstat.read_sav

    else:
        reader = pyreadstat.read_dta

    try:
        df, meta = reader(str(path), **kwargs)

    except (pyreadstat.ReadstatError, pyreadstat.PyreadstatError) as e:
        raise FormatError(f'{path} is not a valid {format} file: {e}') from e

    try:
        frame = pl.from_pandas(df, nan_to_null=True)
        frame = _missing_as_null(frame, getattr(meta, 'missing_ranges', None) or {})

    except (
        pa.ArrowInvalid,
        pa.ArrowTypeError,
        pl.exceptions.InvalidOperationError,
        pl.exceptions.ComputeError,
        TypeError,
        ValueError,
    ) as e:
        raise SchemaInferenceError(
            f'{path}: can not determine column types: {e}'
        ) from e

    return frame, _hints_from_meta(meta)


def read_columnar(path: Path, format: str, *, n_rows: int | None = None) -> pl.DataFrame:
    try:
        match format:
            case 'parquet':
                return pl.read_parquet(path, n_rows=n_rows)

            case 'ipc':
                return pl.read_ipc(path, n_rows=n_rows, memory_map=False)

    except (pl.exceptions.PolarsError, pa.ArrowInvalid, OSError) as e:
        raise FormatError(f'{path} is not a valid {format} file: {e}') from e

    raise FormatError(f'Unsupported columnar format {format!r}')


def load(
    path: str | Path,
    format: SourceFormats | None = None,
    *,
    delimiter: str | None = None,
    columns: Sequence[str] | None = None,
    n_rows: int | None = None,
    schema_overrides: Mapping[str, Any] | None = None,
    null_values: str | Sequence[str] | None = None,
    encoding: str | None = None,
    name: str | None = None,
) -> Table:
    '''
    Load a table from `path`.

    `format` is inferred from the suffix when not given. Delimited text
    expects a header row, `delimiter` defaults to tab for `.tsv` and comma
    otherwise. `columns` restricts (and orders) the loaded columns,
    `n_rows` limits the number of rows read.

    Raises `FileNotFoundError`, `FormatError` & `SchemaInferenceError`.

    '''
    path = Path(path)
    if not path.is_file():
        log.error(f'File {path} was not found')
        raise FileNotFoundError(f'No such file: {path}')

    format = check_format(
        format or format_from_path(path),
        allowed=('csv', 'sav', 'dta', 'parquet', 'ipc'),
    )

    hints: dict[str, ColumnHints] = {}
    try:
        match format:
            case 'csv':
                frame = read_delimited(
                    path,
                    delimiter=delimiter or default_delimiter(path),
                    n_rows=n_rows,
                    schema_overrides=schema_overrides,
                    null_values=null_values,
                    encoding=encoding or 'utf-8',
                )

            case 'sav' | 'dta':
                frame, hints = read_statistical(
                    path, format, n_rows=n_rows, encoding=encoding
                )

            case _:
                frame = read_columnar(path, format, n_rows=n_rows)

        for col, dtype in frame.schema.items():
            if dtype == pl.Null:
                raise SchemaInferenceError(
                    f'{path}: can not determine type of column {col!r}'
                )

    except (FormatError, SchemaInferenceError) as e:
        log.error(f'Error loading {path}: {e}')
        raise

    table = Table(frame, hints=hints, name=name or path.stem)
    if columns is not None:
        table = table.replace(frame.select(table.schema.resolve(columns)))

    log.info(
        f'Loaded {path} ({format}): {table.height:,} rows x {table.width} columns'
    )
    return table
