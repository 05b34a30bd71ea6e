from pathlib import Path
from typing import Literal, get_args

from tabpipe.errors import FormatError


# csv: delimited text with a header row
# sav / dta: statistical binary (SPSS / Stata), carry labels & declared types
# xlsx: spreadsheet, write only
# parquet / ipc: columnar interchange
FrameFormats = Literal['csv', 'sav', 'dta', 'xlsx', 'parquet', 'ipc']

SourceFormats = Literal['csv', 'sav', 'dta', 'parquet', 'ipc']

statistical_formats: tuple[str, ...] = ('sav', 'dta')

# suffix aliases
suffix_formats: dict[str, FrameFormats] = {
    'csv': 'csv',
    'tsv': 'csv',
    'txt': 'csv',
    'sav': 'sav',
    'zsav': 'sav',
    'dta': 'dta',
    'xlsx': 'xlsx',
    'parquet': 'parquet',
    'pq': 'parquet',
    'ipc': 'ipc',
    'arrow': 'ipc',
    'feather': 'ipc',
}


def format_from_path(path: str | Path) -> FrameFormats:
    '''
    Given a file path figure out its format from the suffix.

    '''
    suffix = Path(path).suffix.lower().lstrip('.')

    try:
        return suffix_formats[suffix]

    except KeyError:
        raise FormatError(
            f'Format not specified and target file has unknown suffix: {path}'
        ) from None


def check_format(format: str, allowed: tuple[str, ...] = get_args(FrameFormats)) -> FrameFormats:
    if format not in allowed:
        raise FormatError(
            f'Unsupported format {format!r}, expected one of: {", ".join(allowed)}'
        )

    return format


def default_delimiter(path: str | Path) -> str:
    return '\t' if Path(path).suffix.lower() == '.tsv' else ','
