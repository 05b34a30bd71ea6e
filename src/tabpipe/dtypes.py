'''
# Overview

Tables are backed by `polars` frames, but pipeline stages reason about a
smaller set of *semantic* types, the ones that matter when moving survey
data between delimited text, spreadsheets and statistical packages:

    - string
    - integer
    - float
    - boolean
    - categorical (polars `Enum` / `Categorical`, or a code column that
      carries value labels)
    - temporal
    - missing (a column with no values at all, polars `Null`)
    - nested (list / struct / array, only storable in columnar formats)

# Type tags

Casting and declarative pipelines refer to types with a short string tag
(`'i64'`, `'f64'`, `'string'`, ...) or a semantic name (`'integer'`,
`'float'`, ...), both resolved through `dtype_for`.

'''

from __future__ import annotations

from inspect import isclass
from typing import Literal

import polars as pl
from polars.datatypes import FloatType, IntegerType, TemporalType

from tabpipe.errors import UnsupportedTypeError


SemanticType = Literal[
    'string',
    'integer',
    'float',
    'boolean',
    'categorical',
    'temporal',
    'missing',
    'nested',
]

# a polars dtype class or instance
DataTypeLike = type[pl.DataType] | pl.DataType


def class_of(dtype: DataTypeLike) -> type[pl.DataType]:
    return type(dtype) if not isclass(dtype) else dtype


# type predicates


def is_string_like(dtype: DataTypeLike) -> bool:
    return class_of(dtype) in (pl.String, pl.Utf8)


def is_categorical(dtype: DataTypeLike) -> bool:
    return class_of(dtype) in (pl.Enum, pl.Categorical)


def semantic_type(
    dtype: DataTypeLike,
    *,
    labelled: bool = False
) -> SemanticType:
    '''
    Map a polars data type to its semantic type. Numeric code columns that
    carry value labels are reported as `categorical`.

    '''
    cls = class_of(dtype)

    if dtype.is_nested():
        return 'nested'

    if is_categorical(dtype):
        return 'categorical'

    if labelled and (dtype.is_numeric() or is_string_like(dtype)):
        return 'categorical'

    if issubclass(cls, IntegerType):
        return 'integer'

    if issubclass(cls, FloatType) or cls is pl.Decimal:
        return 'float'

    if cls is pl.Boolean:
        return 'boolean'

    if is_string_like(dtype):
        return 'string'

    if issubclass(cls, TemporalType):
        return 'temporal'

    if cls is pl.Null:
        return 'missing'

    raise UnsupportedTypeError(f'Unknown semantic type for dtype {dtype}')


# type tags

DTypeTag = Literal[
    'u8',
    'u16',
    'u32',
    'u64',
    'i8',
    'i16',
    'i32',
    'i64',
    'f32',
    'f64',
    'bool',
    'date',
    'datetime',
    'string',
]

# Maps between runtime dtype classes and tags
dtype_tag_map: dict[type[pl.DataType], DTypeTag] = {
    pl.UInt8: 'u8',
    pl.UInt16: 'u16',
    pl.UInt32: 'u32',
    pl.UInt64: 'u64',
    pl.Int8: 'i8',
    pl.Int16: 'i16',
    pl.Int32: 'i32',
    pl.Int64: 'i64',
    pl.Float32: 'f32',
    pl.Float64: 'f64',
    pl.Boolean: 'bool',
    pl.Date: 'date',
    pl.Datetime: 'datetime',
    pl.String: 'string',
}

# inverse of dtype_tag_map
tag_dtype_map: dict[DTypeTag, type[pl.DataType]] = {
    v: k for (k, v) in dtype_tag_map.items()
}

# default physical type for each castable semantic type
semantic_dtype_map: dict[str, type[pl.DataType]] = {
    'string': pl.String,
    'integer': pl.Int64,
    'float': pl.Float64,
    'boolean': pl.Boolean,
    'temporal': pl.Datetime,
    'categorical': pl.Categorical,
}


def dtype_for(target: str | DataTypeLike) -> DataTypeLike:
    '''
    Resolve a cast target given as a polars dtype, a dtype tag or a semantic
    type name.

    '''
    if not isinstance(target, str):
        return target

    if target in tag_dtype_map:
        return tag_dtype_map[target]

    if target in semantic_dtype_map:
        return semantic_dtype_map[target]

    raise UnsupportedTypeError(f'Unknown cast target type: {target!r}')


def dtype_tag(dtype: DataTypeLike) -> str:
    '''Short tag for a dtype, falling back to its polars repr.'''
    return dtype_tag_map.get(class_of(dtype), str(dtype))
