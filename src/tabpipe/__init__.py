'''
Glossary:
    - Table: in-memory rows x named, typed columns (a polars frame plus column
      labels & value labels).
    - Missing value: absent / unknown data (polars null), distinct from zero,
      the empty string and non-finite floats.
    - Value labels: code -> label mapping of a categorical survey variable, as
      stored by statistical packages.
    - Group key: column(s) whose distinct value tuples define the groups of a
      summary.
    - Pipeline: a source, a chain of table -> table steps and an optional sink.

'''

from .errors import (
    ColumnRangeError as ColumnRangeError,
    DuplicateNameError as DuplicateNameError,
    FormatError as FormatError,
    InsufficientDomainError as InsufficientDomainError,
    MissingKeyColumnError as MissingKeyColumnError,
    NoCommonKeyError as NoCommonKeyError,
    SchemaInferenceError as SchemaInferenceError,
    SpecError as SpecError,
    TabPipeError as TabPipeError,
    UnknownColumnError as UnknownColumnError,
    UnsupportedTypeError as UnsupportedTypeError,
)

from .schema import (
    Column as Column,
    ColumnHints as ColumnHints,
    Schema as Schema,
    ValueLabels as ValueLabels,
    col_range as col_range,
)

from .table import Table as Table

from .expr import (
    cast as cast,
    col as col,
    lit as lit,
    mean as mean,
    sample as sample,
    std as std,
)

from .io import load as load, save as save

from .ops import (
    Reducer as Reducer,
    as_factor as as_factor,
    drop as drop,
    filter_rows as filter_rows,
    group_and_summarize as group_and_summarize,
    infer_common_keys as infer_common_keys,
    join as join,
    mutate as mutate,
    reducer as reducer,
    relocate as relocate,
    rename as rename,
    select as select,
)

from .pipeline import (
    Pipeline as Pipeline,
    PipelineSpec as PipelineSpec,
    Sink as Sink,
    Source as Source,
)

from ._log import setup_logging as setup_logging
