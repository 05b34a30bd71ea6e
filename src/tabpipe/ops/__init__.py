from .aggregate import (
    Reducer as Reducer,
    group_and_summarize as group_and_summarize,
    reducer as reducer,
)
from .derive import as_factor as as_factor, mutate as mutate
from .filter import filter_rows as filter_rows
from .join import infer_common_keys as infer_common_keys, join as join
from .project import (
    drop as drop,
    relocate as relocate,
    rename as rename,
    select as select,
)
