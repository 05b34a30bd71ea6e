'''
Linear pipelines: a source, a chain of table -> table steps and an optional
sink.

    Pipeline('bmi', source=Source('data/survey.csv'))
        .then(partial(filter_rows, predicate='age >= 18'))
        .then(partial(mutate, name='bmi', expression='weight / (height * height)'))
        .run()

Pipelines can also be declared as data (`PipelineSpec`), decoded from JSON
or TOML with `msgspec`.

'''
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Literal, Sequence

import msgspec

from tabpipe._utils import resolve_path
from tabpipe.errors import SpecError
from tabpipe.expr import Sample
from tabpipe.io.formats import FrameFormats, SourceFormats
from tabpipe.io.sink import save
from tabpipe.io.source import load
from tabpipe.ops.aggregate import Reducer, group_and_summarize
from tabpipe.ops.derive import as_factor, mutate
from tabpipe.ops.filter import filter_rows
from tabpipe.ops.join import join
from tabpipe.ops.project import drop, relocate, rename, select
from tabpipe.schema import ColumnRange
from tabpipe.structs import FrozenStruct
from tabpipe.table import Table


log = logging.getLogger(__name__)


Step = Callable[[Table], Table]


class Source(FrozenStruct, frozen=True):
    path: Path
    format: SourceFormats | None = None
    delimiter: str | None = None
    columns: list[str] | None = None
    null_values: list[str] | None = None
    encoding: str | None = None

    def load(self, root: str | Path | None = None) -> Table:
        return load(
            resolve_path(self.path, root),
            self.format,
            delimiter=self.delimiter,
            columns=self.columns,
            null_values=self.null_values,
            encoding=self.encoding,
        )


class Sink(FrozenStruct, frozen=True):
    path: Path
    format: FrameFormats | None = None
    delimiter: str | None = None
    float_precision: int | None = None
    sheet: str = 'Sheet1'

    def save(self, table: Table, root: str | Path | None = None) -> Path:
        return save(
            table,
            resolve_path(self.path, root),
            self.format,
            delimiter=self.delimiter,
            float_precision=self.float_precision,
            sheet=self.sheet,
        )


class Pipeline:
    '''
    Source -> steps -> sink, each step consuming the previous step's table.

    '''
    def __init__(
        self,
        name: str,
        source: Source | None = None,
        steps: Sequence[Step] = (),
        sink: Sink | None = None,
    ) -> None:
        self.name = name
        self.source = source
        self.steps: tuple[Step, ...] = tuple(steps)
        self.sink = sink

    def __len__(self) -> int:
        return len(self.steps)

    def __repr__(self) -> str:
        return f'Pipeline({self.name!r}, {len(self.steps)} steps)'

    def then(self, step: Step) -> Pipeline:
        return Pipeline(
            self.name,
            source=self.source,
            steps=(*self.steps, step),
            sink=self.sink,
        )

    def run(
        self,
        table: Table | None = None,
        *,
        root: str | Path | None = None,
    ) -> Table:
        '''
        Run the pipeline on `table`, or on a freshly loaded source table if
        not given, saving the result to the sink when one is declared.

        '''
        if table is None:
            if self.source is None:
                raise ValueError(
                    f'Pipeline {self.name!r} has no source, pass a table to run()'
                )

            table = self.source.load(root)

        for i, step in enumerate(self.steps):
            step = _with_root(step, root)
            before = (table.height, table.width)
            table = step(table)
            log.debug(
                f'{self.name}[{i}] {getattr(step, "__name__", step)}:'
                f' {before[0]}x{before[1]} -> {table.height}x{table.width}'
            )

        if self.sink is not None:
            self.sink.save(table, root)

        return table


# declarative steps


def _refs(columns: Sequence[str | list[str]]) -> list[str | ColumnRange]:
    '''
    Column refs as written in specs: a name or a two item `[start, end]` range.

    '''
    refs: list[str | ColumnRange] = []
    for c in columns:
        if isinstance(c, str):
            refs.append(c)

        elif len(c) == 2:
            refs.append(ColumnRange(c[0], c[1]))

        else:
            raise SpecError(f'Column range must be [start, end], got {c!r}')

    return refs


class SelectStep(FrozenStruct, frozen=True, tag='select'):
    columns: list[str | list[str]]

    def __call__(self, table: Table) -> Table:
        return select(table, *_refs(self.columns))


class DropStep(FrozenStruct, frozen=True, tag='drop'):
    columns: list[str | list[str]]

    def __call__(self, table: Table) -> Table:
        return drop(table, *_refs(self.columns))


class RenameStep(FrozenStruct, frozen=True, tag='rename'):
    mapping: dict[str, str]

    def __call__(self, table: Table) -> Table:
        return rename(table, self.mapping)


class RelocateStep(FrozenStruct, frozen=True, tag='relocate'):
    columns: list[str | list[str]]
    before: str | None = None
    after: str | None = None

    def __call__(self, table: Table) -> Table:
        return relocate(
            table, *_refs(self.columns), before=self.before, after=self.after
        )


class FilterStep(FrozenStruct, frozen=True, tag='filter'):
    where: str | list[str]

    def __call__(self, table: Table) -> Table:
        return filter_rows(table, self.where)


class MutateStep(FrozenStruct, frozen=True, tag='mutate'):
    '''
    Exactly one of `expression`, `value` or `sample`. A `value` of `null`
    fills the column with missing values.

    '''
    name: str
    expression: str | None = None
    value: Any | msgspec.UnsetType = msgspec.UNSET
    sample: Sample | None = None

    def __post_init__(self) -> None:
        given = sum((
            self.expression is not None,
            self.value is not msgspec.UNSET,
            self.sample is not None,
        ))
        if given != 1:
            raise SpecError(
                f'mutate {self.name!r} needs exactly one of expression, value or sample'
            )

    def __call__(self, table: Table) -> Table:
        if self.sample is not None:
            return mutate(table, self.name, self.sample)

        if self.expression is not None:
            return mutate(table, self.name, self.expression)

        return mutate(table, self.name, self.value)


class AsFactorStep(FrozenStruct, frozen=True, tag='as_factor'):
    columns: list[str]

    def __call__(self, table: Table) -> Table:
        for c in self.columns:
            table = as_factor(table, c)

        return table


class JoinStep(FrozenStruct, frozen=True, tag='join'):
    right: Source
    keys: list[str] | None = None
    how: Literal['left', 'right', 'inner', 'full'] = 'left'
    suffix: str = '_right'
    # filled from the build or run root so the right source resolves like the main one
    root: Path | None = None

    def __call__(self, table: Table) -> Table:
        return join(
            table,
            self.right.load(self.root),
            self.keys,
            self.how,
            suffix=self.suffix,
        )


def _with_root(step: Step, root: str | Path | None) -> Step:
    '''
    Resolve a join's right source against `root` unless it already has one.

    '''
    if isinstance(step, JoinStep) and root is not None and step.root is None:
        return JoinStep.from_other(step, root=Path(root))

    return step


class SummarizeStep(FrozenStruct, frozen=True, tag='summarize'):
    by: list[str]
    reducers: list[Reducer]
    skip_missing: bool = True

    def __call__(self, table: Table) -> Table:
        return group_and_summarize(
            table, self.by, self.reducers, skip_missing=self.skip_missing
        )


StepSpec = (
    SelectStep
    | DropStep
    | RenameStep
    | RelocateStep
    | FilterStep
    | MutateStep
    | AsFactorStep
    | JoinStep
    | SummarizeStep
)


class PipelineSpec(FrozenStruct, frozen=True):
    '''
    Declarative pipeline, e.g. in TOML:

        name = "adults"

        [source]
        path = "data/interviews.csv"

        [[steps]]
        type = "filter"
        where = "age >= 18"

        [[steps]]
        type = "summarize"
        by = ["village"]
        reducers = [{column = "rooms", fn = "mean"}]

        [sink]
        path = "out/adults.xlsx"

    '''
    name: str
    source: Source | None = None
    steps: list[StepSpec] = []
    sink: Sink | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> PipelineSpec:
        path = Path(path)
        raw = path.read_bytes()
        try:
            match path.suffix.lower():
                case '.json':
                    return cls.from_json(raw)

                case '.toml':
                    return cls.from_toml(raw)

                case _:
                    raise SpecError(
                        f'Unknown pipeline definition format: {path.suffix}'
                    )

        except (msgspec.ValidationError, msgspec.DecodeError) as e:
            raise SpecError(f'Invalid pipeline definition {path}: {e}') from e

    def build(self, root: str | Path | None = None) -> Pipeline:
        return Pipeline(
            self.name,
            source=self.source,
            steps=[_with_root(step, root) for step in self.steps],
            sink=self.sink,
        )
