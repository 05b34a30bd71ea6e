import polars as pl
import pytest

from tabpipe import (
    ColumnRangeError,
    DuplicateNameError,
    UnknownColumnError,
    col_range,
)
from tabpipe.dtypes import dtype_for, semantic_type
from tabpipe.errors import UnsupportedTypeError
from tabpipe.schema import ColumnHints, Schema
from tabpipe.table import Table


def test_definitions(labelled):
    print(labelled.pretty_str())
    schema = labelled.schema
    assert schema.names == ('key_id', 'village', 'rooms', 'wall_type')
    assert schema['rooms'].kind == 'integer'
    assert schema['village'].kind == 'string'
    # value labelled codes are categorical
    assert schema['wall_type'].kind == 'categorical'
    assert schema['wall_type'].hints.value_labels.label_for(2) == 'burntbricks'
    assert [c.name for c in schema.categorical_columns] == ['wall_type']


def test_semantic_types():
    assert semantic_type(pl.Int32) == 'integer'
    assert semantic_type(pl.Float64) == 'float'
    assert semantic_type(pl.Boolean) == 'boolean'
    assert semantic_type(pl.Enum(['a', 'b'])) == 'categorical'
    assert semantic_type(pl.Date) == 'temporal'
    assert semantic_type(pl.Null) == 'missing'
    assert semantic_type(pl.List(pl.Int64)) == 'nested'


def test_dtype_for():
    assert dtype_for('i32') == pl.Int32
    assert dtype_for('float') == pl.Float64
    assert dtype_for(pl.String) == pl.String
    with pytest.raises(UnsupportedTypeError):
        dtype_for('complex')


def test_duplicate_names_rejected():
    with pytest.raises(DuplicateNameError):
        Schema((('a', pl.Int64), ('a', pl.String)))


def test_unknown_column_lists_available(interviews):
    with pytest.raises(UnknownColumnError) as info:
        interviews.schema.index('villag')

    assert info.value.name == 'villag'
    assert 'village' in str(info.value)
    # also catchable as the builtin
    with pytest.raises(KeyError):
        interviews.schema['villag']


def test_resolve_range(interviews):
    names = interviews.schema.resolve(
        [col_range('no_membrs', 'rooms'), 'key_id', 'rooms']
    )
    assert names == [
        'no_membrs', 'years_liv', 'respondent_wall_type', 'rooms', 'key_id'
    ]


def test_resolve_range_errors(interviews):
    with pytest.raises(ColumnRangeError):
        interviews.schema.resolve([col_range('rooms', 'no_membrs')])

    with pytest.raises(UnknownColumnError):
        interviews.schema.resolve([col_range('rooms', 'nope')])


def test_table_hints_must_name_columns():
    with pytest.raises(UnknownColumnError):
        Table({'a': [1]}, hints={'b': ColumnHints(label='B')})


def test_table_equality(interviews):
    assert interviews == interviews.replace(interviews.frame.clone())
    assert interviews != interviews.with_hints('rooms', ColumnHints(label='Rooms'))


def test_from_rows():
    t = Table.from_rows([{'g': 'x', 'v': 1}, {'g': 'y', 'v': None}])
    assert t.columns == ['g', 'v']
    assert t.height == 2
    assert t.column('v').to_list() == [1, None]

    t = Table.from_rows([('x', 1), ('y', 2)], schema=['g', 'v'])
    assert t.rows() == [('x', 1), ('y', 2)]
