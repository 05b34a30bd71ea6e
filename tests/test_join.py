import polars as pl
import pytest

from tabpipe import (
    ColumnHints,
    DuplicateNameError,
    MissingKeyColumnError,
    NoCommonKeyError,
    Table,
    UnsupportedTypeError,
    infer_common_keys,
    join,
)


@pytest.fixture
def keyed():
    left = Table({'k': [1, 2], 'x': ['p', 'q']})
    right = Table({'k': [1, 1], 'y': ['a', 'b']})
    return left, right


def test_left_join_fan_out(keyed):
    left, right = keyed
    out = join(left, right, 'k', 'left')

    assert out.columns == ['k', 'x', 'y']
    assert out.rows() == [
        (1, 'p', 'a'),
        (1, 'p', 'b'),
        (2, 'q', None),
    ]


def test_inner_join(keyed):
    left, right = keyed
    out = join(left, right, 'k', 'inner')
    assert out.rows() == [(1, 'p', 'a'), (1, 'p', 'b')]


def test_right_and_full_append_unmatched():
    left = Table({'k': [3, 1, 2], 'x': ['c', 'a', 'b']})
    right = Table({'k': [5, 2, 4], 'y': [50, 20, 40]})

    assert join(left, right, 'k', 'right').rows() == [
        (2, 'b', 20),
        (5, None, 50),
        (4, None, 40),
    ]
    assert join(left, right, 'k', 'full').rows() == [
        (3, 'c', None),
        (1, 'a', None),
        (2, 'b', 20),
        (5, None, 50),
        (4, None, 40),
    ]


def test_missing_keys_never_match():
    left = Table({'k': [None, 1], 'x': ['a', 'b']})
    right = Table({'k': [None, 1], 'y': ['c', 'd']})

    assert join(left, right, 'k', 'inner').rows() == [(1, 'b', 'd')]
    assert join(left, right, 'k', 'left').rows() == [
        (None, 'a', None),
        (1, 'b', 'd'),
    ]
    assert join(left, right, 'k', 'full').height == 3


def test_row_count_bounds(interviews, villages):
    for how in ('inner', 'left', 'right', 'full'):
        out = join(interviews, villages, 'village', how)
        assert out.height <= interviews.height * villages.height

    # every left row is kept
    left = join(interviews, villages, 'village', 'left')
    assert left.height >= interviews.height
    # Ruaca appears twice in the reference table
    ruaca = (interviews.column('village') == 'Ruaca').sum()
    assert left.height == interviews.height + ruaca

    full = join(interviews, villages, 'village', 'full')
    # Massequece has no interviews
    assert full.height == left.height + 1
    assert full.rows()[-1][1] == 'Massequece'


def test_left_join_keeps_left_order(interviews, villages):
    out = join(interviews, villages, 'village')
    ids = out.column('key_id').to_list()
    assert ids == sorted(ids)
    assert out.columns == [*interviews.columns, 'district', 'altitude']


def test_inferred_keys(interviews, villages):
    assert infer_common_keys(interviews, villages) == ['village']
    assert join(interviews, villages) == join(interviews, villages, 'village')


def test_no_common_keys(interviews):
    other = Table({'a': [1]})
    with pytest.raises(NoCommonKeyError):
        join(interviews, other)

    with pytest.raises(NoCommonKeyError):
        join(interviews, other, [])


def test_missing_key_column(interviews, villages):
    with pytest.raises(MissingKeyColumnError) as info:
        join(interviews, villages, ['village', 'rooms'])

    assert info.value.name == 'rooms'


def test_clashing_columns_suffixed():
    left = Table({'k': [1, 2], 'v': [10, 20]})
    right = Table({'k': [2, 1], 'v': [200, 100]})

    out = join(left, right, 'k')
    assert out.columns == ['k', 'v', 'v_right']
    assert out.rows() == [(1, 10, 100), (2, 20, 200)]

    out = join(left, right, 'k', suffix='_r')
    assert out.columns == ['k', 'v', 'v_r']


def test_suffix_clash_rejected():
    left = Table({'k': [1], 'v': [1], 'v_right': [2]})
    right = Table({'k': [1], 'v': [3]})

    with pytest.raises(DuplicateNameError):
        join(left, right, 'k')


def test_key_type_widening():
    left = Table({'k': pl.Series([1, 2], dtype=pl.Int32), 'x': ['a', 'b']})
    right = Table({'k': [2.0, 3.0], 'y': ['c', 'd']})

    assert join(left, right, 'k', 'inner').rows() == [(2.0, 'b', 'c')]


def test_key_type_categorical():
    left = Table({'k': pl.Series(['a', 'b'], dtype=pl.Enum(['a', 'b'])), 'x': [1, 2]})
    right = Table({'k': ['b', 'c'], 'y': [3, 4]})

    out = join(left, right, 'k', 'inner')
    assert out.rows() == [('b', 2, 3)]


def test_key_type_incompatible():
    left = Table({'k': [1, 2]})
    right = Table({'k': ['1', '2']})

    with pytest.raises(UnsupportedTypeError):
        join(left, right, 'k')


def test_unknown_mode(keyed):
    left, right = keyed
    with pytest.raises(ValueError):
        join(left, right, 'k', 'cross')


def test_join_merges_hints(labelled, villages):
    villages = villages.with_hints('district', ColumnHints(label='District'))
    out = join(labelled, villages, 'village')

    assert out.hints['wall_type'].label == 'Type of walls'
    assert out.hints['district'].label == 'District'


def test_all_missing_key_column():
    left = Table({'k': [1, 2], 'x': ['a', 'b']})
    right = Table({'k': [None, None], 'y': ['c', 'd']})

    assert join(left, right, 'k', 'left').rows() == [
        (1, 'a', None),
        (2, 'b', None),
    ]
    assert join(left, right, 'k', 'inner').height == 0
    assert join(left, right, 'k', 'full').rows() == [
        (1, 'a', None),
        (2, 'b', None),
        (None, None, 'c'),
        (None, None, 'd'),
    ]
    assert join(right, left, 'k', 'left').rows() == [
        (None, 'c', None),
        (None, 'd', None),
    ]
