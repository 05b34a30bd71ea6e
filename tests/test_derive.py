import math

import polars as pl
import pytest

from tabpipe import (
    ColumnHints,
    InsufficientDomainError,
    Table,
    UnknownColumnError,
    UnsupportedTypeError,
    ValueLabels,
    as_factor,
    cast,
    col,
    lit,
    mean,
    mutate,
    sample,
    std,
)


def test_mutate_arithmetic(interviews):
    out = mutate(interviews, 'people_per_room', col('no_membrs') / col('rooms'))

    assert out.columns == [*interviews.columns, 'people_per_room']
    for row in out.to_dicts():
        assert row['people_per_room'] == pytest.approx(
            row['no_membrs'] / row['rooms']
        )


def test_mutate_text_expression(interviews):
    a = mutate(interviews, 'total', 'liv_count + no_meals')
    b = mutate(interviews, 'total', col('liv_count') + col('no_meals'))
    assert a == b


def test_mutate_division_by_zero():
    t = Table({'a': [1.0, -1.0, 0.0], 'b': [0.0, 0.0, 0.0]})
    out = mutate(t, 'ratio', col('a') / col('b')).column('ratio').to_list()

    assert out[0] == math.inf
    assert out[1] == -math.inf
    assert math.isnan(out[2])


def test_mutate_replace_keeps_position(labelled):
    out = mutate(labelled, 'rooms', col('rooms') * 2)

    assert out.columns == labelled.columns
    assert out.column('rooms').to_list() == [
        r * 2 for r in labelled.column('rooms')
    ]
    # replaced column loses its metadata, others keep it
    assert 'rooms' not in out.hints
    assert 'wall_type' in out.hints


def test_mutate_constant(interviews):
    out = mutate(interviews, 'country', lit('Mozambique'))
    assert out.column('country').to_list() == ['Mozambique'] * interviews.height

    out = mutate(interviews, 'wave', 1)
    assert out.column('wave').unique().to_list() == [1]


def test_mutate_unknown_column(interviews):
    with pytest.raises(UnknownColumnError):
        mutate(interviews, 'x', col('roomz') + 1)


def test_mutate_incompatible_types(interviews):
    with pytest.raises(UnsupportedTypeError):
        mutate(interviews, 'x', col('village') - col('rooms'))


def test_cast_non_strict():
    t = Table({'income': ['1200', 'n/a', '850.5', None]})
    out = mutate(t, 'income_num', cast('income', 'float'))

    assert out.column('income_num').to_list() == [1200.0, None, 850.5, None]


def test_named_functions():
    t = Table({'v': [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]})
    out = mutate(t, 'sd', std('v'))
    assert out.column('sd')[0] == pytest.approx(2.138089935299395)

    out = mutate(out, 'centered', col('v') - mean('v'))
    assert out.column('centered').to_list()[:2] == [-3.0, -1.0]


def test_sample_range(interviews):
    out = mutate(interviews, 'noise', sample(1, 5, seed=1))
    values = out.column('noise')

    assert values.len() == interviews.height
    assert values.min() >= 1
    assert values.max() <= 5


def test_sample_without_replacement(interviews):
    out = mutate(
        interviews,
        'draw',
        sample(1, interviews.height, replace=False, seed=3),
    )
    assert sorted(out.column('draw').to_list()) == list(
        range(1, interviews.height + 1)
    )


def test_sample_values_seeded(interviews):
    s = sample(['a', 'b', 'c'], seed=11)
    a = mutate(interviews, 's', s)
    b = mutate(interviews, 's', s)

    assert a == b
    assert set(a.column('s').to_list()) <= {'a', 'b', 'c'}


def test_sample_insufficient_domain(interviews):
    with pytest.raises(InsufficientDomainError):
        mutate(interviews, 'draw', sample(1, 3, replace=False))

    with pytest.raises(InsufficientDomainError):
        mutate(interviews, 'draw', sample([]))


def test_as_factor_value_labels(labelled):
    out = as_factor(labelled, 'wall_type')
    dtype = out.schema['wall_type'].type

    assert isinstance(dtype, pl.Enum)
    assert dtype.categories.to_list() == [
        'muddaub', 'burntbricks', 'sunbricks', 'cement'
    ]
    codes = labelled.column('wall_type').to_list()
    labels = labelled.hints['wall_type'].value_labels
    assert out.column('wall_type').cast(pl.String).to_list() == [
        labels.label_for(c) for c in codes
    ]
    assert out.hints['wall_type'].label == 'Type of walls'
    assert out.hints['wall_type'].value_labels is None

    # converting twice is a no-op
    assert as_factor(out, 'wall_type') == out


def test_as_factor_plain_column():
    t = Table({'grade': ['b', 'a', None, 'b', 'c']})
    out = as_factor(t, 'grade')

    assert out.schema['grade'].type.categories.to_list() == ['a', 'b', 'c']
    assert out.column('grade').cast(pl.String).to_list() == [
        'b', 'a', None, 'b', 'c'
    ]
    assert out.schema['grade'].kind == 'categorical'


def test_as_factor_unlabelled_codes():
    t = Table(
        {'q': [1, 2, 9]},
        hints={'q': ColumnHints(value_labels=ValueLabels.from_mapping({1: 'yes', 2: 'no'}))},
    )
    out = as_factor(t, 'q')
    assert out.column('q').cast(pl.String).to_list() == ['yes', 'no', '9']
