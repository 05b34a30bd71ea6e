import polars as pl
import pytest

from tabpipe import (
    SpecError,
    Table,
    UnknownColumnError,
    UnsupportedTypeError,
    col,
    filter_rows,
)


def test_filter_keeps_order(interviews):
    out = filter_rows(interviews, col('rooms') >= 4)

    expected = [
        row for row in interviews.to_dicts() if row['rooms'] >= 4
    ]
    assert out.to_dicts() == expected
    assert out.columns == interviews.columns


def test_filter_idempotent(interviews):
    once = filter_rows(interviews, 'no_membrs > 5')
    twice = filter_rows(once, 'no_membrs > 5')
    assert once == twice


def test_filter_missing_is_false(interviews):
    out = filter_rows(interviews, "memb_assoc = 'yes'")
    assert out.column('memb_assoc').null_count() == 0
    assert set(out.column('memb_assoc').to_list()) <= {'yes'}

    # negating does not bring the missing rows back either
    neg = filter_rows(interviews, "memb_assoc != 'yes'")
    assert neg.column('memb_assoc').null_count() == 0
    assert out.height + neg.height == (
        interviews.height - interviews.column('memb_assoc').null_count()
    )


def test_filter_and_combined(interviews):
    out = filter_rows(interviews, ["village = 'God'", 'rooms > 1'])
    same = filter_rows(interviews, "village = 'God' AND rooms > 1")
    assert out == same
    assert all(v == 'God' for v in out.column('village'))


def test_filter_scalar_predicate(interviews):
    assert filter_rows(interviews, True) == interviews
    assert filter_rows(interviews, False).height == 0
    assert filter_rows(interviews, []) == interviews


def test_filter_unknown_column(interviews):
    with pytest.raises(UnknownColumnError):
        filter_rows(interviews, 'room > 3')


def test_filter_non_boolean(interviews):
    with pytest.raises(UnsupportedTypeError):
        filter_rows(interviews, col('rooms') + 1)


def test_filter_bad_text():
    with pytest.raises(SpecError):
        filter_rows(Table({'a': [1]}), 'a >')


def test_filter_keeps_hints(labelled):
    out = filter_rows(labelled, col('wall_type') == 1)
    assert out.hints == labelled.hints
    assert out.column('wall_type').to_list() == [1] * out.height


def test_filter_nan_is_not_missing():
    t = Table({'x': [1.0, float('nan'), None]})
    out = filter_rows(t, col('x').is_not_null())
    assert out.height == 2
    assert out.frame.get_column('x').is_nan().to_list() == [False, True]
