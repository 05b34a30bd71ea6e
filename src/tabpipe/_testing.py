'''
Deterministic survey tables used by the test-suite.

Shaped after a household interview survey: one row per interview, a village
reference table to join against and a value labelled copy for statistical
file round trips.

'''
import random
from typing import Generator

import polars as pl

from tabpipe.schema import ColumnHints, ValueLabels
from tabpipe.table import Table


villages: tuple[str, ...] = ('Chirodzo', 'God', 'Ruaca')

wall_types: tuple[str, ...] = ('muddaub', 'burntbricks', 'sunbricks', 'cement')

interview_schema = pl.Schema({
    'key_id': pl.Int64,
    'village': pl.String,
    'no_membrs': pl.Int64,
    'years_liv': pl.Int64,
    'respondent_wall_type': pl.String,
    'rooms': pl.Int64,
    'memb_assoc': pl.String,
    'liv_count': pl.Int64,
    'no_meals': pl.Int64,
})


def interview_stream(
    total: int = 30,
    *,
    seed: int = 42,
    missing_every: int = 4,
) -> Generator[tuple[int, str, int, int, str, int, str | None, int, int], None, None]:
    '''
    Yield `total` interview rows. Every `missing_every`-th row has no answer
    for `memb_assoc`.

    '''
    if total <= 0:
        raise ValueError('total must be > 0')

    rnd = random.Random(seed)
    for i in range(total):
        memb_assoc: str | None = rnd.choice(('yes', 'no'))
        if missing_every and i % missing_every == missing_every - 1:
            memb_assoc = None

        yield (
            i + 1,
            villages[i % len(villages)],
            rnd.randint(2, 19),
            rnd.randint(1, 70),
            rnd.choice(wall_types),
            rnd.randint(1, 8),
            memb_assoc,
            rnd.randint(1, 5),
            rnd.choice((2, 3)),
        )


def interviews_table(total: int = 30, *, seed: int = 42) -> Table:
    return Table(
        pl.DataFrame(
            list(interview_stream(total, seed=seed)),
            schema=interview_schema,
            orient='row',
        ),
        name='interviews',
    )


def villages_table() -> Table:
    '''Reference table keyed by `village`, `Ruaca` appears twice.'''
    return Table(
        pl.DataFrame(
            {
                'village': ['Chirodzo', 'God', 'Ruaca', 'Ruaca', 'Massequece'],
                'district': ['Manica', 'Manica', 'Manica', 'Sussundenga', 'Manica'],
                'altitude': [640.0, 710.5, 598.0, 598.0, None],
            }
        ),
        name='villages',
    )


wall_labels = ValueLabels.from_mapping(
    {i + 1: w for i, w in enumerate(wall_types)}
)


def labelled_interviews_table(total: int = 12, *, seed: int = 7) -> Table:
    '''
    Interviews with the wall type stored as a value labelled code, the way it
    comes out of a statistical package.

    '''
    codes = {w: i + 1 for i, w in enumerate(wall_types)}
    base = interviews_table(total, seed=seed)
    frame = base.frame.select(
        'key_id',
        'village',
        'rooms',
        pl.col('respondent_wall_type')
        .replace_strict(codes, return_dtype=pl.Int64)
        .alias('wall_type'),
    )
    return Table(
        frame,
        hints={
            'rooms': ColumnHints(label='Number of rooms'),
            'wall_type': ColumnHints(
                label='Type of walls', value_labels=wall_labels
            ),
        },
        name='labelled_interviews',
    )
