import pytest

from tabpipe import setup_logging
from tabpipe._testing import (
    interviews_table,
    labelled_interviews_table,
    villages_table,
)


@pytest.fixture(scope='session', autouse=True)
def logging_setup():
    setup_logging('debug')


@pytest.fixture
def interviews():
    return interviews_table()


@pytest.fixture
def villages():
    return villages_table()


@pytest.fixture
def labelled():
    return labelled_interviews_table()
