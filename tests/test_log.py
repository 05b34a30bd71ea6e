import logging

from tabpipe import join, setup_logging


def test_setup_logging_env(monkeypatch):
    monkeypatch.setenv('TABPIPE_LOGLEVEL', 'warning')
    setup_logging(silence=('tabpipe.io',))

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert logging.getLogger('tabpipe.io').level == logging.WARNING
    logging.getLogger('tabpipe.io').setLevel(logging.NOTSET)

    # calling again replaces the handler instead of stacking another
    setup_logging('debug')
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG


def test_inferred_keys_are_logged(caplog, interviews, villages):
    with caplog.at_level(logging.INFO, logger='tabpipe.ops.join'):
        join(interviews, villages)

    assert "inferred common columns: ['village']" in caplog.text
