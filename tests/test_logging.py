"""Log filter parsing and one-time logging setup."""

import logging
from contextlib import contextmanager

import pytest

from conduit.common import logging as conduit_logging
from conduit.common.logging import configure_logging, parse_log_filter


def test_parse_bare_level_and_targets():
    root, targets = parse_log_filter("warn, conduit=debug, sqlalchemy::engine=error")
    assert root == logging.WARNING
    assert targets == {"conduit": logging.DEBUG, "sqlalchemy.engine": logging.ERROR}


def test_parse_defaults_to_info_root():
    root, targets = parse_log_filter("uvicorn=warning")
    assert root == logging.INFO
    assert targets == {"uvicorn": logging.WARNING}


@pytest.mark.parametrize("spec", ["verbose", "conduit=loud", "=debug"])
def test_parse_rejects_bad_directives(spec):
    with pytest.raises(ValueError):
        parse_log_filter(spec)


@contextmanager
def fresh_root_logger(monkeypatch):
    """Allow configure_logging to run, then put the root logger back."""

    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_filters = list(root.filters)
    saved_level = root.level
    monkeypatch.setattr(conduit_logging, "_configured", False)
    try:
        yield root
    finally:
        root.handlers = saved_handlers
        root.filters = saved_filters
        root.setLevel(saved_level)
        logging.getLogger("conduit.test_target").setLevel(logging.NOTSET)


def test_configure_logging_runs_once(monkeypatch):
    with fresh_root_logger(monkeypatch) as root:
        assert configure_logging("error,conduit.test_target=debug", "svc") is True
        handlers = list(root.handlers)
        assert len(handlers) == 1
        assert root.level == logging.ERROR
        assert logging.getLogger("conduit.test_target").level == logging.DEBUG

        assert configure_logging("debug", "svc") is False
        assert root.handlers == handlers
        assert root.level == logging.ERROR


def test_context_filter_injects_fields():
    record = logging.LogRecord("conduit", logging.INFO, __file__, 1, "hello", None, None)
    token = conduit_logging.request_id_ctx.set("req-1")
    try:
        assert conduit_logging.ContextFilter("svc").filter(record) is True
    finally:
        conduit_logging.request_id_ctx.reset(token)
    assert record.service_name == "svc"
    assert record.request_id == "req-1"
