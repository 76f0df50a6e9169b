import logging
from unittest.mock import AsyncMock

import pytest

from perspace.common import merge, run_command
from perspace.logging_setup import LogObjects, ScreenLogFormatter, get_logger


def test_merge_dicts():
    d1 = {"a": 1, "b": {"x": 10}}
    d2 = {"b": {"y": 20}, "c": 3}
    assert merge(d1, d2) == {"a": 1, "b": {"x": 10, "y": 20}, "c": 3}


def test_merge_lists():
    assert merge({"a": [1, 2]}, {"a": [3, 4]}) == {"a": [1, 2, 3, 4]}
    assert merge({"a": [1, 2]}, {"a": [3, 4]}, replace=True) == {"a": [3, 4]}


def test_merge_overwrite():
    assert merge({"a": 1}, {"a": 2}) == {"a": 2}


@pytest.fixture
def shell(mocker):
    proc = mocker.Mock(returncode=0)
    proc.communicate = AsyncMock(return_value=(b"output\n", b""))
    return mocker.patch("asyncio.create_subprocess_shell", AsyncMock(return_value=proc)), proc


@pytest.mark.asyncio
async def test_run_command(shell, test_logger):
    assert await run_command("wmctrl -m", log=test_logger) == "output\n"
    assert shell[0].call_args.args == ("wmctrl -m",)


@pytest.mark.asyncio
async def test_run_command_failure(shell, test_logger, mocker):
    _, proc = shell
    proc.returncode = 1
    proc.communicate.return_value = (b"", b"Cannot open display.\n")
    error = mocker.spy(test_logger, "error")
    assert await run_command("wmctrl -m", log=test_logger) is None
    error.assert_called_once()


@pytest.mark.asyncio
async def test_run_command_missing_tool(test_logger, mocker):
    mocker.patch("asyncio.create_subprocess_shell", AsyncMock(side_effect=FileNotFoundError("sh")))
    assert await run_command("wmctrl -m", log=test_logger) is None


def test_get_logger():
    logger = get_logger("perspace.tests.named", level=logging.INFO)
    assert logger.level == logging.INFO
    assert logger.propagate is False
    handlers = list(logger.handlers)
    assert get_logger("perspace.tests.named").handlers == handlers
    # init_logger(force_debug=True) ran in pytest_configure
    assert logger.level == logging.DEBUG


def test_debug_flag(monkeypatch):
    # set by init_logger(force_debug=True) in pytest_configure
    assert LogObjects.debug is True
    record = logging.LogRecord("perspace.tests", logging.INFO, "views.py", 12, "hello", None, None)
    assert ScreenLogFormatter().format(record).endswith("hello // views.py:12")

    monkeypatch.setattr(LogObjects, "debug", False)
    assert ScreenLogFormatter().format(record) == "hello"
    assert get_logger("perspace.tests.quiet").level == logging.WARNING
