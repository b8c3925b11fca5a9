"""Tests for the logfmt logging setup."""

import json

import structlog

from slurmrestapi import log


def test_configure_logging_renders_logfmt(capsys):
    log.configure_logging("debug")
    try:
        structlog.get_logger("test").info("API request completed", status_code=200)
    finally:
        structlog.reset_defaults()

    out = capsys.readouterr().out
    assert "level=info" in out
    assert 'msg="API request completed"' in out
    assert "status_code=200" in out


def test_configure_logging_filters_below_level(capsys):
    log.configure_logging("warning")
    try:
        structlog.get_logger("test").info("hidden")
        structlog.get_logger("test").warning("shown")
    finally:
        structlog.reset_defaults()

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "msg=shown" in out


def test_configure_logging_json_output(capsys):
    log.configure_logging("info", json_output=True)
    try:
        structlog.get_logger("test").info("API error response", path="nodes")
    finally:
        structlog.reset_defaults()

    record = json.loads(capsys.readouterr().out.strip())
    assert record["msg"] == "API error response"
    assert record["level"] == "info"
    assert record["path"] == "nodes"
