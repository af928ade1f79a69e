from __future__ import annotations

import logging

import pytest

from slightly.core.config import ProcessorConfig
from slightly.core.error import (
    SlightlyError,
    ConfigInvalidValueError,
    DirectiveError,
    DocumentNotFoundError,
    DocumentParseError,
    ScriptError,
    category_for,
)
from slightly.core.log import setup_logging
from slightly.app.http_status_codes import http_status_codes


def test_slightly_error_str():
    err = SlightlyError("X01", "oops")
    assert str(err) == "X01 -> oops"
    assert err.message == "oops"


def test_document_not_found_message():
    err = DocumentNotFoundError("missing.html")
    assert err.code == "D01"
    assert "missing.html" in str(err)


def test_error_categories():
    assert category_for(DocumentNotFoundError("x")) == "Page Not Found"
    assert category_for(ScriptError("boom")) == "Script Error"
    assert category_for(DirectiveError("data-for-")) == "General Error"
    assert category_for(DocumentParseError("bad")) == "General Error"
    assert category_for(KeyError("k")) == "General Error"


def test_http_status_codes_basic():
    assert http_status_codes[200] == "OK"
    assert http_status_codes[404] == "Not Found"


def test_config_defaults():
    cfg = ProcessorConfig()
    assert cfg.if_attribute == "data-if"
    assert cfg.for_prefix == "data-for"
    assert cfg.for_attribute_prefix == "data-for-"
    assert cfg.script_type == "server/python"
    assert cfg.request_name == "request"


def test_config_from_env_and_overrides():
    env = {"SLIGHTLY_SCRIPT_TYPE": "server/script", "SLIGHTLY_CHARSET": "latin-1"}
    cfg = ProcessorConfig.from_env(env, document_root="/srv/pages")
    assert cfg.script_type == "server/script"
    assert cfg.charset == "latin-1"
    assert cfg.document_root == "/srv/pages"


@pytest.mark.parametrize(
    "field, value",
    [
        ("charset", "no-such-charset"),
        ("request_name", "not an identifier"),
        ("for_prefix", "data-for-"),
        ("if_attribute", ""),
    ],
)
def test_config_rejects_invalid_values(field, value):
    with pytest.raises(ConfigInvalidValueError):
        ProcessorConfig(**{field: value})


def test_setup_logging_to_file(tmp_path):
    log_path = tmp_path / "log" / "slightly.log"
    logger = setup_logging(logging.INFO, log_path=log_path)
    assert len(logger.handlers) == 1

    logging.getLogger("slightly.engine.evaluator").warning("expression failed")
    assert "expression failed" in log_path.read_text(encoding="utf-8")

    # replaces the file handler instead of stacking
    logger = setup_logging(logging.WARNING)
    assert len(logger.handlers) == 1
    assert not isinstance(logger.handlers[0], logging.FileHandler)
