"""Loguru setup driven by settings."""

import io
import json
import logging

from loguru import logger

from agriassist.logging_config import setup_logging


def test_json_logs_are_one_record_per_line():
    buffer = io.StringIO()
    setup_logging("info", json_logs=True, sink=buffer)
    try:
        logger.debug("hidden")
        logger.info("[weather] Fetched {} days", 5)
    finally:
        setup_logging()

    lines = buffer.getvalue().splitlines()
    assert len(lines) == 1, "debug is below the configured level"
    record = json.loads(lines[0])["record"]
    assert record["message"] == "[weather] Fetched 5 days"
    assert record["level"]["name"] == "INFO"


def test_stdlib_records_reach_loguru():
    buffer = io.StringIO()
    setup_logging("DEBUG", sink=buffer)
    try:
        logging.getLogger("uvicorn.error").warning("port in use")
    finally:
        setup_logging()
    assert "port in use" in buffer.getvalue()


def test_access_log_can_be_silenced():
    buffer = io.StringIO()
    setup_logging("DEBUG", access_log=False, sink=buffer)
    try:
        logging.getLogger("uvicorn.access").info("GET /api/weather 200")
    finally:
        setup_logging()
    assert "GET /api/weather" not in buffer.getvalue()
