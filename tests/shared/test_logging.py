import json
import sys

import pytest
from loguru import logger

from shared.config import Settings
from shared.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_json_format_serializes_records(capsys):
    setup_logging(Settings(_env_file=None, log_format="json"))

    logger.info("scored candidate")

    record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert record["record"]["message"] == "scored candidate"
    assert record["record"]["level"]["name"] == "INFO"


def test_level_override_filters_lower_records(capsys):
    setup_logging(Settings(_env_file=None, log_level="DEBUG"), level="warning")

    logger.info("hidden")
    logger.warning("shown")

    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "shown" in err
