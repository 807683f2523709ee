"""
Tests for configuration and logging helpers.
"""

import json
import logging

import pytest

from sa_id_cracker.utils.config import Config, verbosity_to_level
from sa_id_cracker.utils.exceptions import ConfigError
from sa_id_cracker.utils.logger import Logger, get_logger


def test_defaults_without_file(tmp_path):
    config = Config(str(tmp_path / "missing.json"))

    assert config["obsolete_digits"] == [8, 9]
    assert config["legacy_sequence_range"] is False
    assert config.get("processes") is None
    assert "batch_size" in config


def test_file_overrides_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"batch_size": 32, "gender": "male"}))

    config = Config(str(path))

    assert config["batch_size"] == 32
    assert config["gender"] == "male"
    assert config["backend"] == "process"


def test_save_round_trip(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config = Config(str(path))
    config["processes"] = 4
    config.save()

    assert Config(str(path)).as_dict()["processes"] == 4


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_bad_config_file(tmp_path, content):
    path = tmp_path / "config.json"
    path.write_text(content)

    with pytest.raises(ConfigError):
        Config(str(path))


@pytest.mark.parametrize("verbosity,level", [
    ("debug", logging.DEBUG),
    ("WARNING", logging.WARNING),
    ("nonsense", logging.INFO),
    (logging.ERROR, logging.ERROR),
])
def test_verbosity_to_level(verbosity, level):
    assert verbosity_to_level(verbosity) == level


def test_logger_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    logger = Logger(name="sa_id_cracker.test", log_file=str(log_file), console=False).get_logger()

    logger.info("PASSWORD FOUND: 9202235109082")
    for handler in logger.handlers:
        handler.flush()

    assert "PASSWORD FOUND: 9202235109082" in log_file.read_text()


def test_get_logger_nests_under_package():
    assert get_logger("sa_id_cracker.core.generator").name == "sa_id_cracker.core.generator"
    assert get_logger("elsewhere").name == "sa_id_cracker.elsewhere"


def test_quiet_logger_swallows_records(capsys):
    logger = Logger(name="sa_id_cracker.quiet", console=False).get_logger()

    get_logger("sa_id_cracker.quiet.child").warning("Year of birth 1850 outside range")

    assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""
