# test/test_config.py
import logging

import pytest

from neurotensor.config import (
    IOConfig,
    LoggingConfig,
    ReferenceConfig,
    ToolkitConfig,
    configure_logging,
)


def test_defaults():
    config = ToolkitConfig.default()
    assert config.reference.car_exclude_labels == ("Fp1", "Fp2", "O1", "O2")
    assert config.reference.auricular_labels == ("A1", "A2")
    assert config.reference.laplacian_nn == 4
    assert config.io == IOConfig()
    assert config.logging.level == "INFO"


def test_yaml_round_trip(tmp_path):
    config = ToolkitConfig(
        reference=ReferenceConfig(car_exclude_labels=["Fp1"], laplacian_nn=6),
        io=IOConfig(overwrite=True),
        logging=LoggingConfig(level="debug"),
    )
    path = tmp_path / "nested" / "config.yml"
    config.to_yaml(path)

    loaded = ToolkitConfig.from_yaml(path)
    assert loaded == config
    assert loaded.reference.car_exclude_labels == ("Fp1",)
    assert loaded.logging.level == "DEBUG"


def test_from_dict_partial():
    config = ToolkitConfig.from_dict({"io": {"clean_labels": False}})
    assert config.io.clean_labels is False
    assert config.reference == ReferenceConfig()


def test_validation():
    with pytest.raises(ValueError):
        ReferenceConfig(auricular_labels=("A1", "A1"))
    with pytest.raises(ValueError):
        ReferenceConfig(mastoid_labels=("M1",))
    with pytest.raises(ValueError):
        ReferenceConfig(laplacian_nn=0)
    with pytest.raises(ValueError):
        LoggingConfig(level="LOUD")
    with pytest.raises(ValueError, match="Invalid configuration keys"):
        ToolkitConfig.from_dict({"io": {"colour": True}})


def test_from_yaml_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        ToolkitConfig.from_yaml(tmp_path / "missing.yml")
    empty = tmp_path / "empty.yml"
    empty.write_text("")
    with pytest.raises(ValueError):
        ToolkitConfig.from_yaml(empty)


def test_configure_logging_attaches_one_handler():
    logger = configure_logging(LoggingConfig(level="WARNING"))
    configure_logging(LoggingConfig(level="DEBUG", format="%(message)s"))

    handlers = [h for h in logger.handlers if getattr(h, "_neurotensor", False)]
    assert logger.name == "neurotensor"
    assert logger.level == logging.DEBUG
    assert len(handlers) == 1
    assert handlers[0].formatter._fmt == "%(message)s"

    logger.removeHandler(handlers[0])
    logger.setLevel(logging.NOTSET)
