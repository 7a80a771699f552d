"""
Toolkit configuration.

Frozen dataclasses validated on construction, with YAML
serialization/deserialization. Configuration objects are passed
explicitly to the functions that use them; nothing here is global.
"""

from dataclasses import dataclass, field, asdict
import logging
from pathlib import Path

import yaml


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ReferenceConfig:
    """
    Defaults for the referencing schemes.

    Attributes:
        car_exclude_labels: artifact-prone electrodes left out of the common average
        auricular_labels: (left, right) ear-lobe reference electrodes
        mastoid_labels: (left, right) mastoid reference electrodes
        laplacian_nn: default number of neighbours for the planar Laplacian
    """

    car_exclude_labels: tuple[str, ...] = ("Fp1", "Fp2", "O1", "O2")
    auricular_labels: tuple[str, str] = ("A1", "A2")
    mastoid_labels: tuple[str, str] = ("M1", "M2")
    laplacian_nn: int = 4

    def __post_init__(self) -> None:
        object.__setattr__(self, "car_exclude_labels", tuple(self.car_exclude_labels))
        object.__setattr__(self, "auricular_labels", tuple(self.auricular_labels))
        object.__setattr__(self, "mastoid_labels", tuple(self.mastoid_labels))
        for name in ("auricular_labels", "mastoid_labels"):
            pair = getattr(self, name)
            if len(pair) != 2 or pair[0] == pair[1]:
                raise ValueError(f"{name} must name two different electrodes, got {pair}")
        if self.laplacian_nn < 1:
            raise ValueError(f"laplacian_nn must be >= 1, got {self.laplacian_nn}")


@dataclass(frozen=True)
class IOConfig:
    """
    Attributes:
        detect_channel_types: infer channel types from labels on import
        overwrite: default for the `overwrite` flag of the writers
        clean_labels: strip vendor prefixes/suffixes ("EEG Fp1-REF") on import
    """

    detect_channel_types: bool = True
    overwrite: bool = False
    clean_labels: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", str(self.level).upper())
        if self.level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {LOG_LEVELS}, got {self.level}")


@dataclass(frozen=True)
class ToolkitConfig:
    """
    Aggregated configuration.

    Supports YAML serialization/deserialization for reproducibility.
    """

    reference: ReferenceConfig = field(default_factory=ReferenceConfig)
    io: IOConfig = field(default_factory=IOConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict:
        result = asdict(self)
        ref = result["reference"]
        for key in ("car_exclude_labels", "auricular_labels", "mastoid_labels"):
            ref[key] = list(ref[key])
        return result

    def to_yaml(self, file_path: Path) -> None:
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as yaml_file:
            yaml.dump(
                self.to_dict(),
                yaml_file,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    @classmethod
    def from_dict(cls, config_dict: dict) -> "ToolkitConfig":
        """
        Raises:
            ValueError: If a value is invalid.
        """
        try:
            return cls(
                reference=ReferenceConfig(**config_dict.get("reference", {})),
                io=IOConfig(**config_dict.get("io", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration keys: {e}") from e

    @classmethod
    def from_yaml(cls, file_path: Path) -> "ToolkitConfig":
        """
        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the YAML content is invalid.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as yaml_file:
            config_dict = yaml.safe_load(yaml_file)

        if not isinstance(config_dict, dict):
            raise ValueError(f"Empty or invalid YAML file: {file_path}")

        return cls.from_dict(config_dict)

    @classmethod
    def default(cls) -> "ToolkitConfig":
        return cls()


def configure_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Attach a stream handler to the package logger and set its level."""
    config = config or LoggingConfig()
    logger = logging.getLogger("neurotensor")
    logger.setLevel(config.level)
    formatter = logging.Formatter(config.format)
    handler = next((h for h in logger.handlers if getattr(h, "_neurotensor", False)), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler._neurotensor = True
        logger.addHandler(handler)
    handler.setFormatter(formatter)
    return logger
