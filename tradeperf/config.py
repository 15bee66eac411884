"""
Configuration loading and validation for an evaluation run.

Configuration objects are frozen standard library dataclasses, built from
the YAML document by a small recursive converter. Validation is a set of
explicit checks on the raw dictionary, run before any object is created.
"""

import yaml
from dataclasses import dataclass, field, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal, Type, cast, get_args, get_origin

__all__ = ["load_config", "Config", "CriterionConfig"]

NUM_BACKENDS = ("double", "decimal")
TRADE_TYPES = ("BUY", "SELL")
TRANSACTION_MODELS = ("zero", "fixed", "linear")
HOLDING_MODELS = ("zero", "borrowing")


# §1. Nested Configuration Dataclasses
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class RunConfig:
    name: str
    num_backend: Literal["double", "decimal"] = "double"
    decimal_precision: int = 32
    starting_type: Literal["BUY", "SELL"] = "BUY"


@dataclass(frozen=True)
class DataConfig:
    bars_path: Path
    trades_path: Path
    time_column: str = "Date"
    close_column: str = "Close"


@dataclass(frozen=True)
class CostsConfig:
    transaction_model: Literal["zero", "fixed", "linear"] = "zero"
    transaction_rate: float = 0.0
    holding_model: Literal["zero", "borrowing"] = "zero"
    holding_rate: float = 0.0
    holding_period_days: float = 1.0


@dataclass(frozen=True)
class CriterionConfig:
    name: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EvaluationConfig:
    criteria: List[CriterionConfig]


# §2. Top-Level Configuration
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Config:
    """The root configuration object, composing all nested sections."""
    run: RunConfig
    data: DataConfig
    evaluation: EvaluationConfig
    costs: CostsConfig = field(default_factory=CostsConfig)


# §3. Validation and Loading
# --------------------------------------------------------------------------------------


def _from_dict(data_class: Type[Any], data: Any) -> Any:
    """Recursively creates nested dataclasses from a dictionary."""
    if isinstance(data, dict) and is_dataclass(data_class):
        field_types = {f.name: f.type for f in data_class.__dataclass_fields__.values()}

        kwargs = {}
        for k, v in data.items():
            field_type = field_types.get(k)
            # Unknown keys are passed through so the dataclass constructor
            # raises a TypeError, which the caller reports.
            kwargs[k] = _from_dict(field_type, v) if field_type else v
        return data_class(**kwargs)

    if isinstance(data, list) and get_origin(data_class) in (list, List):
        (item_class,) = get_args(data_class)
        return [_from_dict(item_class, item) for item in data]

    # Convert path strings to Path objects
    if isinstance(data, str) and data_class is Path:
        return Path(data)
    return data


def _check_choice(value: Any, choices: tuple, key: str) -> None:
    if value not in choices:
        raise ValueError(f"{key} must be one of {', '.join(choices)}, got {value!r}")


def _check_number(value: Any, key: str, integer: bool = False) -> None:
    types = (int,) if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, types):
        kind = "an integer" if integer else "a number"
        raise ValueError(f"{key} must be {kind}, got {value!r}")


def _validate_config(cfg: Dict[str, Any]) -> None:
    """
    Performs simple, explicit validation checks on the raw config dictionary.
    Fail fast on any logical inconsistencies.
    """
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a YAML object.")
    for section in ("run", "data", "evaluation"):
        if not isinstance(cfg.get(section), dict):
            raise ValueError(f"Missing configuration section: {section}")

    run = cfg["run"]
    _check_choice(run.get("num_backend", "double"), NUM_BACKENDS, "run.num_backend")
    _check_choice(run.get("starting_type", "BUY"), TRADE_TYPES, "run.starting_type")
    precision = run.get("decimal_precision", 32)
    _check_number(precision, "run.decimal_precision", integer=True)
    if precision <= 0:
        raise ValueError("run.decimal_precision must be positive")

    costs = cfg.get("costs") or {}
    if not isinstance(costs, dict):
        raise ValueError("costs must be a mapping")
    _check_choice(costs.get("transaction_model", "zero"), TRANSACTION_MODELS, "costs.transaction_model")
    _check_choice(costs.get("holding_model", "zero"), HOLDING_MODELS, "costs.holding_model")
    for key, default in (("transaction_rate", 0.0), ("holding_rate", 0.0), ("holding_period_days", 1.0)):
        _check_number(costs.get(key, default), f"costs.{key}")
    if costs.get("transaction_rate", 0.0) < 0 or costs.get("holding_rate", 0.0) < 0:
        raise ValueError("Cost rates must not be negative")
    if costs.get("holding_period_days", 1.0) <= 0:
        raise ValueError("costs.holding_period_days must be positive")

    criteria = cfg["evaluation"].get("criteria")
    if not isinstance(criteria, list) or not criteria:
        raise ValueError("evaluation.criteria must be a non-empty list")
    for entry in criteria:
        if not isinstance(entry, dict) or not entry.get("name"):
            raise ValueError("Each criterion needs a 'name'")
        if not isinstance(entry.get("params", {}), dict):
            raise ValueError(f"Parameters of criterion '{entry['name']}' must be a mapping")


# impure
def load_config(config_path: Path) -> Config:
    """
    Loads and validates a YAML configuration file into a Config object.
    #impure: Reads from the filesystem.
    """
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {config_path}: {e}") from e

    # Perform validation before trying to create the objects
    _validate_config(raw_config)

    try:
        # _from_dict is too dynamic for mypy to track types.
        return cast(Config, _from_dict(Config, raw_config))
    except (TypeError, KeyError) as e:
        raise ValueError(f"Configuration validation failed: missing or invalid key. Details: {e}") from e
