from dataclasses import dataclass, field
from pathlib import Path
import typing as t
import pandas as pd
import yaml

from .measure.constants import (
    DEFAULT_START_DATE, DEFAULT_END_DATE, DEFAULT_ADHERENCE_THRESHOLD,
    DEFAULT_ROUNDING_DIGITS, DEFAULT_COVERAGE_THRESHOLD,
)


@dataclass
class BasePaths:
    raw_dir: Path = Path("data/raw")
    processed_dir: Path = Path("data/processed")


@dataclass
class MeasureConfig:
    """Measurement window and adherence definition.

    Every stage of the pipeline receives this object explicitly so the same
    code can be reused across measurement years and alternate measures.
    """
    start_date: pd.Timestamp = DEFAULT_START_DATE
    end_date: pd.Timestamp = DEFAULT_END_DATE
    adherence_threshold: float = DEFAULT_ADHERENCE_THRESHOLD
    rounding_digits: int = DEFAULT_ROUNDING_DIGITS
    coverage_threshold: int = DEFAULT_COVERAGE_THRESHOLD

    def __post_init__(self):
        self.validate()

    def validate(self) -> "MeasureConfig":
        self.start_date = _as_day(self.start_date, "start_date")
        self.end_date = _as_day(self.end_date, "end_date")
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date.date()} is before start_date {self.start_date.date()}")
        if not 0 < float(self.adherence_threshold) <= 1:
            raise ValueError(f"adherence_threshold must be in (0, 1], got {self.adherence_threshold}")
        if int(self.rounding_digits) < 0:
            raise ValueError(f"rounding_digits must be >= 0, got {self.rounding_digits}")
        if int(self.coverage_threshold) < 1:
            raise ValueError(f"coverage_threshold must be >= 1, got {self.coverage_threshold}")
        self.adherence_threshold = float(self.adherence_threshold)
        self.rounding_digits = int(self.rounding_digits)
        self.coverage_threshold = int(self.coverage_threshold)
        return self

    @property
    def days_in_window(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass
class Config:
    paths: BasePaths = field(default_factory=BasePaths)
    measure: MeasureConfig = field(default_factory=MeasureConfig)


def _as_day(val: t.Any, name: str) -> pd.Timestamp:
    try:
        ts = pd.Timestamp(val)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} is not a valid date: {val!r}") from exc
    if pd.isna(ts):
        raise ValueError(f"{name} is not a valid date: {val!r}")
    return ts.tz_localize(None).normalize() if ts.tzinfo else ts.normalize()


def load_config(path: t.Union[str, Path]) -> Config:
    def _apply_yaml(obj, data = {}):
        for key, val in (data or {}).items():
            if val is None or not hasattr(obj, key):
                continue
            current = getattr(obj, key)
            if hasattr(current, "__dataclass_fields__"):
                _apply_yaml(current, val or {})
                continue
            if key.endswith("_dir") or key.endswith("_path"):
                setattr(obj, key, _as_path(val))
            else:
                setattr(obj, key, val)
        return obj

    def _as_path(val: t.Optional[t.Union[str, Path]]) -> t.Optional[Path]:
        if val is None or isinstance(val, Path):
            return val
        return Path(val).expanduser()

    cfg_path = Path(path)
    if cfg_path.suffix not in (".yaml", ".yml"):
        cfg_path = cfg_path.with_name(f"{cfg_path.name}.yaml")
    if not cfg_path.exists():
        raise FileNotFoundError(f"The config file {cfg_path} does not exist.")

    cfg = Config()
    data = yaml.safe_load(cfg_path.read_text()) or {}
    _apply_yaml(cfg, data)
    # yaml overrides bypass __post_init__
    cfg.measure.validate()

    return cfg
