# distance_config.py
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from bhdist.constants import (
    DEFAULT_BLOCK_BYTES,
    DEFAULT_DTYPE,
    DEFAULT_NA_CHAR,
    DEFAULT_THREADS,
    DISTANCE_DTYPES,
    ONE_CHAR,
    ZERO_CHAR,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# -------------------------
# Utility parsing functions
# -------------------------
def _parse_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    s = str(v).strip().lower()
    if s in ("1", "true", "t", "yes", "y", "on"):
        return True
    if s in ("0", "false", "f", "no", "n", "off", ""):
        return False
    raise ValueError(f"Cannot interpret {v!r} as a boolean")


def _parse_numeric(v: Any, fallback: Any = None) -> Any:
    if v is None:
        return fallback
    if isinstance(v, bool):
        return int(v)
    if isinstance(v, (int, float)):
        return v
    s = str(v).strip()
    if s == "" or s.lower() == "none":
        return fallback
    try:
        return int(s)
    except ValueError:
        try:
            return float(s)
        except ValueError:
            return fallback


def _parse_optional_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    if s == "" or s.lower() == "none":
        return None
    return s


@dataclass
class DistanceConfig:
    # General I/O
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    transposed: bool = False
    na_char: str = DEFAULT_NA_CHAR

    # Compute
    threads: int = DEFAULT_THREADS
    dtype: str = DEFAULT_DTYPE
    block_bytes: int = DEFAULT_BLOCK_BYTES
    show_progress: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    config_source: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "DistanceConfig":
        """
        Build a config from a mapping, coercing string values.

        Unknown keys raise ``ValueError`` so typos do not pass silently.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        cfg = cls(config_source=source)
        for key, value in data.items():
            if key in ("transposed", "show_progress"):
                value = _parse_bool(value)
            elif key in ("threads", "block_bytes"):
                parsed = _parse_numeric(value)
                if parsed is None:
                    # only None, "" and "none" fall back to the default
                    if _parse_optional_str(value) is not None:
                        raise ValueError(f"{key} must be an integer, got {value!r}")
                    parsed = getattr(cfg, key)
                if isinstance(parsed, float) and not parsed.is_integer():
                    raise ValueError(f"{key} must be an integer, got {value!r}")
                value = int(parsed)
            elif key in ("input_path", "output_path", "log_file"):
                value = _parse_optional_str(value)
            elif key == "na_char":
                value = str(value)
            elif key in ("dtype", "log_level"):
                value = str(value).strip()
            setattr(cfg, key, value)
        return cfg

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DistanceConfig":
        p = Path(path)
        data = yaml.safe_load(p.read_text(encoding="utf8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {p} must hold a mapping of options")
        return cls.from_dict(data, source=str(p))

    def updated(self, **overrides: Any) -> "DistanceConfig":
        """Copy with every override that is not None applied."""
        data = {k: v for k, v in self.to_dict().items() if k != "config_source"}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return DistanceConfig.from_dict(data, source=self.config_source)

    def validate(self, require_paths: bool = True, raise_on_error: bool = True) -> List[str]:
        """
        Validate the config. If require_paths True, input_path must be set and exist
        (``-`` means stdin).
        Returns a list of error messages (empty if none). Raises ValueError if raise_on_error True.
        """
        errors: List[str] = []
        if require_paths:
            if not self.input_path:
                errors.append("input_path is required but missing.")
            elif self.input_path != "-" and not Path(self.input_path).exists():
                errors.append(f"input_path does not exist: {self.input_path}")

        if len(self.na_char) != 1 or self.na_char in (ZERO_CHAR, ONE_CHAR):
            errors.append(
                f"na_char must be a single character other than '0' and '1'; got {self.na_char!r}."
            )
        if self.threads < 0:
            errors.append(f"threads must be >= 0 (0 uses all CPUs); got {self.threads}.")
        if self.dtype not in DISTANCE_DTYPES:
            errors.append(f"dtype must be one of {', '.join(DISTANCE_DTYPES)}; got {self.dtype!r}.")
        if self.block_bytes <= 0:
            errors.append(f"block_bytes must be > 0; got {self.block_bytes}.")
        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}; got {self.log_level!r}.")

        if raise_on_error and errors:
            raise ValueError("DistanceConfig validation failed:\n  " + "\n  ".join(errors))
        return errors

    @property
    def numpy_dtype(self) -> type:
        return DISTANCE_DTYPES[self.dtype]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self, path: Optional[Union[str, Path]] = None) -> str:
        """
        Dump config to YAML (string if path None) or save to file at path.
        """
        data = {k: v for k, v in self.to_dict().items() if k != "config_source"}
        if path is None:
            return yaml.safe_dump(data, sort_keys=False)
        p = Path(path)
        p.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf8")
        return str(p)

    def __repr__(self) -> str:
        return (
            f"<DistanceConfig input={self.input_path} threads={self.threads} "
            f"transposed={self.transposed} source={self.config_source}>"
        )
