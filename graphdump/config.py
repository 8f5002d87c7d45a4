"""
Configuration for graphdump.

Defines the knobs of a dump run (strictness, by-reference resolution of
importable functions, diagnostic thresholds) and loads them from YAML or
JSON files.
"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


CONFIG_FILE_NAMES = [".graphdump.yml", ".graphdump.yaml", "graphdump.yml", "graphdump.yaml"]


@dataclass
class DumpConfig:
    """
    Configuration of one dump run.

    Unsupported values are errors in strict mode; otherwise they produce a
    warning and are replaced with None.
    """

    # Fail on unsupported values instead of warning and substituting None
    strict_mode: bool = True

    # Emit importable functions as references to their module
    deterministic_resolution: bool = False

    # Emitted size (characters) above which a capture is reported
    capture_size_limit: int = 2048

    # Maximum length of the key path listing in static-key errors
    key_report_limit: int = 1000

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.capture_size_limit <= 0:
            raise ValueError(
                f"capture_size_limit must be positive, got {self.capture_size_limit}"
            )

        if self.key_report_limit <= 0:
            raise ValueError(
                f"key_report_limit must be positive, got {self.key_report_limit}"
            )

    def to_dict(self) -> Dict[str, Union[bool, int]]:
        """Convert to dictionary representation."""
        return {
            "strict_mode": self.strict_mode,
            "deterministic_resolution": self.deterministic_resolution,
            "capture_size_limit": self.capture_size_limit,
            "key_report_limit": self.key_report_limit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DumpConfig":
        """Create from a (possibly partial) dictionary; unknown keys are ignored."""
        field_names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in field_names})

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "DumpConfig":
        """Load configuration from a YAML or JSON file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, "r") as f:
            if file_path.suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif file_path.suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config format: {file_path.suffix}")

        # Settings may live at top level or under a "graphdump" section
        data = data or {}
        if isinstance(data.get("graphdump"), dict):
            data = data["graphdump"]

        return cls.from_dict(data)

    @classmethod
    def find_and_load(cls, start_path: Optional[Union[str, Path]] = None) -> "DumpConfig":
        """
        Find and load configuration from standard locations.

        Looks for one of ``CONFIG_FILE_NAMES`` in ``start_path`` and its
        parents, returning the default configuration when none exists.
        """
        current = Path(start_path or Path.cwd()).resolve()

        while True:
            for name in CONFIG_FILE_NAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.load_from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        return cls()
