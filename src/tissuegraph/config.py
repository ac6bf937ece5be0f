"""
Configuration management for tissuegraph.

Loads YAML configuration on top of dataclass defaults. Unknown sections and
keys in the file are ignored.
"""

import os
from dataclasses import asdict, dataclass, field, fields

import yaml


@dataclass
class LabelValuesConfig:
    """Reserved raw pixel values of a labeled raster."""
    bond: int = 0x00FFFFFF
    outside: int = 0xFF000000  # synthetic, never present in raster data
    dividing: int = 0x000000FF


@dataclass
class ParseConfig:
    """Configuration for graph construction."""
    ignore_border_cells: bool = True  # cells touching the canvas edge are not traced
    remove_margin_cells: bool = False
    corner_vertices: bool = True  # canvas-corner bond pixels become vertices


@dataclass
class CheckConfig:
    """Configuration for the post-build consistency check."""
    enabled: bool = True
    check_geometry: bool = True  # perimeter self-intersection test


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class TissueConfig:
    """Complete configuration."""
    labels: LabelValuesConfig = field(default_factory=LabelValuesConfig)
    parse: ParseConfig = field(default_factory=ParseConfig)
    check: CheckConfig = field(default_factory=CheckConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)


def load_config(config_path=None):
    """
    Load configuration from a YAML file.

    Falls back to defaults for anything the file does not set, and for the
    whole configuration when the path is missing.
    """
    config = TissueConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML sections into the matching config dataclasses."""
    for section in fields(config):
        values = yaml_data.get(section.name)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section.name)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = asdict(TissueConfig())
    # file_path has no useful default to show
    yaml_data["tracing"].pop("file_path", None)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
