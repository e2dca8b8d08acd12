"""
Configuration management and loading.

Handles attribution settings: seed, synthesis constants and report options.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

import yaml

from ai_usage_attribution.core.projection import ViewMode
from ai_usage_attribution.core.synthesis import SynthesisSettings


@dataclass(frozen=True)
class ReportConfig:
    """How attribution results are presented."""
    mode: ViewMode = ViewMode.COST
    top_users: int = 8
    ensure_users: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate report values."""
        if self.top_users <= 0:
            raise ValueError("top_users must be > 0")


@dataclass(frozen=True)
class AttributionConfig:
    """Complete attribution configuration."""
    seed: str = "default"
    synthesis: SynthesisSettings = field(default_factory=SynthesisSettings)
    report: ReportConfig = field(default_factory=ReportConfig)

    def __post_init__(self):
        """Validate the seed is usable."""
        if not self.seed:
            raise ValueError("seed must be a non-empty string")


def load_attribution_config(path: str) -> AttributionConfig:
    """Load and validate attribution configuration from YAML file.

    Strict validation ensures a typo can't silently change the synthetic
    data every consumer sees.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AttributionConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Attribution config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'seed', 'synthesis', 'report'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    seed = raw_config.get('seed', 'default')
    if not isinstance(seed, (str, int)) or isinstance(seed, bool):
        raise ValueError("'seed' must be a string")

    synthesis = _parse_synthesis(raw_config.get('synthesis') or {})
    report = _parse_report(raw_config.get('report') or {})

    return AttributionConfig(
        seed=str(seed),
        synthesis=synthesis,
        report=report
    )


def _parse_synthesis(data: Dict) -> SynthesisSettings:
    """Parse and validate synthesis constants.

    Args:
        data: Synthesis configuration data

    Returns:
        Validated SynthesisSettings

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("'synthesis' must be a dictionary")

    allowed_keys = set(SynthesisSettings.__dataclass_fields__)
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in synthesis: {unknown_keys}")

    values = {}
    for key, value in data.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"'{key}' in synthesis must be a number")
        values[key] = float(value)

    return SynthesisSettings(**values)


def _parse_report(data: Dict) -> ReportConfig:
    """Parse and validate report options.

    Args:
        data: Report configuration data

    Returns:
        Validated ReportConfig

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("'report' must be a dictionary")

    allowed_keys = {'mode', 'top_users', 'ensure_users'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in report: {unknown_keys}")

    mode_str = data.get('mode', ViewMode.COST.value)
    if not isinstance(mode_str, str):
        raise ValueError("'mode' in report must be a string")
    try:
        mode = ViewMode(mode_str.lower())
    except ValueError:
        valid_modes = [mode.value for mode in ViewMode]
        raise ValueError(f"'mode' in report must be one of: {valid_modes}")

    top_users = data.get('top_users', 8)
    if isinstance(top_users, bool) or not isinstance(top_users, int):
        raise ValueError("'top_users' in report must be an integer")

    ensure_users = data.get('ensure_users', [])
    if not isinstance(ensure_users, list) or not all(isinstance(u, str) for u in ensure_users):
        raise ValueError("'ensure_users' in report must be a list of strings")

    return ReportConfig(
        mode=mode,
        top_users=top_users,
        ensure_users=tuple(ensure_users)
    )
