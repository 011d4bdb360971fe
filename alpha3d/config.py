"""
Configuration Management

Loads, validates and exposes alpha3d parameters stored in YAML.
"""

import copy
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default_config.yaml"

_BACKENDS = ("internal", "scipy")
_MODES = ("regularized", "general")
_POLICIES = ("merge", "raise")


class ConfigManager:
    """Manages configuration parameters for triangulation and alpha queries."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, uses the packaged default.
        """
        self.config_path = str(config_path or DEFAULT_CONFIG_PATH)
        self.config = self._load_config()
        self._validate_config()

    @classmethod
    def from_dict(cls, overrides: Dict[str, Any]) -> "ConfigManager":
        """Default configuration with nested overrides applied on top."""
        manager = cls()
        merged = copy.deepcopy(manager.config)
        _deep_update(merged, overrides)
        manager.config = merged
        manager._validate_config()
        return manager

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing configuration file: {e}")
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")
        return config

    def _validate_config(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Validate configuration parameters for consistency and feasibility."""
        if config is None:
            config = self.config
        dedup = config.get('dedup', {})
        if dedup.get('policy', 'merge') not in _POLICIES:
            raise ValueError(f"dedup.policy must be one of {_POLICIES}")
        if float(dedup.get('scale', 1e9)) <= 0:
            raise ValueError("dedup.scale must be positive")

        dl = config.get('delaunay', {})
        if dl.get('backend', 'internal') not in _BACKENDS:
            raise ValueError(f"delaunay.backend must be one of {_BACKENDS}")
        seed = dl.get('seed')
        if seed is not None and not isinstance(seed, int):
            raise ValueError("delaunay.seed must be an integer or null")
        if int(dl.get('max_walk_steps', 100000)) <= 0:
            raise ValueError("delaunay.max_walk_steps must be positive")

        alpha = config.get('alpha', {})
        if alpha.get('mode', 'regularized') not in _MODES:
            raise ValueError(f"alpha.mode must be one of {_MODES}")
        if float(alpha.get('default', 0.05)) < 0:
            raise ValueError("alpha.default must be non-negative")

        viewer = config.get('viewer', {})
        lo = float(viewer.get('alpha_min', 0.001))
        hi = float(viewer.get('alpha_max', 0.2))
        if lo < 0 or lo >= hi:
            raise ValueError("viewer.alpha_min must be non-negative and less than viewer.alpha_max")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'delaunay.seed')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.
        An invalid value raises ValueError and leaves the configuration unchanged.

        Args:
            key: Configuration key (e.g., 'alpha.mode')
            value: Value to set
        """
        keys = key.split('.')
        candidate = copy.deepcopy(self.config)
        config_ref = candidate

        for k in keys[:-1]:
            if k not in config_ref:
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value
        self._validate_config(candidate)
        self.config = candidate

    def save(self, output_path: Optional[str] = None) -> None:
        """
        Save current configuration to file.

        Args:
            output_path: Path to save configuration. If None, overwrites current file.
        """
        save_path = output_path or self.config_path

        with open(save_path, 'w', encoding='utf-8') as file:
            yaml.dump(self.config, file, default_flow_style=False, indent=2)

    def get_delaunay_params(self) -> Dict[str, Any]:
        """Get triangulation parameters as a dictionary."""
        return self.config.get('delaunay', {})

    def get_dedup_params(self) -> Dict[str, Any]:
        """Get duplicate-point handling parameters as a dictionary."""
        return self.config.get('dedup', {})

    def get_alpha_params(self) -> Dict[str, Any]:
        """Get alpha query parameters as a dictionary."""
        return self.config.get('alpha', {})


def _deep_update(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    for k, v in overrides.items():
        if isinstance(v, dict) and isinstance(target.get(k), dict):
            _deep_update(target[k], v)
        else:
            target[k] = v
