"""
Configuration management for the PFD display core.

This module provides centralized configuration management, supporting:
- Loading from JSON config files
- Environment variable fallback
- Validation and type safety for all settings
"""

import os
import json
import logging
import math
from dataclasses import dataclass, asdict
from typing import Optional, List
from pathlib import Path

from pfd.constants import (
    STANDBY_TIMEOUT_DEFAULT, SELFTEST_TIMEOUT_DEFAULT,
    SPEED_TREND_TIME_CONSTANT, SPEED_TREND_RISING_RATE, SPEED_TREND_FALLING_RATE,
    SIDESLIP_TIME_CONSTANT, VLS_SMOOTH_FACTOR,
    ROLLOVER_THRESHOLD_DEFAULT,
    ALT_LOWER_LIMIT, ALT_UPPER_LIMIT, SPD_LOWER_LIMIT, SPD_UPPER_LIMIT
)
from pfd.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

USER_CONFIG_DIR = '.pfd'


def _positive(value) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


@dataclass
class DisplayUnitSettings:
    """Display unit timer settings.

    Attributes:
        standby_timeout_s: Seconds in Standby before the unit switches Off
        selftest_timeout_s: Duration of the power-up self-test in seconds
    """
    standby_timeout_s: float = STANDBY_TIMEOUT_DEFAULT
    selftest_timeout_s: float = SELFTEST_TIMEOUT_DEFAULT

    def validate(self) -> List[str]:
        """Validate settings and return list of error messages (empty if valid)."""
        errors = []
        if not _positive(self.standby_timeout_s):
            errors.append("Standby timeout must be a positive number of seconds")
        if not _positive(self.selftest_timeout_s):
            errors.append("Selftest timeout must be a positive number of seconds")
        return errors


@dataclass
class FilterSettings:
    """Signal filter settings.

    Attributes:
        speed_trend_time_constant: Lag filter constant of the speed trend
        speed_trend_rising_rate: Rate limit of increasing acceleration
        speed_trend_falling_rate: Rate limit of decreasing acceleration
        sideslip_time_constant: Lag filter constant of the sideslip index
        vls_smooth_factor: SmoothSin factor of the VLS bug
    """
    speed_trend_time_constant: float = SPEED_TREND_TIME_CONSTANT
    speed_trend_rising_rate: float = SPEED_TREND_RISING_RATE
    speed_trend_falling_rate: float = SPEED_TREND_FALLING_RATE
    sideslip_time_constant: float = SIDESLIP_TIME_CONSTANT
    vls_smooth_factor: float = VLS_SMOOTH_FACTOR

    def validate(self) -> List[str]:
        """Validate settings and return list of error messages (empty if valid)."""
        errors = []
        if not _positive(self.speed_trend_time_constant):
            errors.append("Speed trend time constant must be positive")
        if not _positive(self.sideslip_time_constant):
            errors.append("Sideslip time constant must be positive")
        if not _positive(self.vls_smooth_factor):
            errors.append("VLS smooth factor must be positive")
        if self.speed_trend_falling_rate > self.speed_trend_rising_rate:
            errors.append("Speed trend falling rate must not exceed rising rate")
        return errors


@dataclass
class TapeSettings:
    """Tape and readout settings.

    Attributes:
        rollover_threshold: Fraction of the lowest wheel's cycle where the
                            next wheel starts rolling
        negative_digit_bias: Wrap negative digit values by the wheel modulus
                             (False renders them blank)
        altitude_lower_limit: Altitude clamp floor (ft)
        altitude_upper_limit: Altitude clamp ceiling (ft)
        speed_lower_limit: Speed tape floor (kt)
        speed_upper_limit: Speed tape ceiling (kt)
    """
    rollover_threshold: float = ROLLOVER_THRESHOLD_DEFAULT
    negative_digit_bias: bool = True
    altitude_lower_limit: float = ALT_LOWER_LIMIT
    altitude_upper_limit: float = ALT_UPPER_LIMIT
    speed_lower_limit: float = SPD_LOWER_LIMIT
    speed_upper_limit: float = SPD_UPPER_LIMIT

    def validate(self) -> List[str]:
        """Validate settings and return list of error messages (empty if valid)."""
        errors = []
        if not (isinstance(self.rollover_threshold, (int, float)) and 0 <= self.rollover_threshold < 1):
            errors.append("Rollover threshold must lie in [0, 1)")
        for name, lower, upper in (
            ('altitude', self.altitude_lower_limit, self.altitude_upper_limit),
            ('speed', self.speed_lower_limit, self.speed_upper_limit),
        ):
            if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in (lower, upper)):
                errors.append(f"{name.capitalize()} limits must be finite numbers")
            elif lower >= upper:
                errors.append(f"{name.capitalize()} lower limit must be below the upper limit")
        return errors


@dataclass
class AppSettings:
    """Application-level configuration settings.

    Attributes:
        log_level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        frame_rate_hz: Nominal frame tick rate used by the replay tool
    """
    log_level: str = 'INFO'
    frame_rate_hz: float = 30.0

    def validate(self) -> List[str]:
        """Validate settings and return list of error messages (empty if valid)."""
        errors = []
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.log_level.upper() not in valid_levels:
            errors.append(f"Log level must be one of {valid_levels}")
        if not _positive(self.frame_rate_hz):
            errors.append("Frame rate must be positive")
        return errors


_SECTIONS = {
    'display_unit': ('display_unit_settings', DisplayUnitSettings),
    'filters': ('filter_settings', FilterSettings),
    'tapes': ('tape_settings', TapeSettings),
    'app': ('app_settings', AppSettings),
}


class ConfigManager:
    """Centralized configuration manager for the PFD core.

    This class provides a single source of truth for all configuration.
    It supports loading from multiple sources with priority:
    1. JSON config file (highest priority)
    2. Environment variables
    3. Default values (lowest priority)

    Attributes:
        display_unit_settings: Display unit timer configuration
        filter_settings: Filter constants
        tape_settings: Tape and readout configuration
        app_settings: Application-level configuration
        _config_file: Path to JSON config file (if loaded)
    """

    def __init__(self, config_file: Optional[str] = None, load_defaults: bool = True):
        """Initialize ConfigManager.

        Args:
            config_file: Optional path to JSON config file. If None, will try:
                        - ~/.pfd/config.json (user config)
                        - backend/parameters.json (project config)
            load_defaults: Search the default locations when no file is given
        """
        self.display_unit_settings = DisplayUnitSettings()
        self.filter_settings = FilterSettings()
        self.tape_settings = TapeSettings()
        self.app_settings = AppSettings()
        self._config_file: Optional[str] = config_file

        self._load_from_environment()
        if config_file:
            self._load_from_file(config_file)
        elif load_defaults:
            self._load_from_default_locations()

        errors = self.validate()
        if errors:
            logger.warning(f"Configuration validation errors: {errors}")

    @property
    def config_file(self) -> Optional[str]:
        return self._config_file

    def _env_float(self, name: str) -> Optional[float]:
        raw = os.environ.get(name)
        if not raw:
            return None
        try:
            return float(raw)
        except (ValueError, TypeError):
            logger.warning(f"Invalid {name} environment variable: {raw}")
            return None

    def _load_from_environment(self) -> None:
        """Load configuration from PFD_* environment variables."""
        log_level = os.environ.get('PFD_LOG_LEVEL')
        if log_level:
            self.app_settings.log_level = log_level.upper()

        standby = self._env_float('PFD_STANDBY_TIMEOUT')
        if standby is not None:
            self.display_unit_settings.standby_timeout_s = standby

        selftest = self._env_float('PFD_SELFTEST_TIMEOUT')
        if selftest is not None:
            self.display_unit_settings.selftest_timeout_s = selftest

        threshold = self._env_float('PFD_ROLLOVER_THRESHOLD')
        if threshold is not None:
            self.tape_settings.rollover_threshold = threshold

    def _load_from_file(self, file_path: str) -> bool:
        """Load configuration from JSON file.

        Args:
            file_path: Path to JSON config file

        Returns:
            True if loaded successfully, False otherwise
        """
        if not os.path.exists(file_path):
            logger.debug(f"Config file not found: {file_path}")
            return False

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            for section, (attr, _) in _SECTIONS.items():
                if section not in data:
                    continue
                settings = getattr(self, attr)
                for key, value in data[section].items():
                    if not hasattr(settings, key):
                        logger.warning(f"Unknown setting {section}.{key} in {file_path}")
                        continue
                    current = getattr(settings, key)
                    try:
                        if isinstance(current, bool):
                            if not isinstance(value, bool):
                                raise TypeError(f"expected true or false, got {value!r}")
                        elif isinstance(current, (int, float)):
                            value = float(value)
                        elif isinstance(current, str):
                            value = str(value).upper() if key == 'log_level' else str(value)
                    except (ValueError, TypeError):
                        logger.warning(f"Invalid value for {section}.{key} in config: {value}")
                        continue
                    setattr(settings, key, value)

            self._config_file = file_path
            logger.info(f"Loaded configuration from {file_path}")
            return True

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file {file_path}: {e}")
            return False
        except OSError as e:
            logger.error(f"Failed to load config file {file_path}: {e}", exc_info=True)
            return False

    def _load_from_default_locations(self) -> None:
        """Try loading from default config file locations."""
        user_config_file = Path.home() / USER_CONFIG_DIR / 'config.json'
        if user_config_file.exists():
            self._load_from_file(str(user_config_file))
            return

        repo_root = Path(__file__).parent.parent
        project_config_file = repo_root / 'backend' / 'parameters.json'
        if project_config_file.exists():
            self._load_from_file(str(project_config_file))

    def to_dict(self) -> dict:
        return {section: asdict(getattr(self, attr)) for section, (attr, _) in _SECTIONS.items()}

    def save_to_file(self, file_path: Optional[str] = None) -> bool:
        """Save current configuration to JSON file.

        Args:
            file_path: Optional path to save to. If None, uses _config_file or creates user config.

        Returns:
            True if saved successfully, False otherwise
        """
        save_path = file_path or self._config_file
        if not save_path:
            user_config_dir = Path.home() / USER_CONFIG_DIR
            user_config_dir.mkdir(exist_ok=True)
            save_path = str(user_config_dir / 'config.json')

        try:
            directory = os.path.dirname(save_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(save_path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2)

            self._config_file = save_path
            logger.info(f"Saved configuration to {save_path}")
            return True

        except OSError as e:
            logger.error(f"Failed to save config file {save_path}: {e}", exc_info=True)
            return False

    def validate(self) -> List[str]:
        """Validate all configuration settings.

        Returns:
            List of error messages (empty if all valid)
        """
        errors = []
        errors.extend(self.display_unit_settings.validate())
        errors.extend(self.filter_settings.validate())
        errors.extend(self.tape_settings.validate())
        errors.extend(self.app_settings.validate())
        return errors

    def require_valid(self) -> None:
        """Raise ConfigurationError if any setting is invalid."""
        errors = self.validate()
        if errors:
            raise ConfigurationError(f"Invalid configuration: {'; '.join(errors)}",
                                     setting_name='config', setting_value=self._config_file)
