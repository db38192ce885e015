"""Run configuration: defaults, YAML config file, environment and CLI flags."""

import logging
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
import yaml

from envreplace import __version__
from envreplace.exceptions import ConfigurationError, ValidationError
from envreplace.rewrite import COMMIT_STRATEGIES, ON_ERROR_MODES


logger = logging.getLogger(__name__)

APP_NAME = "envreplace"
ENV_PREFIX = "ENVREPLACE_"

LOG_LEVELS = ('debug', 'info', 'warn', 'error')

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


@dataclass
class RunConfig:
    """Settings for one invocation, built once and passed down explicitly."""
    files: List[str] = field(default_factory=list)
    prefixes: List[str] = field(default_factory=list)
    verbose: bool = False
    quiet: bool = False
    log_level: str = 'warn'
    on_error: str = 'stop'
    commit: str = 'copy'
    mask_values: bool = False

    def require_files(self) -> None:
        """Raise ConfigurationError when there is nothing to process."""
        if not self.files:
            raise ConfigurationError("files not provided")

    @property
    def logging_level(self) -> int:
        """Resolve verbose/quiet/log_level into a logging level."""
        if self.verbose:
            return logging.DEBUG
        if self.quiet:
            return logging.ERROR
        if self.log_level == 'warn':
            return logging.WARNING
        return getattr(logging, self.log_level.upper())


@dataclass
class VersionInfo:
    """Build metadata reported by the version command."""
    app_name: str = APP_NAME
    version: str = __version__
    branch: str = "n/a"
    commit: str = "n/a"
    build: str = "n/a"
    python_version: str = field(default_factory=platform.python_version)

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "VersionInfo":
        """Take branch, commit and build from ENVREPLACE_* variables when set."""
        source = os.environ if environ is None else environ
        return cls(
            branch=source.get(f"{ENV_PREFIX}BRANCH", "n/a"),
            commit=source.get(f"{ENV_PREFIX}COMMIT", "n/a"),
            build=source.get(f"{ENV_PREFIX}BUILD", "n/a"),
        )

    def render(self) -> str:
        return (
            f"{self.app_name}\n"
            f"\tversion: {self.version}\n"
            f"\tbranch: {self.branch}\n"
            f"\tcommit: {self.commit}\n"
            f"\tbuild: {self.build}\n"
            f"\tpython-version: {self.python_version}"
        )


def split_list(values: Union[None, str, List[str]]) -> List[str]:
    """
    Flatten repeated and comma-separated values.

    ['a,b', 'c'] and 'a,b,c' both become ['a', 'b', 'c']; empty items are dropped.
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    items = []
    for value in values:
        for item in str(value).split(','):
            item = item.strip()
            if item:
                items.append(item)
    return items


class ConfigLoader:
    """Merges configuration sources and validates the result.

    Precedence, lowest first: defaults, config file, environment, CLI flags.
    """

    KNOWN_FIELDS = {
        'file', 'prefix', 'verbose', 'quiet', 'log_level', 'on_error', 'commit', 'mask_values'
    }
    BOOL_FIELDS = ('verbose', 'quiet', 'mask_values')
    LIST_FIELDS = ('file', 'prefix')
    CHOICE_FIELDS = {
        'log_level': LOG_LEVELS,
        'on_error': ON_ERROR_MODES,
        'commit': COMMIT_STRATEGIES,
    }

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self.errors: List[ValidationError] = []

    def load(
        self,
        cli_values: Optional[Dict[str, Any]] = None,
        config_path: Optional[Union[str, Path]] = None
    ) -> RunConfig:
        """
        Build a RunConfig.

        Args:
            cli_values: Flag values; None entries count as not given
            config_path: Optional YAML config file

        Raises:
            ConfigurationError: If any source is invalid
        """
        self.errors = []
        values: Dict[str, Any] = {}

        if config_path:
            values.update(self._load_file(Path(config_path)))
        values.update(self._load_environment())
        for key, value in (cli_values or {}).items():
            if value is not None:
                values[key] = value

        config = self._build(values)

        if self.errors:
            raise ConfigurationError("invalid configuration", self.errors)

        return config

    def _load_file(self, config_path: Path) -> Dict[str, Any]:
        """Load and validate the YAML config file."""
        if not config_path.exists():
            self._add_error(f"Config file not found: {config_path}", str(config_path))
            return {}

        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            self._add_error(f"Failed to load config file: {e}", str(config_path))
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            self._add_error("Config file must be a YAML mapping", str(config_path))
            return {}

        values = {}
        for key, value in data.items():
            if key not in self.KNOWN_FIELDS:
                self._add_error(f"Unknown field '{key}'", str(config_path))
                continue
            if key in self.LIST_FIELDS and not isinstance(value, (str, list)):
                self._add_error(f"'{key}' must be a string or a list", f"{config_path}:{key}")
                continue
            if key in self.BOOL_FIELDS and not isinstance(value, bool):
                self._add_error(f"'{key}' must be a boolean", f"{config_path}:{key}")
                continue
            values[key] = value

        logger.debug(f"loaded config file: {config_path}")
        return values

    def _load_environment(self) -> Dict[str, Any]:
        """Read ENVREPLACE_FILE, ENVREPLACE_PREFIX and ENVREPLACE_VERBOSE."""
        values: Dict[str, Any] = {}
        for key in ('file', 'prefix'):
            name = f"{ENV_PREFIX}{key.upper()}"
            if name in self.environ:
                values[key] = self.environ[name]

        name = f"{ENV_PREFIX}VERBOSE"
        if name in self.environ:
            raw = self.environ[name].strip().lower()
            if raw in TRUE_VALUES:
                values['verbose'] = True
            elif raw in FALSE_VALUES:
                values['verbose'] = False
            else:
                self._add_error(f"Invalid boolean value '{self.environ[name]}'", name)

        return values

    def _build(self, values: Dict[str, Any]) -> RunConfig:
        for key, choices in self.CHOICE_FIELDS.items():
            if key in values and values[key] not in choices:
                self._add_error(f"'{key}' must be one of {list(choices)}, got '{values[key]}'", key)
                values.pop(key)

        return RunConfig(
            files=split_list(values.get('file')),
            prefixes=split_list(values.get('prefix')),
            verbose=bool(values.get('verbose', False)),
            quiet=bool(values.get('quiet', False)),
            log_level=values.get('log_level', 'warn'),
            on_error=values.get('on_error', 'stop'),
            commit=values.get('commit', 'copy'),
            mask_values=bool(values.get('mask_values', False)),
        )

    def _add_error(self, message: str, path: str = ""):
        self.errors.append(ValidationError(message=message, path=path))
