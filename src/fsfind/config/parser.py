"""
YAML configuration parser for fsfind.

This module loads, validates and writes the optional YAML settings file. It
handles configuration file discovery, falls back to defaults when no file is
found, and turns every parsing or validation problem into a
ConfigurationError with a readable message.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Sequence, Union
import logging
from dataclasses import dataclass
from pydantic import ValidationError

from ..models.config import FinderSettings


logger = logging.getLogger(__name__)


@dataclass
class ConfigParseResult:
    """
    Result of configuration parsing operation.

    Attributes:
        config: The parsed and validated settings
        warnings: List of non-fatal warnings
        config_path: Path to the configuration file used
        is_default: Whether default settings were used
    """
    config: FinderSettings
    warnings: List[str]
    config_path: Optional[Path]
    is_default: bool


class ConfigurationError(Exception):
    """Raised when configuration parsing or validation fails."""
    pass


class ConfigParser:
    """
    YAML configuration parser with validation and error handling.

    Settings are read from an explicit path or from the first default file
    name found in the search directories (current directory, home directory,
    then ``~/.config/fsfind``).
    """

    DEFAULT_CONFIG_NAMES = [
        '.fsfind.yaml',
        '.fsfind.yml',
        'fsfind.yaml',
        'fsfind.yml'
    ]

    SECTION_COMMENTS = [
        ("root", "Directory searched when none is given on the command line"),
        ("max_depth", "Default depth bound (null for unbounded)"),
        ("log_level", "Logging level: CRITICAL, ERROR, WARNING, INFO or DEBUG"),
        ("sort_entries", "Visit directory children in name order"),
        ("report_errors", "Print a diagnostic for every unreadable entry")
    ]

    def __init__(self, strict_mode: bool = False):
        """
        Initialize the configuration parser.

        Args:
            strict_mode: If True, treat warnings as errors
        """
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def default_search_paths(self) -> List[Path]:
        """Directories searched for a configuration file, in order."""
        return [
            Path.cwd(),
            Path.home(),
            Path.home() / '.config' / 'fsfind',
        ]

    def load_config(self, config_path: Optional[Union[str, Path]] = None,
                    search_paths: Optional[Sequence[Union[str, Path]]] = None) -> ConfigParseResult:
        """
        Load and parse configuration from file or use defaults.

        Args:
            config_path: Path to configuration file. If None, searches for default files.
            search_paths: Directories to search instead of the default ones

        Returns:
            ConfigParseResult containing parsed settings and metadata

        Raises:
            ConfigurationError: If configuration is invalid or file cannot be read
        """
        if config_path:
            config_path = Path(config_path)
            if not config_path.exists():
                raise ConfigurationError(f"Configuration file not found: {config_path}")

            config_data = self._load_yaml_file(config_path)
            is_default = False
        else:
            config_path, config_data = self._find_and_load_config(search_paths)
            is_default = config_data is None
            if is_default:
                config_data = {}

        settings = self._validate_config_data(config_data)

        warnings = settings.validate_configuration()
        if is_default:
            warnings.append("No configuration file found, using default settings")

        if self.strict_mode and warnings:
            raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

        self.logger.info(f"Configuration loaded successfully from {config_path or 'defaults'}")

        return ConfigParseResult(
            config=settings,
            warnings=warnings,
            config_path=config_path,
            is_default=is_default
        )

    def _find_and_load_config(self, search_paths: Optional[Sequence[Union[str, Path]]] = None
                              ) -> tuple[Optional[Path], Optional[Dict[str, Any]]]:
        """
        Find and load configuration file from default locations.

        Returns:
            Tuple of (config_path, config_data) or (None, None) if not found
        """
        directories = [Path(p) for p in search_paths] if search_paths is not None else self.default_search_paths()

        for search_path in directories:
            for config_name in self.DEFAULT_CONFIG_NAMES:
                config_file = search_path / config_name
                if config_file.is_file():
                    config_data = self._load_yaml_file(config_file)
                    self.logger.info(f"Found configuration file: {config_file}")
                    return config_file, config_data

        self.logger.info("No configuration file found, using defaults")
        return None, None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Load and parse YAML file.

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed YAML data as dictionary

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()

            if not content.strip():
                self.logger.warning(f"Configuration file is empty: {file_path}")
                return {}

            data = yaml.safe_load(content)

            # Comment-only documents load as None
            if data is None:
                return {}

            if not isinstance(data, dict):
                raise ConfigurationError(f"Configuration file must contain a YAML object, got {type(data).__name__}")

            return data

        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}") from e

    def _validate_config_data(self, config_data: Dict[str, Any]) -> FinderSettings:
        """
        Validate configuration data and build settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            return FinderSettings.from_dict(config_data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Configuration validation failed: {problems}") from e

    def save_config(self, config: FinderSettings, output_path: Union[str, Path]) -> None:
        """
        Save configuration to YAML file.

        Args:
            config: Settings to save
            output_path: Path where to save the configuration

        Raises:
            ConfigurationError: If file cannot be written
        """
        try:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            yaml_content = self._generate_yaml_with_comments(config.to_dict())

            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(yaml_content)

            self.logger.info(f"Configuration saved to {output_path}")

        except OSError as e:
            raise ConfigurationError(f"Cannot write configuration file {output_path}: {e}") from e

    def _generate_yaml_with_comments(self, config_dict: Dict[str, Any]) -> str:
        """
        Generate YAML content with helpful comments.

        Args:
            config_dict: Configuration dictionary

        Returns:
            YAML content with comments
        """
        lines = [
            "# fsfind configuration",
            "# Defaults used by the fsfind command line",
            "",
        ]

        for key, comment in self.SECTION_COMMENTS:
            if key in config_dict:
                lines.append(f"# {comment}")
                entry_yaml = yaml.dump({key: config_dict[key]},
                                       default_flow_style=False,
                                       sort_keys=False)
                lines.append(entry_yaml.rstrip())
                lines.append("")

        return "\n".join(lines)


def load_config(config_path: Optional[Union[str, Path]] = None, strict_mode: bool = False) -> ConfigParseResult:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to configuration file (optional)
        strict_mode: Whether to treat warnings as errors

    Returns:
        ConfigParseResult containing parsed configuration

    Raises:
        ConfigurationError: If configuration is invalid
    """
    parser = ConfigParser(strict_mode=strict_mode)
    return parser.load_config(config_path)

