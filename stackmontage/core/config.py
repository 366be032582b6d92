"""
Configuration management for the stack montage module.
Grouped dataclass configuration with JSON/YAML persistence.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from pathlib import Path
import json
import yaml


BLIT_MODES = ('add', 'copy')


@dataclass
class GridConfig:
    """Grid layout for the montage."""

    # None means derive from the number of inputs
    rows: Optional[int] = None
    columns: Optional[int] = None

    # Cap for the default layout; None means uncapped (batch use)
    max_images: Optional[int] = None


@dataclass
class CompositingConfig:
    """Configuration for plane compositing."""

    blit_mode: str = 'add'  # 'add', 'copy'

    # Planes are independent, > 1 enables a thread pool
    n_workers: int = 1


@dataclass
class OutputConfig:
    """Configuration for the finished montage."""

    title: str = 'Montage of Stacks'
    compression: Optional[str] = None  # e.g. 'zlib', passed to tifffile
    output_dir: Path = field(default_factory=lambda: Path('results'))


@dataclass
class LoggingConfig:
    """Logging settings."""

    verbose: bool = True
    log_level: str = 'INFO'


@dataclass
class Config:
    """Main configuration class that combines all section configurations."""

    grid: GridConfig = field(default_factory=GridConfig)
    compositing: CompositingConfig = field(default_factory=CompositingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Check values that the dataclass types cannot express.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.compositing.blit_mode not in BLIT_MODES:
            raise ValueError(
                f"Unknown blit mode: {self.compositing.blit_mode}. Available: {list(BLIT_MODES)}"
            )
        if self.compositing.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.compositing.n_workers}")
        for name in ('rows', 'columns', 'max_images'):
            value = getattr(self.grid, name)
            if value is not None and value < 1:
                raise ValueError(f"grid.{name} must be >= 1, got {value}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dict[str, Any]: Configuration as dictionary.
        """
        def config_to_dict(config_obj):
            """Recursively convert dataclass to dictionary."""
            result = {}
            for field_name, field_value in config_obj.__dict__.items():
                if isinstance(field_value, Path):
                    result[field_name] = str(field_value)
                elif hasattr(field_value, '__dict__'):
                    result[field_name] = config_to_dict(field_value)
                else:
                    result[field_name] = field_value
            return result

        return config_to_dict(self)

    def save(self, filepath: Path, format: str = 'auto') -> None:
        """Save configuration to file.

        Args:
            filepath: Path to save configuration.
            format: File format ('json', 'yaml', or 'auto' to detect from extension).
        """
        filepath = Path(filepath)

        if format == 'auto':
            format = 'yaml' if filepath.suffix.lower() in ['.yml', '.yaml'] else 'json'

        config_dict = self.to_dict()

        with open(filepath, 'w') as f:
            if format == 'yaml':
                yaml.dump(config_dict, f, default_flow_style=False, indent=2)
            else:
                json.dump(config_dict, f, indent=2)

    @classmethod
    def load(cls, filepath: Path) -> 'Config':
        """Load configuration from JSON or YAML file.

        Args:
            filepath: Path to configuration file.

        Returns:
            Config: Loaded configuration object.
        """
        filepath = Path(filepath)

        with open(filepath, 'r') as f:
            if filepath.suffix.lower() in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        data = data or {}
        config = cls()

        sections = {
            'grid': GridConfig,
            'compositing': CompositingConfig,
            'output': OutputConfig,
            'logging': LoggingConfig,
        }
        for name, section_class in sections.items():
            if name in data:
                setattr(config, name, section_class(**data[name]))

        # Paths come back from JSON/YAML as plain strings
        config.output.output_dir = Path(config.output.output_dir)

        config.validate()
        return config


def create_default_config(**grid_overrides: Any) -> Config:
    """Create a default configuration, optionally fixing the grid.

    Args:
        **grid_overrides: Values for GridConfig fields (rows, columns, max_images).

    Returns:
        Config: Default configuration object.
    """
    config = Config(grid=GridConfig(**grid_overrides))
    config.validate()
    return config
