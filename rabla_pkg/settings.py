#!/usr/bin/env python3
"""
Settings loader for Rabla.
Supports configuration from rabla.yml, rabla.yaml, or rabla.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional


class RablaSettings:
    """Load and manage Rabla configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'input_dir': None,
        'output_dir': None,
        'site_dir': 'site',
        'site_title': 'Rabla!',
        'templates': None,
        'serve': False,
        'port': None,
        'host': 'localhost',
        'on_error': 'abort',
        'log_dir': None,
        'verbose': False,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['rabla.yml', 'rabla.yaml', 'rabla.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
                if loaded_settings:
                    # Merge with defaults, giving preference to loaded settings
                    self.settings.update(loaded_settings)
                    print(f"Loaded configuration from: {os.path.relpath(config_file)}")
            except (ValueError, IOError) as e:
                print(f"Warning: Failed to load config file {config_file}: {e}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    data = yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    data = json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise IOError(f"Error reading configuration file {config_path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        return data

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'input_dir': 'posts',
            'output_dir': 'site',
            'site_dir': 'site',
            'site_title': 'Rabla!',
            'on_error': 'abort',
            'serve': False,
            'port': 8090,
        }

        if file_format not in ('yml', 'yaml', 'json'):
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'rabla.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Rabla Configuration File\n\n")
                    f.write("# Markdown posts, with images under <input_dir>/attachments/\n")
                    f.write("input_dir: posts\n")
                    f.write("# Post pages are written to <output_dir>/<slug>/index.html\n")
                    f.write("output_dir: site\n")
                    f.write("# index.html and style.css are written here\n")
                    f.write("site_dir: site\n")
                    f.write("site_title: Rabla!\n\n")
                    f.write("# What to do when a post fails: abort or skip\n")
                    f.write("on_error: abort\n\n")
                    f.write("# Preview server\n")
                    f.write("serve: false\n")
                    f.write("port: 8090\n")
                else:
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value

        return merged
