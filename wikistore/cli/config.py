"""Configuration loading and validation.

This module resolves where the wiki lives and which identity its commits are
recorded under. Values come from an optional YAML file and from environment
variables (a .env file is honoured through python-dotenv); the environment
wins over the file.

Configuration file structure:
    wiki_path: /srv/wiki
    author_name: Wiki Bot
    author_email: wiki@example.com

Environment variables:
    WIKIPATH: wiki root directory
    GIT_USERNAME: commit author name
    GIT_EMAIL: commit author email
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError, ConfigFilesystemError
from .models import WikiConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Handles configuration file loading and environment overrides."""

    DEFAULT_CONFIG_FILE = '.wikistore.yaml'

    # Required fields after file and environment are merged
    REQUIRED_FIELDS = {'wiki_path'}

    # Config field -> environment variable
    ENV_VARS = {
        'wiki_path': 'WIKIPATH',
        'author_name': 'GIT_USERNAME',
        'author_email': 'GIT_EMAIL',
    }

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> WikiConfig:
        """Load configuration from file and environment.

        Args:
            config_path: Path to a YAML configuration file. When omitted,
                DEFAULT_CONFIG_FILE is read if it exists.

        Returns:
            WikiConfig with merged values

        Raises:
            ConfigFilesystemError: If an explicitly named file cannot be read
            ConfigError: If configuration is invalid or incomplete
        """
        load_dotenv()

        if config_path is not None:
            values = cls._read_file(config_path)
        elif os.path.exists(cls.DEFAULT_CONFIG_FILE):
            values = cls._read_file(cls.DEFAULT_CONFIG_FILE)
        else:
            values = {}

        for config_field, env_var in cls.ENV_VARS.items():
            env_value = os.getenv(env_var)
            if env_value:
                values[config_field] = env_value

        return cls._parse_config(values)

    @classmethod
    def _read_file(cls, config_path: str) -> Dict[str, Any]:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigFilesystemError(
                config_path,
                'read',
                'Configuration file not found'
            )
        except PermissionError:
            raise ConfigFilesystemError(
                config_path,
                'read',
                'Permission denied'
            )
        except OSError as e:
            raise ConfigFilesystemError(
                config_path,
                'read',
                str(e)
            )

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax: {str(e)}"
            )

        # Empty file is an empty configuration
        if config_dict is None:
            return {}

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return config_dict

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> WikiConfig:
        """Parse and validate the merged configuration dictionary.

        Raises:
            ConfigError: If configuration is invalid
        """
        missing_fields = cls.REQUIRED_FIELDS - {
            key for key, value in config_dict.items() if value
        }
        if missing_fields:
            raise ConfigError(
                f"Missing required fields: {', '.join(sorted(missing_fields))} "
                f"(set in the config file or via {cls.ENV_VARS['wiki_path']})"
            )

        unknown = set(config_dict) - set(cls.ENV_VARS)
        if unknown:
            logger.warning(f"Ignoring unknown config fields: {', '.join(sorted(unknown))}")

        for config_field in cls.ENV_VARS:
            value = config_dict.get(config_field)
            if value is not None and not isinstance(value, str):
                raise ConfigError(
                    f"Must be a string, got {type(value).__name__}",
                    config_field
                )

        wiki_path = os.path.expanduser(config_dict['wiki_path'])
        if os.path.exists(wiki_path) and not os.path.isdir(wiki_path):
            raise ConfigError(
                f"{wiki_path} exists and is not a directory",
                'wiki_path'
            )

        return WikiConfig(
            wiki_path=wiki_path,
            author_name=config_dict.get('author_name') or '',
            author_email=config_dict.get('author_email') or '',
        )
