#!/usr/bin/env -S python3 -B -u
"""
Configuration loader for RouteX.

Provides centralized configuration loading for all components.
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from .exceptions import ConfigurationError


DEFAULT_CONFIG: Dict[str, Any] = {
    'executor': {
        'route_command': '/sbin/route',
        'netstat_command': '/usr/sbin/netstat',
        'netstat_arguments': ['-rn'],
        'privilege_command': ['sudo', '-n'],
        'timeout': 30
    },
    'phantom': {
        'cache_file': '~/.routex/phantom_routes.yaml',
        'probe_destinations': [],
        'max_workers': 8
    },
    'logging': {
        'level': 'WARNING',
        'format': 'text'
    }
}


def config_file_candidates() -> list:
    """
    Configuration file locations in order of precedence:
    1. Environment variable ROUTEX_CONF (if set)
    2. ~/routex.yaml (user's home directory)
    3. ./routex.yaml (current directory)
    """
    config_files = []

    env_config = os.environ.get('ROUTEX_CONF')
    if env_config:
        config_files.append(Path(env_config))

    config_files.extend([
        Path.home() / 'routex.yaml',
        Path('./routex.yaml')
    ])
    return config_files


def load_routex_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load RouteX configuration with proper precedence.

    The first existing file wins; its sections are merged over the defaults
    section by section.

    Args:
        config_file: Explicit file, bypassing the search

    Returns:
        Dictionary containing configuration values

    Raises:
        ConfigurationError: the file that was found cannot be parsed
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    candidates = [Path(config_file)] if config_file else config_file_candidates()
    for candidate in candidates:
        if not candidate.exists():
            continue

        try:
            with open(candidate, 'r') as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read configuration: {e}", str(candidate), cause=e)

        if not isinstance(file_config, dict):
            raise ConfigurationError("Configuration must be a mapping of sections", str(candidate))

        for section, values in file_config.items():
            if isinstance(values, dict) and isinstance(config.get(section), dict):
                config[section].update(values)
            else:
                config[section] = values
        config['config_file'] = str(candidate)
        break

    return config


def get_executor_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Get route command execution settings.

    Returns:
        Dictionary with route_command, netstat_command, netstat_arguments,
        privilege_command and timeout
    """
    config = config or load_routex_config()
    result = dict(config.get('executor', {}))

    timeout = result.get('timeout')
    if not isinstance(timeout, int) or timeout <= 0:
        raise ConfigurationError(f"executor.timeout must be a positive integer, got {timeout!r}",
                                 config.get('config_file'))

    privilege = result.get('privilege_command') or []
    if isinstance(privilege, str):
        privilege = privilege.split()
    result['privilege_command'] = list(privilege)

    return result


def get_phantom_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Get phantom route reconciliation settings.

    The cache file can be overridden with ROUTEX_PHANTOM_CACHE.

    Returns:
        Dictionary with cache_file, probe_destinations and max_workers
    """
    config = config or load_routex_config()
    result = dict(config.get('phantom', {}))

    cache_file = os.environ.get('ROUTEX_PHANTOM_CACHE')
    if cache_file:
        result['cache_file'] = cache_file
    result['cache_file'] = os.path.expanduser(str(result['cache_file']))

    probes = result.get('probe_destinations') or []
    if not isinstance(probes, list):
        raise ConfigurationError("phantom.probe_destinations must be a list", config.get('config_file'))
    result['probe_destinations'] = [str(probe) for probe in probes]

    workers = result.get('max_workers')
    if not isinstance(workers, int) or workers < 1:
        raise ConfigurationError(f"phantom.max_workers must be at least 1, got {workers!r}",
                                 config.get('config_file'))

    return result


def get_logging_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Get logging configuration settings.

    Returns:
        Dictionary with logging configuration
    """
    config = config or load_routex_config()
    return dict(config.get('logging', {}))
