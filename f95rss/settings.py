import copy
import logging
import os

import yaml
from apscheduler.triggers.cron import CronTrigger

from f95rss.constants import DEFAULT_SETTINGS, ENV_OVERRIDES
from f95rss.exceptions import ConfigError

# Retrieve main logger
logger = logging.getLogger("main")


def _merge(defaults, overrides):
    merged = copy.deepcopy(defaults)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def load_settings(config_file=None, environ=None):
    """
    Build the effective settings: defaults, then the YAML file (if any),
    then F95_RSS_* environment variables.
    """
    environ = os.environ if environ is None else environ
    config_file = config_file or environ.get("F95_RSS_CONFIG")

    file_settings = {}
    if config_file:
        if not os.path.isfile(config_file):
            raise ConfigError(f"Configuration file {config_file} does not exist.")
        logger.debug(f"Reading configuration file: {config_file}")
        try:
            with open(config_file, "r") as yaml_file:
                file_settings = yaml.safe_load(yaml_file) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Configuration file {config_file} is not valid YAML: {e}") from e
        if not isinstance(file_settings, dict):
            raise ConfigError(f"Configuration file {config_file} must contain a mapping.")

    settings = _merge(DEFAULT_SETTINGS, file_settings)

    for var, (section, key, cast) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            settings[section][key] = cast(raw)
        except ValueError as e:
            raise ConfigError(f"Environment variable {var} has an invalid value.") from e

    return settings


def validate_settings(settings):
    """Check settings that would otherwise only fail at first use. Raises ConfigError."""
    cron = (settings.get("schedule") or {}).get("cron")
    if not cron:
        raise ConfigError("No schedule expression configured.")
    try:
        CronTrigger.from_crontab(cron)
    except ValueError as e:
        raise ConfigError(f"Invalid schedule expression {cron!r}: {e}") from e

    source = settings.get("source") or {}
    if not source.get("url"):
        raise ConfigError("No catalog source URL configured.")
    if float(source.get("timeout") or 0) <= 0:
        raise ConfigError("Source timeout must be positive.")
    if int(source.get("max_entries") or 0) <= 0:
        raise ConfigError("Source max_entries must be positive.")

    if not (settings.get("store") or {}).get("path"):
        raise ConfigError("No store path configured.")
    if not (settings.get("feed") or {}).get("id_file"):
        raise ConfigError("No allow-list path configured.")

    return settings
