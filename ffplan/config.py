import toml
import os
from .cli_logger import logger
from .errors import ConfigError
from .features import LicenseKind
from .strategy import parse_mode, parse_overrides

CONFIG_FILE = "ffplan.toml"

def load_config(path=".", strict=False):
    """
    Loads ffplan.toml from ``path``; a missing file gives an empty dict.

    With ``strict`` a file that cannot be read or decoded raises ConfigError
    instead of being treated as empty.
    """
    config_path = os.path.join(path, CONFIG_FILE)
    logger.debug(f"Loading configuration from {config_path}")
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            if strict:
                raise ConfigError(f"Error decoding {config_path}: {e}") from e
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            if strict:
                raise ConfigError(f"Error reading {config_path}: {e}") from e
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False

def _list(conf, section, key):
    value = conf.get(section, {}).get(key, [])
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError(f"[{section}] {key} in {CONFIG_FILE} must be a list")
    return value

def get_resolution_settings(conf, path="."):
    """
    Reads the resolution inputs from a loaded ffplan.toml.

    Relative build paths are taken relative to the project directory.
    Returns a dict with features, default_features, accepted_licenses, mode,
    overrides, target, source_dir, prefix, jobs and minimum_versions.
    """
    features = conf.get("features", {})
    build = conf.get("build", {})

    source_dir = build.get("source_dir")
    prefix = build.get("prefix")
    if source_dir and not os.path.isabs(source_dir):
        source_dir = os.path.join(path, source_dir)
    if prefix and not os.path.isabs(prefix):
        prefix = os.path.join(path, prefix)

    jobs = build.get("jobs", 1)
    if not isinstance(jobs, int) or jobs < 1:
        raise ConfigError(f"[build] jobs in {CONFIG_FILE} must be a positive integer, got {jobs!r}")

    minimum_versions = conf.get("minimum_versions", {})
    if not isinstance(minimum_versions, dict):
        raise ConfigError(f"[minimum_versions] in {CONFIG_FILE} must be a table")

    return {
        "features": _list(conf, "features", "enabled"),
        "default_features": bool(features.get("default", True)),
        "accepted_licenses": [LicenseKind.parse(kind) for kind in _list(conf, "license", "accept")],
        "mode": parse_mode(build["mode"]) if build.get("mode") else None,
        "overrides": parse_overrides(build.get("overrides", {})),
        "target": build.get("target"),
        "source_dir": source_dir,
        "prefix": prefix,
        "jobs": jobs,
        "minimum_versions": {name: str(value) for name, value in minimum_versions.items()},
    }
