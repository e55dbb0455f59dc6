import enum

from .errors import ConfigError


class BuildStrategy(enum.Enum):
    FROM_SOURCE = "from-source"
    SYSTEM_INSTALL = "system-install"


class BuildMode(enum.Enum):
    PREFER_SYSTEM = "prefer-system"
    FORCE_FROM_SOURCE = "force-from-source"


def _parse(enum_cls, what, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower().replace("_", "-"))
    except ValueError:
        choices = ", ".join(item.value for item in enum_cls)
        raise ConfigError(f"Unknown {what} '{value}'. Expected one of: {choices}") from None


def parse_mode(value):
    return _parse(BuildMode, "build mode", value)


def parse_strategy(value):
    return _parse(BuildStrategy, "build strategy", value)


def parse_overrides(pairs):
    """Parse ``LIBRARY=STRATEGY`` strings (or a mapping) into a dict."""
    if isinstance(pairs, dict):
        return {name: parse_strategy(value) for name, value in pairs.items()}
    overrides = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ConfigError(f"Invalid override '{pair}'. Expected LIBRARY=STRATEGY.")
        overrides[name.strip()] = parse_strategy(value)
    return overrides


def mode_for_features(expanded):
    """Default build mode when the caller did not choose one."""
    if "build" in expanded:
        return BuildMode.FORCE_FROM_SOURCE
    return BuildMode.PREFER_SYSTEM


def select(library, global_mode, overrides):
    """Pick the strategy for one library. An explicit override always wins.

    Forcing a source build only applies to libraries that ship a vendored
    descriptor; anything else still has to come from the system.
    """
    if library.name in overrides:
        return overrides[library.name]
    if global_mode is BuildMode.FORCE_FROM_SOURCE and library.vendored is not None:
        return BuildStrategy.FROM_SOURCE
    return BuildStrategy.SYSTEM_INSTALL
