import os
import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType

import toml

from .cli_logger import logger
from .codegen import int_macro_rules
from .errors import ConfigError, UnknownLibrary
from .features import FeatureFlag, FeatureGraph, LicenseKind, check_identifier

DEFAULT_CATALOG = os.path.join(os.path.dirname(__file__), "data", "catalog.toml")


@dataclass(frozen=True)
class Library:
    name: str
    pkg_config_name: str
    minimum_version: str
    link_name: str = ""
    # Opaque descriptor handed to the vendored builder; None when the library
    # can only come from a system installation.
    vendored: dict | None = field(default=None, compare=False, hash=False)

    def __post_init__(self):
        check_identifier("library", self.name)
        if not self.pkg_config_name:
            raise ConfigError(f"Library '{self.name}' has no pkg-config name")
        if not self.minimum_version:
            raise ConfigError(f"Library '{self.name}' has no minimum version")
        if not self.link_name:
            object.__setattr__(self, "link_name", self.name)


@dataclass(frozen=True)
class Catalog:
    graph: FeatureGraph
    libraries: MappingProxyType
    default_features: tuple = ()
    codegen: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    frameworks: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    vendored: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    def library(self, name):
        try:
            return self.libraries[name]
        except KeyError:
            raise UnknownLibrary(name) from None

    def with_minimum_versions(self, overrides):
        """Return a copy of the catalog with some minimum versions replaced."""
        if not overrides:
            return self
        libraries = dict(self.libraries)
        for name, version in sorted(overrides.items()):
            library = self.library(name)
            logger.debug(f"Minimum version of '{name}' set to {version} (catalog: {library.minimum_version})")
            libraries[name] = dataclasses.replace(library, minimum_version=str(version))
        return dataclasses.replace(self, libraries=MappingProxyType(libraries))


def _string_list(owner, key, value):
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' of '{owner}' must be a list of strings")
    return tuple(value)


def _parse_feature(name, entry):
    license_name = entry.get("license")
    accepts = entry.get("accepts")
    return FeatureFlag(
        name=name,
        implies=frozenset(_string_list(name, "implies", entry.get("implies"))),
        requires_license=LicenseKind.parse(license_name) if license_name else None,
        requires_libraries=frozenset(_string_list(name, "libraries", entry.get("libraries"))),
        category=entry.get("category", "misc"),
        accepts_license=LicenseKind.parse(accepts) if accepts else None,
        configure=_string_list(name, "configure", entry.get("configure")),
        symbols=_string_list(name, "symbols", entry.get("symbols")),
        headers=_string_list(name, "headers", entry.get("headers")),
    )


def _parse_library(name, entry):
    return Library(
        name=name,
        pkg_config_name=entry.get("pkg_config", ""),
        minimum_version=str(entry.get("minimum_version", "")),
        link_name=entry.get("link_name", ""),
        vendored=dict(entry["vendored"]) if entry.get("vendored") else None,
    )


def parse_catalog(data):
    """Build a Catalog from the decoded contents of a catalog file."""
    features = data.get("features", {})
    libraries = {name: _parse_library(name, entry) for name, entry in data.get("libraries", {}).items()}
    graph = FeatureGraph(_parse_feature(name, entry) for name, entry in features.items())

    for name in graph.names():
        for library in sorted(graph[name].requires_libraries):
            if library not in libraries:
                raise ConfigError(f"Feature '{name}' requires undeclared library '{library}'")

    default_features = _string_list("defaults", "features", data.get("defaults", {}).get("features"))
    for name in default_features:
        if name not in graph:
            raise ConfigError(f"Default feature '{name}' is not declared")

    codegen = dict(data.get("codegen", {}))
    int_macro_rules(codegen)

    return Catalog(
        graph=graph,
        libraries=MappingProxyType(libraries),
        default_features=default_features,
        codegen=MappingProxyType(codegen),
        frameworks=MappingProxyType(dict(data.get("platform", {}).get("frameworks", {}))),
        vendored=MappingProxyType(dict(data.get("vendored", {}))),
    )


def load_catalog(path=None):
    path = path or DEFAULT_CATALOG
    logger.debug(f"Loading feature catalog from {path}")
    try:
        with open(path, "r") as f:
            data = toml.load(f)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Error decoding catalog file at {path}: {e}") from e
    except IOError as e:
        raise ConfigError(f"Error reading catalog file at {path}: {e}") from e
    return parse_catalog(data)
