"""Build-time resolution of FFmpeg feature flags into link and binding plans."""
from .catalog import Catalog, Library, load_catalog
from .errors import (
    BuildError,
    ConfigError,
    CyclicFeatureGraph,
    DiscoveryError,
    LibraryNotFound,
    LicenseViolation,
    MalformedMetadata,
    ResolutionError,
    UnknownFeature,
    UnknownLibrary,
    UnparsableVersion,
    VersionError,
    VersionTooOld,
)
from .emitter import ResolutionPlan, emit
from .features import FeatureFlag, FeatureGraph, LicenseKind
from .locator import LibraryMetadata, PkgConfigLocator
from .resolver import ResolutionRequest, Resolver, State
from .strategy import BuildMode, BuildStrategy, select
from .vendored import FFmpegSourceBuilder, VendoredBuilder
