"""Errors that end a resolution run.

Every error names the flag, library or version that caused it so the build
can be re-invoked with corrected inputs. Nothing here is retried.
"""


class ResolutionError(Exception):
    """Base class for every failure of a resolution run."""

    # Set by the resolver to the state the run was in when it failed.
    state = None


class ConfigError(ResolutionError):
    pass


class UnknownFeature(ResolutionError):
    def __init__(self, flag):
        self.flag = flag
        super().__init__(f"Unknown feature flag '{flag}'")


class UnknownLibrary(ResolutionError):
    def __init__(self, library):
        self.library = library
        super().__init__(f"Unknown library '{library}'")


class CyclicFeatureGraph(ResolutionError):
    def __init__(self, flags):
        self.flags = tuple(flags)
        super().__init__(
            f"Feature implications form a cycle: {' -> '.join(self.flags)}"
        )


class LicenseViolation(ResolutionError):
    def __init__(self, flag, required):
        self.flag = flag
        self.required = required
        super().__init__(
            f"Feature '{flag}' requires the {required.value} license, which has not been accepted. "
            f"Enable 'build-license-{required.value}' or pass --accept-license {required.value}."
        )


class DiscoveryError(ResolutionError):
    def __init__(self, library, detail):
        self.library = library
        self.detail = detail
        super().__init__(f"Could not discover '{library}': {detail}")


class LibraryNotFound(DiscoveryError):
    pass


class MalformedMetadata(DiscoveryError):
    pass


class VersionError(ResolutionError):
    pass


class VersionTooOld(VersionError):
    def __init__(self, library, found, minimum):
        self.library = library
        self.found = found
        self.minimum = minimum
        super().__init__(
            f"Library '{library}' version {found} is older than the minimum supported {minimum}"
        )


class UnparsableVersion(VersionError):
    def __init__(self, library, raw):
        self.library = library
        self.raw = raw
        super().__init__(f"Library '{library}' reported an unparsable version '{raw}'")


class BuildError(ResolutionError):
    def __init__(self, library, detail):
        self.library = library
        self.detail = detail
        super().__init__(f"Vendored build of '{library}' failed: {detail}")
