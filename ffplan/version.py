from packaging.version import Version, InvalidVersion

from .errors import UnparsableVersion, VersionTooOld


def parse_version(raw, library=""):
    """Parse the leading token of a reported version (``0.164.3095 baff59b`` -> 0.164.3095)."""
    tokens = str(raw or "").split()
    if not tokens:
        raise UnparsableVersion(library, raw)
    try:
        return Version(tokens[0])
    except InvalidVersion:
        raise UnparsableVersion(library, raw) from None


def validate(library, found):
    if parse_version(found, library.name) < parse_version(library.minimum_version, library.name):
        raise VersionTooOld(library.name, found, library.minimum_version)
