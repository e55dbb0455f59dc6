import enum
import re
from dataclasses import dataclass

from .errors import ConfigError, CyclicFeatureGraph, UnknownFeature

IDENTIFIER = re.compile(r"^[a-z0-9][a-z0-9-]*$")


def check_identifier(kind, name):
    """Reject names that could never match a catalog entry."""
    if not isinstance(name, str) or not IDENTIFIER.match(name):
        raise ConfigError(f"Invalid {kind} name: {name!r}")
    return name


class LicenseKind(enum.Enum):
    GPL = "gpl"
    NONFREE = "nonfree"
    VERSION3 = "version3"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(kind.value for kind in cls)
            raise ConfigError(f"Unknown license kind '{value}'. Expected one of: {choices}") from None


@dataclass(frozen=True)
class FeatureFlag:
    name: str
    implies: frozenset = frozenset()
    requires_license: LicenseKind | None = None
    requires_libraries: frozenset = frozenset()
    category: str = "misc"
    accepts_license: LicenseKind | None = None
    configure: tuple = ()
    symbols: tuple = ()
    headers: tuple = ()

    def __post_init__(self):
        check_identifier("feature", self.name)
        for implied in self.implies:
            check_identifier("feature", implied)
        for library in self.requires_libraries:
            check_identifier("library", library)


class FeatureGraph:
    """The declared table of feature flags and their implications."""

    def __init__(self, flags):
        self._flags = {}
        for flag in flags:
            if flag.name in self._flags:
                raise ConfigError(f"Feature '{flag.name}' is declared twice")
            self._flags[flag.name] = flag

        for flag in self._flags.values():
            for implied in sorted(flag.implies):
                if implied not in self._flags:
                    raise ConfigError(f"Feature '{flag.name}' implies undeclared feature '{implied}'")
        self.check_acyclic()

    def __contains__(self, name):
        return name in self._flags

    def __getitem__(self, name):
        try:
            return self._flags[name]
        except KeyError:
            raise UnknownFeature(name) from None

    def __len__(self):
        return len(self._flags)

    def names(self):
        return sorted(self._flags)

    def check_acyclic(self):
        """Raise CyclicFeatureGraph naming the first cycle found, if any."""
        visiting, done = [], set()

        def visit(name):
            if name in done:
                return
            if name in visiting:
                cycle = visiting[visiting.index(name):] + [name]
                raise CyclicFeatureGraph(cycle)
            visiting.append(name)
            for implied in sorted(self._flags[name].implies):
                visit(implied)
            visiting.pop()
            done.add(name)

        for name in self.names():
            visit(name)

    def expand(self, requested):
        """Return the transitive closure of ``requested`` under ``implies``.

        Every requested name must be declared. The closure is computed in
        rounds; an acyclic table always stabilizes within ``len(self)``
        rounds, so failing to stabilize is reported as a cycle.
        """
        closure = set()
        for name in requested:
            if name not in self._flags:
                raise UnknownFeature(name)
            closure.add(name)

        for _ in range(len(self._flags) + 1):
            grown = set(closure)
            for name in closure:
                grown.update(self._flags[name].implies)
            if grown == closure:
                return frozenset(closure)
            closure = grown
        raise CyclicFeatureGraph(sorted(closure))

    def required_libraries(self, expanded):
        libraries = set()
        for name in expanded:
            libraries.update(self[name].requires_libraries)
        return tuple(sorted(libraries))

    def accepted_licenses(self, expanded):
        """License kinds accepted by acceptance flags present in ``expanded``."""
        return frozenset(
            self[name].accepts_license for name in expanded
            if self[name].accepts_license is not None
        )

    def relevant_to(self, library, expanded):
        """Sub-features handed to the vendored builder of ``library``."""
        return frozenset(
            name for name in expanded
            if library in self[name].requires_libraries or self[name].configure
        )
