from .cli_logger import logger
from .errors import LicenseViolation
from .features import LicenseKind


def effective_licenses(expanded, accepted_licenses, graph):
    """Explicitly accepted kinds plus those accepted by flags in ``expanded``."""
    return frozenset(LicenseKind.parse(kind) for kind in accepted_licenses) | graph.accepted_licenses(expanded)


def check(expanded, accepted_licenses, graph):
    """Fail on the first flag (by name) whose license has not been accepted.

    Performs no I/O, so it can run before any library is looked up.
    """
    accepted = effective_licenses(expanded, accepted_licenses, graph)
    for name in sorted(expanded):
        required = graph[name].requires_license
        if required is not None and required not in accepted:
            raise LicenseViolation(name, required)

    gated = {graph[name].requires_license for name in expanded}
    if LicenseKind.NONFREE in gated and LicenseKind.GPL in gated:
        logger.warning("GPL and non-free features are enabled together; the resulting build is not redistributable.")
