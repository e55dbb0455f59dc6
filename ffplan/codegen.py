import os
import platform
import re

from .errors import ConfigError

FALLBACK_INCLUDE_DIR = "/usr/include"

# Value ranges an integer macro rule can be restricted to.
INT_RANGES = {
    "i32": (-(2 ** 31), 2 ** 31 - 1),
}


def host_os():
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    if system == "windows":
        return "windows"
    return "linux"


def os_from_triple(triple):
    """Map a target triple to the platform keys used by the catalog."""
    if not triple:
        return host_os()
    parts = triple.lower().split("-")
    if "darwin" in parts or "apple" in parts:
        return "macos"
    if "windows" in parts or any(part.startswith("mingw") for part in parts):
        return "windows"
    return "linux"


def search_include(include_paths, header):
    """Return the first include directory that has ``header``, else the system default."""
    for directory in include_paths:
        candidate = os.path.join(directory, header)
        if os.path.exists(candidate):
            return candidate
    return os.path.join(FALLBACK_INCLUDE_DIR, header)


def has_components(expanded, graph):
    return any(graph[name].category == "component" for name in expanded)


def allowlist(expanded, graph, codegen):
    patterns = set()
    for name in expanded:
        patterns.update(graph[name].symbols)
    if has_components(expanded, graph):
        patterns.update(codegen.get("base_symbols", ()))
    return tuple(sorted(patterns))


def headers(expanded, graph, codegen, include_paths, target_os):
    """Headers the binding generator should parse, resolved against ``include_paths``."""
    if not has_components(expanded, graph):
        return ()
    wanted = list(codegen.get("base_headers", ()))
    for name in sorted(expanded):
        wanted += graph[name].headers
    wanted += codegen.get("platform_headers", {}).get(target_os, ())

    resolved = []
    for header in wanted:
        path = search_include(include_paths, header)
        if path not in resolved:
            resolved.append(path)
    # Shipped next to the bindings, never searched for.
    for header in codegen.get("local_headers", ()):
        if header not in resolved:
            resolved.append(header)
    return tuple(resolved)


def blocklist(codegen):
    return {
        "functions": tuple(codegen.get("blocklist_functions", ())),
        "types": tuple(codegen.get("blocklist_types", ())),
        "opaque_types": tuple(codegen.get("opaque_types", ())),
        "ignored_macros": tuple(codegen.get("ignored_macros", ())),
    }


def options(expanded, graph):
    return tuple(sorted(name for name in expanded if graph[name].category == "codegen"))


def int_macro_rules(codegen):
    """Read the ``[[codegen.int_macros]]`` rules as (pattern, kind, fits) tuples."""
    rules = []
    for entry in codegen.get("int_macros", ()):
        if not isinstance(entry, dict) or not entry.get("pattern") or not entry.get("kind"):
            raise ConfigError(f"Integer macro rule {entry!r} needs a pattern and a kind")
        fits = entry.get("fits", "")
        if fits and fits not in INT_RANGES:
            raise ConfigError(f"Integer macro rule '{entry['pattern']}' has unknown range '{fits}'")
        try:
            re.compile(entry["pattern"])
        except re.error as e:
            raise ConfigError(f"Integer macro rule '{entry['pattern']}' is not a valid pattern: {e}") from None
        rules.append((entry["pattern"], entry["kind"], fits))
    return tuple(rules)


def int_macro_kind(name, value, rules):
    """Integer type for macro ``name`` with ``value``; the first matching rule wins, None means no rule applies."""
    for pattern, kind, fits in rules:
        if not re.fullmatch(pattern, name):
            continue
        if fits:
            low, high = INT_RANGES[fits]
            if not low <= value <= high:
                continue
        return kind
    return None
