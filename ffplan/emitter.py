import json
from dataclasses import dataclass, field
from types import MappingProxyType

from . import codegen


@dataclass(frozen=True)
class ResolutionPlan:
    """Everything the binding generator and the linker need for one build."""

    enabled_features: frozenset
    library_metadata: MappingProxyType
    codegen_allowlist: tuple
    link_directives: tuple
    link_paths: tuple = ()
    include_paths: tuple = ()
    strategies: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    headers: tuple = ()
    blocklist: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    codegen_options: tuple = ()
    target_os: str = ""
    # (pattern, kind, fits) rules, first match wins
    int_macro_kinds: tuple = ()
    constify_enum_variants: tuple = ()
    codegen_settings: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self):
        return {
            "enabled_features": sorted(self.enabled_features),
            "libraries": {
                name: {
                    "version": meta.version,
                    "strategy": self.strategies[name].value if name in self.strategies else None,
                    "include_paths": list(meta.include_paths),
                    "link_paths": list(meta.link_paths),
                    "link_directives": [list(d) for d in meta.link_directives],
                }
                for name, meta in self.library_metadata.items()
            },
            "link_directives": [list(d) for d in self.link_directives],
            "link_paths": list(self.link_paths),
            "include_paths": list(self.include_paths),
            "codegen": {
                "allowlist": list(self.codegen_allowlist),
                "headers": list(self.headers),
                "blocklist": {key: list(value) for key, value in self.blocklist.items()},
                "options": list(self.codegen_options),
                "int_macro_kinds": [
                    {"pattern": pattern, "kind": kind, "fits": fits or None}
                    for pattern, kind, fits in self.int_macro_kinds
                ],
                "constify_enum_variants": list(self.constify_enum_variants),
                "settings": dict(self.codegen_settings),
            },
            "target_os": self.target_os,
        }

    def to_json(self):
        return json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n"

    def render_directives(self):
        lines = [f"link-search=native={path}" for path in self.link_paths]
        lines += [f"link-lib={kind}={name}" for kind, name in self.link_directives]
        lines += [f"include={path}" for path in self.include_paths]
        lines += [f'cfg=feature="{name}"' for name in sorted(self.enabled_features)]
        lines += [f"allowlist={pattern}" for pattern in self.codegen_allowlist]
        lines += [f"header={header}" for header in self.headers]
        lines += [f"blocklist-function={name}" for name in self.blocklist.get("functions", ())]
        lines += [f"blocklist-type={name}" for name in self.blocklist.get("types", ())]
        lines += [f"opaque-type={name}" for name in self.blocklist.get("opaque_types", ())]
        lines += [f"ignore-macro={name}" for name in self.blocklist.get("ignored_macros", ())]
        lines += [
            f"int-macro={pattern}={kind}" + (f",fits={fits}" if fits else "")
            for pattern, kind, fits in self.int_macro_kinds
        ]
        lines += [f"constify-enum-variant={pattern}" for pattern in self.constify_enum_variants]
        lines += [f"codegen-setting={key}={_setting(value)}" for key, value in self.codegen_settings.items()]
        lines += [f"codegen-option={name}" for name in self.codegen_options]
        return "\n".join(lines) + "\n"


def _setting(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _unique(items):
    seen, ordered = set(), []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return tuple(ordered)


def _static_names(expanded, catalog, metadata):
    """Link names that must come from static archives in a static build.

    The FFmpeg libraries are installed together, so when one of them is
    linked statically every one of them named by ``--libs --static`` is too.
    """
    if "static" not in expanded:
        return frozenset()
    names = {library.link_name for library in catalog.libraries.values() if library.vendored is not None}
    for meta in metadata.values():
        names.update(name for kind, name in meta.link_directives if kind == "static")
    return frozenset(names)


def emit(expanded, metadata, catalog, strategies=None, target_os=None):
    """Aggregate per-library metadata into a ResolutionPlan.

    Libraries are visited in name order and each library's directives are
    stably sorted by kind, so identical inputs always give identical output
    whatever order the metadata was gathered in. Duplicates keep their first
    position. In a static build a name linked statically anywhere is never
    also requested as a dynamic library.
    """
    target_os = target_os or codegen.host_os()
    names = sorted(metadata)
    static = _static_names(expanded, catalog, metadata)

    directives = []
    for name in names:
        promoted = [
            ("static" if kind == "dylib" and lib in static else kind, lib)
            for kind, lib in metadata[name].link_directives
        ]
        directives += sorted(promoted, key=lambda directive: directive[0])
    directives += [("framework", framework) for framework in catalog.frameworks.get(target_os, ())]

    link_paths = _unique(path for name in names for path in metadata[name].link_paths)
    include_paths = _unique(path for name in names for path in metadata[name].include_paths)

    graph = catalog.graph
    bindings = codegen.has_components(expanded, graph)
    return ResolutionPlan(
        enabled_features=frozenset(expanded),
        library_metadata=MappingProxyType({name: metadata[name] for name in names}),
        codegen_allowlist=codegen.allowlist(expanded, graph, catalog.codegen),
        link_directives=_unique(directives),
        link_paths=link_paths,
        include_paths=include_paths,
        strategies=MappingProxyType(dict(sorted((strategies or {}).items()))),
        headers=codegen.headers(expanded, graph, catalog.codegen, include_paths, target_os),
        blocklist=MappingProxyType(codegen.blocklist(catalog.codegen)),
        codegen_options=codegen.options(expanded, graph),
        target_os=target_os,
        int_macro_kinds=codegen.int_macro_rules(catalog.codegen) if bindings else (),
        constify_enum_variants=tuple(catalog.codegen.get("constify_enum_variants", ())) if bindings else (),
        codegen_settings=MappingProxyType(dict(sorted(catalog.codegen.get("settings", {}).items()))),
    )
