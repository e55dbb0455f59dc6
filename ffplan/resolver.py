"""Turns requested feature flags into a ResolutionPlan.

A run moves through these states and never goes back:

    START -> FEATURES_EXPANDED -> LICENSE_CHECKED -> STRATEGIES_SELECTED
          -> METADATA_GATHERED -> VERSIONS_VALIDATED -> PLAN_EMITTED

Any error moves the run to FAILED and is re-raised with the state it
happened in. A failed resolver is not reused; callers start a new run.
"""
import enum
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from . import license_gate, version
from .cli_logger import logger
from .codegen import os_from_triple
from .emitter import emit
from .errors import BuildError, ResolutionError
from .locator import PkgConfigLocator
from .strategy import BuildMode, BuildStrategy, mode_for_features, select


class State(enum.Enum):
    START = "start"
    FEATURES_EXPANDED = "features-expanded"
    LICENSE_CHECKED = "license-checked"
    STRATEGIES_SELECTED = "strategies-selected"
    METADATA_GATHERED = "metadata-gathered"
    VERSIONS_VALIDATED = "versions-validated"
    PLAN_EMITTED = "plan-emitted"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolutionRequest:
    features: frozenset
    accepted_licenses: frozenset = frozenset()
    mode: BuildMode | None = None
    overrides: dict = field(default_factory=dict, hash=False)
    target: str | None = None
    jobs: int = 1


class Resolver:
    def __init__(self, catalog, locator=None, builder=None):
        self.catalog = catalog
        self.locator = locator or PkgConfigLocator()
        self.builder = builder
        self.state = State.START
        self.history = [State.START]

    def _advance(self, state):
        self.state = state
        self.history.append(state)
        logger.debug(f"Resolution state: {state.value}")

    def resolve(self, request):
        if self.state is not State.START:
            raise RuntimeError("A Resolver runs once; create a new one to resolve again.")
        try:
            return self._resolve(request)
        except ResolutionError as e:
            e.state = self.state
            self._advance(State.FAILED)
            raise

    def _resolve(self, request):
        graph = self.catalog.graph

        expanded = graph.expand(request.features)
        logger.info(f"Enabled features: {', '.join(sorted(expanded))}")
        self._advance(State.FEATURES_EXPANDED)

        license_gate.check(expanded, request.accepted_licenses, graph)
        accepted = license_gate.effective_licenses(expanded, request.accepted_licenses, graph)
        self._advance(State.LICENSE_CHECKED)

        mode = request.mode or mode_for_features(expanded)
        names = graph.required_libraries(expanded)
        for name in sorted(request.overrides):
            self.catalog.library(name)
            if name not in names:
                logger.warning(f"Override for '{name}' ignored: no enabled feature requires it.")
        strategies = {
            name: select(self.catalog.library(name), mode, request.overrides)
            for name in names
        }
        for name in names:
            if strategies[name] is BuildStrategy.FROM_SOURCE and self.catalog.library(name).vendored is None:
                raise BuildError(name, "the bundled FFmpeg sources cannot build it; use system-install for this library")
            logger.step_info(f"{name}: {strategies[name].value}", indent=2)
        self._advance(State.STRATEGIES_SELECTED)

        metadata = self._gather(names, strategies, expanded, accepted, request.jobs)
        self._advance(State.METADATA_GATHERED)

        for name in names:
            version.validate(self.catalog.library(name), metadata[name].version)
        self._advance(State.VERSIONS_VALIDATED)

        plan = emit(expanded, metadata, self.catalog, strategies=strategies, target_os=os_from_triple(request.target))
        self._advance(State.PLAN_EMITTED)
        return plan

    def _gather_one(self, name, strategy, expanded, accepted):
        library = self.catalog.library(name)
        if strategy is BuildStrategy.FROM_SOURCE:
            if self.builder is None:
                raise BuildError(name, "no vendored source configured (set build.source_dir)")
            subfeatures = self.catalog.graph.relevant_to(name, expanded)
            return self.builder.build(library, library.vendored, subfeatures, accepted)
        return self.locator.locate(library.pkg_config_name, static="static" in expanded, link_name=library.link_name)

    def _gather(self, names, strategies, expanded, accepted, jobs):
        if jobs <= 1 or len(names) <= 1:
            return {name: self._gather_one(name, strategies[name], expanded, accepted) for name in names}

        metadata = {}
        executor = ThreadPoolExecutor(max_workers=jobs)
        try:
            future_to_name = {
                executor.submit(self._gather_one, name, strategies[name], expanded, accepted): name
                for name in names
            }
            for future in as_completed(future_to_name):
                metadata[future_to_name[future]] = future.result()
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        return metadata
