import os
import threading
from abc import ABC, abstractmethod

from .cli_logger import logger
from .errors import BuildError, DiscoveryError
from .features import LicenseKind
from .locator import PkgConfigLocator
from .utils import run_shell_command

# Target triple OS component -> FFmpeg --target-os value, most specific
# first: "aarch64-linux-android" is Android, "arm64-apple-ios" is iOS.
TARGET_OS_MAP = {
    "android": "android",
    "androideabi": "android",
    "ios": "darwin",
    "darwin": "darwin",
    "windows": "mingw32",
    "mingw32": "mingw32",
    "freebsd": "freebsd",
    "linux": "linux",
}


class VendoredBuilder(ABC):
    """Builds a library from bundled sources and reports where it was installed."""

    @abstractmethod
    def build(self, library, descriptor, subfeatures, accepted_licenses):
        """Return LibraryMetadata for ``library`` or raise BuildError."""


def parse_target(triple):
    """Split a target triple into (arch, target_os) for FFmpeg's configure."""
    parts = triple.split("-")
    if len(parts) < 2:
        raise BuildError(triple, f"invalid target triple '{triple}'")
    arch = parts[0]
    for os_name, target_os in TARGET_OS_MAP.items():
        if os_name in parts[1:]:
            return arch, target_os
    raise BuildError(triple, f"unsupported target operating system in '{triple}'")


class FFmpegSourceBuilder(VendoredBuilder):
    """Runs FFmpeg's own configure/make from a vendored source tree.

    All FFmpeg libraries come out of one tree, so a given configuration is
    built and installed once; every library built afterwards with the same
    configuration is read back from the install prefix.
    """

    def __init__(self, graph, source_dir, prefix, components=(), configure=(), licenses=None, target=None, jobs=None):
        self.graph = graph
        self.source_dir = os.path.abspath(source_dir)
        self.prefix = os.path.abspath(prefix)
        self.components = tuple(components)
        self.base_configure = tuple(configure)
        self.licenses = dict(licenses or {})
        self.target = target
        self.jobs = jobs or os.cpu_count() or 1
        self._installed = set()
        # configure key -> BuildError of the one attempt made for it
        self._failed = {}
        self._lock = threading.Lock()

    @classmethod
    def from_catalog(cls, catalog, source_dir, prefix, target=None, jobs=None):
        settings = catalog.vendored.get("ffmpeg", {})
        return cls(
            catalog.graph,
            source_dir,
            prefix,
            components=settings.get("components", ()),
            configure=settings.get("configure", ()),
            licenses=settings.get("licenses", {}),
            target=target,
            jobs=jobs,
        )

    def configure_command(self, subfeatures, accepted_licenses):
        feature_args = []
        for name in sorted(subfeatures):
            for arg in self.graph[name].configure:
                if arg not in feature_args:
                    feature_args.append(arg)

        command = [os.path.join(self.source_dir, "configure"), f"--prefix={self.prefix}"]
        command += self.base_configure
        if self.target:
            arch, target_os = parse_target(self.target)
            command += ["--enable-cross-compile", f"--arch={arch}", f"--target-os={target_os}"]
        if "--enable-static" not in feature_args:
            command += ["--enable-shared", "--disable-static"]
        for kind in sorted((LicenseKind.parse(k) for k in accepted_licenses), key=lambda k: k.value):
            flag = self.licenses.get(kind.value)
            if flag:
                command.append(flag)
        for component in self.components:
            if f"--enable-{component}" not in feature_args:
                command.append(f"--disable-{component}")
        command += feature_args
        return command

    def build_commands(self, subfeatures, accepted_licenses):
        return {
            "configure_command": self.configure_command(subfeatures, accepted_licenses),
            "build_command": ["make", "-j", str(self.jobs)],
            "install_command": ["make", "install"],
        }

    def _run(self, library, step, command):
        logger.info(f"  - {step} vendored FFmpeg for {library.name}...")
        stdout, stderr, return_code = run_shell_command(command, cwd=self.source_dir)
        if return_code != 0:
            tail = (stderr or stdout).strip().splitlines()[-10:]
            raise BuildError(library.name, f"{step} failed with exit code {return_code}: {' '.join(tail)}")

    def _install(self, library, commands):
        key = tuple(commands["configure_command"])
        with self._lock:
            if key in self._installed:
                return
            if key in self._failed:
                raise BuildError(library.name, f"vendored FFmpeg build already failed: {self._failed[key].detail}")
            try:
                if not os.path.exists(os.path.join(self.source_dir, "configure")):
                    raise BuildError(library.name, f"no FFmpeg source tree at {self.source_dir}")
                os.makedirs(self.prefix, exist_ok=True)
                self._run(library, "Configuring", commands["configure_command"])
                self._run(library, "Building", commands["build_command"])
                self._run(library, "Installing", commands["install_command"])
            except BuildError as e:
                self._failed[key] = e
                raise
            self._installed.add(key)
            logger.success(f"Vendored FFmpeg installed to {self.prefix}")

    def build(self, library, descriptor, subfeatures, accepted_licenses):
        if not descriptor or descriptor.get("source") != "ffmpeg":
            raise BuildError(library.name, "library has no vendored FFmpeg source")
        commands = self.build_commands(subfeatures, accepted_licenses)
        self._install(library, commands)

        static = "--enable-static" in commands["configure_command"]
        locator = PkgConfigLocator(search_paths=[os.path.join(self.prefix, "lib", "pkgconfig")])
        try:
            return locator.locate(library.pkg_config_name, static=static, link_name=library.link_name)
        except DiscoveryError as e:
            raise BuildError(library.name, f"install prefix has no usable metadata: {e}") from e
