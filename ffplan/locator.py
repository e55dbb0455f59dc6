import os
import shlex
from dataclasses import dataclass

from .cli_logger import logger
from .errors import DiscoveryError, LibraryNotFound, MalformedMetadata
from .utils import run_shell_command

# Linker flags pkg-config may report that carry no library or search path.
IGNORED_LINK_FLAGS = ("-pthread", "-rdynamic", "-Wl,", "-m", "-f")


@dataclass(frozen=True)
class LibraryMetadata:
    include_paths: tuple = ()
    link_paths: tuple = ()
    link_directives: tuple = ()
    version: str = ""


def _split(name, output):
    try:
        return shlex.split(output)
    except ValueError as e:
        raise MalformedMetadata(name, f"cannot split pkg-config output {output!r}: {e}") from None


def parse_include_flags(name, output):
    paths = []
    for token in _split(name, output):
        if token.startswith("-I") and len(token) > 2:
            paths.append(token[2:])
        else:
            raise MalformedMetadata(name, f"unexpected include flag '{token}'")
    return tuple(paths)


def parse_link_flags(name, output, static=False, link_name=None):
    """Split ``--libs`` output into search paths and (kind, name) directives.

    With static linking only the library's own ``link_name`` is marked
    static; its private dependencies stay dynamic.
    """
    paths, directives = [], []
    tokens = _split(name, output)
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token == "-framework":
            if index + 1 >= len(tokens):
                raise MalformedMetadata(name, "'-framework' without a framework name")
            directives.append(("framework", tokens[index + 1]))
            index += 2
            continue
        if token.startswith("-L") and len(token) > 2:
            paths.append(token[2:])
        elif token.startswith("-l") and len(token) > 2:
            lib = token[2:]
            kind = "static" if static and lib == link_name else "dylib"
            directives.append((kind, lib))
        elif os.path.isabs(token) and token.endswith((".a", ".so", ".dylib", ".lib")):
            base = os.path.basename(token)
            lib = os.path.splitext(base[3:] if base.startswith("lib") else base)[0]
            paths.append(os.path.dirname(token))
            directives.append(("static" if token.endswith((".a", ".lib")) else "dylib", lib))
        elif token.startswith(IGNORED_LINK_FLAGS):
            logger.debug(f"Ignoring linker flag '{token}' reported for {name}")
        else:
            raise MalformedMetadata(name, f"unexpected link flag '{token}'")
        index += 1
    return tuple(paths), tuple(directives)


class PkgConfigLocator:
    """Looks up installed libraries in the pkg-config registry.

    Each library is queried once; there is no retry and no fallback.
    """

    def __init__(self, executable=None, search_paths=()):
        self.executable = executable or os.environ.get("PKG_CONFIG", "pkg-config")
        self.search_paths = tuple(search_paths)

    def _env(self):
        env = os.environ.copy()
        if self.search_paths:
            existing = env.get("PKG_CONFIG_PATH")
            env["PKG_CONFIG_PATH"] = os.pathsep.join(self.search_paths + ((existing,) if existing else ()))
        return env

    def _query(self, name, *args):
        stdout, stderr, return_code = run_shell_command([self.executable, *args, name], env=self._env())
        if return_code == -1:
            raise DiscoveryError(name, f"could not run {self.executable}: {stderr.strip()}")
        return stdout, stderr, return_code

    def _query_field(self, name, *args):
        stdout, stderr, return_code = self._query(name, *args)
        if return_code != 0:
            raise MalformedMetadata(name, f"'{' '.join(args)}' failed: {stderr.strip()}")
        return stdout.strip()

    def locate(self, name, static=False, link_name=None):
        logger.info(f"  - Locating {name} with {self.executable}...")
        _, stderr, return_code = self._query(name, "--exists", "--print-errors")
        if return_code != 0:
            raise LibraryNotFound(name, stderr.strip() or "no pkg-config record")

        version = self._query_field(name, "--modversion")
        if not version:
            raise MalformedMetadata(name, "empty version")

        include_paths = parse_include_flags(name, self._query_field(name, "--cflags-only-I"))
        libs_args = ("--libs", "--static") if static else ("--libs",)
        link_paths, link_directives = parse_link_flags(
            name, self._query_field(name, *libs_args), static=static, link_name=link_name
        )
        logger.info(f"  - Found {name} {version}")
        return LibraryMetadata(
            include_paths=include_paths,
            link_paths=link_paths,
            link_directives=link_directives,
            version=version,
        )

    def exists(self, name):
        _, _, return_code = self._query(name, "--exists")
        return return_code == 0
