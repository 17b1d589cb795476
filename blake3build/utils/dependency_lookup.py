"""
System dependency lookups used by the backend negotiator.

Every lookup answers ``find(name, min_version)`` with a LookupResult; a
library older than ``min_version`` counts as not found.
"""
from dataclasses import dataclass
from typing import Optional

from packaging.version import parse as parse_version, InvalidVersion

from ..cli_logger import logger
from .command_executor import run_shell_command


@dataclass(frozen=True)
class LookupResult:
    found: bool
    handle: Optional[str] = None
    version: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def not_found(cls):
        return cls(found=False)


def satisfies(version, min_version):
    """Returns True when ``version`` is at or above ``min_version``."""
    if min_version is None:
        return True
    try:
        return parse_version(version) >= parse_version(min_version)
    except (InvalidVersion, TypeError):
        logger.warning(f"  - Could not compare version '{version}' against '{min_version}'.")
        return False


class DependencyLookup:
    def find(self, name: str, min_version: Optional[str] = None) -> LookupResult:
        raise NotImplementedError


class StaticLookup(DependencyLookup):
    """Answers from a fixed table of ``name -> version`` or ``name -> LookupResult``."""

    def __init__(self, packages=None, handles=None):
        self.packages = dict(packages or {})
        self.handles = dict(handles or {})

    def find(self, name, min_version=None):
        entry = self.packages.get(name)
        if entry is None:
            return LookupResult.not_found()
        if isinstance(entry, LookupResult):
            result = entry
        else:
            result = LookupResult(found=True, handle=self.handles.get(name, name), version=str(entry))
        if not result.found or not satisfies(result.version, min_version):
            return LookupResult.not_found()
        return result


class PkgConfigLookup(DependencyLookup):
    """Queries ``pkg-config`` for an installed library."""

    def __init__(self, executable="pkg-config", handles=None, env=None):
        self.executable = executable
        self.handles = dict(handles or {})
        self.env = env

    def find(self, name, min_version=None):
        stdout, stderr, returncode = run_shell_command(
            [self.executable, "--modversion", name], env=self.env
        )
        if returncode != 0:
            if stderr.strip():
                logger.debug(f"  - pkg-config: {stderr.strip()}")
            return LookupResult.not_found()
        version = stdout.strip()
        if not satisfies(version, min_version):
            logger.info(f"  - Found {name} {version}, but at least {min_version} is required.")
            return LookupResult.not_found()

        location = None
        libdir_out, _, libdir_rc = run_shell_command(
            [self.executable, "--variable=libdir", name], env=self.env
        )
        if libdir_rc == 0 and libdir_out.strip():
            location = libdir_out.strip()
        return LookupResult(found=True, handle=self.handles.get(name, name), version=version, location=location)


class ChainLookup(DependencyLookup):
    """Tries each lookup in order and returns the first hit."""

    def __init__(self, *lookups):
        self.lookups = lookups

    def find(self, name, min_version=None):
        for lookup in self.lookups:
            result = lookup.find(name, min_version)
            if result.found:
                return result
        return LookupResult.not_found()
