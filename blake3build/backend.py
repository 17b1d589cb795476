"""
Negotiates the optional oneTBB parallel backend.

An unavailable backend is a degraded but valid outcome: it is reported with a
warning and the library is built without it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .cli_logger import logger
from .enums import CompilerFrontend

TBB_PACKAGE = "tbb"
TBB_MIN_VERSION = "2021.11.0"
TBB_LINK_TARGET = "TBB::tbb"
TBB_SOURCES = ("blake3_tbb.cpp",)
TBB_DEFINITIONS = ("BLAKE3_USE_TBB",)

STDLIB_LINK_HINTS = {
    "libstdc++": "-lstdc++",
    "libc++": "-lc++",
}

# exceptions and RTTI are disabled for the backend's private translation units only
PRIVATE_CXXFLAGS = {
    CompilerFrontend.GNU: ("-fno-exceptions", "-fno-rtti"),
    CompilerFrontend.MSVC: ("/EHs-c-", "/GR-"),
}


class BackendStatus(Enum):
    DISABLED = "disabled"
    LINKED = "linked"
    FETCH_REQUESTED = "fetch-requested"


@dataclass(frozen=True)
class BackendDecision:
    enabled: bool = False
    link_target: Optional[str] = None
    extra_sources: tuple = ()
    extra_definitions: frozenset = frozenset()
    stdlib_link_hint: Optional[str] = None
    status: BackendStatus = BackendStatus.DISABLED
    version: Optional[str] = None
    compile_options: tuple = ()
    pc_requires: Optional[str] = None

    def to_dict(self):
        return {
            "status": self.status.value,
            "enabled": self.enabled,
            "link_target": self.link_target,
            "version": self.version,
            "extra_sources": list(self.extra_sources),
            "extra_definitions": sorted(self.extra_definitions),
            "compile_options": list(self.compile_options),
            "stdlib_link_hint": self.stdlib_link_hint,
            "pc_requires": self.pc_requires,
        }


DISABLED = BackendDecision()


def stdlib_link_hint(stdlib):
    return STDLIB_LINK_HINTS.get(stdlib)


def private_compile_options(key, cxxflags=None):
    """C++ options for the backend sources, honouring BLAKE3_CXXFLAGS_<frontend> overrides."""
    cxxflags = cxxflags or {}
    override = cxxflags.get(key.compiler_frontend.value)
    if override is not None:
        if isinstance(override, str):
            return tuple(override.split())
        return tuple(override)
    return PRIVATE_CXXFLAGS.get(key.compiler_frontend, ())


def pc_package_name(key):
    return "tbb" if key.pointer_width == 64 else "tbb32"


def negotiate(requested, allow_fetch, lookup, key, stdlib=None, cxxflags=None):
    """
    Decides whether the parallel backend is linked.

    Args:
        requested (bool): BLAKE3_USE_TBB.
        allow_fetch (bool): BLAKE3_FETCH_TBB; a miss asks for a fetch instead of disabling.
        lookup (DependencyLookup): System dependency lookup.
        key (PlatformKey): The normalized platform.
        stdlib (str, optional): Active C++ standard library ("libstdc++" or "libc++").
        cxxflags (dict, optional): Cached per-frontend C++ flag overrides.

    Returns:
        BackendDecision
    """
    if not requested:
        return DISABLED

    result = lookup.find(TBB_PACKAGE, TBB_MIN_VERSION)
    if not result.found:
        if allow_fetch:
            logger.info(f"oneTBB >= {TBB_MIN_VERSION} not found; fetching it was requested.")
            return BackendDecision(status=BackendStatus.FETCH_REQUESTED, version=TBB_MIN_VERSION)
        logger.warning(
            "oneTBB not found; disabling BLAKE3_USE_TBB\n"
            "Enable BLAKE3_FETCH_TBB to automatically fetch and build oneTBB"
        )
        return DISABLED

    hint = stdlib_link_hint(stdlib)
    if hint is None:
        logger.debug("  - C++ standard library not recognized; no link hint for the package description.")
    decision = BackendDecision(
        enabled=True,
        link_target=result.handle or TBB_LINK_TARGET,
        extra_sources=TBB_SOURCES,
        extra_definitions=frozenset(TBB_DEFINITIONS),
        stdlib_link_hint=hint,
        status=BackendStatus.LINKED,
        version=result.version,
        compile_options=private_compile_options(key, cxxflags),
        pc_requires=f"{pc_package_name(key)} >= {result.version}",
    )
    logger.info(f"oneTBB {result.version} found: linking {decision.link_target}")
    return decision
