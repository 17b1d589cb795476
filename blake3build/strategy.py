"""
Implementation strategy resolution and source-set assembly.

The strategy is picked by the first matching entry of RULES, which prefers
hand written assembly over intrinsics over the portable fallback. The
selected strategy is then checked against the flag and source tables; a gap
in either is a FatalConfigurationError rather than a silent downgrade.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from .cli_logger import logger
from .enums import (
    ArchitectureClass,
    Capability,
    CompilerFrontend,
    OsFamily,
    StrategyTag,
    X86_CAPABILITIES,
)
from .errors import (
    FatalConfigurationError,
    MissingCapabilityFlagsError,
    MissingSourceManifestError,
    UnknownStrategyError,
)

PORTABLE_SOURCES = ("blake3.c", "blake3_dispatch.c", "blake3_portable.c")

# default compiler flags per frontend, each entry overridable from the cache
DEFAULT_CFLAGS = {
    CompilerFrontend.MSVC: {
        Capability.SSE2: "/arch:SSE2",
        # MSVC has no dedicated SSE4.1 switch
        Capability.SSE4_1: "/arch:AVX",
        Capability.AVX2: "/arch:AVX2",
        Capability.AVX512: "/arch:AVX512",
    },
    CompilerFrontend.GNU: {
        Capability.SSE2: "-msse2",
        Capability.SSE4_1: "-msse4.1",
        Capability.AVX2: "-mavx2",
        Capability.AVX512: "-mavx512f -mavx512vl",
    },
}

# 32-bit ARMv8 needs NEON to be enabled explicitly
GNU_NEON_CFLAGS = "-mfpu=neon"

AMD64_ASM_SOURCES = {
    (OsFamily.WINDOWS, CompilerFrontend.MSVC): (
        "blake3_avx2_x86-64_windows_msvc.asm",
        "blake3_avx512_x86-64_windows_msvc.asm",
        "blake3_sse2_x86-64_windows_msvc.asm",
        "blake3_sse41_x86-64_windows_msvc.asm",
    ),
    (OsFamily.WINDOWS, CompilerFrontend.GNU): (
        "blake3_avx2_x86-64_windows_gnu.S",
        "blake3_avx512_x86-64_windows_gnu.S",
        "blake3_sse2_x86-64_windows_gnu.S",
        "blake3_sse41_x86-64_windows_gnu.S",
    ),
    (OsFamily.UNIX, CompilerFrontend.GNU): (
        "blake3_avx2_x86-64_unix.S",
        "blake3_avx512_x86-64_unix.S",
        "blake3_sse2_x86-64_unix.S",
        "blake3_sse41_x86-64_unix.S",
    ),
}

X86_INTRINSIC_SOURCES = (
    ("blake3_avx2.c", Capability.AVX2),
    ("blake3_avx512.c", Capability.AVX512),
    ("blake3_sse2.c", Capability.SSE2),
    ("blake3_sse41.c", Capability.SSE4_1),
)

NEON_INTRINSIC_SOURCES = (
    ("blake3_neon.c", Capability.NEON),
)

NONE_DEFINITIONS = (
    "BLAKE3_USE_NEON=0",
    "BLAKE3_NO_SSE2",
    "BLAKE3_NO_SSE41",
    "BLAKE3_NO_AVX2",
    "BLAKE3_NO_AVX512",
)


def _capability(name):
    if isinstance(name, Capability):
        return name
    # the cache spells it BLAKE3_CFLAGS_SSE4.1
    if name == "SSE4.1":
        return Capability.SSE4_1
    return Capability(name)


class FlagSet(Mapping):
    """Read-only capability -> compiler flag mapping.

    A missing capability means the compiler has no known flag for it.
    """

    def __init__(self, flags=None):
        self._flags = {_capability(name): value for name, value in dict(flags or {}).items()}

    def __getitem__(self, capability):
        try:
            return self._flags[_capability(capability)]
        except ValueError:
            raise KeyError(capability) from None

    def __iter__(self):
        return iter(self._flags)

    def __len__(self):
        return len(self._flags)

    def __contains__(self, capability):
        try:
            return _capability(capability) in self._flags
        except ValueError:
            return False

    def __eq__(self, other):
        if isinstance(other, FlagSet):
            return self._flags == other._flags
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._flags.items()))

    def __repr__(self):
        items = ", ".join(f"{cap.value}={flag!r}" for cap, flag in self._flags.items())
        return f"FlagSet({items})"

    def missing(self, capabilities):
        return tuple(cap for cap in capabilities if cap not in self._flags)


def default_flags(key, overrides=None):
    """Returns the known-good flags for the key's compiler, with cache overrides applied."""
    flags = dict(DEFAULT_CFLAGS.get(key.compiler_frontend, {}))
    if (key.compiler_frontend is CompilerFrontend.GNU
            and key.architecture_class is ArchitectureClass.ARMV8
            and key.pointer_width != 64):
        flags[Capability.NEON] = GNU_NEON_CFLAGS
    if overrides is not None:
        for name, value in overrides.cflags.items():
            try:
                flags[_capability(name)] = value
            except ValueError:
                known = ", ".join(cap.value for cap in Capability)
                raise FatalConfigurationError(
                    f"Unknown capability '{name}' in cache.cflags (expected one of: {known}).",
                    combination=key.combination,
                ) from None
    return FlagSet(flags)


@dataclass(frozen=True)
class SourceFile:
    name: str
    flags: Optional[str] = None


@dataclass(frozen=True)
class SourceManifest:
    files: tuple = ()

    def __iter__(self):
        return iter(self.files)

    def __len__(self):
        return len(self.files)

    def names(self):
        return [source.name for source in self.files]

    def flags_for(self, name):
        for source in self.files:
            if source.name == name:
                return source.flags
        raise KeyError(name)

    def extend(self, files):
        return SourceManifest(self.files + tuple(files))


@dataclass(frozen=True)
class BuildPlan:
    strategy: StrategyTag
    sources: SourceManifest
    definitions: frozenset = frozenset()
    compile_options: frozenset = frozenset()
    public_definitions: frozenset = frozenset()
    languages: tuple = ()

    def to_dict(self):
        return {
            "strategy": self.strategy.value,
            "sources": [
                {"name": source.name, "flags": source.flags} for source in self.sources
            ],
            "definitions": sorted(self.definitions),
            "public_definitions": sorted(self.public_definitions),
            "compile_options": sorted(self.compile_options),
            "languages": list(self.languages),
        }


# -------------------- Selection rules --------------------
# Each rule returns a StrategyTag when it applies, otherwise None.

def _rule_cached_override(key, flags):
    return key.explicit_override


def _rule_compiler_identity(key, flags):
    if key.compiler_frontend is not CompilerFrontend.MSVC or not key.compiler_identity_reported:
        return None
    return {
        ArchitectureClass.AMD64: StrategyTag.AMD64_ASM,
        ArchitectureClass.X86: StrategyTag.X86_INTRINSICS,
        ArchitectureClass.ARMV8: StrategyTag.NEON_INTRINSICS,
    }.get(key.architecture_class, StrategyTag.NONE)


def _rule_amd64_assembly(key, flags):
    if key.architecture_class is ArchitectureClass.AMD64:
        return StrategyTag.AMD64_ASM
    return None


def _rule_x86_intrinsics(key, flags):
    if key.architecture_class is ArchitectureClass.X86 and not flags.missing(X86_CAPABILITIES):
        return StrategyTag.X86_INTRINSICS
    return None


def _rule_neon_intrinsics(key, flags):
    wants_neon = key.architecture_class is ArchitectureClass.ARMV8 or key.neon_requested
    # 64-bit ARM implies NEON, no flag required
    if wants_neon and (Capability.NEON in flags or key.pointer_width == 64):
        return StrategyTag.NEON_INTRINSICS
    return None


def _rule_portable(key, flags):
    return StrategyTag.NONE


RULES = (
    ("cached-override", _rule_cached_override),
    ("compiler-identity", _rule_compiler_identity),
    ("amd64-assembly", _rule_amd64_assembly),
    ("x86-intrinsics", _rule_x86_intrinsics),
    ("neon-intrinsics", _rule_neon_intrinsics),
    ("portable", _rule_portable),
)


def select_strategy(key, flags):
    """Returns (strategy, rule name) for the first rule that applies."""
    for name, rule in RULES:
        strategy = rule(key, flags)
        if strategy is not None:
            return strategy, name
    return StrategyTag.NONE, "portable"


# -------------------- Manifest assembly --------------------

def _portable_manifest():
    return SourceManifest(tuple(SourceFile(name) for name in PORTABLE_SOURCES))


def _assemble_amd64_asm(key, flags, overrides):
    combination = (key.os_family, key.compiler_frontend)
    if overrides is not None and overrides.amd64_asm_sources:
        asm_sources = overrides.amd64_asm_sources
    else:
        asm_sources = AMD64_ASM_SOURCES.get(combination)
    if not asm_sources:
        raise MissingSourceManifestError(
            f"BLAKE3_SIMD_TYPE is set to '{StrategyTag.AMD64_ASM.value}' but no assembly sources "
            f"are available for the target architecture ({key.combination}).",
            strategy=StrategyTag.AMD64_ASM,
            combination=key.combination,
        )
    languages = ("ASM_MASM",) if key.compiler_frontend is CompilerFrontend.MSVC else ("ASM",)
    sources = _portable_manifest().extend(SourceFile(name) for name in asm_sources)
    return sources, (), (), languages


def _assemble_x86_intrinsics(key, flags, overrides):
    missing = flags.missing(X86_CAPABILITIES)
    if missing:
        names = ", ".join(cap.value for cap in missing)
        raise MissingCapabilityFlagsError(
            f"BLAKE3_SIMD_TYPE is set to '{StrategyTag.X86_INTRINSICS.value}' but no compiler flags "
            f"are available for the target architecture ({key.combination}; missing: {names}).",
            strategy=StrategyTag.X86_INTRINSICS,
            combination=key.combination,
            missing=missing,
        )
    sources = _portable_manifest().extend(
        SourceFile(name, flags[capability]) for name, capability in X86_INTRINSIC_SOURCES
    )
    return sources, (), (), ()


def _assemble_neon_intrinsics(key, flags, overrides):
    sources = _portable_manifest().extend(
        SourceFile(name, flags.get(capability)) for name, capability in NEON_INTRINSIC_SOURCES
    )
    options = ("-mfloat-abi=hard",) if key.pointer_width == 32 else ()
    return sources, ("BLAKE3_USE_NEON=1",), options, ()


def _assemble_portable(key, flags, overrides):
    return _portable_manifest(), NONE_DEFINITIONS, (), ()


ASSEMBLERS = {
    StrategyTag.AMD64_ASM: _assemble_amd64_asm,
    StrategyTag.X86_INTRINSICS: _assemble_x86_intrinsics,
    StrategyTag.NEON_INTRINSICS: _assemble_neon_intrinsics,
    StrategyTag.NONE: _assemble_portable,
}


def assemble_plan(strategy, key, flags, overrides=None, shared=False):
    """Builds the BuildPlan for an already selected strategy."""
    assembler = ASSEMBLERS.get(strategy)
    if assembler is None:
        raise UnknownStrategyError(
            f"BLAKE3_SIMD_TYPE is set to an unknown value: '{strategy}' ({key.combination})",
            strategy=strategy,
            combination=key.combination,
        )
    sources, definitions, options, languages = assembler(key, flags, overrides)

    definitions = set(definitions)
    public_definitions = set()
    if shared:
        public_definitions.add("BLAKE3_DLL")
        definitions.add("BLAKE3_DLL_EXPORTS")

    return BuildPlan(
        strategy=strategy,
        sources=sources,
        definitions=frozenset(definitions),
        compile_options=frozenset(options),
        public_definitions=frozenset(public_definitions),
        languages=tuple(languages),
    )


def resolve(key, available_flags=None, overrides=None, shared=False):
    """
    Resolves the implementation strategy and its build plan for a platform.

    Args:
        key (PlatformKey): The normalized platform.
        available_flags (FlagSet, optional): Capability flags known for the compiler.
            Defaults to the built-in table for the key's frontend plus cache overrides.
        overrides (Overrides, optional): Cached user values.
        shared (bool): Whether the library is built as a shared library.

    Returns:
        BuildPlan: The plan for the packaging layer.

    Raises:
        FatalConfigurationError: The selected strategy has no source manifest or
            flag entries for this OS/compiler pair, or is not a known strategy.
    """
    flags = available_flags if available_flags is not None else default_flags(key, overrides)
    strategy, rule = select_strategy(key, flags)
    logger.info(f"BLAKE3 SIMD configuration: {key.target_arch or '<unknown>'} ({key.combination})")
    logger.info(f"Selected implementation strategy: {getattr(strategy, 'value', strategy)} (rule: {rule})")
    plan = assemble_plan(strategy, key, flags, overrides, shared=shared)
    logger.step_info(f"- {len(plan.sources)} source files", indent=2)
    return plan
