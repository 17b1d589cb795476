"""
Collapses the raw platform signals of a configuration run into one PlatformKey.

Architecture identifiers are matched exactly against per-class alias lists.
Several aliases are substrings of unrelated names, so prefix, substring and
case-folded comparisons are never used.
"""
from dataclasses import dataclass, field
from typing import Optional

from .cli_logger import logger
from .enums import ArchitectureClass, CompilerFrontend, OsFamily, StrategyTag

AMD64_NAMES = ("amd64", "AMD64", "x86_64")
X86_NAMES = ("i686", "x86", "X86")
ARMV8_NAMES = ("aarch64", "AArch64", "arm64", "ARM64", "armv8", "armv8a")

# identities reported by the compiler itself (MSVC architecture ids)
COMPILER_AMD64_NAMES = ("x64", "X64")

GNU_LIKE_COMPILER_IDS = ("GNU", "Clang", "AppleClang")

WINDOWS_SYSTEM_NAMES = ("Windows", "CYGWIN", "MSYS", "WindowsStore", "WindowsPhone")
UNIX_SYSTEM_NAMES = (
    "Linux", "Darwin", "FreeBSD", "OpenBSD", "NetBSD", "DragonFly",
    "Android", "iOS", "SunOS", "Emscripten", "Haiku", "GNU",
)

NEON_ANDROID_ABIS = ("armeabi-v7a",)

# [platform] keys that pin the target independently of the host compiler
CROSS_BUILD_KEYS = ("system_processor", "osx_architectures")

# without these the [platform] table cannot stand in for host detection
REQUIRED_PLATFORM_KEYS = ("system_name", "system_processor", "compiler_id")


def platform_complete(conf):
    platform_conf = conf.get("platform", {})
    return all(platform_conf.get(name) for name in REQUIRED_PLATFORM_KEYS)


@dataclass(frozen=True)
class RawSignals:
    """Platform signals as reported by the host, toolchain or user.

    Any field may be empty; ``osx_architectures`` holds every architecture
    of a multi-architecture build in declaration order.
    """
    system_name: str = ""
    system_processor: str = ""
    osx_architectures: tuple = ()
    compiler_id: str = ""
    compiler_frontend_variant: str = ""
    compiler_architecture_id: str = ""
    sizeof_void_p: Optional[int] = None
    android_abi: str = ""

    @classmethod
    def from_config(cls, conf, host=None):
        """Builds signals from the [platform] table, falling back to ``host``.

        A user-pinned processor or architecture list describes a cross build,
        so the host compiler's own target is not taken in that case.
        """
        host = host or cls()
        platform_conf = conf.get("platform", {})
        values = {}
        for name in cls.__dataclass_fields__:
            if name in platform_conf:
                values[name] = platform_conf[name]
            else:
                values[name] = getattr(host, name)
        if "compiler_architecture_id" not in platform_conf and any(
                platform_conf.get(name) for name in CROSS_BUILD_KEYS):
            values["compiler_architecture_id"] = ""
        values["osx_architectures"] = split_architecture_list(values["osx_architectures"])
        if values["sizeof_void_p"] in ("", None):
            values["sizeof_void_p"] = None
        else:
            values["sizeof_void_p"] = int(values["sizeof_void_p"])
        return cls(**values)


@dataclass(frozen=True)
class Overrides:
    """User-set cache values that persist across reconfiguration."""
    simd_type: Optional[str] = None
    use_neon_intrinsics: bool = False
    cflags: dict = field(default_factory=dict)
    cxxflags: dict = field(default_factory=dict)
    amd64_asm_sources: Optional[tuple] = None

    @classmethod
    def from_config(cls, conf):
        cache = conf.get("cache", {})
        asm_sources = cache.get("amd64_asm_sources")
        return cls(
            simd_type=cache.get("simd_type") or None,
            use_neon_intrinsics=bool(cache.get("use_neon_intrinsics", False)),
            cflags=dict(cache.get("cflags", {})),
            cxxflags=dict(cache.get("cxxflags", {})),
            amd64_asm_sources=tuple(asm_sources) if asm_sources else None,
        )


@dataclass(frozen=True)
class PlatformKey:
    architecture_class: ArchitectureClass
    pointer_width: int
    compiler_frontend: CompilerFrontend
    os_family: OsFamily
    explicit_override: Optional[StrategyTag] = None
    compiler_identity_reported: bool = False
    neon_requested: bool = False
    target_arch: str = ""

    @property
    def combination(self):
        """The OS/compiler pair the source and flag tables are keyed on."""
        return f"os={self.os_family.value}, compiler={self.compiler_frontend.value}"


def split_architecture_list(value):
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(";") if part.strip())
    return tuple(value)


def classify_architecture(name, compiler_identity=False):
    """Maps an architecture identifier onto its class by exact alias match.

    ``x64``/``X64`` are only recognised when the compiler reported the name.
    """
    if name in AMD64_NAMES or (compiler_identity and name in COMPILER_AMD64_NAMES):
        return ArchitectureClass.AMD64
    if name in X86_NAMES:
        return ArchitectureClass.X86
    if name in ARMV8_NAMES:
        return ArchitectureClass.ARMV8
    return ArchitectureClass.OTHER


def classify_frontend(compiler_id, frontend_variant=""):
    if frontend_variant == "MSVC":
        return CompilerFrontend.MSVC
    if frontend_variant == "GNU":
        return CompilerFrontend.GNU
    if compiler_id == "MSVC":
        return CompilerFrontend.MSVC
    if compiler_id in GNU_LIKE_COMPILER_IDS:
        return CompilerFrontend.GNU
    return CompilerFrontend.OTHER


def classify_os(system_name):
    if system_name in WINDOWS_SYSTEM_NAMES or system_name.startswith(("CYGWIN", "MINGW", "MSYS")):
        return OsFamily.WINDOWS
    if system_name in UNIX_SYSTEM_NAMES:
        return OsFamily.UNIX
    return OsFamily.OTHER


def pointer_width_bits(sizeof_void_p):
    if sizeof_void_p in (4, 32):
        return 32
    return 64


def select_target_arch(signals):
    """
    Picks the architecture string that decides the build.

    Returns:
        tuple: (architecture string, True when it is the compiler's own identity)
    """
    if signals.osx_architectures:
        target_arch = signals.osx_architectures[0]
        if len(signals.osx_architectures) > 1:
            logger.info(f"Multiple architectures specified: {';'.join(signals.osx_architectures)}")
            logger.info(f"Using architecture for BLAKE3 SIMD: {target_arch}")
        return target_arch, False
    if signals.compiler_architecture_id:
        return signals.compiler_architecture_id, True
    return signals.system_processor, False


def normalize(signals, overrides=None):
    """
    Builds the PlatformKey for one configuration run.

    Unknown architecture, OS or compiler strings map to their OTHER class.
    An unrecognised strategy override raises UnknownStrategyError.
    """
    overrides = overrides or Overrides()
    target_arch, from_compiler = select_target_arch(signals)

    explicit_override = None
    if overrides.simd_type:
        explicit_override = StrategyTag.parse(overrides.simd_type)

    key = PlatformKey(
        architecture_class=classify_architecture(target_arch, compiler_identity=from_compiler),
        pointer_width=pointer_width_bits(signals.sizeof_void_p),
        compiler_frontend=classify_frontend(signals.compiler_id, signals.compiler_frontend_variant),
        os_family=classify_os(signals.system_name),
        explicit_override=explicit_override,
        compiler_identity_reported=from_compiler,
        neon_requested=overrides.use_neon_intrinsics or signals.android_abi in NEON_ANDROID_ABIS,
        target_arch=target_arch,
    )
    logger.info(f"BLAKE3_TARGET_ARCH: {target_arch or '<unknown>'} ({key.architecture_class.value})")
    logger.info(f"System processor: {signals.system_processor or '<unknown>'} (original)")
    return key
