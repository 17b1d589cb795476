from enum import Enum

from .errors import UnknownStrategyError


class ArchitectureClass(Enum):
    AMD64 = "amd64"
    X86 = "x86"
    ARMV8 = "armv8"
    OTHER = "other"


class CompilerFrontend(Enum):
    MSVC = "MSVC"
    GNU = "GNU"
    OTHER = "other"


class OsFamily(Enum):
    WINDOWS = "windows"
    UNIX = "unix"
    OTHER = "other"


class Capability(Enum):
    SSE2 = "SSE2"
    SSE4_1 = "SSE4_1"
    AVX2 = "AVX2"
    AVX512 = "AVX512"
    NEON = "NEON"


X86_CAPABILITIES = (Capability.SSE2, Capability.SSE4_1, Capability.AVX2, Capability.AVX512)


class StrategyTag(Enum):
    AMD64_ASM = "amd64-asm"
    X86_INTRINSICS = "x86-intrinsics"
    NEON_INTRINSICS = "neon-intrinsics"
    NONE = "none"

    @classmethod
    def parse(cls, value):
        """Returns the tag for a cached string value such as ``"amd64-asm"``.

        Raises:
            UnknownStrategyError: the value is not one of the known strategies.
        """
        if isinstance(value, cls):
            return value
        for tag in cls:
            if tag.value == value:
                return tag
        known = ", ".join(f"'{tag.value}'" for tag in cls)
        raise UnknownStrategyError(
            f"BLAKE3_SIMD_TYPE is set to an unknown value: '{value}' (expected one of {known})",
            strategy=value,
        )
