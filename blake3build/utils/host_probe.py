import os
import platform
import struct

from ..cli_logger import logger
from ..platform_key import RawSignals
from .command_executor import run_shell_command

MSVC_DRIVERS = ("cl", "cl.exe")
CLANG_CL_DRIVERS = ("clang-cl", "clang-cl.exe")

# VSCMD_ARG_TGT_ARCH -> MSVC architecture id
MSVC_TARGET_ARCH_IDS = {
    "x64": "x64",
    "x86": "X86",
    "arm64": "ARM64",
    "arm": "ARMV7",
}

STDLIB_MARKERS = (
    ("__GLIBCXX__", "libstdc++"),
    ("_LIBCPP_VERSION", "libc++"),
)


def default_c_compiler():
    if os.environ.get("CC"):
        return os.environ["CC"]
    return "cl" if platform.system() == "Windows" else "cc"


def default_cxx_compiler():
    if os.environ.get("CXX"):
        return os.environ["CXX"]
    return "cl" if platform.system() == "Windows" else "c++"


def detect_compiler_id(cc):
    """Identifies the compiler family the way CMake's compiler id does."""
    driver = os.path.basename(cc).lower()
    if driver in MSVC_DRIVERS:
        return "MSVC", "MSVC"
    if driver in CLANG_CL_DRIVERS:
        return "Clang", "MSVC"

    stdout, _, returncode = run_shell_command([cc, "--version"])
    if returncode != 0:
        logger.warning(f"  - Could not run '{cc} --version'; compiler id unknown.")
        return "", ""
    banner = stdout.lower()
    if "apple clang" in banner:
        return "AppleClang", "GNU"
    if "clang" in banner:
        return "Clang", "GNU"
    if "free software foundation" in banner or "gcc" in banner:
        return "GNU", "GNU"
    return "", ""


def detect_compiler_architecture_id(cc, frontend_variant):
    """Returns the target architecture the compiler itself reports, or ''."""
    if frontend_variant == "MSVC":
        target = os.environ.get("VSCMD_ARG_TGT_ARCH", "").lower()
        return MSVC_TARGET_ARCH_IDS.get(target, "")

    stdout, _, returncode = run_shell_command([cc, "-dumpmachine"])
    if returncode != 0 or not stdout.strip():
        return ""
    # target triples start with the architecture: aarch64-linux-gnu
    return stdout.strip().split("-", 1)[0]


def detect_signals(cc=None):
    """Collects RawSignals for the machine this tool runs on."""
    cc = cc or default_c_compiler()
    logger.info(f"Probing host platform with C compiler '{cc}'...")
    compiler_id, frontend_variant = detect_compiler_id(cc)
    signals = RawSignals(
        system_name=platform.system(),
        system_processor=platform.machine(),
        compiler_id=compiler_id,
        compiler_frontend_variant=frontend_variant,
        compiler_architecture_id=detect_compiler_architecture_id(cc, frontend_variant) if compiler_id else "",
        sizeof_void_p=struct.calcsize("P"),
        android_abi=os.environ.get("ANDROID_ABI", ""),
    )
    logger.step_info(f"- system: {signals.system_name} / {signals.system_processor}", indent=2)
    logger.step_info(f"- compiler: {compiler_id or '<unknown>'} ({frontend_variant or 'no frontend variant'})", indent=2)
    return signals


def detect_cxx_stdlib(cxx=None):
    """
    Reports which C++ standard library the compiler uses.

    Returns:
        str: "libstdc++", "libc++" or None when neither is recognized.
    """
    cxx = cxx or default_cxx_compiler()
    if os.path.basename(cxx).lower() in MSVC_DRIVERS:
        return None
    stdout, _, returncode = run_shell_command(
        [cxx, "-x", "c++", "-E", "-dM", "-"],
        input_data="#include <version>\n",
    )
    if returncode != 0:
        logger.debug(f"  - Could not preprocess with '{cxx}'; C++ standard library unknown.")
        return None
    for marker, stdlib in STDLIB_MARKERS:
        if f"#define {marker}" in stdout:
            return stdlib
    return None
