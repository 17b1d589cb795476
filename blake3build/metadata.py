from .backend import BackendStatus
from .enums import StrategyTag

FEATURES = (
    ("AMD64 assembly", "The library uses hand written amd64 SIMD assembly."),
    ("x86 SIMD intrinsics", "The library uses x86 SIMD intrinsics."),
    ("NEON SIMD intrinsics", "The library uses NEON SIMD intrinsics."),
    ("oneTBB parallelism", "The library uses oneTBB parallelism."),
)

STRATEGY_FEATURES = {
    StrategyTag.AMD64_ASM: "AMD64 assembly",
    StrategyTag.X86_INTRINSICS: "x86 SIMD intrinsics",
    StrategyTag.NEON_INTRINSICS: "NEON SIMD intrinsics",
}


def join_field(entries, sep):
    return sep.join(entry for entry in entries if entry)


def package_fields(plan, decision, shared=False):
    """Returns the Requires, Libs and Cflags values of the package description."""
    requires = []
    libs = []
    cflags = []
    if shared:
        cflags.append("-DBLAKE3_DLL")
    if decision.status is BackendStatus.LINKED:
        requires.append(decision.pc_requires)
        cflags.extend(f"-D{name}" for name in sorted(decision.extra_definitions))
        if decision.stdlib_link_hint:
            libs.append(decision.stdlib_link_hint)
    return {
        "Requires": join_field(requires, ", "),
        "Libs": join_field(libs, " "),
        "Cflags": join_field(cflags, " "),
    }


def feature_summary(plan, decision):
    """Lists (feature, description) pairs for the enabled features."""
    enabled = set()
    if plan.strategy in STRATEGY_FEATURES:
        enabled.add(STRATEGY_FEATURES[plan.strategy])
    if decision.enabled:
        enabled.add("oneTBB parallelism")
    return [(name, description) for name, description in FEATURES if name in enabled]
