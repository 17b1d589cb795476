from dataclasses import dataclass

from .cli_logger import logger
from . import fetcher
from .backend import BackendStatus, negotiate
from .config import get_option
from .metadata import feature_summary, package_fields
from .platform_key import Overrides, RawSignals, normalize, platform_complete
from .strategy import resolve
from .utils.dependency_lookup import PkgConfigLookup, StaticLookup
from .utils.host_probe import detect_cxx_stdlib, detect_signals


@dataclass(frozen=True)
class ConfigurationResult:
    key: object
    plan: object
    decision: object
    package_fields: dict
    features: list

    def to_dict(self):
        return {
            "platform": {
                "architecture_class": self.key.architecture_class.value,
                "pointer_width": self.key.pointer_width,
                "compiler_frontend": self.key.compiler_frontend.value,
                "os_family": self.key.os_family.value,
                "target_arch": self.key.target_arch,
            },
            "plan": self.plan.to_dict(),
            "backend": self.decision.to_dict(),
            "package": self.package_fields,
            "features": [name for name, _ in self.features],
        }


def gather_signals(conf, cc=None):
    """RawSignals for a run: the [platform] table, with the host probed only for what it lacks."""
    host = None if platform_complete(conf) else detect_signals(cc)
    return RawSignals.from_config(conf, host)


def configure_project(conf, signals, lookup=None, stdlib=None, stdlib_probe=None, fetch=None):
    """
    Runs normalization, strategy resolution and backend negotiation for one configuration.

    Raises:
        FatalConfigurationError: propagated from normalization or resolution; no plan is produced.
    """
    overrides = Overrides.from_config(conf)
    use_tbb = get_option(conf, "use_tbb")
    fetch_tbb = get_option(conf, "fetch_tbb")
    shared = get_option(conf, "shared")

    key = normalize(signals, overrides)
    plan = resolve(key, overrides=overrides, shared=shared)

    if use_tbb and stdlib is None:
        stdlib = conf.get("platform", {}).get("cxx_stdlib") or (stdlib_probe or detect_cxx_stdlib)()
    lookup = lookup or PkgConfigLookup(handles={"tbb": "TBB::tbb"})
    decision = negotiate(use_tbb, fetch_tbb, lookup, key, stdlib=stdlib, cxxflags=overrides.cxxflags)

    if decision.status is BackendStatus.FETCH_REQUESTED:
        fetched = (fetch or fetcher.fetch_tbb)(decision.version)
        decision = negotiate(
            True,
            False,
            StaticLookup(fetcher.fetched_packages(fetched)),
            key,
            stdlib=stdlib,
            cxxflags=overrides.cxxflags,
        )

    features = feature_summary(plan, decision)
    logger.info("Enabled features:")
    for name, description in features:
        logger.step_info(f"* {name}, {description}", indent=2)

    return ConfigurationResult(
        key=key,
        plan=plan,
        decision=decision,
        package_fields=package_fields(plan, decision, shared=shared),
        features=features,
    )
