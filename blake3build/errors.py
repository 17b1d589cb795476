class FatalConfigurationError(Exception):
    """Raised when the build tables cannot cover the selected strategy.

    These always point at a gap in the flag or source tables rather than an
    unsupported target, so configuration must stop instead of degrading.
    """

    def __init__(self, message, strategy=None, combination=None):
        super().__init__(message)
        self.strategy = strategy
        self.combination = combination


class MissingSourceManifestError(FatalConfigurationError):
    pass


class MissingCapabilityFlagsError(FatalConfigurationError):
    def __init__(self, message, strategy=None, combination=None, missing=()):
        super().__init__(message, strategy, combination)
        self.missing = tuple(missing)


class UnknownStrategyError(FatalConfigurationError):
    pass
