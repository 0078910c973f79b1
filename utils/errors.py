"""Error taxonomy for representation building."""


class HalError(Exception):
    """Base class for every error raised while building HAL documents."""


class ValidationError(HalError, ValueError):
    """Malformed namespace, rel or link configuration."""


class UnknownRelError(HalError, LookupError):
    """Strict-mode lookup of a rel that was never declared."""


class NotFoundError(HalError, LookupError):
    """Reference to an unknown namespace or named route."""


class MalformedUrlError(HalError, ValueError):
    """An href that cannot be resolved as a URL."""


class PipelineError(HalError):
    """Failure inside the entity transform pipeline (hooks, embedded declarations)."""


# configuration problems a developer has to fix, as opposed to runtime failures
CONFIGURATION_ERRORS = (UnknownRelError, NotFoundError)
