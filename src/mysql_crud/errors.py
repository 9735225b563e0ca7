class ConfigError(ValueError):
    """Configuration is missing or invalid."""


class ArgumentError(ValueError):
    """Caller supplied an invalid filter, record shape or table."""


class GuardrailError(ArgumentError):
    """Identifier or statement failed a safety check."""


class MissingPrimaryKeyError(ArgumentError):
    """Write or delete was attempted without a resolvable id."""


class ExecutionError(RuntimeError):
    """The driver reported a failure while running a statement."""


class PoolExhaustedError(ExecutionError):
    """No pooled connection became available in time."""


class RelationNotFoundError(LookupError):
    """No naming convention links the two tables."""
