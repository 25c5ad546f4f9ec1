# ABOUTME: Declares the exception hierarchy raised by the metrics engine.
# ABOUTME: Separates malformed client input from internal contract violations.


class MetricsEngineError(Exception):
    """Base class for every error the engine raises on purpose."""


class PayloadError(MetricsEngineError, ValueError):
    """A raw payload could not be decoded into its expected schema."""

    def __init__(self, kind: str, message: str):
        super().__init__(f"Invalid {kind} payload: {message}")
        self.kind = kind


class ContractViolation(MetricsEngineError, RuntimeError):
    """Calculator output broke an invariant the assembler relies on."""
