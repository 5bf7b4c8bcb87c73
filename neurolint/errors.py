# Error taxonomy for the analysis pipeline.
# Fatal errors abort a call before (or between) layers and surface at the adapter
# boundary as {success: false, error}. LayerExecutionError is recorded per layer
# and never aborts sibling layers.

from __future__ import annotations

from typing import Any, Sequence


class NeurolintError(Exception):
    """Base class for every error raised by the engine."""

    fatal = True


class ConfigError(NeurolintError):
    """Invalid configuration value or unknown configuration key."""


class InvalidLayerError(NeurolintError):
    """A requested layer number is outside 1..8 (or the selection is empty)."""

    def __init__(self, layers: Sequence[Any], message: str | None = None) -> None:
        self.layers = list(layers)
        if message is None:
            message = f"Invalid layer selection {self.layers!r}: layers must be integers between 1 and 8"
        super().__init__(message)


class EmptySourceError(NeurolintError):
    """Source text is empty or whitespace-only."""

    def __init__(self, filename: str | None = None) -> None:
        self.filename = filename
        super().__init__(f"Source is empty: {filename or '<input>'} contains no code to analyze")


class OversizedInputError(NeurolintError):
    """Source exceeds the configured size ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Input too large: {size} bytes exceeds the limit of {limit} bytes")


class SourceDecodeError(NeurolintError):
    """Source bytes are not valid UTF-8."""


class PipelineTimeoutError(NeurolintError, TimeoutError):
    """Wall-clock budget exceeded; raised only at a layer boundary."""

    def __init__(
        self,
        elapsed: float,
        budget: float,
        completed_layers: Sequence[int] = (),
        partial_issues: Sequence[Any] = (),
    ) -> None:
        self.elapsed = elapsed
        self.budget = budget
        self.completed_layers = list(completed_layers)
        self.partial_issues = list(partial_issues)
        super().__init__(
            f"Operation timeout: {elapsed:.2f}s exceeded the {budget:.2f}s budget "
            f"after layers {self.completed_layers}"
        )


class LayerExecutionError(NeurolintError):
    """A single layer failed during detect or fix. Non-fatal to the call."""

    fatal = False

    def __init__(self, layer: int, cause: BaseException) -> None:
        self.layer = layer
        self.cause = cause
        super().__init__(f"Layer {layer} failed: {type(cause).__name__}: {cause}")


class UnsupportedLanguageError(NeurolintError):
    """No grammar handles this file type; callers treat it as zero issues."""

    fatal = False

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"Unsupported file type: {filename}")


class FixApplicationError(NeurolintError):
    """A rewrite could not be applied safely; the input is returned untouched."""

    def __init__(self, message: str, rule: str | None = None) -> None:
        self.rule = rule
        super().__init__(message)
