"""
Run options for the iteration engine.

RunOptions is validated once per run() call; any malformed field raises
ValidationError before a single trial is launched.
"""

from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional, Union

from ..config import EngineConfig
from ..exceptions import ValidationError

ProgressCallback = Callable[[int, int], None]

DEFAULT_CONCURRENCY = 5
DEFAULT_RETRIES = 0
DEFAULT_TIMEOUT_MS = 30000


def _require_int(name: str, value: Any) -> None:
    # bool is an int subclass but never a meaningful count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")


@dataclass
class RunOptions:
    """Options for a single run of N trials.

    Attributes:
        iterations: Number of trials to launch (>= 0)
        concurrency: Maximum trials in flight at once (>= 1)
        retries: Extra attempts per trial after the first (>= 0)
        timeout_ms: Deadline for each individual attempt (> 0)
        on_progress: Called as (completed, total) after each trial resolves
    """

    iterations: int
    concurrency: int = DEFAULT_CONCURRENCY
    retries: int = DEFAULT_RETRIES
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    on_progress: Optional[ProgressCallback] = None

    def __post_init__(self):
        _require_int("iterations", self.iterations)
        _require_int("concurrency", self.concurrency)
        _require_int("retries", self.retries)
        _require_int("timeout_ms", self.timeout_ms)

        if self.iterations < 0:
            raise ValidationError("iterations cannot be negative")
        if self.concurrency < 1:
            raise ValidationError("concurrency must be at least 1")
        if self.retries < 0:
            raise ValidationError("retries cannot be negative")
        if self.timeout_ms <= 0:
            raise ValidationError("timeout_ms must be positive")
        if self.on_progress is not None and not callable(self.on_progress):
            raise ValidationError("on_progress must be callable")

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        iterations: int,
        on_progress: Optional[ProgressCallback] = None,
        **overrides: Any,
    ) -> "RunOptions":
        """Build options whose unset fields come from engine config.

        Args:
            config: Engine defaults
            iterations: Number of trials
            on_progress: Optional progress callback
            **overrides: Explicit concurrency/retries/timeout_ms values

        Returns:
            Validated RunOptions
        """
        values = {
            "concurrency": config.concurrency,
            "retries": config.retries,
            "timeout_ms": config.timeout_ms,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls._build(dict(values, iterations=iterations, on_progress=on_progress))

    @classmethod
    def coerce(
        cls,
        options: Union["RunOptions", Mapping[str, Any], None] = None,
        **kwargs: Any,
    ) -> "RunOptions":
        """Normalize whatever the caller passed into RunOptions.

        Accepts an existing RunOptions (returned as is when no kwargs are
        given), a mapping of field values, or None plus keyword fields.

        Raises:
            ValidationError: If fields are missing, unknown or out of range
        """
        if isinstance(options, RunOptions):
            if not kwargs:
                return options
            values = {f.name: getattr(options, f.name) for f in fields(options)}
        elif options is None:
            values = {}
        elif isinstance(options, Mapping):
            values = dict(options)
        else:
            raise ValidationError(
                f"options must be RunOptions or a mapping, got {type(options).__name__}"
            )

        values.update(kwargs)
        return cls._build(values)

    @classmethod
    def _build(cls, values: dict) -> "RunOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValidationError(f"Unknown run option(s): {', '.join(unknown)}")
        if "iterations" not in values:
            raise ValidationError("iterations is required")
        return cls(**values)
