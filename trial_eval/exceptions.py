"""
Exception hierarchy for the trial evaluation engine.

All exceptions inherit from TrialEvalError for easy catching.
"""


class TrialEvalError(Exception):
    """Base exception for the trial evaluation engine.

    All other exceptions in this module inherit from this,
    allowing callers to catch any engine error with a single except.
    """
    pass


class ValidationError(TrialEvalError, ValueError):
    """Malformed arguments handed to the engine.

    Raised when:
    - RunOptions fields are out of range (e.g. negative iterations)
    - A semaphore is created with fewer than one permit
    - A percentile is requested for an empty sample or outside [0, 100]
    - A suite already holds a trial with the same name

    Always raised before any trial is launched.
    """
    pass


class TimeoutError(TrialEvalError):
    """A single trial attempt exceeded its deadline.

    Consumed by the retry policy; it only reaches callers as the
    error string of an IterationResult.
    """
    pass


class TrialError(TrialEvalError):
    """Error raised from inside a trial body.

    Trial bodies may raise any exception; this one exists so they can
    signal an expected failure explicitly. Its message is preserved
    verbatim into IterationResult.error once retries are exhausted.
    """
    pass


class NoResultsAvailable(TrialEvalError):
    """Metrics were queried before any run completed.

    This signals a programming error in the calling code.
    """

    def __init__(self, message: str = "No run results available. Call run() first."):
        super().__init__(message)


class ConfigurationError(TrialEvalError):
    """Error in configuration.

    Raised when:
    - Config file not found
    - Config validation fails
    - Environment override cannot be parsed
    """
    pass
