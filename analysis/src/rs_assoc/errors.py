"""
Exception types shared across the association pipeline.

- InvalidArgument: malformed partition request (bad response column or fraction)
- ConvergenceFailure: a single GLM fit did not converge; callers decide whether
  to drop the covariate or escalate
- FitError: the multivariate model for a response could not be fitted
"""


class InvalidArgument(ValueError):
    """Raised when a partition request is malformed."""


class ConvergenceFailure(RuntimeError):
    """Raised when a logistic GLM fit fails to converge or returns unusable estimates."""

    def __init__(self, message: str, terms: list[str] | None = None):
        super().__init__(message)
        self.terms = list(terms or [])


class FitError(RuntimeError):
    """Raised when the combined multivariate model for a response fails to fit."""

    def __init__(self, response: str, message: str):
        super().__init__(f"{response}: {message}")
        self.response = response
