# shopsearch/domain/errors.py
"""
Failure taxonomy for the search engine.

Only InvalidInput ever reaches callers of the ranking entry points; every other
error is caught inside the orchestrator and triggers the next fallback.
"""


class SearchEngineError(Exception):
    """Base class for engine failures."""


class NotFound(SearchEngineError):
    """A product or user reference does not resolve."""

    def __init__(self, kind: str, ref: str):
        super().__init__(f"{kind} not found: {ref}")
        self.kind = kind
        self.ref = ref


class CollaboratorTimeout(SearchEngineError):
    """An external call exceeded its budget."""

    def __init__(self, operation: str, budget_s: float):
        super().__init__(f"{operation} exceeded {budget_s:.2f}s")
        self.operation = operation
        self.budget_s = budget_s


class UpstreamFailure(SearchEngineError):
    """An external collaborator returned an error."""


class InvalidInput(SearchEngineError):
    """Query too short to search; callers should ask for more input."""

    def __init__(self, message: str = "Please enter at least 2 characters to search."):
        super().__init__(message)
        self.message = message
