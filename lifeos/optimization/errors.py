"""Error taxonomy of the optimization pipeline."""


class OptimizationError(Exception):
    """Base class for optimizer errors"""


class DataUnavailable(OptimizationError):
    """Events or preferences could not be loaded.

    Detectors treat the affected range as empty.
    """


class CollaboratorUnavailable(OptimizationError):
    """A collaborator call failed or timed out."""

    def __init__(self, collaborator: str, operation: str, detail: str = ""):
        message = f"{collaborator}.{operation} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.collaborator = collaborator
        self.operation = operation


class InvalidSuggestion(OptimizationError):
    """The suggestion is no longer pending (resolved concurrently)."""

    def __init__(self, suggestion_id: str):
        super().__init__(f"Suggestion '{suggestion_id}' is not pending")
        self.suggestion_id = suggestion_id
