"""Error types raised by focuslist."""


class FocusListError(Exception):
    """Base class for all focuslist errors."""

    pass


class ValidationFailure(FocusListError):
    """Raised when a task draft is rejected before any mutation is issued."""

    pass


class SubscriptionFailure(FocusListError):
    """Raised when the live task listing cannot be established or maintained."""

    pass


class MutationFailure(FocusListError):
    """Raised when the store rejects a create, toggle or delete."""

    pass


class TaskNotFoundError(MutationFailure):
    """Raised when a mutation names a task that is not in the collection."""

    def __init__(self, task_id: str):
        super().__init__(f"No task with id {task_id!r}")
        self.task_id = task_id


class NotAuthenticatedError(FocusListError):
    """Raised when a mutation is attempted without an active session."""

    pass


class ConfigError(FocusListError):
    """Raised when the configuration cannot be used to build a store."""

    pass
