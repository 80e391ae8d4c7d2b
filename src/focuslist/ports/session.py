"""Session provider interface."""

from typing import Callable, Protocol

SessionCallback = Callable[[str | None], None]


class SessionProvider(Protocol):
    """Supplies the signed-in user and signals when that changes."""

    @property
    def user_id(self) -> str | None:
        """Stable identifier of the signed-in user, or None."""
        ...

    def on_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Call back with the new user id (None on sign-out). Returns an unsubscribe."""
        ...
