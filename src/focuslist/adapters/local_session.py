"""In-process session provider."""

import logging
from contextlib import suppress
from typing import Callable

from focuslist.ports.session import SessionCallback

logger = logging.getLogger(__name__)


class LocalSession:
    """
    Session whose user is set directly, e.g. from config or a CLI flag.

    Implements SessionProvider protocol.
    """

    def __init__(self, user_id: str | None = None):
        self._user_id = user_id
        self._callbacks: list[SessionCallback] = []

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def on_change(self, callback: SessionCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def _remove() -> None:
            with suppress(ValueError):
                self._callbacks.remove(callback)

        return _remove

    def sign_in(self, user_id: str) -> None:
        logger.info(f"Signed in as {user_id}")
        self._set(user_id)

    def sign_out(self) -> None:
        logger.info("Signed out")
        self._set(None)

    def _set(self, user_id: str | None) -> None:
        if user_id == self._user_id:
            return
        self._user_id = user_id
        for callback in list(self._callbacks):
            callback(user_id)
