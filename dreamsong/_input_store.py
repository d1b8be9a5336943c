"""Shared dream input: one value cell observed by every interpreter slot.

Writes are synchronous: the value is replaced and every listener is called
before ``write()`` returns, so the next ``read()`` anywhere sees the new text.
No validation happens here; blank input is rejected at trigger time.
"""

from __future__ import annotations

from collections.abc import Callable

InputListener = Callable[[str], None]


class SharedInputStore:
    """Session-lifetime holder of the single current dream text."""

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._listeners: list[InputListener] = []

    def read(self) -> str:
        return self._text

    def write(self, new_text: str) -> None:
        self._text = new_text
        # Copy so a listener may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(new_text)

    def subscribe(self, listener: InputListener) -> Callable[[], None]:
        """Register *listener*; returns an idempotent unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
