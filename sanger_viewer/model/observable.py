# sanger_viewer/model/observable.py

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")


class Observable(Generic[T]):
    """
    Minimal push-based notifier, independent of Qt.

    Models expose one Observable per kind of change; widgets subscribe and
    bridge into their own repaint logic. Callbacks run synchronously, in
    subscription order.
    """

    def __init__(self) -> None:
        self._callbacks: List[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """
        Registers a callback and returns the matching unsubscribe function.
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, value: T) -> None:
        # Copy: a callback may unsubscribe itself while we iterate
        for callback in list(self._callbacks):
            callback(value)

    def __len__(self) -> int:
        return len(self._callbacks)
