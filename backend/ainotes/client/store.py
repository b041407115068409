"""
AI Notes Backend: State Store
==============================

What:  Holds the current immutable snapshot, applies actions, and notifies
       subscribers with the set of top-level fields that changed.
Who:   Owned by NotesClient and AuthForm; observed by NotesView.

Subscription Contract:
    listener(new_state, changed_fields) is called synchronously after every
    dispatch that changed at least one field. A dispatch that yields an
    equal snapshot notifies nobody.
"""

import logging
from typing import Any, Callable, FrozenSet, Generic, List, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT", bound=BaseModel)
Listener = Callable[[Any, FrozenSet[str]], None]


def diff(old: BaseModel, new: BaseModel) -> FrozenSet[str]:
    """Names of the top-level fields whose values differ."""
    return frozenset(
        name for name in type(new).model_fields if getattr(old, name) != getattr(new, name)
    )


class Store(Generic[StateT]):
    def __init__(self, initial: StateT):
        self._state = initial
        self._listeners: List[Listener] = []

    @property
    def state(self) -> StateT:
        return self._state

    def dispatch(self, action: Callable[..., StateT], *args: Any, **kwargs: Any) -> StateT:
        old = self._state
        new = action(old, *args, **kwargs)
        changed = diff(old, new)
        self._state = new

        if changed:
            logger.debug("%s changed %s", action.__name__, sorted(changed))
            for listener in list(self._listeners):
                listener(new, changed)
        return new

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
