"""
Module: session.generation

Purpose:
    Generation counters that let an async workflow discard fetch results
    made obsolete by a newer request or a context change.

Key Classes:
    - FetchGeneration: Monotonic token source for one kind of fetch
"""

from __future__ import annotations


class FetchGeneration:
    """
    Monotonic counter; a fetch is current only while no newer token exists.

    Example:
        >>> gen = FetchGeneration()
        >>> token = gen.advance()
        >>> gen.advance()  # a newer request supersedes the first
        2
        >>> gen.is_current(token)
        False
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        """Invalidate outstanding tokens and return a new one."""
        self._value += 1
        return self._value

    def is_current(self, token: int) -> bool:
        return token == self._value

    def __repr__(self) -> str:
        return f"FetchGeneration({self._value})"
