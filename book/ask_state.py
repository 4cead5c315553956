"""
In-memory best-ask store, keyed by token id.

One instance lives per feed connection and is discarded on reconnect. It is
owned by the supervisor's receive loop and never shared across tasks, so it
carries no lock.
"""

from __future__ import annotations


class AskState:
    """Latest received best ask per token. Last write wins."""

    def __init__(self) -> None:
        self._asks: dict[str, float] = {}

    def get(self, token_id: str) -> float | None:
        return self._asks.get(token_id)

    def set(self, token_id: str, price: float) -> None:
        self._asks[token_id] = price

    def get_pair(self, id_a: str, id_b: str) -> tuple[float | None, float | None]:
        return self._asks.get(id_a), self._asks.get(id_b)

    def snapshot(self) -> dict[str, float]:
        """Copy of the current state."""
        return dict(self._asks)

    def __len__(self) -> int:
        return len(self._asks)
