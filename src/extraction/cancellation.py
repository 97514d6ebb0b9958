from __future__ import annotations

CANCELLED_BY_USER = "EXTRACT_CANCELLED"
DECLINED_CONFIRMATION = "EXTRACT_DECLINED_CONFIRMATION"


class ExtractionCancelled(Exception):
    """Raised at a checkpoint once cancellation has been requested."""

    def __init__(self, reason: str = "cancelled by user", *, code: str = CANCELLED_BY_USER) -> None:
        super().__init__(reason)
        self.reason = reason
        self.code = code


class CancellationToken:
    """
    Cooperative cancellation signal shared between a caller and one run.

    The orchestrator samples it at fixed checkpoints only; cancelling between
    checkpoints takes effect at the next one.
    """

    __slots__ = ("_cancelled", "_reason")

    def __init__(self) -> None:
        self._cancelled = False
        self._reason = "cancelled by user"

    def cancel(self, reason: str | None = None) -> None:
        self._cancelled = True
        if reason:
            self._reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ExtractionCancelled(self._reason)
