from __future__ import annotations

from typing import Sequence


class TaskThrowerError(Exception):
    """Base class for every error the task core raises on purpose."""

    code = "task_error"


class ValidationError(TaskThrowerError, ValueError):
    code = "validation_error"


class InvalidDate(TaskThrowerError, ValueError):
    code = "invalid_date"

    def __init__(self, value: object):
        super().__init__(f"Invalid ISO date: {value!r}")
        self.value = value


class PartialBatchFailure(TaskThrowerError):
    """
    A bulk write stopped partway.

    Chunks are atomic on their own but not together: `committed_ids` are already
    persisted, `pending_ids` were never written. Re-read before retrying, since
    increments from the first attempt would otherwise be applied twice.
    """

    code = "partial_batch_failure"

    def __init__(self, committed_ids: Sequence[str], pending_ids: Sequence[str]):
        self.committed_ids = list(committed_ids)
        self.pending_ids = list(pending_ids)
        # re-fetched state, filled in by the service before the error surfaces
        self.views = None
        super().__init__(
            f"batch update stopped after {len(self.committed_ids)} of "
            f"{len(self.committed_ids) + len(self.pending_ids)} tasks"
        )
