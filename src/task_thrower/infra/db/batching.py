from __future__ import annotations

import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

from task_thrower.domain.errors import PartialBatchFailure
from task_thrower.domain.task_models import TaskUpdate

logger = logging.getLogger("thrower.repo")

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    if size < 1:
        raise ValueError("size must be >= 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


async def commit_in_chunks(
    updates: Sequence[TaskUpdate],
    batch_size: int,
    commit_chunk: Callable[[List[TaskUpdate]], Awaitable[None]],
) -> None:
    """
    Commit `updates` one chunk at a time, each chunk atomically.

    Stops at the first failing chunk and raises PartialBatchFailure listing
    what was already committed and what never ran. Nothing is retried here.
    """
    parts = chunked(updates, batch_size)
    committed: List[str] = []
    for n, part in enumerate(parts):
        try:
            await commit_chunk(part)
        except Exception as e:
            pending = [u.task_id for p in parts[n:] for u in p]
            logger.error(
                "batch.failed",
                extra={
                    "category": "repo",
                    "event": "batch.failed",
                    "chunk": n,
                    "chunks": len(parts),
                    "committed": len(committed),
                    "pending": len(pending),
                    "error": repr(e),
                },
            )
            raise PartialBatchFailure(committed, pending) from e
        committed.extend(u.task_id for u in part)

    logger.debug(
        "batch.committed",
        extra={"category": "repo", "event": "batch.committed", "chunks": len(parts), "count": len(committed)},
    )
