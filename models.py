from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(eq=False)
class _Node:
    value: bytes                       # owned copy, never the caller's buffer
    next: Optional["_Node"] = None


class QueueStatus(Enum):
    SUCCESS = "SUCCESS"
    QUEUE_ABSENT = "QUEUE_ABSENT"
    QUEUE_EMPTY = "QUEUE_EMPTY"
    ALLOCATION_FAILED = "ALLOCATION_FAILED"

    @property
    def ok(self) -> bool:
        return self is QueueStatus.SUCCESS
