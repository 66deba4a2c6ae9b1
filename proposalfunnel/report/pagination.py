from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence


@dataclass(frozen=True)
class Pagination:
    first_chunk: list[str] = field(default_factory=list)
    continuation_chunks: list[list[str]] = field(default_factory=list)

    @property
    def line_count(self) -> int:
        return len(self.first_chunk) + sum(len(chunk) for chunk in self.continuation_chunks)


def paginate(lines: Sequence[str], first_capacity: int, continuation_capacity: int) -> Pagination:
    """Cut ``lines`` into a first-page chunk and fixed-size continuation chunks.

    Boundaries depend only on the line count and the two capacities; a logical
    item may be split across pages.
    """
    if first_capacity <= 0 or continuation_capacity <= 0:
        raise ValueError(
            f'page capacities must be positive: first={first_capacity}, continuation={continuation_capacity}'
        )

    items = list(lines)
    first_chunk = items[:first_capacity]
    remaining = items[first_capacity:]
    continuation_chunks = [
        remaining[start:start + continuation_capacity]
        for start in range(0, len(remaining), continuation_capacity)
    ]
    return Pagination(first_chunk=first_chunk, continuation_chunks=continuation_chunks)
