from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import settings
from ..errors import StoreError

logger = logging.getLogger(__name__)

# (label, write) pairs; label names the write in error reports
Write = Tuple[str, Callable[[], None]]


@dataclass(frozen=True)
class WriteOutcome:
    label: str
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_writes(writes: Sequence[Write], *, max_workers: Optional[int] = None) -> List[WriteOutcome]:
    """
    Issue every write concurrently and wait for all of them.

    There is no ordering between writes and no atomicity across them: a failed
    write is reported in its outcome and never rolls back the others. Only
    StoreError is collected; anything else is a bug and propagates.
    Outcomes come back in the order the writes were given.
    """
    if not writes:
        return []

    workers = max(1, min(len(writes), max_workers or settings.write_fanout_workers))
    outcomes: List[Optional[WriteOutcome]] = [None] * len(writes)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(fn): i for i, (_, fn) in enumerate(writes)}
        for future in as_completed(futures):
            i = futures[future]
            label = writes[i][0]
            try:
                future.result()
                outcomes[i] = WriteOutcome(label=label)
            except StoreError as e:
                logger.warning("Write failed (%s): %s", label, e)
                outcomes[i] = WriteOutcome(label=label, error=e)

    return [o for o in outcomes if o is not None]


def failed_labels(outcomes: Sequence[WriteOutcome]) -> List[str]:
    return [o.label for o in outcomes if not o.ok]
