"""Context manager timing a block and recording the duration in seconds.

Usage example:
```python
with timed(inspector.stats.stat_convergence_duration):
    transform = align(reading, reference)
```
"""

import time
from contextlib import contextmanager
from typing import Callable, Iterator

from align_inspector.core.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def timed(record: Callable[[float], None]) -> Iterator[None]:
    """
    Measure the wall time of the enclosed block.

    The duration is recorded even if the block raises.

    Args:
        record: One-argument record operation receiving the duration in seconds
    """
    t0 = time.monotonic()

    try:
        yield
    finally:
        duration = time.monotonic() - t0
        record(duration)
        logger.debug(f"Timed block took {duration * 1000.0:.2f}ms")
