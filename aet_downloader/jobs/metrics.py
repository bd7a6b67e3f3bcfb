"""Per-run counters and final report."""
import time
import logging
from collections import defaultdict
from typing import Dict

logger = logging.getLogger(__name__)

OUTCOME_KEYS = ("saved", "empty", "skipped", "failed", "token_expired", "auth_failed")


class RunMetrics:
    """Track what happened to each month of a run."""

    def __init__(self, total: int):
        self.total = total
        self.start_time = time.time()
        self.counters: Dict[str, int] = defaultdict(int)
        self.saved_paths: list[str] = []

    def increment(self, key: str, amount: int = 1) -> None:
        """Increment a counter."""
        self.counters[key] = self.counters.get(key, 0) + amount

    def record_saved(self, path) -> None:
        self.increment("saved")
        self.saved_paths.append(str(path))

    def format_elapsed(self) -> str:
        """Format elapsed time as human-readable string."""
        elapsed = time.time() - self.start_time
        if elapsed < 60:
            return f"{elapsed:.0f}s"
        elif elapsed < 3600:
            return f"{elapsed / 60:.1f}m"
        else:
            return f"{elapsed / 3600:.1f}h"

    def report(self) -> None:
        """Log the final summary."""
        logger.info("=" * 60)
        logger.info("FINAL REPORT")
        logger.info(f"Months processed: {self.counters.get('processed', 0)}/{self.total}")
        logger.info(f"Elapsed: {self.format_elapsed()}")
        for key in OUTCOME_KEYS:
            logger.info(f"{key.replace('_', ' ').capitalize()}: {self.counters.get(key, 0)}")
        for path in self.saved_paths:
            logger.info(f"Saved file: {path}")
        logger.info("=" * 60)

