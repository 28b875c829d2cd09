"""
Structured logging system for clinicmatch.

Provides centralized logging with console and file destinations,
log levels, and counters describing each match run (resolved sign-ups,
exclusions, cancellations, matches written).
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for auditing match runs.
    """

    def __init__(
        self,
        name: str = "clinicmatch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self.metrics = self._fresh_metrics()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"clinicmatch_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # file always gets everything
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    @staticmethod
    def _fresh_metrics() -> dict:
        return {
            "signups_seen": 0,
            "candidates_resolved": 0,
            "unresolved_identities": 0,
            "unresolved_cancellations": 0,
            "duplicate_signups": 0,
            "early_cancellations": 0,
            "matched": 0,
            "rolled_over": 0,
            "runs_completed": 0,
            "dry_run_writes": 0,
            "exclusions_by_reason": {},
        }

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_signup(self):
        """Increment the raw sign-up counter."""
        self.metrics["signups_seen"] += 1

    def record_resolved(self):
        """Record a sign-up that resolved to a directory entry."""
        self.metrics["candidates_resolved"] += 1

    def record_exclusion(self, reason: str):
        """Record a sign-up dropped from the pool."""
        counters = {
            "unresolved": "unresolved_identities",
            "unresolved_cancellation": "unresolved_cancellations",
            "duplicate": "duplicate_signups",
            "cancelled": "early_cancellations",
        }
        if reason in counters:
            self.metrics[counters[reason]] += 1

        if reason not in self.metrics["exclusions_by_reason"]:
            self.metrics["exclusions_by_reason"][reason] = 0
        self.metrics["exclusions_by_reason"][reason] += 1

    def record_match(self, count: int = 1):
        """Record candidates placed in rooms."""
        self.metrics["matched"] += count

    def record_rollover(self, count: int = 1):
        """Record candidates deferred to the secondary pass."""
        self.metrics["rolled_over"] += count

    def record_dry_run_write(self):
        """Record a directory write that was logged instead of applied."""
        self.metrics["dry_run_writes"] += 1

    def record_run(self):
        """Record a completed match run."""
        self.metrics["runs_completed"] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        seen = metrics_copy["signups_seen"]
        if seen > 0:
            metrics_copy["resolution_rate"] = round(
                metrics_copy["candidates_resolved"] / seen, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Match Run Metrics ===")
        self.info(f"Runs: {metrics['runs_completed']}")
        self.info(
            f"Sign-ups: {metrics['candidates_resolved']}/{metrics['signups_seen']} resolved"
        )
        self.info(f"Matched: {metrics['matched']} (rolled over: {metrics['rolled_over']})")

        if metrics["exclusions_by_reason"]:
            self.info("Exclusions:")
            for reason, count in metrics["exclusions_by_reason"].items():
                self.info(f"  {reason}: {count}")

        if metrics["dry_run_writes"]:
            self.info(f"Dry-run writes skipped: {metrics['dry_run_writes']}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "clinicmatch",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
