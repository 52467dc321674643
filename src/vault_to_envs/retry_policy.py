"""Retry policy with exponential backoff and tri-state attempt outcomes."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .config import ActivationConfig
from .logging import get_logger


class AttemptOutcome(Enum):
    """Classification of one attempt."""

    SUCCESS = "success"
    RETRY = "retry"
    FATAL = "fatal"


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one attempt, with the error that caused a retry or stop."""

    outcome: AttemptOutcome
    error: Optional[Exception] = None

    @classmethod
    def success(cls) -> "AttemptResult":
        return cls(AttemptOutcome.SUCCESS)

    @classmethod
    def retry(cls, error: Exception) -> "AttemptResult":
        return cls(AttemptOutcome.RETRY, error)

    @classmethod
    def fatal(cls, error: Exception) -> "AttemptResult":
        return cls(AttemptOutcome.FATAL, error)


@dataclass(frozen=True)
class RetryReport:
    """Final result of a bounded retry loop."""

    result: AttemptResult
    attempts: int

    @property
    def succeeded(self) -> bool:
        return self.result.outcome is AttemptOutcome.SUCCESS

    @property
    def exhausted(self) -> bool:
        return self.result.outcome is AttemptOutcome.RETRY


class RetryPolicy:
    """Bounded retry loop with pure exponential backoff (no jitter, no cap)."""

    def __init__(
        self,
        config: Optional[ActivationConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize retry policy.

        Args:
            config: Backoff configuration (if None, uses defaults)
            sleep: Function used to wait between attempts
        """
        self.config = config or ActivationConfig()
        self.sleep = sleep
        self.logger = get_logger(__name__)

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay after a failed attempt.

        Args:
            attempt: Attempt number that just failed (0-indexed)

        Returns:
            Delay in seconds
        """
        return self.config.initial_delay_seconds * (
            self.config.backoff_multiplier**attempt
        )

    def schedule(self) -> List[float]:
        """Delays between consecutive attempts, in order."""
        return [self.calculate_delay(i) for i in range(self.config.max_attempts - 1)]

    def get_retry_metadata(self, attempt: int) -> Dict[str, Any]:
        return {
            "retry_attempt": attempt + 1,
            "max_attempts": self.config.max_attempts,
            "delay_seconds": self.calculate_delay(attempt),
            "backoff_multiplier": self.config.backoff_multiplier,
        }

    def run(self, attempt_fn: Callable[[int], AttemptResult]) -> RetryReport:
        """Call attempt_fn until it succeeds, fails fatally, or attempts run out.

        Args:
            attempt_fn: Called with the 0-indexed attempt number

        Returns:
            RetryReport carrying the last attempt's result
        """
        result = AttemptResult.success()
        for attempt in range(self.config.max_attempts):
            result = attempt_fn(attempt)
            if result.outcome is not AttemptOutcome.RETRY:
                return RetryReport(result, attempt + 1)

            if attempt + 1 < self.config.max_attempts:
                delay = self.calculate_delay(attempt)
                self.logger.debug(
                    f"Waiting {delay:.2f} seconds before retry",
                    extra={
                        "event_type": "retry_delay",
                        "extra_data": self.get_retry_metadata(attempt),
                    },
                )
                if delay > 0:
                    self.sleep(delay)

        return RetryReport(result, self.config.max_attempts)
