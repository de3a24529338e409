"""
Resilience - opt-in retries for transient failures.
"""

from openaikit.resilience.retry import RetryConfig, RetryPolicy, RetryResult, with_retry

__all__ = [
    "RetryConfig",
    "RetryPolicy",
    "RetryResult",
    "with_retry",
]
