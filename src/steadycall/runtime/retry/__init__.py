"""Retry policies for outbound requests.

Provides the immutable retry policy, the backoff calculator and the
classifier that decides what a failed attempt was.

Example:
    >>> from steadycall.runtime.retry import RetryPolicy, backoff_delay
    >>> import random
    >>>
    >>> policy = RetryPolicy(max_retries=5, base_delay=0.5, rng=random.Random(7))
    >>> delays = [backoff_delay(n, policy) for n in range(1, 6)]
"""

from .backoff import Backoff, ConstantBackoff, ExponentialBackoff, backoff_delay
from .classify import AttemptFailure, Classification, ErrorClassifier
from .policy import NO_RETRY, RetryHook, RetryObserver, RetryPolicy, RetryPredicate

__all__ = [
    # Backoff strategies
    "Backoff",
    "ExponentialBackoff",
    "ConstantBackoff",
    "backoff_delay",
    # Classification
    "AttemptFailure",
    "Classification",
    "ErrorClassifier",
    # Policy
    "RetryPolicy",
    "RetryObserver",
    "RetryHook",
    "RetryPredicate",
    "NO_RETRY",
]
