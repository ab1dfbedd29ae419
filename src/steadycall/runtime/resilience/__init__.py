"""Circuit breakers for outbound destinations."""

from .breaker import CircuitBreaker, CircuitState, State
from .registry import BreakerRegistry

__all__ = [
    "BreakerRegistry",
    "CircuitBreaker",
    "CircuitState",
    "State",
]
