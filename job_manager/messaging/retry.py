"""
Exponential backoff shared by the producer and the consumer retry loops
"""


def compute_backoff(attempt: int, initial_seconds: float, max_seconds: float) -> float:
    """
    Delay to wait after the given (1-based) failed attempt.

    attempt 1 -> initial, 2 -> 2*initial, 3 -> 4*initial ... capped at max_seconds.
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    delay = initial_seconds * (2 ** (attempt - 1))
    return min(delay, max_seconds)
