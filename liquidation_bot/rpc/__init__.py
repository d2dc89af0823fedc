from .failover import Endpoint, FailoverClient, exponential_backoff

__all__ = ["Endpoint", "FailoverClient", "exponential_backoff"]
