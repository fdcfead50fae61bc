from .retry_utils import RetryUtils

__all__ = ["RetryUtils"]
