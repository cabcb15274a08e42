"""Small text helpers shared across the relay."""
from typing import List

RETRYABLE_ERROR_PATTERNS = (
    "econnreset",
    "etimedout",
    "enotfound",
    "rate limit",
    "too many requests",
    "timeout",
    "timed out",
)


def split_into_chunks(text: str, max_length: int) -> List[str]:
    """Split text into consecutive pieces of at most ``max_length`` characters."""
    if max_length <= 0 or len(text) <= max_length:
        return [text]
    return [text[start:start + max_length] for start in range(0, len(text), max_length)]


def preview(text: str, length: int = 50) -> str:
    """Shorten text for log output."""
    return text[:length] if text else ""


def is_retryable_error(error: BaseException) -> bool:
    """Heuristic for transient network/API failures."""
    message = str(error).lower()
    return any(pattern in message for pattern in RETRYABLE_ERROR_PATTERNS)
