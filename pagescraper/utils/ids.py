import hashlib
from typing import Any, Optional
from urllib.parse import urlparse


def last_path_segment(url: Optional[str]) -> Optional[str]:
    """'https://x.com/page/posts/123/?a=1' -> '123'; None when there is no path."""
    if not url:
        return None
    parts = [p for p in urlparse(url).path.split("/") if p]
    return parts[-1] if parts else None


def synthetic_id(*parts: Any) -> str:
    """Deterministic 16-hex id for records without a natural key."""
    return hashlib.md5("|".join(str(p) for p in parts).encode()).hexdigest()[:16]


def to_count(value: Any) -> int:
    """Engagement counts are non-negative ints; anything else becomes 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    if isinstance(value, str):
        digits = value.replace(",", "").strip()
        return int(digits) if digits.isdigit() else 0
    return 0
