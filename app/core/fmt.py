from __future__ import annotations

import math
from datetime import datetime, timezone

NA = "N/A"


def safe_html(text: str) -> str:
    """Escape special HTML characters so dynamic content is safe in HTML parse_mode."""
    return str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _as_float(v: object) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _small(num: float, digits: int = 4) -> str:
    """Fixed-point with `digits` significant digits, for magnitudes below 1."""
    decimals = digits - 1 - math.floor(math.log10(abs(num)))
    return f"{num:.{decimals}f}".rstrip("0").rstrip(".")


def fmt_compact(v: object) -> str:
    """Magnitude-suffixed number: 1.23K, 4.56M, 7.89B. Missing -> N/A."""
    num = _as_float(v)
    if num is None:
        return NA
    sign = "-" if num < 0 else ""
    num = abs(num)
    if num >= 1_000_000_000:
        return f"{sign}{num / 1_000_000_000:.2f}B"
    if num >= 1_000_000:
        return f"{sign}{num / 1_000_000:.2f}M"
    if num >= 1_000:
        return f"{sign}{num / 1_000:.2f}K"
    return f"{sign}{num:.2f}"


def fmt_usd(v: object) -> str:
    """Currency with magnitude suffix: $68.10K, $1.23M. Sub-cent prices keep 4 significant digits."""
    num = _as_float(v)
    if num is None:
        return NA
    if 0 < abs(num) < 0.01:
        sign = "-" if num < 0 else ""
        return f"{sign}${_small(abs(num))}"
    compact = fmt_compact(num)
    if compact.startswith("-"):
        return f"-${compact[1:]}"
    return f"${compact}"


def fmt_pct(v: object) -> str:
    """Value already expressed in percent points: 12.5 -> 12.50%."""
    num = _as_float(v)
    if num is None:
        return NA
    return f"{num:.2f}%"


def fmt_ratio(v: object) -> str:
    """Ratio in [0, 1] rendered as percent: 0.5 -> 50.00%."""
    num = _as_float(v)
    if num is None:
        return NA
    return f"{num * 100:.2f}%"


def fmt_change(v: object) -> str:
    """Signed percent change: +3.20% / -1.05%."""
    num = _as_float(v)
    if num is None:
        return NA
    return f"{num:+.2f}%"


def fmt_amount(v: object) -> str:
    """Token amount with thousands separators."""
    num = _as_float(v)
    if num is None:
        return NA
    if num.is_integer():
        return f"{int(num):,}"
    if abs(num) < 1:
        return _small(num)
    return f"{num:,.2f}"


def fmt_timestamp(value: object) -> str:
    """ISO string or unix seconds -> 'YYYY-MM-DD HH:MM UTC'."""
    if value in (None, ""):
        return NA
    try:
        if isinstance(value, (int, float)):
            dt = datetime.fromtimestamp(float(value), tz=timezone.utc)
        else:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return NA
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def shorten(text: str, max_len: int = 20) -> str:
    text = str(text or "")
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."
