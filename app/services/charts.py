from __future__ import annotations

import asyncio
from io import BytesIO

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from app.core.errors import RenderError  # noqa: E402

PIE_COLORS = [
    "#4e79a7", "#f28e2c", "#e15759", "#76b7b2", "#59a14f",
    "#edc949", "#af7aa1", "#ff9da7", "#9c755f", "#bab0ab",
]


def axis_limits(values) -> tuple[float, float]:
    """Y-axis range padded by 10% of the spread; flat series get +/-5% of the value."""
    arr = np.asarray(values, dtype=float)
    arr = arr[~np.isnan(arr)]
    if arr.size == 0:
        return 0.0, 1.0
    lo, hi = float(arr.min()), float(arr.max())
    if lo == hi:
        pad = 1.0 if lo == 0 else abs(lo) * 0.05
        return lo - pad, hi + pad
    span = hi - lo
    return lo - span * 0.1, hi + span * 0.1


def _to_png(fig) -> bytes:
    buf = BytesIO()
    fig.savefig(buf, format="png")
    plt.close(fig)
    return buf.getvalue()


class ChartService:
    def __init__(self, max_slices: int = 10) -> None:
        self.max_slices = max_slices

    def _draw_line(self, history: list[dict], title: str) -> bytes:
        df = pd.DataFrame(history)
        df["ts"] = pd.to_datetime(df["time"], unit="s", utc=True)

        fig, ax_price = plt.subplots(figsize=(8, 4), dpi=120)
        ax_price.plot(df["ts"], df["close"], color="#4bc0c0", lw=1.6, label="Price")
        ax_price.set_ylim(*axis_limits(df["close"]))
        ax_price.set_ylabel("Price")

        ax_vol = ax_price.twinx()
        ax_vol.plot(df["ts"], df["volume_usd"], color="#9966ff", lw=1.2, label="Volume")
        ax_vol.set_ylim(*axis_limits(df["volume_usd"]))
        ax_vol.set_ylabel("Volume (USD)")

        handles = ax_price.get_legend_handles_labels()[0] + ax_vol.get_legend_handles_labels()[0]
        ax_price.legend(handles, ["Price", "Volume"], loc="upper left")
        ax_price.set_title(title)
        ax_price.grid(alpha=0.25)
        fig.autofmt_xdate()
        fig.tight_layout()
        return _to_png(fig)

    def _draw_pie(self, tokens: list[dict]) -> bytes:
        rows = [t for t in tokens if (t.get("value_usd") or 0) > 0][: self.max_slices]
        labels = [str(t.get("symbol") or "?") for t in rows]
        values = np.array([float(t["value_usd"]) for t in rows])
        total = float(values.sum())

        def label_for(pct: float) -> str:
            # only slices of 10% or more get a label
            if pct < 10:
                return ""
            return f"${pct * total / 100:,.2f}\n({pct:.2f}%)"

        fig, ax = plt.subplots(figsize=(8, 6), dpi=100)
        ax.pie(
            values,
            labels=[lbl if v / total >= 0.10 else "" for lbl, v in zip(labels, values)],
            colors=PIE_COLORS[: len(values)],
            autopct=label_for,
            wedgeprops={"edgecolor": "#ffffff", "linewidth": 1},
            textprops={"fontsize": 10, "fontweight": "bold"},
        )
        ax.legend(labels, loc="lower center", bbox_to_anchor=(0.5, -0.12), ncol=5, frameon=False)
        ax.set_title("Token Balance Distribution", fontsize=18)
        ax.axis("equal")
        fig.tight_layout()
        return _to_png(fig)

    async def line_chart(self, history: list[dict], title: str) -> bytes:
        if not history:
            raise RenderError("No price history to chart")
        try:
            return await asyncio.to_thread(self._draw_line, history, title)
        except Exception as exc:  # noqa: BLE001
            raise RenderError(f"Line chart failed: {exc!r}") from exc

    async def pie_chart(self, tokens: list[dict]) -> bytes:
        if not any((t.get("value_usd") or 0) > 0 for t in tokens):
            raise RenderError("No priced balances to chart")
        try:
            return await asyncio.to_thread(self._draw_pie, tokens)
        except Exception as exc:  # noqa: BLE001
            raise RenderError(f"Pie chart failed: {exc!r}") from exc
