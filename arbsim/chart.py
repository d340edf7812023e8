# arbsim/chart.py
import os
from typing import Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def draw_price_chart(series_a: Sequence[float], series_b: Sequence[float], out_path: str) -> Optional[str]:
    """Line chart of both venues' prices over ticks 1..N, saved as PNG."""
    if not series_a and not series_b:
        return None

    directory = os.path.dirname(out_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    fig = plt.figure(figsize=(8, 4))
    plt.plot(range(1, len(series_a) + 1), series_a, label="Price A", color=(75 / 255, 192 / 255, 192 / 255), linewidth=2)
    plt.plot(range(1, len(series_b) + 1), series_b, label="Price B", color=(153 / 255, 102 / 255, 1.0), linewidth=2)
    plt.xlabel("Time")
    plt.ylabel("Price")
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_path, dpi=100, facecolor="white")
    plt.close(fig)
    return out_path
