"""Scatter plot of elderly population against CCB prescription volume."""

import logging
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from scipy import stats

log = logging.getLogger("report.figures")


def plot_population_vs_prescriptions(
    df: pd.DataFrame,
    path: Path,
    x: str = "over65_CA",
    y: str = "paid_quantity",
) -> Path:
    """Scatter with a least-squares trend line; one labelled point per council area."""
    data = df[["council_area", x, y]].dropna()

    fig, ax = plt.subplots(figsize=(11, 7))
    ax.scatter(data[x], data[y], alpha=0.8)

    for _, row in data.iterrows():
        ax.annotate(row["council_area"], (row[x], row[y]), fontsize=7, alpha=0.7,
                    xytext=(3, 3), textcoords="offset points")

    if len(data) >= 2 and data[x].nunique() > 1:
        slope, intercept, r_value, p_value, std_err = stats.linregress(data[x], data[y])
        xs = np.linspace(data[x].min(), data[x].max(), 100)
        ax.plot(xs, intercept + slope * xs, color="firebrick", linewidth=1.2,
                label=f"Linear trend (r = {r_value:.2f})")
        ax.legend()

    ax.set_xlabel("Population aged 65+ (GP list sizes)")
    ax.set_ylabel("Calcium-channel blocker paid quantity")
    ax.set_title("Elderly population vs calcium-channel blocker prescribing by council area")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=150)
    plt.close(fig)

    log.info(f"✓ Saved figure → {path}")
    return path
