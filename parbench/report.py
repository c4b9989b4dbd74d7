from __future__ import annotations

import json
import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.colors import ListedColormap

from .grid import GridSnapshot, RequestState
from .gui import COLORS, STATE_COLORS, STATUS_CLASS_COLORS
from .stats import OUTCOME_CLASSES, outcome_class, summarize

LOGGER = logging.getLogger("parbench.report")

CSV_FILENAME = "requests.csv"
CHART_FILENAME = "outcomes.png"
MANIFEST_FILENAME = "run_manifest.json"

DATAFRAME_COLUMNS = ["row", "col", "state", "status", "outcome_class"]

sns.set_style("whitegrid")


def _outcome_hex(outcome: str) -> str:
    name = STATUS_CLASS_COLORS.get(outcome)
    if name is None:
        name = STATE_COLORS[RequestState(outcome)]
    red, green, blue = COLORS[name][0]
    return f"#{red:02x}{green:02x}{blue:02x}"


OUTCOME_COLORS = {outcome: _outcome_hex(outcome) for outcome in OUTCOME_CLASSES}


def build_dataframe(snapshot: GridSnapshot) -> pd.DataFrame:
    rows = [
        {
            "row": slot.row,
            "col": slot.col,
            "state": slot.state.value,
            "status": slot.status,
            "outcome_class": outcome_class(slot),
        }
        for slot in snapshot
    ]
    df = pd.DataFrame(rows, columns=DATAFRAME_COLUMNS)
    df["status"] = df["status"].astype("Int64")
    return df


def render_outcome_chart(snapshot: GridSnapshot, chart_path: Path) -> Path:
    """Render the final grid as a heatmap next to per-class request counts."""
    df = build_dataframe(snapshot)
    class_index = {outcome: index for index, outcome in enumerate(OUTCOME_CLASSES)}
    matrix = (
        df["outcome_class"].map(class_index).to_numpy().reshape(snapshot.concurrency, snapshot.requests)
    )

    fig, (ax_grid, ax_counts) = plt.subplots(
        1, 2, figsize=(14, 6), gridspec_kw={"width_ratios": [3, 2]}
    )

    sns.heatmap(
        matrix,
        ax=ax_grid,
        cmap=ListedColormap([OUTCOME_COLORS[outcome] for outcome in OUTCOME_CLASSES]),
        vmin=-0.5,
        vmax=len(OUTCOME_CLASSES) - 0.5,
        cbar=False,
        linewidths=0.5 if matrix.size <= 2500 else 0.0,
        linecolor="#dddddd",
        xticklabels=False,
        yticklabels=False,
    )
    ax_grid.set_title("Request outcome per slot")
    ax_grid.set_xlabel("Request sequence")
    ax_grid.set_ylabel("Worker")

    counts = (
        df["outcome_class"].value_counts().reindex(list(OUTCOME_CLASSES), fill_value=0).rename_axis("outcome")
    )
    counts_df = counts.reset_index(name="count")
    sns.barplot(
        data=counts_df,
        x="outcome",
        y="count",
        hue="outcome",
        palette=OUTCOME_COLORS,
        edgecolor="black",
        legend=False,
        ax=ax_counts,
    )
    ax_counts.set_title("Requests by outcome class")
    ax_counts.set_xlabel("")
    ax_counts.set_ylabel("Requests")
    for patch, value in zip(ax_counts.patches, np.asarray(counts_df["count"])):
        ax_counts.annotate(
            f"{value}",
            (patch.get_x() + patch.get_width() / 2, patch.get_height()),
            ha="center",
            va="bottom",
            fontsize=9,
        )

    fig.suptitle(f"{snapshot.concurrency} workers x {snapshot.requests} requests", fontweight="bold")
    fig.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white", edgecolor="none")
    plt.close(fig)
    LOGGER.info("Rendering chart %s", chart_path)
    return chart_path


def write_run_artifacts(
    snapshot: GridSnapshot,
    output_dir: Path,
    now: float | None = None,
) -> dict[str, Path]:
    output_dir.mkdir(parents=True, exist_ok=True)

    csv_path = output_dir / CSV_FILENAME
    df = build_dataframe(snapshot)
    df.to_csv(csv_path, index=False)
    LOGGER.info("Saved %d request rows to %s", len(df), csv_path)

    chart_path = render_outcome_chart(snapshot, output_dir / CHART_FILENAME)

    stats = summarize(snapshot, now)
    manifest = {
        "concurrency": snapshot.concurrency,
        "requests": snapshot.requests,
        "started_at": snapshot.started_at,
        "ended_at": snapshot.ended_at,
        "elapsed_s": stats.elapsed_s,
        "throughput_per_s": stats.throughput_per_s,
        "complete": stats.complete,
        "by_state": stats.by_state,
        "by_outcome": stats.by_outcome,
        "csv": str(csv_path),
        "chart": str(chart_path),
    }
    manifest_path = output_dir / MANIFEST_FILENAME
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)
    LOGGER.info("Run manifest written to %s", manifest_path)

    return {"csv": csv_path, "chart": chart_path, "manifest": manifest_path}


__all__ = [
    "CSV_FILENAME",
    "CHART_FILENAME",
    "MANIFEST_FILENAME",
    "DATAFRAME_COLUMNS",
    "OUTCOME_COLORS",
    "build_dataframe",
    "render_outcome_chart",
    "write_run_artifacts",
]
