"""
Report document writer.

Outputs (in the report directory):
- report.md                         (figure, summary table, correlation results)
- population_vs_prescriptions.png
- council_area_summary.csv          (unformatted numbers)
- correlations.json
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import pandas as pd

from hypertension_report.report.correlation import CorrelationResult
from hypertension_report.report.figures import plot_population_vs_prescriptions
from hypertension_report.report.tables import TABLE_COLUMNS, render_summary_table

log = logging.getLogger("report.document")

FIGURE_NAME = "population_vs_prescriptions.png"


def render_markdown(
    summary: pd.DataFrame,
    correlations: List[CorrelationResult],
    figure_name: str,
    mortality_year: int,
) -> str:
    lines = [
        "# Calcium-channel blocker prescribing, elderly population and heart disease mortality",
        "",
        f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}. "
        f"Mortality year: {mortality_year}. Council areas: {len(summary)}.",
        "",
        "Council areas sharing a health board are reported as one combined unit, "
        "because mortality and deprivation are only available per health board.",
        "Areas with zero or missing recorded deaths are excluded.",
        "",
        "## Elderly population vs prescriptions",
        "",
        f"![Population aged 65+ vs CCB paid quantity]({figure_name})",
        "",
        "## Summary by council area",
        "",
        "```",
        render_summary_table(summary),
        "```",
        "",
        "## Pearson correlation tests",
        "",
    ]
    for res in correlations:
        lines.append(f"- {res.describe()}")
    lines.append("")
    return "\n".join(lines)


def write_report(
    summary: pd.DataFrame,
    correlations: List[CorrelationResult],
    output_dir: Path,
    mortality_year: int,
) -> Dict[str, Path]:
    """Write every report artefact and return their paths."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        "figure": output_dir / FIGURE_NAME,
        "summary_csv": output_dir / "council_area_summary.csv",
        "correlations": output_dir / "correlations.json",
        "report": output_dir / "report.md",
    }

    plot_population_vs_prescriptions(summary, paths["figure"])

    summary[TABLE_COLUMNS].to_csv(paths["summary_csv"], index=False)
    log.info(f"✓ Saved summary CSV → {paths['summary_csv']}")

    with open(paths["correlations"], "w") as f:
        json.dump([r.as_dict() for r in correlations], f, indent=2)

    paths["report"].write_text(render_markdown(summary, correlations, FIGURE_NAME, mortality_year))
    log.info(f"✓ Saved report → {paths['report']}")

    return paths


def print_correlations(correlations: List[CorrelationResult]) -> None:
    print("\nPearson correlation tests")
    print("-" * 70)
    for res in correlations:
        print(f"{res.x} vs {res.y}")
        print(f"  r = {res.coefficient:.4f}   p-value = {res.p_value:.4g}   n = {res.n}")
        print(f"  {res.confidence_level:.0%} CI: [{res.ci_low:.4f}, {res.ci_high:.4f}]")
