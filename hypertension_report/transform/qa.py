"""
Council-Area Summary QA
=======================

Gate run between transform and report. Critical issues stop the pipeline;
warnings are reported and written to the QA summary but do not block.

Checks:
  - council_area unique (no fan-out survived the joins)
  - over65_total_death > 0 on every row
  - prescriptions_per_death == round(paid_quantity / over65_total_death, 1)
  - mean_simd_rank within 1..5 (warning if missing)
  - counts non-negative
  - elderly population reconciles to the practice table (no double counting)
  - council areas fed by several board codes (warning; their figures are summed)
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd

from hypertension_report.config import RATIO_DECIMALS

log = logging.getLogger("report.qa")

SUMMARY_COLUMNS = [
    "council_area",
    "over65_CA",
    "paid_quantity",
    "over65_total_death",
    "prescriptions_per_death",
    "mean_simd_rank",
]


class SummaryQA:
    """QA suite for the final council-area summary."""

    def __init__(self, summary: pd.DataFrame, practices: Optional[pd.DataFrame] = None, tolerance: float = 1e-9):
        self.summary = summary
        self.practices = practices
        self.tolerance = tolerance
        self.issues: List[str] = []
        self.warnings: List[str] = []

    def check_columns(self) -> bool:
        missing = [c for c in SUMMARY_COLUMNS if c not in self.summary.columns]
        if missing:
            self.issues.append(f"Summary missing columns: {missing}")
            return False
        log.info("✓ All summary columns present")
        return True

    def check_unique_council_areas(self) -> None:
        dups = self.summary["council_area"].duplicated(keep=False)
        if dups.any():
            names = self.summary.loc[dups, "council_area"].unique().tolist()
            self.issues.append(f"Duplicated council areas: {names}")
        else:
            log.info(f"✓ {len(self.summary)} unique council areas")

    def check_positive_mortality(self) -> None:
        deaths = self.summary["over65_total_death"]
        bad = self.summary[~(deaths > 0)]
        if not bad.empty:
            self.issues.append(f"Non-positive or missing deaths for {bad['council_area'].tolist()}")
        else:
            log.info("✓ Every council area has recorded deaths")

    def check_ratio(self) -> None:
        expected = (self.summary["paid_quantity"] / self.summary["over65_total_death"]).round(RATIO_DECIMALS)
        diff = (self.summary["prescriptions_per_death"] - expected).abs()
        bad = self.summary[diff > self.tolerance]
        if not bad.empty:
            self.issues.append(f"prescriptions_per_death mismatch for {bad['council_area'].tolist()}")
        else:
            log.info("✓ prescriptions_per_death matches paid_quantity / deaths")

    def check_simd_range(self) -> None:
        rank = self.summary["mean_simd_rank"]
        missing = self.summary[rank.isna()]
        if not missing.empty:
            self.warnings.append(f"No SIMD rank for {missing['council_area'].tolist()}")

        out_of_range = self.summary[rank.notna() & ((rank < 1) | (rank > 5))]
        if not out_of_range.empty:
            self.issues.append(f"mean_simd_rank outside 1..5 for {out_of_range['council_area'].tolist()}")
        elif missing.empty:
            log.info("✓ mean_simd_rank within quintile range")

    def check_non_negative(self) -> None:
        for col in ("over65_CA", "paid_quantity", "over65_total_death"):
            neg = self.summary[self.summary[col] < 0]
            if not neg.empty:
                self.issues.append(f"Negative {col} for {neg['council_area'].tolist()}")
            missing = self.summary[self.summary[col].isna()]
            if not missing.empty and col != "over65_total_death":
                self.warnings.append(f"Missing {col} for {missing['council_area'].tolist()}")

    def check_population_reconciles(self) -> None:
        """Area totals equal the practice totals for the same areas."""
        if self.practices is None or "council_area" not in self.practices.columns:
            return

        kept = self.practices[self.practices["council_area"].isin(self.summary["council_area"])]
        by_area = kept.groupby("council_area")["over_65"].sum(min_count=1)
        reported = self.summary.set_index("council_area")["over65_CA"]

        joined = pd.concat([reported.rename("reported"), by_area.rename("expected")], axis=1)
        diff = (joined["reported"].fillna(0) - joined["expected"].fillna(0)).abs()
        bad = joined[diff > self.tolerance]
        if not bad.empty:
            self.issues.append(f"Elderly population does not reconcile for {bad.index.tolist()}")
        else:
            log.info(f"✓ Elderly population reconciles ({np.nansum(joined['expected']):,.0f} persons)")

    def check_single_board(self) -> None:
        if self.practices is None or "council_area" not in self.practices.columns:
            return
        n_boards = self.practices.dropna(subset=["council_area"]).groupby("council_area")["hb"].nunique()
        multi = n_boards[n_boards > 1]
        if not multi.empty:
            self.warnings.append(
                f"Council areas fed by several board codes (figures summed over all of them): {multi.index.tolist()}"
            )

    def generate_report(self, output_path: Optional[Path] = None) -> int:
        log.info("=" * 70)
        log.info("SUMMARY QA RESULT")
        log.info("=" * 70)
        log.info(f"Critical Issues: {len(self.issues)}")
        for issue in self.issues:
            log.error(f"  ❌ {issue}")
        log.info(f"Warnings: {len(self.warnings)}")
        for warning in self.warnings:
            log.warning(f"  ⚠️  {warning}")

        exit_code = 0 if not self.issues else 1

        if output_path is not None:
            summary = {
                "timestamp": datetime.now().isoformat(),
                "status": "PASSED" if exit_code == 0 else "FAILED",
                "exit_code": exit_code,
                "council_areas": int(len(self.summary)),
                "critical_issues": self.issues,
                "warnings": self.warnings,
            }
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w") as f:
                json.dump(summary, f, indent=2)
            log.info(f"QA summary: {output_path}")

        return exit_code

    def run_all_checks(self, output_path: Optional[Path] = None) -> int:
        """Run the full suite; returns 0 when no critical issue was found."""
        if self.check_columns():
            self.check_unique_council_areas()
            self.check_positive_mortality()
            self.check_ratio()
            self.check_simd_range()
            self.check_non_negative()
            self.check_population_reconciles()
            self.check_single_board()
        return self.generate_report(output_path)
