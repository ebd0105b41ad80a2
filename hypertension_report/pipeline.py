"""
Council-Area Hypertension Report - Pipeline Orchestrator
========================================================

Runs the report end to end in one process:

  Ingest → Transform → QA → Report

Design principles:
- Fail-fast: any load, schema or QA failure stops the run
- Each stage builds new tables from the previous stage's output
- Run logs and a JSON run summary persisted under data/logs/pipeline_<run_id>
"""

import json
import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from hypertension_report.config import ReportConfig, configure_logging
from hypertension_report.ingest.demographics import load_demographics, select_elderly_population
from hypertension_report.ingest.deprivation import load_deprivation, select_deprivation
from hypertension_report.ingest.health_boards import load_council_area_mapping, load_health_board_names, select_health_board_names
from hypertension_report.ingest.mortality import filter_mortality, load_mortality
from hypertension_report.ingest.prescriptions import filter_prescriptions, load_prescriptions
from hypertension_report.report.correlation import CorrelationResult, run_correlation_tests
from hypertension_report.report.document import print_correlations, write_report
from hypertension_report.transform.derived import add_prescriptions_per_death, exclude_zero_mortality
from hypertension_report.transform.joins import (
    council_area_labels,
    map_practices_to_council_areas,
    summarise_council_areas,
)
from hypertension_report.transform.qa import SummaryQA

log = logging.getLogger("report.pipeline")


# -------------------------------------------------------------------
# ANSI COLORS
# -------------------------------------------------------------------

class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'


# -------------------------------------------------------------------
# STAGE RESULT DATACLASS
# -------------------------------------------------------------------

@dataclass
class StageResult:
    name: str
    stage_type: str  # ingest / transform / qa / report
    status: str      # success / failed
    duration_seconds: float
    rows: Optional[int] = None
    error_message: Optional[str] = None
    warnings: int = 0
    critical_issues: int = 0


# -------------------------------------------------------------------
# MAIN ORCHESTRATOR CLASS
# -------------------------------------------------------------------

class ReportPipeline:
    """Orchestrates ingest, transform, QA and report for the council-area summary."""

    STAGE_ORDER = ['ingest', 'transform', 'qa', 'report']

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig.from_env()
        self.results: List[StageResult] = []
        self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")

        self.log_dir = self.config.log_root / f"pipeline_{self.run_id}"
        self.log_dir.mkdir(parents=True, exist_ok=True)

        # Stage outputs
        self.sources: Dict[str, pd.DataFrame] = {}
        self.practices: Optional[pd.DataFrame] = None
        self.summary: Optional[pd.DataFrame] = None
        self.correlations: List[CorrelationResult] = []
        self.qa_warnings: List[str] = []

    # -------------------------------------------------------------------

    def _print_header(self):
        print(f"\n{Colors.HEADER}{'=' * 90}{Colors.END}")
        print(f"{Colors.HEADER}{Colors.BOLD}COUNCIL AREA HYPERTENSION REPORT{Colors.END}")
        print(f"{Colors.HEADER}{'=' * 90}{Colors.END}")
        print(f"{Colors.CYAN}Run ID: {self.run_id}{Colors.END}")
        print(f"{Colors.CYAN}Execution Chain: {' → '.join(s.upper() for s in self.STAGE_ORDER)}{Colors.END}")
        print(f"{Colors.CYAN}Logs stored at: {self.log_dir}{Colors.END}")
        print(f"{Colors.HEADER}{'=' * 90}{Colors.END}\n")

    def _print_stage_header(self, stage):
        icon = {
            'ingest': "📥",
            'transform': "🧪",
            'qa': "🔍",
            'report': "📊",
        }.get(stage, "📦")

        print(f"\n{Colors.BLUE}{Colors.BOLD}{icon} {stage.upper()}{Colors.END}")
        print(f"{Colors.BLUE}{'-' * 60}{Colors.END}")

    # -------------------------------------------------------------------
    # STAGES
    # -------------------------------------------------------------------

    def ingest(self) -> int:
        """Load every source and apply its filter/projection."""
        cfg = self.config

        self.sources["prescriptions"] = filter_prescriptions(
            load_prescriptions(cfg), cfg.drug_names, cfg.excluded_hb_code
        )
        self.sources["demographics"] = select_elderly_population(load_demographics(cfg))
        self.sources["health_boards"] = select_health_board_names(load_health_board_names(cfg))
        self.sources["council_areas"] = load_council_area_mapping(cfg)
        self.sources["mortality"] = filter_mortality(
            load_mortality(cfg),
            cfg.mortality_year,
            cfg.age_groups,
            sex=cfg.mortality_sex,
            diagnosis=cfg.mortality_diagnosis,
        )
        self.sources["deprivation"] = select_deprivation(load_deprivation(cfg), cfg.deprivation_quintile_column)

        return sum(len(df) for df in self.sources.values())

    def transform(self) -> int:
        """Join, aggregate per council area, exclude zero mortality, derive the ratio."""
        s = self.sources
        labels = council_area_labels(s["health_boards"], s["council_areas"])
        self.practices = map_practices_to_council_areas(s["prescriptions"], s["demographics"], labels)
        summary = summarise_council_areas(self.practices, s["mortality"], s["deprivation"], labels)
        summary = exclude_zero_mortality(summary)
        self.summary = add_prescriptions_per_death(summary)
        return len(self.summary)

    def qa(self) -> int:
        qa = SummaryQA(self.summary, self.practices)
        exit_code = qa.run_all_checks(self.log_dir / "summary_qa.json")
        self.qa_warnings = qa.warnings
        if exit_code != 0:
            raise ValueError(f"Summary QA failed with {len(qa.issues)} critical issues: {qa.issues}")
        return len(self.summary)

    def report(self) -> int:
        self.correlations = run_correlation_tests(self.summary)
        print_correlations(self.correlations)
        write_report(self.summary, self.correlations, self.config.output_dir, self.config.mortality_year)
        return len(self.correlations)

    # -------------------------------------------------------------------

    def _run_stage(self, stage: str) -> StageResult:
        self._print_stage_header(stage)
        start = time.time()
        try:
            rows = getattr(self, stage)()
            return StageResult(
                name=stage,
                stage_type=stage,
                status="success",
                duration_seconds=time.time() - start,
                rows=rows,
                warnings=len(self.qa_warnings) if stage == 'qa' else 0,
            )
        except Exception as e:
            log.exception(f"{stage} failed: {e}")
            return StageResult(
                name=stage,
                stage_type=stage,
                status="failed",
                duration_seconds=time.time() - start,
                error_message=f"{type(e).__name__}: {e}",
                critical_issues=1,
            )

    def run(self) -> bool:
        """Run every stage in order; stops at the first failure."""
        self._print_header()
        pipeline_start = time.time()

        for stage in self.STAGE_ORDER:
            res = self._run_stage(stage)
            self.results.append(res)

            if res.status == "failed":
                self._print_failure_summary(res)
                self._save_summary(False)
                return False

            print(f"\n{Colors.GREEN}✔ {stage.upper()} COMPLETE{Colors.END}")

        self._print_success_summary(time.time() - pipeline_start)
        self._save_summary(True)
        return True

    # -------------------------------------------------------------------

    def _print_failure_summary(self, result: StageResult):
        print(f"\n{Colors.RED}{'='*90}{Colors.END}")
        print(f"{Colors.RED}{Colors.BOLD}❌ PIPELINE HALTED — CRITICAL FAILURE{Colors.END}")
        print(f"{Colors.RED}{'='*90}{Colors.END}")
        print(f"{Colors.RED}Stage: {result.name}{Colors.END}")
        if result.error_message:
            print(f"{Colors.RED}Error: {result.error_message}{Colors.END}")

    def _print_success_summary(self, total_seconds):
        print(f"\n{Colors.GREEN}{'='*90}{Colors.END}")
        print(f"{Colors.GREEN}{Colors.BOLD}REPORT COMPLETE — ALL STAGES PASSED{Colors.END}")
        print(f"{Colors.GREEN}{'='*90}{Colors.END}")

        print(f"\n{Colors.CYAN}Stage Results:{Colors.END}")
        for r in self.results:
            icon = "✔" if r.status == "success" else "✖"
            print(f"  {icon} {r.name:30s} {r.duration_seconds:6.1f}s")

        print(f"\n{Colors.CYAN}Total time: {total_seconds:.1f}s{Colors.END}")
        print(f"\nReport written to: {self.config.output_dir}")
        print(f"Logs stored under: {self.log_dir}")

    def _save_summary(self, success: bool):
        summary = {
            "run_id": self.run_id,
            "timestamp": datetime.now().isoformat(),
            "success": success,
            "stages": [asdict(r) for r in self.results],
        }

        out = self.log_dir / "pipeline_summary.json"
        with open(out, "w") as f:
            json.dump(summary, f, indent=2)

        print(f"{Colors.CYAN}Summary JSON: {out}{Colors.END}")


# -------------------------------------------------------------------
# ENTRYPOINT
# -------------------------------------------------------------------

def main() -> int:
    config = ReportConfig.from_env()
    pipeline = ReportPipeline(config)
    configure_logging(log_file=pipeline.log_dir / "pipeline.log")

    try:
        ok = pipeline.run()
    except KeyboardInterrupt:
        print(f"{Colors.YELLOW}Interrupted by user.{Colors.END}")
        return 130

    return 0 if ok else 1
