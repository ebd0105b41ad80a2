import json
from pathlib import Path

import pandas as pd

from hypertension_report.config import ReportConfig
from hypertension_report.ingest.health_boards import load_council_area_mapping
from hypertension_report.pipeline import ReportPipeline


def test_pipeline_end_to_end(local_config):
    pipeline = ReportPipeline(local_config)

    assert pipeline.run() is True
    assert [r.status for r in pipeline.results] == ["success"] * 4

    summary = pipeline.summary.set_index("council_area")

    # Area F (HB5) recorded zero deaths and is excluded
    assert "Area F" not in summary.index
    assert (summary["over65_total_death"] > 0).all()

    # SB0806 practice 999 never reaches the totals
    assert "999" not in pipeline.practices["practice_code"].tolist()

    assert summary.loc["Area A", "over65_CA"] == 750
    assert summary.loc["Area A", "paid_quantity"] == 1500
    assert summary.loc["Area A", "over65_total_death"] == 55
    assert summary.loc["Area A", "prescriptions_per_death"] == 27.3
    assert summary.loc["Area B, Area C", "over65_CA"] == 1440
    assert summary.loc["Area B, Area C", "mean_simd_rank"] == 3.0

    ratio = (summary["paid_quantity"] / summary["over65_total_death"]).round(1)
    assert (summary["prescriptions_per_death"] == ratio).all()

    assert len(pipeline.correlations) == 3

    out = local_config.output_dir
    assert (out / "report.md").exists()
    assert (out / "population_vs_prescriptions.png").exists()
    assert len(pd.read_csv(out / "council_area_summary.csv")) == 4

    with open(pipeline.log_dir / "pipeline_summary.json") as f:
        run_summary = json.load(f)
    assert run_summary["success"] is True
    assert (pipeline.log_dir / "summary_qa.json").exists()


def test_pipeline_halts_on_schema_mismatch(local_config, tmp_path):
    broken = tmp_path / "broken_mortality.csv"
    pd.DataFrame({"Year": [2022], "HBR": ["HB1"], "Deaths": [3]}).to_csv(broken, index=False)
    local_config.mortality_source = str(broken)

    pipeline = ReportPipeline(local_config)

    assert pipeline.run() is False
    assert [r.name for r in pipeline.results] == ["ingest"]
    assert pipeline.results[0].status == "failed"
    assert "ValueError" in pipeline.results[0].error_message
    assert not (local_config.output_dir / "report.md").exists()

    with open(pipeline.log_dir / "pipeline_summary.json") as f:
        assert json.load(f)["success"] is False


def test_pipeline_halts_on_missing_source(local_config, tmp_path):
    local_config.prescriptions_source = str(tmp_path / "nowhere.csv")
    pipeline = ReportPipeline(local_config)

    assert pipeline.run() is False
    assert "FileNotFoundError" in pipeline.results[0].error_message


def test_config_from_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("REPORT_MORTALITY_SOURCE", "/data/mortality.csv")
    monkeypatch.setenv("REPORT_OUTPUT_DIR", str(tmp_path / "custom"))
    monkeypatch.setenv("REPORT_SAVE_RAW", "true")
    monkeypatch.setenv("REPORT_HTTP_TIMEOUT", "30")

    config = ReportConfig.from_env()

    assert config.mortality_source == "/data/mortality.csv"
    assert config.output_dir == tmp_path / "custom"
    assert config.output_dir.exists()
    assert config.save_raw is True
    assert config.http_timeout == 30
    assert config.prescriptions_source.startswith("ckan:")
    assert config.mortality_year == 2022


def test_bundled_council_area_lookup_found_from_any_directory(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    config = ReportConfig(output_dir=tmp_path / "report", log_root=tmp_path / "logs")

    mapping = load_council_area_mapping(config)

    assert Path(config.council_areas_source).is_absolute()
    assert mapping["council_area"].nunique() == 32
    assert mapping["health_board_name"].nunique() == 14
