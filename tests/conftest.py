import pandas as pd
import pytest

from hypertension_report.config import ReportConfig


@pytest.fixture
def raw_prescriptions():
    """Publisher-style prescription extract (CamelCase headers)."""
    return pd.DataFrame({
        "HBT": ["HB1", "HB1", "HB1", "SB0806", "HB2", "HB2"],
        "GPPractice": ["G001", "G001", "G002", "G900", "G003", "G003"],
        "BNFItemDescription": [
            "AMLODIPINE 5MG TABLETS",
            "PARACETAMOL 500MG TABLETS",
            "felodipine 10mg m/r tablets",
            "NIFEDIPINE 20MG M/R CAPSULES",
            "DILTIAZEM 60MG M/R TABLETS",
            "ATORVASTATIN 20MG TABLETS",
        ],
        "PaidQuantity": [10, 5, 28, 56, 30, 14],
    })


@pytest.fixture
def raw_demographics():
    return pd.DataFrame({
        "PracticeCode": ["G001", "G001", "G001", "G002", "G003"],
        "Sex": ["All", "Male", "Female", "All", "All"],
        "Ages65to74": [20, 12, 8, 40, 15],
        "Ages75to84": [10, 4, 6, 25, 5],
        "Ages85plus": [5, 2, 3, 10, 2],
    })


@pytest.fixture
def raw_health_boards():
    return pd.DataFrame({
        "HB": ["HB1", "HB2", "HB3"],
        "HBName": ["NHS One", "NHS Two", "NHS Three"],
    })


@pytest.fixture
def raw_council_areas():
    return pd.DataFrame({
        "HealthBoardName": ["NHS One", "NHS Two", "NHS Two", "NHS Three"],
        "CouncilArea": ["Area A", "Area C", "Area B", "Area D"],
    })


@pytest.fixture
def raw_mortality():
    return pd.DataFrame({
        "Year": [2022, 2022, 2022, 2022, 2021, 2022],
        "HBR": ["HB1", "HB1", "HB2", "HB2", "HB1", "HB1"],
        "AgeGroup": ["65-74 years", "75plus years", "65-74 years", "45-64 years", "65-74 years", "All"],
        "NumberOfDeaths": [3, 4, 6, 9, 100, 500],
    })


@pytest.fixture
def raw_deprivation():
    return pd.DataFrame({
        "DataZone": ["DZ1", "DZ2", "DZ3", "DZ4", "DZ5"],
        "HB": ["HB1", "HB1", "HB1", "HB2", "HB2"],
        "SIMD2020v2CountryQuintile": [1, 2, None, 4, 5],
    })


def write_csv(df: pd.DataFrame, path) -> str:
    df.to_csv(path, index=False)
    return str(path)


@pytest.fixture
def pipeline_sources(tmp_path):
    """Four health boards, five council areas, written as local CSV sources."""
    src = tmp_path / "sources"
    src.mkdir()

    prescriptions = pd.DataFrame({
        "HBT": ["HB1", "HB1", "HB2", "HB2", "HB3", "HB4", "SB0806", "HB5"],
        "GPPractice": [101, 102, 201, 202, 301, 401, 999, 501],
        "BNFItemDescription": [
            "AMLODIPINE 5MG TABLETS", "AMLODIPINE 10MG TABLETS", "FELODIPINE 5MG M/R TABLETS",
            "LERCANIDIPINE 10MG TABLETS", "NIFEDIPINE 30MG M/R TABLETS", "VERAPAMIL 40MG TABLETS",
            "AMLODIPINE 5MG TABLETS", "AMLODIPINE 5MG TABLETS",
        ],
        "PaidQuantity": [1000, 500, 2400, 800, 900, 3000, 77, 450],
    })
    demographics = pd.DataFrame({
        "PracticeCode": [101, 102, 201, 202, 301, 401, 501],
        "Sex": ["All"] * 7,
        "Ages65to74": [300, 150, 700, 200, 250, 900, 100],
        "Ages75to84": [150, 70, 300, 100, 120, 400, 60],
        "Ages85plus": [50, 30, 100, 40, 30, 150, 20],
    })
    health_boards = pd.DataFrame({
        "HB": ["HB1", "HB2", "HB3", "HB4", "HB5"],
        "HBName": ["NHS One", "NHS Two", "NHS Three", "NHS Four", "NHS Five"],
    })
    council_areas = pd.DataFrame({
        "HealthBoardName": ["NHS One", "NHS Two", "NHS Two", "NHS Three", "NHS Four", "NHS Five"],
        "CouncilArea": ["Area A", "Area B", "Area C", "Area D", "Area E", "Area F"],
    })
    mortality = pd.DataFrame({
        "Year": [2022] * 9,
        "HBR": ["HB1", "HB1", "HB2", "HB2", "HB3", "HB3", "HB4", "HB4", "HB5"],
        "AgeGroup": ["65-74 years", "75plus years"] * 4 + ["65-74 years"],
        "Sex": ["All"] * 9,
        "Diagnosis": ["Heart Disease"] * 9,
        "NumberOfDeaths": [20, 35, 60, 80, 15, 25, 90, 110, 0],
    })
    deprivation = pd.DataFrame({
        "DataZone": [f"DZ{i}" for i in range(10)],
        "HB": ["HB1", "HB1", "HB2", "HB2", "HB3", "HB3", "HB4", "HB4", "HB5", "HB5"],
        "SIMD2020v2CountryQuintile": [1, 2, 3, 3, 5, 4, 1, 1, 2, 3],
    })

    return {
        "prescriptions_source": write_csv(prescriptions, src / "prescriptions.csv"),
        "demographics_source": write_csv(demographics, src / "demographics.csv"),
        "health_boards_source": write_csv(health_boards, src / "health_boards.csv"),
        "council_areas_source": write_csv(council_areas, src / "council_areas.csv"),
        "mortality_source": write_csv(mortality, src / "mortality.csv"),
        "deprivation_source": write_csv(deprivation, src / "deprivation.csv"),
    }


@pytest.fixture
def local_config(tmp_path, pipeline_sources):
    return ReportConfig(
        output_dir=tmp_path / "report",
        raw_dir=tmp_path / "raw",
        log_root=tmp_path / "logs",
        **pipeline_sources,
    )
