"""
Report configuration.

Defaults point at the NHS Scotland open-data CSV extracts the report was built
against plus the council-area lookup bundled with the package. Extracts that
the portal republishes under new resource IDs are named by dataset and
resource name ("ckan:<dataset>/<resource name>") and resolved through the
portal's CKAN API at load time. Every source location can be overridden from
the environment (or a .env file) so the same pipeline runs against local
copies:

    REPORT_PRESCRIPTIONS_SOURCE   REPORT_DEMOGRAPHICS_SOURCE
    REPORT_HEALTH_BOARDS_SOURCE   REPORT_COUNCIL_AREAS_SOURCE
    REPORT_MORTALITY_SOURCE       REPORT_DEPRIVATION_SOURCE
    REPORT_OUTPUT_DIR             REPORT_SAVE_RAW
    REPORT_HTTP_TIMEOUT
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

# -----------------------------
# Source locations
# -----------------------------
CKAN_API_URL = "https://www.opendata.nhs.scot/api/3/action"

PRESCRIPTIONS_SOURCE = "ckan:prescriptions-in-the-community/january 2024"
DEMOGRAPHICS_SOURCE = "ckan:gp-practice-populations/january 2024"
HEALTH_BOARDS_URL = (
    "https://www.opendata.nhs.scot/dataset/9f942fdb-e59e-44f5-b534-d6e17229cc7b"
    "/resource/652ff726-e676-4a20-abda-435b98dd7bdc/download/hb14_hb19.csv"
)
MORTALITY_SOURCE = "ckan:scottish-heart-disease-statistics/mortality by health board"
DEPRIVATION_URL = (
    "https://www.opendata.nhs.scot/dataset/78d41fa9-1a62-4f7b-9edb-3e8522a93378"
    "/resource/acade396-8430-4b34-895a-b3e757fa346e/download/simd2020v2_22062020.csv"
)
COUNCIL_AREAS_PATH = Path(__file__).resolve().parent / "data" / "reference" / "council_area_health_board_lookup.csv"

# -----------------------------
# Analysis constants
# -----------------------------
CCB_DRUG_NAMES = [
    "amlodipine",
    "felodipine",
    "nifedipine",
    "lercanidipine",
    "lacidipine",
    "nicardipine",
    "isradipine",
    "nimodipine",
    "diltiazem",
    "verapamil",
]

AMBULANCE_HB_CODE = "SB0806"  # Scottish Ambulance Service, not a territorial board

MORTALITY_YEAR = 2022
ELDERLY_AGE_GROUPS = ["65-74 years", "75plus years"]
ELDERLY_AGE_BANDS = ["ages65to74", "ages75to84", "ages85plus"]

SIMD_RANK_DECIMALS = 4
RATIO_DECIMALS = 1


def _env(name: str, default: str) -> str:
    """Environment value, falling back to default when unset or blank."""
    return os.getenv(name) or default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if not raw:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ReportConfig:
    """
    Central configuration for the council-area report.
    """

    # Sources (URL or local CSV path)
    prescriptions_source: str = PRESCRIPTIONS_SOURCE
    demographics_source: str = DEMOGRAPHICS_SOURCE
    health_boards_source: str = HEALTH_BOARDS_URL
    council_areas_source: str = str(COUNCIL_AREAS_PATH)
    mortality_source: str = MORTALITY_SOURCE
    deprivation_source: str = DEPRIVATION_URL

    # Filters
    drug_names: List[str] = field(default_factory=lambda: list(CCB_DRUG_NAMES))
    excluded_hb_code: str = AMBULANCE_HB_CODE
    mortality_year: int = MORTALITY_YEAR
    age_groups: List[str] = field(default_factory=lambda: list(ELDERLY_AGE_GROUPS))
    mortality_sex: Optional[str] = "All"
    mortality_diagnosis: Optional[str] = "Heart Disease"
    deprivation_quintile_column: str = "simd2020v2_country_quintile"

    # HTTP
    http_timeout: int = 120

    # Output
    output_dir: Path = Path("data/report")
    raw_dir: Path = Path("data/raw")
    log_root: Path = Path("data/logs")
    save_raw: bool = False

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        self.raw_dir = Path(self.raw_dir)
        self.log_root = Path(self.log_root)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.log_root.mkdir(parents=True, exist_ok=True)
        if self.save_raw:
            self.raw_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "ReportConfig":
        """Build a config from defaults overridden by environment variables."""
        # Already-exported env vars win over .env
        load_dotenv(dotenv_path=dotenv_path, override=False)

        defaults = cls.__dataclass_fields__
        return cls(
            prescriptions_source=_env("REPORT_PRESCRIPTIONS_SOURCE", defaults["prescriptions_source"].default),
            demographics_source=_env("REPORT_DEMOGRAPHICS_SOURCE", defaults["demographics_source"].default),
            health_boards_source=_env("REPORT_HEALTH_BOARDS_SOURCE", defaults["health_boards_source"].default),
            council_areas_source=_env("REPORT_COUNCIL_AREAS_SOURCE", defaults["council_areas_source"].default),
            mortality_source=_env("REPORT_MORTALITY_SOURCE", defaults["mortality_source"].default),
            deprivation_source=_env("REPORT_DEPRIVATION_SOURCE", defaults["deprivation_source"].default),
            http_timeout=int(_env("REPORT_HTTP_TIMEOUT", "120")),
            output_dir=Path(_env("REPORT_OUTPUT_DIR", "data/report")),
            save_raw=_env_flag("REPORT_SAVE_RAW", False),
        )


def configure_logging(level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    """Console logging, plus a run log file when given."""
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
