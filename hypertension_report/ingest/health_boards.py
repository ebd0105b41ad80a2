"""
Health-board reference data: board names and the council-area lookup.

The council-area lookup is many-to-one (several council areas per health
board). It is joined on the board name, after the many side has been collapsed
to one label per board (see transform.aggregation.concatenate_council_areas).
"""

import logging

import pandas as pd

from hypertension_report.ingest.sources import as_code, load_source, require_columns

log = logging.getLogger("report.ingest.health_boards")

HEALTH_BOARD_COLUMNS = ["hb", "hb_name"]
COUNCIL_AREA_COLUMNS = ["health_board_name", "council_area"]


def load_health_board_names(config) -> pd.DataFrame:
    df = load_source(config.health_boards_source, "health_boards", config)
    require_columns(df, HEALTH_BOARD_COLUMNS, "health_boards")
    return df


def select_health_board_names(df: pd.DataFrame) -> pd.DataFrame:
    """hb → hb_name, one row per board code."""
    require_columns(df, HEALTH_BOARD_COLUMNS, "health_boards")

    out = pd.DataFrame({
        "hb": as_code(df["hb"]),
        "hb_name": df["hb_name"].astype("string").str.strip(),
    })
    out = out.dropna(subset=["hb"]).drop_duplicates(subset=["hb"]).reset_index(drop=True)

    log.info(f"Health boards: {len(out)} board names")
    return out


def load_council_area_mapping(config) -> pd.DataFrame:
    df = load_source(config.council_areas_source, "council_areas", config)
    require_columns(df, COUNCIL_AREA_COLUMNS, "council_areas")
    return select_council_areas(df)


def select_council_areas(df: pd.DataFrame) -> pd.DataFrame:
    require_columns(df, COUNCIL_AREA_COLUMNS, "council_areas")

    out = pd.DataFrame({
        "health_board_name": df["health_board_name"].astype("string").str.strip(),
        "council_area": df["council_area"].astype("string").str.strip(),
    })
    out = out.dropna().drop_duplicates().reset_index(drop=True)

    log.info(
        f"Council areas: {out['council_area'].nunique()} areas "
        f"across {out['health_board_name'].nunique()} health boards"
    )
    return out
