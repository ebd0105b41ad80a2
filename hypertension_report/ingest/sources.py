"""
Shared CSV loading for every report source.

A source location is an HTTP(S) URL fetched with requests, a catalogue
reference ("ckan:<dataset>/<resource name>") resolved to a URL through the
portal's CKAN package_show API, or a local CSV path. Column names are
normalised to snake_case on load so downstream code never depends on the
publisher's capitalisation.
"""

import io
import logging
import re
from pathlib import Path
from typing import Iterable

import pandas as pd
import requests

from hypertension_report.config import CKAN_API_URL

log = logging.getLogger("report.ingest")

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_SEPARATORS = re.compile(r"[\s\-./]+")

CATALOGUE_PREFIX = "ckan:"


def normalise_column_name(name: str) -> str:
    """GPPractice -> gp_practice, BNFItemDescription -> bnf_item_description."""
    name = str(name).replace("\ufeff", "").strip()
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    name = _WORD_BOUNDARY.sub(r"\1_\2", name)
    name = _SEPARATORS.sub("_", name)
    name = re.sub(r"_+", "_", name).strip("_")
    return name.lower()


def normalise_columns(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out.columns = [normalise_column_name(c) for c in df.columns]
    return out


def require_columns(df: pd.DataFrame, columns: Iterable[str], source: str) -> None:
    """Raise ValueError when any expected column is absent after normalisation."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        log.error(f"{source}: missing columns {missing}")
        log.error(f"{source}: available columns {df.columns.tolist()}")
        raise ValueError(f"{source} source incomplete: missing {missing}")


def fetch_csv(url: str, timeout: int = 120) -> pd.DataFrame:
    """Fetch a CSV over HTTP. Any failure is fatal."""
    log.info(f"HTTP → {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()

        content = response.text
        if not content.strip():
            raise ValueError(f"Empty response from {url}")

        df = pd.read_csv(io.StringIO(content), low_memory=False)

        if df.empty:
            raise ValueError(f"No rows parsed from {url}")

        log.info(f"Fetched {len(df)} rows, {len(df.columns)} columns")
        return df

    except Exception as e:
        log.error(f"Fetch failed: {e}")
        raise


def is_remote(location: str) -> bool:
    return str(location).lower().startswith(("http://", "https://"))


def is_catalogue(location: str) -> bool:
    return str(location).lower().startswith(CATALOGUE_PREFIX)


def resolve_catalogue_resource(location: str, api_url: str = CKAN_API_URL, timeout: int = 120) -> str:
    """
    Resolve "ckan:<dataset>/<resource name>" to the resource's download URL.

    The first resource whose name (or URL) contains the resource name,
    case-insensitively, wins. No match is fatal.
    """
    dataset, _, wanted = str(location)[len(CATALOGUE_PREFIX):].partition("/")
    dataset, wanted = dataset.strip(), wanted.strip()
    if not dataset or not wanted:
        raise ValueError(f"Catalogue source must be ckan:<dataset>/<resource name>, got '{location}'")

    log.info(f"CKAN → {dataset} / '{wanted}'")

    try:
        response = requests.get(f"{api_url}/package_show", params={"id": dataset}, timeout=timeout)
        response.raise_for_status()

        payload = response.json()
        if not payload.get("success"):
            raise ValueError(f"Catalogue lookup failed for {dataset}: {payload.get('error')}")

        resources = payload["result"].get("resources", [])
        needle = wanted.lower()
        matches = [
            r for r in resources
            if needle in str(r.get("name") or "").lower() or needle in str(r.get("url") or "").lower()
        ]
        if not matches:
            names = [r.get("name") for r in resources]
            raise ValueError(f"No resource matching '{wanted}' in {dataset}; available: {names[:20]}")

        url = matches[0]["url"]
        log.info(f"Resolved {dataset} / '{wanted}' → {url}")
        return url

    except Exception as e:
        log.error(f"Catalogue lookup failed: {e}")
        raise


def load_source(location: str, name: str, config=None) -> pd.DataFrame:
    """
    Load one source dataset and normalise its column names.

    Args:
        location: URL, ckan:<dataset>/<resource name>, or local CSV path
        name: short dataset name, used for logs and raw snapshots
        config: ReportConfig; supplies the HTTP timeout and raw snapshot settings
    """
    timeout = config.http_timeout if config is not None else 120

    if is_catalogue(location):
        location = resolve_catalogue_resource(location, timeout=timeout)

    if is_remote(location):
        df_raw = fetch_csv(location, timeout=timeout)
    else:
        path = Path(location)
        if not path.exists():
            log.error(f"{name}: file not found: {path}")
            raise FileNotFoundError(f"Required source file missing: {path}")
        df_raw = pd.read_csv(path, low_memory=False)
        log.info(f"Loaded {name} from {path}: {len(df_raw)} rows")

    if config is not None and config.save_raw:
        raw_path = config.raw_dir / f"{name}.csv"
        df_raw.to_csv(raw_path, index=False)
        log.info(f"✓ Saved raw → {raw_path}")

    return normalise_columns(df_raw)


def as_code(series: pd.Series) -> pd.Series:
    """Join-key column as trimmed strings; 10002.0 and 10002 both become "10002"."""
    if pd.api.types.is_float_dtype(series):
        series = series.astype("Int64")
    return series.astype("string").str.strip()
