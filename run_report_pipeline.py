#!/usr/bin/env python3
"""
Council-Area Hypertension Report

Ingest → Transform → QA → Report, in one run. Sources and output directory are
configured through environment variables (see hypertension_report/config.py).

Usage:
    python3 run_report_pipeline.py
"""

import sys

from hypertension_report.pipeline import main


if __name__ == "__main__":
    sys.exit(main())
