from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]

DATA_RAW = PROJECT_ROOT / "data" / "raw"
DATA_PROCESSED = PROJECT_ROOT / "data" / "processed"
REPORTS = PROJECT_ROOT / "reports"
LOGS = PROJECT_ROOT / "logs"
TEMPLATES = PROJECT_ROOT / "templates"

APP_NAME = "QUAKEREPORT"

# USGS significant earthquakes (significance >= 600), 1900 onwards
SOURCE_URL = (
    "https://earthquake.usgs.gov/fdsnws/event/1/query"
    "?format=csv&starttime=1900-01-01&endtime=2023-12-31"
    "&minsig=600&orderby=time-asc"
)

RAW_FILE = DATA_RAW / "earthquakes.csv"
PROCESSED_FILE = DATA_PROCESSED / "earthquakes.parquet"

ALPHA = 0.05

# Category thresholds; boundary values belong to the middle bucket
MAGNITUDE_MODERATE = (4.0, 7.0)
DEPTH_INTERMEDIATE = (70.0, 300.0)
