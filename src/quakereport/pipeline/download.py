import logging
from pathlib import Path

import requests

from quakereport.config import RAW_FILE, SOURCE_URL
from quakereport.errors import DataSourceError
from quakereport.utils.hashing import sha256

logger = logging.getLogger(__name__)


def download_catalog(url: str = SOURCE_URL, out_path: Path = RAW_FILE):
    out_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        r = requests.get(url, timeout=60)
        r.raise_for_status()
    except requests.RequestException as e:
        raise DataSourceError(f"Catalogue download failed: {url} ({e})") from e

    with open(out_path, "wb") as f:
        f.write(r.content)

    file_hash = sha256(out_path)
    logger.info("Downloaded %d bytes to %s", len(r.content), out_path)

    return {
        "file": str(out_path),
        "sha256": file_hash,
        "source_url": url,
    }
