import json
from datetime import datetime, timezone
from pathlib import Path
import platform
import sys
import uuid

from quakereport.config import APP_NAME
from quakereport.utils.serialization import NumpyEncoder


def create_manifest(output_dir: Path, inputs: dict, parameters: dict):
    run_id = uuid.uuid4().hex[:12]
    now = datetime.now(timezone.utc)

    manifest = {
        "project": APP_NAME,
        "run_id": run_id,
        "timestamp_utc": now.isoformat(),
        "python_version": sys.version,
        "platform": platform.platform(),
        "inputs": inputs,
        "parameters": parameters,
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    # Timestamp prefix keeps manifests sortable by creation time
    path = output_dir / f"manifest_{now.strftime('%Y%m%dT%H%M%S%f')}_{run_id}.json"

    with open(path, "w") as f:
        json.dump(manifest, f, indent=2, cls=NumpyEncoder)

    return path
