from quakereport.config import DATA_RAW, DATA_PROCESSED, REPORTS
from quakereport.utils.provenance import create_manifest


def bootstrap(reports_dir=REPORTS):
    DATA_RAW.mkdir(parents=True, exist_ok=True)
    DATA_PROCESSED.mkdir(parents=True, exist_ok=True)
    reports_dir.mkdir(parents=True, exist_ok=True)

    manifest = create_manifest(
        output_dir=reports_dir,
        inputs={},
        parameters={"step": "bootstrap"}
    )

    return manifest
