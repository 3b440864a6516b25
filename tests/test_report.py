import pytest

from quakereport.analysis.suite import run_hypotheses
from quakereport.pipeline.bootstrap import bootstrap
from quakereport.pipeline.metrics import compute_metrics
from quakereport.pipeline.report import build_report


def test_report_created(enriched_frame, tmp_path):
    dataset = tmp_path / "earthquakes.parquet"
    enriched_frame.to_parquet(dataset, index=False)
    bootstrap(reports_dir=tmp_path)
    compute_metrics(dataset=dataset, reports_dir=tmp_path)
    run_hypotheses(dataset=dataset, reports_dir=tmp_path)

    path = build_report(reports_dir=tmp_path)

    assert (tmp_path / path.split("/")[-1]).exists()
    html = (tmp_path / path.split("/")[-1]).read_text()
    assert "Hypothesis tests" in html
    assert "<h3>poisson</h3>" in html
    assert "depth_category[Shallow]" in html
    assert f"{len(enriched_frame)} earthquakes" in html


def test_report_requires_manifest(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_report(reports_dir=tmp_path)
