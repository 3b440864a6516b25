import hashlib

import pytest
import requests

from quakereport.errors import DataSourceError
from quakereport.pipeline import download
from quakereport.pipeline.download import download_catalog


class FakeResponse:
    content = b"time,mag,depth,place,latitude,longitude\n"

    def raise_for_status(self):
        pass


def test_download_writes_file_and_hash(monkeypatch, tmp_path):
    monkeypatch.setattr(download.requests, "get", lambda url, timeout: FakeResponse())
    out = tmp_path / "raw" / "earthquakes.csv"

    info = download_catalog("https://example.org/quakes.csv", out_path=out)

    assert out.read_bytes() == FakeResponse.content
    assert info["sha256"] == hashlib.sha256(FakeResponse.content).hexdigest()
    assert info["source_url"] == "https://example.org/quakes.csv"


def test_download_failure(monkeypatch, tmp_path):
    def boom(url, timeout):
        raise requests.Timeout("timed out")

    monkeypatch.setattr(download.requests, "get", boom)
    with pytest.raises(DataSourceError):
        download_catalog("https://example.org/quakes.csv", out_path=tmp_path / "x.csv")
    assert not (tmp_path / "x.csv").exists()
