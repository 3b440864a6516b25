from quakereport.pipeline.visualize import visualize


def test_visualizations_created(enriched_frame, tmp_path):
    dataset = tmp_path / "earthquakes.parquet"
    enriched_frame.to_parquet(dataset, index=False)

    outputs = visualize(dataset=dataset, reports_dir=tmp_path)

    assert len(outputs) == 6
    for path in outputs:
        assert (tmp_path / path.split("/")[-1]).exists()
