import logging
from typing import List, Optional

import typer
from quakereport.pipeline.bootstrap import bootstrap
from quakereport.pipeline.download import download_catalog
from quakereport.pipeline.ingest import ingest_catalog
from quakereport.pipeline.metrics import compute_metrics
from quakereport.pipeline.visualize import visualize as run_visualize
from quakereport.pipeline.report import build_report
from quakereport.analysis.suite import TESTS, run_hypotheses
from quakereport.errors import DataSourceError
from quakereport.utils.logging import setup_logger
from quakereport.utils.provenance import create_manifest
from quakereport.config import ALPHA, LOGS, REPORTS, SOURCE_URL

app = typer.Typer(help="QUAKEREPORT: exploratory analysis of significant earthquakes")

logger = logging.getLogger(__name__)


@app.command()
def init():
    """
    Initialize data/report directories and write a manifest.
    """
    log_file = setup_logger(LOGS)
    typer.echo("🌋 Initializing QUAKEREPORT workspace...")
    manifest = bootstrap()
    typer.echo(f"✔ Workspace ready")
    typer.echo(f"✔ Manifest created at: {manifest}")
    typer.echo(f"✔ Log file: {log_file}")


@app.command()
def download(
    url: str = typer.Option(SOURCE_URL, "--url", "-u", help="CSV source URL"),
):
    """
    Download the earthquake catalogue CSV.
    """
    log_file = setup_logger(LOGS)
    typer.echo("⬇️ Downloading earthquake catalogue...")
    try:
        info = download_catalog(url)
    except DataSourceError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    manifest = create_manifest(
        output_dir=REPORTS,
        inputs={"catalogue": info},
        parameters={"step": "download"},
    )

    typer.echo(f"✔ Downloaded: {info['file']}")
    typer.echo(f"✔ Manifest: {manifest}")
    typer.echo(f"✔ Log: {log_file}")


@app.command()
def ingest(
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Local CSV path or URL (default: downloaded file)"),
):
    """
    Load the catalogue, derive features and write the processed dataset.
    """
    log_file = setup_logger(LOGS)
    typer.echo("🧪 Ingesting earthquake catalogue...")
    try:
        info = ingest_catalog(source)
    except DataSourceError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    manifest = create_manifest(
        output_dir=REPORTS,
        inputs={"processed_dataset": info},
        parameters={"step": "ingest", "source": source},
    )

    typer.echo(f"✔ Processed rows: {info['rows']}")
    typer.echo(f"✔ Dropped incomplete rows: {info['dropped']}")
    typer.echo(f"✔ Output: {info['output_file']}")
    typer.echo(f"✔ Manifest: {manifest}")
    typer.echo(f"✔ Log: {log_file}")


@app.command()
def metrics():
    """
    Compute descriptive summaries of the processed dataset.
    """
    log_file = setup_logger(LOGS)
    typer.echo("📊 Computing descriptive summaries...")
    info = compute_metrics()

    manifest = create_manifest(
        output_dir=REPORTS,
        inputs={"metrics_outputs": {k: v for k, v in info.items() if k != "details"}},
        parameters={"step": "metrics"},
    )

    typer.echo(f"✔ Metrics summary: {info['summary']}")
    typer.echo(f"✔ Manifest: {manifest}")
    typer.echo(f"✔ Log: {log_file}")


@app.command()
def visualize():
    """
    Generate exploratory figures.
    """
    log_file = setup_logger(LOGS)
    typer.echo("📈 Generating figures...")
    outputs = run_visualize()

    manifest = create_manifest(
        output_dir=REPORTS,
        inputs={"visualizations": outputs},
        parameters={"step": "visualize"},
    )

    for o in outputs:
        typer.echo(f"✔ Created: {o}")

    typer.echo(f"✔ Manifest: {manifest}")
    typer.echo(f"✔ Log: {log_file}")


@app.command()
def hypothesis(
    tests: Optional[List[str]] = typer.Option(None, "--test", "-t", help=f"Test(s) to run: {', '.join(TESTS)}"),
    alpha: float = typer.Option(ALPHA, "--alpha", "-a", help="Significance level"),
):
    """
    Run the hypothesis tests.

    time_of_day: two-proportion z-test, Night vs Day
    depth_anova: ANOVA/Welch ANOVA of shallow depth by magnitude category
    poisson:     Poisson regression of counts on categorical predictors
    """
    log_file = setup_logger(LOGS)
    typer.echo("🔬 Running hypothesis tests...")
    unknown = [t for t in tests or [] if t not in TESTS]
    if unknown:
        typer.echo(f"✘ Unknown test(s): {unknown}. Available: {list(TESTS)}", err=True)
        raise typer.Exit(code=2)

    result = run_hypotheses(tests=tests or None, alpha=alpha)

    manifest = create_manifest(
        output_dir=REPORTS,
        inputs={"hypothesis_tests": result},
        parameters={"tests": tests or list(TESTS), "alpha": alpha},
    )

    for name, status in result["status"].items():
        mark = "✔" if status == "valid" else "⚠️"
        typer.echo(f"{mark} {name}: {status}")
    typer.echo(f"✔ Summary: {result['summary']}")
    typer.echo(f"✔ Manifest: {manifest}")
    typer.echo(f"✔ Log: {log_file}")


@app.command()
def report():
    """
    Build the HTML report from the outputs of the previous steps.
    """
    log_file = setup_logger(LOGS)
    typer.echo("🧾 Building report...")
    out = build_report()

    manifest = create_manifest(
        output_dir=REPORTS,
        inputs={"report": out},
        parameters={"step": "report"},
    )

    typer.echo(f"✔ Report created: {out}")
    typer.echo(f"✔ Manifest: {manifest}")
    typer.echo(f"✔ Log: {log_file}")


@app.command()
def full_cycle(
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Local CSV path or URL; skips download"),
):
    """
    Run the whole pipeline: download, ingest, metrics, figures, tests, report.
    """
    log_file = setup_logger(LOGS)
    typer.echo("🔄 Starting full cycle...")

    try:
        if source is None:
            typer.echo("⬇️ Downloading...")
            download_catalog()

        typer.echo("🧪 Ingesting...")
        info = ingest_catalog(source)
    except DataSourceError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    typer.echo("📊 Computing metrics...")
    compute_metrics()

    typer.echo("📈 Visualizing...")
    run_visualize()

    typer.echo("🔬 Testing hypotheses...")
    result = run_hypotheses()

    create_manifest(
        output_dir=REPORTS,
        inputs={"processed_dataset": info, "hypothesis_tests": result},
        parameters={"step": "full_cycle", "source": source},
    )

    typer.echo("🧾 Building report...")
    out = build_report()

    typer.echo(f"✔ Full cycle complete")
    typer.echo(f"✔ Records: {info['rows']} (dropped {info['dropped']})")
    typer.echo(f"✔ Report: {out}")
    typer.echo(f"✔ Log: {log_file}")


def main():
    app()

if __name__ == "__main__":
    main()
