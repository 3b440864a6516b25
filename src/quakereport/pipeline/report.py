import json
from pathlib import Path
from datetime import datetime, timezone
from jinja2 import Environment, FileSystemLoader, select_autoescape
from quakereport.config import APP_NAME, REPORTS, TEMPLATES


def _load_json(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path) as f:
        return json.load(f)


def build_report(reports_dir: Path = REPORTS, templates_dir: Path = TEMPLATES):
    reports_dir.mkdir(parents=True, exist_ok=True)

    # Locate latest manifest
    manifests = sorted(reports_dir.glob("manifest_*.json"))
    if not manifests:
        raise FileNotFoundError("No manifest found. Run previous steps first.")

    manifest = _load_json(manifests[-1])
    metrics = _load_json(reports_dir / "metrics_summary.json")
    hypotheses = _load_json(reports_dir / "hypothesis_summary.json")

    # Collect figures
    figures = sorted([
        p.name for p in reports_dir.glob("*.png")
    ])

    env = Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "j2"]),
    )
    template = env.get_template("report.html.j2")

    html = template.render(
        project=APP_NAME,
        generated_utc=datetime.now(timezone.utc).isoformat(),
        manifest=manifest,
        metrics=metrics,
        hypotheses=hypotheses.get("tests", {}),
        figures=figures,
    )

    out_path = reports_dir / f"report_{manifest['run_id']}.html"
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(html)

    return str(out_path)
