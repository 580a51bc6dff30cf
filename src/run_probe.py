#!/usr/bin/env python3

import argparse
import asyncio
import csv
import html
import json
import os
import sys
import zipfile
from datetime import datetime
from pathlib import Path

from executor import ScenarioConfig, exit_code, run_scenario
from tab_probe import OPTIONS, TARGET_URL


def write_html_report(results_json: dict, html_path: Path):
    summary = results_json.get("summary", {})
    total = summary.get("iterations", 0)
    configured = summary.get("configured_iterations", total)
    passed = summary.get("passed", 0)
    failed = total - passed

    html_doc = f"""
<html><head><title>Tab Switch Probe Report</title>
<style>
body {{ font-family: Arial, sans-serif; padding: 20px; }}
.summary {{ margin-bottom: 16px; }}
.pass {{ color: #0a7b44; }}
.fail {{ color: #b00020; }}
table {{ border-collapse: collapse; }}
td, th {{ border: 1px solid #ddd; padding: 4px 10px; text-align: left; }}
pre {{ background: #f6f8fa; padding: 12px; border-radius: 6px; overflow: auto; }}
</style>
</head><body>
  <h1>Tab Switch Probe Report</h1>
  <div class="summary">
    <strong>Target:</strong> {html.escape(results_json.get('base_url', ''))} &nbsp;
    <strong>Iterations:</strong> {total} of {configured} &nbsp; <strong class="pass">Passed:</strong> {passed} &nbsp; <strong class="fail">Failed:</strong> {failed}
  </div>
  <h2>Checks</h2>
  {render_check_table(results_json.get('checks', {}))}
  <hr />
  {''.join(render_iteration(r) for r in results_json.get('iterations', []))}
</body></html>
"""
    with open(html_path, "w", encoding="utf-8") as f:
        f.write(html_doc)


def render_check_table(checks: dict) -> str:
    rows = []
    for key, counts in checks.items():
        status_class = "fail" if counts.get("fails") else "pass"
        rows.append(
            f"<tr><td class=\"{status_class}\">{html.escape(key)}</td>"
            f"<td>{counts.get('passes', 0)}</td><td>{counts.get('fails', 0)}</td></tr>"
        )
    return "<table><tr><th>Check</th><th>Passes</th><th>Fails</th></tr>" + "".join(rows) + "</table>"


def render_iteration(result: dict) -> str:
    status_class = "pass" if result.get("status") == "passed" else "fail"
    error = result.get("error", "")
    screenshot = result.get("screenshot", "")
    # Screenshots sit next to report.html under screenshots/
    if screenshot:
        screenshot = f"screenshots/{Path(screenshot).name}"
    checks_rendered = html.escape(json.dumps(result.get("checks", []), indent=2))
    img_tag = f"<div><img src=\"{screenshot}\" style=\"max-width: 100%; border: 1px solid #ddd;\" /></div>" if screenshot else ""
    error_block = f"<pre>{html.escape(error)}</pre>" if error else ""
    return f"""
  <section>
    <h3 class="{status_class}">Iteration {result.get('iteration')} (vu {result.get('vu')}): {result.get('status', 'unknown').upper()}</h3>
    <details>
      <summary>Checks</summary>
      <pre>{checks_rendered}</pre>
    </details>
    {img_tag}
    {error_block}
  </section>
  <hr />
"""


def archive_files(zip_path: Path, files: list[Path], base_dir: Path | None = None):
    with zipfile.ZipFile(zip_path, "w") as zf:
        for f in files:
            if f.exists():
                arcname = f.relative_to(base_dir) if base_dir else Path(f.name)
                zf.write(f, arcname=arcname.as_posix())


def log_to_csv(log_path: Path, timestamp: str, results_json: dict, artifacts: dict):
    csv_exists = log_path.exists()
    summary = results_json.get("summary", {})
    with open(log_path, "a", newline="") as csvfile:
        writer = csv.writer(csvfile)
        if not csv_exists:
            writer.writerow(["Timestamp", "Target", "Configured Iterations", "Iterations", "Passed", "Check Fails", "Results", "Report", "Archive"])
        writer.writerow([
            timestamp,
            results_json.get("base_url", ""),
            summary.get("configured_iterations", summary.get("iterations", 0)),
            summary.get("iterations", 0),
            summary.get("passed", 0),
            summary.get("check_fails", 0),
            str(artifacts.get("results")),
            str(artifacts.get("report")),
            str(artifacts.get("archive")),
        ])


def print_summary(results_json: dict):
    print("\n===== Checks =====")
    for key, counts in results_json.get("checks", {}).items():
        mark = "✖" if counts.get("fails") else "✓"
        print(f"{mark} {key}: {counts.get('passes', 0)} passed, {counts.get('fails', 0)} failed")
    for r in results_json.get("iterations", []):
        if r.get("status") in ("aborted", "errored", "interrupted"):
            print(f"✖ Iteration {r.get('iteration')} {r.get('status')}: {r.get('error')}")
    summary = results_json.get("summary", {})
    ran = summary.get("iterations", 0)
    print(
        f"✅ Done. Iterations: {ran} of {summary.get('configured_iterations', ran)}, Passed: {summary.get('passed', 0)}, "
        f"Failed: {summary.get('failed', 0)}, Aborted: {summary.get('aborted', 0)}, "
        f"Errored: {summary.get('errored', 0)}, Interrupted: {summary.get('interrupted', 0)}"
    )


def env_int(name: str, default: int | None = None) -> int | None:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise SystemExit(f"{name} must be an integer, got {raw!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tab switch probe: YouTube / User media source tabs")
    parser.add_argument("--base-url", default=os.environ.get("PROBE_BASE_URL", TARGET_URL), help="Page under test")
    parser.add_argument("--iterations", type=int, default=env_int("PROBE_ITERATIONS"), help="Total iterations shared across VUs")
    parser.add_argument("--vus", type=int, default=env_int("PROBE_VUS"), help="Concurrent virtual users")
    parser.add_argument("--max-duration", type=float, help="Stop the scenario after this many seconds")
    parser.add_argument("--out-dir", default="data/runs", help="Directory for run artifacts")
    parser.add_argument("--headful", action="store_true", help="Run browser headful for debugging")
    parser.add_argument("--verbose", action="store_true", help="Print per-iteration step logs")
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)

    try:
        config = ScenarioConfig.from_options(
            OPTIONS,
            base_url=args.base_url,
            iterations=args.iterations,
            vus=args.vus,
            max_duration=args.max_duration,
            headless=(not args.headful),
        )
    except ValueError as e:
        raise SystemExit(f"Invalid scenario configuration: {e}")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(args.out_dir) / f"run_{timestamp}"
    (run_dir / "screenshots").mkdir(parents=True, exist_ok=True)

    print(f"🏃 Running scenario '{config.name}' ({config.executor}, {config.browser_type}): "
          f"{config.iterations} iteration(s) on {config.vus} VU(s) against {config.base_url}")
    results_json = asyncio.run(run_scenario(config, run_dir=run_dir, verbose=args.verbose))

    results_path = run_dir / "results.json"
    with open(results_path, "w", encoding="utf-8") as f:
        json.dump(results_json, f, indent=2)
    print(f"📊 Results written: {results_path}")
    artifacts = {"results": results_path}

    report_path = run_dir / "report.html"
    write_html_report(results_json, report_path)
    artifacts["report"] = report_path
    print(f"📝 HTML report: {report_path}")

    archive_path = run_dir / "archive.zip"
    screenshots = sorted((run_dir / "screenshots").glob("*.png"))
    archive_files(archive_path, [results_path, report_path] + screenshots, base_dir=run_dir)
    artifacts["archive"] = archive_path
    print(f"📦 Archive: {archive_path}")

    log_to_csv(Path(args.out_dir) / "run_log.csv", timestamp, results_json, artifacts)

    print_summary(results_json)
    sys.exit(exit_code(results_json))


if __name__ == "__main__":
    main()
