import asyncio
import itertools
import time
from dataclasses import dataclass
from pathlib import Path

from playwright.async_api import async_playwright

from checks import CheckRecorder, CheckTally, IterationAborted
from tab_probe import OPTIONS, TARGET_URL, tab_switch_probe


SUPPORTED_EXECUTORS = ("shared-iterations",)
BROWSER_TYPES = ("chromium", "firefox", "webkit")

# Matches the load tool's default maxDuration of 10m
DEFAULT_MAX_DURATION = 600.0

FATAL_STATUSES = ("aborted", "errored", "interrupted")


@dataclass
class ScenarioConfig:
    name: str = "browser"
    executor: str = "shared-iterations"
    browser_type: str = "chromium"
    iterations: int = 1
    vus: int = 1
    max_duration: float = DEFAULT_MAX_DURATION
    base_url: str = TARGET_URL
    headless: bool = True

    def __post_init__(self):
        if self.executor not in SUPPORTED_EXECUTORS:
            raise ValueError(f"Unsupported executor: {self.executor}")
        if self.browser_type not in BROWSER_TYPES:
            raise ValueError(f"Unsupported browser type: {self.browser_type}")
        if self.iterations < 1:
            raise ValueError("iterations must be at least 1")
        if self.vus < 1:
            raise ValueError("vus must be at least 1")
        if self.max_duration <= 0:
            raise ValueError("max_duration must be positive")
        self.vus = min(self.vus, self.iterations)

    @classmethod
    def from_options(cls, options: dict = OPTIONS, name: str = "browser", **overrides) -> "ScenarioConfig":
        scenarios = options.get("scenarios", {})
        if name not in scenarios:
            raise ValueError(f"Scenario not found in options: {name}")
        scenario = scenarios[name]
        browser_opts = scenario.get("options", {}).get("browser", {})
        values = {
            "name": name,
            "executor": scenario.get("executor", "shared-iterations"),
            "browser_type": browser_opts.get("type", "chromium"),
        }
        for key in ("iterations", "vus", "max_duration"):
            if key in scenario:
                values[key] = scenario[key]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def summarize(iterations: list[dict], tally: CheckTally, configured: int | None = None, interrupted: bool = False) -> dict:
    summary = {
        "configured_iterations": len(iterations) if configured is None else configured,
        "iterations": len(iterations),
        "check_fails": tally.total_fails,
        "interrupted_run": interrupted,
    }
    for status in ("passed", "failed", "aborted", "errored", "interrupted"):
        summary[status] = sum(1 for r in iterations if r.get("status") == status)
    return summary


async def run_shared_iterations(browser, config: ScenarioConfig, probe=tab_switch_probe, run_dir: Path | None = None, verbose: bool = False) -> dict:
    """Run config.iterations probe iterations spread over config.vus workers.

    Each iteration runs exactly once, on whichever worker picks it up next.
    The whole run is bounded by config.max_duration; iterations still in
    flight at the deadline are cancelled and reported as interrupted.
    """
    screenshots_dir = run_dir / "screenshots" if run_dir else None
    counter = itertools.count()
    results: list[dict] = []
    tally = CheckTally()

    async def run_one(vu: int, idx: int) -> None:
        recorder = CheckRecorder()
        shot = screenshots_dir / f"iter{idx + 1:03d}_vu{vu}_failure.png" if screenshots_dir else None
        status = "passed"
        error = ""
        started = time.monotonic()
        if verbose:
            print(f"\n===== Iteration {idx + 1} (vu {vu}) =====")
        try:
            await probe(browser, recorder, base_url=config.base_url, screenshot_path=shot, verbose=verbose)
            if not recorder.passed:
                status = "failed"
                error = f"{recorder.failures} check(s) failed"
        except IterationAborted as e:
            status = "aborted"
            error = str(e)
        except asyncio.CancelledError:
            status = "interrupted"
            error = "Iteration cancelled at max duration"
            raise
        except Exception as e:
            status = "errored"
            error = f"{type(e).__name__}: {e}"
        finally:
            tally.merge(recorder)
            results.append({
                "iteration": idx + 1,
                "vu": vu,
                "status": status,
                "error": error,
                "checks": recorder.as_list(),
                "screenshot": str(shot) if shot and shot.exists() else "",
                "duration_ms": int((time.monotonic() - started) * 1000),
            })
            if status == "passed":
                if verbose:
                    print(f"✓ Iteration {idx + 1} passed")
            else:
                print(f"✖ Iteration {idx + 1} {status}: {error}")

    async def worker(vu: int) -> None:
        while True:
            idx = next(counter)
            if idx >= config.iterations:
                return
            await run_one(vu, idx)

    interrupted = False
    workers = [asyncio.create_task(worker(vu)) for vu in range(1, config.vus + 1)]
    try:
        await asyncio.wait_for(asyncio.gather(*workers), timeout=config.max_duration)
    except asyncio.TimeoutError:
        interrupted = True
        print(f"⚠️ Scenario '{config.name}' hit max duration of {config.max_duration}s; remaining iterations skipped")

    results.sort(key=lambda r: r["iteration"])
    return {
        "scenario": config.name,
        "executor": config.executor,
        "browser": config.browser_type,
        "base_url": config.base_url,
        "iterations": results,
        "checks": tally.as_dict(),
        "summary": summarize(results, tally, configured=config.iterations, interrupted=interrupted),
    }


async def run_scenario(config: ScenarioConfig, run_dir: Path | None = None, verbose: bool = False) -> dict:
    async with async_playwright() as p:
        launcher = getattr(p, config.browser_type)
        browser = await launcher.launch(headless=config.headless)
        try:
            return await run_shared_iterations(browser, config, run_dir=run_dir, verbose=verbose)
        finally:
            await browser.close()


def exit_code(results: dict) -> int:
    summary = results.get("summary", {})
    if summary.get("interrupted_run") or any(summary.get(s, 0) for s in FATAL_STATUSES):
        return 2
    if summary.get("failed", 0) or summary.get("check_fails", 0):
        return 1
    return 0
