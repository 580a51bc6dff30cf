from dataclasses import dataclass


class IterationAborted(Exception):
    """Raised when a gating check fails; ends the current iteration."""


@dataclass
class CheckResult:
    name: str
    label: str | None
    passed: bool

    @property
    def key(self) -> str:
        return check_key(self.name, self.label)


def check_key(name: str, label: str | None = None) -> str:
    if label:
        return f"{name}{{tab:{label}}}"
    return name


class CheckRecorder:
    """Outcome log for one iteration.

    Non-gating groups are recorded and execution continues; gating checks
    are recorded and then abort the iteration when they fail.
    """

    def __init__(self):
        self.results: list[CheckResult] = []

    def record_check(self, label: str | None, checks: dict[str, bool]) -> bool:
        ok = True
        for name, passed in checks.items():
            passed = bool(passed)
            self.results.append(CheckResult(name=name, label=label, passed=passed))
            ok = ok and passed
        return ok

    def assert_or_abort(self, name: str, passed: bool, message: str, label: str | None = None) -> None:
        if not self.record_check(label, {name: passed}):
            raise IterationAborted(message)

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if not r.passed)

    @property
    def passed(self) -> bool:
        return self.failures == 0

    def as_list(self) -> list[dict]:
        return [{"name": r.name, "label": r.label, "passed": r.passed} for r in self.results]


class CheckTally:
    """Pass/fail counts per named check, aggregated across iterations."""

    def __init__(self):
        self.counts: dict[str, dict[str, int]] = {}

    def merge(self, recorder: CheckRecorder) -> None:
        for r in recorder.results:
            entry = self.counts.setdefault(r.key, {"passes": 0, "fails": 0})
            if r.passed:
                entry["passes"] += 1
            else:
                entry["fails"] += 1

    @property
    def total_fails(self) -> int:
        return sum(c["fails"] for c in self.counts.values())

    def as_dict(self) -> dict:
        return {k: dict(v) for k, v in self.counts.items()}
