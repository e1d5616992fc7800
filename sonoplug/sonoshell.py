"""Run a suite of shell commands described in YAML and report Sonobuoy results."""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import yaml

RESULTS_DIR = "/tmp/sonobuoy/results/"
RESULTS_FILE = "sonoshell.yaml"

STATUS_PASSED = "passed"
STATUS_FAILED = "failed"

_SPECIALS = re.compile(r"\W+", re.ASCII)

_log = logging.getLogger(__name__)


@dataclass
class TestCase:
    """One named shell command of a suite."""

    __test__ = False

    name: str = ""
    cmd: str = ""


@dataclass
class TestSpec:
    """A named suite of shell commands, as read from the input YAML."""

    __test__ = False

    name: str = ""
    tests: list[TestCase] = field(default_factory=list)


@dataclass
class Result:
    """A test or suite outcome in the Sonobuoy manual results shape."""

    name: str
    status: str = ""
    meta: dict[str, str] = field(default_factory=dict)
    tests: list[Result] = field(default_factory=list)
    output: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the mapping written to the results file."""
        out: dict[str, Any] = {"name": self.name, "status": self.status, "meta": dict(self.meta)}
        if self.output:
            out["details"] = {"output": self.output}
        if self.tests:
            out["items"] = [test.to_dict() for test in self.tests]
        return out


def _as_text(value: Any, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{what} must be a scalar, got {type(value).__name__}")
    return value


def load_spec(text: str) -> TestSpec:
    """Parse the YAML suite description into a TestSpec.

    Raises ValueError for malformed YAML or a document of the wrong shape.
    """
    try:
        # The base loader keeps every scalar as written, so commands stay text.
        document = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as err:
        raise ValueError(f"invalid test spec: {err}") from err

    if document is None or document == "":
        return TestSpec()
    if not isinstance(document, dict):
        raise ValueError(f"test spec must be a mapping, got {type(document).__name__}")

    raw_tests = document.get("tests")
    if raw_tests is None or raw_tests == "":
        raw_tests = []
    if not isinstance(raw_tests, list):
        raise ValueError(f"tests must be a list, got {type(raw_tests).__name__}")

    tests = []
    for entry in raw_tests:
        if not isinstance(entry, dict):
            raise ValueError(f"each test must be a mapping, got {type(entry).__name__}")
        tests.append(
            TestCase(
                name=_as_text(entry.get("name"), "test name"),
                cmd=_as_text(entry.get("cmd"), "test cmd"),
            )
        )
    return TestSpec(name=_as_text(document.get("name"), "suite name"), tests=tests)


def make_test_pairs(spec: TestSpec, directory: str | None = None) -> dict[str, str]:
    """Write each test's command to its own script file; map test name to file path.

    File names start with the test name, non-word characters replaced by "_".
    """
    pairs: dict[str, str] = {}
    for test in spec.tests:
        prefix = _SPECIALS.sub("_", test.name)
        with tempfile.NamedTemporaryFile(
            mode="w", prefix=prefix, dir=directory, delete=False, encoding="utf-8"
        ) as handle:
            handle.write(test.cmd)
        pairs[test.name] = handle.name
        _log.info("Pair added: %s = %s", test.name, handle.name)
    return pairs


def run_tests(pairs: Mapping[str, str]) -> list[Result]:
    """Run each script with bash; a zero exit status passes, anything else fails."""
    results = []
    for name, script in pairs.items():
        try:
            completed = subprocess.run(
                ["bash", script],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as err:
            status, output = STATUS_FAILED, str(err)
        else:
            status = STATUS_PASSED if completed.returncode == 0 else STATUS_FAILED
            output = completed.stdout.decode("utf-8", errors="replace")
        _log.info('Status of "%s": %s', name, status)
        results.append(Result(name=name, status=status, output=output))
    return results


def summarize(name: str, results: Sequence[Result]) -> Result:
    """Build the suite summary: passed only when every test passed."""
    status = STATUS_PASSED
    if any(result.status != STATUS_PASSED for result in results):
        status = STATUS_FAILED
    return Result(name=name, status=status, meta={"type": "summary"}, tests=list(results))


def main(argv: Sequence[str] | None = None) -> int:
    """Run the suite described by the YAML file named in argv and write the results."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Must pass a path to an input yaml", file=sys.stderr)
        return 1

    try:
        with open(args[0], encoding="utf-8") as handle:
            spec = load_spec(handle.read())
    except (OSError, ValueError) as err:
        print(err, file=sys.stderr)
        return 1

    summary = summarize(spec.name, run_tests(make_test_pairs(spec)))

    try:
        os.makedirs(RESULTS_DIR, exist_ok=True)
        with open(os.path.join(RESULTS_DIR, RESULTS_FILE), "w", encoding="utf-8") as handle:
            yaml.safe_dump(summary.to_dict(), handle, sort_keys=False, allow_unicode=True)
    except OSError as err:
        print(err, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())