"""
test_integration.py - End-to-end reconciliation tests.

Runs the full pipeline against temporary directories:
- directory scan (hidden files, sub-directories, missing dirs)
- scenarios A-D through parse() and run_reconciliation()
- CLI exit codes and output modes
- stage logging and the stderr/stdout split
- environment-driven settings

Usage:
    python test_integration.py
"""

from __future__ import annotations

import contextlib
import io
import json
import logging
import os
import sys
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Iterable

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import main as cli
from config import DEFAULT_TARGET_DIR, load_settings
from inbox import scan_directory
from logging_config import setup_logging
from main import parse, run_reconciliation
from models import MalformedFilenameError, ViolationType


def _configure_output_symbols() -> tuple[str, str, str]:
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "✓✗═".encode(sys.stdout.encoding or "utf-8")
        return "✓", "✗", "═"
    except Exception:
        return "[OK]", "[FAIL]", "="


PASS, FAIL, LINE = _configure_output_symbols()

SCENARIO_A = [
    "10050-ABC1_check.pdf",
    "10050-ABC1_EOB_John_5000_Jane_5050_.pdf",
]


def _populate(directory: Path, names: Iterable[str]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_bytes(b"")
    return directory


def _capture(func, *args) -> tuple[object, str]:
    buffer = io.StringIO()
    with contextlib.redirect_stdout(buffer):
        value = func(*args)
    return value, buffer.getvalue()


def _run_cli(argv: list[str]) -> tuple[int, str]:
    buffer = io.StringIO()
    code = 0
    with contextlib.redirect_stdout(buffer), contextlib.redirect_stderr(io.StringIO()):
        try:
            cli.main(argv)
        except SystemExit as exc:
            code = exc.code if isinstance(exc.code, int) else 1
    return code, buffer.getvalue()


def main() -> int:
    passed = 0
    failed = 0

    def check(name: str, condition: bool) -> None:
        nonlocal passed, failed
        if condition:
            print(f"    {PASS} {name}")
            passed += 1
        else:
            print(f"    {FAIL} {name}")
            failed += 1

    print(LINE * 62)
    print("  Integration Tests - Full Reconciliation Runs")
    print(LINE * 62)

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)

        # ----------------------------------------------------------
        # Category 1: directory scan
        # ----------------------------------------------------------
        print("\n  Directory scan:")
        scan_dir = _populate(root / "scan", SCENARIO_A + [".hidden_check.pdf", "notes.txt"])
        (scan_dir / "10050-ABC1_EOB_nested").mkdir()
        names = scan_directory(scan_dir)
        check("hidden files skipped", ".hidden_check.pdf" not in names)
        check("sub-directories skipped", "10050-ABC1_EOB_nested" not in names)
        check("names sorted", names == sorted(names))
        check("all regular files listed", len(names) == 3)

        for bad_path, expected_exc, desc in [
            (root / "missing", FileNotFoundError, "missing dir raises FileNotFoundError"),
            (scan_dir / "notes.txt", NotADirectoryError, "file path raises NotADirectoryError"),
            ("", ValueError, "empty path raises ValueError"),
        ]:
            try:
                scan_directory(bad_path)
                raised = False
            except expected_exc:
                raised = True
            check(desc, raised)

        # ----------------------------------------------------------
        # Category 2: scenarios
        # ----------------------------------------------------------
        print("\n  Scenarios:")
        dir_a = _populate(root / "a", SCENARIO_A + ["unrelated.docx"])
        count, output = _capture(parse, dir_a, Decimal("100.50"))
        check("A: zero problems", count == 0)
        check("A: prints 'No errors found.'", output.strip() == "No errors found.")
        result_a = run_reconciliation(dir_a, Decimal("100.50"))
        check("A: grand total 100.50", result_a.report.grand_total == Decimal("100.50"))
        check("A: unrelated file counted as skipped", result_a.skipped_files == 1 and result_a.scanned_files == 3)

        count, output = _capture(parse, dir_a, Decimal("200.00"))
        check("B: one problem", count == 1)
        check(
            "B: expected-total message",
            output.strip() == "1. The expected total of 200.00 does not equal 100.50",
        )

        dir_c = _populate(root / "c", ["10050-ABC1_EOB_John_5000_.pdf"])
        count, output = _capture(parse, dir_c, Decimal("50.00"))
        check("C: missing check file reported", "Missing check file for 10050-ABC1" in output)
        check("C: numbered from 1", output.startswith("1. "))

        dir_d = _populate(
            root / "d",
            ["10050-ABC1_EOB_John_5000_Jane_5050_.pdf", "99999-ABC1_check.pdf"],
        )
        result_d = run_reconciliation(dir_d, Decimal("100.50"))
        d_types = [violation.type for violation in result_d.violations]
        check("D: check file forms its own record", sorted(result_d.records) == ["10050-ABC1", "99999-ABC1"])
        check("D: record without check file flagged", ViolationType.MISSING_CHECK_FILE in d_types)
        check("D: stray check record unbalanced", ViolationType.ITEM_TOTAL_MISMATCH in d_types)

        dir_mixed = _populate(
            root / "mixed",
            [
                "2000-A_EOB_X_1000_.pdf",
                "2000-A_EOB_Y_1000_.pdf",
                "2000-A_check.pdf",
                "3050-B_EOB_Z_3050_.pdf",
                "3050-B_check.pdf",
                "README.md",
            ],
        )
        result_mixed = run_reconciliation(dir_mixed, Decimal("50.50"))
        check("multi-record clean run", result_mixed.is_clean)
        check("multi-record grand total", result_mixed.report.grand_total == Decimal("50.50"))

        # ----------------------------------------------------------
        # Category 3: fatal errors
        # ----------------------------------------------------------
        print("\n  Fatal errors:")
        dir_bad = _populate(root / "bad", SCENARIO_A + ["10050-ABC1_EOB_Ann_1x_.pdf"])
        try:
            run_reconciliation(dir_bad, Decimal("100.50"))
            fatal = False
        except MalformedFilenameError:
            fatal = True
        check("malformed amount aborts the run", fatal)

        try:
            run_reconciliation(root / "nope", Decimal("1.00"))
            missing_fatal = False
        except FileNotFoundError:
            missing_fatal = True
        check("missing directory aborts the run", missing_fatal)

        # ----------------------------------------------------------
        # Category 4: CLI
        # ----------------------------------------------------------
        print("\n  CLI:")
        code, output = _run_cli(["--total", "100.50", "--dir", str(dir_a)])
        check("clean run exits 0", code == 0)
        check("clean run output", output.strip() == "No errors found.")

        code, output = _run_cli(["-t", "200", "-d", str(dir_a)])
        check("violations exit 1", code == 1)
        check("violations printed", "does not equal 100.50" in output)

        code, output = _run_cli(["--total", "100.50", "--dir", str(dir_a), "--json"])
        try:
            payload = json.loads(output)
        except ValueError:
            payload = {}
        check("--json emits JSON", payload.get("status") == "clean")
        check("--json grand total", payload.get("grand_total") == "100.50")

        code, output = _run_cli(["--total", "100.50", "--dir", str(dir_a), "--summary"])
        check("--summary appends table", "SUMMARY - 1 record(s)" in output and code == 0)

        code, output = _run_cli(["--total", "1.00", "--dir", str(root / "nope")])
        check("missing dir exits 1", code == 1)
        check("missing dir diagnostic", "Error:" in output)

        code, output = _run_cli(["--total", "100.50", "--dir", str(dir_bad)])
        check("malformed file exits 1", code == 1 and "Malformed filename" in output)

        code, _ = _run_cli(["--total", "0", "--dir", str(dir_a)])
        check("zero total is a usage error", code == 2)

        code, _ = _run_cli(["--dir", str(dir_a)])
        check("missing --total is a usage error", code == 2)

        code, _ = _run_cli(["--total", "abc", "--dir", str(dir_a)])
        check("non-numeric --total is a usage error", code == 2)

        check("parse_total is exact", cli.parse_total("$1,000.10") == Decimal("1000.10"))

        # ----------------------------------------------------------
        # Category 4b: logging
        # ----------------------------------------------------------
        print("\n  Logging:")
        records: list[logging.LogRecord] = []

        class _Collector(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                records.append(record)

        stage_logger = logging.getLogger("eob-recon")
        collector = _Collector(level=logging.INFO)
        previous_level = stage_logger.level
        stage_logger.setLevel(logging.INFO)
        stage_logger.addHandler(collector)
        try:
            _, output = _capture(parse, dir_a, Decimal("100.50"))
        finally:
            stage_logger.removeHandler(collector)
            stage_logger.setLevel(previous_level)
        stage_lines = [record.getMessage() for record in records]
        report_lines = [line for line in stage_lines if "name=report" in line]
        check("report stage logs start", any("status=start" in line for line in report_lines))
        check("report stage logs complete", any("status=complete" in line for line in report_lines))
        for stage in ("scan", "aggregate", "check", "report"):
            started = sum(1 for line in stage_lines if f"name={stage} " in line and "status=start" in line)
            completed = sum(1 for line in stage_lines if f"name={stage} " in line and "status=complete" in line)
            check(f"{stage} stage start/complete paired", started == 1 and completed == 1)
        check("logs stay off stdout", "pipeline_stage" not in output)

        root_logger = logging.getLogger()
        saved_handlers = list(root_logger.handlers)
        saved_level = root_logger.level
        try:
            setup_logging(logging.INFO)
            check("one root handler installed", len(root_logger.handlers) == 1)
            check("root handler writes to stderr", getattr(root_logger.handlers[0], "stream", None) is sys.stderr)
        finally:
            root_logger.handlers[:] = saved_handlers
            root_logger.setLevel(saved_level)

    # ----------------------------------------------------------
    # Category 5: settings
    # ----------------------------------------------------------
    print("\n  Settings:")
    saved = {key: os.environ.pop(key, None) for key in ("EOB_TARGET_DIR", "EOB_LOG_LEVEL", "EOB_LOG_JSON")}
    try:
        defaults = load_settings(dotenv=False)
        check("default target dir", defaults.target_dir == DEFAULT_TARGET_DIR == "storage")
        check("default log level", defaults.log_level == "INFO")
        check("default log json off", defaults.log_json is False)

        os.environ["EOB_TARGET_DIR"] = "/tmp/eobs"
        os.environ["EOB_LOG_JSON"] = "yes"
        custom = load_settings(dotenv=False)
        check("EOB_TARGET_DIR honoured", custom.target_dir == "/tmp/eobs")
        check("EOB_LOG_JSON honoured", custom.log_json is True)
    finally:
        for key, value in saved.items():
            os.environ.pop(key, None)
            if value is not None:
                os.environ[key] = value

    print(f"\n{LINE * 62}")
    print(f"  Results: {passed}/{passed + failed} passed")
    if failed == 0:
        print(f"  Integration: COMPLETE {PASS}")
    else:
        print(f"  Integration: {failed} FAILED")
    print(f"{LINE * 62}")
    return failed


def test_integration() -> None:
    assert main() == 0


if __name__ == "__main__":
    sys.exit(1 if main() else 0)
