from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

from openpyxl import load_workbook

from roster_desk import __version__


ROOT = Path(__file__).resolve().parents[1]
CLI = [sys.executable, "-m", "roster_desk.cli"]
EMPLOYEES_CSV = "sample-data/employees.csv"
UPDATE_CSV = "sample-data/employees_update.csv"
SCHEDULE_JSON = ROOT / "sample-data" / "schedule_result.json"


def run_cli(*args: str, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    merged_env = dict(os.environ)
    merged_env.update({"ROSTER_DESK_API_BASE": "", "ROSTER_DESK_TOKEN": "", "ROSTER_DESK_LOG_LEVEL": "WARNING"})
    if env:
        merged_env.update(env)
    return subprocess.run(
        [*CLI, *args],
        cwd=ROOT,
        capture_output=True,
        text=True,
        env=merged_env,
    )


class RosterDeskCliTests(unittest.TestCase):
    def test_version(self):
        proc = run_cli("version")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertEqual(proc.stdout.strip(), __version__)

    def test_import_json_merges_files_in_order(self):
        proc = run_cli("import", EMPLOYEES_CSV, UPDATE_CSV, "--json", "-q")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        payload = json.loads(proc.stdout)
        self.assertEqual(payload["counts"], {"all": 5, "local": 3, "overseas": 2})
        self.assertEqual(payload["missing_civil_id"], [])
        self.assertEqual(
            [e["name"] for e in payload["employees"]],
            ["Ahmed Khan", "Bilal Saeed", "Carlos Mendes", "Dina Yousef", "Eva Novak"],
        )
        self.assertEqual(proc.stderr.strip(), "")

    def test_import_text_table(self):
        proc = run_cli("import", EMPLOYEES_CSV)
        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertIn("Carlos Mendes", proc.stdout)
        self.assertIn("4 employee(s): 3 local, 1 overseas", proc.stdout)
        self.assertIn("4 employee(s) from column 'Driver Name'", proc.stderr)

    def test_import_column_override(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "drivers.csv"
            path.write_text("Name,Nickname\nAli Hassan,Ali\n", encoding="utf-8")
            proc = run_cli("import", str(path), "--name-column", "Nickname", "--json", "-q")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertEqual([e["name"] for e in json.loads(proc.stdout)["employees"]], ["Ali"])

            proc = run_cli("import", str(path), "--name-column", "Driver")
            self.assertEqual(proc.returncode, 1)
            self.assertIn("not in the uploaded file", proc.stderr)

    def test_import_empty_file_returns_exit_2(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "empty.csv"
            path.write_bytes(b"")
            proc = run_cli("import", str(path))
            self.assertEqual(proc.returncode, 2)
            self.assertIn("empty", proc.stderr)

    def test_missing_input_returns_exit_1(self):
        proc = run_cli("import", "sample-data/does-not-exist.csv")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("Input file not found", proc.stderr)

    def test_bad_arguments_return_exit_1(self):
        proc = run_cli("generate", EMPLOYEES_CSV, "--month", "smarch")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("invalid choice", proc.stderr)

    def test_generate_without_token_returns_exit_4(self):
        proc = run_cli("generate", EMPLOYEES_CSV, UPDATE_CSV, "-q", "--api-base", "http://127.0.0.1:9")
        self.assertEqual(proc.returncode, 4)
        self.assertIn("You must login again.", proc.stderr)

    def test_generate_with_missing_civil_id_returns_exit_3(self):
        proc = run_cli("generate", EMPLOYEES_CSV, "-q", "--api-base", "http://127.0.0.1:9", "--token", "tok")
        self.assertEqual(proc.returncode, 3)
        self.assertIn("1 employee(s) missing Civil ID", proc.stderr)

    def test_generate_bad_type_override_returns_exit_1(self):
        proc = run_cli("generate", EMPLOYEES_CSV, "-q", "--token", "tok", "--type", "Nobody=local")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("not in the roster", proc.stderr)

    def test_export_writes_workbook(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            out = Path(tmpdir) / "march.xlsx"
            proc = run_cli("export", str(SCHEDULE_JSON), "-o", str(out))
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("Workbook written:", proc.stderr)
            self.assertIn("Issues: 1", proc.stderr)
            self.assertEqual(load_workbook(out).sheetnames, ["Matrix", "ByDay", "Summary", "Issues"])

    def test_export_default_name_sits_next_to_input(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            copied = Path(tmpdir) / "result.json"
            shutil.copy(SCHEDULE_JSON, copied)
            proc = run_cli("export", str(copied), "-q")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertTrue((Path(tmpdir) / "driver_schedule_2026_03.xlsx").exists())

    def test_export_invalid_json_returns_exit_2(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "broken.json"
            path.write_text("{not json", encoding="utf-8")
            proc = run_cli("export", str(path))
            self.assertEqual(proc.returncode, 2)
            self.assertIn("Could not read schedule JSON", proc.stderr)

            path.write_text("[1, 2]", encoding="utf-8")
            proc = run_cli("export", str(path))
            self.assertEqual(proc.returncode, 2)


if __name__ == "__main__":
    unittest.main()
