from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from roster_desk import __version__ as TOOL_VERSION
from roster_desk.config import configure_logging, load_settings
from roster_desk.errors import (
    CsvParseError,
    InvalidStateError,
    ScheduleServiceError,
    SubmissionValidationError,
)
from roster_desk.export import write_export
from roster_desk.ingest import CsvImportState
from roster_desk.normalize import EMPLOYEE_TYPES
from roster_desk.payload import SchedulePayload
from roster_desk.roster import Roster
from roster_desk.rules import MONTHS, WEEKDAY_VALUES
from roster_desk.session import SchedulingSession, SessionConfig

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_VALIDATION_FAILED = 3
EXIT_SERVICE_FAILED = 4


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class RosterDeskArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def log_level_for(args: argparse.Namespace, default: str) -> str:
    if getattr(args, "verbose", False):
        return "DEBUG"
    if getattr(args, "quiet", False):
        return "ERROR"
    return default


# ── roster input ─────────────────────────────────────────────────────────────

def import_into(roster: Roster, paths: list[str], args: argparse.Namespace) -> list[str]:
    """Import each CSV into ``roster``; returns loader warnings."""
    warnings: list[str] = []
    for raw_path in paths:
        path = Path(raw_path)
        if not path.exists():
            raise CliError(f"Input file not found: {path}", EXIT_COMMAND_ERROR)
        state = CsvImportState()
        state.load(path)
        try:
            result = state.select_columns(
                name=args.name_column,
                civil_id=args.civil_column,
                origin=args.origin_column,
            )
        except InvalidStateError as exc:
            raise CliError(f"{path.name}: {exc}", EXIT_COMMAND_ERROR) from exc
        if not state.selection.name:
            raise CsvParseError(f"{path.name}: no usable name column")
        roster.apply_import(result.employees, result.types)
        warnings.extend(f"{path.name}: {warning}" for warning in state.warnings)
        emit_human(
            f"{path.name}: {len(result.employees)} employee(s) from column {state.selection.name!r}",
            quiet=args.quiet,
        )
    return warnings


def roster_payload(roster: Roster) -> dict[str, Any]:
    return {
        "employees": roster.to_request_employees(),
        "counts": roster.counts(),
        "missing_civil_id": [employee.name for employee in roster.missing_civil_ids()],
    }


def render_roster_text(roster: Roster) -> str:
    lines = [f"{'Name':<28} {'Civil ID':<16} Type"]
    for employee in roster.employees:
        lines.append(f"{employee.name:<28} {employee.civil_id or '-':<16} {roster.type_of(employee.name)}")
    counts = roster.counts()
    lines.append(f"\n{counts['all']} employee(s): {counts['local']} local, {counts['overseas']} overseas")
    return "\n".join(lines)


def render_results_text(schedule: SchedulePayload) -> str:
    meta = schedule.meta
    lines = [
        f"Generated at: {meta.generated_at_utc or '-'}",
        f"Drivers: {meta.drivers if meta.drivers is not None else '-'}",
        f"Cap per day used: {meta.cap_per_day_used if meta.cap_per_day_used is not None else '-'}",
        f"Issues: {len(schedule.issues)}",
    ]
    lines.extend(f"  - {issue}" for issue in schedule.issues)
    lines.append(f"Sheets: {', '.join(schedule.sheets) or '-'}")
    return "\n".join(lines)


# ── parser ───────────────────────────────────────────────────────────────────

def add_column_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name-column", help="Header holding employee names (default: guessed)")
    parser.add_argument("--civil-column", help="Header holding civil ids; '' for none (default: guessed)")
    parser.add_argument("--origin-column", help="Header holding local/overseas; '' for none (default: guessed)")


def add_log_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = RosterDeskArgumentParser(prog="roster-desk", description="Prepare driver rosters and export schedules.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_cmd = subparsers.add_parser("import", help="Import CSV files and print the merged roster.")
    import_cmd.add_argument("inputs", nargs="+", help="CSV file(s), merged in order")
    add_column_flags(import_cmd)
    import_cmd.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    add_log_flags(import_cmd)

    generate = subparsers.add_parser("generate", help="Send a roster to the scheduling service and export the result.")
    generate.add_argument("inputs", nargs="+", help="CSV file(s), merged in order")
    add_column_flags(generate)
    generate.add_argument("--type", dest="type_overrides", action="append", default=[], metavar="NAME=TYPE",
                          help="Set an employee's type after import (repeatable)")
    generate.add_argument("--year", type=int)
    generate.add_argument("--month", choices=MONTHS)
    generate.add_argument("--start-day", type=int, default=1)
    generate.add_argument("--local-off-days", type=int, default=2)
    generate.add_argument("--overseas-off-days", type=int, default=2)
    generate.add_argument("--cap", type=float, default=0.5, help="Driver percentage cap (0-1)")
    generate.add_argument("--exclude", action="append", choices=WEEKDAY_VALUES, default=None,
                          help="Weekday that cannot be OFF (repeatable, default: friday)")
    generate.add_argument("--holidays", default="", help="Public holidays separated by commas")
    generate.add_argument("--api-base", help="Scheduling service base URL (default: ROSTER_DESK_API_BASE)")
    generate.add_argument("--token", help="Bearer token (default: ROSTER_DESK_TOKEN)")
    generate.add_argument("--env-file", help="Path to a .env file")
    generate.add_argument("-o", "--output", help="Workbook path (default: name from schedule year/month)")
    generate.add_argument("--save-json", help="Also write the raw service response here")
    add_log_flags(generate)

    export = subparsers.add_parser("export", help="Export a saved schedule response to .xlsx.")
    export.add_argument("input", help="Schedule response JSON file")
    export.add_argument("-o", "--output", help="Workbook path (default: name from schedule year/month)")
    add_log_flags(export)

    subparsers.add_parser("version", help="Print version")
    return parser


# ── commands ─────────────────────────────────────────────────────────────────

def run_import(args: argparse.Namespace) -> int:
    configure_logging(log_level_for(args, load_settings().log_level))
    roster = Roster()
    for warning in import_into(roster, args.inputs, args):
        emit_human(f"Warning: {warning}", quiet=args.quiet)
    if args.json:
        print(json_dumps(roster_payload(roster)))
    else:
        print(render_roster_text(roster))
    return EXIT_SUCCESS


def apply_type_overrides(roster: Roster, overrides: list[str]) -> None:
    for item in overrides:
        name, sep, employee_type = item.rpartition("=")
        if not sep or not name.strip():
            raise CliError(f"--type expects NAME=TYPE, got {item!r}", EXIT_COMMAND_ERROR)
        employee_type = employee_type.strip().lower()
        if employee_type not in EMPLOYEE_TYPES:
            raise CliError(f"--type value must be local or overseas, got {employee_type!r}", EXIT_COMMAND_ERROR)
        try:
            roster.set_type(name.strip(), employee_type)
        except KeyError as exc:
            raise CliError(f"--type names an employee not in the roster: {name.strip()}", EXIT_COMMAND_ERROR) from exc


def run_generate(args: argparse.Namespace) -> int:
    settings = load_settings(args.env_file, api_base=args.api_base, token=args.token)
    configure_logging(log_level_for(args, settings.log_level))

    session = SchedulingSession(SessionConfig.from_settings(settings))
    for warning in import_into(session.roster, args.inputs, args):
        emit_human(f"Warning: {warning}", quiet=args.quiet)
    apply_type_overrides(session.roster, args.type_overrides)

    rules = session.rules
    if args.year is not None:
        rules.year = args.year
    if args.month is not None:
        rules.month = args.month
    rules.start_day = args.start_day
    rules.local_off_days = args.local_off_days
    rules.overseas_off_days = args.overseas_off_days
    rules.driver_percentage_cap = args.cap
    if args.exclude is not None:
        rules.excluded_weekdays = list(dict.fromkeys(args.exclude))
    rules.add_holidays_from_text(args.holidays)

    try:
        schedule = session.generate()
        output_path = Path(args.output) if args.output else Path.cwd() / schedule.filename
        write_export(schedule, output_path)
    finally:
        session.end()

    if args.save_json:
        raw_path = Path(args.save_json)
        raw_path.parent.mkdir(parents=True, exist_ok=True)
        raw_path.write_text(json_dumps(schedule.to_dict()), encoding="utf-8")

    emit_human(render_results_text(schedule), quiet=args.quiet)
    emit_human(f"Workbook written: {output_path}", quiet=args.quiet)
    return EXIT_SUCCESS


def run_export(args: argparse.Namespace) -> int:
    configure_logging(log_level_for(args, load_settings().log_level))
    input_path = Path(args.input)
    if not input_path.exists():
        raise CliError(f"Input file not found: {input_path}", EXIT_COMMAND_ERROR)
    try:
        data = json.loads(input_path.read_text(encoding="utf-8"))
        schedule = SchedulePayload.from_dict(data)
    except ValueError as exc:
        raise CliError(f"Could not read schedule JSON: {exc}", EXIT_PARSE_FAILED) from exc

    output_path = Path(args.output) if args.output else input_path.parent / schedule.filename
    write_export(schedule, output_path)
    emit_human(render_results_text(schedule), quiet=args.quiet)
    emit_human(f"Workbook written: {output_path}", quiet=args.quiet)
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "import":
            return run_import(args)
        if args.command == "generate":
            return run_generate(args)
        if args.command == "export":
            return run_export(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code
    except CsvParseError as exc:
        eprint(str(exc))
        return EXIT_PARSE_FAILED
    except SubmissionValidationError as exc:
        eprint(str(exc))
        return EXIT_VALIDATION_FAILED
    except ScheduleServiceError as exc:
        eprint(str(exc))
        return EXIT_SERVICE_FAILED
    except (InvalidStateError, ValueError) as exc:
        eprint(str(exc))
        return EXIT_COMMAND_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
