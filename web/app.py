#!/usr/bin/env python3
from __future__ import annotations

import hashlib
from datetime import date
from typing import Optional

import pandas as pd
import streamlit as st

from roster_desk.config import configure_logging, load_settings
from roster_desk.errors import CsvParseError, RosterDeskError
from roster_desk.export import XLSX_MIME
from roster_desk.ingest import ImportStatus
from roster_desk.normalize import EMPLOYEE_TYPES, LOCAL, OVERSEAS
from roster_desk.payload import SchedulePayload
from roster_desk.roster import Roster
from roster_desk.rules import MONTHS, WEEKDAYS, ScheduleRules
from roster_desk.session import SchedulingSession, SessionConfig
from roster_desk.shaper import OFF, preview_rows

PREVIEW_ROW_LIMIT = 200
NONE_OPTION = "(none)"

OFF_STYLE = "background-color: rgba(250, 67, 67, 0.18); color: #b91c1c"
WORK_STYLE = "background-color: rgba(22, 252, 5, 0.14); color: #047857"


def ensure_state() -> None:
    if "session" not in st.session_state:
        settings = load_settings()
        configure_logging(settings.log_level)
        st.session_state["session"] = SchedulingSession(SessionConfig.from_settings(settings))
    st.session_state.setdefault("processing", False)
    st.session_state.setdefault("upload_signature", None)
    st.session_state.setdefault("toast", None)
    st.session_state.setdefault("manual_name", "")
    st.session_state.setdefault("manual_civil", "")


def current_session() -> SchedulingSession:
    return st.session_state["session"]


def show_toast(kind: str, message: str) -> None:
    st.session_state["toast"] = {"type": kind, "message": message}


def render_toast() -> None:
    toast = st.session_state.get("toast")
    if not toast:
        return
    if toast["type"] == "error":
        st.error(toast["message"])
    else:
        st.success(toast["message"])
    st.session_state["toast"] = None


def set_visuals() -> None:
    st.set_page_config(page_title="Driver Schedule Generator", page_icon="🗓️", layout="wide", initial_sidebar_state="expanded")
    st.markdown(
        """
        <style>
        :root {
            --rd-accent: #d3fb00;
            --rd-surface: rgba(255, 255, 255, 0.04);
            --rd-border: rgba(255, 255, 255, 0.10);
        }
        .block-container {
            padding-top: 2rem;
            padding-bottom: 2rem;
            max-width: 1280px;
        }
        [data-testid="stDecoration"] {
            display: none !important;
        }
        [data-testid="stMetric"] {
            background: var(--rd-surface);
            border: 1px solid var(--rd-border);
            border-radius: 18px;
            padding: 0.85rem 1rem;
        }
        .stButton > button, .stDownloadButton > button {
            border-radius: 16px !important;
            font-weight: 600 !important;
        }
        .stButton > button[kind="primary"] {
            background: var(--rd-accent) !important;
            color: #000000 !important;
            border: 1px solid transparent !important;
        }
        .stButton > button:disabled {
            opacity: 0.55 !important;
        }
        .stDataFrame, .stExpander, .stAlert {
            border-radius: 18px;
            overflow: hidden;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


# ── session sidebar ──────────────────────────────────────────────────────────

def render_session_sidebar(session: SchedulingSession, disabled: bool) -> None:
    with st.sidebar:
        st.subheader("Session")
        if session.active:
            st.caption(f"Service: {session.config.api_base or 'not configured'}")
            if st.button("End session", disabled=disabled, width="stretch"):
                session.end()
                st.rerun()
            return

        st.info("Paste a bearer token to start a session.")
        settings = load_settings()
        api_base = st.text_input("Service URL", value=settings.api_base, key="session_api_base")
        token = st.text_input("Token", type="password", key="session_token")
        if st.button("Start session", disabled=not token.strip(), width="stretch"):
            session.config = SessionConfig(api_base=api_base.strip().rstrip("/"), token=token.strip(), timeout=settings.timeout)
            st.rerun()


# ── CSV import ───────────────────────────────────────────────────────────────

def upload_signature(upload) -> str:
    return f"{upload.name}:{hashlib.sha1(upload.getvalue()).hexdigest()}"


def handle_upload(session: SchedulingSession, upload) -> None:
    if upload is None:
        return
    signature = upload_signature(upload)
    if signature == st.session_state.get("upload_signature"):
        return
    st.session_state["upload_signature"] = signature
    try:
        result = session.import_csv(upload.getvalue())
    except CsvParseError as exc:
        show_toast("error", str(exc))
        return
    for key in ("col_name", "col_civil", "col_origin"):
        st.session_state.pop(key, None)
    show_toast("success", f"Imported {len(result.employees)} employee(s) from {upload.name}")


def _option_index(options: list[str], value: str) -> int:
    return options.index(value) if value in options else 0


def render_csv_import(session: SchedulingSession, disabled: bool) -> None:
    st.markdown("**Upload employees**")
    st.caption("Required: Name. Optional: Civil ID, Origin (local/overseas).")
    upload = st.file_uploader("Employee CSV", type=["csv"], key="csv_upload", disabled=disabled)
    handle_upload(session, upload)

    state = session.csv
    if state.status is ImportStatus.ERROR:
        st.warning(f"Could not read the file: {state.error}")
        return
    if state.status is not ImportStatus.PARSED or not state.headers:
        return

    headers = list(state.headers)
    optional = [NONE_OPTION] + headers
    selection = state.selection
    cols = st.columns(3)
    name_col = cols[0].selectbox("Name column", headers, index=_option_index(headers, selection.name), key="col_name", disabled=disabled)
    civil_col = cols[1].selectbox(
        "Civil ID column (optional)",
        optional,
        index=_option_index(optional, selection.civil_id or NONE_OPTION),
        key="col_civil",
        disabled=disabled,
    )
    origin_col = cols[2].selectbox(
        "Origin / Type column (optional)",
        optional,
        index=_option_index(optional, selection.origin or NONE_OPTION),
        key="col_origin",
        disabled=disabled,
    )

    chosen = (
        name_col,
        "" if civil_col == NONE_OPTION else civil_col,
        "" if origin_col == NONE_OPTION else origin_col,
    )
    if chosen != (selection.name, selection.civil_id, selection.origin):
        try:
            session.select_columns(name=chosen[0], civil_id=chosen[1], origin=chosen[2])
        except RosterDeskError as exc:
            st.error(str(exc))

    st.caption(f"Parsed rows: {len(state.rows)}")
    for warning in state.warnings:
        st.warning(warning)


# ── rules ────────────────────────────────────────────────────────────────────

def render_rules(rules: ScheduleRules, disabled: bool) -> None:
    cols = st.columns(3)
    rules.year = int(cols[0].number_input("Year", min_value=2000, max_value=2100, value=int(rules.year), step=1, disabled=disabled))
    rules.month = cols[1].selectbox(
        "Month",
        MONTHS,
        index=_option_index(MONTHS, rules.month),
        format_func=lambda m: m.capitalize(),
        disabled=disabled,
    )
    rules.start_day = int(cols[2].number_input("Start day", min_value=1, max_value=31, value=int(rules.start_day), disabled=disabled))

    cols = st.columns(3)
    rules.local_off_days = int(cols[0].number_input("Local off days", min_value=0, max_value=31, value=int(rules.local_off_days), disabled=disabled))
    rules.overseas_off_days = int(
        cols[1].number_input("Overseas off days", min_value=0, max_value=31, value=int(rules.overseas_off_days), disabled=disabled)
    )
    rules.driver_percentage_cap = float(
        cols[2].number_input(
            "Driver percentage cap",
            min_value=0.0,
            max_value=1.0,
            step=0.05,
            value=float(rules.driver_percentage_cap),
            disabled=disabled,
        )
    )

    st.markdown("**Excluded weekdays**")
    st.caption("These weekdays cannot be OFF days.")
    day_cols = st.columns(len(WEEKDAYS))
    for col, (label, value) in zip(day_cols, WEEKDAYS):
        checked = col.checkbox(label, value=value in rules.excluded_weekdays, key=f"weekday_{value}", disabled=disabled)
        if checked != (value in rules.excluded_weekdays):
            rules.toggle_weekday(value)

    render_holidays(rules, disabled)


def render_holidays(rules: ScheduleRules, disabled: bool) -> None:
    st.markdown("**Public holidays**")
    cols = st.columns([3, 1, 1])
    picked: Optional[date] = cols[0].date_input("Pick a date", value=None, key="holiday_draft", disabled=disabled)
    if cols[1].button("Add", key="holiday_add", disabled=disabled or picked is None, width="stretch"):
        rules.add_holiday(picked.isoformat())
        st.rerun()
    if cols[2].button("Clear", key="holiday_clear", disabled=disabled or not rules.public_holidays, width="stretch"):
        rules.clear_holidays()
        st.rerun()

    pasted = st.text_area(
        "Or paste dates separated by commas/new lines (YYYY-MM-DD or DD/MM/YYYY)",
        key="holiday_paste",
        height=80,
        disabled=disabled,
    )
    if st.button("Add pasted dates", key="holiday_paste_add", disabled=disabled or not pasted.strip()):
        rules.add_holidays_from_text(pasted)
        st.rerun()

    if not rules.public_holidays:
        st.caption("No holidays added.")
        return
    chip_cols = st.columns(min(6, len(rules.public_holidays)))
    for idx, holiday in enumerate(rules.public_holidays):
        if chip_cols[idx % len(chip_cols)].button(f"✕ {holiday}", key=f"holiday_remove_{holiday}", disabled=disabled):
            rules.remove_holiday(holiday)
            st.rerun()


# ── employees ────────────────────────────────────────────────────────────────

def add_manual_employee() -> None:
    session = current_session()
    added = session.roster.add_manual(st.session_state["manual_name"], st.session_state["manual_civil"])
    if added is not None:
        st.session_state["manual_name"] = ""
        st.session_state["manual_civil"] = ""


def apply_editor_changes(roster: Roster, before: pd.DataFrame, after: pd.DataFrame) -> bool:
    changed = False
    for idx, row in after.iterrows():
        name = before.at[idx, "Name"]
        if bool(row["Delete"]):
            roster.delete(name)
            changed = True
            continue
        civil_id = "" if pd.isna(row["Civil ID"]) else str(row["Civil ID"])
        if civil_id != before.at[idx, "Civil ID"]:
            roster.set_civil_id(name, civil_id)
            changed = True
        if row["Type"] != before.at[idx, "Type"] and row["Type"] in EMPLOYEE_TYPES:
            roster.set_type(name, row["Type"])
            changed = True
    return changed


def render_employees(roster: Roster, disabled: bool) -> None:
    counts = roster.counts()
    header_cols = st.columns([4, 1, 1])
    header_cols[0].subheader(f"Employees ({counts['all']})")
    if header_cols[1].button("All Local", disabled=disabled or not len(roster), width="stretch"):
        roster.set_all_types(LOCAL)
        st.rerun()
    if header_cols[2].button("All Overseas", disabled=disabled or not len(roster), width="stretch"):
        roster.set_all_types(OVERSEAS)
        st.rerun()

    add_cols = st.columns([3, 3, 1])
    add_cols[0].text_input("Name", key="manual_name", placeholder="Name...", disabled=disabled)
    add_cols[1].text_input("Civil ID", key="manual_civil", placeholder="Civil ID...", disabled=disabled)
    add_cols[2].button("Add", key="manual_add", on_click=add_manual_employee, disabled=disabled, width="stretch")

    filter_cols = st.columns([3, 2])
    query = filter_cols[0].text_input("Search name / civil", key="employee_query", placeholder="Search...")
    type_filter = filter_cols[1].radio(
        "Type",
        options=["all", LOCAL, OVERSEAS],
        format_func=lambda t: f"{t.capitalize()} ({counts[t]})",
        horizontal=True,
        key="employee_type_filter",
    )

    if not len(roster):
        st.info("Import a CSV above or add employees manually.")
        return

    visible = roster.filter(query, type_filter)
    if not visible:
        st.info("No employees match your filters/search.")
        return

    before = pd.DataFrame(
        [
            {"Name": e.name, "Civil ID": e.civil_id, "Type": roster.type_of(e.name), "Delete": False}
            for e in visible
        ]
    )
    # Key changes whenever the visible rows change.
    editor_key = hashlib.sha1(before.to_json(orient="records").encode("utf-8")).hexdigest()
    after = st.data_editor(
        before,
        key=f"employee_editor_{editor_key}",
        hide_index=True,
        width="stretch",
        disabled=["Name"] if not disabled else True,
        column_config={
            "Type": st.column_config.SelectboxColumn("Type", options=list(EMPLOYEE_TYPES), required=True),
            "Delete": st.column_config.CheckboxColumn("Delete"),
        },
    )
    if apply_editor_changes(roster, before, after):
        st.rerun()

    missing = len(roster.missing_civil_ids())
    if missing:
        st.warning(f"{missing} employee(s) missing Civil ID.")


# ── results ──────────────────────────────────────────────────────────────────

def styled_preview(columns: list[str], rows: list):
    cells = preview_rows(columns, rows, limit=PREVIEW_ROW_LIMIT)
    frame = pd.DataFrame([[text for text, _ in row] for row in cells], columns=pd.Index(columns).astype(str))
    kinds = pd.DataFrame([[kind for _, kind in row] for row in cells], columns=frame.columns)

    def cell_style(_frame: pd.DataFrame) -> pd.DataFrame:
        return kinds.apply(lambda col: col.map(lambda kind: OFF_STYLE if kind == OFF else ("" if kind == "identity" else WORK_STYLE)))

    return frame.style.apply(cell_style, axis=None)


def render_results(session: SchedulingSession) -> None:
    schedule: Optional[SchedulePayload] = session.schedule
    if schedule is None:
        return

    meta = schedule.meta
    st.subheader("Results")
    st.caption(f"Generated at: {meta.generated_at_utc or '-'}")

    metrics = st.columns(3)
    metrics[0].metric("Drivers", meta.drivers if meta.drivers is not None else "-")
    metrics[1].metric("Cap per day used", meta.cap_per_day_used if meta.cap_per_day_used is not None else "-")
    metrics[2].metric("Issues", len(schedule.issues))

    if schedule.issues:
        st.warning("\n".join(f"- {issue}" for issue in schedule.issues))
    else:
        st.success("No issues reported.")

    filename, payload_bytes = session.export()
    st.download_button(
        "Download Excel",
        data=payload_bytes,
        file_name=filename,
        mime=XLSX_MIME,
        width="stretch",
        key="download_schedule",
    )

    matrix = schedule.sheet("Matrix")
    if matrix is None:
        return
    st.markdown("**Matrix**")
    st.dataframe(styled_preview(matrix.columns, matrix.rows), width="stretch", hide_index=True)
    if len(matrix.rows) > PREVIEW_ROW_LIMIT:
        st.caption(f"Showing first {PREVIEW_ROW_LIMIT} rows. Excel download contains full data.")


# ── generate ─────────────────────────────────────────────────────────────────

def run_generate(session: SchedulingSession) -> None:
    try:
        session.generate()
    except RosterDeskError as exc:
        show_toast("error", str(exc) or "Failed")
        return
    show_toast("success", "Schedule generated")


def main() -> None:
    set_visuals()
    ensure_state()
    session = current_session()
    processing = st.session_state["processing"]

    st.title("Driver Schedule Generator")
    st.caption("Upload → rules → generate → export")
    render_session_sidebar(session, disabled=processing)
    render_toast()

    with st.container(border=True):
        top = st.columns([4, 1])
        top[0].subheader("Rules")
        generate = top[1].button(
            "Generating..." if processing else "Generate Schedule",
            type="primary",
            width="stretch",
            disabled=processing or not session.active,
        )
        render_csv_import(session, disabled=processing)
        st.divider()
        render_rules(session.rules, disabled=processing)

    with st.container(border=True):
        render_employees(session.roster, disabled=processing)

    if generate:
        st.session_state["processing"] = True
        st.rerun()

    if st.session_state["processing"]:
        with st.spinner("Generating schedule..."):
            run_generate(session)
        st.session_state["processing"] = False
        st.rerun()

    render_results(session)


if __name__ == "__main__":
    main()
