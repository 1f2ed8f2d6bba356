"""Employee roster and local/overseas type map for one scheduling session.

Two merge rules run through this module and are kept as named functions:

* ``first_non_empty`` for civil ids: a recorded civil id is never replaced
  by an import or a manual add, and an empty one may be filled.
* ``merge_imported_types`` for types: a type that was assigned by an earlier
  import or by the operator is never overwritten by a later import.

Operator edits (``set_civil_id``, ``set_type``, ``set_all_types``) are
deliberate and do overwrite.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from roster_desk.errors import SubmissionValidationError
from roster_desk.normalize import EMPLOYEE_TYPES, LOCAL, OVERSEAS

logger = logging.getLogger(__name__)

TYPE_FILTERS = ("all",) + EMPLOYEE_TYPES


@dataclass
class Employee:
    name: str
    civil_id: str = ""

    def __post_init__(self) -> None:
        self.name = str(self.name or "").strip()
        self.civil_id = str(self.civil_id or "")


def first_non_empty(existing: str, incoming: str) -> str:
    """Blank-only values count as empty."""
    if existing and existing.strip():
        return existing
    return incoming if incoming and incoming.strip() else ""


def merge_employees(existing: Iterable[Employee], incoming: Iterable[Employee]) -> list[Employee]:
    """Merge by name, keeping the order of first appearance."""
    merged: dict[str, Employee] = {}
    for employee in existing:
        merged[employee.name] = Employee(employee.name, employee.civil_id)
    for employee in incoming:
        if not employee.name:
            continue
        current = merged.get(employee.name)
        if current is None:
            merged[employee.name] = Employee(employee.name, employee.civil_id)
        else:
            current.civil_id = first_non_empty(current.civil_id, employee.civil_id)
    return list(merged.values())


def merge_imported_types(
    types: Mapping[str, str],
    imported: Mapping[str, str],
    assigned: Iterable[str],
) -> dict[str, str]:
    """Apply imported types to names that have not been assigned one yet."""
    locked = set(assigned)
    merged = dict(types)
    for name, employee_type in imported.items():
        if name in locked or employee_type not in EMPLOYEE_TYPES:
            continue
        merged[name] = employee_type
    return merged


def sync_types(names: Iterable[str], types: Mapping[str, str]) -> dict[str, str]:
    """One entry per roster name, defaulting to local; orphans are dropped."""
    return {name: types.get(name) or LOCAL for name in names}


class Roster:
    def __init__(self, employees: Iterable[Employee] = ()) -> None:
        self._employees: list[Employee] = merge_employees([], employees)
        self.types: dict[str, str] = {}
        self._assigned: set[str] = set()
        self._sync()

    def __len__(self) -> int:
        return len(self._employees)

    def __contains__(self, name: object) -> bool:
        return any(employee.name == name for employee in self._employees)

    @property
    def employees(self) -> list[Employee]:
        return list(self._employees)

    @property
    def names(self) -> list[str]:
        return [employee.name for employee in self._employees]

    def get(self, name: str) -> Employee | None:
        for employee in self._employees:
            if employee.name == name:
                return employee
        return None

    def _require(self, name: str) -> Employee:
        employee = self.get(name)
        if employee is None:
            raise KeyError(f"Unknown employee: {name}")
        return employee

    def _sync(self) -> None:
        names = self.names
        self.types = sync_types(names, self.types)
        self._assigned &= set(names)

    # ── mutations ────────────────────────────────────────────────────────

    def apply_import(self, employees: Iterable[Employee], types: Mapping[str, str]) -> None:
        incoming = list(employees)
        before = len(self._employees)
        self._employees = merge_employees(self._employees, incoming)
        self._sync()

        applicable = {name: t for name, t in types.items() if name in self}
        self.types = merge_imported_types(self.types, applicable, self._assigned)
        self._assigned |= set(applicable)
        logger.info(
            "Merged import: %d row(s), %d new employee(s), %d typed",
            len(incoming),
            len(self._employees) - before,
            len(applicable),
        )

    def add_manual(self, name: str, civil_id: str = "") -> Employee | None:
        candidate = Employee(name, civil_id.strip() if civil_id else "")
        if not candidate.name:
            return None
        self._employees = merge_employees(self._employees, [candidate])
        self._sync()
        return self.get(candidate.name)

    def set_civil_id(self, name: str, civil_id: str) -> None:
        self._require(name).civil_id = (civil_id or "").strip()

    def set_type(self, name: str, employee_type: str) -> None:
        self._require(name)
        if employee_type not in EMPLOYEE_TYPES:
            raise ValueError(f"Type must be one of {', '.join(EMPLOYEE_TYPES)}, got {employee_type!r}")
        self.types[name] = employee_type
        self._assigned.add(name)

    def set_all_types(self, employee_type: str) -> None:
        for name in self.names:
            self.set_type(name, employee_type)

    def delete(self, name: str) -> None:
        self._employees = [employee for employee in self._employees if employee.name != name]
        self._sync()

    def clear(self) -> None:
        self._employees = []
        self._sync()

    # ── queries ──────────────────────────────────────────────────────────

    def type_of(self, name: str) -> str:
        return self.types.get(name) or LOCAL

    def counts(self) -> dict[str, int]:
        overseas = sum(1 for name in self.names if self.type_of(name) == OVERSEAS)
        return {"all": len(self), LOCAL: len(self) - overseas, OVERSEAS: overseas}

    def filter(self, query: str = "", type_filter: str = "all") -> list[Employee]:
        if type_filter not in TYPE_FILTERS:
            raise ValueError(f"Unknown type filter: {type_filter!r}")
        needle = (query or "").strip().lower()
        matches = []
        for employee in self._employees:
            if type_filter != "all" and self.type_of(employee.name) != type_filter:
                continue
            if needle and needle not in f"{employee.name} {employee.civil_id}".lower():
                continue
            matches.append(employee)
        return matches

    def missing_civil_ids(self) -> list[Employee]:
        return [employee for employee in self._employees if not employee.civil_id.strip()]

    def validate_for_submission(self) -> None:
        if not self._employees:
            raise SubmissionValidationError("No employees found. Upload a CSV or add employees manually.")
        missing = self.missing_civil_ids()
        if missing:
            raise SubmissionValidationError(
                f"{len(missing)} employee(s) missing Civil ID. Fill them in before generating.",
                missing_count=len(missing),
            )

    def to_request_employees(self) -> list[dict[str, str]]:
        return [
            {"name": employee.name, "type": self.type_of(employee.name), "civil_id": employee.civil_id.strip()}
            for employee in self._employees
        ]
