"""
One operator's scheduling session.

Everything the browser page would otherwise keep in globals (the bearer
token, the API base) arrives in a ``SessionConfig`` when the session starts
and is dropped by ``end()``. The roster, rules and last result live here and
are never persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from roster_desk.client import ScheduleClient
from roster_desk.config import DEFAULT_TIMEOUT, Settings
from roster_desk.errors import InvalidStateError, ScheduleServiceError, SubmissionValidationError
from roster_desk.export import workbook_bytes
from roster_desk.ingest import CsvImportState, ImportResult
from roster_desk.loader import CsvSource
from roster_desk.payload import SchedulePayload
from roster_desk.roster import Roster
from roster_desk.rules import ScheduleRules, build_request_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionConfig:
    api_base: str
    token: str
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionConfig":
        return cls(api_base=settings.api_base, token=settings.token, timeout=settings.timeout)


class SchedulingSession:
    def __init__(self, config: Optional[SessionConfig], client: Optional[ScheduleClient] = None) -> None:
        self.config = config
        self.roster = Roster()
        self.rules = ScheduleRules()
        self.csv = CsvImportState()
        self.schedule: Optional[SchedulePayload] = None
        self.pending = False
        self._client = client

    @property
    def active(self) -> bool:
        return self.config is not None and bool(self.config.token)

    def _client_for_request(self) -> ScheduleClient:
        if not self.active:
            raise ScheduleServiceError("You must login again.")
        if self._client is None:
            self._client = ScheduleClient(
                api_base=self.config.api_base,
                token=self.config.token,
                timeout=self.config.timeout,
            )
        return self._client

    # ── roster input ─────────────────────────────────────────────────────

    def _merge(self, result: ImportResult) -> ImportResult:
        if result:
            self.roster.apply_import(result.employees, result.types)
        return result

    def import_csv(self, source: CsvSource) -> ImportResult:
        """Parse a new file and merge it. A parse failure leaves the roster as it was."""
        return self._merge(self.csv.load(source))

    def select_columns(
        self,
        name: Optional[str] = None,
        civil_id: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> ImportResult:
        return self._merge(self.csv.select_columns(name=name, civil_id=civil_id, origin=origin))

    # ── generate / export ────────────────────────────────────────────────

    def request_payload(self) -> dict:
        self.roster.validate_for_submission()
        problems = self.rules.validate()
        if problems:
            raise SubmissionValidationError("; ".join(problems))
        return build_request_payload(self.roster, self.rules)

    def generate(self) -> SchedulePayload:
        if self.pending:
            raise InvalidStateError("A schedule request is already in progress.")
        client = self._client_for_request()
        body = self.request_payload()

        self.pending = True
        try:
            schedule = client.generate(body)
        finally:
            self.pending = False

        self.schedule = schedule
        logger.info("Schedule generated for %d employee(s)", len(body["employees"]))
        return schedule

    def export(self) -> tuple[str, bytes]:
        if self.schedule is None:
            raise InvalidStateError("Generate a schedule before exporting.")
        return self.schedule.filename, workbook_bytes(self.schedule)

    def end(self) -> None:
        self.config = None
        self._client = None
