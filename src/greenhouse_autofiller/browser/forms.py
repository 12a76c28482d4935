"""Form filling orchestration for job application pages."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set
from uuid import uuid4

from playwright.async_api import ElementHandle, Page
from pydantic import ValidationError

from greenhouse_autofiller.browser.injector import InputInjector
from greenhouse_autofiller.browser.locator import Locator, create_locator
from greenhouse_autofiller.browser.resume import ResumeInjector
from greenhouse_autofiller.config import settings
from greenhouse_autofiller.core.fields import FIELD_TABLE, FieldSpec, resolve_value
from greenhouse_autofiller.core.models import AutofillCommand, AutofillResponse, CandidateProfile
from greenhouse_autofiller.utils.logging import get_logger, log_fill_summary

logger = get_logger(__name__)


AUTOFILL_MESSAGE = "AUTOFILL"

# Global symbols survive across evaluate calls but stay out of Object.keys.
CLAIM_JS = """
(el, passId) => {
    const key = Symbol.for('greenhouse-autofiller.pass');
    if (el[key] === passId) {
        return false;
    }
    el[key] = passId;
    return true;
}
"""


@dataclass
class FillReport:
    """Outcome of one autofill invocation."""
    pass_ids: List[str] = field(default_factory=list)
    filled: Dict[str, int] = field(default_factory=dict)
    missed: List[str] = field(default_factory=list)
    errors: int = 0
    resume_attached: int = 0

    def record_fill(self, field_name: str) -> None:
        self.filled[field_name] = self.filled.get(field_name, 0) + 1


class FillPass:
    """Element bookkeeping for one pass over the page."""

    def __init__(self, report: FillReport):
        self.id = uuid4().hex
        self.report = report
        report.pass_ids.append(self.id)

    async def claim(self, element: ElementHandle) -> bool:
        """Mark an element as handled in this pass; False if it already was."""
        return bool(await element.evaluate(CLAIM_JS, self.id))


class FormFiller:
    """
    Fills a job application form from a candidate profile.

    One invocation attaches the resume, fills the curated fields, runs every
    field through the full locator chain, and after a delay re-scans controls
    owned by a client-side framework that may have mounted late.
    """

    def __init__(
        self,
        page: Optional[Page] = None,
        locator: Optional[Locator] = None,
        curated_locator: Optional[Locator] = None,
        injector: Optional[InputInjector] = None,
        resume_injector: Optional[ResumeInjector] = None,
        rescan_delay_ms: Optional[int] = None,
        field_table: Optional[Sequence[FieldSpec]] = None
    ):
        self.page = page
        self.locator = locator or create_locator()
        self.curated_locator = curated_locator or create_locator(curated_only=True)
        self.injector = injector or InputInjector()
        self.resume_injector = resume_injector or ResumeInjector()
        if rescan_delay_ms is None:
            rescan_delay_ms = settings.rescan_delay_ms
        self.rescan_delay = rescan_delay_ms / 1000
        self.field_table = list(field_table or FIELD_TABLE)
        self.logger = logger.bind(component="form_filler")

        self._tasks: Set[asyncio.Task] = set()

    async def autofill(self, profile: CandidateProfile) -> FillReport:
        """
        Run a full fill invocation against the current page.

        Args:
            profile: Immutable candidate snapshot

        Returns:
            Report of what was filled once every scheduled write has settled
        """
        self.logger.info("Starting autofill process", fields=len(self.field_table))
        report = FillReport()

        first_pass = FillPass(report)
        await self.fill_resume(profile, report)
        await self.run_curated_pass(profile, first_pass)
        await self.run_field_pass(profile, first_pass)

        await self._wait_for_late_controls()

        await self.rescan_framework_controls(profile, FillPass(report))

        await self.injector.drain()

        report.missed = [
            spec.field.value for spec in self.field_table
            if spec.field.value not in report.filled
        ]
        self.logger.info("Autofill process finished", **log_fill_summary(report))
        return report

    async def fill_resume(self, profile: CandidateProfile, report: FillReport) -> None:
        """Attach the resume; never raises."""
        try:
            report.resume_attached = await self.resume_injector.attach(self.page, profile.resume_file)
        except Exception as e:
            report.errors += 1
            self.logger.error("Error uploading resume", error=str(e))

    async def run_curated_pass(self, profile: CandidateProfile, fill_pass: FillPass) -> None:
        """Fill fields reachable through their curated selectors only."""
        for spec in self.field_table:
            if not spec.curated_selectors:
                continue
            elements = await self.curated_locator.locate(self.page, spec)
            if elements:
                self.logger.debug("Found element using curated selectors", field=spec.field.value)
            for element in elements:
                await self._fill(element, spec, profile, fill_pass)

    async def run_field_pass(self, profile: CandidateProfile, fill_pass: FillPass) -> None:
        """Fill every field through the full strategy chain."""
        for spec in self.field_table:
            for element in await self.locator.locate(self.page, spec):
                await self._fill(element, spec, profile, fill_pass)

    async def rescan_framework_controls(self, profile: CandidateProfile, fill_pass: FillPass) -> None:
        """Fill framework-owned controls whose name carries a field keyword."""
        try:
            controls = await self.page.query_selector_all("input, textarea")
        except Exception as e:
            fill_pass.report.errors += 1
            self.logger.error("Framework re-scan failed", error=str(e))
            return

        for element in controls:
            if not await self.injector.has_framework_marker(element):
                continue
            try:
                name = (await element.get_attribute("name") or "").lower()
            except Exception as e:
                self.logger.debug("Could not read control name", error=str(e))
                continue

            for spec in self.field_table:
                if spec.name_keyword in name:
                    await self._fill(element, spec, profile, fill_pass)

    async def _wait_for_late_controls(self) -> None:
        await asyncio.sleep(self.rescan_delay)

    async def _fill(
        self,
        element: ElementHandle,
        spec: FieldSpec,
        profile: CandidateProfile,
        fill_pass: FillPass
    ) -> None:
        report = fill_pass.report
        try:
            if not await fill_pass.claim(element):
                return
        except Exception as e:
            report.errors += 1
            self.logger.error("Error filling field", field=spec.field.value, error=str(e))
            return

        value = resolve_value(spec.field, profile)
        self.logger.debug("Filling field", field=spec.field.value, pass_id=fill_pass.id)

        if await self.injector.inject(element, value, field=spec.field.value):
            report.record_fill(spec.field.value)
        else:
            report.errors += 1

    def handle_message(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Handle an inbound command.

        The fill runs as a background task on the current event loop; the
        acknowledgement is returned before it starts.

        Args:
            message: Command of shape {"type": "AUTOFILL", "candidate": {...}}

        Returns:
            {"success": bool} for AUTOFILL commands, None for anything else
        """
        if not isinstance(message, dict) or message.get("type") != AUTOFILL_MESSAGE:
            return None

        self.logger.info("Received autofill message")

        try:
            command = AutofillCommand.model_validate(message)
        except ValidationError as e:
            self.logger.error("Invalid autofill message", error=str(e))
            return AutofillResponse(success=False).model_dump()

        task = asyncio.create_task(self.autofill(command.candidate))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

        return AutofillResponse(success=True).model_dump()

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception():
            self.logger.error("Autofill task failed", error=str(task.exception()))

    async def wait_idle(self) -> List[FillReport]:
        """Wait for background fills started by handle_message."""
        reports = []
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            reports.extend(r for r in results if isinstance(r, FillReport))
        return reports


def create_form_filler(page: Optional[Page] = None, **kwargs: Any) -> FormFiller:
    """Factory function to create a form filler bound to a page."""
    return FormFiller(page=page, **kwargs)
