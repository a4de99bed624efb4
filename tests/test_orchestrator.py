import asyncio
import time

import pytest

import check_print_layout.backend
import check_print_layout.check_data
import check_print_layout.config
import check_print_layout.errors
import check_print_layout.geometry
import check_print_layout.orchestrator


JobState = check_print_layout.orchestrator.JobState


class FakeBackend:
	"""
	Recording backend with scripted failures and an optional gate.
	"""

	def __init__(self, fail_at: tuple[int, ...] = (), raise_error: Exception | None = None) -> None:
		self.calls: list[tuple] = []
		self.states: list[JobState] = []
		self.fail_at = set(fail_at)
		self.raise_error = raise_error
		self.gate: asyncio.Event | None = None
		self.orchestrator = None

	async def print_document(self, document, silent, device_name, margins):
		self.calls.append(("print", document, silent, device_name, margins))
		return await self._finish()

	async def render_to_pdf(self, document, page_size_mm, options):
		self.calls.append(("pdf", document, page_size_mm, options))
		return await self._finish()

	async def _finish(self):
		call_number = len(self.calls)
		if self.orchestrator is not None:
			self.states.append(self.orchestrator.status.state)
		if self.gate is not None:
			await self.gate.wait()
		if self.raise_error is not None:
			raise self.raise_error
		if call_number in self.fail_at:
			return check_print_layout.backend.BackendResult(success=False, error="boom")
		return check_print_layout.backend.BackendResult(success=True, data=b"%PDF-fake")


#============================================
def build_orchestrator(backend, **kwargs) -> check_print_layout.orchestrator.PrintOrchestrator:
	"""
	Build an orchestrator with no batch pause and a long clear delay.
	"""
	settings = {"item_delay": 0.0, "clear_delay": 60.0, "batch_clear_delay": 60.0}
	settings.update(kwargs)
	orchestrator = check_print_layout.orchestrator.PrintOrchestrator(backend, **settings)
	if isinstance(backend, FakeBackend):
		backend.orchestrator = orchestrator
	return orchestrator


MODEL = check_print_layout.geometry.model_from_dict(None)
RENDER = check_print_layout.config.RenderOptions()
PRINT = check_print_layout.config.PrintOptions(mode="print", silent=False, device_name="Office")


#============================================
def make_checks(count: int) -> list[check_print_layout.check_data.CheckData]:
	return [
		check_print_layout.check_data.CheckData(payee=f"Payee {index}", amount=f"{index}.00")
		for index in range(1, count + 1)
	]


#============================================
def test_single_print_success() -> None:
	"""
	A single job spools through the backend and lands in Done.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is True
	assert result.error is None
	assert backend.states == [JobState.SPOOLING]
	kind, document, silent, device_name, _margins = backend.calls[0]
	assert kind == "print"
	assert silent is False
	assert device_name == "Office"
	assert document.fields[0].text == "Payee 1"
	status = orchestrator.status
	assert status.state == JobState.DONE
	assert status.message == "Done"
	assert status.in_flight is True


#============================================
def test_done_rearms_after_clear_delay() -> None:
	"""
	Done returns to Idle once the clear delay has passed.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend, clear_delay=0.0)
	asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert orchestrator.status.state == JobState.IDLE
	assert orchestrator.is_printing is False
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is True
	assert len(backend.calls) == 2


#============================================
def test_request_during_done_is_rejected() -> None:
	"""
	Until the status clears, a finished job still holds the guard.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)
	asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is False
	assert result.error == check_print_layout.orchestrator.JOB_IN_PROGRESS
	assert len(backend.calls) == 1


#============================================
def test_single_print_failure_retains_error() -> None:
	"""
	A failed job re-arms immediately and keeps its error message.
	"""
	backend = FakeBackend(fail_at=(1,))
	orchestrator = build_orchestrator(backend)
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is False
	assert result.error == "boom"
	status = orchestrator.status
	assert status.state == JobState.FAILED
	assert status.error == "boom"
	assert status.in_flight is False
	orchestrator.clear_error()
	assert orchestrator.status.error is None


#============================================
@pytest.mark.parametrize(
	"error, expected",
	[
		(check_print_layout.errors.BackendUnavailableError("no spooler"), "Print backend unavailable: no spooler"),
		(check_print_layout.errors.BackendFailureError("jammed"), "jammed"),
		(OSError("disk full"), "disk full"),
		(RuntimeError("driver crashed"), "RuntimeError: driver crashed"),
	],
)
def test_backend_exceptions_become_results(error: Exception, expected: str) -> None:
	"""
	Backend exceptions never escape the orchestrator.
	"""
	orchestrator = build_orchestrator(FakeBackend(raise_error=error))
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is False
	assert result.error == expected
	assert orchestrator.status.state == JobState.FAILED


#============================================
def test_backend_crash_rearms_for_next_job() -> None:
	"""
	After a backend raises an unexpected error the next job still runs.
	"""
	backend = FakeBackend(raise_error=RuntimeError("driver crashed"))
	orchestrator = build_orchestrator(backend)
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is False
	assert result.error == "RuntimeError: driver crashed"
	assert orchestrator.is_printing is False

	backend.raise_error = None
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is True
	assert orchestrator.status.state == JobState.DONE


#============================================
def test_batch_backend_crash_is_an_item_failure() -> None:
	"""
	A crashing backend fails the batch item instead of escaping the batch.
	"""
	backend = FakeBackend(raise_error=RuntimeError("driver crashed"))
	orchestrator = build_orchestrator(backend)
	batch = asyncio.run(orchestrator.print_batch(MODEL, make_checks(2), RENDER, PRINT))
	assert batch.success is False
	assert batch.error == "Batch print failed at check 1: RuntimeError: driver crashed"
	assert orchestrator.is_printing is False


#============================================
def test_progress_callback_error_releases_guard() -> None:
	"""
	An exception from the progress callback fails the batch and re-raises.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)

	def report(progress) -> None:
		raise RuntimeError("display gone")

	with pytest.raises(RuntimeError):
		asyncio.run(orchestrator.print_batch(MODEL, make_checks(2), RENDER, PRINT, on_progress=report))
	status = orchestrator.status
	assert status.state == JobState.FAILED
	assert status.error == "RuntimeError: display gone"
	assert status.in_flight is False
	assert backend.calls == []

	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is True


#============================================
def test_missing_backend() -> None:
	"""
	With no backend configured every job fails cleanly.
	"""
	orchestrator = build_orchestrator(None)
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is False
	assert result.error == check_print_layout.orchestrator.BACKEND_MISSING


#============================================
def test_invalid_options_raise() -> None:
	"""
	Bad options are caller errors, not job failures.
	"""
	orchestrator = build_orchestrator(FakeBackend())
	with pytest.raises(ValueError):
		asyncio.run(
			orchestrator.print_check(
				MODEL,
				make_checks(1)[0],
				RENDER,
				check_print_layout.config.PrintOptions(mode="fax"),
			)
		)
	assert orchestrator.status.state == JobState.IDLE
	assert orchestrator.is_printing is False


#============================================
def test_unknown_layout_section_is_skipped() -> None:
	"""
	Unknown section keys in the layout order are ignored, not rejected.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)
	render_options = check_print_layout.config.RenderOptions(layout_order=("check", "stub9"))
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], render_options, PRINT))
	assert result.success is True
	document = backend.calls[0][1]
	assert document.height_in == pytest.approx(3.0)


#============================================
def test_pdf_mode_passes_page_size() -> None:
	"""
	PDF jobs ask the backend for the composed page size in millimeters.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)
	options = check_print_layout.config.PrintOptions(mode="pdf")
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, options))
	assert result.success is True
	assert result.data == b"%PDF-fake"
	kind, _document, page_size_mm, pdf_options = backend.calls[0]
	assert kind == "pdf"
	assert page_size_mm == pytest.approx((215.9, 228.6))
	assert pdf_options["printBackground"] is True


#============================================
def test_single_flight_guard() -> None:
	"""
	A second request while a job is in flight is rejected untouched.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)

	async def scenario():
		backend.gate = asyncio.Event()
		first = asyncio.create_task(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
		await asyncio.sleep(0)
		assert orchestrator.status.state == JobState.SPOOLING
		second = await orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT)
		batch = await orchestrator.print_batch(MODEL, make_checks(2), RENDER, PRINT)
		assert orchestrator.status.state == JobState.SPOOLING
		backend.gate.set()
		return (await first, second, batch)

	first, second, batch = asyncio.run(scenario())
	assert first.success is True
	assert second.success is False
	assert second.error == check_print_layout.orchestrator.JOB_IN_PROGRESS
	assert batch.success is False
	assert batch.summary.total == 2
	assert len(backend.calls) == 1


#============================================
def test_cancel_discards_late_result() -> None:
	"""
	A result arriving after cancel is dropped and the orchestrator re-arms.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)

	async def scenario():
		backend.gate = asyncio.Event()
		task = asyncio.create_task(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
		await asyncio.sleep(0)
		orchestrator.cancel()
		status = orchestrator.status
		assert status.state == JobState.CANCELLED
		assert status.in_flight is False
		backend.gate.set()
		late = await task
		assert orchestrator.status.state == JobState.CANCELLED
		fresh = await orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT)
		return (late, fresh)

	late, fresh = asyncio.run(scenario())
	assert late.success is False
	assert late.cancelled is True
	assert fresh.success is True
	assert orchestrator.status.state == JobState.DONE


#============================================
def test_batch_fail_fast() -> None:
	"""
	Without continue-on-error the batch stops at the first failure.
	"""
	backend = FakeBackend(fail_at=(3,))
	orchestrator = build_orchestrator(backend)
	result = asyncio.run(orchestrator.print_batch(MODEL, make_checks(5), RENDER, PRINT))
	assert result.success is False
	assert len(result.results) == 3
	assert result.summary == check_print_layout.orchestrator.BatchSummary(total=5, succeeded=2, failed=1)
	assert result.error == "Batch print failed at check 3: boom"
	assert len(backend.calls) == 3
	status = orchestrator.status
	assert status.state == JobState.FAILED
	assert status.error == result.error
	assert status.in_flight is False


#============================================
def test_batch_continue_on_error() -> None:
	"""
	With continue-on-error every item is attempted and counted.
	"""
	backend = FakeBackend(fail_at=(3,))
	orchestrator = build_orchestrator(backend)
	options = check_print_layout.config.PrintOptions(continue_on_error=True)
	progress: list = []
	result = asyncio.run(
		orchestrator.print_batch(MODEL, make_checks(5), RENDER, options, on_progress=progress.append)
	)
	assert result.success is False
	assert result.error is None
	assert result.summary == check_print_layout.orchestrator.BatchSummary(total=5, succeeded=4, failed=1)
	assert [entry.success for entry in result.results] == [True, True, False, True, True]
	assert [(entry.current, entry.total) for entry in progress] == [(1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]
	assert backend.states == [JobState.PRINTING] * 5
	assert orchestrator.status.message == "Batch complete: 4 succeeded, 1 failed"
	assert orchestrator.status.state == JobState.DONE


#============================================
def test_batch_prints_silently_in_order() -> None:
	"""
	Batch items print one at a time, each without a dialog.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)
	result = asyncio.run(orchestrator.print_batch(MODEL, make_checks(3), RENDER, PRINT))
	assert result.success is True
	assert [call[2] for call in backend.calls] == [True, True, True]
	assert [call[1].fields[0].text for call in backend.calls] == ["Payee 1", "Payee 2", "Payee 3"]


#============================================
def test_batch_pauses_between_items() -> None:
	"""
	Items are separated by the inter-item pause.
	"""
	orchestrator = build_orchestrator(FakeBackend(), item_delay=0.05)
	start = time.perf_counter()
	asyncio.run(orchestrator.print_batch(MODEL, make_checks(3), RENDER, PRINT))
	assert time.perf_counter() - start >= 0.09


#============================================
def test_empty_batch() -> None:
	"""
	An empty batch completes with a zero summary.
	"""
	orchestrator = build_orchestrator(FakeBackend())
	result = asyncio.run(orchestrator.print_batch(MODEL, [], RENDER, PRINT))
	assert result.success is True
	assert result.summary == check_print_layout.orchestrator.BatchSummary(total=0, succeeded=0, failed=0)


#============================================
def test_sheet_batch_items() -> None:
	"""
	In sheet mode each batch item fills the slots of one sheet.
	"""
	backend = FakeBackend()
	orchestrator = build_orchestrator(backend)
	checks = make_checks(4)
	items = [tuple(checks[:3]), tuple(checks[3:])]
	options = check_print_layout.config.RenderOptions(sheet_mode=True)
	result = asyncio.run(orchestrator.print_batch(MODEL, items, options, PRINT))
	assert result.summary.succeeded == 2
	first_document = backend.calls[0][1]
	second_document = backend.calls[1][1]
	assert sorted({field.slot_index for field in first_document.fields}) == [0, 1, 2]
	assert {field.slot_index for field in second_document.fields} == {0}
	assert first_document.height_in == pytest.approx(9.0)


#============================================
def test_verbose_status_lines(capsys) -> None:
	"""
	Verbose orchestrators print one line per state change.
	"""
	orchestrator = build_orchestrator(FakeBackend(), verbose=True)
	asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	output = capsys.readouterr().out
	assert "Print status: Preparing..." in output
	assert "Print status: Spooling..." in output
	assert "Print status: Done" in output


#============================================
def test_preview() -> None:
	"""
	Previews hand HTML to the opener; a blocked window is a failure.
	"""
	opened: list[str] = []

	def opener(html_text: str) -> bool:
		opened.append(html_text)
		return True

	orchestrator = build_orchestrator(FakeBackend(), preview_opener=opener)
	result = orchestrator.preview_check(MODEL, make_checks(1)[0], RENDER)
	assert result.success is True
	assert "Payee 1" in opened[0]

	blocked = build_orchestrator(FakeBackend(), preview_opener=lambda html_text: False)
	result = blocked.preview_check(MODEL, make_checks(1)[0], RENDER)
	assert result.success is False
	assert result.error == check_print_layout.orchestrator.PREVIEW_BLOCKED

	def broken(html_text: str) -> bool:
		raise OSError("no display")

	failing = build_orchestrator(FakeBackend(), preview_opener=broken)
	assert failing.preview_check(MODEL, make_checks(1)[0], RENDER).error == "no display"


#============================================
def test_reportlab_backend_pdf() -> None:
	"""
	The local backend renders real PDF bytes.
	"""
	orchestrator = build_orchestrator(check_print_layout.backend.ReportLabBackend())
	options = check_print_layout.config.PrintOptions(mode="pdf")
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, options))
	assert result.success is True
	assert result.data.startswith(b"%PDF")


#============================================
def test_reportlab_backend_without_spooler() -> None:
	"""
	A missing spooler command is reported as an unavailable backend.
	"""
	backend = check_print_layout.backend.ReportLabBackend(lp_command="no-such-spooler-command")
	orchestrator = build_orchestrator(backend)
	result = asyncio.run(orchestrator.print_check(MODEL, make_checks(1)[0], RENDER, PRINT))
	assert result.success is False
	assert result.error.startswith("Print backend unavailable")
