"""
Print orchestration: single checks, batches, previews.

One job runs at a time. The orchestrator is driven from a single asyncio
event loop and only suspends while awaiting the backend or the pause between
batch items.
"""

# Standard Library
import asyncio
import base64
import dataclasses
import enum
import time
import typing
import webbrowser

# local repo modules
import check_print_layout as cpl
import check_print_layout.backend
import check_print_layout.check_data
import check_print_layout.config
import check_print_layout.document
import check_print_layout.errors
import check_print_layout.geometry


CheckData = cpl.check_data.CheckData
Model = cpl.geometry.Model
RenderOptions = cpl.config.RenderOptions
PrintOptions = cpl.config.PrintOptions
BackendResult = cpl.backend.BackendResult

BATCH_ITEM_DELAY = cpl.config.BATCH_ITEM_DELAY
PRINT_STATUS_CLEAR_DELAY = cpl.config.PRINT_STATUS_CLEAR_DELAY
BATCH_STATUS_CLEAR_DELAY = cpl.config.BATCH_STATUS_CLEAR_DELAY
PRINT_MODES = ("print", "pdf")

JOB_IN_PROGRESS = "A print job is already in progress"
BACKEND_MISSING = "Print backend not available. Printing requires a configured backend."
PREVIEW_BLOCKED = "Could not open preview window. Please check your popup blocker."
CANCELLED = "Cancelled"

BatchItem = typing.Union[CheckData, typing.Sequence[CheckData]]


class JobState(enum.Enum):
	IDLE = "idle"
	PREPARING = "preparing"
	SPOOLING = "spooling"
	PRINTING = "printing"
	DONE = "done"
	FAILED = "failed"
	CANCELLED = "cancelled"


@dataclasses.dataclass(frozen=True)
class PrintStatus:
	state: JobState
	in_flight: bool
	message: str
	error: str | None
	current: int = 0
	total: int = 0


@dataclasses.dataclass(frozen=True)
class PrintResult:
	success: bool
	error: str | None = None
	data: bytes | None = None
	cancelled: bool = False


@dataclasses.dataclass(frozen=True)
class BatchSummary:
	total: int
	succeeded: int
	failed: int


@dataclasses.dataclass(frozen=True)
class BatchResult:
	success: bool
	results: tuple[PrintResult, ...]
	summary: BatchSummary
	error: str | None = None
	cancelled: bool = False


@dataclasses.dataclass(frozen=True)
class BatchProgress:
	current: int
	total: int


#============================================
def open_in_browser(html_text: str) -> bool:
	"""
	Open an HTML document in the default web browser.

	Args:
		html_text: HTML document.

	Returns:
		True when a browser accepted the document.
	"""
	encoded = base64.b64encode(html_text.encode("utf-8")).decode("ascii")
	return webbrowser.open(f"data:text/html;base64,{encoded}", new=1)


#============================================
def split_batch_item(item: BatchItem) -> tuple[CheckData, tuple[CheckData, ...] | None]:
	"""
	Split a batch item into single-check content and sheet slot content.

	Args:
		item: A CheckData, or up to three CheckData for one sheet.

	Returns:
		Tuple of (check_data, slot_data).
	"""
	if isinstance(item, CheckData):
		return (item, None)
	slots = tuple(item)
	if not slots:
		return (cpl.check_data.EMPTY_CHECK, ())
	return (slots[0], slots)


class PrintOrchestrator:
	"""
	Drives print and PDF jobs against a backend.

	Single job: Idle -> Preparing -> Spooling -> Done | Failed.
	Batch job: Idle -> Preparing -> Printing(i of n) -> Done | Failed.

	Done keeps the orchestrator armed-off until the status clear delay has
	elapsed; Failed re-arms immediately and keeps the error message until the
	next job starts or `clear_error` is called. A backend exception is
	reported as a failed result; any other exception ends the job as Failed
	and is re-raised. A backend call has no timeout, so a hung backend leaves
	the job in Spooling.
	"""

	def __init__(
		self,
		backend: cpl.backend.PrintBackend | None,
		clear_delay: float = PRINT_STATUS_CLEAR_DELAY,
		batch_clear_delay: float = BATCH_STATUS_CLEAR_DELAY,
		item_delay: float = BATCH_ITEM_DELAY,
		preview_opener: typing.Callable[[str], bool] | None = None,
		verbose: bool = False,
	) -> None:
		self.backend = backend
		self.clear_delay = clear_delay
		self.batch_clear_delay = batch_clear_delay
		self.item_delay = item_delay
		self.preview_opener = preview_opener or open_in_browser
		self.verbose = verbose
		self._state = JobState.IDLE
		self._message = ""
		self._error: str | None = None
		self._current = 0
		self._total = 0
		self._in_flight = False
		self._generation = 0
		self._settled_at = 0.0
		self._clear_after = 0.0

	#============================================
	@property
	def status(self) -> PrintStatus:
		"""
		Read-only snapshot of the orchestrator state.
		"""
		self._expire_settled()
		return PrintStatus(
			state=self._state,
			in_flight=self._in_flight,
			message=self._message,
			error=self._error,
			current=self._current,
			total=self._total,
		)

	@property
	def is_printing(self) -> bool:
		self._expire_settled()
		return self._in_flight

	#============================================
	def _expire_settled(self) -> None:
		"""
		Return Done and Cancelled to Idle once their clear delay has passed.
		"""
		if self._state not in (JobState.DONE, JobState.CANCELLED):
			return
		if time.monotonic() - self._settled_at < self._clear_after:
			return
		self._state = JobState.IDLE
		self._message = ""
		self._current = 0
		self._total = 0
		self._in_flight = False

	def _set_state(self, state: JobState, message: str) -> None:
		self._state = state
		self._message = message
		if self.verbose:
			print(f"Print status: {message}")

	def _begin_job(self) -> int | None:
		self._expire_settled()
		if self._in_flight:
			return None
		self._in_flight = True
		self._generation += 1
		self._error = None
		self._current = 0
		self._total = 0
		return self._generation

	def _settle(self, state: JobState, message: str, delay: float) -> None:
		self._set_state(state, message)
		self._settled_at = time.monotonic()
		self._clear_after = delay

	def _fail(self, error: str, message: str) -> None:
		self._error = error
		self._in_flight = False
		self._set_state(JobState.FAILED, message)
		if self.verbose:
			print(f"Print error: {error}")

	def _abort(self, generation: int, error: BaseException) -> None:
		"""
		Release a job that stopped on an unexpected exception.

		A job already cancelled or replaced is left alone.
		"""
		if generation != self._generation:
			return
		if isinstance(error, asyncio.CancelledError):
			self.cancel()
			return
		self._fail(f"{type(error).__name__}: {error}", "Failed")

	#============================================
	def _validate(self, print_options: PrintOptions) -> None:
		if print_options.mode not in PRINT_MODES:
			raise ValueError(f"unknown print mode: {print_options.mode}")

	#============================================
	async def _run_item(
		self,
		generation: int,
		model: Model,
		item: BatchItem,
		render_options: RenderOptions,
		print_options: PrintOptions,
		silent: bool,
		template_image: typing.Any,
		announce: bool,
	) -> PrintResult:
		"""
		Build one document and hand it to the backend.

		Args:
			generation: Job generation; a mismatch after the backend returns
				means the job was cancelled and the result is discarded.
			model: Geometry model.
			item: Check content, or slot content for a sheet.
			render_options: Render options.
			print_options: Print options.
			silent: Whether to print without a dialog.
			template_image: Optional in-memory background image.
			announce: Whether to publish the Spooling state.

		Returns:
			PrintResult for this item.
		"""
		check_data, slot_data = split_batch_item(item)
		document = cpl.document.build_document(
			model,
			check_data,
			render_options,
			slot_data=slot_data,
			template_image=template_image,
		)
		if announce:
			message = "Generating PDF..." if print_options.mode == "pdf" else "Spooling..."
			self._set_state(JobState.SPOOLING, message)

		if self.backend is None:
			backend_result = BackendResult(success=False, error=BACKEND_MISSING)
		else:
			try:
				if print_options.mode == "pdf":
					backend_result = await self.backend.render_to_pdf(
						document,
						cpl.document.page_size_mm(document),
						{"landscape": False, "printBackground": True},
					)
				else:
					backend_result = await self.backend.print_document(
						document,
						silent,
						print_options.device_name,
						print_options.margins,
					)
			except cpl.errors.BackendUnavailableError as error:
				backend_result = BackendResult(success=False, error=f"Print backend unavailable: {error}")
			except (cpl.errors.CheckPrintError, OSError) as error:
				backend_result = BackendResult(success=False, error=str(error) or type(error).__name__)
			except Exception as error:
				# third-party backends raise anything; report it as a failed print
				backend_result = BackendResult(success=False, error=f"{type(error).__name__}: {error}")

		if generation != self._generation:
			return PrintResult(success=False, error=CANCELLED, cancelled=True)
		if not backend_result.success:
			return PrintResult(success=False, error=backend_result.error or "Print failed")
		return PrintResult(success=True, data=backend_result.data)

	#============================================
	async def print_check(
		self,
		model: Model,
		check_data: CheckData,
		render_options: RenderOptions,
		print_options: PrintOptions,
		slot_data: typing.Sequence[CheckData] | None = None,
		template_image: typing.Any = None,
	) -> PrintResult:
		"""
		Print or render one check (or one three-up sheet).

		Args:
			model: Geometry model, read only.
			check_data: Check content.
			render_options: Render options.
			print_options: Print options; mode "print" or "pdf".
			slot_data: Up to three checks for a sheet-mode document.
			template_image: Optional in-memory background image.

		Returns:
			PrintResult; a request made while another job is in flight is
			rejected without touching that job's state.
		"""
		self._validate(print_options)
		generation = self._begin_job()
		if generation is None:
			return PrintResult(success=False, error=JOB_IN_PROGRESS)

		self._set_state(JobState.PREPARING, "Preparing...")
		item: BatchItem = check_data
		if render_options.sheet_mode and slot_data is not None:
			item = tuple(slot_data)
		try:
			result = await self._run_item(
				generation,
				model,
				item,
				render_options,
				print_options,
				print_options.silent,
				template_image,
				announce=True,
			)
		except (Exception, asyncio.CancelledError) as error:
			self._abort(generation, error)
			raise
		if result.cancelled:
			return result
		if result.success:
			self._settle(JobState.DONE, "Done", self.clear_delay)
		else:
			self._fail(result.error or "Print failed", "Failed")
		return result

	#============================================
	async def print_batch(
		self,
		model: Model,
		items: typing.Sequence[BatchItem],
		render_options: RenderOptions,
		print_options: PrintOptions,
		on_progress: typing.Callable[[BatchProgress], None] | None = None,
		template_image: typing.Any = None,
	) -> BatchResult:
		"""
		Print items strictly one after another, each without a dialog.

		Args:
			model: Geometry model, read only.
			items: Checks in print order; in sheet mode each item may be a
				sequence of up to three checks.
			render_options: Render options.
			print_options: Print options; `continue_on_error` selects
				fail-fast or keep-going.
			on_progress: Called before each item's print attempt.
			template_image: Optional in-memory background image.

		Returns:
			BatchResult with per-item results and a summary.
		"""
		self._validate(print_options)
		total = len(items)
		generation = self._begin_job()
		if generation is None:
			return BatchResult(
				success=False,
				results=(),
				summary=BatchSummary(total=total, succeeded=0, failed=0),
				error=JOB_IN_PROGRESS,
			)

		self._set_state(JobState.PREPARING, "Preparing batch...")
		self._total = total
		results: list[PrintResult] = []
		succeeded = 0
		failed = 0

		def summary() -> BatchSummary:
			return BatchSummary(total=total, succeeded=succeeded, failed=failed)

		try:
			for index, item in enumerate(items):
				if generation != self._generation:
					return BatchResult(False, tuple(results), summary(), error=CANCELLED, cancelled=True)
				self._current = index + 1
				self._set_state(JobState.PRINTING, f"Printing {index + 1} of {total}...")
				if on_progress is not None:
					on_progress(BatchProgress(current=index + 1, total=total))

				result = await self._run_item(
					generation,
					model,
					item,
					render_options,
					print_options,
					True,
					template_image,
					announce=False,
				)
				if result.cancelled:
					return BatchResult(False, tuple(results), summary(), error=CANCELLED, cancelled=True)
				results.append(result)
				if result.success:
					succeeded += 1
				else:
					failed += 1
					if not print_options.continue_on_error:
						error = f"Batch print failed at check {index + 1}: {result.error}"
						self._fail(error, "Batch failed")
						return BatchResult(False, tuple(results), summary(), error=error)

				if index < total - 1:
					await asyncio.sleep(self.item_delay)
		except (Exception, asyncio.CancelledError) as error:
			self._abort(generation, error)
			raise

		if generation != self._generation:
			return BatchResult(False, tuple(results), summary(), error=CANCELLED, cancelled=True)
		self._settle(
			JobState.DONE,
			f"Batch complete: {succeeded} succeeded, {failed} failed",
			self.batch_clear_delay,
		)
		return BatchResult(success=failed == 0, results=tuple(results), summary=summary())

	#============================================
	def preview_check(
		self,
		model: Model,
		check_data: CheckData,
		render_options: RenderOptions,
		slot_data: typing.Sequence[CheckData] | None = None,
	) -> PrintResult:
		"""
		Open the print document in a preview window.

		Args:
			model: Geometry model, read only.
			check_data: Check content.
			render_options: Render options.
			slot_data: Up to three checks for a sheet-mode document.

		Returns:
			PrintResult; a blocked or failed preview is reported, not raised.
		"""
		document = cpl.document.build_document(model, check_data, render_options, slot_data=slot_data)
		template_url = None
		if document.template is not None and isinstance(document.template.source, str):
			template_url = document.template.source
		html_text = cpl.document.document_to_html(document, template_url=template_url)
		try:
			opened = self.preview_opener(html_text)
			if not opened:
				raise cpl.errors.PreviewError(PREVIEW_BLOCKED)
		except (cpl.errors.CheckPrintError, webbrowser.Error, OSError) as error:
			if self.verbose:
				print(f"Preview error: {error}")
			return PrintResult(success=False, error=str(error) or PREVIEW_BLOCKED)
		return PrintResult(success=True)

	#============================================
	def cancel(self) -> None:
		"""
		Cancel the current job cooperatively.

		An in-flight backend call keeps running; its result is discarded
		when it arrives. The orchestrator is re-armed immediately.
		"""
		self._generation += 1
		self._in_flight = False
		self._error = None
		self._settle(JobState.CANCELLED, CANCELLED, self.clear_delay)

	def clear_error(self) -> None:
		self._error = None
