"""
Print and PDF backend contract, plus a local backend built on reportlab.
"""

# Standard Library
import asyncio
import dataclasses
import shutil
import typing

# local repo modules
import check_print_layout as cpl
import check_print_layout.document
import check_print_layout.errors
import check_print_layout.render


CheckDocument = cpl.document.CheckDocument


@dataclasses.dataclass(frozen=True)
class BackendResult:
	success: bool
	error: str | None = None
	data: bytes | None = None


class PrintBackend(typing.Protocol):
	async def print_document(
		self,
		document: CheckDocument,
		silent: bool,
		device_name: str | None,
		margins: tuple[float, float, float, float],
	) -> BackendResult:
		...

	async def render_to_pdf(
		self,
		document: CheckDocument,
		page_size_mm: tuple[float, float],
		options: dict,
	) -> BackendResult:
		...


class ReportLabBackend:
	"""
	Local backend: PDFs come from reportlab, printing goes through the
	system `lp` spooler.

	Printing is always dialog-free here, so `silent` has no effect.
	"""

	def __init__(self, lp_command: str = "lp") -> None:
		self.lp_command = lp_command

	#============================================
	async def render_to_pdf(
		self,
		document: CheckDocument,
		page_size_mm: tuple[float, float],
		options: dict,
	) -> BackendResult:
		"""
		Render a document to PDF bytes.

		Args:
			document: Check document; its own point size defines the page.
			page_size_mm: Physical page size requested by the caller.
			options: Extra PDF options; unused by this backend.

		Returns:
			BackendResult carrying the PDF bytes in `data`.
		"""
		pdf_bytes = cpl.render.render_document_pdf(document)
		return BackendResult(success=True, data=pdf_bytes)

	#============================================
	async def print_document(
		self,
		document: CheckDocument,
		silent: bool,
		device_name: str | None,
		margins: tuple[float, float, float, float],
	) -> BackendResult:
		"""
		Send a document to a printer through `lp`.

		Args:
			document: Check document.
			silent: Ignored; `lp` never shows a dialog.
			device_name: Printer name, or None for the default printer.
			margins: Page margins in points (top, right, bottom, left).

		Returns:
			BackendResult.
		"""
		executable = shutil.which(self.lp_command)
		if executable is None:
			raise cpl.errors.BackendUnavailableError(
				f"Print spooler command not found: {self.lp_command}"
			)
		command = [executable, "-o", f"PageSize=Custom.{document.width_pt:.0f}x{document.height_pt:.0f}"]
		top, right, bottom, left = margins
		command.extend(["-o", f"page-top={top:.0f}", "-o", f"page-bottom={bottom:.0f}"])
		command.extend(["-o", f"page-left={left:.0f}", "-o", f"page-right={right:.0f}"])
		if device_name:
			command.extend(["-d", device_name])
		command.append("-")
		pdf_bytes = cpl.render.render_document_pdf(document)
		process = await asyncio.create_subprocess_exec(
			*command,
			stdin=asyncio.subprocess.PIPE,
			stdout=asyncio.subprocess.PIPE,
			stderr=asyncio.subprocess.PIPE,
		)
		_stdout, stderr = await process.communicate(pdf_bytes)
		if process.returncode != 0:
			message = stderr.decode("utf-8", "replace").strip() or f"lp exited with {process.returncode}"
			return BackendResult(success=False, error=message)
		return BackendResult(success=True)
