"""
CLI entry points for check printing.
"""

# Standard Library
import argparse
import asyncio
import json
import pathlib
import time

# local repo modules
import check_print_layout as cpl
import check_print_layout.backend
import check_print_layout.check_data
import check_print_layout.config
import check_print_layout.document
import check_print_layout.geometry
import check_print_layout.orchestrator
import check_print_layout.render
import check_print_layout.sections


RenderOptions = cpl.config.RenderOptions
PrintOptions = cpl.config.PrintOptions
CheckData = cpl.check_data.CheckData

DEFAULT_FONT_ID = cpl.config.DEFAULT_FONT_ID
DEFAULT_LAYOUT_ORDER = cpl.config.DEFAULT_LAYOUT_ORDER
AVAILABLE_FONTS = cpl.config.AVAILABLE_FONTS
SHEET_SLOTS = cpl.config.SHEET_SLOTS
PROGRESS_BAR_WIDTH = cpl.config.PROGRESS_BAR_WIDTH


#============================================
def format_batch_progress(progress: cpl.orchestrator.BatchProgress, unit: str = "check") -> str:
	"""
	One status line for a batch in flight, e.g. "check 2 of 4 [#####-----]".

	Args:
		progress: Batch position reported before each item.
		unit: Item noun, "check" or "sheet".

	Returns:
		Progress text without a line ending.
	"""
	if progress.total <= 0:
		return f"{unit} 0 of 0"
	done = min(max(progress.current, 0), progress.total)
	cells = (done * PROGRESS_BAR_WIDTH) // progress.total
	meter = "#" * cells + "-" * (PROGRESS_BAR_WIDTH - cells)
	return f"{unit} {done} of {progress.total} [{meter}]"


#============================================
def build_render_options(args: argparse.Namespace) -> RenderOptions:
	"""
	Build render options from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		RenderOptions.
	"""
	layout_order = tuple(key.strip() for key in args.layout_order.split(",") if key.strip())
	return RenderOptions(
		font_id=args.font_id,
		date_format=cpl.config.DateFormatConfig(),
		layout_order=cpl.sections.validate_layout_order(layout_order),
		sheet_mode=args.sheet_mode,
		show_template=args.show_template,
	)


#============================================
def build_print_options(args: argparse.Namespace) -> PrintOptions:
	"""
	Build print options from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		PrintOptions.
	"""
	return PrintOptions(
		mode="print" if args.send_to_printer else "pdf",
		silent=True,
		device_name=args.device_name,
		continue_on_error=args.continue_on_error,
	)


#============================================
def load_json(path: pathlib.Path):
	with open(path, "r", encoding="utf-8") as handle:
		return json.load(handle)


#============================================
def group_sheets(checks: list[CheckData]) -> list[tuple[CheckData, ...]]:
	"""
	Group checks into three-up sheets, top to bottom.

	Args:
		checks: Checks in print order.

	Returns:
		List of slot tuples; the last sheet may hold fewer than three.
	"""
	per_sheet = len(SHEET_SLOTS)
	return [tuple(checks[index:index + per_sheet]) for index in range(0, len(checks), per_sheet)]


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render or print checks from a saved layout model.")
	parser.add_argument("model_path", help="Layout model JSON file.")
	parser.add_argument("checks_path", help="Check data JSON file: one object or a list.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", default=None, help="Output PDF (or HTML) path.")
	output_group.add_argument("--html", dest="write_html", action="store_true", help="Write HTML documents instead of PDF.")

	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument("-s", "--sheet", dest="sheet_mode", action="store_true", help="Three checks per page.")
	layout_group.add_argument(
		"--order",
		dest="layout_order",
		default=",".join(DEFAULT_LAYOUT_ORDER),
		help="Section order for stacked mode, e.g. stub1,check,stub2.",
	)
	layout_group.add_argument(
		"-f",
		"--font",
		dest="font_id",
		choices=sorted(AVAILABLE_FONTS),
		default=DEFAULT_FONT_ID,
		help="Font for all fields.",
	)
	layout_group.add_argument("-t", "--template", dest="show_template", action="store_true", help="Draw the template image.")
	layout_group.add_argument("-T", "--no-template", dest="show_template", action="store_false", help="Omit the template image.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("-p", "--print", dest="send_to_printer", action="store_true", help="Send to a printer via lp.")
	behavior_group.add_argument("-d", "--device", dest="device_name", default=None, help="Printer name for --print.")
	behavior_group.add_argument(
		"-k",
		"--continue-on-error",
		dest="continue_on_error",
		action="store_true",
		help="Keep printing a batch after a failed check.",
	)

	parser.set_defaults(
		sheet_mode=False,
		show_template=False,
		send_to_printer=False,
		write_html=False,
		continue_on_error=False,
	)

	args = parser.parse_args(argv)
	if args.output_path is None and (args.write_html or not args.send_to_printer):
		parser.error("-o/--output is required unless --print is given")
	return args


#============================================
def write_html_documents(
	documents: list[cpl.document.CheckDocument],
	output_path: pathlib.Path,
	template_url: str | None,
) -> list[pathlib.Path]:
	"""
	Write one HTML file per document.

	Args:
		documents: Check documents.
		output_path: Output path; numbered when more than one document.
		template_url: Background image URL for template layers.

	Returns:
		Written paths.
	"""
	written: list[pathlib.Path] = []
	for index, document in enumerate(documents, start=1):
		path = output_path
		if len(documents) > 1:
			path = output_path.with_name(f"{output_path.stem}_{index:03d}{output_path.suffix}")
		path.write_text(cpl.document.document_to_html(document, template_url=template_url), encoding="utf-8")
		written.append(path)
	return written


#============================================
def run_pipeline(args: argparse.Namespace) -> int:
	"""
	Run the check pipeline from JSON input to PDF, HTML or printer.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Process exit status.
	"""
	render_options = build_render_options(args)
	print_options = build_print_options(args)
	print("Check print pipeline")
	print(f"Model: {args.model_path}")
	print(f"Checks: {args.checks_path}")
	if args.output_path:
		print(f"Output: {args.output_path}")
	print(f"Sheet mode: {render_options.sheet_mode}")
	if not render_options.sheet_mode:
		print(f"Section order: {','.join(render_options.layout_order)}")
	print(f"Font: {render_options.font_id}")
	print(f"Template: {render_options.show_template}")
	print(f"Mode: {print_options.mode}")

	start_time = time.perf_counter()
	load_start = time.perf_counter()
	model = cpl.geometry.model_from_dict(load_json(pathlib.Path(args.model_path)))
	raw_checks = load_json(pathlib.Path(args.checks_path))
	is_batch = isinstance(raw_checks, list)
	if not is_batch:
		raw_checks = [raw_checks]
	checks = [cpl.check_data.check_data_from_dict(entry) for entry in raw_checks]
	items: list = list(group_sheets(checks)) if render_options.sheet_mode else list(checks)
	load_end = time.perf_counter()
	print(f"Checks loaded: {len(checks)}")
	print(f"Documents: {len(items)}")
	if not items:
		print("Nothing to print.")
		return 0

	if args.write_html:
		documents = []
		for item in items:
			check_data, slot_data = cpl.orchestrator.split_batch_item(item)
			documents.append(cpl.document.build_document(model, check_data, render_options, slot_data=slot_data))
		written = write_html_documents(documents, pathlib.Path(args.output_path), model.template.path)
		for path in written:
			print(f"HTML written: {path}")
		return 0

	orchestrator = cpl.orchestrator.PrintOrchestrator(cpl.backend.ReportLabBackend(), verbose=False)
	print_start = time.perf_counter()
	if is_batch or len(items) > 1:
		def report(progress: cpl.orchestrator.BatchProgress) -> None:
			unit = "sheet" if render_options.sheet_mode else "check"
			print(f"Printing {format_batch_progress(progress, unit)}", end="\r")

		batch = asyncio.run(
			orchestrator.print_batch(model, items, render_options, print_options, on_progress=report)
		)
		print("")
		results = list(batch.results)
		summary = batch.summary
		print(f"Succeeded: {summary.succeeded}")
		print(f"Failed: {summary.failed}")
		error = batch.error or f"{summary.failed} of {summary.total} failed"
		success = batch.success
		for index, result in enumerate(results, start=1):
			if not result.success:
				print(f"Check {index}: {result.error}")
	else:
		check_data, slot_data = cpl.orchestrator.split_batch_item(items[0])
		single = asyncio.run(
			orchestrator.print_check(model, check_data, render_options, print_options, slot_data=slot_data)
		)
		results = [single]
		error = single.error
		success = single.success
	print_end = time.perf_counter()

	if print_options.mode == "pdf":
		blobs = [result.data for result in results if result.success and result.data]
		if blobs:
			output_path = pathlib.Path(args.output_path)
			merged = blobs[0] if len(blobs) == 1 else cpl.render.merge_pdfs(blobs)
			output_path.write_bytes(merged)
			print(f"PDF written: {output_path} ({len(blobs)} page(s))")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: load={:.2f}s print={:.2f}s total={:.2f}s".format(
			load_end - load_start,
			print_end - print_start,
			total_time,
		)
	)
	if not success:
		print(f"Error: {error}")
		return 1
	return 0


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	status = run_pipeline(args)
	if status != 0:
		raise SystemExit(status)
