"""
PDF rendering of check documents.
"""

# Standard Library
import io

# PIP3 modules
import PIL.Image
import pypdf
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import check_print_layout as cpl
import check_print_layout.config
import check_print_layout.document


CheckDocument = cpl.document.CheckDocument
DocumentField = cpl.document.DocumentField
TemplateLayer = cpl.document.TemplateLayer

LINE_LEADING = cpl.config.LINE_LEADING


#============================================
def compute_align_offset(available: float, content: float, align: str) -> float:
	"""
	Compute a horizontal alignment offset.

	Args:
		available: Available width.
		content: Content width.
		align: "left", "right" or "center".

	Returns:
		Offset in points.
	"""
	normalized = align.strip().lower()
	if normalized == "left":
		return 0.0
	if normalized == "right":
		return max(0.0, available - content)
	return max(0.0, (available - content) / 2.0)


#============================================
def compute_template_box(
	image_width: float,
	image_height: float,
	box_width: float,
	box_height: float,
	fit: str,
) -> tuple[float, float, float, float]:
	"""
	Place a background image inside a page box.

	Args:
		image_width: Image width in pixels.
		image_height: Image height in pixels.
		box_width: Page width in points.
		box_height: Page height in points.
		fit: "cover", "contain" or "fill".

	Returns:
		Tuple of (x, y, width, height) in points, top-left origin.
	"""
	if fit == "fill" or image_width <= 0 or image_height <= 0:
		return (0.0, 0.0, box_width, box_height)
	scale_x = box_width / image_width
	scale_y = box_height / image_height
	if fit == "contain":
		scale = min(scale_x, scale_y)
	else:
		scale = max(scale_x, scale_y)
	width = image_width * scale
	height = image_height * scale
	return ((box_width - width) / 2.0, (box_height - height) / 2.0, width, height)


#============================================
def load_template_image(source) -> PIL.Image.Image:
	"""
	Load a template source into an RGB image.

	Args:
		source: PIL image, image bytes, or path.

	Returns:
		RGB PIL image.
	"""
	if isinstance(source, PIL.Image.Image):
		image = source
	elif isinstance(source, (bytes, bytearray)):
		image = PIL.Image.open(io.BytesIO(source))
		image.load()
	else:
		image = PIL.Image.open(source)
		image.load()
	if image.mode in ("RGBA", "LA", "P"):
		rgba = image.convert("RGBA")
		flattened = PIL.Image.new("RGB", rgba.size, (255, 255, 255))
		flattened.paste(rgba, mask=rgba.getchannel("A"))
		return flattened
	return image.convert("RGB")


#============================================
def fade_image(image: PIL.Image.Image, opacity: float) -> PIL.Image.Image:
	"""
	Composite an image over white paper at the given opacity.

	Args:
		image: RGB image.
		opacity: 0.0 (invisible) to 1.0 (opaque).

	Returns:
		Faded RGB image.
	"""
	opacity = min(1.0, max(0.0, opacity))
	if opacity >= 1.0:
		return image
	paper = PIL.Image.new("RGB", image.size, (255, 255, 255))
	return PIL.Image.blend(paper, image, opacity)


#============================================
def clip_to_rect(
	pdf: reportlab.pdfgen.canvas.Canvas,
	x: float,
	y: float,
	width: float,
	height: float,
) -> None:
	"""
	Restrict drawing to a rectangle given in PDF coordinates.
	"""
	path = pdf.beginPath()
	path.rect(x, y, width, height)
	pdf.clipPath(path, stroke=0, fill=0)


#============================================
def draw_template(
	pdf: reportlab.pdfgen.canvas.Canvas,
	layer: TemplateLayer,
	page_width: float,
	page_height: float,
) -> None:
	"""
	Draw the background template beneath all fields.

	Args:
		pdf: ReportLab canvas.
		layer: Template layer.
		page_width: Page width in points.
		page_height: Page height in points.
	"""
	image = fade_image(load_template_image(layer.source), layer.opacity)
	x, top, width, height = compute_template_box(
		float(image.width),
		float(image.height),
		page_width,
		page_height,
		layer.fit,
	)
	pdf.saveState()
	clip_to_rect(pdf, 0.0, 0.0, page_width, page_height)
	pdf.drawImage(
		reportlab.lib.utils.ImageReader(image),
		x,
		page_height - top - height,
		width=width,
		height=height,
		mask=None,
		preserveAspectRatio=False,
		anchor="sw",
	)
	pdf.restoreState()


#============================================
def compute_line_baselines(
	field: DocumentField,
	font_name: str,
	line_count: int,
) -> list[float]:
	"""
	Compute text baselines for a vertically centered block of lines.

	Args:
		field: Document field, top-left origin.
		font_name: ReportLab font name.
		line_count: Number of lines.

	Returns:
		Baseline y positions from the top of the page, one per line.
	"""
	font_size = field.font_size_pt
	leading = font_size * LINE_LEADING
	ascent, descent = reportlab.pdfbase.pdfmetrics.getAscentDescent(font_name, font_size)
	block_height = leading * line_count
	block_top = field.y_pt + (field.height_pt - block_height) / 2.0
	baselines: list[float] = []
	for index in range(line_count):
		baselines.append(block_top + index * leading + (leading + ascent + descent) / 2.0)
	return baselines


#============================================
def draw_document_field(
	pdf: reportlab.pdfgen.canvas.Canvas,
	field: DocumentField,
	font_name: str,
	page_height: float,
) -> None:
	"""
	Draw one field's text, clipped to its box.

	Args:
		pdf: ReportLab canvas.
		field: Document field, top-left origin.
		font_name: ReportLab font name.
		page_height: Page height in points.
	"""
	if field.multiline:
		lines = field.text.splitlines() or [""]
	else:
		lines = [" ".join(field.text.splitlines())]
	pdf.saveState()
	clip_to_rect(
		pdf,
		field.x_pt,
		page_height - field.y_pt - field.height_pt,
		field.width_pt,
		field.height_pt,
	)
	pdf.setFont(font_name, field.font_size_pt)
	pdf.setFillColorRGB(0.0, 0.0, 0.0)
	baselines = compute_line_baselines(field, font_name, len(lines))
	for line, baseline in zip(lines, baselines):
		line_width = pdf.stringWidth(line, font_name, field.font_size_pt)
		text_x = field.x_pt + compute_align_offset(field.width_pt, line_width, field.align)
		pdf.drawString(text_x, page_height - baseline, line)
	pdf.restoreState()


#============================================
def draw_document(pdf: reportlab.pdfgen.canvas.Canvas, document: CheckDocument) -> None:
	"""
	Draw a document onto the current canvas page.

	Args:
		pdf: ReportLab canvas sized to the document.
		document: Check document.
	"""
	if document.template is not None:
		draw_template(pdf, document.template, document.width_pt, document.height_pt)
	font_name = cpl.config.font_name_pdf(document.font_id)
	for field in document.fields:
		draw_document_field(pdf, field, font_name, document.height_pt)


#============================================
def render_document_pdf(document: CheckDocument) -> bytes:
	"""
	Render a single document to a one-page PDF.

	Args:
		document: Check document.

	Returns:
		PDF bytes.
	"""
	return render_documents_pdf([document])


#============================================
def render_documents_pdf(documents: list[CheckDocument]) -> bytes:
	"""
	Render documents to one PDF, one page per document.

	Args:
		documents: Check documents.

	Returns:
		PDF bytes.
	"""
	if not documents:
		raise ValueError("no documents to render")
	buffer = io.BytesIO()
	first = documents[0]
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(first.width_pt, first.height_pt))
	pdf.setTitle(first.title)
	for index, document in enumerate(documents):
		if index > 0:
			pdf.showPage()
			pdf.setPageSize((document.width_pt, document.height_pt))
		draw_document(pdf, document)
	pdf.save()
	return buffer.getvalue()


#============================================
def merge_pdfs(pdf_blobs: list[bytes]) -> bytes:
	"""
	Concatenate PDF files into one.

	Args:
		pdf_blobs: PDF bytes in page order.

	Returns:
		Merged PDF bytes.
	"""
	writer = pypdf.PdfWriter()
	for blob in pdf_blobs:
		reader = pypdf.PdfReader(io.BytesIO(blob))
		for page in reader.pages:
			writer.add_page(page)
	buffer = io.BytesIO()
	writer.write(buffer)
	return buffer.getvalue()
