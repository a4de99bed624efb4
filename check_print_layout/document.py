"""
Static print document generation.

A CheckDocument is the print-ready counterpart of the interactive surface:
the same placed fields, converted to print points, with no handles and no
empty placeholders.
"""

# Standard Library
import dataclasses
import html
import typing

# local repo modules
import check_print_layout as cpl
import check_print_layout.check_data
import check_print_layout.config
import check_print_layout.geometry
import check_print_layout.resolve
import check_print_layout.sections
import check_print_layout.surface
import check_print_layout.units


CheckData = cpl.check_data.CheckData
Model = cpl.geometry.Model
TemplateSpec = cpl.geometry.TemplateSpec
RenderOptions = cpl.config.RenderOptions
LINE_LEADING = cpl.config.LINE_LEADING


@dataclasses.dataclass(frozen=True)
class DocumentField:
	key: str
	section_key: str
	slot_index: int
	x_pt: float
	y_pt: float
	width_pt: float
	height_pt: float
	font_size_pt: float
	text: str
	multiline: bool
	align: str


@dataclasses.dataclass(frozen=True)
class TemplateLayer:
	# path or in-memory image; opaque to the generator
	source: typing.Any
	opacity: float
	fit: str


@dataclasses.dataclass(frozen=True)
class CheckDocument:
	width_in: float
	height_in: float
	width_pt: float
	height_pt: float
	font_id: str
	fields: tuple[DocumentField, ...]
	template: TemplateLayer | None = None
	title: str = "Check Print"


#============================================
def build_template_layer(
	template: TemplateSpec,
	options: RenderOptions,
	template_image: typing.Any = None,
) -> TemplateLayer | None:
	"""
	Build the background layer when the template is shown.

	Args:
		template: Template settings from the model.
		options: Render options.
		template_image: Optional in-memory image overriding the template path.

	Returns:
		TemplateLayer, or None when no background is drawn.
	"""
	if not options.show_template:
		return None
	source = template_image if template_image is not None else template.path
	if source is None:
		return None
	return TemplateLayer(source=source, opacity=template.opacity, fit=template.fit)


#============================================
def build_document(
	model: Model,
	check_data: CheckData,
	options: RenderOptions,
	slot_data: typing.Sequence[CheckData] | None = None,
	template_image: typing.Any = None,
) -> CheckDocument:
	"""
	Build the print document for one check or one three-up sheet.

	Args:
		model: Geometry model, read only.
		check_data: Check content for stacked mode.
		options: Render options.
		slot_data: Up to three checks for sheet mode, top to bottom.
		template_image: Optional in-memory background image.

	Returns:
		CheckDocument sized to the composed page in points.
	"""
	composition = cpl.sections.compose_sections(
		model.layout,
		options.layout_order,
		options.sheet_mode,
	)
	if options.sheet_mode and slot_data is None:
		slot_data = (check_data,)

	fields: list[DocumentField] = []
	for placed in cpl.sections.place_fields(composition, model.fields):
		data = cpl.surface.check_data_for_slot(
			check_data,
			slot_data,
			placed.slot_index,
			composition.sheet_mode,
		)
		text = cpl.resolve.resolve_field_value(placed.key, data, options.date_format)
		if not text:
			continue
		fields.append(
			DocumentField(
				key=placed.key,
				section_key=placed.section_key,
				slot_index=placed.slot_index,
				x_pt=cpl.units.inches_to_points(placed.x_in),
				y_pt=cpl.units.inches_to_points(placed.y_in),
				width_pt=cpl.units.inches_to_points(placed.w_in),
				height_pt=cpl.units.inches_to_points(placed.h_in),
				font_size_pt=cpl.units.inches_to_points(placed.font_in),
				text=text,
				multiline=cpl.surface.field_is_multiline(placed.key),
				align=cpl.surface.field_align(placed.key),
			)
		)

	return CheckDocument(
		width_in=composition.width_in,
		height_in=composition.total_height_in,
		width_pt=cpl.units.inches_to_points(composition.width_in),
		height_pt=cpl.units.inches_to_points(composition.total_height_in),
		font_id=options.font_id,
		fields=tuple(fields),
		template=build_template_layer(model.template, options, template_image),
	)


#============================================
def page_size_mm(document: CheckDocument) -> tuple[float, float]:
	"""
	Physical page size of a document for PDF backends.

	Args:
		document: Check document.

	Returns:
		Tuple of (width_mm, height_mm).
	"""
	return cpl.units.page_size_mm(document.width_in, document.height_in)


#============================================
def document_to_html(document: CheckDocument, template_url: str | None = None) -> str:
	"""
	Render a document as a standalone HTML page using point units.

	Args:
		document: Check document.
		template_url: URL of the background image, used when the document
			has a template layer.

	Returns:
		HTML text.
	"""
	family = cpl.config.font_family_css(document.font_id)
	parts: list[str] = []
	if document.template is not None and template_url:
		background_size = {"cover": "cover", "contain": "contain", "fill": "100% 100%"}.get(
			document.template.fit,
			"cover",
		)
		parts.append(
			'<div class="template-background" style="position:absolute;left:0;top:0;'
			f"width:100%;height:100%;background-image:url('{html.escape(template_url, quote=True)}');"
			f"background-size:{background_size};background-repeat:no-repeat;"
			f'opacity:{document.template.opacity};"></div>'
		)
	for field in document.fields:
		white_space = "pre-wrap" if field.multiline else "nowrap"
		justify = "flex-end" if field.align == "right" else "flex-start"
		parts.append(
			f'<div class="field field-{field.key}" style="position:absolute;'
			f"left:{field.x_pt:.3f}pt;top:{field.y_pt:.3f}pt;"
			f"width:{field.width_pt:.3f}pt;height:{field.height_pt:.3f}pt;"
			f"font-size:{field.font_size_pt:.3f}pt;line-height:{LINE_LEADING};"
			f"display:flex;align-items:center;justify-content:{justify};"
			f'overflow:hidden;white-space:{white_space};text-align:{field.align};">'
			f"{html.escape(field.text)}</div>"
		)
	body = "\n".join(parts)
	return (
		"<!DOCTYPE html>\n"
		"<html>\n<head>\n<meta charset=\"UTF-8\">\n"
		f"<title>{html.escape(document.title)}</title>\n"
		"<style>\n"
		"* { margin: 0; padding: 0; box-sizing: border-box; }\n"
		f"@page {{ size: {document.width_in}in {document.height_in}in; margin: 0; }}\n"
		f"body {{ width: {document.width_pt:.3f}pt; height: {document.height_pt:.3f}pt; "
		f"font-family: {family}; -webkit-print-color-adjust: exact; print-color-adjust: exact; }}\n"
		f".check-container {{ position: relative; width: {document.width_pt:.3f}pt; "
		f"height: {document.height_pt:.3f}pt; background: white; overflow: hidden; }}\n"
		".field { color: black; }\n"
		"</style>\n</head>\n<body>\n"
		f'<div class="check-container">\n{body}\n</div>\n'
		"</body>\n</html>\n"
	)
