"""
Physical-unit geometry model for check layouts.

All positions and sizes are inches with a top-left origin, measured relative
to the section a field belongs to.
"""

# Standard Library
import dataclasses
import math

# local repo modules
import check_print_layout as cpl
import check_print_layout.config


DEFAULT_LAYOUT = cpl.config.DEFAULT_LAYOUT
DEFAULT_FIELDS = cpl.config.DEFAULT_FIELDS
DEFAULT_STUB_FIELDS = cpl.config.DEFAULT_STUB_FIELDS
DEFAULT_PAGE = cpl.config.DEFAULT_PAGE
DEFAULT_TEMPLATE = cpl.config.DEFAULT_TEMPLATE
DEFAULT_ZOOM = cpl.config.DEFAULT_ZOOM
DEFAULT_FONT_IN = cpl.config.DEFAULT_FONT_IN
SHEET_SLOTS = cpl.config.SHEET_SLOTS
STUB_AMOUNT_RIGHT_INSET = cpl.config.STUB_AMOUNT_RIGHT_INSET
STUB_FULL_WIDTH_INSET = cpl.config.STUB_FULL_WIDTH_INSET

SECTION_HEIGHT_ATTRIBUTES = {
	"check": "check_height_in",
	"stub1": "stub1_height_in",
	"stub2": "stub2_height_in",
}


@dataclasses.dataclass(frozen=True)
class FieldSpec:
	x: float
	y: float
	w: float
	h: float
	font_in: float = DEFAULT_FONT_IN
	label: str = ""


@dataclasses.dataclass(frozen=True)
class Layout:
	width_in: float = DEFAULT_LAYOUT["widthIn"]
	check_height_in: float = DEFAULT_LAYOUT["checkHeightIn"]
	stub1_enabled: bool = DEFAULT_LAYOUT["stub1Enabled"]
	stub1_height_in: float = DEFAULT_LAYOUT["stub1HeightIn"]
	stub2_enabled: bool = DEFAULT_LAYOUT["stub2Enabled"]
	stub2_height_in: float = DEFAULT_LAYOUT["stub2HeightIn"]
	cut_line1_in: float | None = DEFAULT_LAYOUT["cutLine1In"]
	cut_line2_in: float | None = DEFAULT_LAYOUT["cutLine2In"]


@dataclasses.dataclass(frozen=True)
class PageSpec:
	size: str = DEFAULT_PAGE["size"]
	width_in: float = DEFAULT_PAGE["widthIn"]
	height_in: float = DEFAULT_PAGE["heightIn"]


@dataclasses.dataclass(frozen=True)
class Placement:
	offset_x_in: float = 0.0
	offset_y_in: float = 0.0


@dataclasses.dataclass(frozen=True)
class ViewSpec:
	zoom: float = DEFAULT_ZOOM


@dataclasses.dataclass(frozen=True)
class TemplateSpec:
	path: str | None = None
	opacity: float = DEFAULT_TEMPLATE["opacity"]
	fit: str = DEFAULT_TEMPLATE["fit"]


LayoutProfile = dict[str, FieldSpec]


@dataclasses.dataclass
class Model:
	page: PageSpec = dataclasses.field(default_factory=PageSpec)
	placement: Placement = dataclasses.field(default_factory=Placement)
	layout: Layout = dataclasses.field(default_factory=Layout)
	view: ViewSpec = dataclasses.field(default_factory=ViewSpec)
	template: TemplateSpec = dataclasses.field(default_factory=TemplateSpec)
	fields: LayoutProfile = dataclasses.field(default_factory=dict)
	# per-slot profiles for sheet mode; stored and round-tripped, never rendered
	slot_fields: dict[str, LayoutProfile] = dataclasses.field(default_factory=dict)


#============================================
def coerce_float(value, default_value: float) -> float:
	"""
	Coerce a loaded value into a finite float.

	Args:
		value: Raw value from a plain dict.
		default_value: Fallback when the value is missing or not numeric.

	Returns:
		Float value.
	"""
	if value is None or isinstance(value, bool):
		return default_value
	try:
		result = float(value)
	except (TypeError, ValueError):
		return default_value
	if not math.isfinite(result):
		return default_value
	return result


#============================================
def field_from_dict(data: dict) -> FieldSpec:
	"""
	Build a FieldSpec from a persisted dict.

	Sizes below the edit-time minimums are kept as loaded; only the resize
	interaction enforces the floor.

	Args:
		data: Dict with x, y, w, h, fontIn and label keys.

	Returns:
		FieldSpec.
	"""
	if not isinstance(data, dict):
		raise ValueError(f"field entry must be a mapping, got {type(data).__name__}")
	return FieldSpec(
		x=coerce_float(data.get("x"), 0.0),
		y=coerce_float(data.get("y"), 0.0),
		w=coerce_float(data.get("w"), 0.0),
		h=coerce_float(data.get("h"), 0.0),
		font_in=coerce_float(data.get("fontIn"), DEFAULT_FONT_IN),
		label=str(data.get("label") or ""),
	)


def field_to_dict(field: FieldSpec) -> dict:
	return {
		"x": field.x,
		"y": field.y,
		"w": field.w,
		"h": field.h,
		"fontIn": field.font_in,
		"label": field.label,
	}


#============================================
def profile_from_dict(data: dict | None) -> LayoutProfile:
	"""
	Build a LayoutProfile from a persisted mapping of field dicts.

	Args:
		data: Mapping of field key to field dict.

	Returns:
		LayoutProfile.
	"""
	if data is None:
		return {}
	if not isinstance(data, dict):
		raise ValueError(f"fields must be a mapping, got {type(data).__name__}")
	return {str(key): field_from_dict(value) for key, value in data.items()}


def profile_to_dict(profile: LayoutProfile) -> dict:
	return {key: field_to_dict(field) for key, field in profile.items()}


#============================================
def layout_from_dict(data: dict | None) -> Layout:
	"""
	Build a Layout from a persisted dict, filling missing keys from defaults.

	Args:
		data: Layout dict using the persisted camelCase keys.

	Returns:
		Layout.
	"""
	merged = dict(DEFAULT_LAYOUT)
	merged.update(data or {})
	cut_line1 = merged.get("cutLine1In")
	cut_line2 = merged.get("cutLine2In")
	return Layout(
		width_in=coerce_float(merged["widthIn"], DEFAULT_LAYOUT["widthIn"]),
		check_height_in=coerce_float(merged["checkHeightIn"], DEFAULT_LAYOUT["checkHeightIn"]),
		stub1_enabled=bool(merged["stub1Enabled"]),
		stub1_height_in=coerce_float(merged["stub1HeightIn"], DEFAULT_LAYOUT["stub1HeightIn"]),
		stub2_enabled=bool(merged["stub2Enabled"]),
		stub2_height_in=coerce_float(merged["stub2HeightIn"], DEFAULT_LAYOUT["stub2HeightIn"]),
		cut_line1_in=None if cut_line1 is None else coerce_float(cut_line1, DEFAULT_LAYOUT["cutLine1In"]),
		cut_line2_in=None if cut_line2 is None else coerce_float(cut_line2, DEFAULT_LAYOUT["cutLine2In"]),
	)


def layout_to_dict(layout: Layout) -> dict:
	return {
		"widthIn": layout.width_in,
		"checkHeightIn": layout.check_height_in,
		"stub1Enabled": layout.stub1_enabled,
		"stub1HeightIn": layout.stub1_height_in,
		"stub2Enabled": layout.stub2_enabled,
		"stub2HeightIn": layout.stub2_height_in,
		"cutLine1In": layout.cut_line1_in,
		"cutLine2In": layout.cut_line2_in,
	}


#============================================
def default_stub_fields(stub_key: str, layout: Layout) -> LayoutProfile:
	"""
	Build the default section-relative fields for a stub.

	Args:
		stub_key: "stub1" or "stub2".
		layout: Layout used to derive width-dependent geometry.

	Returns:
		LayoutProfile keyed with the stub prefix.
	"""
	if stub_key not in DEFAULT_STUB_FIELDS:
		raise ValueError(f"unknown stub: {stub_key}")
	profile: LayoutProfile = {}
	for suffix, entry in DEFAULT_STUB_FIELDS[stub_key].items():
		data = dict(entry)
		if data["x"] is None:
			data["x"] = layout.width_in - STUB_AMOUNT_RIGHT_INSET
		if data["w"] is None:
			data["w"] = layout.width_in - STUB_FULL_WIDTH_INSET
		profile[f"{stub_key}_{suffix}"] = field_from_dict(data)
	return profile


#============================================
def default_fields(layout: Layout) -> LayoutProfile:
	"""
	Build the default check fields plus defaults for every enabled stub.

	Args:
		layout: Layout.

	Returns:
		LayoutProfile.
	"""
	profile = profile_from_dict(DEFAULT_FIELDS)
	if layout.stub1_enabled:
		profile.update(default_stub_fields("stub1", layout))
	if layout.stub2_enabled:
		profile.update(default_stub_fields("stub2", layout))
	return profile


#============================================
def model_from_dict(data: dict | None) -> Model:
	"""
	Rehydrate a Model from its plain, serializable form.

	Missing parts are filled from defaults, legacy `check` sizing is migrated
	to `layout`, and stub default fields are added for enabled stubs that
	lack them. `slotFields` is carried through as loaded.

	Args:
		data: Persisted model dict, or None for the default model.

	Returns:
		Model.
	"""
	data = data or {}
	if not isinstance(data, dict):
		raise ValueError(f"model must be a mapping, got {type(data).__name__}")

	layout_data = data.get("layout")
	if layout_data is None and isinstance(data.get("check"), dict):
		legacy = data["check"]
		layout_data = {
			"widthIn": legacy.get("widthIn", DEFAULT_LAYOUT["widthIn"]),
			"checkHeightIn": legacy.get("heightIn", DEFAULT_LAYOUT["checkHeightIn"]),
		}
	layout = layout_from_dict(layout_data)

	fields = default_fields(layout)
	fields.update(profile_from_dict(data.get("fields")))

	page_data = dict(DEFAULT_PAGE)
	page_data.update(data.get("page") or {})
	page = PageSpec(
		size=str(page_data["size"]),
		width_in=coerce_float(page_data["widthIn"], DEFAULT_PAGE["widthIn"]),
		height_in=coerce_float(page_data["heightIn"], DEFAULT_PAGE["heightIn"]),
	)

	placement_data = data.get("placement") or {}
	placement = Placement(
		offset_x_in=coerce_float(placement_data.get("offsetXIn"), 0.0),
		offset_y_in=coerce_float(placement_data.get("offsetYIn"), 0.0),
	)

	view_data = data.get("view") or {}
	zoom = coerce_float(view_data.get("zoom"), DEFAULT_ZOOM)
	if zoom <= 0.0:
		zoom = DEFAULT_ZOOM

	template_data = dict(DEFAULT_TEMPLATE)
	template_data.update(data.get("template") or {})
	template = TemplateSpec(
		path=template_data["path"],
		opacity=min(1.0, max(0.0, coerce_float(template_data["opacity"], DEFAULT_TEMPLATE["opacity"]))),
		fit=str(template_data["fit"]),
	)

	slot_fields: dict[str, LayoutProfile] = {}
	raw_slots = data.get("slotFields")
	if raw_slots is None:
		for slot in SHEET_SLOTS:
			slot_fields[slot] = profile_from_dict(DEFAULT_FIELDS)
	else:
		if not isinstance(raw_slots, dict):
			raise ValueError("slotFields must be a mapping of slot name to fields")
		for slot, profile in raw_slots.items():
			slot_fields[str(slot)] = profile_from_dict(profile)

	return Model(
		page=page,
		placement=placement,
		layout=layout,
		view=ViewSpec(zoom=zoom),
		template=template,
		fields=fields,
		slot_fields=slot_fields,
	)


#============================================
def model_to_dict(model: Model) -> dict:
	"""
	Export a Model as a plain, JSON-serializable dict.

	Args:
		model: Model to export.

	Returns:
		Dict using the persisted camelCase keys.
	"""
	return {
		"page": {
			"size": model.page.size,
			"widthIn": model.page.width_in,
			"heightIn": model.page.height_in,
		},
		"placement": {
			"offsetXIn": model.placement.offset_x_in,
			"offsetYIn": model.placement.offset_y_in,
		},
		"layout": layout_to_dict(model.layout),
		"view": {"zoom": model.view.zoom},
		"template": {
			"path": model.template.path,
			"opacity": model.template.opacity,
			"fit": model.template.fit,
		},
		"fields": profile_to_dict(model.fields),
		"slotFields": {
			slot: profile_to_dict(profile)
			for slot, profile in model.slot_fields.items()
		},
	}


#============================================
def set_field(model: Model, key: str, patch: dict) -> Model:
	"""
	Return a copy of the model with one field patched.

	Args:
		model: Source model, left untouched.
		key: Field key to patch.
		patch: Mapping of FieldSpec attribute names to new values.

	Returns:
		New Model.
	"""
	if key not in model.fields:
		raise KeyError(f"unknown field: {key}")
	fields = dict(model.fields)
	fields[key] = dataclasses.replace(fields[key], **patch)
	# slot profiles hold frozen FieldSpecs and are never edited here
	return dataclasses.replace(model, fields=fields)


#============================================
def set_section_height(model: Model, section_key: str, height_in: float) -> Model:
	"""
	Return a copy of the model with one section height changed.

	Args:
		model: Source model, left untouched.
		section_key: "check", "stub1" or "stub2".
		height_in: New height in inches.

	Returns:
		New Model.
	"""
	attribute = SECTION_HEIGHT_ATTRIBUTES.get(section_key)
	if attribute is None:
		raise KeyError(f"unknown section: {section_key}")
	layout = dataclasses.replace(model.layout, **{attribute: height_in})
	return dataclasses.replace(model, layout=layout)
