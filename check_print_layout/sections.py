"""
Section composition and field placement shared by every renderer.

Both the interactive surface and the document generator place fields through
`compose_sections` and `place_fields`, so the vertical offsets of a field are
computed once, in inches, for both outputs.
"""

# Standard Library
import dataclasses

# local repo modules
import check_print_layout as cpl
import check_print_layout.config
import check_print_layout.geometry


Layout = cpl.geometry.Layout
FieldSpec = cpl.geometry.FieldSpec
LayoutProfile = cpl.geometry.LayoutProfile

SECTION_KEYS = cpl.config.SECTION_KEYS
SECTION_NAMES = cpl.config.SECTION_NAMES
SHEET_SLOTS = cpl.config.SHEET_SLOTS
CHECK_FIELD_KEYS = cpl.config.CHECK_FIELD_KEYS
STUB_FIELD_SUFFIXES = cpl.config.STUB_FIELD_SUFFIXES


@dataclasses.dataclass(frozen=True)
class Section:
	key: str
	name: str
	height_in: float
	enabled: bool
	field_keys: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class SectionPlacement:
	section: Section
	offset_y_in: float
	slot_index: int = 0
	slot_name: str | None = None


@dataclasses.dataclass(frozen=True)
class Composition:
	placements: tuple[SectionPlacement, ...]
	width_in: float
	total_height_in: float
	sheet_mode: bool


@dataclasses.dataclass(frozen=True)
class PlacedField:
	key: str
	section_key: str
	slot_index: int
	x_in: float
	y_in: float
	w_in: float
	h_in: float
	font_in: float
	label: str


#============================================
def section_field_keys(section_key: str) -> tuple[str, ...]:
	"""
	List the field keys that belong to a section, in drawing order.

	Args:
		section_key: "check", "stub1" or "stub2".

	Returns:
		Tuple of field keys.
	"""
	if section_key == "check":
		return CHECK_FIELD_KEYS
	if section_key in ("stub1", "stub2"):
		return tuple(f"{section_key}_{suffix}" for suffix in STUB_FIELD_SUFFIXES)
	raise ValueError(f"unknown section: {section_key}")


#============================================
def build_sections(layout: Layout, sheet_mode: bool) -> dict[str, Section]:
	"""
	Derive the sections of a layout.

	Args:
		layout: Layout geometry.
		sheet_mode: True for the three-up sheet, which disables stubs.

	Returns:
		Dict of section key to Section.
	"""
	stub1_enabled = layout.stub1_enabled and not sheet_mode
	stub2_enabled = layout.stub2_enabled and not sheet_mode
	return {
		"check": Section(
			key="check",
			name=SECTION_NAMES["check"],
			height_in=layout.check_height_in,
			enabled=True,
			field_keys=section_field_keys("check"),
		),
		"stub1": Section(
			key="stub1",
			name=SECTION_NAMES["stub1"],
			height_in=layout.stub1_height_in,
			enabled=stub1_enabled,
			field_keys=section_field_keys("stub1"),
		),
		"stub2": Section(
			key="stub2",
			name=SECTION_NAMES["stub2"],
			height_in=layout.stub2_height_in,
			enabled=stub2_enabled,
			field_keys=section_field_keys("stub2"),
		),
	}


#============================================
def validate_layout_order(layout_order) -> tuple[str, ...]:
	"""
	Normalize a section order, skipping unknown and repeated keys.

	Args:
		layout_order: Sequence of section keys.

	Returns:
		Tuple of unique section keys in their first-seen order.
	"""
	order: list[str] = []
	for key in layout_order:
		if key not in SECTION_KEYS or key in order:
			continue
		order.append(key)
	return tuple(order)


#============================================
def compose_sections(layout: Layout, layout_order, sheet_mode: bool) -> Composition:
	"""
	Compute the vertical placement of every active section.

	Stacked mode walks `layout_order` and gives each enabled section the
	running sum of the heights placed before it. Sheet mode repeats the check
	section three times at multiples of the check height.

	Args:
		layout: Layout geometry.
		layout_order: Sequence of section keys, consumed as given.
		sheet_mode: True for the three-up sheet.

	Returns:
		Composition with placements and overall page size in inches.
	"""
	sections = build_sections(layout, sheet_mode)
	placements: list[SectionPlacement] = []

	if sheet_mode:
		check = sections["check"]
		for slot_index, slot_name in enumerate(SHEET_SLOTS):
			placements.append(
				SectionPlacement(
					section=check,
					offset_y_in=slot_index * layout.check_height_in,
					slot_index=slot_index,
					slot_name=slot_name,
				)
			)
		return Composition(
			placements=tuple(placements),
			width_in=layout.width_in,
			total_height_in=layout.check_height_in * len(SHEET_SLOTS),
			sheet_mode=True,
		)

	current_y = 0.0
	for key in validate_layout_order(layout_order):
		section = sections[key]
		if not section.enabled:
			continue
		placements.append(SectionPlacement(section=section, offset_y_in=current_y))
		current_y += section.height_in
	return Composition(
		placements=tuple(placements),
		width_in=layout.width_in,
		total_height_in=current_y,
		sheet_mode=False,
	)


#============================================
def place_fields(composition: Composition, fields: LayoutProfile) -> list[PlacedField]:
	"""
	Place every field of every active section on the page, in inches.

	List order is drawing order: later entries sit above earlier ones.
	Keys without a FieldSpec in the profile are skipped.

	Args:
		composition: Output of compose_sections.
		fields: Shared layout profile.

	Returns:
		List of PlacedField entries.
	"""
	placed: list[PlacedField] = []
	for placement in composition.placements:
		for key in placement.section.field_keys:
			field = fields.get(key)
			if field is None:
				continue
			placed.append(
				PlacedField(
					key=key,
					section_key=placement.section.key,
					slot_index=placement.slot_index,
					x_in=field.x,
					y_in=field.y + placement.offset_y_in,
					w_in=max(0.0, field.w),
					h_in=max(0.0, field.h),
					font_in=field.font_in,
					label=field.label,
				)
			)
	return placed
