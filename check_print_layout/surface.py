"""
Interactive editing surface.

The surface lays fields out as positioned boxes in screen pixels and owns the
pointer interaction state machine used to drag and resize them. It is
headless: a host toolkit draws the boxes it reports and forwards pointer
events to it.
"""

# Standard Library
import dataclasses
import math
import typing

# local repo modules
import check_print_layout as cpl
import check_print_layout.check_data
import check_print_layout.config
import check_print_layout.geometry
import check_print_layout.resolve
import check_print_layout.sections
import check_print_layout.units


CheckData = cpl.check_data.CheckData
Model = cpl.geometry.Model
RenderOptions = cpl.config.RenderOptions

PX_PER_INCH = cpl.config.PX_PER_INCH
MIN_FIELD_WIDTH_IN = cpl.config.MIN_FIELD_WIDTH_IN
MIN_FIELD_HEIGHT_IN = cpl.config.MIN_FIELD_HEIGHT_IN
RESIZE_HANDLE_PX = cpl.config.RESIZE_HANDLE_PX
SNAP_STEP_IN = cpl.config.SNAP_STEP_IN
FINE_STEP_IN = cpl.config.FINE_STEP_IN
MIN_SECTION_HEIGHT_IN = cpl.config.MIN_SECTION_HEIGHT_IN
MAX_SECTION_HEIGHT_IN = cpl.config.MAX_SECTION_HEIGHT_IN
FOLD_LINE_HIT_PX = cpl.config.FOLD_LINE_HIT_PX
MULTILINE_FIELD_SUFFIXES = cpl.config.MULTILINE_FIELD_SUFFIXES
RIGHT_ALIGNED_FIELD_SUFFIXES = cpl.config.RIGHT_ALIGNED_FIELD_SUFFIXES

POINTER_MOVE = "pointermove"
POINTER_UP = "pointerup"

LayoutChangeCallback = typing.Callable[[str, dict], None]
SectionChangeCallback = typing.Callable[[str, float], None]


@dataclasses.dataclass(frozen=True)
class PointerEvent:
	client_x: float
	client_y: float


@dataclasses.dataclass(frozen=True)
class Anchor:
	# pointer relative to the surface origin, zoom removed
	pointer_x: float
	pointer_y: float
	# field position (drag) or size (resize) at 96 px per inch
	field_x_px: float
	field_y_px: float


@dataclasses.dataclass(frozen=True)
class Idle:
	pass


@dataclasses.dataclass(frozen=True)
class FieldAnchor:
	# start position of one dragged field at 96 px per inch
	key: str
	x_px: float
	y_px: float


@dataclasses.dataclass(frozen=True)
class Dragging:
	field_key: str
	anchor: Anchor
	# every selected field moving with the grabbed one, grabbed field included
	members: tuple[FieldAnchor, ...] = ()


@dataclasses.dataclass(frozen=True)
class Resizing:
	field_key: str
	anchor: Anchor


@dataclasses.dataclass(frozen=True)
class ResizingSection:
	section_key: str
	# field_y_px holds the section height at 96 px per inch
	anchor: Anchor


InteractionState = Idle | Dragging | Resizing | ResizingSection
IDLE = Idle()


@dataclasses.dataclass(frozen=True)
class FieldBox:
	key: str
	section_key: str
	slot_index: int
	left_px: float
	top_px: float
	width_px: float
	height_px: float
	font_px: float
	value: str
	label: str
	placeholder: bool
	multiline: bool
	align: str
	show_handle: bool
	selected: bool = False


class PointerHub:
	"""
	Window-level pointer listener registry.

	Listeners registered here receive every pointer move and pointer up,
	wherever the pointer is, which lets an interaction end cleanly after the
	pointer leaves the field it started on.
	"""

	def __init__(self) -> None:
		self.listeners: dict[str, list[typing.Callable[[PointerEvent], None]]] = {
			POINTER_MOVE: [],
			POINTER_UP: [],
		}

	def add_listener(self, event_type: str, callback: typing.Callable[[PointerEvent], None]) -> None:
		self.listeners[event_type].append(callback)

	def remove_listener(self, event_type: str, callback: typing.Callable[[PointerEvent], None]) -> None:
		if callback in self.listeners[event_type]:
			self.listeners[event_type].remove(callback)

	def listener_count(self, event_type: str) -> int:
		return len(self.listeners[event_type])

	def dispatch(self, event_type: str, client_x: float, client_y: float) -> None:
		"""
		Deliver a pointer event to every registered listener.

		Args:
			event_type: POINTER_MOVE or POINTER_UP.
			client_x: Pointer x in window pixels.
			client_y: Pointer y in window pixels.
		"""
		event = PointerEvent(client_x=client_x, client_y=client_y)
		for callback in list(self.listeners[event_type]):
			callback(event)


#============================================
def check_data_for_slot(
	check_data: CheckData,
	slot_data: typing.Sequence[CheckData] | None,
	slot_index: int,
	sheet_mode: bool,
) -> CheckData:
	"""
	Pick the check content rendered in a section placement.

	Args:
		check_data: Single-check content.
		slot_data: Per-slot content for sheet mode.
		slot_index: Placement slot index.
		sheet_mode: True for the three-up sheet.

	Returns:
		CheckData for the placement; empty for unfilled sheet slots.
	"""
	if not sheet_mode or slot_data is None:
		return check_data
	if slot_index < len(slot_data) and slot_data[slot_index] is not None:
		return slot_data[slot_index]
	return cpl.check_data.EMPTY_CHECK


#============================================
def field_align(field_key: str) -> str:
	"""
	Horizontal text alignment for a field key.
	"""
	_prefix, base = cpl.resolve.split_field_key(field_key)
	if base in RIGHT_ALIGNED_FIELD_SUFFIXES:
		return "right"
	return "left"


def field_is_multiline(field_key: str) -> bool:
	_prefix, base = cpl.resolve.split_field_key(field_key)
	return base in MULTILINE_FIELD_SUFFIXES


#============================================
def snap_to_step(value: float, step: float) -> float:
	"""
	Round a length in inches to the nearest multiple of a grid step.

	Halves round up, so 0.0625 snaps to 0.125 on the 1/8 inch grid.

	Args:
		value: Length in inches.
		step: Grid step in inches.

	Returns:
		Snapped length in inches.
	"""
	return math.floor(value / step + 0.5) * step


class InteractiveSurface:
	"""
	Editable on-screen rendering of a check layout.

	State machine: Idle -> Dragging | Resizing | ResizingSection -> Idle.
	Global pointer listeners are registered on the hub only while an
	interaction is active. Every drag or resize step updates the surface's
	model and is reported through `on_layout_change(field_key, patch)` in
	inches, once per moved field. Section fold-line drags are reported
	through `on_section_change(section_key, height_in)`.

	Positions and sizes snap to a 1/8 inch grid with `snap_to_grid` on and
	to 0.01 inch otherwise.
	"""

	def __init__(
		self,
		model: Model,
		check_data: CheckData,
		options: RenderOptions,
		pointer_hub: PointerHub,
		on_layout_change: LayoutChangeCallback | None = None,
		edit_mode: bool = False,
		origin: tuple[float, float] = (0.0, 0.0),
		slot_data: typing.Sequence[CheckData] | None = None,
		on_section_change: SectionChangeCallback | None = None,
		snap_to_grid: bool = False,
	) -> None:
		cpl.units.validate_zoom(model.view.zoom)
		self.model = model
		self.check_data = check_data
		self.slot_data = slot_data
		self.options = options
		self.pointer_hub = pointer_hub
		self.on_layout_change = on_layout_change
		self.on_section_change = on_section_change
		self.edit_mode = edit_mode
		self.snap_to_grid = snap_to_grid
		self.origin = origin
		self.state: InteractionState = IDLE
		# selected field keys, in selection order
		self.selected: tuple[str, ...] = ()

	@property
	def zoom(self) -> float:
		return self.model.view.zoom

	@property
	def snap_step(self) -> float:
		if self.snap_to_grid:
			return SNAP_STEP_IN
		return FINE_STEP_IN

	#============================================
	def composition(self) -> cpl.sections.Composition:
		return cpl.sections.compose_sections(
			self.model.layout,
			self.options.layout_order,
			self.options.sheet_mode,
		)

	#============================================
	def stage_size_px(self) -> tuple[float, float]:
		"""
		Size of the check block on screen.

		Returns:
			Tuple of (width_px, height_px) at the current zoom.
		"""
		composition = self.composition()
		return (
			cpl.units.inches_to_pixels(composition.width_in, self.zoom),
			cpl.units.inches_to_pixels(composition.total_height_in, self.zoom),
		)

	def placement_offset_px(self) -> tuple[float, float]:
		placement = self.model.placement
		return (
			cpl.units.inches_to_pixels(placement.offset_x_in, self.zoom),
			cpl.units.inches_to_pixels(placement.offset_y_in, self.zoom),
		)

	#============================================
	def cut_line_guides_px(self) -> list[float]:
		"""
		Vertical positions of the sheet cut-line guides.

		Guides are visual only and have no effect on composition.

		Returns:
			Guide y positions in pixels; empty outside sheet mode.
		"""
		if not self.options.sheet_mode:
			return []
		guides: list[float] = []
		for value in (self.model.layout.cut_line1_in, self.model.layout.cut_line2_in):
			if value is None:
				continue
			guides.append(cpl.units.inches_to_pixels(value, self.zoom))
		return guides

	#============================================
	def fold_lines_px(self) -> list[tuple[str, float]]:
		"""
		Bottom edge of every stacked section, where its height is dragged.

		Returns:
			List of (section_key, y_px) at the current zoom; empty in sheet mode.
		"""
		composition = self.composition()
		if composition.sheet_mode:
			return []
		lines: list[tuple[str, float]] = []
		for placement in composition.placements:
			bottom_in = placement.offset_y_in + placement.section.height_in
			lines.append((placement.section.key, cpl.units.inches_to_pixels(bottom_in, self.zoom)))
		return lines

	def hit_fold_line(self, client_x: float, client_y: float) -> str | None:
		local_x = client_x - self.origin[0]
		local_y = client_y - self.origin[1]
		width_px, _height_px = self.stage_size_px()
		if not 0.0 <= local_x <= width_px:
			return None
		for section_key, line_y in self.fold_lines_px():
			if abs(local_y - line_y) <= FOLD_LINE_HIT_PX:
				return section_key
		return None

	#============================================
	def render_boxes(self) -> list[FieldBox]:
		"""
		Lay out every visible field as a positioned box in screen pixels.

		Fields with an empty value are kept as placeholders in edit mode and
		omitted otherwise.

		Returns:
			FieldBox list in drawing order.
		"""
		zoom = self.zoom
		composition = self.composition()
		boxes: list[FieldBox] = []
		for placed in cpl.sections.place_fields(composition, self.model.fields):
			data = check_data_for_slot(
				self.check_data,
				self.slot_data,
				placed.slot_index,
				composition.sheet_mode,
			)
			value = cpl.resolve.resolve_field_value(placed.key, data, self.options.date_format)
			if not value and not self.edit_mode:
				continue
			boxes.append(
				FieldBox(
					key=placed.key,
					section_key=placed.section_key,
					slot_index=placed.slot_index,
					left_px=cpl.units.inches_to_pixels(placed.x_in, zoom),
					top_px=cpl.units.inches_to_pixels(placed.y_in, zoom),
					width_px=cpl.units.inches_to_pixels(placed.w_in, zoom),
					height_px=cpl.units.inches_to_pixels(placed.h_in, zoom),
					font_px=cpl.units.inches_to_pixels(placed.font_in, zoom),
					value=value,
					label=placed.label,
					placeholder=not value,
					multiline=field_is_multiline(placed.key),
					align=field_align(placed.key),
					show_handle=self.edit_mode,
					selected=placed.key in self.selected,
				)
			)
		return boxes

	#============================================
	def hit_test(self, client_x: float, client_y: float) -> tuple[FieldBox, bool] | None:
		"""
		Find the topmost box under the pointer.

		Args:
			client_x: Pointer x in window pixels.
			client_y: Pointer y in window pixels.

		Returns:
			Tuple of (box, on_resize_handle), or None when nothing is hit.
		"""
		local_x = client_x - self.origin[0]
		local_y = client_y - self.origin[1]
		handle = RESIZE_HANDLE_PX * self.zoom
		for box in reversed(self.render_boxes()):
			right = box.left_px + box.width_px
			bottom = box.top_px + box.height_px
			if not (box.left_px <= local_x <= right and box.top_px <= local_y <= bottom):
				continue
			on_handle = box.show_handle and local_x >= right - handle and local_y >= bottom - handle
			return (box, on_handle)
		return None

	#============================================
	def normalize_pointer(self, client_x: float, client_y: float) -> tuple[float, float]:
		"""
		Convert a window pointer position to unzoomed surface pixels.
		"""
		return (
			(client_x - self.origin[0]) / self.zoom,
			(client_y - self.origin[1]) / self.zoom,
		)

	#============================================
	def pointer_down(self, client_x: float, client_y: float, additive: bool = False) -> bool:
		"""
		Start an interaction on whatever is under the pointer.

		A section fold line starts a height drag. A field's resize handle
		selects that field alone and starts a resize. Anywhere else on a field
		updates the selection and drags every selected field. Pressing empty
		space clears the selection unless `additive` is set.

		Args:
			client_x: Pointer x in window pixels.
			client_y: Pointer y in window pixels.
			additive: True while the multi-select modifier is held.

		Returns:
			True when an interaction started.
		"""
		if not self.edit_mode or not isinstance(self.state, Idle):
			return False
		section_key = self.hit_fold_line(client_x, client_y)
		if section_key is not None:
			return self.begin_section_resize(section_key, client_x, client_y)
		hit = self.hit_test(client_x, client_y)
		if hit is None:
			if not additive:
				self.clear_selection()
			return False
		box, on_handle = hit
		if on_handle:
			self.selected = (box.key,)
			return self.begin_resize(box.key, client_x, client_y)
		if not self.select(box.key, additive):
			# modifier click removed the field from the selection
			return False
		return self.begin_drag(box.key, client_x, client_y)

	#============================================
	def select(self, field_key: str, additive: bool = False) -> bool:
		"""
		Update the selection for a press on a field.

		Args:
			field_key: Pressed field.
			additive: Toggle the field in the selection instead of replacing it.

		Returns:
			True when the field is selected afterwards.
		"""
		if additive:
			if field_key in self.selected:
				self.selected = tuple(key for key in self.selected if key != field_key)
				return False
			self.selected = self.selected + (field_key,)
			return True
		if field_key not in self.selected:
			self.selected = (field_key,)
		return True

	def clear_selection(self) -> None:
		self.selected = ()

	#============================================
	def begin_drag(self, field_key: str, client_x: float, client_y: float) -> bool:
		"""
		Enter Dragging for a field pressed outside its resize handle.

		Every selected field moves with the pressed one. A field outside the
		selection is dragged alone.

		Returns:
			True when the transition happened.
		"""
		if not self.edit_mode or not isinstance(self.state, Idle):
			return False
		field = self.model.fields.get(field_key)
		if field is None:
			return False
		keys = self.selected if field_key in self.selected else (field_key,)
		members = tuple(
			FieldAnchor(
				key=key,
				x_px=cpl.units.inches_to_pixels(self.model.fields[key].x),
				y_px=cpl.units.inches_to_pixels(self.model.fields[key].y),
			)
			for key in keys
			if key in self.model.fields
		)
		pointer_x, pointer_y = self.normalize_pointer(client_x, client_y)
		anchor = Anchor(
			pointer_x=pointer_x,
			pointer_y=pointer_y,
			field_x_px=cpl.units.inches_to_pixels(field.x),
			field_y_px=cpl.units.inches_to_pixels(field.y),
		)
		self.transition(Dragging(field_key=field_key, anchor=anchor, members=members))
		return True

	#============================================
	def begin_section_resize(self, section_key: str, client_x: float, client_y: float) -> bool:
		"""
		Enter ResizingSection for a press on a stacked section's fold line.

		Returns:
			True when the transition happened.
		"""
		if not self.edit_mode or not isinstance(self.state, Idle):
			return False
		if self.options.sheet_mode:
			return False
		sections = cpl.sections.build_sections(self.model.layout, sheet_mode=False)
		section = sections.get(section_key)
		if section is None:
			return False
		pointer_x, pointer_y = self.normalize_pointer(client_x, client_y)
		anchor = Anchor(
			pointer_x=pointer_x,
			pointer_y=pointer_y,
			field_x_px=0.0,
			field_y_px=cpl.units.inches_to_pixels(section.height_in),
		)
		self.transition(ResizingSection(section_key=section_key, anchor=anchor))
		return True

	#============================================
	def begin_resize(self, field_key: str, client_x: float, client_y: float) -> bool:
		"""
		Enter Resizing for a field pressed on its resize handle.

		Returns:
			True when the transition happened.
		"""
		if not self.edit_mode or not isinstance(self.state, Idle):
			return False
		field = self.model.fields.get(field_key)
		if field is None:
			return False
		pointer_x, pointer_y = self.normalize_pointer(client_x, client_y)
		anchor = Anchor(
			pointer_x=pointer_x,
			pointer_y=pointer_y,
			field_x_px=cpl.units.inches_to_pixels(field.w),
			field_y_px=cpl.units.inches_to_pixels(field.h),
		)
		self.transition(Resizing(field_key=field_key, anchor=anchor))
		return True

	#============================================
	def transition(self, new_state: InteractionState) -> None:
		"""
		Switch interaction state, attaching or detaching global listeners.

		Args:
			new_state: Target state.
		"""
		was_idle = isinstance(self.state, Idle)
		is_idle = isinstance(new_state, Idle)
		self.state = new_state
		if was_idle and not is_idle:
			self.pointer_hub.add_listener(POINTER_MOVE, self.handle_pointer_move)
			self.pointer_hub.add_listener(POINTER_UP, self.handle_pointer_up)
		elif is_idle and not was_idle:
			self.pointer_hub.remove_listener(POINTER_MOVE, self.handle_pointer_move)
			self.pointer_hub.remove_listener(POINTER_UP, self.handle_pointer_up)

	#============================================
	def handle_pointer_move(self, event: PointerEvent) -> None:
		"""
		Apply one drag or resize step from a global pointer move.

		Positions and sizes snap to the grid step first. Positions are not
		clamped to the page; sizes are then floored at the minimum field
		width and height. Section heights are clamped to 1.5-6.0 inches.

		Args:
			event: Pointer event in window pixels.
		"""
		state = self.state
		if isinstance(state, Idle):
			return
		current_x, current_y = self.normalize_pointer(event.client_x, event.client_y)
		anchor = state.anchor
		delta_x = current_x - anchor.pointer_x
		delta_y = current_y - anchor.pointer_y
		step = self.snap_step

		if isinstance(state, ResizingSection):
			height_in = (anchor.field_y_px + delta_y) / PX_PER_INCH
			height_in = min(MAX_SECTION_HEIGHT_IN, max(MIN_SECTION_HEIGHT_IN, height_in))
			self.model = cpl.geometry.set_section_height(self.model, state.section_key, height_in)
			if self.on_section_change is not None:
				self.on_section_change(state.section_key, height_in)
			return

		if isinstance(state, Dragging):
			members = state.members or (
				FieldAnchor(key=state.field_key, x_px=anchor.field_x_px, y_px=anchor.field_y_px),
			)
			patches = []
			for member in members:
				patch = {
					"x": snap_to_step((member.x_px + delta_x) / PX_PER_INCH, step),
					"y": snap_to_step((member.y_px + delta_y) / PX_PER_INCH, step),
				}
				self.model = cpl.geometry.set_field(self.model, member.key, patch)
				patches.append((member.key, patch))
		else:
			patch = {
				"w": max(MIN_FIELD_WIDTH_IN, snap_to_step((anchor.field_x_px + delta_x) / PX_PER_INCH, step)),
				"h": max(MIN_FIELD_HEIGHT_IN, snap_to_step((anchor.field_y_px + delta_y) / PX_PER_INCH, step)),
			}
			self.model = cpl.geometry.set_field(self.model, state.field_key, patch)
			patches = [(state.field_key, patch)]
		if self.on_layout_change is not None:
			for field_key, patch in patches:
				self.on_layout_change(field_key, patch)

	def handle_pointer_up(self, event: PointerEvent) -> None:
		self.transition(IDLE)

	#============================================
	def set_edit_mode(self, edit_mode: bool) -> None:
		"""
		Toggle edit mode; leaving it ends any active interaction and clears
		the selection.
		"""
		self.edit_mode = edit_mode
		if not edit_mode:
			self.transition(IDLE)
			self.clear_selection()

	def close(self) -> None:
		self.transition(IDLE)
