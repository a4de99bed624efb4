"""
Shared configuration and constants.
"""

import dataclasses


PX_PER_INCH = 96.0
POINTS_PER_INCH = 72.0
MM_PER_INCH = 25.4

MIN_FIELD_WIDTH_IN = 0.5
MIN_FIELD_HEIGHT_IN = 0.2
DEFAULT_FONT_IN = 0.12
RESIZE_HANDLE_PX = 10.0
# drag/resize grid: coarse with snapping on, fine otherwise
SNAP_STEP_IN = 0.125
FINE_STEP_IN = 0.01
MIN_SECTION_HEIGHT_IN = 1.5
MAX_SECTION_HEIGHT_IN = 6.0
FOLD_LINE_HIT_PX = 4.0

BATCH_ITEM_DELAY = 0.5
PRINT_STATUS_CLEAR_DELAY = 1.5
BATCH_STATUS_CLEAR_DELAY = 3.0
PROGRESS_BAR_WIDTH = 20

SHEET_SLOTS = ("top", "middle", "bottom")
SECTION_KEYS = ("check", "stub1", "stub2")
DEFAULT_LAYOUT_ORDER = ("check", "stub1", "stub2")
SECTION_NAMES = {
	"check": "Check",
	"stub1": "Stub 1",
	"stub2": "Stub 2",
}
CHECK_FIELD_KEYS = (
	"date",
	"payee",
	"amount",
	"amountWords",
	"memo",
	"checkNumber",
	"address",
)
STUB_FIELD_SUFFIXES = (
	"date",
	"payee",
	"amount",
	"memo",
	"checkNumber",
	"address",
	"line_items",
)
MULTILINE_FIELD_SUFFIXES = ("address", "line_items")
RIGHT_ALIGNED_FIELD_SUFFIXES = ("amount",)
MAX_LINE_ITEMS = 5
LINE_LEADING = 1.2

# memo fallback field per section prefix
MEMO_FALLBACKS = {
	"": "external_memo",
	"stub1_": "external_memo",
	"stub2_": "internal_memo",
}

DEFAULT_FONT_ID = "courier"
# font id -> (CSS family, PDF base font)
AVAILABLE_FONTS = {
	"courier": ('"Courier New", Courier, monospace', "Courier"),
	"arial": ("Arial, Helvetica, sans-serif", "Helvetica"),
	"times": ('"Times New Roman", Times, serif', "Times-Roman"),
	"georgia": ("Georgia, serif", "Times-Roman"),
	"verdana": ("Verdana, Geneva, sans-serif", "Helvetica"),
	"trebuchet": ('"Trebuchet MS", sans-serif', "Helvetica"),
	"lucida": ('"Lucida Console", Monaco, monospace', "Courier"),
	"consolas": ('Consolas, "Courier New", monospace', "Courier"),
	"palatino": ('"Palatino Linotype", "Book Antiqua", Palatino, serif', "Times-Roman"),
	"garamond": ("Garamond, Baskerville, serif", "Times-Roman"),
}

DEFAULT_PAGE = {"size": "Letter", "widthIn": 8.5, "heightIn": 11.0}
DEFAULT_ZOOM = 0.9
DEFAULT_TEMPLATE = {"path": None, "opacity": 0.9, "fit": "cover"}
TEMPLATE_FIT_MODES = ("cover", "contain", "fill")

DEFAULT_LAYOUT = {
	"widthIn": 8.5,
	"checkHeightIn": 3.0,
	"stub1Enabled": True,
	"stub1HeightIn": 3.0,
	"stub2Enabled": True,
	"stub2HeightIn": 3.0,
	"cutLine1In": 3.66,
	"cutLine2In": 7.33,
}

DEFAULT_FIELDS = {
	"date": {"x": 6.65, "y": 0.50, "w": 1.6, "h": 0.40, "fontIn": 0.28, "label": "Date"},
	"payee": {"x": 0.75, "y": 1.05, "w": 6.2, "h": 0.45, "fontIn": 0.32, "label": "Pay to the Order of"},
	"amount": {"x": 6.95, "y": 1.05, "w": 1.25, "h": 0.45, "fontIn": 0.32, "label": "Amount ($)"},
	"amountWords": {"x": 0.75, "y": 1.55, "w": 7.5, "h": 0.45, "fontIn": 0.30, "label": "Amount in Words"},
	"memo": {"x": 0.75, "y": 2.35, "w": 3.8, "h": 0.45, "fontIn": 0.28, "label": "Memo"},
	"checkNumber": {"x": 7.8, "y": 0.15, "w": 0.6, "h": 0.30, "fontIn": 0.24, "label": "Check #"},
	"address": {"x": 0.75, "y": 1.85, "w": 3.0, "h": 0.90, "fontIn": 0.22, "label": "Address"},
}

# section-relative stub geometry; None widths are derived from the layout width
DEFAULT_STUB_FIELDS = {
	"stub1": {
		"date": {"x": 0.55, "y": 0.25, "w": 1.3, "h": 0.30, "fontIn": 0.20, "label": "Date"},
		"payee": {"x": 2.0, "y": 0.25, "w": 3.5, "h": 0.30, "fontIn": 0.20, "label": "Pay To"},
		"address": {"x": 2.0, "y": 0.55, "w": 3.5, "h": 0.60, "fontIn": 0.18, "label": "Address"},
		"amount": {"x": None, "y": 0.25, "w": 1.20, "h": 0.30, "fontIn": 0.20, "label": "Amount"},
		"checkNumber": {"x": 6.35, "y": 0.25, "w": 0.85, "h": 0.30, "fontIn": 0.18, "label": "Check #"},
		"memo": {"x": 0.55, "y": 0.70, "w": None, "h": 0.30, "fontIn": 0.18, "label": "Memo"},
		"line_items": {"x": 0.55, "y": 1.25, "w": None, "h": 1.10, "fontIn": 0.16, "label": "Line Items"},
	},
	"stub2": {
		"date": {"x": 0.55, "y": 0.25, "w": 1.3, "h": 0.30, "fontIn": 0.20, "label": "Date"},
		"payee": {"x": 2.0, "y": 0.25, "w": 3.5, "h": 0.30, "fontIn": 0.20, "label": "Pay To"},
		"address": {"x": 2.0, "y": 0.55, "w": 3.5, "h": 0.60, "fontIn": 0.18, "label": "Address"},
		"amount": {"x": None, "y": 0.25, "w": 1.20, "h": 0.30, "fontIn": 0.20, "label": "Amount"},
		"checkNumber": {"x": 6.35, "y": 0.25, "w": 0.85, "h": 0.30, "fontIn": 0.18, "label": "Check #"},
		"memo": {"x": 0.55, "y": 0.70, "w": None, "h": 0.30, "fontIn": 0.18, "label": "Internal Memo"},
		"line_items": {"x": 6.35, "y": 1.15, "w": 1.60, "h": 0.85, "fontIn": 0.16, "label": "Line Items"},
	},
}
STUB_AMOUNT_RIGHT_INSET = 1.75
STUB_FULL_WIDTH_INSET = 1.10

DATE_SLOT_VALUES = ("MM", "DD", "YY", "YYYY", "Empty")


@dataclasses.dataclass(frozen=True)
class DateFormatConfig:
	date_slot1: str = "MM"
	date_slot2: str = "DD"
	date_slot3: str = "YYYY"
	date_separator: str = "/"
	use_long_date: bool = False


@dataclasses.dataclass(frozen=True)
class RenderOptions:
	font_id: str = DEFAULT_FONT_ID
	date_format: DateFormatConfig = DateFormatConfig()
	layout_order: tuple[str, ...] = DEFAULT_LAYOUT_ORDER
	sheet_mode: bool = False
	show_template: bool = False


@dataclasses.dataclass(frozen=True)
class PrintOptions:
	mode: str = "print"
	silent: bool = False
	device_name: str | None = None
	margins: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
	continue_on_error: bool = False


#============================================
def date_format_from_dict(data: dict | None) -> DateFormatConfig:
	"""
	Build a date format config from a preference dict.

	Args:
		data: Dict with dateSlot1..3, dateSeparator and useLongDate keys.

	Returns:
		DateFormatConfig.
	"""
	if not data:
		return DateFormatConfig()
	defaults = DateFormatConfig()
	return DateFormatConfig(
		date_slot1=str(data.get("dateSlot1", defaults.date_slot1)),
		date_slot2=str(data.get("dateSlot2", defaults.date_slot2)),
		date_slot3=str(data.get("dateSlot3", defaults.date_slot3)),
		date_separator=str(data.get("dateSeparator", defaults.date_separator)),
		use_long_date=bool(data.get("useLongDate", defaults.use_long_date)),
	)


#============================================
def font_family_css(font_id: str) -> str:
	"""
	Look up the CSS font family for a font id.

	Args:
		font_id: Font id like "courier".

	Returns:
		CSS font-family value, the default font for unknown ids.
	"""
	entry = AVAILABLE_FONTS.get(font_id, AVAILABLE_FONTS[DEFAULT_FONT_ID])
	return entry[0]


#============================================
def font_name_pdf(font_id: str) -> str:
	"""
	Look up the standard PDF font for a font id.

	Args:
		font_id: Font id like "courier".

	Returns:
		ReportLab base font name.
	"""
	entry = AVAILABLE_FONTS.get(font_id, AVAILABLE_FONTS[DEFAULT_FONT_ID])
	return entry[1]
