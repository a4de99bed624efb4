"""
Field value resolution: maps a field key and check data to display text.

Every function here is pure. Conversion failures resolve to an empty string
instead of raising, so a bad amount or date never breaks a render.
"""

# Standard Library
import datetime
import decimal

# local repo modules
import check_print_layout as cpl
import check_print_layout.check_data
import check_print_layout.config
import check_print_layout.number_words


CheckData = cpl.check_data.CheckData
LineItem = cpl.check_data.LineItem
DateFormatConfig = cpl.config.DateFormatConfig

MEMO_FALLBACKS = cpl.config.MEMO_FALLBACKS
MAX_LINE_ITEMS = cpl.config.MAX_LINE_ITEMS
STUB_PREFIXES = ("stub1_", "stub2_")
DATE_INPUT_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%B %d, %Y", "%b %d, %Y")


#============================================
def split_field_key(field_key: str) -> tuple[str, str]:
	"""
	Split a field key into its section prefix and base name.

	Args:
		field_key: Key like "stub1_memo" or "memo".

	Returns:
		Tuple of (prefix, base) such as ("stub1_", "memo").
	"""
	for prefix in STUB_PREFIXES:
		if field_key.startswith(prefix):
			return (prefix, field_key[len(prefix):])
	return ("", field_key)


#============================================
def format_currency(value) -> str:
	"""
	Format an amount as US currency.

	Args:
		value: Amount string or number.

	Returns:
		Text like "$1,234.56", or empty string when unparsable.
	"""
	amount = cpl.number_words.parse_amount(value)
	if amount is None:
		return ""
	try:
		rounded = amount.quantize(decimal.Decimal("0.01"), rounding=decimal.ROUND_HALF_UP)
	except decimal.InvalidOperation:
		return ""
	if rounded < 0:
		return f"-${-rounded:,.2f}"
	return f"${rounded:,.2f}"


#============================================
def parse_date(value: str) -> datetime.date | None:
	"""
	Parse a check date.

	Args:
		value: Date text, ISO "YYYY-MM-DD" preferred.

	Returns:
		Date, or None when the text is not a recognizable date.
	"""
	text = (value or "").strip()
	if not text:
		return None
	try:
		return datetime.date.fromisoformat(text[:10])
	except ValueError:
		pass
	for pattern in DATE_INPUT_FORMATS:
		try:
			return datetime.datetime.strptime(text, pattern).date()
		except ValueError:
			continue
	return None


#============================================
def format_date(value: str, date_format: DateFormatConfig) -> str:
	"""
	Format a date following the slot/separator preferences.

	Args:
		value: Date text.
		date_format: Date format preferences.

	Returns:
		Formatted date, or empty string for missing or invalid dates.
	"""
	parsed = parse_date(value)
	if parsed is None:
		return ""
	if date_format.use_long_date:
		return f"{parsed:%B} {parsed.day}, {parsed.year}"

	slot_map = {
		"MM": f"{parsed.month:02d}",
		"DD": f"{parsed.day:02d}",
		"YY": f"{parsed.year:04d}"[-2:],
		"YYYY": str(parsed.year),
		"Empty": "",
	}
	slots = (date_format.date_slot1, date_format.date_slot2, date_format.date_slot3)
	parts = [slot_map.get(slot, "") for slot in slots]
	parts = [part for part in parts if part]
	separator = date_format.date_separator or "/"
	if separator == "Empty":
		separator = ""
	return separator.join(parts)


#============================================
def format_line_items(items: tuple[LineItem, ...], max_lines: int = MAX_LINE_ITEMS) -> str:
	"""
	Format line items as numbered lines for a stub.

	Args:
		items: Line items in order.
		max_lines: Maximum items to list before summarizing the rest.

	Returns:
		Multi-line text, or empty string when there are no items.
	"""
	if not items:
		return ""
	lines: list[str] = []
	for index, item in enumerate(items[:max_lines], start=1):
		amount_text = format_currency(item.amount) if item.amount else ""
		line = f"{index}. {item.description}"
		if amount_text:
			line += f" - {amount_text}"
		lines.append(line)
	text = "\n".join(lines)
	remaining = len(items) - max_lines
	if remaining > 0:
		plural = "s" if remaining > 1 else ""
		text += f"\n\n... and {remaining} more item{plural}"
		text += "\nSee Attached for Full Detail"
	return text


#============================================
def resolve_amount_words(amount: str) -> str:
	"""
	Spell the check amount, or return empty string when there is none.

	Args:
		amount: Decimal amount string.

	Returns:
		Words like "One Hundred and 00/100".
	"""
	if not amount or amount == "0":
		return ""
	if cpl.number_words.parse_amount(amount) is None:
		return ""
	try:
		return cpl.number_words.number_to_words(amount)
	except (ArithmeticError, ValueError):
		return ""


#============================================
def resolve_field_value(
	field_key: str,
	check_data: CheckData,
	date_format: DateFormatConfig,
) -> str:
	"""
	Resolve the display text for a field.

	Args:
		field_key: Field key such as "payee" or "stub2_memo".
		check_data: Check content.
		date_format: Date format preferences.

	Returns:
		Display text; unknown keys resolve to an empty string.
	"""
	prefix, base = split_field_key(field_key)
	if base == "date":
		return format_date(check_data.date, date_format)
	if base == "payee":
		return check_data.payee or ""
	if base == "amount":
		if not check_data.amount:
			return ""
		return format_currency(check_data.amount)
	if base == "amountWords":
		return resolve_amount_words(check_data.amount)
	if base == "memo":
		if check_data.memo:
			return check_data.memo
		fallback = MEMO_FALLBACKS.get(prefix)
		if fallback is None:
			return ""
		return getattr(check_data, fallback) or ""
	if base == "checkNumber":
		return check_data.check_number or ""
	if base == "address":
		return check_data.address or ""
	if base == "line_items" and prefix:
		return format_line_items(check_data.line_items)
	return ""
