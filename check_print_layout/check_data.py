"""
Check content records supplied by callers for rendering.
"""

# Standard Library
import dataclasses


@dataclasses.dataclass(frozen=True)
class LineItem:
	description: str = ""
	amount: str = ""


@dataclasses.dataclass(frozen=True)
class CheckData:
	date: str = ""
	payee: str = ""
	amount: str = ""
	amount_words: str = ""
	memo: str = ""
	external_memo: str = ""
	internal_memo: str = ""
	line_items: tuple[LineItem, ...] = ()
	address: str = ""
	check_number: str = ""


EMPTY_CHECK = CheckData()


#============================================
def text_value(value) -> str:
	"""
	Coerce a loaded scalar into display text.

	Args:
		value: Raw value.

	Returns:
		String, empty for None.
	"""
	if value is None:
		return ""
	return str(value)


#============================================
def check_data_from_dict(data: dict | None) -> CheckData:
	"""
	Build a CheckData record from a plain dict.

	Accepts both camelCase keys used by the editor (`checkNumber`,
	`amountWords`) and snake_case keys.

	Args:
		data: Check dict.

	Returns:
		CheckData.
	"""
	if data is None:
		return EMPTY_CHECK
	if not isinstance(data, dict):
		raise ValueError(f"check data must be a mapping, got {type(data).__name__}")

	items: list[LineItem] = []
	for entry in data.get("line_items") or []:
		if not isinstance(entry, dict):
			continue
		description = entry.get("description", entry.get("desc"))
		items.append(
			LineItem(
				description=text_value(description),
				amount=text_value(entry.get("amount")),
			)
		)

	return CheckData(
		date=text_value(data.get("date")),
		payee=text_value(data.get("payee")),
		amount=text_value(data.get("amount")),
		amount_words=text_value(data.get("amountWords", data.get("amount_words"))),
		memo=text_value(data.get("memo")),
		external_memo=text_value(data.get("external_memo")),
		internal_memo=text_value(data.get("internal_memo")),
		line_items=tuple(items),
		address=text_value(data.get("address")),
		check_number=text_value(data.get("checkNumber", data.get("check_number"))),
	)
