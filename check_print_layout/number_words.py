"""
US check style amount spelling: "One Hundred Twenty-Three and 45/100".
"""

# Standard Library
import decimal

# PIP3 modules
import inflect


AMOUNT_STRIP_CHARS = "$, \t\n"
INFLECT_ENGINE = inflect.engine()


#============================================
def dollars_to_words(value: int) -> str:
	"""
	Spell a whole dollar count in title case, without "and" or commas.

	Args:
		value: Non-negative integer.

	Returns:
		Words like "Nine Hundred Ninety-Nine Thousand".
	"""
	spelled = INFLECT_ENGINE.number_to_words(value)
	words = []
	for word in spelled.replace(",", " ").split():
		# inflect writes "one hundred and five"; checks omit the "and"
		if word == "and":
			continue
		words.append("-".join(part.capitalize() for part in word.split("-")))
	return " ".join(words)


#============================================
def parse_amount(value) -> decimal.Decimal | None:
	"""
	Parse a currency string, ignoring dollar signs, commas and whitespace.

	Args:
		value: Amount like "$1,234.56".

	Returns:
		Decimal, or None when empty, unparsable or not finite.
	"""
	if value is None:
		return None
	cleaned = "".join(char for char in str(value) if char not in AMOUNT_STRIP_CHARS)
	if not cleaned:
		return None
	try:
		amount = decimal.Decimal(cleaned)
	except decimal.InvalidOperation:
		return None
	if not amount.is_finite():
		return None
	return amount


#============================================
def number_to_words(value) -> str:
	"""
	Spell an amount the way it is written on a check.

	Args:
		value: Amount string or number.

	Returns:
		Words with cents as NN/100, or empty string when unparsable.
	"""
	if value is None or value == "":
		amount = decimal.Decimal(0)
	else:
		amount = parse_amount(value)
		if amount is None:
			return ""
	try:
		rounded = abs(amount).quantize(decimal.Decimal("0.01"), rounding=decimal.ROUND_HALF_UP)
	except decimal.InvalidOperation:
		return ""
	cents_total = int(rounded * 100)
	dollars, cents = divmod(cents_total, 100)
	return f"{dollars_to_words(dollars)} and {cents:02d}/100"
