"""
Unit conversions between inches, screen pixels, print points and millimeters.

Inches are the only stored unit. Pixels, points and millimeters are always
derived on demand from an inch value.
"""

# local repo modules
import check_print_layout as cpl
import check_print_layout.config


PX_PER_INCH = cpl.config.PX_PER_INCH
POINTS_PER_INCH = cpl.config.POINTS_PER_INCH
MM_PER_INCH = cpl.config.MM_PER_INCH


#============================================
def validate_zoom(zoom: float) -> float:
	"""
	Validate an on-screen zoom factor.

	Args:
		zoom: Zoom factor.

	Returns:
		The zoom factor as a float.
	"""
	zoom = float(zoom)
	if not zoom > 0.0:
		raise ValueError(f"zoom must be positive, got {zoom}")
	return zoom


#============================================
def inches_to_pixels(value: float, zoom: float = 1.0) -> float:
	"""
	Convert inches to screen pixels.

	Args:
		value: Inches value.
		zoom: On-screen zoom factor.

	Returns:
		Pixels value.
	"""
	return value * PX_PER_INCH * zoom


#============================================
def pixels_to_inches(value: float, zoom: float = 1.0) -> float:
	"""
	Convert screen pixels back to inches.

	Args:
		value: Pixels value.
		zoom: On-screen zoom factor.

	Returns:
		Inches value.
	"""
	return value / PX_PER_INCH / validate_zoom(zoom)


#============================================
def inches_to_points(value: float) -> float:
	"""
	Convert inches to print points. Zoom never applies to print output.

	Args:
		value: Inches value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_INCH


#============================================
def points_to_inches(value: float) -> float:
	"""
	Convert print points to inches.

	Args:
		value: Points value.

	Returns:
		Inches value.
	"""
	return value / POINTS_PER_INCH


#============================================
def inches_to_mm(value: float) -> float:
	"""
	Convert inches to millimeters for physical page size APIs.

	Args:
		value: Inches value.

	Returns:
		Millimeters value.
	"""
	return value * MM_PER_INCH


def page_size_mm(width_in: float, height_in: float) -> tuple[float, float]:
	"""
	Convert a page size in inches to (width_mm, height_mm).
	"""
	return (inches_to_mm(width_in), inches_to_mm(height_in))
