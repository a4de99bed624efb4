"""
Error types raised by print backends and preview openers.

The print orchestrator converts these into failed result values; they never
cross its public methods.
"""


class CheckPrintError(Exception):
	pass


class BackendUnavailableError(CheckPrintError):
	"""The print or PDF backend cannot be reached."""


class BackendFailureError(CheckPrintError):
	"""The backend call completed but reported a failure."""


class PreviewError(CheckPrintError):
	"""A preview window could not be opened."""
