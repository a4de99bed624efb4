"""
Pytest configuration for local imports and shared check fixtures.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
@pytest.fixture
def sample_check_dict() -> dict:
	"""
	A fully populated check in the editor's plain-dict form.
	"""
	return {
		"date": "2026-01-05",
		"payee": "ACME Supply",
		"amount": "1234.56",
		"memo": "",
		"external_memo": "Invoice 42",
		"internal_memo": "Office supplies",
		"line_items": [
			{"description": "Paper", "amount": "34.56"},
			{"description": "Toner", "amount": "1200"},
		],
		"address": "1 Main St\nSpringfield",
		"checkNumber": "1001",
	}
