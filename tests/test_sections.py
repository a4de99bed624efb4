import pytest

import check_print_layout.geometry
import check_print_layout.sections


#============================================
def build_layout(**overrides) -> check_print_layout.geometry.Layout:
	"""
	Build a default layout with keyword overrides.
	"""
	return check_print_layout.geometry.Layout(**overrides)


#============================================
def offsets(composition: check_print_layout.sections.Composition) -> dict[str, float]:
	return {placement.section.key: placement.offset_y_in for placement in composition.placements}


#============================================
def test_stacked_default_order() -> None:
	"""
	Sections stack in order as a running sum of heights.
	"""
	composition = check_print_layout.sections.compose_sections(
		build_layout(stub1_height_in=2.5),
		("check", "stub1", "stub2"),
		False,
	)
	assert offsets(composition) == {"check": 0.0, "stub1": 3.0, "stub2": 5.5}
	assert composition.total_height_in == pytest.approx(8.5)
	assert composition.width_in == pytest.approx(8.5)


#============================================
def test_stacked_reordered_and_disabled() -> None:
	"""
	Disabled sections take no space; order follows the given list.
	"""
	composition = check_print_layout.sections.compose_sections(
		build_layout(stub1_enabled=False),
		("stub2", "stub1", "check"),
		False,
	)
	assert [placement.section.key for placement in composition.placements] == ["stub2", "check"]
	assert offsets(composition) == {"stub2": 0.0, "check": 3.0}
	assert composition.total_height_in == pytest.approx(6.0)


#============================================
def test_stacked_counts_only_listed_sections() -> None:
	"""
	Sections left out of the order are not placed or counted.
	"""
	composition = check_print_layout.sections.compose_sections(build_layout(), ("stub1", "check"), False)
	assert offsets(composition) == {"stub1": 0.0, "check": 3.0}
	assert composition.total_height_in == pytest.approx(6.0)


#============================================
def test_sheet_mode_repeats_check() -> None:
	"""
	Sheet mode places three checks and no stubs.
	"""
	composition = check_print_layout.sections.compose_sections(
		build_layout(check_height_in=2.5),
		("stub1", "check", "stub2"),
		True,
	)
	assert len(composition.placements) == 3
	assert [placement.section.key for placement in composition.placements] == ["check"] * 3
	assert [placement.offset_y_in for placement in composition.placements] == [0.0, 2.5, 5.0]
	assert [placement.slot_name for placement in composition.placements] == ["top", "middle", "bottom"]
	assert composition.total_height_in == pytest.approx(7.5)
	assert composition.sheet_mode is True


#============================================
def test_layout_order_validation() -> None:
	"""
	Unknown section keys are skipped; repeats are dropped.
	"""
	composition = check_print_layout.sections.compose_sections(build_layout(), ("stub3", "check", "stub2"), False)
	assert [placement.section.key for placement in composition.placements] == ["check", "stub2"]
	assert composition.total_height_in == pytest.approx(6.0)
	assert check_print_layout.sections.validate_layout_order(["bogus"]) == ()
	assert check_print_layout.sections.validate_layout_order(["check", "stub1", "check"]) == ("check", "stub1")


#============================================
def test_place_fields_offsets_by_section() -> None:
	"""
	Placed fields add the section offset to their section-relative y.
	"""
	model = check_print_layout.geometry.model_from_dict(None)
	composition = check_print_layout.sections.compose_sections(
		model.layout,
		("stub1", "check", "stub2"),
		False,
	)
	placed = {field.key: field for field in check_print_layout.sections.place_fields(composition, model.fields)}
	assert placed["stub1_date"].y_in == pytest.approx(0.25)
	assert placed["date"].y_in == pytest.approx(0.50 + 3.0)
	assert placed["stub2_date"].y_in == pytest.approx(0.25 + 6.0)
	assert placed["date"].x_in == pytest.approx(6.65)
	assert placed["date"].section_key == "check"


#============================================
def test_place_fields_sheet_slots() -> None:
	"""
	Each sheet slot gets its own copy of the check fields.
	"""
	model = check_print_layout.geometry.model_from_dict(None)
	composition = check_print_layout.sections.compose_sections(model.layout, (), True)
	payees = [field for field in check_print_layout.sections.place_fields(composition, model.fields) if field.key == "payee"]
	assert [field.slot_index for field in payees] == [0, 1, 2]
	assert [field.y_in for field in payees] == pytest.approx([1.05, 4.05, 7.05])
	placed_keys = {field.key for field in check_print_layout.sections.place_fields(composition, model.fields)}
	assert not any(key.startswith("stub") for key in placed_keys)


#============================================
def test_place_fields_skips_missing_and_clamps_negative_sizes() -> None:
	"""
	Missing fields are skipped; negative sizes draw as zero.
	"""
	fields = {"payee": check_print_layout.geometry.FieldSpec(1.0, 1.0, -2.0, 0.4)}
	composition = check_print_layout.sections.compose_sections(build_layout(), ("check",), False)
	placed = check_print_layout.sections.place_fields(composition, fields)
	assert [field.key for field in placed] == ["payee"]
	assert placed[0].w_in == 0.0
