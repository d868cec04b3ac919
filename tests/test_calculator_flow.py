"""
Calculator flow — stage transitions, estimate reset, save latch, rehydration.

Scenario used throughout: 100 m² residential plus two bags of cement at 500.
"""

from decimal import Decimal

import pytest

from conftest import FakeStore
from estimator.calculator import (
    STAGE_FORM,
    STAGE_MATERIALS,
    STAGE_SAVE,
    EstimatorSession,
)
from estimator.catalog import load_active_catalog
from estimator.errors import (
    FlowError,
    PersistenceError,
    SaveInProgressError,
    SaveValidationError,
    UnknownMaterialError,
)
from estimator.estimation import ProjectType


@pytest.fixture
def session(fake_store):
    return EstimatorSession(catalog=load_active_catalog(fake_store))


@pytest.fixture
def calculated(session):
    assert session.calculate(area="100", project_type="residential")
    session.open_materials()
    session.select_material(1)
    session.select_material(1)
    return session


def test_new_session_starts_on_form(session):
    assert session.stage == STAGE_FORM
    assert session.calculated is False
    assert session.base_cost is None
    assert session.project_type == ProjectType.RESIDENTIAL
    assert session.total_cost == Decimal("0")


def test_full_scenario_totals(calculated):
    assert calculated.base_cost == Decimal("120000")
    assert calculated.materials_cost == Decimal("1000")
    assert calculated.total_cost == Decimal("121000")
    assert len(calculated.selection) == 1
    assert calculated.selection.get(1).quantity == 2


def test_commercial_rate(session):
    assert session.calculate(area=50, project_type="commercial")
    assert session.base_cost == Decimal("90000")


@pytest.mark.parametrize("area", ["", "abc", "0", "-5", "inf"])
def test_rejected_calculate_leaves_state_untouched(calculated, area):
    before = calculated.to_state()

    assert calculated.calculate(area=area) is False
    assert calculated.to_state() == before
    assert calculated.stage == STAGE_MATERIALS


def test_rejected_project_type_leaves_state_untouched(calculated):
    before = calculated.to_state()
    assert calculated.calculate(project_type="industrial") is False
    assert calculated.to_state() == before


def test_area_change_resets_estimate_but_keeps_selection(calculated):
    calculated.set_area("150")

    assert calculated.calculated is False
    assert calculated.base_cost is None
    assert calculated.stage == STAGE_FORM
    assert calculated.selection.get(1).quantity == 2
    assert calculated.total_cost == Decimal("1000")


def test_unchanged_area_does_not_reset(calculated):
    calculated.set_area("100")
    assert calculated.calculated is True
    assert calculated.base_cost == Decimal("120000")


def test_project_type_change_resets_estimate(calculated):
    calculated.set_project_type("commercial")
    assert calculated.calculated is False
    assert calculated.base_cost is None

    assert calculated.calculate()
    assert calculated.base_cost == Decimal("180000")


def test_unknown_project_type_is_rejected(session):
    with pytest.raises(ValueError):
        session.set_project_type("industrial")
    assert session.project_type == ProjectType.RESIDENTIAL


def test_modals_require_a_calculated_estimate(session):
    with pytest.raises(FlowError):
        session.open_materials()
    with pytest.raises(FlowError):
        session.open_save()
    assert session.stage == STAGE_FORM


def test_stage_transitions(calculated):
    assert calculated.stage == STAGE_MATERIALS
    calculated.open_save()
    assert calculated.stage == STAGE_SAVE
    calculated.close_modal()
    assert calculated.stage == STAGE_FORM


def test_selecting_unknown_material_raises(session):
    with pytest.raises(UnknownMaterialError):
        session.select_material(99)
    assert len(session.selection) == 0


def test_quantity_edit_and_remove(calculated):
    calculated.select_material(2)
    calculated.set_quantity(1, 5)
    assert calculated.materials_cost == Decimal("2785.50")

    calculated.remove_material(2)
    calculated.set_quantity(1, 0)
    assert len(calculated.selection) == 0
    assert calculated.total_cost == Decimal("120000")


def test_selection_names_follow_locale(calculated):
    assert calculated.selection_list[0]["name"] == "Cemento"
    calculated.set_locale("en-US")
    assert calculated.locale == "en"
    assert calculated.selection_list[0]["name"] == "Cement"


def test_save_persists_and_returns_to_form(calculated):
    calculated.open_save()
    store = FakeStore()

    result = calculated.save(store, owner_id=7, name="Casa Bávaro")

    assert result.total_cost == 121000.0
    assert calculated.stage == STAGE_FORM
    assert calculated.saving is False
    assert calculated.last_saved is result
    assert store.projects[0]["total_cost"] == Decimal("121000")


def test_save_requires_calculation(session):
    with pytest.raises(FlowError):
        session.save(FakeStore(), owner_id=7, name="Casa")


def test_save_while_saving_is_rejected(calculated):
    store = FakeStore()
    calculated.saving = True

    with pytest.raises(SaveInProgressError):
        calculated.save(store, owner_id=7, name="Casa")
    assert store.writes == []


def test_failed_save_keeps_state_for_retry(calculated):
    calculated.open_save()
    before = calculated.to_state()

    with pytest.raises(PersistenceError):
        calculated.save(FakeStore(fail_project=True), owner_id=7, name="Casa")

    assert calculated.to_state() == before
    assert calculated.stage == STAGE_SAVE
    assert calculated.saving is False

    result = calculated.save(FakeStore(), owner_id=7, name="Casa")
    assert result.project_id == 1


def test_invalid_save_releases_latch(calculated):
    with pytest.raises(SaveValidationError):
        calculated.save(FakeStore(), owner_id=7, name="  ")
    assert calculated.saving is False


def test_state_round_trip(calculated):
    restored = EstimatorSession.from_state(
        calculated.to_state(),
        catalog=calculated.catalog,
        locale="es",
        stage=calculated.stage,
    )

    assert restored.to_state() == calculated.to_state()
    assert restored.stage == STAGE_MATERIALS
    assert restored.total_cost == Decimal("121000")
    restored.set_area("100")
    assert restored.calculated is True


def test_from_state_tolerates_empty_state():
    session = EstimatorSession.from_state(None, stage="bogus")
    assert session.stage == STAGE_FORM
    assert session.calculated is False


def test_to_dict_includes_formatted_amounts(calculated):
    data = calculated.to_dict()
    assert data["estimate"]["total_cost"] == 121000.0
    assert data["estimate"]["area_input"] == "100"
    assert data["formatted"]["total_cost"] == "RD$121,000.00"
