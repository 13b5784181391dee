import pytest

from rideops.services.ride_permissions import (
    IN_PROGRESS_RESTRICTED,
    NO_VALID_FIELDS,
    NOT_FOUND,
    RIDE_CLOSED,
    can_change_status,
    evaluate_ride_edit,
)


def test_driver_in_progress_notes_only_is_rejected():
    decision = evaluate_ride_edit("In Progress", "driver", {"driver_notes"})
    assert not decision.allowed
    assert decision.code == NO_VALID_FIELDS


def test_driver_in_progress_notes_are_filtered_silently():
    decision = evaluate_ride_edit("In Progress", "driver", {"current_location", "driver_notes"})
    assert decision.allowed
    assert decision.fields == {"current_location"}


def test_driver_confirmed_ride_may_update_notes():
    decision = evaluate_ride_edit("Confirmed", "driver", {"driver_notes", "price"})
    assert decision.allowed
    assert decision.fields == {"driver_notes"}


def test_customer_in_progress_special_requirements_alone():
    decision = evaluate_ride_edit("In Progress", "customer", {"special_requirements"})
    assert decision.allowed
    assert decision.fields == {"special_requirements"}


def test_customer_in_progress_multiple_fields_rejected_outright():
    decision = evaluate_ride_edit("In Progress", "customer", {"special_requirements", "pickup_time"})
    assert not decision.allowed
    assert decision.code == IN_PROGRESS_RESTRICTED


def test_customer_in_progress_other_single_field_rejected():
    decision = evaluate_ride_edit("In Progress", "customer", {"passengers"})
    assert not decision.allowed
    assert decision.code == IN_PROGRESS_RESTRICTED


def test_customer_pending_ride_filters_to_allowed_fields():
    decision = evaluate_ride_edit("Pending", "customer", {"pickup_date", "passengers", "price", "driver_id"})
    assert decision.allowed
    assert decision.fields == {"pickup_date", "passengers"}


def test_customer_without_editable_fields_rejected():
    decision = evaluate_ride_edit("Pending", "customer", {"price"})
    assert decision.code == NO_VALID_FIELDS


@pytest.mark.parametrize("status", ["Completed", "Cancelled"])
@pytest.mark.parametrize("role,fields", [
    ("driver", {"current_location"}),
    ("customer", {"special_requirements"}),
])
def test_closed_rides_reject_non_admins(status, role, fields):
    decision = evaluate_ride_edit(status, role, fields)
    assert not decision.allowed
    assert decision.code == RIDE_CLOSED


@pytest.mark.parametrize("status", ["Completed", "Cancelled"])
def test_admin_may_edit_closed_rides(status):
    decision = evaluate_ride_edit(status, "admin", {"admin_notes", "price"})
    assert decision.allowed
    assert decision.fields == {"admin_notes", "price"}


def test_admin_unknown_columns_dropped():
    decision = evaluate_ride_edit("Pending", "admin", {"id", "created_at", "price"})
    assert decision.fields == {"price"}


def test_non_owner_sees_not_found_before_anything_else():
    decision = evaluate_ride_edit("Completed", "customer", {"special_requirements"}, is_owner=False)
    assert decision.code == NOT_FOUND
    assert decision.reason == "Ride not found or unauthorized"


def test_admin_ignores_ownership():
    assert evaluate_ride_edit("Pending", "admin", {"price"}, is_owner=False).allowed


def test_unknown_role_rejected():
    assert not evaluate_ride_edit("Pending", "dispatcher", {"price"}).allowed


def test_status_change_rules():
    assert can_change_status("Pending", "Confirmed") is None
    assert can_change_status("Pending", "Done") == "Invalid status value"
    assert can_change_status("Completed", "Pending") == "Cannot update completed or cancelled rides"
