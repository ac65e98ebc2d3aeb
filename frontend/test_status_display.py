# frontend/test_status_display.py
# Unit tests for status badges and lease action dispatch

from datetime import date

from frontend.status_display import (
    LEASE_ACTION_BUTTONS,
    STATUS_STYLES,
    booking_action_buttons,
    days_remaining,
    lease_action_buttons,
    lease_term_caption,
    status_badge,
    status_label,
)


def test_every_lease_status_has_a_style():
    for status in ("Pending", "Active", "Expiring Soon", "Expired", "Cancelled"):
        assert status in STATUS_STYLES["lease"]


def test_badge_and_label():
    assert status_badge("lease", "Active") == ":green[🟢 Active]"
    assert status_label("invoice", "Overdue") == "🔴 Overdue"


def test_unknown_status_falls_back_to_neutral():
    assert status_badge("lease", "Renewed") == ":gray[⚪ Renewed]"
    assert status_badge("nope", None) == ":gray[⚪ Unknown]"


def test_lease_buttons_follow_allowed_actions_in_display_order():
    buttons = lease_action_buttons(["Cancel", "Activate"])
    assert [action for action, _ in buttons] == ["Activate", "Cancel"]
    assert lease_action_buttons([]) == []
    assert lease_action_buttons(None) == []


def test_only_renew_needs_dates():
    assert [a for a, button in LEASE_ACTION_BUTTONS.items() if button["needs_dates"]] == ["Renew"]


def test_booking_buttons_follow_allowed_actions_in_display_order():
    buttons = booking_action_buttons(["cancel", "complete"])
    assert [action for action, _ in buttons] == ["complete", "cancel"]
    assert [action for action, _ in booking_action_buttons(["confirm", "cancel"])] == ["confirm", "cancel"]
    assert booking_action_buttons([]) == []
    assert booking_action_buttons(None) == []


def test_days_remaining():
    today = date(2025, 1, 1)
    assert days_remaining("2025-01-31", today) == 30
    assert days_remaining("2024-12-31", today) == -1
    assert days_remaining("garbage", today) is None
    assert days_remaining(None, today) is None


def test_lease_term_caption_by_status():
    today = date(2025, 1, 1)
    lease = {"start_date": "2024-06-01", "end_date": "2025-01-21"}
    assert lease_term_caption({**lease, "status": "Expiring Soon"}, today) == "Ends 2025-01-21 (20 days left)"
    assert lease_term_caption({**lease, "status": "Pending"}, today) == "Starts 2024-06-01"
    assert lease_term_caption({**lease, "status": "Expired"}, today) == "Ended 2025-01-21"
    assert lease_term_caption({**lease, "status": "Cancelled"}, today) == "2024-06-01 → 2025-01-21"
