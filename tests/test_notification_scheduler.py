"""Tests for NotificationScheduler reminder bookkeeping."""

from datetime import date, datetime, timezone

import pytest

from models.notification import BILLING_REMINDER, CANCELLATION_ALERT
from services.notification_scheduler import NotificationScheduler

NOW = datetime(2024, 1, 20)


@pytest.fixture
def scheduler(calculator):
    return NotificationScheduler(calculator)


class TestScheduleForSubscription:
    def test_billing_reminder(self, scheduler, make_subscription):
        scheduler.schedule_for_subscription(make_subscription(), NOW)

        [notification] = scheduler.get_scheduled()
        assert notification.id == "billing_sub-1"
        assert notification.type == BILLING_REMINDER
        assert notification.user_id == "user-1"
        assert notification.scheduled_date == datetime(2024, 2, 12)
        assert notification.title == "Netflix - Upcoming Payment"
        assert notification.body == "$9.99 will be charged in 3 days"

    def test_one_time_adds_cancellation_alert(self, scheduler, make_subscription):
        sub = make_subscription(
            is_one_time=True, cycle_limit=6, billing_date=1, start_date=date(2024, 1, 1)
        )
        scheduler.schedule_for_subscription(sub, NOW)

        by_type = {n.type: n for n in scheduler.get_scheduled()}
        assert by_type[BILLING_REMINDER].scheduled_date == datetime(2024, 1, 29)
        alert = by_type[CANCELLATION_ALERT]
        assert alert.id == "cancel_sub-1"
        assert alert.scheduled_date == datetime(2024, 6, 1)
        assert "6-cycle subscription has 1 cycle left" in alert.body

    def test_single_cycle_has_no_cancellation_alert(self, scheduler, make_subscription):
        sub = make_subscription(is_one_time=True, cycle_limit=1, start_date=date(2024, 1, 15))
        scheduler.schedule_for_subscription(sub, NOW)
        assert [n.type for n in scheduler.get_scheduled()] == [BILLING_REMINDER]

    def test_disabled_reminders_clear_existing(self, scheduler, make_subscription):
        scheduler.schedule_for_subscription(make_subscription(), NOW)
        scheduler.schedule_for_subscription(make_subscription(reminder_enabled=False), NOW)
        assert scheduler.get_scheduled() == []

    def test_rescheduling_replaces_entry(self, scheduler, make_subscription):
        scheduler.schedule_for_subscription(make_subscription(), NOW)
        scheduler.schedule_for_subscription(make_subscription(reminder_days_before=1), NOW)

        [notification] = scheduler.get_scheduled()
        assert notification.scheduled_date == datetime(2024, 2, 14)

    def test_aware_now_gives_aware_reminders(self, scheduler, make_subscription):
        sub = make_subscription(
            is_one_time=True, cycle_limit=6, billing_date=1, start_date=date(2024, 1, 1)
        )
        scheduler.schedule_for_subscription(sub, datetime(2024, 1, 20, tzinfo=timezone.utc))

        dates = [n.scheduled_date for n in scheduler.get_scheduled()]
        assert dates == [
            datetime(2024, 1, 29, tzinfo=timezone.utc),
            datetime(2024, 6, 1, tzinfo=timezone.utc),
        ]
        assert len(scheduler.get_due(datetime(2024, 6, 1, tzinfo=timezone.utc))) == 2

    def test_malformed_subscription_is_logged_not_raised(self, scheduler, make_subscription):
        broken = make_subscription(frequency="custom", custom_frequency_days=None)
        scheduler.schedule_for_subscription(broken, NOW)
        assert scheduler.get_scheduled() == []


class TestCancellation:
    def test_cancel_for_subscription_removes_both(self, scheduler, make_subscription):
        sub = make_subscription(is_one_time=True, cycle_limit=6, start_date=date(2024, 1, 1))
        other = make_subscription(id="sub-2")
        scheduler.schedule_for_subscription(sub, NOW)
        scheduler.schedule_for_subscription(other, NOW)

        scheduler.cancel_for_subscription("sub-1")
        assert [n.subscription_id for n in scheduler.get_scheduled()] == ["sub-2"]

    def test_cancel_unknown_is_noop(self, scheduler):
        scheduler.cancel_for_subscription("missing")
        assert scheduler.get_scheduled() == []

    def test_cancel_for_user(self, scheduler, make_subscription):
        scheduler.schedule_for_subscription(make_subscription(id="a", user_id="u1"), NOW)
        scheduler.schedule_for_subscription(make_subscription(id="b", user_id="u2"), NOW)

        assert scheduler.cancel_for_user("u1") == 1
        assert [n.user_id for n in scheduler.get_scheduled()] == ["u2"]

    def test_cancel_all(self, scheduler, make_subscription):
        scheduler.schedule_for_subscription(make_subscription(), NOW)
        scheduler.cancel_all()
        assert scheduler.get_scheduled() == []


class TestRescheduleAll:
    def test_only_active_subscriptions(self, scheduler, make_subscription):
        active = make_subscription(id="a")
        deleted = make_subscription(id="b", is_deleted=True)
        ended = make_subscription(
            id="c", is_one_time=True, cycle_limit=1, start_date=date(2023, 10, 1)
        )
        stale = make_subscription(id="stale")
        scheduler.schedule_for_subscription(stale, NOW)

        count = scheduler.reschedule_all([active, deleted, ended], NOW)

        assert count == 1
        assert [n.subscription_id for n in scheduler.get_scheduled()] == ["a"]

    def test_bad_record_does_not_stop_batch(self, scheduler, make_subscription):
        broken = make_subscription(
            id="a", frequency="custom", custom_frequency_days=None, is_one_time=True, cycle_limit=2
        )
        good = make_subscription(id="b")
        assert scheduler.reschedule_all([broken, good], NOW) == 1
        assert [n.subscription_id for n in scheduler.get_scheduled()] == ["b"]


class TestQueries:
    def test_scheduled_sorted_and_filtered_by_user(self, scheduler, make_subscription):
        scheduler.schedule_for_subscription(make_subscription(id="late", billing_date=28), NOW)
        scheduler.schedule_for_subscription(make_subscription(id="soon", billing_date=25), NOW)
        scheduler.schedule_for_subscription(
            make_subscription(id="other", user_id="user-2", billing_date=22), NOW
        )

        assert [n.subscription_id for n in scheduler.get_scheduled("user-1")] == ["soon", "late"]
        assert len(scheduler.get_scheduled()) == 3

    def test_get_due(self, scheduler, make_subscription):
        scheduler.schedule_for_subscription(make_subscription(id="a", billing_date=22), NOW)
        scheduler.schedule_for_subscription(make_subscription(id="b", billing_date=28), NOW)

        # Reminders land on Jan 19 and Jan 25.
        assert [n.subscription_id for n in scheduler.get_due(NOW)] == ["a"]
        assert [n.subscription_id for n in scheduler.get_due(datetime(2024, 1, 25))] == ["a", "b"]
