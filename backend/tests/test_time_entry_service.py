from datetime import date, datetime, timedelta, timezone

import pytest

from tracklog.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from tracklog.patch import CLEAR, SetTo, TimeEntryPatch
from tracklog.services.time_entry_service import whole_seconds


def stopped_entry(service, clock, user_id, activity_id, minutes=30):
    entry = service.start(user_id, activity_id)
    clock.advance(minutes=minutes)
    return service.stop(user_id, entry.id)


class TestStartStop:
    def test_start_creates_running_entry(self, time_entry_service, user, activity, clock):
        entry = time_entry_service.start(user.id, activity.id, description="chapter 3")

        assert entry.stopped_at is None
        assert entry.started_at == clock.now
        assert entry.distraction_count == 0
        assert entry.description == "chapter 3"
        assert time_entry_service.find_active(user.id).id == entry.id

    def test_second_start_conflicts(self, time_entry_service, user, activity):
        time_entry_service.start(user.id, activity.id)

        with pytest.raises(ConflictError):
            time_entry_service.start(user.id, activity.id)

    def test_concurrent_start_caught_by_unique_index(self, time_entry_service, user, activity, monkeypatch):
        time_entry_service.start(user.id, activity.id)
        # Simulate a racing request that checked before the first insert committed
        monkeypatch.setattr(time_entry_service, "find_active", lambda user_id: None)

        with pytest.raises(ConflictError):
            time_entry_service.start(user.id, activity.id)

        assert len(time_entry_service.find_all(user.id)) == 1

    def test_start_on_archived_activity_not_found(self, time_entry_service, activity_service, user, activity):
        activity_service.archive(user.id, activity.id)

        with pytest.raises(NotFoundError):
            time_entry_service.start(user.id, activity.id)

    def test_start_with_task_of_other_activity_not_found(self, time_entry_service, activity_service, task_service, user, activity):
        other_activity = activity_service.create(user.id, "Piano")
        task = task_service.create(user.id, other_activity.id, "Scales")

        with pytest.raises(NotFoundError):
            time_entry_service.start(user.id, activity.id, task_id=task.id)

    def test_stop_updates_progress_and_heatmap(self, time_entry_service, heatmap_service, db_session, user, activity, clock):
        entry = time_entry_service.start(user.id, activity.id)
        clock.advance(minutes=25, seconds=30, microseconds=900000)

        stopped = time_entry_service.stop(user.id, entry.id, distraction_count=2)

        assert stopped.stopped_at == clock.now
        assert stopped.distraction_count == 2
        assert stopped.duration_seconds == 1530
        db_session.refresh(activity)
        assert activity.tracked_duration == 1530
        assert activity.current_streak == 1
        assert activity.longest_streak == 1
        assert activity.last_completed_date == date(2024, 3, 10)
        counts = heatmap_service.query(user.id)
        assert [(row.day, row.count) for row in counts] == [(date(2024, 3, 10), 1)]
        assert time_entry_service.find_active(user.id) is None

    def test_ten_second_session(self, time_entry_service, heatmap_service, db_session, user, activity, clock):
        entry = time_entry_service.start(user.id, activity.id)
        clock.advance(seconds=10)

        time_entry_service.stop(user.id, entry.id)

        db_session.refresh(activity)
        assert activity.tracked_duration == 10
        assert heatmap_service.query(user.id)[0].count == 1

    def test_find_active_is_stable(self, time_entry_service, user, activity):
        entry = time_entry_service.start(user.id, activity.id)

        assert time_entry_service.find_active(user.id).id == entry.id
        assert time_entry_service.find_active(user.id).id == entry.id

    def test_failed_stop_rolls_back_everything(self, time_entry_service, heatmap_service, db_session, user, activity, clock, monkeypatch):
        entry = time_entry_service.start(user.id, activity.id)
        entry_id = entry.id
        clock.advance(minutes=15)

        def broken_record_completion(user_id, day):
            raise RuntimeError("heatmap unavailable")

        monkeypatch.setattr(heatmap_service, "record_completion", broken_record_completion)
        with pytest.raises(RuntimeError):
            time_entry_service.stop(user.id, entry_id)

        assert time_entry_service.find_active(user.id).id == entry_id
        db_session.refresh(activity)
        assert activity.tracked_duration == 0
        assert activity.current_streak == 0
        assert activity.longest_streak == 0
        assert activity.last_completed_date is None
        assert heatmap_service.query(user.id) == []

        # The entry is still stoppable once the heatmap recovers
        monkeypatch.undo()
        stopped = time_entry_service.stop(user.id, entry_id)
        assert stopped.duration_seconds == 900
        assert heatmap_service.query(user.id)[0].count == 1

    def test_stop_twice_conflicts(self, time_entry_service, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)

        with pytest.raises(ConflictError):
            time_entry_service.stop(user.id, entry.id)

    def test_zero_length_session_counts_on_heatmap_only(self, time_entry_service, heatmap_service, db_session, user, activity):
        entry = time_entry_service.start(user.id, activity.id)
        time_entry_service.stop(user.id, entry.id)

        db_session.refresh(activity)
        assert activity.tracked_duration == 0
        assert activity.current_streak == 0
        assert activity.last_completed_date is None
        assert heatmap_service.query(user.id)[0].count == 1

        # A second empty session the same day adds to the heatmap, not the streak
        entry = time_entry_service.start(user.id, activity.id)
        time_entry_service.stop(user.id, entry.id)
        db_session.refresh(activity)
        assert activity.current_streak == 0
        assert heatmap_service.query(user.id)[0].count == 2

    def test_streak_over_consecutive_days(self, time_entry_service, db_session, user, activity, clock):
        stopped_entry(time_entry_service, clock, user.id, activity.id)
        clock.advance(days=1)
        stopped_entry(time_entry_service, clock, user.id, activity.id)
        clock.advance(hours=2)
        stopped_entry(time_entry_service, clock, user.id, activity.id)

        db_session.refresh(activity)
        assert activity.current_streak == 2
        assert activity.longest_streak == 2
        assert activity.tracked_duration == 3 * 30 * 60

        clock.advance(days=3)
        stopped_entry(time_entry_service, clock, user.id, activity.id)
        db_session.refresh(activity)
        assert activity.current_streak == 1
        assert activity.longest_streak == 2
        assert activity.current_streak <= activity.longest_streak

    def test_whole_seconds_floors(self):
        start = datetime(2024, 3, 10, 9, 0, 0, tzinfo=timezone.utc)
        assert whole_seconds(start, start + timedelta(seconds=59, microseconds=999999)) == 59
        assert whole_seconds(start, start - timedelta(seconds=5)) == 0


class TestManualEntries:
    def test_manual_entry_aggregates_at_stop_time(self, time_entry_service, heatmap_service, db_session, user, activity, clock):
        started_at = clock.now - timedelta(hours=3)
        stopped_at = clock.now - timedelta(hours=2)

        entry = time_entry_service.create_manual(user.id, activity.id, started_at, stopped_at, rating=4)

        assert entry.duration_seconds == 3600
        assert entry.rating == 4
        db_session.refresh(activity)
        assert activity.tracked_duration == 3600
        assert activity.current_streak == 1
        assert heatmap_service.query(user.id)[0].day == date(2024, 3, 10)

    def test_backfill_keeps_streak(self, time_entry_service, heatmap_service, db_session, user, activity, clock):
        stopped_entry(time_entry_service, clock, user.id, activity.id)
        three_days_ago = clock.now - timedelta(days=3)

        time_entry_service.create_manual(user.id, activity.id, three_days_ago - timedelta(minutes=10), three_days_ago)

        db_session.refresh(activity)
        assert activity.current_streak == 1
        assert activity.last_completed_date == date(2024, 3, 10)
        assert activity.tracked_duration == 30 * 60 + 10 * 60
        assert [row.day for row in heatmap_service.query(user.id)] == [date(2024, 3, 7), date(2024, 3, 10)]

    def test_manual_entry_rejects_inverted_interval(self, time_entry_service, user, activity, clock):
        with pytest.raises(BadRequestError):
            time_entry_service.create_manual(user.id, activity.id, clock.now - timedelta(hours=1), clock.now - timedelta(hours=2))

    def test_manual_entry_rejects_future_stop(self, time_entry_service, user, activity, clock):
        with pytest.raises(BadRequestError):
            time_entry_service.create_manual(user.id, activity.id, clock.now, clock.now + timedelta(minutes=5))

    def test_manual_entry_does_not_block_timer(self, time_entry_service, user, activity, clock):
        time_entry_service.create_manual(user.id, activity.id, clock.now - timedelta(hours=1), clock.now)

        entry = time_entry_service.start(user.id, activity.id)
        assert entry.stopped_at is None


class TestUpdate:
    def test_update_active_entry_conflicts(self, time_entry_service, user, activity):
        entry = time_entry_service.start(user.id, activity.id)

        with pytest.raises(ConflictError):
            time_entry_service.update(user.id, entry.id, TimeEntryPatch(rating=SetTo(5)))

    def test_edit_window_boundaries(self, time_entry_service, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)
        stopped_at = entry.stopped_at

        clock.set(stopped_at + timedelta(days=6, hours=23, minutes=59, seconds=59))
        assert time_entry_service.update(user.id, entry.id, TimeEntryPatch(rating=SetTo(3))).rating == 3

        clock.set(stopped_at + timedelta(days=7))
        assert time_entry_service.update(user.id, entry.id, TimeEntryPatch(rating=SetTo(4))).rating == 4

        clock.set(stopped_at + timedelta(days=7, seconds=1))
        with pytest.raises(ForbiddenError):
            time_entry_service.update(user.id, entry.id, TimeEntryPatch(rating=SetTo(5)))

    def test_partial_update_leaves_other_fields(self, time_entry_service, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)
        time_entry_service.update(user.id, entry.id, TimeEntryPatch(rating=SetTo(2), comment=SetTo("slow start")))

        updated = time_entry_service.update(user.id, entry.id, TimeEntryPatch(distraction_count=SetTo(4)))

        assert updated.rating == 2
        assert updated.comment == "slow start"
        assert updated.distraction_count == 4

    def test_empty_patch_is_noop(self, time_entry_service, tag_service, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)
        [tag] = tag_service.get_or_create(user.id, ["focus"])
        before = time_entry_service.update(user.id, entry.id, TimeEntryPatch(
            rating=SetTo(5),
            comment=SetTo("steady"),
            distraction_count=SetTo(2),
            tag_ids=SetTo([tag.id]),
        ))
        snapshot = (before.rating, before.comment, before.distraction_count, before.started_at, before.stopped_at)

        updated = time_entry_service.update(user.id, entry.id, TimeEntryPatch())

        assert (updated.rating, updated.comment, updated.distraction_count, updated.started_at, updated.stopped_at) == snapshot
        assert [t.name for t in updated.tags] == ["focus"]

    def test_empty_tag_list_clears_tags(self, time_entry_service, tag_service, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)
        focus, deep = tag_service.get_or_create(user.id, ["focus", "deep"])
        time_entry_service.update(user.id, entry.id, TimeEntryPatch(tag_ids=SetTo([focus.id, deep.id])))

        updated = time_entry_service.update(user.id, entry.id, TimeEntryPatch(tag_ids=SetTo([])))

        assert updated.tags == []

    def test_clear_removes_optional_fields(self, time_entry_service, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)
        time_entry_service.update(user.id, entry.id, TimeEntryPatch(rating=SetTo(5), comment=SetTo("good")))

        updated = time_entry_service.update(user.id, entry.id, TimeEntryPatch(rating=CLEAR, comment=CLEAR))

        assert updated.rating is None
        assert updated.comment is None

    @pytest.mark.parametrize("field", ["distraction_count", "started_at", "stopped_at"])
    def test_required_fields_cannot_be_cleared(self, time_entry_service, user, activity, clock, field):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)

        with pytest.raises(BadRequestError):
            time_entry_service.update(user.id, entry.id, TimeEntryPatch(**{field: CLEAR}))

    def test_tags_are_replaced_and_cleared(self, time_entry_service, tag_service, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)
        focus, deep = tag_service.get_or_create(user.id, ["Focus", " deep "])

        updated = time_entry_service.update(user.id, entry.id, TimeEntryPatch(tag_ids=SetTo([focus.id, deep.id])))
        assert [tag.name for tag in updated.tags] == ["deep", "focus"]

        updated = time_entry_service.update(user.id, entry.id, TimeEntryPatch(tag_ids=SetTo([focus.id])))
        assert [tag.name for tag in updated.tags] == ["focus"]

        updated = time_entry_service.update(user.id, entry.id, TimeEntryPatch(comment=SetTo("kept tags")))
        assert [tag.name for tag in updated.tags] == ["focus"]

        updated = time_entry_service.update(user.id, entry.id, TimeEntryPatch(tag_ids=CLEAR))
        assert updated.tags == []

    def test_foreign_tag_rejected(self, time_entry_service, tag_service, user, other_user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)
        [foreign] = tag_service.get_or_create(other_user.id, ["theirs"])

        with pytest.raises(NotFoundError):
            time_entry_service.update(user.id, entry.id, TimeEntryPatch(tag_ids=SetTo([foreign.id])))

    def test_revised_times_keep_aggregates(self, time_entry_service, db_session, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)

        updated = time_entry_service.update(
            user.id, entry.id, TimeEntryPatch(started_at=SetTo(entry.started_at - timedelta(minutes=30)))
        )

        assert updated.duration_seconds == 3600
        db_session.refresh(activity)
        assert activity.tracked_duration == 1800

    def test_revised_times_must_stay_ordered(self, time_entry_service, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)

        with pytest.raises(BadRequestError):
            time_entry_service.update(
                user.id, entry.id, TimeEntryPatch(started_at=SetTo(entry.stopped_at + timedelta(minutes=1)))
            )
        with pytest.raises(BadRequestError):
            time_entry_service.update(
                user.id, entry.id, TimeEntryPatch(stopped_at=SetTo(clock.now + timedelta(hours=1)))
            )


class TestQueriesAndDelete:
    def test_find_all_most_recent_first_with_filters(self, time_entry_service, activity_service, user, activity, clock):
        piano = activity_service.create(user.id, "Piano")
        base = clock.now
        first = time_entry_service.create_manual(user.id, activity.id, base - timedelta(hours=5), base - timedelta(hours=4))
        second = time_entry_service.create_manual(user.id, piano.id, base - timedelta(hours=3), base - timedelta(hours=2))
        third = time_entry_service.start(user.id, activity.id)

        assert [e.id for e in time_entry_service.find_all(user.id)] == [third.id, second.id, first.id]
        assert [e.id for e in time_entry_service.find_all(user.id, activity_id=piano.id)] == [second.id]
        assert [e.id for e in time_entry_service.find_all(user.id, from_=base - timedelta(hours=3))] == [third.id, second.id]
        assert [e.id for e in time_entry_service.find_all(user.id, to=base - timedelta(hours=3))] == [second.id, first.id]

    def test_other_users_entries_are_invisible(self, time_entry_service, user, other_user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)

        assert time_entry_service.find_all(other_user.id) == []
        with pytest.raises(NotFoundError):
            time_entry_service.find_by_id(other_user.id, entry.id)
        with pytest.raises(NotFoundError):
            time_entry_service.update(other_user.id, entry.id, TimeEntryPatch(rating=SetTo(1)))
        with pytest.raises(NotFoundError):
            time_entry_service.delete(other_user.id, entry.id)
        with pytest.raises(NotFoundError):
            time_entry_service.start(other_user.id, activity.id)

    def test_delete_keeps_aggregates(self, time_entry_service, tag_service, heatmap_service, db_session, user, activity, clock):
        entry = stopped_entry(time_entry_service, clock, user.id, activity.id)
        [tag] = tag_service.get_or_create(user.id, ["focus"])
        time_entry_service.update(user.id, entry.id, TimeEntryPatch(tag_ids=SetTo([tag.id])))

        time_entry_service.delete(user.id, entry.id)

        with pytest.raises(NotFoundError):
            time_entry_service.find_by_id(user.id, entry.id)
        db_session.refresh(activity)
        assert activity.tracked_duration == 1800
        assert activity.current_streak == 1
        assert heatmap_service.query(user.id)[0].count == 1
        assert [t.name for t in tag_service.find_all(user.id)] == ["focus"]

    def test_delete_running_entry_frees_timer(self, time_entry_service, user, activity):
        entry = time_entry_service.start(user.id, activity.id)

        time_entry_service.delete(user.id, entry.id)

        assert time_entry_service.find_active(user.id) is None
        assert time_entry_service.start(user.id, activity.id).stopped_at is None
