"""Service tests for schedule expansion and removal."""

import threading
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from cinema.domain.errors import ErrorCode
from cinema.domain.schedule import ScheduleDefinition
from cinema.models import Movie, Room, Screening, Theater, Ticket, User
from cinema.models.screening import ScreeningSchedule
from cinema.services import scheduler

from tests.conftest import NOW

DAY_1 = date(2030, 6, 2)


def _daily_at_six(movie, room, days=7, **overrides):
    values = dict(
        movie_id=movie.id,
        room_id=room.id,
        start_date=DAY_1,
        end_date=DAY_1 + timedelta(days=days - 1),
        show_times=["18:00"],
        days_of_week=range(7),
        price=Decimal("11"),
    )
    values.update(overrides)
    return ScheduleDefinition.build(**values)


def _at(d, hour, minute=0):
    return datetime.combine(d, time(hour, minute), tzinfo=timezone.utc)


class TestExpandSchedule:
    def test_one_conflict_on_day_three(self, box_office, make_movie, make_room, make_screening, db):
        room = make_room()
        feature = make_movie(duration_minutes=120, title="Heat")
        short = make_movie(duration_minutes=90, title="Paprika")
        make_screening(feature, room, _at(DAY_1 + timedelta(days=2), 18))

        report = box_office.expand_schedule(_daily_at_six(short, room)).value

        assert report.created_count == 6
        assert report.conflicts == [(DAY_1 + timedelta(days=2), time(18, 0))]

        db.expire_all()
        created = db.query(Screening).filter(Screening.schedule_id == report.schedule_id).all()
        assert len(created) == 6
        assert all(s.price == Decimal("11") for s in created)

    def test_rerun_reports_every_slot_as_conflict(self, box_office, make_movie, make_room):
        movie, room = make_movie(duration_minutes=90), make_room()
        definition = _daily_at_six(movie, room)

        first = box_office.expand_schedule(definition).value
        second = box_office.expand_schedule(definition).value

        assert first.created_count == 7
        assert second.created_count == 0
        assert len(second.conflicts) == 7

    def test_past_slots_are_skipped_silently(self, box_office, make_movie, make_room, clock):
        movie, room = make_movie(duration_minutes=90), make_room()
        clock.now = _at(DAY_1 + timedelta(days=1), 18)  # day 2 18:00 has just started

        report = box_office.expand_schedule(_daily_at_six(movie, room)).value

        assert report.created_count == 5
        assert report.conflicts == []

    def test_late_night_screening_from_previous_day_conflicts(self, box_office, make_movie, make_room, make_screening):
        room = make_room()
        epic = make_movie(duration_minutes=240, title="Long Night")
        make_screening(epic, room, _at(DAY_1, 23))  # runs until 03:00 on day 2

        definition = _daily_at_six(make_movie(duration_minutes=60), room, days=2, show_times=["01:00"])
        report = box_office.expand_schedule(definition).value

        assert report.created_count == 1
        assert report.conflicts == [(DAY_1 + timedelta(days=1), time(1, 0))]

    def test_multiple_times_in_one_day_can_conflict_with_each_other(self, box_office, make_movie, make_room):
        movie, room = make_movie(duration_minutes=120), make_room()
        definition = _daily_at_six(movie, room, days=1, show_times=["18:00", "19:00", "20:00"])

        report = box_office.expand_schedule(definition).value

        assert report.created_count == 2
        assert report.conflicts == [(DAY_1, time(19, 0))]

    def test_selected_weekdays_only(self, box_office, make_movie, make_room):
        movie, room = make_movie(duration_minutes=90), make_room()
        report = box_office.expand_schedule(_daily_at_six(movie, room, days_of_week=[0, 6])).value
        # DAY_1 is a Sunday; the week ends on Saturday
        assert report.created_count == 2

    def test_inactive_room_is_rejected(self, box_office, make_movie, make_room, db):
        movie, room = make_movie(), make_room(is_active=False)

        result = box_office.expand_schedule(_daily_at_six(movie, room))

        assert result.code == ErrorCode.ROOM_INACTIVE
        db.expire_all()
        assert db.query(ScreeningSchedule).count() == 0

    def test_unknown_movie_is_rejected(self, box_office, make_room):
        definition = ScheduleDefinition.build(
            movie_id=uuid.uuid4(), room_id=make_room().id, start_date=DAY_1, end_date=DAY_1,
            show_times=["18:00"], days_of_week=[0], price=Decimal("10"),
        )
        assert box_office.expand_schedule(definition).code == ErrorCode.MOVIE_OR_ROOM_NOT_FOUND


class TestDeleteSchedule:
    def test_ticketed_screenings_are_kept(self, box_office, make_movie, make_room, make_user, db):
        movie, room = make_movie(duration_minutes=90), make_room()
        report = box_office.expand_schedule(_daily_at_six(movie, room, days=3)).value
        db.expire_all()
        first = (
            db.query(Screening)
            .filter(Screening.schedule_id == report.schedule_id)
            .order_by(Screening.show_time)
            .first()
        )
        assert box_office.book_seat(first.id, "A1", make_user().id).ok

        removal = box_office.delete_schedule(report.schedule_id).value

        assert removal.deactivated == 2
        assert removal.skipped == 1
        db.expire_all()
        assert db.get(Screening, first.id).is_active
        assert not db.get(ScreeningSchedule, report.schedule_id).is_active

    def test_started_screenings_are_left_alone(self, box_office, make_movie, make_room, clock, db):
        movie, room = make_movie(duration_minutes=90), make_room()
        report = box_office.expand_schedule(_daily_at_six(movie, room, days=3)).value
        clock.now = _at(DAY_1, 18, 30)

        removal = box_office.delete_schedule(report.schedule_id).value

        assert removal.deactivated == 2
        assert removal.skipped == 0

    def test_deleting_twice_is_not_found(self, box_office, make_movie, make_room):
        movie, room = make_movie(duration_minutes=90), make_room()
        schedule_id = box_office.expand_schedule(_daily_at_six(movie, room, days=1)).value.schedule_id
        assert box_office.delete_schedule(schedule_id).ok

        assert box_office.delete_schedule(schedule_id).code == ErrorCode.SCHEDULE_NOT_FOUND

    def test_each_screening_is_locked_before_its_ticket_check(self, box_office, make_movie, make_room, lock_log, monkeypatch):
        movie, room = make_movie(), make_room()
        report = box_office.expand_schedule(_daily_at_six(movie, room, days=3)).value
        checks = []
        original_check = scheduler.has_active_tickets

        def recording_check(session, screening_id):
            checks.append(("check", screening_id))
            lock_log.append(("check", screening_id))
            return original_check(session, screening_id)

        monkeypatch.setattr(scheduler, "has_active_tickets", recording_check)
        del lock_log[:]

        assert box_office.delete_schedule(report.schedule_id).ok

        assert lock_log[0] == ("room", room.id)
        assert len(checks) == 3
        for _, screening_id in checks:
            assert lock_log.index(("screening", screening_id)) < lock_log.index(("check", screening_id))

    def test_buyer_racing_the_removal_never_holds_a_ticket_on_a_removed_screening(
        self, shared_box_office, shared_session_factory, seed, monkeypatch,
    ):
        theater = Theater(name="Uptown")
        room = Room(theater=theater, name="Screen 4", room_number=4, rows=3, seats_per_row=3)
        movie = Movie(title="Alien", duration_minutes=117)
        buyer = User(email="racer@example.com", password_hash="x", full_name="Racer")
        seed(theater, room, movie, buyer)
        report = shared_box_office.expand_schedule(_daily_at_six(movie, room, days=1)).value
        with shared_session_factory() as session:
            screening_id = session.query(Screening.id).filter(Screening.schedule_id == report.schedule_id).scalar()

        purchase = {}
        original_check = scheduler.has_active_tickets

        def check_while_a_buyer_arrives(session, sid):
            # The buyer shows up between the removal's lookup and its write
            thread = threading.Thread(
                target=lambda: purchase.setdefault("result", shared_box_office.book_seat(sid, "A1", buyer.id))
            )
            thread.start()
            purchase["thread"] = thread
            return original_check(session, sid)

        monkeypatch.setattr(scheduler, "has_active_tickets", check_while_a_buyer_arrives)

        removal = shared_box_office.delete_schedule(report.schedule_id)
        purchase["thread"].join(timeout=60)

        assert removal.ok
        with shared_session_factory() as session:
            stored = session.get(Screening, screening_id)
            active = session.query(Ticket).filter(
                Ticket.screening_id == screening_id, Ticket.status == "Active"
            ).count()
        assert stored.is_active or active == 0
        if removal.value.deactivated:
            assert purchase["result"].code == ErrorCode.SCREENING_INACTIVE
