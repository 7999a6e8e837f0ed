"""Service tests for TicketLedger: booking, cancellation and check-in."""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from cinema.domain.errors import ErrorCode
from cinema.models import Movie, Room, Screening, Theater, Ticket, User
from cinema.models.promo_code import PromoCode

from tests.conftest import NOW, run_concurrently


@pytest.fixture
def screening(make_movie, make_room, make_screening):
    return make_screening(make_movie(), make_room(rows=10, seats_per_row=15), NOW + timedelta(days=2))


class TestBookSeat:
    def test_books_free_seat(self, box_office, screening, make_user):
        user = make_user()
        result = box_office.book_seat(screening.id, "A1", user.id)

        assert result.ok
        ticket = result.value
        assert ticket.seat_label == "A1"
        assert ticket.status == "Active"
        assert ticket.price == Decimal("12.00")
        assert ticket.discount_amount is None
        assert ticket.purchase_date == NOW

    def test_seat_label_is_stored_normalized(self, box_office, screening, make_user):
        result = box_office.book_seat(screening.id, "c07", make_user().id)
        assert result.value.seat_label == "C7"

    def test_taken_seat_is_rejected(self, box_office, screening, make_user, active_tickets):
        assert box_office.book_seat(screening.id, "A1", make_user().id).ok

        result = box_office.book_seat(screening.id, "a01", make_user().id)

        assert result.code == ErrorCode.SEAT_TAKEN
        assert len(active_tickets(screening.id)) == 1

    def test_second_ticket_for_same_user_is_rejected(self, box_office, screening, make_user):
        user = make_user()
        assert box_office.book_seat(screening.id, "A1", user.id).ok

        result = box_office.book_seat(screening.id, "A2", user.id)

        assert result.code == ErrorCode.DUPLICATE_PURCHASE

    @pytest.mark.parametrize("label", ["K1", "A16", "A0", "1A", ""])
    def test_invalid_seat_is_rejected(self, box_office, screening, make_user, label):
        assert box_office.book_seat(screening.id, label, make_user().id).code == ErrorCode.INVALID_SEAT

    def test_unknown_screening(self, box_office, make_user):
        result = box_office.book_seat(uuid.uuid4(), "A1", make_user().id)
        assert result.code == ErrorCode.SCREENING_NOT_FOUND

    def test_inactive_screening(self, box_office, screening, make_user, db):
        screening.is_active = False
        db.commit()
        assert box_office.book_seat(screening.id, "A1", make_user().id).code == ErrorCode.SCREENING_INACTIVE

    def test_started_screening(self, box_office, screening, make_user, clock):
        clock.now = screening.show_time
        assert box_office.book_seat(screening.id, "A1", make_user().id).code == ErrorCode.SCREENING_IN_PAST

    def test_inactive_check_precedes_seat_validation(self, box_office, screening, make_user, db):
        screening.is_active = False
        db.commit()
        assert box_office.book_seat(screening.id, "Z99", make_user().id).code == ErrorCode.SCREENING_INACTIVE

    def test_cancelled_seat_can_be_rebooked(self, box_office, screening, make_user):
        first = box_office.book_seat(screening.id, "D4", make_user().id).value
        assert box_office.cancel_ticket(first.id, first.user_id).ok

        again = box_office.book_seat(screening.id, "D4", make_user().id)

        assert again.ok

    def test_every_seat_can_be_sold_exactly_once(self, box_office, make_movie, make_room, make_screening, make_user, active_tickets):
        small = make_screening(make_movie(), make_room(rows=2, seats_per_row=3), NOW + timedelta(days=1))
        labels = ["A1", "A2", "A3", "B1", "B2", "B3"]

        for label in labels:
            assert box_office.book_seat(small.id, label, make_user().id).ok
        for label in labels:
            assert box_office.book_seat(small.id, label, make_user().id).code == ErrorCode.SEAT_TAKEN

        assert sorted(t.seat_label for t in active_tickets(small.id)) == labels


class TestPromoAtBooking:
    def test_discount_is_capped(self, box_office, make_movie, make_room, make_screening, make_user, make_promo, db):
        twenty = make_screening(make_movie(), make_room(), NOW + timedelta(days=1), price=Decimal("20"))
        promo = make_promo("HALF", discount_percent=Decimal("50"), max_discount_amount=Decimal("5"))

        ticket = box_office.book_seat(twenty.id, "A1", make_user().id, promo_code="half").value

        assert ticket.discount_amount == Decimal("5.00")
        assert ticket.amount_paid == Decimal("15.00")
        db.expire_all()
        assert db.get(PromoCode, promo.id).current_uses == 1

    def test_usage_not_counted_when_booking_fails(self, box_office, screening, make_user, make_promo, db):
        promo = make_promo("SAVE10", discount_percent=Decimal("10"))
        assert box_office.book_seat(screening.id, "A1", make_user().id, promo_code="SAVE10").ok

        failed = box_office.book_seat(screening.id, "A1", make_user().id, promo_code="SAVE10")

        assert failed.code == ErrorCode.SEAT_TAKEN
        db.expire_all()
        assert db.get(PromoCode, promo.id).current_uses == 1

    def test_invalid_code_is_ignored(self, box_office, screening, make_user):
        ticket = box_office.book_seat(screening.id, "A1", make_user().id, promo_code="NOPE").value
        assert ticket.discount_amount is None
        assert ticket.amount_paid == Decimal("12.00")

    def test_exhausted_code_is_ignored(self, box_office, screening, make_user, make_promo, db):
        promo = make_promo("ONCE", max_uses=1)
        first = box_office.book_seat(screening.id, "A1", make_user().id, promo_code="ONCE").value
        second = box_office.book_seat(screening.id, "A2", make_user().id, promo_code="ONCE").value

        assert first.discount_amount == Decimal("6.00")
        assert second.discount_amount is None
        db.expire_all()
        assert db.get(PromoCode, promo.id).current_uses == 1

    def test_expired_code_is_ignored(self, box_office, screening, make_user, make_promo):
        make_promo("OLD", expires_at=NOW - timedelta(days=1))
        ticket = box_office.book_seat(screening.id, "A1", make_user().id, promo_code="OLD").value
        assert ticket.discount_amount is None


class TestCancel:
    def _book_at(self, box_office, make_movie, make_room, make_screening, make_user, show_time):
        screening = make_screening(make_movie(), make_room(), show_time)
        return box_office.book_seat(screening.id, "A1", make_user().id).value

    def test_same_day_screening_cannot_be_cancelled(self, box_office, make_movie, make_room, make_screening, make_user):
        ticket = self._book_at(
            box_office, make_movie, make_room, make_screening, make_user,
            NOW.replace(hour=23, minute=59),
        )

        result = box_office.cancel_ticket(ticket.id, ticket.user_id)

        assert result.code == ErrorCode.CANCELLATION_WINDOW_CLOSED

    def test_next_day_screening_can_be_cancelled(self, box_office, make_movie, make_room, make_screening, make_user):
        ticket = self._book_at(
            box_office, make_movie, make_room, make_screening, make_user,
            NOW.replace(hour=0, minute=1) + timedelta(days=1),
        )

        result = box_office.cancel_ticket(ticket.id, ticket.user_id, reason="Plans changed")

        assert result.ok
        assert result.value.status == "Cancelled"
        assert result.value.cancelled_at == NOW
        assert result.value.refund_reason == "Plans changed"

    def test_other_users_ticket(self, box_office, screening, make_user):
        ticket = box_office.book_seat(screening.id, "A1", make_user().id).value
        result = box_office.cancel_ticket(ticket.id, make_user().id)
        assert result.code == ErrorCode.NOT_OWNER

    def test_admin_may_cancel_any_ticket(self, box_office, screening, make_user):
        ticket = box_office.book_seat(screening.id, "A1", make_user().id).value
        assert box_office.cancel_ticket(ticket.id, None, as_admin=True).ok

    def test_cancelled_ticket_is_final(self, box_office, screening, make_user):
        ticket = box_office.book_seat(screening.id, "A1", make_user().id).value
        box_office.cancel_ticket(ticket.id, ticket.user_id)

        result = box_office.cancel_ticket(ticket.id, ticket.user_id)

        assert result.code == ErrorCode.ALREADY_FINALIZED

    def test_unknown_ticket(self, box_office, make_user):
        assert box_office.cancel_ticket(uuid.uuid4(), make_user().id).code == ErrorCode.TICKET_NOT_FOUND


class TestCheckIn:
    def test_check_in_marks_used(self, box_office, screening, make_user):
        ticket = box_office.book_seat(screening.id, "A1", make_user().id).value

        result = box_office.check_in(ticket.id)

        assert result.ok
        assert result.value.status == "Used"
        assert result.value.checked_in_at == NOW

    def test_second_check_in_is_rejected(self, box_office, screening, make_user):
        ticket = box_office.book_seat(screening.id, "A1", make_user().id).value
        box_office.check_in(ticket.id)
        assert box_office.check_in(ticket.id).code == ErrorCode.ALREADY_FINALIZED

    def test_used_ticket_cannot_be_cancelled(self, box_office, screening, make_user):
        ticket = box_office.book_seat(screening.id, "A1", make_user().id).value
        box_office.check_in(ticket.id)
        assert box_office.cancel_ticket(ticket.id, ticket.user_id).code == ErrorCode.ALREADY_FINALIZED


class TestBulkOperations:
    def test_bulk_cancel_reports_per_ticket(self, box_office, screening, make_user):
        first = box_office.book_seat(screening.id, "A1", make_user().id).value
        second = box_office.book_seat(screening.id, "A2", make_user().id).value
        box_office.check_in(second.id)
        missing = uuid.uuid4()

        report = box_office.bulk_cancel([first.id, second.id, missing], reason="Projector broke")

        assert report.succeeded == 1
        assert report.skipped == 2
        assert report.errors == {
            str(second.id): "ALREADY_FINALIZED",
            str(missing): "TICKET_NOT_FOUND",
        }

    def test_bulk_mark_used(self, box_office, screening, make_user):
        tickets = [box_office.book_seat(screening.id, f"B{n}", make_user().id).value for n in (1, 2, 3)]
        box_office.cancel_ticket(tickets[0].id, tickets[0].user_id)

        report = box_office.bulk_mark_used([t.id for t in tickets])

        assert report.succeeded == 2
        assert report.errors == {str(tickets[0].id): "ALREADY_FINALIZED"}


class TestConflictBoundary:
    def test_database_abort_is_reported_retryable_and_leaves_nothing(self, box_office, screening, make_user, active_tickets):
        """A unique-index violation at commit time rolls back the whole unit."""
        users = [make_user(), make_user()]

        def double_sell(uow):
            for user in users:
                uow.session.add(Ticket(
                    screening_id=screening.id, user_id=user.id, seat_label="A1",
                    price=Decimal("12"), status="Active",
                ))

        result = box_office._run("double_sell", double_sell)

        assert result.code == ErrorCode.CONFLICT_RETRYABLE
        assert active_tickets(screening.id) == []


class TestConcurrentBooking:
    """Several buyers hitting the same screening at once, on a shared database."""

    @pytest.fixture
    def shared_screening(self, seed):
        theater = Theater(name="Uptown")
        room = Room(theater=theater, name="Screen 2", room_number=2, rows=5, seats_per_row=5)
        movie = Movie(title="Heat", duration_minutes=170)
        seed(theater, room, movie)
        (screening,) = seed(Screening(
            movie_id=movie.id, room_id=room.id, show_time=NOW + timedelta(days=3),
            price=Decimal("20.00"), is_active=True,
        ))
        return screening

    @pytest.fixture
    def buyers(self, seed):
        def _buyers(count):
            return seed(*[
                User(email=f"buyer{i}@example.com", password_hash="x", full_name=f"Buyer {i}")
                for i in range(count)
            ])

        return _buyers

    def test_same_seat_is_sold_once(self, shared_box_office, shared_session_factory, shared_screening, buyers):
        first, second = buyers(2)

        results = run_concurrently(
            lambda: shared_box_office.book_seat(shared_screening.id, "C3", first.id),
            lambda: shared_box_office.book_seat(shared_screening.id, "C3", second.id),
        )

        winners = [r for r in results if r.ok]
        losers = [r for r in results if not r.ok]
        assert len(winners) == 1
        assert losers[0].code in (ErrorCode.SEAT_TAKEN, ErrorCode.CONFLICT_RETRYABLE)
        with shared_session_factory() as session:
            sold = session.query(Ticket).filter(
                Ticket.screening_id == shared_screening.id, Ticket.status == "Active"
            ).all()
        assert [t.seat_label for t in sold] == ["C3"]

    def test_same_user_buys_once(self, shared_box_office, shared_screening, buyers):
        (buyer,) = buyers(1)

        results = run_concurrently(
            lambda: shared_box_office.book_seat(shared_screening.id, "A1", buyer.id),
            lambda: shared_box_office.book_seat(shared_screening.id, "A2", buyer.id),
        )

        assert sum(r.ok for r in results) == 1
        assert [r.code for r in results if not r.ok][0] in (
            ErrorCode.DUPLICATE_PURCHASE, ErrorCode.CONFLICT_RETRYABLE,
        )

    def test_last_promo_use_is_redeemed_once(self, shared_box_office, shared_session_factory, shared_screening, buyers, seed):
        (promo,) = seed(PromoCode(
            code="LASTONE", discount_percent=Decimal("50"), max_uses=1, current_uses=0, is_active=True,
        ))
        people = buyers(3)
        seats = ["A1", "B2", "C3"]

        results = run_concurrently(*[
            (lambda user, seat: lambda: shared_box_office.book_seat(
                shared_screening.id, seat, user.id, promo_code="LASTONE"
            ))(user, seat)
            for user, seat in zip(people, seats)
        ])

        # An exhausted code is ignored, so every buyer still gets a seat
        assert all(r.ok for r in results)
        discounted = [r.value for r in results if r.value.discount_amount]
        assert len(discounted) == 1
        assert discounted[0].discount_amount == Decimal("10.00")
        with shared_session_factory() as session:
            stored = session.get(PromoCode, promo.id)
            assert stored.current_uses == 1
