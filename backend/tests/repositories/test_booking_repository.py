from datetime import datetime, time, timedelta, timezone

from tests.factories import add_booking, make_provider

from app.repositories.booking_repository import BookingRepository
from app.repositories.provider_repository import ProviderRepository


def test_get_for_party_customer_and_owner(db, customer, provider, provider_owner, service_day):
    booking = add_booking(db, customer, provider, service_day)
    repo = BookingRepository(db)

    assert repo.get_for_party(customer.id, booking_id=booking.id).id == booking.id
    assert repo.get_for_party(provider_owner.id, booking_id=booking.id).id == booking.id
    assert (
        repo.get_for_party(customer.id, reference=booking.booking_reference).id == booking.id
    )


def test_get_for_party_hides_bookings_from_strangers(db, customer, other_customer, provider, service_day):
    booking = add_booking(db, customer, provider, service_day)
    repo = BookingRepository(db)
    assert repo.get_for_party(other_customer.id, booking_id=booking.id) is None
    assert repo.get_for_party(other_customer.id, reference=booking.booking_reference) is None


def test_find_stale_pending_only_returns_old_pending_rows(db, customer, other_customer, provider, service_day):
    now = datetime.now(timezone.utc)
    second = make_provider(db, email="second@example.com", business_name="Second Shine")
    stale = add_booking(db, customer, provider, service_day, created_at=now - timedelta(hours=72))
    add_booking(
        db,
        other_customer,
        provider,
        service_day,
        service_time=time(14, 0),
        status="confirmed",
        created_at=now - timedelta(hours=72),
    )
    add_booking(db, customer, second, service_day)

    found = BookingRepository(db).find_stale_pending(now - timedelta(hours=48))
    assert [b.id for b in found] == [stale.id]


def test_references_are_generated(db, customer, provider, service_day):
    first = add_booking(db, customer, provider, service_day)
    assert first.booking_reference.startswith("BC")
    assert len(first.booking_reference) == 12


def test_travel_fee_defaults_to_zero(db, provider):
    assert ProviderRepository(db).get_travel_fee(provider.id, "10001") == 0


def test_travel_fee_lookup(db):
    from decimal import Decimal

    far = make_provider(db, email="far@example.com", travel_fee=Decimal("12.50"))
    assert ProviderRepository(db).get_travel_fee(far.id, "10001") == Decimal("12.50")
