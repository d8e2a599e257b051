"""Route tests for booking confirmation, dashboards, status changes and admin moderation"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from bookify.domain.bookings.repository import BookingRepository
from bookify.models import Appointment, UserAppointment


def book(client, provider_id, day, slot="02:30 PM", services=("svc-haircut", "svc-beard")):
    return client.post(
        "/bookings",
        json={
            "providerId": provider_id,
            "serviceIds": list(services),
            "date": day.isoformat(),
            "timeSlot": slot,
        },
    )


class TestConfirmBooking:
    def test_booking_writes_matching_global_and_user_records(self, client, db, login, customer, provider, next_week):
        login(customer)
        response = book(client, provider.id, next_week)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Your appointment has been confirmed."
        appointment = body["appointment"]
        assert appointment["totalPrice"] == 799.99
        assert appointment["status"] == "confirmed"
        assert appointment["paymentMethod"] == "pay_at_venue"
        assert appointment["estimatedDuration"] == "1 hr 45 mins"
        assert appointment["date"].startswith(f"{next_week.isoformat()}T14:30:00")

        stored = db.query(Appointment).one()
        copy = db.query(UserAppointment).one()
        assert stored.id == copy.id == appointment["id"]
        assert stored.user_id == copy.user_id == customer.id
        assert stored.services == copy.services
        assert stored.total_price == copy.total_price == 799.99
        assert stored.date == copy.date
        assert stored.provider_name == copy.provider_name == "Sharp Cuts"
        assert stored.user_name == "Priya Sharma"

    def test_price_comes_from_catalog_not_request(self, client, db, login, customer, provider, next_week):
        login(customer)
        response = client.post(
            "/bookings",
            json={
                "providerId": provider.id,
                "serviceIds": ["svc-haircut"],
                "date": next_week.isoformat(),
                "timeSlot": "10:00 AM",
                "totalPrice": 1,
            },
        )
        assert response.json()["appointment"]["totalPrice"] == 500.0

    def test_duplicate_service_ids_collapse_with_notice(self, client, login, customer, provider, next_week):
        login(customer)
        response = book(client, provider.id, next_week, services=("svc-haircut", "svc-haircut"))
        body = response.json()
        assert len(body["appointment"]["services"]) == 1
        assert body["notices"] == ["Haircut is already selected."]

    def test_taken_slot_conflicts(self, client, login, customer, other_customer, provider, next_week):
        login(customer)
        assert book(client, provider.id, next_week).status_code == 201

        login(other_customer)
        response = book(client, provider.id, next_week)
        assert response.status_code == 409

    def test_cancelled_booking_frees_the_slot(self, client, login, customer, other_customer, provider, next_week):
        login(customer)
        appointment_id = book(client, provider.id, next_week).json()["appointment"]["id"]
        client.patch(f"/bookings/{appointment_id}/status", json={"status": "cancelled"})

        login(other_customer)
        assert book(client, provider.id, next_week).status_code == 201

    def test_past_time_is_rejected(self, client, login, customer, provider):
        login(customer)
        yesterday = datetime.now().date() - timedelta(days=1)
        assert book(client, provider.id, yesterday).status_code == 400

    @pytest.mark.parametrize("slot", ["08:00 AM", "14:30", ""])
    def test_slot_outside_list_is_rejected(self, client, login, customer, provider, next_week, slot):
        login(customer)
        assert book(client, provider.id, next_week, slot=slot).status_code == 422

    def test_unknown_provider_is_404(self, client, login, customer, next_week):
        login(customer)
        assert book(client, "nobody", next_week).status_code == 404

    def test_failed_second_write_rolls_back_the_first(self, client, db, login, customer, other_customer, provider, next_week):
        # A user copy already holds the id the next booking will get, so the commit fails
        existing_copy = UserAppointment(
            id="appt-fixed",
            user_id=other_customer.id,
            provider_id=provider.id,
            provider_name="Sharp Cuts",
            services=[],
            total_price=0,
            date=datetime.now() + timedelta(days=30),
        )
        db.add(existing_copy)
        db.commit()
        db.expunge(existing_copy)

        login(customer)
        with patch("bookify.domain.bookings.service.generate_id", return_value="appt-fixed"):
            response = book(client, provider.id, next_week)

        assert response.status_code == 500
        assert response.json()["detail"] == (
            "Booking failed. Could not save your appointment. Please try again."
        )
        assert db.query(Appointment).count() == 0
        assert db.query(UserAppointment).one().user_id == other_customer.id

    def test_concurrent_booking_of_same_slot_conflicts(self, client, db, login, customer, other_customer, provider, next_week):
        login(customer)
        assert book(client, provider.id, next_week).status_code == 201
        winner = db.query(Appointment).one()

        # The second request checked before the first committed
        login(other_customer)
        with patch.object(BookingRepository, "find_conflict", side_effect=[None, winner]):
            response = book(client, provider.id, next_week)

        assert response.status_code == 409
        assert db.query(Appointment).count() == 1
        assert db.query(UserAppointment).count() == 1


class TestSlotAvailability:
    def test_booked_slot_is_unavailable(self, client, login, customer, provider, next_week):
        login(customer)
        book(client, provider.id, next_week, slot="11:00 AM")

        response = client.get(f"/providers/{provider.id}/slots", params={"date": next_week.isoformat()})
        assert response.status_code == 200
        slots = {s["timeSlot"]: s["available"] for s in response.json()["slots"]}
        assert len(slots) == 18
        assert slots["11:00 AM"] is False
        assert slots["11:30 AM"] is True


class TestProviderDashboard:
    def test_lists_upcoming_ascending(self, client, db, login, customer, provider, provider_user, next_week):
        login(customer)
        book(client, provider.id, next_week, slot="03:00 PM")
        book(client, provider.id, next_week, slot="09:30 AM")
        db.add(
            Appointment(
                user_id=customer.id,
                provider_id=provider.id,
                provider_name="Sharp Cuts",
                services=[],
                total_price=0,
                date=datetime.now() - timedelta(days=2),
                search_text="sharp cuts",
            )
        )
        db.commit()

        login(provider_user)
        response = client.get("/bookings/provider")
        assert response.status_code == 200
        times = [a["date"][11:16] for a in response.json()]
        assert times == ["09:30", "15:00"]

    def test_customer_cannot_open_dashboard(self, client, login, customer):
        login(customer)
        assert client.get("/bookings/provider").status_code == 403

    def test_missing_index_is_503(self, client, login, provider_user):
        login(provider_user)
        error = SQLAlchemyError("The query requires an index. It is still building.")
        with patch.object(BookingRepository, "get_upcoming_for_provider", side_effect=error):
            response = client.get("/bookings/provider")

        assert response.status_code == 503
        assert "index" in response.json()["detail"]

    def test_other_read_failure_is_500(self, client, login, provider_user):
        login(provider_user)
        with patch.object(BookingRepository, "get_upcoming_for_provider", side_effect=SQLAlchemyError("boom")):
            response = client.get("/bookings/provider")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to load appointments. Please try again."


class TestStatusChanges:
    @pytest.fixture
    def appointment_id(self, client, login, customer, provider, next_week):
        login(customer)
        return book(client, provider.id, next_week).json()["appointment"]["id"]

    def test_customer_cancels_both_copies(self, client, db, appointment_id):
        response = client.patch(f"/bookings/{appointment_id}/status", json={"status": "cancelled"})
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        db.expire_all()
        assert db.query(Appointment).one().status == "cancelled"
        assert db.query(UserAppointment).one().status == "cancelled"

    def test_customer_cannot_confirm(self, client, db, appointment_id):
        db.query(Appointment).update({"status": "pending"})
        db.commit()
        response = client.patch(f"/bookings/{appointment_id}/status", json={"status": "confirmed"})
        assert response.status_code == 403

    def test_cancelled_is_terminal(self, client, login, provider_user, appointment_id):
        client.patch(f"/bookings/{appointment_id}/status", json={"status": "cancelled"})

        login(provider_user)
        response = client.patch(f"/bookings/{appointment_id}/status", json={"status": "confirmed"})
        assert response.status_code == 409

    def test_stranger_cannot_see_booking(self, client, login, other_customer, appointment_id):
        login(other_customer)
        assert client.get(f"/bookings/{appointment_id}").status_code == 404
        response = client.patch(f"/bookings/{appointment_id}/status", json={"status": "cancelled"})
        assert response.status_code == 404


class TestAdminBookings:
    @pytest.fixture
    def seeded(self, client, login, customer, other_customer, provider, next_week):
        login(customer)
        first = book(client, provider.id, next_week, slot="10:00 AM", services=("svc-haircut",))
        login(other_customer)
        second = book(client, provider.id, next_week, slot="04:00 PM", services=("svc-beard",))
        return first.json()["appointment"]["id"], second.json()["appointment"]["id"]

    def test_requires_admin(self, client, login, customer):
        login(customer)
        assert client.get("/admin/bookings").status_code == 403

    def test_search_matches_service_names(self, client, login, admin, seeded):
        login(admin)
        body = client.get("/admin/bookings", params={"search": "BEARD"}).json()
        assert body["total"] == 1
        assert body["appointments"][0]["id"] == seeded[1]

    def test_search_matches_names_with_html_characters(self, client, login, admin, customer, provider_user, next_week):
        login(provider_user)
        combo = client.post(
            "/providers/me/services",
            json={"name": "Hair & Beard", "price": "₹700", "duration": "1 hr 15 mins"},
        ).json()

        login(customer)
        booked = book(client, provider_user.id, next_week, services=(combo["id"],))
        assert booked.status_code == 201

        login(admin)
        body = client.get("/admin/bookings", params={"search": "hair & beard"}).json()
        assert body["total"] == 1
        assert body["appointments"][0]["id"] == booked.json()["appointment"]["id"]

    @pytest.mark.parametrize("term", ["%", "_", "\\"])
    def test_search_wildcards_are_literal(self, client, login, admin, seeded, term):
        login(admin)
        assert client.get("/admin/bookings", params={"search": term}).json()["total"] == 0

    def test_search_matches_customer_and_provider(self, client, login, admin, seeded):
        login(admin)
        assert client.get("/admin/bookings", params={"search": "priya"}).json()["total"] == 1
        assert client.get("/admin/bookings", params={"search": "sharp cuts"}).json()["total"] == 2

    def test_status_filter_and_sort(self, client, login, admin, seeded):
        login(admin)
        client.patch(f"/bookings/{seeded[0]}/status", json={"status": "cancelled"})

        cancelled = client.get("/admin/bookings", params={"status": "cancelled"}).json()
        assert [a["id"] for a in cancelled["appointments"]] == [seeded[0]]

        everything = client.get("/admin/bookings", params={"status": "all", "sort": "asc"}).json()
        assert [a["id"] for a in everything["appointments"]] == list(seeded)

        newest_first = client.get("/admin/bookings").json()
        assert [a["id"] for a in newest_first["appointments"]] == list(reversed(seeded))

    def test_delete_removes_both_copies(self, client, db, login, admin, seeded):
        login(admin)
        response = client.delete(f"/admin/bookings/{seeded[0]}")
        assert response.status_code == 200
        assert response.json()["userCopyRemoved"] is True

        assert db.query(Appointment).filter(Appointment.id == seeded[0]).first() is None
        assert db.query(UserAppointment).filter(UserAppointment.id == seeded[0]).first() is None
        assert db.query(Appointment).count() == 1

    def test_delete_tolerates_missing_user_copy(self, client, db, login, admin, seeded):
        db.query(UserAppointment).filter(UserAppointment.id == seeded[0]).delete()
        db.commit()
        login(admin)

        response = client.delete(f"/admin/bookings/{seeded[0]}")
        assert response.status_code == 200
        assert response.json()["userCopyRemoved"] is False

    def test_delete_unknown_is_404(self, client, login, admin):
        login(admin)
        assert client.delete("/admin/bookings/missing").status_code == 404
