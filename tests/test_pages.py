import json
import threading

import pytest
from pydantic import ValidationError as SchemaValidationError

from conftest import PAGE_DRAFT, auth_headers
from servicedome.domain.pages.schemas import (
    CategoryCreate,
    DeliverySettings,
    PageCreate,
    PageUpdate,
    ServiceCreate,
    ServiceUpdate,
)
from servicedome.domain.pages.service import PageService
from servicedome.errors import Forbidden, NotFound, QuotaExceeded, ValidationError
from servicedome.models import Account, BusinessPage, VendorProfile


def test_create_page_round_trips_opening_hours(db, vendor):
    page = PageService(db).create_page(vendor, PageCreate(**PAGE_DRAFT))

    rendered = PageService(db).get_page(page.id)
    assert rendered["businessName"] == "Sharp Cuts"
    assert rendered["category"] == {"name": "Barbers", "slug": "barbers", "image": None}
    assert rendered["openingHours"] == [
        {"day": "Monday", "openingTime": "09:00", "closingTime": "17:00", "isClosed": False},
        {"day": "Sunday", "openingTime": "00:00", "closingTime": "00:00", "isClosed": True},
    ]
    assert rendered["services"] == []
    assert rendered["reviewSummary"] == {"count": 0, "averageRating": None}


def test_json_string_fields_and_flat_location_are_normalized():
    draft = PageCreate(
        businessName="Glow",
        category=json.dumps({"name": "Nail Salons"}),
        openingHours=json.dumps([{"day": "tuesday", "openingTime": "10:00", "closingTime": "18:00"}]),
        latitude=40.7,
        longitude=-74.0,
        address="2 Broadway",
    )
    assert draft.category.slug == "nail-salons"
    assert draft.openingHours[0].day == "Tuesday"
    assert draft.location.address == "2 Broadway"


@pytest.mark.parametrize(
    "opening_hours",
    [
        [{"day": "Funday", "openingTime": "09:00", "closingTime": "17:00"}],
        [{"day": "Monday", "openingTime": "09:00"}],
        [{"day": "Monday", "openingTime": "09:00", "closingTime": "  "}],
        [
            {"day": "Monday", "openingTime": "09:00", "closingTime": "17:00"},
            {"day": "monday", "openingTime": "10:00", "closingTime": "12:00"},
        ],
        "not json",
    ],
)
def test_invalid_schedule_is_rejected(opening_hours):
    with pytest.raises(SchemaValidationError):
        PageCreate(**{**PAGE_DRAFT, "openingHours": opening_hours})


def test_location_bounds():
    with pytest.raises(SchemaValidationError):
        PageCreate(**{**PAGE_DRAFT, "location": {"latitude": 91, "longitude": 0}})


def test_only_vendors_create_pages(db, customer):
    with pytest.raises(Forbidden):
        PageService(db).create_page(customer, PageCreate(**PAGE_DRAFT))


def test_free_vendor_is_limited_to_one_page(db, vendor, make_page):
    make_page(vendor)
    with pytest.raises(QuotaExceeded):
        make_page(vendor, businessName="Second")

    assert db.query(BusinessPage).filter_by(vendor_id=vendor.id).count() == 1
    db.expire_all()
    assert db.query(VendorProfile).filter_by(account_id=vendor.id).one().page_count == 1


def test_premium_vendor_has_no_page_limit(make_account, make_page, db):
    premium = make_account(roles=("Vendor",), premium=True)
    for i in range(3):
        make_page(premium, businessName=f"Branch {i}")
    assert db.query(BusinessPage).filter_by(vendor_id=premium.id).count() == 3


def test_deleting_a_page_frees_the_quota(db, vendor, page, make_page):
    PageService(db).delete_page(page.id, vendor.id)
    make_page(vendor, businessName="Replacement")
    assert db.query(BusinessPage).filter_by(vendor_id=vendor.id).count() == 1


def test_concurrent_page_creation_by_free_vendor(session_factory, vendor):
    """Two simultaneous creations for one Free vendor: exactly one page survives"""
    barrier = threading.Barrier(2)
    outcomes = []

    def create(name):
        session = session_factory()
        try:
            owner = session.get(Account, vendor.id)
            barrier.wait()
            PageService(session).create_page(owner, PageCreate(**{**PAGE_DRAFT, "businessName": name}))
            outcomes.append("created")
        except QuotaExceeded:
            outcomes.append("quota")
        finally:
            session.close()

    threads = [threading.Thread(target=create, args=(f"Page {i}",)) for i in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["created", "quota"]
    check = session_factory()
    try:
        assert check.query(BusinessPage).filter_by(vendor_id=vendor.id).count() == 1
    finally:
        check.close()


def test_stale_quota_read_cannot_pass_the_limit(session_factory, vendor):
    """A session that loaded the vendor before another page was created still hits the limit"""
    first, second = session_factory(), session_factory()
    try:
        stale_owner = second.get(Account, vendor.id)
        assert stale_owner.vendor_profile.page_count == 0

        PageService(first).create_page(first.get(Account, vendor.id), PageCreate(**PAGE_DRAFT))

        with pytest.raises(QuotaExceeded):
            PageService(second).create_page(stale_owner, PageCreate(**PAGE_DRAFT))
    finally:
        first.close()
        second.close()


def test_only_owner_mutates_page(db, page, make_account):
    other = make_account(roles=("Vendor",))
    service = PageService(db)
    with pytest.raises(Forbidden):
        service.update_page(page.id, other.id, PageUpdate(businessName="Hijack"))
    with pytest.raises(Forbidden):
        service.delete_page(page.id, other.id)
    with pytest.raises(NotFound):
        service.update_page(9999, other.id, PageUpdate(businessName="Ghost"))


def test_update_merges_location_and_sanitizes_text(db, vendor, page):
    updated = PageService(db).update_page(
        page.id,
        vendor.id,
        PageUpdate(location={"address": "9 New Rd"}, about="<script>x</script>Fresh <b>cuts</b>"),
    )
    assert updated.address == "9 New Rd"
    assert updated.latitude == 51.5
    assert updated.longitude == -0.12
    assert "<" not in updated.about
    assert "Fresh cuts" in updated.about


def test_services_resolve_categories_for_display(db, vendor, page):
    service = PageService(db)
    haircuts = service.create_category(page.id, vendor.id, CategoryCreate(name="Haircuts"))
    service.add_service(
        page.id, vendor.id, ServiceCreate(name="Fade", categoryId=haircuts.id, price=20, duration=30)
    )
    service.add_service(page.id, vendor.id, ServiceCreate(name="Beard trim", category="Grooming", price=10))

    services = service.get_page(page.id)["services"]
    assert services[0]["category"] == {"id": haircuts.id, "name": "Haircuts"}
    assert services[1]["category"] == {"id": None, "name": "Grooming"}


def test_service_validation(db, vendor, page, make_account, make_page):
    with pytest.raises(SchemaValidationError):
        ServiceCreate(name="Free money", category="Misc", price=-1)
    with pytest.raises(SchemaValidationError):
        ServiceCreate(name="No category", price=5)
    with pytest.raises(SchemaValidationError):
        ServiceUpdate(duration=-5)

    other_vendor = make_account(roles=("Vendor",))
    other_page = make_page(other_vendor)
    foreign = PageService(db).create_category(other_page.id, other_vendor.id, CategoryCreate(name="Theirs"))
    with pytest.raises(ValidationError):
        PageService(db).add_service(page.id, vendor.id, ServiceCreate(name="Cut", categoryId=foreign.id))


def test_update_and_delete_service(db, vendor, page):
    service = PageService(db)
    offering = service.add_service(page.id, vendor.id, ServiceCreate(name="Cut", category="Hair", price=15))

    updated = service.update_service(page.id, offering.id, vendor.id, ServiceUpdate(price=18, duration=45))
    assert (updated.price, updated.duration, updated.name) == (18, 45, "Cut")

    service.delete_service(page.id, offering.id, vendor.id)
    assert service.list_services(page.id) == []
    with pytest.raises(NotFound):
        service.delete_service(page.id, offering.id, vendor.id)


def test_delivery_settings_defaults_and_update(db, vendor, page):
    service = PageService(db)
    assert service.get_delivery_settings(page.id)["enabled"] is False

    settings = DeliverySettings(
        enabled=True,
        fixedFee=2.5,
        distanceBased=True,
        rates=[{"distance": 5, "fee": 3}],
        availableZones=["Zone 1"],
        selfPickup={"enabled": True, "location": "Back door"},
    )
    service.set_delivery_settings(page.id, vendor.id, settings)
    stored = service.get_delivery_settings(page.id)
    assert stored["rates"] == [{"distance": 5.0, "fee": 3.0}]
    assert stored["selfPickup"]["location"] == "Back door"

    with pytest.raises(SchemaValidationError):
        DeliverySettings(fixedFee=-1)


def test_list_pages_filters_by_category(db, make_account, make_page):
    barber = make_page(make_account(roles=("Vendor",)))
    make_page(make_account(roles=("Vendor",)), category={"name": "Cleaners"})

    by_slug = PageService(db).list_pages("barbers")
    by_name = PageService(db).list_pages("Barbers")
    assert [p.id for p in by_slug] == [barber.id]
    assert [p.id for p in by_name] == [barber.id]
    assert len(PageService(db).list_pages()) == 2


def test_page_endpoints(client, vendor, customer):
    created = client.post("/pages", headers=auth_headers(vendor), json=PAGE_DRAFT)
    assert created.status_code == 201
    page_id = created.json()["page"]["id"]

    again = client.post("/pages", headers=auth_headers(vendor), json=PAGE_DRAFT)
    assert again.status_code == 403
    assert again.json()["code"] == "quota_exceeded"

    assert client.post("/pages", headers=auth_headers(customer), json=PAGE_DRAFT).status_code == 403

    bad = client.post(
        "/pages",
        headers=auth_headers(vendor),
        json={**PAGE_DRAFT, "openingHours": [{"day": "Someday", "openingTime": "1", "closingTime": "2"}]},
    )
    assert bad.status_code == 400

    mine = client.get("/pages/mine", headers=auth_headers(vendor))
    assert [p["id"] for p in mine.json()["pages"]] == [page_id]

    service = client.post(
        f"/pages/{page_id}/services",
        headers=auth_headers(vendor),
        json={"name": "Fade", "category": "Hair", "price": 20, "duration": 30},
    )
    assert service.status_code == 201

    public = client.get(f"/pages/{page_id}")
    assert public.json()["page"]["services"][0]["category"] == {"id": None, "name": "Hair"}

    assert client.get("/pages/9999").json() == {
        "success": False,
        "error": "Business page not found",
        "code": "not_found",
    }

    forbidden = client.put(f"/pages/{page_id}", headers=auth_headers(customer), json={"businessName": "Mine"})
    assert forbidden.status_code == 403

    deleted = client.delete(f"/pages/{page_id}", headers=auth_headers(vendor))
    assert deleted.json()["success"] is True
    assert client.get(f"/pages/{page_id}").status_code == 404
