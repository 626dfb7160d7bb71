import pytest

from conftest import auth_headers
from servicedome.domain.accounts.schemas import AccountCreate, AccountUpdate, SubscriptionUpdate
from servicedome.domain.accounts.service import AccountService
from servicedome.errors import Conflict, NotFound, ValidationError
from servicedome.models import CustomerProfile, VendorProfile


def test_register_creates_profiles_matching_roles(db):
    account = AccountService(db).create_account(
        AccountCreate(
            name="Both Roles",
            email="Both@Example.com",
            password="password123",
            phone="(555) 010-1234",
            roles=["customer", "Vendor"],
        )
    )

    assert account.email == "both@example.com"
    assert account.phone == "+5550101234"
    assert account.roles == ["Customer", "Vendor"]
    assert account.customer_profile is not None
    assert account.vendor_profile.membership_tier == "Free"
    assert account.vendor_profile.subscription_status == "Expired"
    assert account.vendor_profile.page_count == 0


def test_duplicate_email_is_a_conflict(db, make_account):
    existing = make_account()
    with pytest.raises(Conflict):
        AccountService(db).create_account(
            AccountCreate(
                name="Again",
                email=existing.email,
                password="password123",
                phone="5550101234",
                roles=["Customer"],
            )
        )


def test_invalid_role_is_rejected_by_schema():
    with pytest.raises(ValueError):
        AccountCreate(
            name="X", email="x@example.com", password="password123", phone="5550101234", roles=["Admin"]
        )


def test_adding_and_removing_roles_syncs_profiles(db, make_account):
    account = make_account(roles=("Customer",))
    service = AccountService(db)

    account = service.update_profile(account.id, AccountUpdate(roles=["Customer", "Vendor"]))
    assert account.vendor_profile is not None

    account = service.update_profile(account.id, AccountUpdate(roles=["Vendor"]))
    assert account.customer_profile is None
    assert db.query(CustomerProfile).filter_by(account_id=account.id).count() == 0
    assert db.query(VendorProfile).filter_by(account_id=account.id).count() == 1


def test_vendor_with_pages_cannot_drop_vendor_role(db, vendor, page):
    with pytest.raises(Conflict):
        AccountService(db).update_profile(vendor.id, AccountUpdate(roles=["Customer"]))


def test_address_needs_customer_profile(db, vendor):
    with pytest.raises(ValidationError):
        AccountService(db).update_profile(vendor.id, AccountUpdate(address="1 Main St"))


def test_apply_subscription_requires_vendor(db, customer):
    with pytest.raises(NotFound):
        AccountService(db).apply_subscription(
            customer.id, SubscriptionUpdate(membershipTier="Premium", subscriptionStatus="Active")
        )


def test_register_and_me_endpoints(client):
    response = client.post(
        "/accounts/register",
        json={
            "name": "Api User",
            "email": "api@example.com",
            "password": "password123",
            "phone": "+44 20 7946 0000",
            "roles": ["Customer"],
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    account_id = body["account"]["id"]

    class _Account:
        id = account_id

    me = client.get("/accounts/me", headers=auth_headers(_Account))
    assert me.status_code == 200
    assert me.json()["account"]["email"] == "api@example.com"

    updated = client.put(
        "/accounts/me",
        headers=auth_headers(_Account),
        json={"address": "5 Side St", "location": {"latitude": 10, "longitude": 20}},
    )
    assert updated.json()["account"]["customerProfile"]["address"] == "5 Side St"
    assert updated.json()["account"]["customerProfile"]["location"]["latitude"] == 10


def test_missing_or_bad_token_is_unauthorized(client):
    assert client.get("/accounts/me").status_code == 401

    response = client.get("/accounts/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "Invalid or expired token",
        "code": "unauthorized",
    }


def test_register_validation_error_is_400(client):
    response = client.post("/accounts/register", json={"name": "No Email"})
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert response.json()["success"] is False


def test_push_token_endpoint(client, db, customer):
    response = client.put(
        "/accounts/me/push-token",
        headers=auth_headers(customer),
        json={"token": "ExponentPushToken[new-device]"},
    )
    assert response.status_code == 200
    db.expire_all()
    assert AccountService(db).get_account(customer.id).expo_push_token == "ExponentPushToken[new-device]"
