import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import backoffice.models  # noqa: F401
from backoffice.core.database import Base, build_engine
from backoffice.models.customer import Customer
from backoffice.models.customer_address import CustomerAddress
from backoffice.models.tenant import Tenant
from backoffice.repositories import customers_repo
from backoffice.schemas.address import AddressCreate
from backoffice.schemas.customer import (
    CustomerCreate,
    CustomerLookupCreate,
    CustomerUpdate,
    GuestCustomerCreate,
)
from backoffice.services.addresses import address_service
from backoffice.services.customers import customer_service
from backoffice.services.errors import ConflictError, InvalidStateError, NotFoundError
from tests.fixtures_data import CUSTOMER_ALICE, CUSTOMER_BOB, GUEST_CAROL, HOME_ADDRESS, TENANTS


def _build_session():
    engine = build_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    for tenant in TENANTS:
        db.add(Tenant(**tenant))
    db.commit()
    return db


def _count_customers(db) -> int:
    return db.query(Customer).count()


def test_create_rejects_duplicate_email_without_writing():
    db = _build_session()
    customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)

    duplicate = {**CUSTOMER_BOB, "email": CUSTOMER_ALICE["email"]}
    with pytest.raises(ConflictError) as exc_info:
        customer_service.create(db, CustomerCreate(**duplicate), tenant_id=1)

    assert exc_info.value.message == "Customer with this email already exists"
    assert _count_customers(db) == 1


def test_create_rejects_duplicate_phone():
    db = _build_session()
    customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)

    duplicate = {**CUSTOMER_BOB, "phone_number": CUSTOMER_ALICE["phone_number"]}
    with pytest.raises(ConflictError) as exc_info:
        customer_service.create(db, CustomerCreate(**duplicate), tenant_id=1)

    assert exc_info.value.message == "Customer with this phone number already exists"
    assert _count_customers(db) == 1


def test_create_reports_email_conflict_first_when_both_collide():
    db = _build_session()
    customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)

    with pytest.raises(ConflictError) as exc_info:
        customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)

    assert "email" in exc_info.value.message


def test_same_email_is_allowed_in_another_tenant():
    db = _build_session()
    first = customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)
    second = customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=2)

    assert first.id != second.id
    assert customer_service.find_by_email(db, CUSTOMER_ALICE["email"], tenant_id=2).id == second.id


def test_unique_constraint_surfaces_as_conflict_when_checks_are_bypassed():
    db = _build_session()
    customers_repo.create_customer(db, dict(CUSTOMER_ALICE), 1)

    with pytest.raises(ConflictError):
        customers_repo.create_customer(db, dict(CUSTOMER_ALICE), 1)

    assert _count_customers(db) == 1


def test_create_guest_is_idempotent_on_email():
    db = _build_session()

    first = customer_service.create_guest(db, GuestCustomerCreate(**GUEST_CAROL), tenant_id=1)
    second = customer_service.create_guest(db, GuestCustomerCreate(**GUEST_CAROL), tenant_id=1)

    assert first.id == second.id
    assert first.is_guest is True
    assert first.user_id is None
    assert _count_customers(db) == 1


def test_create_guest_returns_registered_customer_unchanged():
    db = _build_session()
    registered = customer_service.create(
        db,
        CustomerCreate(**CUSTOMER_ALICE, user_id="user-1"),
        tenant_id=1,
    )

    result = customer_service.create_guest(
        db,
        GuestCustomerCreate(**{**CUSTOMER_ALICE, "first_name": "Other"}),
        tenant_id=1,
    )

    assert result.id == registered.id
    assert result.is_guest is False
    assert result.first_name == "Alice"
    assert result.user_id == "user-1"


def test_convert_guest_to_registered_is_not_idempotent():
    db = _build_session()
    guest = customer_service.create_guest(db, GuestCustomerCreate(**GUEST_CAROL), tenant_id=1)

    converted = customer_service.convert_guest_to_registered(db, guest.id, "user-42", tenant_id=1)

    assert converted.is_guest is False
    assert converted.user_id == "user-42"

    with pytest.raises(InvalidStateError) as exc_info:
        customer_service.convert_guest_to_registered(db, guest.id, "user-43", tenant_id=1)
    assert exc_info.value.message == "Customer is already registered"


def test_convert_unknown_customer_raises_not_found():
    db = _build_session()

    with pytest.raises(NotFoundError):
        customer_service.convert_guest_to_registered(db, 999, "user-1", tenant_id=1)


def test_update_rejects_email_owned_by_another_customer():
    db = _build_session()
    alice = customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)
    customer_service.create(db, CustomerCreate(**CUSTOMER_BOB), tenant_id=1)

    with pytest.raises(ConflictError) as exc_info:
        customer_service.update(db, alice.id, CustomerUpdate(email=CUSTOMER_BOB["email"]), tenant_id=1)

    assert exc_info.value.message == "Email already in use by another customer"
    db.expire_all()
    assert customer_service.find_by_id(db, alice.id, tenant_id=1).email == CUSTOMER_ALICE["email"]


def test_update_rejects_phone_owned_by_another_customer():
    db = _build_session()
    alice = customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)
    customer_service.create(db, CustomerCreate(**CUSTOMER_BOB), tenant_id=1)

    with pytest.raises(ConflictError) as exc_info:
        customer_service.update(
            db,
            alice.id,
            CustomerUpdate(phone_number=CUSTOMER_BOB["phone_number"]),
            tenant_id=1,
        )

    assert exc_info.value.message == "Phone number already in use by another customer"


def test_update_applies_partial_changes_and_accepts_own_email():
    db = _build_session()
    alice = customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)

    updated = customer_service.update(
        db,
        alice.id,
        CustomerUpdate(email=CUSTOMER_ALICE["email"], last_name="Smith"),
        tenant_id=1,
    )

    assert updated.last_name == "Smith"
    assert updated.first_name == "Alice"
    assert updated.phone_number == CUSTOMER_ALICE["phone_number"]


def test_update_unknown_customer_raises_not_found():
    db = _build_session()

    with pytest.raises(NotFoundError):
        customer_service.update(db, 404, CustomerUpdate(first_name="X"), tenant_id=1)


def test_find_all_filters_by_guest_flag_and_search():
    db = _build_session()
    customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)
    customer_service.create(db, CustomerCreate(**CUSTOMER_BOB), tenant_id=1)
    customer_service.create_guest(db, GuestCustomerCreate(**GUEST_CAROL), tenant_id=1)

    guests = customer_service.find_all(db, {"is_guest": True}, tenant_id=1)
    registered = customer_service.find_all(db, {"is_guest": False}, tenant_id=1)
    by_name = customer_service.find_all(db, {"search": "WALK"}, tenant_id=1)
    by_phone = customer_service.find_all(db, {"search": "2222"}, tenant_id=1)

    assert [customer.email for customer in guests] == [GUEST_CAROL["email"]]
    assert len(registered) == 2
    assert [customer.email for customer in by_name] == [CUSTOMER_ALICE["email"]]
    assert [customer.email for customer in by_phone] == [CUSTOMER_BOB["email"]]


def test_find_all_returns_empty_list_for_empty_tenant():
    db = _build_session()

    assert customer_service.find_all(db, {"search": "anything"}, tenant_id=2) == []


def test_find_registered_and_guests():
    db = _build_session()
    customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)
    customer_service.create_guest(db, GuestCustomerCreate(**GUEST_CAROL), tenant_id=1)

    assert [c.email for c in customer_service.find_registered(db, tenant_id=1)] == [CUSTOMER_ALICE["email"]]
    assert [c.email for c in customer_service.find_guests(db, tenant_id=1)] == [GUEST_CAROL["email"]]


def test_search_returns_empty_for_blank_term():
    db = _build_session()
    customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)

    assert customer_service.search(db, "   ", tenant_id=1) == []
    assert customer_service.search(db, "", tenant_id=1) == []


def test_search_strips_term_and_matches_substring():
    db = _build_session()
    customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)
    customer_service.create(db, CustomerCreate(**CUSTOMER_BOB), tenant_id=1)

    results = customer_service.search(db, "  bob@  ", tenant_id=1)

    assert [customer.first_name for customer in results] == ["Bob"]


def test_find_by_email_and_phone_raise_not_found():
    db = _build_session()

    with pytest.raises(NotFoundError):
        customer_service.find_by_email(db, "nobody@example.com", tenant_id=1)
    with pytest.raises(NotFoundError):
        customer_service.find_by_phone(db, "0000000", tenant_id=1)


def test_lookups_are_scoped_to_tenant():
    db = _build_session()
    alice = customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)

    with pytest.raises(NotFoundError):
        customer_service.find_by_id(db, alice.id, tenant_id=2)

    assert customer_service.find_by_id(db, alice.id).id == alice.id


def test_find_by_id_with_addresses_and_stats():
    db = _build_session()
    alice = customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)
    address_service.create(db, AddressCreate(customer_id=alice.id, **HOME_ADDRESS), 1)

    detail = customer_service.find_by_id_with_addresses(db, alice.id, tenant_id=1)
    stats = customer_service.get_stats(db, alice.id, tenant_id=1)

    assert detail["customer"].id == alice.id
    assert len(detail["addresses"]) == 1
    assert stats["address_count"] == 1
    assert stats["has_default_address"] is True


def test_get_stats_for_customer_without_addresses():
    db = _build_session()
    bob = customer_service.create(db, CustomerCreate(**CUSTOMER_BOB), tenant_id=1)

    stats = customer_service.get_stats(db, bob.id, tenant_id=1)

    assert stats["address_count"] == 0
    assert stats["has_default_address"] is False


def test_delete_removes_customer_and_cascades_addresses():
    db = _build_session()
    alice = customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)
    address_service.create(db, AddressCreate(customer_id=alice.id, **HOME_ADDRESS), 1)
    alice_id = alice.id
    db.expunge_all()

    customer_service.delete(db, alice_id, tenant_id=1)

    assert _count_customers(db) == 0
    assert db.query(CustomerAddress).filter(CustomerAddress.customer_id == alice_id).count() == 0
    with pytest.raises(NotFoundError):
        customer_service.delete(db, alice_id, tenant_id=1)


def test_exists_by_email_and_phone():
    db = _build_session()
    customer_service.create(db, CustomerCreate(**CUSTOMER_ALICE), tenant_id=1)

    assert customer_service.exists_by_email(db, CUSTOMER_ALICE["email"], tenant_id=1) is True
    assert customer_service.exists_by_email(db, "nobody@example.com", tenant_id=1) is False
    assert customer_service.exists_by_phone(db, CUSTOMER_ALICE["phone_number"], tenant_id=1) is True
    assert customer_service.exists_by_phone(db, "0000000", tenant_id=1) is False


def test_exists_by_email_reports_database_failure_as_absent(monkeypatch):
    db = _build_session()

    def _broken_lookup(*_args, **_kwargs):
        raise OperationalError("SELECT", {}, Exception("database unavailable"))

    monkeypatch.setattr(customers_repo, "get_customer_by_email", _broken_lookup)
    monkeypatch.setattr(customers_repo, "get_customer_by_phone", _broken_lookup)

    assert customer_service.exists_by_email(db, "alice@example.com", tenant_id=1) is False
    assert customer_service.exists_by_phone(db, "5550001111", tenant_id=1) is False
    assert _count_customers(db) == 0
    assert customers_repo.create_customer(db, dict(CUSTOMER_ALICE), 1).id is not None


def test_exists_by_email_propagates_non_database_errors(monkeypatch):
    db = _build_session()

    def _buggy_lookup(*_args, **_kwargs):
        raise RuntimeError("bug")

    monkeypatch.setattr(customers_repo, "get_customer_by_email", _buggy_lookup)

    with pytest.raises(RuntimeError):
        customer_service.exists_by_email(db, "alice@example.com", tenant_id=1)


def test_get_or_create_by_email_marks_created_flag():
    db = _build_session()

    first = customer_service.get_or_create_by_email(db, CustomerLookupCreate(**GUEST_CAROL), tenant_id=1)
    second = customer_service.get_or_create_by_email(db, CustomerLookupCreate(**GUEST_CAROL), tenant_id=1)

    assert first["created"] is True
    assert second["created"] is False
    assert first["customer"].id == second["customer"].id
    assert first["customer"].user_id is None
    assert _count_customers(db) == 1


def test_get_or_create_by_email_creates_when_lookup_fails(monkeypatch):
    db = _build_session()

    def _broken_lookup(*_args, **_kwargs):
        raise OperationalError("SELECT", {}, Exception("database unavailable"))

    monkeypatch.setattr(customers_repo, "get_customer_by_email", _broken_lookup)

    result = customer_service.get_or_create_by_email(db, CustomerLookupCreate(**GUEST_CAROL), tenant_id=1)

    assert result["created"] is True
    assert _count_customers(db) == 1


def test_guest_payload_cannot_carry_a_user_reference():
    with pytest.raises(ValidationError):
        CustomerCreate(**GUEST_CAROL, is_guest=True, user_id="user-1")


def test_update_payload_rejects_explicit_nulls():
    with pytest.raises(ValidationError):
        CustomerUpdate(first_name=None)
    with pytest.raises(ValidationError):
        CustomerUpdate(email=None)

    assert CustomerUpdate(last_name="Stone").model_dump(exclude_unset=True) == {"last_name": "Stone"}


def test_non_unique_integrity_errors_are_not_reported_as_conflicts():
    db = _build_session()
    alice = customers_repo.create_customer(db, dict(CUSTOMER_ALICE), 1)

    with pytest.raises(IntegrityError):
        customers_repo.update_customer(db, alice.id, {"first_name": None}, 1)

    assert customers_repo.get_customer_by_id(db, alice.id, 1).first_name == "Alice"


def test_customers_without_tenant_are_still_unique_in_storage():
    db = _build_session()
    customers_repo.create_customer(db, dict(CUSTOMER_ALICE), None)

    with pytest.raises(ConflictError):
        customers_repo.create_customer(db, {**CUSTOMER_BOB, "email": CUSTOMER_ALICE["email"]}, None)
    with pytest.raises(ConflictError):
        customers_repo.create_customer(db, {**CUSTOMER_BOB, "phone_number": CUSTOMER_ALICE["phone_number"]}, None)

    assert customers_repo.create_customer(db, dict(CUSTOMER_BOB), None).id is not None
    assert _count_customers(db) == 2
