from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.models.customer import Customer
from backoffice.repositories import addresses_repo, customers_repo
from backoffice.schemas.customer import (
    CustomerCreate,
    CustomerLookupCreate,
    CustomerUpdate,
    GuestCustomerCreate,
)
from backoffice.services.errors import ConflictError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)

CUSTOMER_NOT_FOUND = "Customer not found"


class CustomerService:
    """Identity uniqueness and guest lifecycle for customers.

    ``tenant_id`` is optional on every call: without it the lookups span all
    tenants, so callers that need isolation must pass it.
    """

    @staticmethod
    def _require(db: Session, customer_id: int, tenant_id: Optional[int]) -> Customer:
        customer = customers_repo.get_customer_by_id(db, customer_id, tenant_id)
        if customer is None:
            raise NotFoundError(CUSTOMER_NOT_FOUND)
        return customer

    def find_all(
        self,
        db: Session,
        filters: Optional[dict[str, Any]] = None,
        *,
        tenant_id: Optional[int] = None,
    ) -> list[Customer]:
        customers = customers_repo.get_all_customers(db, tenant_id)
        if not customers:
            return []

        filters = filters or {}
        is_guest = filters.get("is_guest")
        if is_guest is not None:
            customers = [customer for customer in customers if bool(customer.is_guest) == is_guest]

        search = filters.get("search")
        if search:
            search_lower = search.lower()
            customers = [
                customer
                for customer in customers
                if search_lower in customer.first_name.lower()
                or search_lower in customer.last_name.lower()
                or search_lower in customer.email.lower()
                or search_lower in customer.phone_number.lower()
            ]
        return customers

    def find_registered(self, db: Session, *, tenant_id: Optional[int] = None) -> list[Customer]:
        return customers_repo.get_registered_customers(db, tenant_id)

    def find_guests(self, db: Session, *, tenant_id: Optional[int] = None) -> list[Customer]:
        return customers_repo.get_guest_customers(db, tenant_id)

    def find_by_id(self, db: Session, customer_id: int, *, tenant_id: Optional[int] = None) -> Customer:
        return self._require(db, customer_id, tenant_id)

    def find_by_id_with_addresses(
        self,
        db: Session,
        customer_id: int,
        *,
        tenant_id: Optional[int] = None,
    ) -> dict[str, Any]:
        customer = self._require(db, customer_id, tenant_id)
        addresses = addresses_repo.get_addresses_by_customer_id(db, customer.id, customer.tenant_id)
        return {"customer": customer, "addresses": addresses}

    def find_by_email(self, db: Session, email: str, *, tenant_id: Optional[int] = None) -> Customer:
        customer = customers_repo.get_customer_by_email(db, email, tenant_id)
        if customer is None:
            raise NotFoundError(CUSTOMER_NOT_FOUND)
        return customer

    def find_by_phone(self, db: Session, phone_number: str, *, tenant_id: Optional[int] = None) -> Customer:
        customer = customers_repo.get_customer_by_phone(db, phone_number, tenant_id)
        if customer is None:
            raise NotFoundError(CUSTOMER_NOT_FOUND)
        return customer

    def search(self, db: Session, term: Optional[str], *, tenant_id: Optional[int] = None) -> list[Customer]:
        if not term or not term.strip():
            return []
        return customers_repo.search_customers(db, term.strip(), tenant_id)

    def create(self, db: Session, data: CustomerCreate, *, tenant_id: Optional[int] = None) -> Customer:
        # Email is checked before phone, so a double collision reports the email.
        if customers_repo.get_customer_by_email(db, data.email, tenant_id) is not None:
            logger.info("customer create rejected: duplicate email tenant_id=%s", tenant_id)
            raise ConflictError("Customer with this email already exists")

        if customers_repo.get_customer_by_phone(db, data.phone_number, tenant_id) is not None:
            logger.info("customer create rejected: duplicate phone tenant_id=%s", tenant_id)
            raise ConflictError("Customer with this phone number already exists")

        customer = customers_repo.create_customer(db, data.model_dump(), tenant_id)
        logger.info("customer created id=%s tenant_id=%s guest=%s", customer.id, tenant_id, customer.is_guest)
        return customer

    def create_guest(
        self,
        db: Session,
        data: GuestCustomerCreate,
        *,
        tenant_id: Optional[int] = None,
    ) -> Customer:
        existing = customers_repo.get_customer_by_email(db, data.email, tenant_id)
        if existing is not None:
            # A returning guest (or a registered customer checking out as guest).
            return existing

        payload = data.model_dump()
        payload.update({"is_guest": True, "user_id": None})
        customer = customers_repo.create_customer(db, payload, tenant_id)
        logger.info("guest customer created id=%s tenant_id=%s", customer.id, tenant_id)
        return customer

    def convert_guest_to_registered(
        self,
        db: Session,
        customer_id: int,
        user_id: str,
        *,
        tenant_id: Optional[int] = None,
    ) -> Customer:
        customer = self._require(db, customer_id, tenant_id)
        if not customer.is_guest:
            raise InvalidStateError("Customer is already registered")

        updated = customers_repo.update_customer(
            db,
            customer_id,
            {"is_guest": False, "user_id": user_id},
            tenant_id,
        )
        logger.info("guest customer converted id=%s tenant_id=%s", customer_id, tenant_id)
        return updated

    def update(
        self,
        db: Session,
        customer_id: int,
        data: CustomerUpdate,
        *,
        tenant_id: Optional[int] = None,
    ) -> Customer:
        existing = self._require(db, customer_id, tenant_id)
        changes = data.model_dump(exclude_unset=True)

        email = changes.get("email")
        if email and email != existing.email:
            if customers_repo.get_customer_by_email(db, email, tenant_id) is not None:
                raise ConflictError("Email already in use by another customer")

        phone_number = changes.get("phone_number")
        if phone_number and phone_number != existing.phone_number:
            if customers_repo.get_customer_by_phone(db, phone_number, tenant_id) is not None:
                raise ConflictError("Phone number already in use by another customer")

        return customers_repo.update_customer(db, customer_id, changes, tenant_id)

    def delete(self, db: Session, customer_id: int, *, tenant_id: Optional[int] = None) -> None:
        self._require(db, customer_id, tenant_id)
        # Addresses go with the customer through the foreign key cascade.
        customers_repo.delete_customer(db, customer_id, tenant_id)
        logger.info("customer deleted id=%s tenant_id=%s", customer_id, tenant_id)

    def get_stats(self, db: Session, customer_id: int, *, tenant_id: Optional[int] = None) -> dict[str, Any]:
        customer = self._require(db, customer_id, tenant_id)
        addresses = addresses_repo.get_addresses_by_customer_id(db, customer.id, customer.tenant_id)
        return {
            "customer": customer,
            "address_count": len(addresses),
            "has_default_address": any(address.is_default for address in addresses),
        }

    def exists_by_email(self, db: Session, email: str, *, tenant_id: Optional[int] = None) -> bool:
        try:
            return customers_repo.get_customer_by_email(db, email, tenant_id) is not None
        except SQLAlchemyError:
            db.rollback()
            logger.warning("email lookup failed; reporting customer as absent", exc_info=True)
            return False

    def exists_by_phone(self, db: Session, phone_number: str, *, tenant_id: Optional[int] = None) -> bool:
        try:
            return customers_repo.get_customer_by_phone(db, phone_number, tenant_id) is not None
        except SQLAlchemyError:
            db.rollback()
            logger.warning("phone lookup failed; reporting customer as absent", exc_info=True)
            return False

    def get_or_create_by_email(
        self,
        db: Session,
        data: CustomerLookupCreate,
        *,
        tenant_id: Optional[int] = None,
    ) -> dict[str, Any]:
        existing = None
        try:
            existing = customers_repo.get_customer_by_email(db, data.email, tenant_id)
        except SQLAlchemyError:
            db.rollback()
            logger.warning("email lookup failed; creating customer", exc_info=True)

        if existing is not None:
            return {"customer": existing, "created": False}

        payload = data.model_dump()
        payload["user_id"] = None
        customer = customers_repo.create_customer(db, payload, tenant_id)
        logger.info("customer created by email lookup id=%s tenant_id=%s", customer.id, tenant_id)
        return {"customer": customer, "created": True}


customer_service = CustomerService()
