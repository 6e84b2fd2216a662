"""Customer persistence: tenant-aware queries over the customers table.

Reads return a model instance (or list) and ``None`` for absence. Writes commit
and refresh; a unique-constraint violation is rolled back and surfaced as
``ConflictError`` so a lost race between two creates leaves no partial write.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from backoffice.models.customer import Customer
from backoffice.services.errors import ConflictError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "email",
    "phone_number",
    "is_guest",
    "user_id",
    "acquisition_campaign_id",
}


def _scoped(query: Query, tenant_id: Optional[int]) -> Query:
    if tenant_id is None:
        return query
    return query.filter(Customer.tenant_id == tenant_id)


def _is_unique_violation(exc: IntegrityError) -> bool:
    # psycopg reports SQLSTATE 23505; sqlite only says so in the message.
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(exc.orig).lower()


def _commit_or_conflict(db: Session, customer: Customer) -> Customer:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not _is_unique_violation(exc):
            raise
        logger.warning("customer write rejected by unique constraint: %s", exc.orig)
        raise ConflictError("Customer with this email or phone number already exists") from exc
    db.refresh(customer)
    return customer


def get_all_customers(db: Session, tenant_id: Optional[int] = None) -> list[Customer]:
    return _scoped(db.query(Customer), tenant_id).order_by(Customer.id.asc()).all()


def get_registered_customers(db: Session, tenant_id: Optional[int] = None) -> list[Customer]:
    return (
        _scoped(db.query(Customer), tenant_id)
        .filter(Customer.is_guest.is_(False))
        .order_by(Customer.id.asc())
        .all()
    )


def get_guest_customers(db: Session, tenant_id: Optional[int] = None) -> list[Customer]:
    return (
        _scoped(db.query(Customer), tenant_id)
        .filter(Customer.is_guest.is_(True))
        .order_by(Customer.id.asc())
        .all()
    )


def get_customer_by_id(db: Session, customer_id: int, tenant_id: Optional[int] = None) -> Optional[Customer]:
    return _scoped(db.query(Customer), tenant_id).filter(Customer.id == customer_id).first()


def get_customer_by_email(db: Session, email: str, tenant_id: Optional[int] = None) -> Optional[Customer]:
    return _scoped(db.query(Customer), tenant_id).filter(Customer.email == email).first()


def get_customer_by_phone(
    db: Session,
    phone_number: str,
    tenant_id: Optional[int] = None,
) -> Optional[Customer]:
    return _scoped(db.query(Customer), tenant_id).filter(Customer.phone_number == phone_number).first()


def search_customers(db: Session, term: str, tenant_id: Optional[int] = None) -> list[Customer]:
    search_like = f"%{term}%"
    return (
        _scoped(db.query(Customer), tenant_id)
        .filter(
            or_(
                Customer.first_name.ilike(search_like),
                Customer.last_name.ilike(search_like),
                Customer.email.ilike(search_like),
                Customer.phone_number.ilike(search_like),
            )
        )
        .order_by(Customer.id.asc())
        .all()
    )


def create_customer(db: Session, data: dict[str, Any], tenant_id: Optional[int] = None) -> Customer:
    customer = Customer(tenant_id=tenant_id, **data)
    db.add(customer)
    return _commit_or_conflict(db, customer)


def update_customer(
    db: Session,
    customer_id: int,
    changes: dict[str, Any],
    tenant_id: Optional[int] = None,
) -> Optional[Customer]:
    customer = get_customer_by_id(db, customer_id, tenant_id)
    if customer is None:
        return None
    for field, value in changes.items():
        if field in UPDATABLE_FIELDS:
            setattr(customer, field, value)
    return _commit_or_conflict(db, customer)


def delete_customer(db: Session, customer_id: int, tenant_id: Optional[int] = None) -> None:
    customer = get_customer_by_id(db, customer_id, tenant_id)
    if customer is None:
        return
    db.delete(customer)
    db.commit()
