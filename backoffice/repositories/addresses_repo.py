from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.models.customer_address import CustomerAddress

UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "phone_number",
    "street_address",
    "apartment",
    "city",
    "state",
    "postal_code",
    "country",
    "is_default",
}


def _commit(db: Session, address: CustomerAddress) -> CustomerAddress:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(address)
    return address


def get_addresses_by_customer_id(db: Session, customer_id: int, tenant_id: int) -> list[CustomerAddress]:
    return (
        db.query(CustomerAddress)
        .filter(CustomerAddress.customer_id == customer_id, CustomerAddress.tenant_id == tenant_id)
        .order_by(CustomerAddress.id.asc())
        .all()
    )


def get_address_by_id(db: Session, address_id: int, tenant_id: int) -> Optional[CustomerAddress]:
    return (
        db.query(CustomerAddress)
        .filter(CustomerAddress.id == address_id, CustomerAddress.tenant_id == tenant_id)
        .first()
    )


def get_default_address_by_customer_id(
    db: Session,
    customer_id: int,
    tenant_id: int,
) -> Optional[CustomerAddress]:
    return (
        db.query(CustomerAddress)
        .filter(
            CustomerAddress.customer_id == customer_id,
            CustomerAddress.tenant_id == tenant_id,
            CustomerAddress.is_default.is_(True),
        )
        .first()
    )


def create_address(db: Session, data: dict[str, Any], tenant_id: int) -> CustomerAddress:
    address = CustomerAddress(tenant_id=tenant_id, **data)
    db.add(address)
    return _commit(db, address)


def update_address(
    db: Session,
    address_id: int,
    changes: dict[str, Any],
    tenant_id: int,
) -> Optional[CustomerAddress]:
    address = get_address_by_id(db, address_id, tenant_id)
    if address is None:
        return None
    for field, value in changes.items():
        if field in UPDATABLE_FIELDS:
            setattr(address, field, value)
    return _commit(db, address)


def set_default_address(
    db: Session,
    customer_id: int,
    address_id: int,
    tenant_id: int,
) -> Optional[CustomerAddress]:
    """Demote every address of the customer and promote ``address_id`` in one commit."""
    try:
        (
            db.query(CustomerAddress)
            .filter(CustomerAddress.customer_id == customer_id, CustomerAddress.tenant_id == tenant_id)
            .update({CustomerAddress.is_default: False}, synchronize_session="fetch")
        )
        (
            db.query(CustomerAddress)
            .filter(
                CustomerAddress.id == address_id,
                CustomerAddress.customer_id == customer_id,
                CustomerAddress.tenant_id == tenant_id,
            )
            .update({CustomerAddress.is_default: True}, synchronize_session="fetch")
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return get_address_by_id(db, address_id, tenant_id)


def delete_address(db: Session, address_id: int, tenant_id: int) -> None:
    address = get_address_by_id(db, address_id, tenant_id)
    if address is None:
        return
    db.delete(address)
    db.commit()
