from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from backoffice.core.database import get_db
from backoffice.deps import get_current_tenant_id
from backoffice.schemas.address import AddressRead
from backoffice.schemas.customer import (
    ConvertToRegistered,
    CustomerCreate,
    CustomerGetOrCreateResult,
    CustomerLookupCreate,
    CustomerRead,
    CustomerStats,
    CustomerUpdate,
    CustomerWithAddresses,
    GuestCustomerCreate,
)
from backoffice.services.customers import customer_service

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.get("", response_model=list[CustomerRead])
def list_customers(
    search: Optional[str] = Query(default=None),
    is_guest: Optional[bool] = Query(default=None),
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    filters = {"search": search or None, "is_guest": is_guest}
    return customer_service.find_all(db, filters, tenant_id=tenant_id)


@router.get("/registered", response_model=list[CustomerRead])
def list_registered_customers(
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.find_registered(db, tenant_id=tenant_id)


@router.get("/guests", response_model=list[CustomerRead])
def list_guest_customers(
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.find_guests(db, tenant_id=tenant_id)


@router.get("/search", response_model=list[CustomerRead])
def search_customers(
    q: Optional[str] = Query(default=None),
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    if not q:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search term is required")
    return customer_service.search(db, q, tenant_id=tenant_id)


@router.get("/email/{email}", response_model=CustomerRead)
def get_customer_by_email(
    email: str,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.find_by_email(db, email, tenant_id=tenant_id)


@router.get("/phone/{phone_number}", response_model=CustomerRead)
def get_customer_by_phone(
    phone_number: str,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.find_by_phone(db, phone_number, tenant_id=tenant_id)


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.create(db, payload, tenant_id=tenant_id)


@router.post("/guest", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
def create_guest_customer(
    payload: GuestCustomerCreate,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.create_guest(db, payload, tenant_id=tenant_id)


@router.post("/get-or-create", response_model=CustomerGetOrCreateResult)
def get_or_create_customer(
    payload: CustomerLookupCreate,
    response: Response,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    result = customer_service.get_or_create_by_email(db, payload, tenant_id=tenant_id)
    response.status_code = status.HTTP_201_CREATED if result["created"] else status.HTTP_200_OK
    return {
        "customer": CustomerRead.model_validate(result["customer"]),
        "created": result["created"],
    }


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(
    customer_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.find_by_id(db, customer_id, tenant_id=tenant_id)


@router.get("/{customer_id}/addresses", response_model=CustomerWithAddresses)
def get_customer_with_addresses(
    customer_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    result = customer_service.find_by_id_with_addresses(db, customer_id, tenant_id=tenant_id)
    return CustomerWithAddresses(
        **CustomerRead.model_validate(result["customer"]).model_dump(),
        addresses=[AddressRead.model_validate(address) for address in result["addresses"]],
    )


@router.get("/{customer_id}/stats", response_model=CustomerStats)
def get_customer_stats(
    customer_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    stats = customer_service.get_stats(db, customer_id, tenant_id=tenant_id)
    return CustomerStats(
        customer=CustomerRead.model_validate(stats["customer"]),
        address_count=stats["address_count"],
        has_default_address=stats["has_default_address"],
    )


@router.put("/{customer_id}", response_model=CustomerRead)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.update(db, customer_id, payload, tenant_id=tenant_id)


@router.put("/{customer_id}/convert-to-registered", response_model=CustomerRead)
def convert_customer_to_registered(
    customer_id: int,
    payload: ConvertToRegistered,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return customer_service.convert_guest_to_registered(db, customer_id, payload.user_id, tenant_id=tenant_id)


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    customer_service.delete(db, customer_id, tenant_id=tenant_id)
    return {"message": "Customer deleted successfully"}
