from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.core.database import get_db
from backoffice.deps import get_current_tenant_id
from backoffice.schemas.address import AddressCreate, AddressFields, AddressRead, AddressStats, AddressUpdate
from backoffice.services.addresses import address_service

router = APIRouter(prefix="/api/customers", tags=["customer-addresses"])


@router.get("/addresses/{address_id}", response_model=AddressRead)
def get_address(
    address_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return address_service.find_by_id(db, address_id, tenant_id)


@router.put("/addresses/{address_id}", response_model=AddressRead)
def update_address(
    address_id: int,
    payload: AddressUpdate,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return address_service.update(db, address_id, payload, tenant_id)


@router.delete("/addresses/{address_id}")
def delete_address(
    address_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    address_service.delete(db, address_id, tenant_id)
    return {"message": "Address deleted successfully"}


@router.get("/{customer_id}/addresses/all", response_model=list[AddressRead])
def list_customer_addresses(
    customer_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return address_service.find_by_customer_id(db, customer_id, tenant_id)


@router.get("/{customer_id}/addresses/default", response_model=AddressRead)
def get_default_address(
    customer_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return address_service.find_default_by_customer_id(db, customer_id, tenant_id)


@router.get("/{customer_id}/addresses/stats", response_model=AddressStats)
def get_address_stats(
    customer_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return address_service.get_customer_address_stats(db, customer_id, tenant_id)


@router.post("/{customer_id}/addresses", response_model=AddressRead, status_code=status.HTTP_201_CREATED)
def create_address(
    customer_id: int,
    payload: AddressFields,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    data = AddressCreate(customer_id=customer_id, **payload.model_dump())
    return address_service.create(db, data, tenant_id)


@router.put("/{customer_id}/addresses/{address_id}/set-default", response_model=AddressRead)
def set_default_address(
    customer_id: int,
    address_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
):
    return address_service.set_as_default(db, customer_id, address_id, tenant_id)
