from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from sqlalchemy.orm import Session

from backoffice.models.customer_address import CustomerAddress
from backoffice.repositories import addresses_repo, customers_repo
from backoffice.schemas.address import AddressCreate, AddressUpdate
from backoffice.services.customers import CUSTOMER_NOT_FOUND
from backoffice.services.errors import InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)

ADDRESS_NOT_FOUND = "Address not found"


class AddressService:
    """Address book per customer, keeping exactly one default address once any exists.

    An address only loses its default flag when another address of the same
    customer is promoted; unsetting it directly and deleting it are refused.
    """

    @staticmethod
    def _require_customer(db: Session, customer_id: int, tenant_id: int) -> None:
        if customers_repo.get_customer_by_id(db, customer_id, tenant_id) is None:
            raise NotFoundError(CUSTOMER_NOT_FOUND)

    @staticmethod
    def _require_address(db: Session, address_id: int, tenant_id: int) -> CustomerAddress:
        address = addresses_repo.get_address_by_id(db, address_id, tenant_id)
        if address is None:
            raise NotFoundError(ADDRESS_NOT_FOUND)
        return address

    def find_by_customer_id(self, db: Session, customer_id: int, tenant_id: int) -> list[CustomerAddress]:
        self._require_customer(db, customer_id, tenant_id)
        return addresses_repo.get_addresses_by_customer_id(db, customer_id, tenant_id)

    def find_by_id(self, db: Session, address_id: int, tenant_id: int) -> CustomerAddress:
        return self._require_address(db, address_id, tenant_id)

    def find_default_by_customer_id(self, db: Session, customer_id: int, tenant_id: int) -> CustomerAddress:
        self._require_customer(db, customer_id, tenant_id)
        address = addresses_repo.get_default_address_by_customer_id(db, customer_id, tenant_id)
        if address is None:
            raise NotFoundError("No default address found for this customer")
        return address

    def create(self, db: Session, data: AddressCreate, tenant_id: int) -> CustomerAddress:
        self._require_customer(db, data.customer_id, tenant_id)

        existing = addresses_repo.get_addresses_by_customer_id(db, data.customer_id, tenant_id)
        is_first_address = len(existing) == 0
        should_be_default = is_first_address or data.is_default

        payload = data.model_dump()
        # Inserted non-default unless first; a requested default is promoted below.
        payload["is_default"] = is_first_address
        address = addresses_repo.create_address(db, payload, tenant_id)
        logger.info(
            "address created id=%s customer_id=%s default=%s",
            address.id,
            data.customer_id,
            should_be_default,
        )

        if should_be_default and not is_first_address:
            return addresses_repo.set_default_address(db, data.customer_id, address.id, tenant_id)
        return address

    def update(self, db: Session, address_id: int, data: AddressUpdate, tenant_id: int) -> CustomerAddress:
        existing = self._require_address(db, address_id, tenant_id)
        changes = data.model_dump(exclude_unset=True)
        is_default = changes.get("is_default")

        if is_default is True:
            # Promotion only; the other fields of this call are not applied.
            return addresses_repo.set_default_address(db, existing.customer_id, address_id, tenant_id)

        if is_default is False and existing.is_default:
            raise InvalidStateError("Cannot unset default address. Set another address as default instead.")

        changes.pop("is_default", None)
        return addresses_repo.update_address(db, address_id, changes, tenant_id)

    def set_as_default(self, db: Session, customer_id: int, address_id: int, tenant_id: int) -> CustomerAddress:
        self._require_customer(db, customer_id, tenant_id)
        address = self._require_address(db, address_id, tenant_id)
        if address.customer_id != customer_id:
            raise InvalidStateError("Address does not belong to this customer")

        promoted = addresses_repo.set_default_address(db, customer_id, address_id, tenant_id)
        logger.info("default address changed customer_id=%s address_id=%s", customer_id, address_id)
        return promoted

    def delete(self, db: Session, address_id: int, tenant_id: int) -> None:
        address = self._require_address(db, address_id, tenant_id)
        siblings = addresses_repo.get_addresses_by_customer_id(db, address.customer_id, tenant_id)

        if len(siblings) <= 1:
            raise InvalidStateError("Cannot delete the only address. Customer must have at least one address.")

        if address.is_default:
            raise InvalidStateError("Cannot delete default address. Set another address as default first.")

        addresses_repo.delete_address(db, address_id, tenant_id)
        logger.info("address deleted id=%s customer_id=%s", address_id, address.customer_id)

    def verify_ownership(self, db: Session, address_id: int, customer_id: int, tenant_id: int) -> bool:
        address = addresses_repo.get_address_by_id(db, address_id, tenant_id)
        if address is None:
            return False
        return address.customer_id == customer_id

    def get_customer_address_stats(self, db: Session, customer_id: int, tenant_id: int) -> dict[str, Any]:
        addresses = addresses_repo.get_addresses_by_customer_id(db, customer_id, tenant_id)
        default_address = next((address for address in addresses if address.is_default), None)
        return {
            "total_addresses": len(addresses),
            "has_default_address": default_address is not None,
            "default_address_id": default_address.id if default_address else None,
            "addresses_by_country": dict(Counter(address.country for address in addresses)),
        }


address_service = AddressService()
