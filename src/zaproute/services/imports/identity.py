"""Match manifest identities to a tenant's drivers, vehicles and customers."""

from __future__ import annotations

import logging
import re
from typing import Optional

from ...models.domain import UNRESOLVED, CandidateDelivery, DriverLookupStrategy, Resolution, Resolved
from ...persistence.repository import ImportRepository

PLACEHOLDER_DOCUMENT = "00000000000000"
PLACEHOLDER_EMAIL = "pendente@email.com"
PLACEHOLDER_PHONE = "0000000000"
ADDRESS_SOURCE = "manifest_import"
# Addresses this short are treated as noise and never overwrite a stored one
MIN_ADDRESS_LENGTH = 3

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")
_NON_DIGIT = re.compile(r"\D")


def normalize_identifier(value: Optional[str]) -> str:
    if not value:
        return ""
    return _NON_ALPHANUMERIC.sub("", str(value))


def normalize_plate(value: Optional[str]) -> str:
    return normalize_identifier(value).upper()


def format_tax_document(value: str) -> str:
    """Render a CNPJ (14 digits) or CPF (11 digits) with its usual mask."""
    digits = _NON_DIGIT.sub("", value or "")
    if len(digits) == 14:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"
    if len(digits) == 11:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
    return value


def _variants(*values: str) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def driver_strategy_from_config(config: dict) -> DriverLookupStrategy:
    raw = str(config.get("driverImportStrategy") or DriverLookupStrategy.CPF.value).upper()
    try:
        return DriverLookupStrategy(raw)
    except ValueError:
        logging.warning(f"Unknown driver import strategy '{raw}', falling back to CPF")
        return DriverLookupStrategy.CPF


class IdentityResolver:
    """Resolves identities within one tenant through an ``ImportRepository``.

    Matching is exact on purpose: similar-looking names are never merged,
    and an unmatched customer is created rather than reported as ambiguous.
    """

    def __init__(self, repository: ImportRepository) -> None:
        self.repository = repository

    def resolve_driver(
        self,
        tenant_id: str,
        identifier: Optional[str],
        strategy: DriverLookupStrategy = DriverLookupStrategy.CPF,
    ) -> Resolution:
        if not identifier:
            return UNRESOLVED
        if strategy is DriverLookupStrategy.PHONE:
            digits = _NON_DIGIT.sub("", identifier)
            if len(digits) <= 8:
                return UNRESOLVED
            candidates = [digits]
        elif strategy is DriverLookupStrategy.EXTERNAL_ID:
            candidates = _variants(identifier.strip())
        else:
            candidates = _variants(normalize_identifier(identifier), identifier)

        driver = self.repository.find_driver_by_tenant_and_identifier(tenant_id, candidates, strategy)
        if driver is None:
            logging.info(f"No driver matched {strategy.value} '{identifier}' for tenant {tenant_id}; route stays unassigned")
            return UNRESOLVED
        return Resolved(driver.id)

    def resolve_vehicle(self, tenant_id: str, plate: Optional[str]) -> Resolution:
        if not plate:
            return UNRESOLVED
        vehicle = self.repository.find_vehicle_by_tenant_and_plate(tenant_id, _variants(normalize_plate(plate), plate))
        if vehicle is None:
            logging.info(f"No vehicle matched plate '{plate}' for tenant {tenant_id}; route stays unassigned")
            return UNRESOLVED
        return Resolved(vehicle.id)

    def resolve_customer(self, tenant_id: str, candidate: CandidateDelivery) -> str:
        """Return the id of the matching customer, creating one when nothing matches."""
        customer = None
        document = (candidate.customer_document or "").strip()
        if normalize_identifier(document) == PLACEHOLDER_DOCUMENT:
            document = ""
        if document:
            cleaned = normalize_identifier(document)
            customer = self.repository.find_customer_by_tenant_and_document(
                tenant_id, _variants(document, cleaned, format_tax_document(cleaned))
            )
        if customer is None and candidate.customer_name:
            customer = self.repository.find_customer_by_tenant_and_name(tenant_id, candidate.customer_name)

        address = candidate.customer_address_text or ""
        if customer is not None:
            if len(address) > MIN_ADDRESS_LENGTH:
                # location is left alone: an already geocoded point must survive re-imports
                self.repository.update_customer_address(customer, {"street": address, "source": ADDRESS_SOURCE})
            return customer.id

        created = self.repository.create_customer(
            tenant_id,
            legal_name=candidate.customer_name,
            trade_name=candidate.customer_name,
            cnpj=normalize_identifier(document) or PLACEHOLDER_DOCUMENT,
            email=PLACEHOLDER_EMAIL,
            phone=PLACEHOLDER_PHONE,
            status="ACTIVE",
            address_details={"street": address, "source": ADDRESS_SOURCE},
            location={"lat": 0, "lng": 0, "address": address},
        )
        logging.debug(f"Created customer {created.id} ('{candidate.customer_name}') for tenant {tenant_id}")
        return created.id
