"""Recover a route header and delivery lines from manifest text."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Optional

from ...exceptions import NoDeliveriesRecognized
from ...models.domain import CandidateDelivery, ManifestRecovery, Priority, RouteHeader
from .layouts import LayoutProfile

UNKNOWN_CUSTOMER = "Cliente Desconhecido"
UNKNOWN_ADDRESS = "Endereço não informado"

_NUMERIC_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{2,4})")
_WRITTEN_DATE = re.compile(r"(\d{1,2})\s+de\s+([^\W\d_]+)(?:\s+de\s+(\d{4}))?", re.IGNORECASE)


def parse_decimal(text: str, profile: Optional[LayoutProfile] = None) -> Decimal:
    """Parse ``"1.234,56"`` style numbers; the transformation is fixed, not locale-driven."""
    thousands = profile.thousands_separator if profile else "."
    decimal_mark = profile.decimal_separator if profile else ","
    cleaned = str(text).strip().replace(thousands, "").replace(decimal_mark, ".")
    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"Unable to parse decimal from value '{text}'") from exc


def format_decimal(value: Decimal | float, places: int = 2) -> str:
    """Inverse of ``parse_decimal``: ``Decimal("1234.56")`` -> ``"1.234,56"``."""
    rendered = f"{Decimal(value):,.{places}f}"
    return rendered.replace(",", "\x00").replace(".", ",").replace("\x00", ".")


def split_client_block(raw: str, city: str, line_break: str) -> tuple[str, str]:
    """Split a client cell into (name, address) and append the destination city to the address."""
    text = raw.replace("\r\n", "\n").strip()
    parts = [part.strip() for part in text.split(line_break) if part.strip()]

    if len(parts) > 1:
        name = parts[0]
        address = " ".join(parts[1:])
    elif text:
        single = parts[0] if parts else text
        if "," in single:
            name = single.split(",")[0].strip()
            address = single
        else:
            name = single
            address = single
    else:
        name = UNKNOWN_CUSTOMER
        address = UNKNOWN_ADDRESS

    if city:
        address = f"{address} - {city}"
    return name, address


def _flatten(value: str) -> str:
    return re.sub(r"[\r\n]+", " ", value).strip()


@lru_cache(maxsize=None)
def _row_pattern(profile: LayoutProfile) -> re.Pattern[str]:
    products = "|".join(profile.product_patterns)
    quantity = r"(\d[\d.]*,\d{2})"
    digits = profile.invoice_digits
    if profile.row_style == "quoted":
        # the scan for the quantity stops at the next line's quoted invoice cell
        tail = rf'(?:(?!"\d{{{digits}}}"\s*,)[\s\S])*?"'
        # a quoted cell may span the line break between client name and address, never a quote
        return re.compile(
            r'"(\d+)"\s*,\s*"([^"]*)"\s*,\s*"([^"]*)"\s*,\s*"([^"]*)"\s*,\s*"([^"]*)"'
            + tail
            + quantity,
        )

    cities = "|".join(profile.cities)
    # neither the client block nor the quantity scan may cross another line's invoice token
    not_next_invoice = rf"(?:(?!(?<!\d)\|?\s*\d{{{digits}}}\s*\|).)*?"
    return re.compile(
        rf"(?<!\d)(\d{{{digits}}})(?!\d)[\s|]+"
        + f"({not_next_invoice})"
        + rf"[\s|]+({cities})[\s|]+"
        + r"([^\W\d_](?:[^\W\d_]|[\s.])*?)[\s|]+"
        + rf"({products})(?=[^\S\n]*(?:\||\n|$))"
        + r"[\s|]*"
        + not_next_invoice
        + quantity,
        re.IGNORECASE,
    )


@lru_cache(maxsize=None)
def _anchor_pattern(profile: LayoutProfile) -> re.Pattern[str]:
    if profile.row_style == "quoted":
        return re.compile(rf'"(\d{{{profile.invoice_digits}}})"\s*,')
    return re.compile(rf"(?:^|\|)\s*(\d{{{profile.invoice_digits}}})\s*(?=\||$)", re.MULTILINE)


def recover_deliveries(text: str, profile: LayoutProfile) -> tuple[list[CandidateDelivery], list[str]]:
    """Scan the blob for delivery lines.

    Returns the recovered lines in document order and the invoice numbers
    that looked like line anchors but could not be recovered.
    """
    deliveries: list[CandidateDelivery] = []
    spans: list[tuple[int, int]] = []

    for match in _row_pattern(profile).finditer(text):
        invoice, raw_client, raw_city, raw_salesperson, raw_product, quantity = match.groups()
        city = _flatten(raw_city)
        customer_name, address = split_client_block(raw_client or "", city, profile.line_break)
        deliveries.append(
            CandidateDelivery(
                invoice_number=invoice,
                customer_name=customer_name,
                customer_address_text=address,
                volume=parse_decimal(quantity, profile),
                weight=Decimal("0"),
                value=Decimal("0"),
                priority=Priority.NORMAL,
                product=_flatten(raw_product) or None,
                salesperson_name=_flatten(raw_salesperson) or None,
            )
        )
        spans.append(match.span())

    skipped: list[str] = []
    for anchor in _anchor_pattern(profile).finditer(text):
        position = anchor.start(1)
        if not any(start <= position < end for start, end in spans):
            skipped.append(anchor.group(1))
    return deliveries, skipped


def _parse_header_date(raw: str, profile: LayoutProfile) -> Optional[datetime]:
    numeric = _NUMERIC_DATE.search(raw)
    try:
        if numeric:
            day, month, year = (int(group) for group in numeric.groups())
            if year < 100:
                year += 2000
            return datetime(year, month, day, tzinfo=timezone.utc)
        written = _WRITTEN_DATE.search(raw)
        if written and profile.month_names:
            month = profile.month_names.get(written.group(2).lower())
            if month:
                year = int(written.group(3)) if written.group(3) else datetime.now(timezone.utc).year
                return datetime(year, month, int(written.group(1)), tzinfo=timezone.utc)
    except ValueError:
        return None
    return None


def recover_header(text: str, profile: LayoutProfile) -> RouteHeader:
    """Run the labeled header searches; each one is optional."""
    driver_match = re.search(
        rf"{profile.driver_label}[\s|]*([^\W\d_]+(?:[^\S\n|]+[^\W\d_]+)*)", text, re.IGNORECASE
    )
    vehicle_match = re.search(
        rf"{profile.vehicle_label}[\s|]*([A-Z0-9]+(?:-[A-Z0-9]+)?)", text, re.IGNORECASE
    )
    date_match = re.search(rf"{profile.date_label}[\s|]*([^|\n]+)", text, re.IGNORECASE)

    driver_name = driver_match.group(1).split("|")[0].strip() if driver_match else ""
    vehicle_plate = vehicle_match.group(1).replace("-", "").strip() if vehicle_match else ""
    route_date = _parse_header_date(date_match.group(1), profile) if date_match else None
    if route_date is None:
        route_date = datetime.now(timezone.utc)

    first_name = driver_name.split(" ")[0] if driver_name else ""
    name = " - ".join(part for part in (profile.route_name_prefix, vehicle_plate, first_name or profile.default_driver_label) if part)
    return RouteHeader(
        name=name,
        date=route_date,
        driver_identifier=None,
        vehicle_plate=vehicle_plate,
        driver_name=driver_name,
    )


def recover_manifest(text: str, profile: LayoutProfile) -> ManifestRecovery:
    header = recover_header(text, profile)
    deliveries, skipped = recover_deliveries(text, profile)

    if not deliveries:
        layout_detected = all(marker in text for marker in profile.layout_markers)
        logging.warning(
            f"No deliveries recognized with layout '{profile.name}' (layout markers present: {layout_detected})"
        )
        raise NoDeliveriesRecognized(profile.name, layout_detected)

    if skipped:
        logging.warning(f"{len(skipped)} manifest line(s) could not be read and were skipped: {', '.join(skipped)}")
    logging.info(f"Recovered {len(deliveries)} deliveries for '{header.name}' using layout '{profile.name}'")
    return ManifestRecovery(header=header, deliveries=deliveries, skipped_invoices=skipped)
