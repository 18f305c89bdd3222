"""Import entry points: PDF manifests, spreadsheets and structured routes."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ...config import settings
from ...db.session import get_session_factory
from ...exceptions import ManifestImportError
from ...models.domain import CandidateDelivery, ImportFailure, ImportSummary, RouteGroup, RouteHeader
from ..extraction.layouts import get_layout
from ..extraction.recovery import recover_manifest
from ..extraction.spreadsheet import group_rows_by_route, rows_to_route_group
from ..extraction.text_extractor import extract_pdf_text, extract_spreadsheet_rows
from ..notifications import DriverNotifier
from .coordinator import RouteImportCoordinator, RouteImportResult


def default_coordinator() -> RouteImportCoordinator:
    return RouteImportCoordinator(get_session_factory())


def default_notifier() -> DriverNotifier:
    return DriverNotifier(get_session_factory())


def _notify(notifier: Optional[DriverNotifier], tenant_id: str, result: RouteImportResult) -> None:
    if notifier is None:
        return
    notifier.notify_route_assigned(
        tenant_id,
        result.driver_id,
        result.route.id,
        result.route.name,
        result.delivery_count,
    )


def import_structured_route(
    tenant_id: str,
    header: RouteHeader,
    deliveries: Sequence[CandidateDelivery],
    *,
    coordinator: Optional[RouteImportCoordinator] = None,
    notifier: Optional[DriverNotifier] = None,
) -> RouteImportResult:
    result = (coordinator or default_coordinator()).import_route(tenant_id, header, deliveries)
    _notify(notifier, tenant_id, result)
    return result


def import_pdf_manifest(
    tenant_id: str,
    payload: bytes,
    layout_name: Optional[str] = None,
    *,
    coordinator: Optional[RouteImportCoordinator] = None,
    notifier: Optional[DriverNotifier] = None,
) -> RouteImportResult:
    """Extract, recover and persist one PDF manifest as a single route.

    Extraction and recovery errors are raised before anything is written.
    """
    profile = get_layout(layout_name or settings.default_layout)
    text = extract_pdf_text(payload, profile.join)
    recovery = recover_manifest(text, profile)

    result = import_structured_route(
        tenant_id,
        recovery.header,
        recovery.deliveries,
        coordinator=coordinator,
        notifier=notifier,
    )
    result.skipped_invoices = list(recovery.skipped_invoices)
    return result


def import_route_groups(
    tenant_id: str,
    groups: Iterable[RouteGroup],
    *,
    coordinator: Optional[RouteImportCoordinator] = None,
    notifier: Optional[DriverNotifier] = None,
) -> ImportSummary:
    """Import each group in its own transaction; one failing group never blocks the others."""
    coordinator = coordinator or default_coordinator()
    summary = ImportSummary()
    for group in groups:
        try:
            result = import_structured_route(
                tenant_id,
                group.header,
                group.deliveries,
                coordinator=coordinator,
                notifier=notifier,
            )
        except ManifestImportError as exc:
            logging.error(f"Route '{group.header.name}' was not imported: {exc.message}")
            summary.errors.append(ImportFailure(route_label=group.header.name, message=exc.message))
            continue
        summary.success_count += 1
        summary.route_ids.append(result.route.id)

    logging.info(f"Spreadsheet import finished: {summary.success_count} route(s) imported, {len(summary.errors)} failed")
    return summary


def import_spreadsheet_manifest(
    tenant_id: str,
    payload: bytes,
    suffix: str,
    *,
    coordinator: Optional[RouteImportCoordinator] = None,
    notifier: Optional[DriverNotifier] = None,
) -> ImportSummary:
    """Import every route of a spreadsheet.

    A route whose cells cannot be converted is reported in the summary
    alongside the routes that failed to persist.
    """
    rows = extract_spreadsheet_rows(payload, suffix)
    grouped = group_rows_by_route(rows)
    logging.info(f"Spreadsheet contains {len(rows)} row(s) across {len(grouped)} route(s)")

    groups: list[RouteGroup] = []
    failures: list[ImportFailure] = []
    for route_name, route_rows in grouped.items():
        try:
            groups.append(rows_to_route_group(route_name, route_rows))
        except ValueError as exc:
            logging.error(f"Route '{route_name}' was not imported: {exc}")
            failures.append(ImportFailure(route_label=route_name, message=str(exc)))

    summary = import_route_groups(tenant_id, groups, coordinator=coordinator, notifier=notifier)
    summary.errors = failures + summary.errors
    return summary
