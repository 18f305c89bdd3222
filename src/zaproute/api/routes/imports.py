"""Manifest import endpoints."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status

from ...config import settings
from ...exceptions import (
    BudgetExceeded,
    EmptyDocument,
    InvalidRouteHeader,
    ManifestImportError,
    NoDeliveriesRecognized,
    TransactionFailure,
    UnsupportedDocumentType,
)
from ...schemas.imports import ImportSummaryResponse, LayoutModel, RouteImportRequest, RouteImportResponse
from ...schemas.routes import route_model
from ...services.extraction import LAYOUTS, build_template_workbook
from ...services.extraction.text_extractor import SPREADSHEET_SUFFIXES
from ...services.imports import service
from ...services.imports.coordinator import RouteImportResult

router = APIRouter(prefix="/imports", tags=["imports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _to_http_error(exc: ManifestImportError) -> HTTPException:
    if isinstance(exc, UnsupportedDocumentType):
        code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    elif isinstance(exc, (EmptyDocument, NoDeliveriesRecognized)):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, InvalidRouteHeader):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, BudgetExceeded):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    elif isinstance(exc, TransactionFailure):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=exc.message)


def _import_response(result: RouteImportResult) -> RouteImportResponse:
    return RouteImportResponse(
        route=route_model(result.route),
        delivery_count=result.delivery_count,
        skipped_invoices=result.skipped_invoices,
    )


@router.get("/layouts", response_model=List[LayoutModel], status_code=status.HTTP_200_OK)
def list_layouts() -> List[LayoutModel]:
    return [
        LayoutModel(
            name=profile.name,
            description=profile.description,
            row_style=profile.row_style,
            default=profile.name == settings.default_layout,
        )
        for profile in LAYOUTS.values()
    ]


@router.post("/pdf", response_model=RouteImportResponse, status_code=status.HTTP_201_CREATED)
def import_pdf(
    tenant_id: str = Form(...),
    layout: str | None = Form(default=None),
    file: UploadFile = File(...),
) -> RouteImportResponse:
    """Import one PDF manifest as a single route."""
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Filename is required.")
    suffix = Path(file.filename).suffix.lower()
    if suffix != ".pdf":
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Only .pdf files are supported.")
    layout_name = layout or settings.default_layout
    if layout_name not in LAYOUTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown layout '{layout_name}'. Available: {', '.join(sorted(LAYOUTS))}",
        )

    payload = file.file.read()
    logging.info(f"PDF import requested: {file.filename} ({len(payload)} bytes) for tenant {tenant_id}")
    try:
        result = service.import_pdf_manifest(tenant_id, payload, layout_name, notifier=service.default_notifier())
    except ManifestImportError as exc:
        raise _to_http_error(exc) from exc
    return _import_response(result)


@router.post("/spreadsheet", response_model=ImportSummaryResponse, status_code=status.HTTP_200_OK)
def import_spreadsheet(
    tenant_id: str = Form(...),
    file: UploadFile = File(...),
) -> ImportSummaryResponse:
    """Import every route found in a spreadsheet; failed routes are reported, not fatal."""
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Filename is required.")
    suffix = Path(file.filename).suffix.lower()
    if suffix not in SPREADSHEET_SUFFIXES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Only .csv and .xlsx files are supported.",
        )

    payload = file.file.read()
    logging.info(f"Spreadsheet import requested: {file.filename} ({len(payload)} bytes) for tenant {tenant_id}")
    try:
        summary = service.import_spreadsheet_manifest(tenant_id, payload, suffix, notifier=service.default_notifier())
    except ManifestImportError as exc:
        raise _to_http_error(exc) from exc
    return ImportSummaryResponse.from_summary(summary)


@router.get("/spreadsheet/template", status_code=status.HTTP_200_OK)
def download_spreadsheet_template() -> Response:
    return Response(
        content=build_template_workbook(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="modelo_importacao_rotas.xlsx"'},
    )


@router.post("/routes", response_model=RouteImportResponse, status_code=status.HTTP_201_CREATED)
def import_route(payload: RouteImportRequest) -> RouteImportResponse:
    try:
        result = service.import_structured_route(
            payload.tenant_id,
            payload.to_header(),
            payload.to_candidates(),
            notifier=service.default_notifier(),
        )
    except ManifestImportError as exc:
        raise _to_http_error(exc) from exc
    return _import_response(result)
