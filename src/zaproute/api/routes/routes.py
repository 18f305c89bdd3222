"""Imported route read endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, HTTPException, Path, Query, status
from sqlalchemy.orm import selectinload

from ...db.session import get_session_factory
from ...models.tables import Delivery, Route
from ...persistence.repository import get_route, list_routes
from ...schemas.routes import RouteListResponse, RouteModel, route_model

router = APIRouter(prefix="/routes", tags=["routes"])

_WITH_DELIVERIES = selectinload(Route.deliveries).selectinload(Delivery.customer)


@router.get("", response_model=RouteListResponse, status_code=status.HTTP_200_OK)
def get_tenant_routes(
    tenant_id: str = Query(..., min_length=1, description="Tenant whose routes are listed"),
    days: int = Query(default=30, ge=1, le=365, description="How many days back to look"),
) -> RouteListResponse:
    since = datetime.now(timezone.utc) - timedelta(days=days)
    with get_session_factory()() as session:
        routes = list_routes(session, tenant_id, since=since, options=[_WITH_DELIVERIES])
        items = [route_model(route, with_customers=True) for route in routes]
    return RouteListResponse(tenant_id=tenant_id, days=days, total=len(items), routes=items)


@router.get("/{route_id}", response_model=RouteModel, status_code=status.HTTP_200_OK)
def get_route_detail(route_id: str = Path(..., description="Route identifier")) -> RouteModel:
    with get_session_factory()() as session:
        route = get_route(session, route_id, options=[_WITH_DELIVERIES])
        if route is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Route {route_id} not found.")
        return route_model(route, with_customers=True)
