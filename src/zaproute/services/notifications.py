"""Driver notifications queued in the Supabase outbox table."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session, sessionmaker

from ..config import settings
from ..db.supabase import get_supabase_client
from ..persistence.repository import get_driver


def route_assigned_message(driver_name: str, route_name: str, delivery_count: int) -> str:
    return f'Olá {driver_name}! Nova rota "{route_name}" criada com {delivery_count} entregas.'


class DriverNotifier:
    """Queues a WhatsApp message for the driver of a freshly imported route.

    The messaging worker reading the outbox lives elsewhere; this class only
    writes rows. A failure here never undoes an import.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        client_getter: Callable[[], Any] = get_supabase_client,
        *,
        table: Optional[str] = None,
        enabled: Optional[bool] = None,
    ) -> None:
        self.session_factory = session_factory
        self.client_getter = client_getter
        self.table = table or settings.notifications_table
        self.enabled = settings.notify_drivers if enabled is None else enabled

    def notify_route_assigned(
        self,
        tenant_id: str,
        driver_id: Optional[str],
        route_id: str,
        route_name: str,
        delivery_count: int,
    ) -> bool:
        if not self.enabled or not driver_id:
            return False

        client = self.client_getter()
        if client is None:
            logging.debug("Supabase not configured; driver notification skipped")
            return False

        try:
            with self.session_factory() as session:
                driver = get_driver(session, driver_id)
                if driver is None or not driver.phone:
                    logging.info(f"Driver {driver_id} has no phone; notification for route {route_id} skipped")
                    return False
                driver_name, phone = driver.name, driver.phone

            client.table(self.table).insert(
                {
                    "tenant_id": tenant_id,
                    "driver_id": driver_id,
                    "route_id": route_id,
                    "phone": phone,
                    "message": route_assigned_message(driver_name, route_name, delivery_count),
                    "created_at": datetime.now(timezone.utc).isoformat(),
                }
            ).execute()
        except Exception as exc:
            logging.error(f"Failed to queue notification for driver {driver_id} (route {route_id}): {exc}")
            return False

        logging.info(f"Queued route notification for driver {driver_id} (route {route_id})")
        return True
