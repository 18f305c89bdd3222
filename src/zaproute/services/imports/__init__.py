"""Route import services."""

from .coordinator import ImportBudget, RouteImportCoordinator, RouteImportResult, normalize_route_date
from .identity import IdentityResolver
from .service import (
    import_pdf_manifest,
    import_route_groups,
    import_spreadsheet_manifest,
    import_structured_route,
)

__all__ = [
    "ImportBudget",
    "RouteImportCoordinator",
    "RouteImportResult",
    "normalize_route_date",
    "IdentityResolver",
    "import_pdf_manifest",
    "import_route_groups",
    "import_spreadsheet_manifest",
    "import_structured_route",
]
