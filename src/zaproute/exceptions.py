"""
Manifest import exceptions.

Every failure the import pipeline can surface to a caller derives from
``ManifestImportError`` so API handlers and the multi-route import loop can
catch one type and still tell the cases apart.

Exception Hierarchy:
    ManifestImportError (base)
    ├── UnsupportedDocumentType
    ├── EmptyDocument
    ├── NoDeliveriesRecognized
    ├── InvalidRouteHeader
    ├── IdentityResolutionAmbiguous
    └── TransactionFailure
        └── BudgetExceeded
"""

from __future__ import annotations


class ManifestImportError(Exception):
    """
    Base exception for all manifest import errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class UnsupportedDocumentType(ManifestImportError):
    """Raised when an uploaded document has a suffix the extractor cannot read."""

    def __init__(self, suffix: str, supported: list[str]):
        message = f"Unsupported document type: '{suffix}'"
        super().__init__(message, {"suffix": suffix, "supported": supported})


class EmptyDocument(ManifestImportError):
    """Raised when a document has no pages or no data rows."""

    def __init__(self, kind: str = "document"):
        super().__init__(f"The {kind} has no pages or rows to import.", {"kind": kind})


class NoDeliveriesRecognized(ManifestImportError):
    """
    Raised when the recovery grammar matches no delivery line.

    ``layout_detected`` is True when the text carries the layout's marker
    tokens, meaning the document is probably the right kind and extraction
    failed, rather than the wrong document entirely.
    """

    def __init__(self, layout: str, layout_detected: bool):
        if layout_detected:
            message = (
                "Layout detected, but no delivery line could be read. "
                "The PDF may contain characters the parser does not recognize."
            )
        else:
            message = f"No deliveries identified. Check that the document matches the '{layout}' layout."
        self.layout = layout
        self.layout_detected = layout_detected
        super().__init__(message, {"layout": layout, "layout_detected": layout_detected})


class InvalidRouteHeader(ManifestImportError):
    """Raised when a route header field is missing or cannot be interpreted."""

    def __init__(self, field: str, value: object = None, reason: str | None = None):
        message = reason or f"Invalid route {field}: {value!r}"
        super().__init__(message, {"field": field, "value": value})


class IdentityResolutionAmbiguous(ManifestImportError):
    """
    Reserved for strict identity matching.

    The resolver never raises it today: unmatched customers are created and
    unmatched drivers/vehicles are left unassigned.
    """


class TransactionFailure(ManifestImportError):
    """Raised when the atomic route import fails and is rolled back."""

    def __init__(self, route_name: str, cause: BaseException | str | None = None, message: str | None = None):
        self.route_name = route_name
        self.cause = cause
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(message or f"Import of route '{route_name}' failed: {reason}", {"route": route_name})


class BudgetExceeded(TransactionFailure):
    """Raised when an import runs past its connection or execution budget."""

    def __init__(self, route_name: str, phase: str, budget_seconds: float):
        self.phase = phase
        self.budget_seconds = budget_seconds
        message = (
            f"Import of route '{route_name}' exceeded its {phase} budget of {budget_seconds:g}s "
            "and was rolled back"
        )
        super().__init__(route_name, cause=f"{phase} budget exceeded", message=message)
        self.details.update({"phase": phase, "budget_seconds": budget_seconds})


__all__ = [
    "ManifestImportError",
    "UnsupportedDocumentType",
    "EmptyDocument",
    "NoDeliveriesRecognized",
    "InvalidRouteHeader",
    "IdentityResolutionAmbiguous",
    "TransactionFailure",
    "BudgetExceeded",
]
