"""Error taxonomy for the customizer backend.

Each error carries the HTTP status the API layer answers with. Geometry
and resolution problems are clamped away before they can happen, so
``GeometryConstraintViolation`` exists for completeness only.
"""


class CustomizerError(Exception):
    """Base class for all customizer errors."""

    status_code: int = 500
    message: str = "Възникна неочаквана грешка."  # Unexpected error


class ValidationError(CustomizerError):
    """Missing product identity, empty attribute set, empty design, etc."""

    status_code = 400
    message = "Невалидна заявка. Моля, проверете данните."  # Invalid request


class NotFoundError(CustomizerError):
    """A referenced product definition or cart item does not exist."""

    status_code = 404
    message = "Ресурсът не е намерен."  # Resource not found


class OwnershipError(CustomizerError):
    """The caller does not own the definition it tries to author."""

    status_code = 403
    message = "Нямате права за този продукт."  # No rights for this product


class UpstreamServiceError(CustomizerError):
    """Catalog or image-proxy failure. Degraded at the boundary, never fatal."""

    status_code = 502
    message = "Грешка при свързване с услугата."  # Connection error


class PersistenceError(CustomizerError):
    """Definition or cart write/read failure."""

    status_code = 503
    message = "Грешка при запис на данните."  # Storage error


class GeometryConstraintViolation(CustomizerError):
    """Never raised: region geometry is clamped instead."""

    status_code = 400
