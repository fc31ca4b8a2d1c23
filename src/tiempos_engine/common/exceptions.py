"""Tiempos-Engine exception hierarchy.

These never cross the client call surface: backends catch them and turn
them into ``ApiError`` envelopes.
"""


class TiemposError(Exception):
    """Base exception for all Tiempos errors."""

    def __init__(self, message: str = "", code: str = "TIEMPOS_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(TiemposError):
    """Raised when a lookup, update or delete filter matches no row."""

    def __init__(self, message: str = "No encontrado"):
        super().__init__(message, code="NOT_FOUND")


class MultipleRowsError(TiemposError):
    """Raised when single() matches more than one row."""

    def __init__(self, message: str = "Multiple rows returned for single()"):
        super().__init__(message, code="MULTIPLE_ROWS")


class UnsupportedOperationError(TiemposError):
    """Raised when a table has no rule for the requested operation."""

    def __init__(self, message: str = "Operation not supported for this table"):
        super().__init__(message, code="UNSUPPORTED")


class InvalidRowError(TiemposError):
    """Raised when a write payload breaks a table invariant."""

    def __init__(self, message: str = "Invalid row"):
        super().__init__(message, code="INVALID_ROW")


class IdentityCollisionError(TiemposError):
    """Raised when a cedula is already registered to another user."""

    def __init__(self, message: str = "Cedula already registered"):
        super().__init__(message, code="IDENTITY_COLLISION")


class AuthFailureError(TiemposError):
    """Raised when sign-in is rejected."""

    def __init__(self, message: str = "Error de Inicio de Sesión Simulado"):
        super().__init__(message, code="AUTH_FAILURE")


class BackendUnavailableError(TiemposError):
    """Raised when the hosted backend cannot be reached."""

    def __init__(self, message: str = "Backend unreachable"):
        super().__init__(message, code="NETWORK_ERROR")
