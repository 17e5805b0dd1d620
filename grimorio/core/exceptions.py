# grimorio/core/exceptions.py

# ***************************************************************
# Errores de dominio
# Los servicios los lanzan; main.py los traduce a respuestas HTTP.
# ***************************************************************


class GrimorioError(Exception):
    """Error base de la aplicación. Lleva un mensaje legible para el cliente."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(GrimorioError):
    """Credenciales inválidas, cuenta inactiva, token inválido o sin roles en la sucursal."""


class Forbidden(GrimorioError):
    """El usuario está autenticado pero no cumple la política requerida."""


class InvalidOperation(GrimorioError):
    """Regla de negocio violada (unicidad, referencia a otra sucursal, etc.)."""


class NotFound(InvalidOperation):
    """La entidad buscada no existe (o fue eliminada) en la sucursal del usuario."""
