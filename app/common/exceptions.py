"""
Errores de infraestructura compartidos por los stores.

Las reglas de negocio no se expresan como excepciones: los servicios
devuelven objetos de resultado. Estas clases sólo cubren fallos del
almacenamiento que el llamador debe manejar aparte.
"""


class StoreError(Exception):
    """Fallo de la capa de persistencia (conexión, I/O, SQL)."""


class DuplicateCategoryError(StoreError):
    """La restricción única (tenant, padre, nombre) rechazó la escritura."""
