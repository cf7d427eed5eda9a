"""Entity store backends."""

from docflow.infrastructure.persistence.factory import create_entity_store

__all__ = ["create_entity_store"]
