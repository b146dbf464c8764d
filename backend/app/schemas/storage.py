"""
Schémas Pydantic pour le listing du stockage objet.
"""

from typing import List

from pydantic import BaseModel


class StorageListing(BaseModel):
    """Un niveau de la hiérarchie : sous-dossiers et objets directs."""
    prefix: str
    prefixes: List[str]
    items: List[str]
