"""
Métadonnées de relations entre entités et synthèse des clauses ON.

Une jointure implicite (u.orders o) ne dit pas de quel côté se trouve la
clé étrangère. Le RelationshipResolver tranche:
- relation collection (one-to-many): la clé étrangère est sur la table cible,
- relation directe (many-to-one, one-to-one): la clé est sur la table source.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)


class JoinType(Enum):
    """Type de jointure suggéré par la relation (indicatif seulement)."""
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


# Noms singuliers terminés par 's'
DEFAULT_COLLECTION_EXCEPTIONS = frozenset({
    "status", "address", "process", "class", "access", "business", "alias",
    "bonus", "canvas", "campus", "census", "corpus", "focus", "genus",
    "radius", "series", "species", "success", "progress", "analysis",
    "basis", "axis", "news",
})


@dataclass(frozen=True)
class JoinMapping:
    """Relation d'une entité source vers une entité cible via une propriété."""
    property_name: str
    target_entity: str
    join_column: str
    referenced_column: str = "id"
    join_type: JoinType = JoinType.INNER
    source_table: Optional[str] = None
    target_table: Optional[str] = None
    is_collection: Optional[bool] = None  # None: heuristique sur le nom

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "target_entity": self.target_entity,
            "join_column": self.join_column,
            "referenced_column": self.referenced_column,
            "join_type": self.join_type.value,
        }
        if self.source_table:
            result["source_table"] = self.source_table
        if self.target_table:
            result["target_table"] = self.target_table
        if self.is_collection is not None:
            result["is_collection"] = self.is_collection
        return result

    @classmethod
    def from_dict(cls, property_name: str, data: Dict[str, Any]) -> 'JoinMapping':
        """
        Construit une relation à partir de sa forme JSON.

        Args:
            property_name: Nom de la propriété de l'entité source
            data: Dictionnaire (target_entity, join_column, ...)

        Raises:
            ValueError: champ obligatoire absent ou join_type inconnu
        """
        for key in ("target_entity", "join_column"):
            if key not in data:
                raise ValueError(f"Relationship '{property_name}' is missing '{key}'")

        join_type = data.get("join_type", "INNER")
        try:
            join_type = JoinType(str(join_type).upper())
        except ValueError:
            raise ValueError(f"Unknown join_type {join_type!r} for relationship '{property_name}'")

        return cls(
            property_name=property_name,
            target_entity=data["target_entity"],
            join_column=data["join_column"],
            referenced_column=data.get("referenced_column", "id"),
            join_type=join_type,
            source_table=data.get("source_table"),
            target_table=data.get("target_table"),
            is_collection=data.get("is_collection"),
        )


class RelationshipResolver:
    """Décide du sens de la clé étrangère et produit la condition d'équi-jointure."""

    def __init__(self, exceptions: Iterable[str] = None):
        """
        Args:
            exceptions: Noms de propriétés terminés par 's' mais non collections
        """
        if exceptions is None:
            exceptions = DEFAULT_COLLECTION_EXCEPTIONS
        self.exceptions = frozenset(name.lower() for name in exceptions)

    def is_collection_property(self, property_name: str, mapping: JoinMapping = None) -> bool:
        """
        Vrai si la propriété désigne une collection.

        Le drapeau is_collection de la relation fait foi quand il est renseigné.
        Sinon: pluriel syntaxique (finit par 's', longueur > 1) hors exceptions.
        """
        if mapping is not None and mapping.is_collection is not None:
            return mapping.is_collection

        name = property_name.lower()
        return len(name) > 1 and name.endswith("s") and name not in self.exceptions

    def resolve(self, source_alias: str, path: str, target_alias: str,
                mapping: Optional[JoinMapping]) -> Optional[str]:
        """
        Synthétise la condition ON d'une jointure implicite.

        Args:
            source_alias: Alias de l'entité source (u dans u.orders)
            path: Chemin de jointure (u.orders)
            target_alias: Alias de la cible (o)
            mapping: Relation enregistrée pour (entité source, propriété)

        Returns:
            "gauche.colonne = droite.colonne", ou None sans relation
        """
        if mapping is None:
            logger.debug("No relationship metadata for %s", path)
            return None

        property_name = path.split(".")[-1]

        if self.is_collection_property(property_name, mapping):
            logger.debug("%s treated as a collection: foreign key on %s", path, target_alias)
            return "%s.%s = %s.%s" % (target_alias, mapping.join_column,
                                      source_alias, mapping.referenced_column)

        logger.debug("%s treated as a direct relation: foreign key on %s", path, source_alias)
        return "%s.%s = %s.%s" % (source_alias, mapping.join_column,
                                  target_alias, mapping.referenced_column)
