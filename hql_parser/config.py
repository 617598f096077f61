"""
Options de configuration du parser et du convertisseur, et chargement
des tables de correspondance (entités, champs, relations).
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Union

from .relationships import JoinMapping, DEFAULT_COLLECTION_EXCEPTIONS

logger = logging.getLogger(__name__)


@dataclass
class ParserOptions:
    """Options du parser."""
    max_depth: int = 64  # Profondeur maximale d'imbrication (expressions, sous-requêtes)


@dataclass
class ConverterOptions:
    """Options de conversion HQL -> PostgreSQL."""
    collection_exceptions: FrozenSet[str] = DEFAULT_COLLECTION_EXCEPTIONS
    drop_aliasless_joins: bool = True  # False: UnsupportedFeatureError au lieu d'ignorer

    def with_exceptions(self, *names: str) -> 'ConverterOptions':
        """Retourne une copie avec des exceptions supplémentaires."""
        return ConverterOptions(
            collection_exceptions=self.collection_exceptions | frozenset(names),
            drop_aliasless_joins=self.drop_aliasless_joins,
        )


@dataclass
class MappingConfig:
    """
    Tables de correspondance fournies par l'appelant.

    Format JSON:
        {"entities": {"User": "users"},
         "fields": {"User": {"userName": "user_name"}},
         "relationships": {"User": {"orders": {"target_entity": "Order",
                                               "join_column": "user_id", ...}}}}
    """
    entities: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, Dict[str, str]] = field(default_factory=dict)
    relationships: Dict[str, Dict[str, JoinMapping]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MappingConfig':
        """
        Construit la configuration depuis un dictionnaire.

        Raises:
            ValueError: structure invalide
        """
        if not isinstance(data, dict):
            raise ValueError("Mapping configuration must be a JSON object")

        unknown = set(data) - {"entities", "fields", "relationships"}
        if unknown:
            raise ValueError(f"Unknown mapping sections: {', '.join(sorted(unknown))}")

        relationships = {}
        for entity, properties in data.get("relationships", {}).items():
            relationships[entity] = {
                name: JoinMapping.from_dict(name, relation) for name, relation in properties.items()
            }

        config = cls(
            entities=dict(data.get("entities", {})),
            fields={entity: dict(columns) for entity, columns in data.get("fields", {}).items()},
            relationships=relationships,
        )
        logger.debug("Loaded %d entity mappings, %d relationship sources",
                     len(config.entities), len(config.relationships))
        return config

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'MappingConfig':
        """Charge la configuration depuis un fichier JSON."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": dict(self.entities),
            "fields": {entity: dict(columns) for entity, columns in self.fields.items()},
            "relationships": {
                entity: {name: mapping.to_dict() for name, mapping in properties.items()}
                for entity, properties in self.relationships.items()
            },
        }

    def apply(self, converter) -> None:
        """Enregistre toutes les correspondances dans un convertisseur."""
        for entity, table in self.entities.items():
            converter.register_entity_mapping(entity, table)
        for entity, columns in self.fields.items():
            for field_name, column in columns.items():
                converter.register_field_mapping(entity, field_name, column)
        if self.relationships:
            converter.set_relationship_metadata(self.relationships)
