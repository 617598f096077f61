"""
Métadonnées sémantiques d'une requête HQL.

QueryMetadataBuilder accumule pendant l'analyse; build() produit un
QueryMetadata figé, jamais modifié ensuite.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


class QueryType(Enum):
    """Type d'instruction."""
    SELECT = "SELECT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    INSERT = "INSERT"


@dataclass(frozen=True)
class JoinPathInfo:
    """Jointure par chemin (u.orders o) relevée pendant l'analyse."""
    source_alias: str
    path_expression: str
    target_alias: Optional[str]
    target_entity: Optional[str]

    @property
    def property_name(self) -> str:
        return self.path_expression.split(".")[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_alias": self.source_alias,
            "path": self.path_expression,
            "target_alias": self.target_alias,
            "target_entity": self.target_entity,
        }


@dataclass(frozen=True)
class QueryMetadata:
    """Résultat immuable de l'analyse sémantique."""
    original_query: str
    query_type: QueryType
    entity_names: Tuple[str, ...] = ()
    alias_to_entity: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    entity_fields: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    parameters: Tuple[str, ...] = ()
    join_paths: Mapping[str, JoinPathInfo] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def aliases(self) -> Tuple[str, ...]:
        return tuple(self.alias_to_entity)

    def get_entity_for_alias(self, alias: str) -> Optional[str]:
        """Retourne l'entité associée à un alias, ou None."""
        return self.alias_to_entity.get(alias)

    def get_fields(self, entity: str) -> Tuple[str, ...]:
        return self.entity_fields.get(entity, ())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query_type": self.query_type.value,
            "entities": list(self.entity_names),
            "aliases": dict(self.alias_to_entity),
            "fields": {entity: list(fields) for entity, fields in self.entity_fields.items()},
            "parameters": list(self.parameters),
            "join_paths": {path: info.to_dict() for path, info in self.join_paths.items()},
        }

    def __str__(self) -> str:
        lines = [
            f"Query type: {self.query_type.value}",
            f"Entities: {', '.join(self.entity_names) or '-'}",
            "Aliases: " + (", ".join(f"{a} -> {e}" for a, e in self.alias_to_entity.items()) or "-"),
        ]
        for entity, fields in self.entity_fields.items():
            lines.append(f"Fields of {entity}: {', '.join(fields)}")
        lines.append(f"Parameters: {', '.join(self.parameters) or '-'}")
        return "\n".join(lines)


class QueryMetadataBuilder:
    """Accumulateur mutable utilisé pendant l'analyse (et par les tests pour construire des métadonnées)."""

    def __init__(self, original_query: str = "", query_type: QueryType = QueryType.SELECT):
        self.original_query = original_query
        self.query_type = query_type
        self._entities: Dict[str, None] = {}
        self._aliases: Dict[str, str] = {}
        self._fields: Dict[str, Dict[str, None]] = {}
        self._parameters: Dict[str, None] = {}
        self._join_paths: Dict[str, JoinPathInfo] = {}

    def add_entity(self, entity: str, alias: str = None) -> 'QueryMetadataBuilder':
        """Enregistre une entité et, s'il est fourni, son alias."""
        self._entities.setdefault(entity, None)
        if alias:
            self._aliases[alias] = entity
        return self

    def add_entity_field(self, entity: str, field_name: str) -> 'QueryMetadataBuilder':
        self._entities.setdefault(entity, None)
        self._fields.setdefault(entity, {}).setdefault(field_name, None)
        return self

    def add_parameter(self, name: str) -> 'QueryMetadataBuilder':
        self._parameters.setdefault(name, None)
        return self

    def add_join_path(self, source_alias: str, path_expression: str,
                      target_alias: str = None, target_entity: str = None) -> 'QueryMetadataBuilder':
        self._join_paths[path_expression] = JoinPathInfo(
            source_alias=source_alias,
            path_expression=path_expression,
            target_alias=target_alias,
            target_entity=target_entity,
        )
        return self

    def has_entity(self, entity: str) -> bool:
        return entity in self._entities

    def get_entity_for_alias(self, alias: str) -> Optional[str]:
        return self._aliases.get(alias)

    def is_alias(self, name: str) -> bool:
        return name in self._aliases

    def build(self) -> QueryMetadata:
        """Fige les données accumulées."""
        return QueryMetadata(
            original_query=self.original_query,
            query_type=self.query_type,
            entity_names=tuple(self._entities),
            alias_to_entity=MappingProxyType(dict(self._aliases)),
            entity_fields=MappingProxyType({e: tuple(f) for e, f in self._fields.items()}),
            parameters=tuple(self._parameters),
            join_paths=MappingProxyType(dict(self._join_paths)),
        )
