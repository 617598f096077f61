"""
Analyse sémantique d'un AST HQL.

Parcourt l'arbre une seule fois et collecte entités, alias, champs par
entité et paramètres. La clause FROM est toujours visitée avant les
expressions qui utilisent ses alias.
"""

import logging
from typing import Optional

from .ast_nodes import (
    ASTNode, Statement, SelectStatement, UpdateStatement, DeleteStatement,
    InsertStatement, FromItem, JoinClause, Path,
)
from .metadata import QueryMetadata, QueryMetadataBuilder, QueryType

logger = logging.getLogger(__name__)


def infer_entity_from_path(path: Path) -> str:
    """
    Devine l'entité cible d'une jointure par chemin.

    u.orders -> Order (dépluralisation naïve puis majuscule initiale).
    Un chemin sans point est déjà un nom d'entité.
    """
    if not path.is_qualified:
        return path.text

    name = path.parts[-1]
    if name.endswith("s") and len(name) > 1:
        name = name[:-1]
    return name[0].upper() + name[1:]


class QueryAnalyzer:
    """Produit un QueryMetadata à partir d'un AST."""

    STATEMENT_TYPES = {
        SelectStatement: QueryType.SELECT,
        UpdateStatement: QueryType.UPDATE,
        DeleteStatement: QueryType.DELETE,
        InsertStatement: QueryType.INSERT,
    }

    def __init__(self):
        self.builder: Optional[QueryMetadataBuilder] = None
        self.current_entity: Optional[str] = None
        self.in_update_or_delete = False

    def analyze(self, statement: Statement, original_query: str = "") -> QueryMetadata:
        """
        Analyse une instruction.

        Args:
            statement: Racine de l'AST
            original_query: Texte source, conservé dans le résultat

        Returns:
            QueryMetadata figé
        """
        query_type = self.STATEMENT_TYPES.get(type(statement))
        if query_type is None:
            raise TypeError(f"Cannot analyze {type(statement).__name__}")

        self.builder = QueryMetadataBuilder(original_query, query_type)
        self.current_entity = None
        self.in_update_or_delete = False

        self._visit(statement)

        metadata = self.builder.build()
        logger.debug("Analyzed %s: %d entities, %d aliases, %d parameters",
                     query_type.value, len(metadata.entity_names),
                     len(metadata.alias_to_entity), len(metadata.parameters))
        return metadata

    def _visit(self, node):
        """Dispatch vers _visit_<Type>; les nœuds sans méthode dédiée sont parcourus génériquement."""
        if node is None:
            return
        if isinstance(node, list):
            for item in node:
                self._visit(item)
            return

        method = getattr(self, f'_visit_{type(node).__name__}', None)
        if method is not None:
            method(node)
        else:
            self._visit_children(node)

    def _visit_children(self, node: ASTNode):
        for value in vars(node).values():
            if isinstance(value, (ASTNode, list)):
                self._visit(value)

    # ============== Instructions ==============

    def _visit_SelectStatement(self, stmt: SelectStatement):
        # FROM d'abord: les alias doivent être connus avant les expressions
        for item in stmt.from_items:
            self._visit(item)

        self._visit(stmt.select_items)
        self._visit(stmt.where)
        self._visit(stmt.group_by)
        self._visit(stmt.having)
        self._visit(stmt.order_by)

    def _visit_target(self, entity_name: str, alias: Optional[str], clauses):
        self.builder.add_entity(entity_name, alias)
        self.current_entity = entity_name
        self.in_update_or_delete = True

        for clause in clauses:
            self._visit(clause)

        self.in_update_or_delete = False
        self.current_entity = None

    def _visit_UpdateStatement(self, stmt: UpdateStatement):
        self._visit_target(stmt.entity_name, stmt.alias, [stmt.assignments, stmt.where])

    def _visit_DeleteStatement(self, stmt: DeleteStatement):
        self._visit_target(stmt.entity_name, stmt.alias, [stmt.where])

    def _visit_InsertStatement(self, stmt: InsertStatement):
        self.builder.add_entity(stmt.entity_name)
        for path in stmt.target_paths:
            self.builder.add_entity_field(stmt.entity_name, path.text)
        self._visit(stmt.select)

    # ============== FROM / JOIN ==============

    def _visit_FromItem(self, item: FromItem):
        self.builder.add_entity(item.entity_name, item.alias)
        for join in item.joins:
            self._visit(join)

    def _visit_JoinClause(self, join: JoinClause):
        entity = infer_entity_from_path(join.path)
        self.builder.add_entity(entity, join.alias)

        if join.path.is_qualified:
            self.builder.add_join_path(join.path.first, join.path.text, join.alias, entity)

        self._visit(join.on)

    # ============== Expressions ==============

    def _visit_ConstructorItem(self, item):
        # Le nom de classe n'est ni une entité ni un champ
        self._visit(item.args)

    def _visit_Parameter(self, param):
        self.builder.add_parameter(param.name)

    def _visit_Path(self, path: Path):
        builder = self.builder

        if not path.is_qualified:
            name = path.first
            if (not builder.is_alias(name) and self.in_update_or_delete
                    and self.current_entity is not None):
                builder.add_entity_field(self.current_entity, name)
            return

        first = path.first
        entity = builder.get_entity_for_alias(first)
        if entity is None:
            if not builder.has_entity(first):
                # Constante qualifiée (com.foo.Status.ACTIVE) ou référence inconnue
                logger.debug("Opaque path %s", path.text)
                return
            entity = first

        field_name = path.parts[1]
        builder.add_entity_field(entity, field_name)
        for nested in path.parts[2:]:
            field_name = f"{field_name}.{nested}"
            builder.add_entity_field(entity, field_name)
