"""
Convertisseur HQL/JPQL -> PostgreSQL.

Le texte SQL est produit à partir de l'AST et d'un QueryMetadata, en
substituant tables et colonnes via les correspondances enregistrées.
Sortie sur une seule ligne, clauses séparées par un espace.
"""

import logging
from typing import Dict, Optional

from .ast_nodes import (
    ASTNode, Literal, Path, Parameter, StarExpression, FunctionCall,
    ParenthesizedExpression, UnaryExpression, BinaryExpression,
    IsNullExpression, BetweenExpression, InExpression, LikeExpression,
    MemberOfExpression, ExistsExpression, SubqueryExpression, CaseExpression,
    WhenClause, SelectItem, ConstructorItem, FromItem, JoinClause,
    Assignment, OrderByItem, SelectStatement, UpdateStatement,
    DeleteStatement, InsertStatement,
)
from .analyzer import QueryAnalyzer, infer_entity_from_path
from .config import ConverterOptions, MappingConfig, ParserOptions
from .errors import ConversionError, UnsupportedFeatureError
from .metadata import QueryMetadata
from .parser import HQLParser
from .relationships import JoinMapping, RelationshipResolver

logger = logging.getLogger(__name__)


def to_snake_case(name: str) -> str:
    """
    Convertit un nom camelCase en snake_case.

    Les noms vides, contenant déjà un '_' ou déjà en minuscules sont
    retournés tels quels.

    Examples:
        userName -> user_name, HTTPServer -> http_server
    """
    if not name or '_' in name or name == name.lower():
        return name

    result = []
    for i, char in enumerate(name):
        if char.isupper():
            if i > 0 and (name[i - 1].islower() or name[i - 1].isdigit()
                          or (i + 1 < len(name) and name[i + 1].islower())):
                result.append('_')
            result.append(char.lower())
        else:
            result.append(char)
    return ''.join(result)


class HQLToPostgreSQLConverter:
    """
    Convertit des requêtes HQL/JPQL en SQL PostgreSQL.

    Les correspondances (entité -> table, champ -> colonne, relations)
    doivent être enregistrées avant les conversions; elles ne sont que
    lues pendant la conversion.
    """

    def __init__(self, options: ConverterOptions = None, parser_options: ParserOptions = None):
        """
        Initialise le convertisseur.

        Args:
            options: Options de conversion (exceptions du pluriel, jointures sans alias)
            parser_options: Options transmises au parser
        """
        self.options = options or ConverterOptions()
        self.parser_options = parser_options or ParserOptions()
        self.entity_to_table: Dict[str, str] = {}
        self.field_to_column: Dict[str, Dict[str, str]] = {}
        self.relationship_metadata: Dict[str, Dict[str, JoinMapping]] = {}
        self.resolver = RelationshipResolver(self.options.collection_exceptions)

    def register_entity_mapping(self, entity_name: str, table_name: str):
        """Associe une entité à sa table."""
        self.entity_to_table[entity_name] = table_name

    def register_field_mapping(self, entity_name: str, field_name: str, column_name: str):
        """Associe un champ d'entité à sa colonne."""
        self.field_to_column.setdefault(entity_name, {})[field_name] = column_name

    def set_relationship_metadata(self, metadata: Optional[Dict[str, Dict[str, JoinMapping]]]):
        """
        Remplace les relations connues.

        Args:
            metadata: {entité: {propriété: JoinMapping}}, None pour vider
        """
        self.relationship_metadata = dict(metadata) if metadata is not None else {}

    def apply_mappings(self, config: MappingConfig):
        """Enregistre toutes les correspondances d'un MappingConfig."""
        config.apply(self)

    def table_for(self, entity_name: str) -> str:
        """Table d'une entité, nom en minuscules à défaut de correspondance."""
        table = self.entity_to_table.get(entity_name)
        if table is None:
            table = entity_name.lower()
            logger.debug("No table mapping for %s, using %s", entity_name, table)
        return table

    def column_for(self, entity_name: Optional[str], field_name: str) -> str:
        """Colonne d'un champ, snake_case à défaut de correspondance."""
        if entity_name is not None:
            column = self.field_to_column.get(entity_name, {}).get(field_name)
            if column is not None:
                return column

        column = to_snake_case(field_name)
        logger.debug("No column mapping for %s.%s, using %s", entity_name, field_name, column)
        return column

    def convert(self, query: str, metadata: QueryMetadata = None) -> str:
        """
        Convertit une requête HQL en SQL PostgreSQL.

        Args:
            query: La requête HQL
            metadata: Résultat d'analyse; calculé depuis la requête si None

        Returns:
            La requête SQL

        Raises:
            QueryParseError: requête mal formée
            UnsupportedFeatureError: construction valide mais non traduisible
            ConversionError: tout autre échec de conversion
        """
        statement = HQLParser(self.parser_options).parse(query)
        if metadata is None:
            metadata = QueryAnalyzer().analyze(statement, query)

        kind = statement.get_type().replace("Statement", "").upper()
        try:
            return _SQLRenderer(self, metadata, kind).generate(statement)
        except ConversionError:
            raise
        except Exception as exc:
            raise ConversionError(f"Failed to convert {kind} statement: {exc}", kind) from exc


class _SQLRenderer:
    """Rendu SQL d'une instruction; une instance par conversion."""

    NILADIC_FUNCTIONS = {'CURRENT_DATE', 'CURRENT_TIME', 'CURRENT_TIMESTAMP'}

    def __init__(self, converter: HQLToPostgreSQLConverter, metadata: QueryMetadata, kind: str):
        self.converter = converter
        self.metadata = metadata
        self.kind = kind
        self.current_entity: Optional[str] = None  # cible d'un UPDATE/DELETE
        self.update_alias: Optional[str] = None

    def generate(self, node: ASTNode) -> str:
        """Dispatch vers la méthode appropriée selon le type de nœud."""
        if node is None:
            return ''

        node_type = type(node).__name__
        method = getattr(self, f'_gen_{node_type}', None)
        if method is None:
            raise ConversionError(f"Cannot render node type {node_type}", self.kind)
        return method(node)

    def _unsupported(self, feature: str):
        return UnsupportedFeatureError(feature, self.kind)

    def _join(self, nodes) -> str:
        return ", ".join(self.generate(node) for node in nodes)

    # ============== Instructions ==============

    def _gen_SelectStatement(self, stmt: SelectStatement) -> str:
        # FROM rendu en premier (contexte des alias), concaténé après SELECT
        from_sql = "FROM " + self._join(stmt.from_items)

        select_sql = "SELECT DISTINCT " if stmt.distinct else "SELECT "
        parts = [select_sql + self._join(stmt.select_items), from_sql]

        if stmt.where is not None:
            parts.append("WHERE " + self.generate(stmt.where))
        if stmt.group_by:
            parts.append("GROUP BY " + self._join(stmt.group_by))
        if stmt.having is not None:
            parts.append("HAVING " + self.generate(stmt.having))
        if stmt.order_by:
            parts.append("ORDER BY " + self._join(stmt.order_by))

        return " ".join(parts)

    def _gen_UpdateStatement(self, stmt: UpdateStatement) -> str:
        self.current_entity = stmt.entity_name
        self.update_alias = stmt.alias

        parts = ["UPDATE", self.converter.table_for(stmt.entity_name)]
        if stmt.alias:
            parts.append(stmt.alias)
        parts.append("SET " + self._join(stmt.assignments))
        if stmt.where is not None:
            parts.append("WHERE " + self.generate(stmt.where))

        self.current_entity = None
        self.update_alias = None
        return " ".join(parts)

    def _gen_DeleteStatement(self, stmt: DeleteStatement) -> str:
        self.current_entity = stmt.entity_name

        parts = ["DELETE FROM", self.converter.table_for(stmt.entity_name)]
        if stmt.alias:
            parts.append(stmt.alias)
        if stmt.where is not None:
            parts.append("WHERE " + self.generate(stmt.where))

        self.current_entity = None
        return " ".join(parts)

    def _gen_InsertStatement(self, stmt: InsertStatement) -> str:
        raise self._unsupported("INSERT")

    # ============== Clauses ==============

    def _gen_SelectItem(self, item: SelectItem) -> str:
        sql = self.generate(item.expression)
        if item.alias:
            sql += f" AS {item.alias}"
        return sql

    def _gen_ConstructorItem(self, item: ConstructorItem) -> str:
        # NEW Classe(...) disparaît, seuls les arguments restent
        if not item.args:
            raise self._unsupported("NEW without arguments")
        sql = self._join(item.args)
        if item.alias:
            sql += f" AS {item.alias}"
        return sql

    def _gen_FromItem(self, item: FromItem) -> str:
        parts = [self.converter.table_for(item.entity_name)]
        if item.alias:
            parts.append(item.alias)

        for join in item.joins:
            join_sql = self.generate(join)
            if join_sql:
                parts.append(join_sql)

        return " ".join(parts)

    def _gen_JoinClause(self, join: JoinClause) -> str:
        if not join.alias:
            if not self.converter.options.drop_aliasless_joins:
                raise self._unsupported(f"JOIN without alias ({join.path.text})")
            logger.warning("Dropping join without alias: %s", join.path.text)
            return ''

        source_alias = None
        mapping = None
        if len(join.path.parts) == 2:
            source_alias, property_name = join.path.parts
            source_entity = self.metadata.get_entity_for_alias(source_alias)
            if source_entity is not None:
                mapping = self.converter.relationship_metadata.get(source_entity, {}).get(property_name)

        keyword = f"{join.kind.value} JOIN" if join.kind.value else "JOIN"
        sql = f"{keyword} {self._join_table(join, mapping)} {join.alias}"

        if join.on is not None:
            return f"{sql} ON {self.generate(join.on)}"

        condition = None
        if mapping is not None:
            condition = self.converter.resolver.resolve(source_alias, join.path.text, join.alias, mapping)
        if condition is None:
            logger.warning("No relationship metadata for join %s, emitting JOIN without ON", join.path.text)
            return sql

        return f"{sql} ON {condition}"

    def _join_table(self, join: JoinClause, mapping: Optional[JoinMapping]) -> str:
        if mapping is not None:
            if mapping.target_entity in self.converter.entity_to_table:
                return self.converter.entity_to_table[mapping.target_entity]
            if mapping.target_table:
                return mapping.target_table

        entity = self.metadata.get_entity_for_alias(join.alias)
        if entity is None:
            entity = infer_entity_from_path(join.path)
            logger.warning("Join alias %s is unknown to the metadata, assuming entity %s",
                           join.alias, entity)
        return self.converter.table_for(entity)

    def _gen_Assignment(self, assignment: Assignment) -> str:
        # Colonne cible toujours non qualifiée (exigence PostgreSQL)
        parts = assignment.target.parts

        if len(parts) == 1:
            lhs = self.converter.column_for(self.current_entity, parts[0])
        else:
            first, second = parts[0], parts[1]
            entity = self.metadata.get_entity_for_alias(first) or first
            column = self.converter.column_for(entity, second)
            if first in (self.update_alias, self.current_entity) and entity == self.current_entity:
                lhs = ".".join([column] + parts[2:])
            else:
                lhs = ".".join([first, column] + parts[2:])

        return f"{lhs} = {self.generate(assignment.value)}"

    def _gen_OrderByItem(self, item: OrderByItem) -> str:
        sql = self.generate(item.expression)
        if item.direction is not None:
            sql += f" {item.direction.value}"
        if item.nulls:
            sql += f" NULLS {item.nulls}"
        return sql

    # ============== Expressions ==============

    def _gen_Literal(self, node: Literal) -> str:
        return node.value

    def _gen_Parameter(self, node: Parameter) -> str:
        return node.text

    def _gen_StarExpression(self, node: StarExpression) -> str:
        return "*"

    def _gen_Path(self, node: Path) -> str:
        parts = node.parts

        if len(parts) == 1:
            name = parts[0]
            if self.current_entity is not None and self.metadata.get_entity_for_alias(name) is None:
                return self.converter.column_for(self.current_entity, name)
            return name

        first = parts[0]
        entity = self.metadata.get_entity_for_alias(first)
        if entity is None:
            if first not in self.converter.entity_to_table:
                # Constante qualifiée ou référence inconnue
                return node.text
            entity = first

        column = self.converter.column_for(entity, parts[1])
        return ".".join([first, column] + parts[2:])

    def _gen_FunctionCall(self, node: FunctionCall) -> str:
        if not node.known:
            return f"{node.name}({self._join(node.args)})"

        if node.name == "SIZE":
            raise self._unsupported("SIZE()")

        if node.name in self.NILADIC_FUNCTIONS:
            return node.name

        if node.name == "TRIM":
            pieces = []
            if node.trim_specification:
                pieces.append(node.trim_specification)
            if node.trim_character is not None:
                pieces.append(self.generate(node.trim_character))
            if pieces:
                pieces.append("FROM")
            pieces.append(self.generate(node.args[0]))
            return f"TRIM({' '.join(pieces)})"

        if node.name == "CAST":
            return f"CAST({self.generate(node.args[0])} AS {node.cast_type})"

        distinct = "DISTINCT " if node.distinct else ""
        return f"{node.name}({distinct}{self._join(node.args)})"

    def _gen_ParenthesizedExpression(self, node: ParenthesizedExpression) -> str:
        return f"({self.generate(node.expression)})"

    def _gen_UnaryExpression(self, node: UnaryExpression) -> str:
        if node.operator == "NOT":
            return f"NOT {self.generate(node.operand)}"
        return f"{node.operator}{self.generate(node.operand)}"

    def _gen_BinaryExpression(self, node: BinaryExpression) -> str:
        return f"{self.generate(node.left)} {node.operator} {self.generate(node.right)}"

    def _gen_IsNullExpression(self, node: IsNullExpression) -> str:
        not_kw = " NOT" if node.negated else ""
        return f"{self.generate(node.expression)} IS{not_kw} NULL"

    def _gen_BetweenExpression(self, node: BetweenExpression) -> str:
        not_kw = " NOT" if node.negated else ""
        return (f"{self.generate(node.expression)}{not_kw} BETWEEN "
                f"{self.generate(node.lower)} AND {self.generate(node.upper)}")

    def _gen_InExpression(self, node: InExpression) -> str:
        not_kw = " NOT" if node.negated else ""
        if node.subquery is not None:
            inner = self.generate(node.subquery)
        elif node.parameter is not None:
            inner = self.generate(node.parameter)
        else:
            inner = self._join(node.values)
        return f"{self.generate(node.expression)}{not_kw} IN ({inner})"

    def _gen_LikeExpression(self, node: LikeExpression) -> str:
        not_kw = " NOT" if node.negated else ""
        sql = f"{self.generate(node.expression)}{not_kw} LIKE {self.generate(node.pattern)}"
        if node.escape is not None:
            sql += f" ESCAPE {self.generate(node.escape)}"
        return sql

    def _gen_MemberOfExpression(self, node: MemberOfExpression) -> str:
        raise self._unsupported("MEMBER OF")

    def _gen_ExistsExpression(self, node: ExistsExpression) -> str:
        return f"EXISTS ({self.generate(node.subquery)})"

    def _gen_SubqueryExpression(self, node: SubqueryExpression) -> str:
        return f"({self.generate(node.query)})"

    def _gen_CaseExpression(self, node: CaseExpression) -> str:
        parts = ["CASE"]
        if node.operand is not None:
            parts.append(self.generate(node.operand))
        parts.extend(self.generate(when) for when in node.when_clauses)
        if node.else_result is not None:
            parts.append(f"ELSE {self.generate(node.else_result)}")
        parts.append("END")
        return " ".join(parts)

    def _gen_WhenClause(self, node: WhenClause) -> str:
        return f"WHEN {self.generate(node.condition)} THEN {self.generate(node.result)}"


def convert(query: str, mappings: MappingConfig = None, options: ConverterOptions = None) -> str:
    """
    Fonction utilitaire pour convertir du HQL en PostgreSQL.

    Args:
        query: La requête HQL
        mappings: Correspondances entités / champs / relations
        options: Options de conversion

    Returns:
        La requête SQL
    """
    converter = HQLToPostgreSQLConverter(options)
    if mappings is not None:
        converter.apply_mappings(mappings)
    return converter.convert(query)
