"""
Nœuds de l'Arbre Syntaxique Abstrait (AST) pour HQL/JPQL.

Chaque nœud possède exclusivement ses enfants: l'arbre est construit
de bas en haut pendant le parsing puis n'est plus modifié.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Any, Dict
from enum import Enum


class ASTNode(ABC):
    """Classe de base pour tous les nœuds de l'AST."""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convertit le nœud en dictionnaire."""
        pass

    def get_type(self) -> str:
        """Retourne le type du nœud."""
        return self.__class__.__name__


# ============== Énumérations ==============

class JoinKind(Enum):
    """Type de jointure tel qu'écrit dans la requête."""
    PLAIN = ""
    INNER = "INNER"
    LEFT = "LEFT"
    LEFT_OUTER = "LEFT OUTER"
    RIGHT = "RIGHT"
    RIGHT_OUTER = "RIGHT OUTER"


class OrderDirection(Enum):
    """Direction de tri."""
    ASC = "ASC"
    DESC = "DESC"


class LiteralType(Enum):
    """Types de littéraux."""
    INTEGER = "integer"
    DECIMAL = "decimal"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"


def _opt(node: Optional[ASTNode]) -> Optional[Dict[str, Any]]:
    return node.to_dict() if node is not None else None


# ============== Expressions ==============

@dataclass
class Expression(ASTNode):
    """Classe de base pour les expressions."""
    pass


@dataclass
class Literal(Expression):
    """Valeur littérale, conservée telle qu'écrite ('abc', 10L, TRUE, NULL)."""
    value: str
    literal_type: LiteralType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "Literal",
            "value": self.value,
            "literal_type": self.literal_type.value
        }


@dataclass
class Path(Expression):
    """Chemin pointé: identifiant simple, alias.propriété, constante qualifiée..."""
    parts: List[str]

    @property
    def text(self) -> str:
        return ".".join(self.parts)

    @property
    def first(self) -> str:
        return self.parts[0]

    @property
    def is_qualified(self) -> bool:
        return len(self.parts) > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "Path",
            "path": self.text
        }


@dataclass
class Parameter(Expression):
    """
    Paramètre de requête.

    Un paramètre nommé garde son nom sans ':' (userName), un paramètre
    positionnel garde son texte complet (?1).
    """
    name: str
    positional: bool = False

    @property
    def text(self) -> str:
        return self.name if self.positional else f":{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "Parameter",
            "name": self.name,
            "positional": self.positional
        }


@dataclass
class StarExpression(Expression):
    """Le * de COUNT(*)."""

    def to_dict(self) -> Dict[str, Any]:
        return {"node_type": "Star"}


@dataclass
class FunctionCall(Expression):
    """
    Appel de fonction (COUNT(*), UPPER(x), fonction inconnue...).

    trim_specification / trim_character ne servent qu'à TRIM, cast_type
    qu'à CAST.
    """
    name: str
    args: List[Expression] = field(default_factory=list)
    distinct: bool = False
    known: bool = True
    trim_specification: Optional[str] = None
    trim_character: Optional[Expression] = None
    cast_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "FunctionCall",
            "name": self.name,
            "arguments": [arg.to_dict() for arg in self.args]
        }
        if self.distinct:
            result["distinct"] = True
        if not self.known:
            result["known"] = False
        if self.trim_specification:
            result["trim_specification"] = self.trim_specification
        if self.trim_character is not None:
            result["trim_character"] = self.trim_character.to_dict()
        if self.cast_type:
            result["cast_type"] = self.cast_type
        return result


@dataclass
class ParenthesizedExpression(Expression):
    """Expression entre parenthèses explicites."""
    expression: Expression

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "Parenthesized",
            "expression": self.expression.to_dict()
        }


@dataclass
class UnaryExpression(Expression):
    """Opération unaire: NOT x, -x, +x."""
    operator: str
    operand: Expression

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "UnaryExpression",
            "operator": self.operator,
            "operand": self.operand.to_dict()
        }


@dataclass
class BinaryExpression(Expression):
    """Opération binaire, opérateur conservé tel qu'écrit (!= reste !=)."""
    left: Expression
    operator: str
    right: Expression

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "BinaryExpression",
            "operator": self.operator,
            "left": self.left.to_dict(),
            "right": self.right.to_dict()
        }


@dataclass
class IsNullExpression(Expression):
    """x IS [NOT] NULL."""
    expression: Expression
    negated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "IsNullExpression",
            "expression": self.expression.to_dict(),
            "negated": self.negated
        }


@dataclass
class BetweenExpression(Expression):
    """x [NOT] BETWEEN a AND b."""
    expression: Expression
    lower: Expression
    upper: Expression
    negated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "BetweenExpression",
            "expression": self.expression.to_dict(),
            "lower": self.lower.to_dict(),
            "upper": self.upper.to_dict(),
            "negated": self.negated
        }


@dataclass
class InExpression(Expression):
    """x [NOT] IN (liste), IN (sous-requête) ou IN :param."""
    expression: Expression
    values: List[Expression] = field(default_factory=list)
    subquery: Optional['SelectStatement'] = None
    parameter: Optional[Parameter] = None
    negated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "InExpression",
            "expression": self.expression.to_dict(),
            "negated": self.negated
        }
        if self.subquery is not None:
            result["subquery"] = self.subquery.to_dict()
        elif self.parameter is not None:
            result["parameter"] = self.parameter.to_dict()
        else:
            result["values"] = [v.to_dict() for v in self.values]
        return result


@dataclass
class LikeExpression(Expression):
    """x [NOT] LIKE motif [ESCAPE c]."""
    expression: Expression
    pattern: Expression
    escape: Optional[Expression] = None
    negated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "LikeExpression",
            "expression": self.expression.to_dict(),
            "pattern": self.pattern.to_dict(),
            "negated": self.negated
        }
        if self.escape is not None:
            result["escape"] = self.escape.to_dict()
        return result


@dataclass
class MemberOfExpression(Expression):
    """x [NOT] MEMBER [OF] collection."""
    element: Expression
    collection: Path
    negated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "MemberOfExpression",
            "element": self.element.to_dict(),
            "collection": self.collection.to_dict(),
            "negated": self.negated
        }


@dataclass
class ExistsExpression(Expression):
    """EXISTS (sous-requête)."""
    subquery: 'SelectStatement'

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "ExistsExpression",
            "subquery": self.subquery.to_dict()
        }


@dataclass
class SubqueryExpression(Expression):
    """Sous-requête scalaire: (SELECT ...)."""
    query: 'SelectStatement'

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "SubqueryExpression",
            "query": self.query.to_dict()
        }


@dataclass
class WhenClause(ASTNode):
    """WHEN condition THEN résultat."""
    condition: Expression
    result: Expression

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "WhenClause",
            "when": self.condition.to_dict(),
            "then": self.result.to_dict()
        }


@dataclass
class CaseExpression(Expression):
    """CASE [opérande] WHEN ... THEN ... [ELSE ...] END."""
    operand: Optional[Expression] = None
    when_clauses: List[WhenClause] = field(default_factory=list)
    else_result: Optional[Expression] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "CaseExpression",
            "when_clauses": [w.to_dict() for w in self.when_clauses]
        }
        if self.operand is not None:
            result["operand"] = self.operand.to_dict()
        if self.else_result is not None:
            result["else"] = self.else_result.to_dict()
        return result


# ============== Éléments de clauses ==============

@dataclass
class SelectItem(ASTNode):
    """Élément de la liste SELECT."""
    expression: Expression
    alias: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "SelectItem",
            "expression": self.expression.to_dict()
        }
        if self.alias:
            result["alias"] = self.alias
        return result


@dataclass
class ConstructorItem(ASTNode):
    """SELECT NEW com.example.Dto(args)."""
    class_name: str
    args: List[Expression] = field(default_factory=list)
    alias: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "ConstructorItem",
            "class_name": self.class_name,
            "arguments": [arg.to_dict() for arg in self.args]
        }
        if self.alias:
            result["alias"] = self.alias
        return result


@dataclass
class JoinClause(ASTNode):
    """[INNER|LEFT|RIGHT [OUTER]] JOIN [FETCH] chemin [alias] [ON condition]."""
    kind: JoinKind
    path: Path
    alias: Optional[str] = None
    fetch: bool = False
    on: Optional[Expression] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "JoinClause",
            "kind": self.kind.value or "JOIN",
            "path": self.path.text,
            "fetch": self.fetch
        }
        if self.alias:
            result["alias"] = self.alias
        if self.on is not None:
            result["on"] = self.on.to_dict()
        return result


@dataclass
class FromItem(ASTNode):
    """Entité de la clause FROM avec ses jointures."""
    entity_name: str
    alias: Optional[str] = None
    joins: List[JoinClause] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "FromItem",
            "entity": self.entity_name
        }
        if self.alias:
            result["alias"] = self.alias
        if self.joins:
            result["joins"] = [j.to_dict() for j in self.joins]
        return result


@dataclass
class Assignment(ASTNode):
    """Affectation SET chemin = valeur."""
    target: Path
    value: Expression

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "Assignment",
            "target": self.target.text,
            "value": self.value.to_dict()
        }


@dataclass
class OrderByItem(ASTNode):
    """Élément ORDER BY."""
    expression: Expression
    direction: Optional[OrderDirection] = None
    nulls: Optional[str] = None  # FIRST ou LAST

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "OrderByItem",
            "expression": self.expression.to_dict()
        }
        if self.direction:
            result["direction"] = self.direction.value
        if self.nulls:
            result["nulls"] = self.nulls
        return result


# ============== Statements ==============

@dataclass
class Statement(ASTNode):
    """Classe de base pour les instructions."""
    pass


@dataclass
class SelectStatement(Statement):
    """Requête SELECT."""
    select_items: List[ASTNode] = field(default_factory=list)
    from_items: List[FromItem] = field(default_factory=list)
    distinct: bool = False
    where: Optional[Expression] = None
    group_by: List[Expression] = field(default_factory=list)
    having: Optional[Expression] = None
    order_by: List[OrderByItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "node_type": "SelectStatement",
            "distinct": self.distinct,
            "select": [item.to_dict() for item in self.select_items],
            "from": [item.to_dict() for item in self.from_items]
        }
        if self.where is not None:
            result["where"] = self.where.to_dict()
        if self.group_by:
            result["group_by"] = [g.to_dict() for g in self.group_by]
        if self.having is not None:
            result["having"] = self.having.to_dict()
        if self.order_by:
            result["order_by"] = [o.to_dict() for o in self.order_by]
        return result


@dataclass
class UpdateStatement(Statement):
    """Requête UPDATE."""
    entity_name: str
    alias: Optional[str] = None
    assignments: List[Assignment] = field(default_factory=list)
    where: Optional[Expression] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "UpdateStatement",
            "entity": self.entity_name,
            "alias": self.alias,
            "set": [a.to_dict() for a in self.assignments],
            "where": _opt(self.where)
        }


@dataclass
class DeleteStatement(Statement):
    """Requête DELETE."""
    entity_name: str
    alias: Optional[str] = None
    where: Optional[Expression] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "DeleteStatement",
            "entity": self.entity_name,
            "alias": self.alias,
            "where": _opt(self.where)
        }


@dataclass
class InsertStatement(Statement):
    """INSERT INTO Entité (chemins) SELECT ..."""
    entity_name: str
    target_paths: List[Path] = field(default_factory=list)
    select: Optional[SelectStatement] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": "InsertStatement",
            "entity": self.entity_name,
            "columns": [p.text for p in self.target_paths],
            "select": _opt(self.select)
        }
