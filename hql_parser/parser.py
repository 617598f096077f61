"""
Parser HQL - Analyseur syntaxique.

Convertit une séquence de tokens en un AST (Abstract Syntax Tree).
Supporte SELECT, UPDATE, DELETE et INSERT ... SELECT.
"""

import logging
from typing import List, Optional

from .tokenizer import HQLTokenizer, Token, TokenType, FUNCTION_KEYWORDS, NILADIC_FUNCTIONS
from .errors import HQLSyntaxError, QueryParseError
from .config import ParserOptions
from .analyzer import QueryAnalyzer
from .ast_nodes import (
    Expression, Literal, Path, Parameter, StarExpression, FunctionCall,
    ParenthesizedExpression, UnaryExpression, BinaryExpression,
    IsNullExpression, BetweenExpression, InExpression, LikeExpression,
    MemberOfExpression, ExistsExpression, SubqueryExpression,
    CaseExpression, WhenClause, LiteralType, JoinKind, OrderDirection,
    SelectItem, ConstructorItem, FromItem, JoinClause, Assignment,
    OrderByItem, Statement, SelectStatement, UpdateStatement,
    DeleteStatement, InsertStatement,
)

logger = logging.getLogger(__name__)


class HQLParser:
    """Parser HQL qui construit un AST à partir de tokens."""

    AGGREGATE_FUNCTIONS = {
        TokenType.AVG, TokenType.COUNT, TokenType.MAX, TokenType.MIN, TokenType.SUM,
    }

    TRIM_SPECIFICATIONS = {'LEADING', 'TRAILING', 'BOTH'}

    EQUALITY_OPERATORS = (TokenType.EQUALS, TokenType.NOT_EQUALS)

    COMPARISON_OPERATORS = (
        TokenType.LESS_THAN, TokenType.LESS_EQUAL,
        TokenType.GREATER_THAN, TokenType.GREATER_EQUAL,
    )

    def __init__(self, options: ParserOptions = None):
        """
        Initialise le parser.

        Args:
            options: Options du parser (profondeur maximale d'imbrication)
        """
        self.options = options or ParserOptions()
        self.tokens: List[Token] = []
        self.pos: int = 0
        self.depth: int = 0

    def _current(self) -> Token:
        """Retourne le token courant."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 1) -> Token:
        """Regarde le token à offset positions devant."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[pos]

    def _advance(self) -> Token:
        """Avance au prochain token et retourne le précédent."""
        token = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def _match(self, *token_types: TokenType) -> bool:
        """Vérifie si le token courant est d'un des types spécifiés."""
        return self._current().type in token_types

    def _check(self, token_type: TokenType) -> bool:
        """Vérifie si le token courant est du type spécifié."""
        return self._current().type == token_type

    def _expect(self, token_type: TokenType, message: str = None) -> Token:
        """Attend un token d'un type spécifique, lève une erreur sinon."""
        if not self._check(token_type):
            msg = message or f"Expected {token_type.name} but found {self._describe(self._current())}"
            raise HQLSyntaxError(msg, self._current())
        return self._advance()

    def _consume_if(self, token_type: TokenType) -> bool:
        """Consomme le token si c'est du type spécifié."""
        if self._check(token_type):
            self._advance()
            return True
        return False

    def _describe(self, token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of input"
        return repr(token.value)

    def _is_identifier_like(self, token: Token) -> bool:
        """Identifiant, ou mot-clé de fonction utilisé comme nom."""
        return token.type == TokenType.IDENTIFIER or token.type in FUNCTION_KEYWORDS

    def _expect_identifier(self, what: str) -> str:
        token = self._current()
        if not self._is_identifier_like(token):
            raise HQLSyntaxError(f"Expected {what} but found {self._describe(token)}", token)
        return self._advance().value

    def _enter(self):
        """Descend d'un niveau d'imbrication (garde contre la récursion)."""
        self.depth += 1
        if self.depth > self.options.max_depth:
            raise HQLSyntaxError(
                f"Maximum nesting depth of {self.options.max_depth} exceeded", self._current()
            )

    def _leave(self):
        self.depth -= 1

    # ============== Points d'entrée ==============

    def parse(self, query: str) -> Statement:
        """
        Parse une requête HQL et retourne l'instruction racine.

        Args:
            query: La requête HQL à parser

        Returns:
            SelectStatement, UpdateStatement, DeleteStatement ou InsertStatement

        Raises:
            QueryParseError: erreur lexicale ou syntaxique
        """
        self.tokens = HQLTokenizer(query).tokenize()
        self.pos = 0
        self.depth = 0

        try:
            statement = self._parse_statement()
        except RecursionError as exc:
            raise HQLSyntaxError("Query is nested too deeply", self._current()) from exc

        self._consume_if(TokenType.SEMICOLON)
        if not self._check(TokenType.EOF):
            raise HQLSyntaxError(
                f"Unexpected token {self._describe(self._current())} after end of statement",
                self._current()
            )

        logger.debug("Parsed %s", statement.get_type())
        return statement

    def analyze(self, query: str):
        """
        Parse puis analyse une requête.

        Returns:
            QueryMetadata
        """
        statement = self.parse(query)
        return QueryAnalyzer().analyze(statement, query)

    def is_valid(self, query: str) -> bool:
        """Vrai si la requête est syntaxiquement valide."""
        try:
            self.parse(query)
            return True
        except QueryParseError as exc:
            logger.debug("Invalid query: %s", exc)
            return False

    # ============== Instructions ==============

    def _parse_statement(self) -> Statement:
        """Dispatch sur le premier mot-clé."""
        if self._check(TokenType.SELECT):
            return self._parse_select()
        if self._check(TokenType.UPDATE):
            return self._parse_update()
        if self._check(TokenType.DELETE):
            return self._parse_delete()
        if self._check(TokenType.INSERT):
            return self._parse_insert()

        raise HQLSyntaxError(
            f"Expected SELECT, UPDATE, DELETE or INSERT but found {self._describe(self._current())}",
            self._current()
        )

    def _parse_select(self) -> SelectStatement:
        """Parse une requête SELECT (également utilisé pour les sous-requêtes)."""
        self._enter()
        self._expect(TokenType.SELECT)

        stmt = SelectStatement()
        stmt.distinct = self._consume_if(TokenType.DISTINCT)

        stmt.select_items.append(self._parse_select_item())
        while self._consume_if(TokenType.COMMA):
            stmt.select_items.append(self._parse_select_item())

        self._expect(TokenType.FROM, f"Expected FROM but found {self._describe(self._current())}")
        stmt.from_items.append(self._parse_from_item())
        while self._consume_if(TokenType.COMMA):
            stmt.from_items.append(self._parse_from_item())

        if self._consume_if(TokenType.WHERE):
            stmt.where = self._parse_expression()

        if self._consume_if(TokenType.GROUP):
            self._expect(TokenType.BY, "Expected BY after GROUP")
            stmt.group_by.append(self._parse_expression())
            while self._consume_if(TokenType.COMMA):
                stmt.group_by.append(self._parse_expression())

        if self._consume_if(TokenType.HAVING):
            stmt.having = self._parse_expression()

        if self._consume_if(TokenType.ORDER):
            self._expect(TokenType.BY, "Expected BY after ORDER")
            stmt.order_by.append(self._parse_order_by_item())
            while self._consume_if(TokenType.COMMA):
                stmt.order_by.append(self._parse_order_by_item())

        self._leave()
        return stmt

    def _parse_update(self) -> UpdateStatement:
        """UPDATE Entité [[AS] alias] SET chemin = expr, ... [WHERE expr]."""
        self._expect(TokenType.UPDATE)
        entity_name = self._parse_entity_name()
        alias = self._parse_optional_alias()

        stmt = UpdateStatement(entity_name=entity_name, alias=alias)
        self._expect(TokenType.SET, f"Expected SET but found {self._describe(self._current())}")

        stmt.assignments.append(self._parse_assignment())
        while self._consume_if(TokenType.COMMA):
            stmt.assignments.append(self._parse_assignment())

        if self._consume_if(TokenType.WHERE):
            stmt.where = self._parse_expression()

        return stmt

    def _parse_assignment(self) -> Assignment:
        target = self._parse_path()
        self._expect(TokenType.EQUALS, "Expected '=' in SET clause")
        value = self._parse_expression()
        return Assignment(target=target, value=value)

    def _parse_delete(self) -> DeleteStatement:
        """DELETE [FROM] Entité [[AS] alias] [WHERE expr]."""
        self._expect(TokenType.DELETE)
        self._consume_if(TokenType.FROM)
        entity_name = self._parse_entity_name()
        alias = self._parse_optional_alias()

        stmt = DeleteStatement(entity_name=entity_name, alias=alias)
        if self._consume_if(TokenType.WHERE):
            stmt.where = self._parse_expression()

        return stmt

    def _parse_insert(self) -> InsertStatement:
        """INSERT INTO Entité (chemin, ...) SELECT ..."""
        self._expect(TokenType.INSERT)
        self._expect(TokenType.INTO, "Expected INTO after INSERT")
        entity_name = self._parse_entity_name()

        stmt = InsertStatement(entity_name=entity_name)
        self._expect(TokenType.LPAREN, "Expected '(' before INSERT target list")
        stmt.target_paths.append(self._parse_path())
        while self._consume_if(TokenType.COMMA):
            stmt.target_paths.append(self._parse_path())
        self._expect(TokenType.RPAREN, "Expected ')' after INSERT target list")

        if not self._check(TokenType.SELECT):
            raise HQLSyntaxError("INSERT requires a SELECT source", self._current())
        stmt.select = self._parse_select()
        return stmt

    # ============== Clauses ==============

    def _parse_select_item(self):
        """Élément SELECT: expression ou NEW Classe(args), avec alias optionnel."""
        if self._consume_if(TokenType.NEW):
            class_name = self._parse_entity_name()
            self._expect(TokenType.LPAREN, "Expected '(' after constructor class name")
            args = []
            if not self._check(TokenType.RPAREN):
                args.append(self._parse_expression())
                while self._consume_if(TokenType.COMMA):
                    args.append(self._parse_expression())
            self._expect(TokenType.RPAREN, f"Expected ')' to close constructor arguments "
                                           f"but found {self._describe(self._current())}")
            return ConstructorItem(class_name=class_name, args=args, alias=self._parse_optional_alias())

        expression = self._parse_expression()
        return SelectItem(expression=expression, alias=self._parse_optional_alias())

    def _parse_optional_alias(self) -> Optional[str]:
        """[AS] alias"""
        if self._consume_if(TokenType.AS):
            return self._expect_identifier("alias after AS")
        if self._check(TokenType.IDENTIFIER):
            return self._advance().value
        return None

    def _parse_entity_name(self) -> str:
        """Nom d'entité, éventuellement qualifié (com.example.User)."""
        parts = [self._expect_identifier("entity name")]
        while self._check(TokenType.DOT):
            self._advance()
            parts.append(self._parse_word_after_dot())
        return ".".join(parts)

    def _parse_from_item(self) -> FromItem:
        entity_name = self._parse_entity_name()
        item = FromItem(entity_name=entity_name, alias=self._parse_optional_alias())

        while self._match(TokenType.JOIN, TokenType.INNER, TokenType.LEFT, TokenType.RIGHT):
            item.joins.append(self._parse_join())

        return item

    def _parse_join(self) -> JoinClause:
        """[INNER | LEFT [OUTER] | RIGHT [OUTER]] JOIN [FETCH] chemin [[AS] alias] [ON expr]"""
        kind = JoinKind.PLAIN
        if self._consume_if(TokenType.INNER):
            kind = JoinKind.INNER
        elif self._consume_if(TokenType.LEFT):
            kind = JoinKind.LEFT_OUTER if self._consume_if(TokenType.OUTER) else JoinKind.LEFT
        elif self._consume_if(TokenType.RIGHT):
            kind = JoinKind.RIGHT_OUTER if self._consume_if(TokenType.OUTER) else JoinKind.RIGHT

        self._expect(TokenType.JOIN, f"Expected JOIN but found {self._describe(self._current())}")
        fetch = self._consume_if(TokenType.FETCH)
        path = self._parse_path()
        alias = self._parse_optional_alias()

        on = None
        if self._consume_if(TokenType.ON):
            on = self._parse_expression()

        return JoinClause(kind=kind, path=path, alias=alias, fetch=fetch, on=on)

    def _parse_order_by_item(self) -> OrderByItem:
        """expr [ASC | DESC] [NULLS (FIRST | LAST)]"""
        item = OrderByItem(expression=self._parse_expression())

        if self._consume_if(TokenType.ASC):
            item.direction = OrderDirection.ASC
        elif self._consume_if(TokenType.DESC):
            item.direction = OrderDirection.DESC

        if self._consume_if(TokenType.NULLS):
            if self._consume_if(TokenType.FIRST):
                item.nulls = "FIRST"
            elif self._consume_if(TokenType.LAST):
                item.nulls = "LAST"
            else:
                raise HQLSyntaxError("Expected FIRST or LAST after NULLS", self._current())

        return item

    # ============== Expressions ==============

    def _parse_expression(self) -> Expression:
        """Parse une expression (point d'entrée)."""
        self._enter()
        expr = self._parse_or_expression()
        self._leave()
        return expr

    def _parse_or_expression(self) -> Expression:
        """Parse une expression OR."""
        left = self._parse_and_expression()

        while self._consume_if(TokenType.OR):
            right = self._parse_and_expression()
            left = BinaryExpression(left=left, operator="OR", right=right)

        return left

    def _parse_and_expression(self) -> Expression:
        """Parse une expression AND."""
        left = self._parse_not_expression()

        while self._consume_if(TokenType.AND):
            right = self._parse_not_expression()
            left = BinaryExpression(left=left, operator="AND", right=right)

        return left

    def _parse_not_expression(self) -> Expression:
        """Parse une expression NOT."""
        if self._consume_if(TokenType.NOT):
            self._enter()
            operand = self._parse_not_expression()
            self._leave()
            return UnaryExpression(operator="NOT", operand=operand)

        return self._parse_predicate_expression()

    def _parse_predicate_expression(self) -> Expression:
        """
        Égalité, IS NULL, BETWEEN, IN, LIKE, MEMBER OF (même niveau, associatif à gauche).
        """
        left = self._parse_comparison_expression()

        while True:
            if self._match(*self.EQUALITY_OPERATORS):
                operator = self._advance().value
                right = self._parse_comparison_expression()
                left = BinaryExpression(left=left, operator=operator, right=right)
                continue

            if self._consume_if(TokenType.IS):
                negated = self._consume_if(TokenType.NOT)
                self._expect(TokenType.NULL, "Expected NULL after IS")
                left = IsNullExpression(expression=left, negated=negated)
                continue

            negated = False
            if self._check(TokenType.NOT) and self._peek().type in (
                    TokenType.BETWEEN, TokenType.IN, TokenType.LIKE, TokenType.MEMBER):
                self._advance()
                negated = True

            if self._consume_if(TokenType.BETWEEN):
                lower = self._parse_comparison_expression()
                self._expect(TokenType.AND, "Expected AND in BETWEEN")
                upper = self._parse_comparison_expression()
                left = BetweenExpression(expression=left, lower=lower, upper=upper, negated=negated)
                continue

            if self._consume_if(TokenType.IN):
                left = self._parse_in_expression(left, negated)
                continue

            if self._consume_if(TokenType.LIKE):
                pattern = self._parse_comparison_expression()
                escape = None
                if self._consume_if(TokenType.ESCAPE):
                    escape = self._parse_comparison_expression()
                left = LikeExpression(expression=left, pattern=pattern, escape=escape, negated=negated)
                continue

            if self._consume_if(TokenType.MEMBER):
                self._consume_if(TokenType.OF)
                collection = self._parse_path()
                left = MemberOfExpression(element=left, collection=collection, negated=negated)
                continue

            break

        return left

    def _parse_in_expression(self, left: Expression, negated: bool) -> InExpression:
        """Parse une expression IN: sous-requête, liste ou paramètre."""
        if self._match(TokenType.NAMED_PARAMETER, TokenType.POSITIONAL_PARAMETER):
            parameter = self._parse_parameter()
            return InExpression(expression=left, parameter=parameter, negated=negated)

        self._expect(TokenType.LPAREN, "Expected '(' after IN")

        if self._check(TokenType.SELECT):
            subquery = self._parse_select()
            self._expect(TokenType.RPAREN, "Expected ')' after IN sub-query")
            return InExpression(expression=left, subquery=subquery, negated=negated)

        values = [self._parse_expression()]
        while self._consume_if(TokenType.COMMA):
            values.append(self._parse_expression())

        self._expect(TokenType.RPAREN, "Expected ')' to close IN list")
        return InExpression(expression=left, values=values, negated=negated)

    def _parse_comparison_expression(self) -> Expression:
        """Parse une comparaison (<, <=, >, >=)."""
        left = self._parse_additive_expression()

        while self._match(*self.COMPARISON_OPERATORS):
            operator = self._advance().value
            right = self._parse_additive_expression()
            left = BinaryExpression(left=left, operator=operator, right=right)

        return left

    def _parse_additive_expression(self) -> Expression:
        """Parse une expression additive (+, -, ||)."""
        left = self._parse_multiplicative_expression()

        while self._match(TokenType.PLUS, TokenType.MINUS, TokenType.CONCAT_OP):
            operator = self._advance().value
            right = self._parse_multiplicative_expression()
            left = BinaryExpression(left=left, operator=operator, right=right)

        return left

    def _parse_multiplicative_expression(self) -> Expression:
        """Parse une expression multiplicative (*, /, %)."""
        left = self._parse_unary_expression()

        while self._match(TokenType.STAR, TokenType.DIVIDE, TokenType.MODULO):
            operator = self._advance().value
            right = self._parse_unary_expression()
            left = BinaryExpression(left=left, operator=operator, right=right)

        return left

    def _parse_unary_expression(self) -> Expression:
        """Parse une expression unaire (-, +)."""
        if self._match(TokenType.MINUS, TokenType.PLUS):
            operator = self._advance().value
            self._enter()
            operand = self._parse_unary_expression()
            self._leave()
            return UnaryExpression(operator=operator, operand=operand)

        return self._parse_primary_expression()

    def _parse_primary_expression(self) -> Expression:
        """Parse une expression primaire."""
        token = self._current()

        # Parenthèses: sous-requête scalaire ou expression groupée
        if token.type == TokenType.LPAREN:
            self._advance()
            if self._check(TokenType.SELECT):
                query = self._parse_select()
                self._expect(TokenType.RPAREN, "Expected ')' after sub-query")
                return SubqueryExpression(query=query)
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN, f"Expected ')' but found {self._describe(self._current())}")
            return ParenthesizedExpression(expression=expr)

        # Littéraux
        if token.type == TokenType.INTEGER:
            self._advance()
            return Literal(value=token.value, literal_type=LiteralType.INTEGER)
        if token.type == TokenType.DECIMAL:
            self._advance()
            return Literal(value=token.value, literal_type=LiteralType.DECIMAL)
        if token.type == TokenType.STRING:
            self._advance()
            return Literal(value=token.value, literal_type=LiteralType.STRING)
        if token.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return Literal(value=token.value.lower(), literal_type=LiteralType.BOOLEAN)
        if token.type == TokenType.NULL:
            self._advance()
            return Literal(value="NULL", literal_type=LiteralType.NULL)

        if token.type in (TokenType.NAMED_PARAMETER, TokenType.POSITIONAL_PARAMETER):
            return self._parse_parameter()

        if token.type == TokenType.CASE:
            return self._parse_case_expression()

        if token.type == TokenType.EXISTS:
            self._advance()
            self._expect(TokenType.LPAREN, "Expected '(' after EXISTS")
            if not self._check(TokenType.SELECT):
                raise HQLSyntaxError("Expected sub-query after EXISTS", self._current())
            subquery = self._parse_select()
            self._expect(TokenType.RPAREN, "Expected ')' after EXISTS sub-query")
            return ExistsExpression(subquery=subquery)

        if token.type in NILADIC_FUNCTIONS:
            self._advance()
            return FunctionCall(name=token.type.name)

        # Fonctions connues
        if token.type in FUNCTION_KEYWORDS and self._peek().type == TokenType.LPAREN:
            return self._parse_function_call()

        # Fonction inconnue: nom(args)
        if token.type == TokenType.IDENTIFIER and self._peek().type == TokenType.LPAREN:
            return self._parse_generic_function()

        if self._is_identifier_like(token):
            return self._parse_path()

        raise HQLSyntaxError(f"Unexpected token {self._describe(token)}", token)

    def _parse_parameter(self) -> Parameter:
        token = self._advance()
        if token.type == TokenType.NAMED_PARAMETER:
            return Parameter(name=token.value[1:])
        return Parameter(name=token.value, positional=True)

    def _parse_word_after_dot(self) -> str:
        token = self._current()
        if not token.is_word():
            raise HQLSyntaxError(f"Expected identifier after '.' but found {self._describe(token)}", token)
        return self._advance().value

    def _parse_path(self) -> Path:
        """Chemin pointé: alias, alias.propriété, a.b.c..."""
        parts = [self._expect_identifier("identifier")]
        while self._check(TokenType.DOT):
            self._advance()
            parts.append(self._parse_word_after_dot())
        return Path(parts=parts)

    def _parse_argument_list(self) -> List[Expression]:
        """Arguments entre parenthèses (la parenthèse ouvrante est consommée)."""
        args = []
        if not self._check(TokenType.RPAREN):
            args.append(self._parse_expression())
            while self._consume_if(TokenType.COMMA):
                args.append(self._parse_expression())
        self._expect(TokenType.RPAREN, f"Expected ')' to close function arguments "
                                       f"but found {self._describe(self._current())}")
        return args

    def _parse_function_call(self) -> FunctionCall:
        """Fonctions de la table de dispatch (COUNT, TRIM, CAST, ...)."""
        name_token = self._advance()
        self._expect(TokenType.LPAREN)
        name = name_token.type.name

        if name_token.type in self.AGGREGATE_FUNCTIONS:
            if name_token.type == TokenType.COUNT and self._check(TokenType.STAR):
                self._advance()
                self._expect(TokenType.RPAREN, "Expected ')' after COUNT(*")
                return FunctionCall(name=name, args=[StarExpression()])
            distinct = self._consume_if(TokenType.DISTINCT)
            arg = self._parse_expression()
            self._expect(TokenType.RPAREN, f"Expected ')' to close {name}")
            return FunctionCall(name=name, args=[arg], distinct=distinct)

        if name_token.type == TokenType.TRIM:
            return self._parse_trim()

        if name_token.type == TokenType.CAST:
            arg = self._parse_expression()
            self._expect(TokenType.AS, "Expected AS in CAST")
            cast_type = self._parse_type_name()
            self._expect(TokenType.RPAREN, "Expected ')' to close CAST")
            return FunctionCall(name=name, args=[arg], cast_type=cast_type)

        args = self._parse_argument_list()
        if name_token.type == TokenType.SUBSTRING and len(args) not in (2, 3):
            raise HQLSyntaxError("SUBSTRING expects 2 or 3 arguments", name_token)
        return FunctionCall(name=name, args=args)

    def _parse_trim(self) -> FunctionCall:
        """TRIM([[LEADING|TRAILING|BOTH] [caractère] FROM] expr)"""
        specification = None
        character = None

        token = self._current()
        if (token.type == TokenType.IDENTIFIER and token.value.upper() in self.TRIM_SPECIFICATIONS
                and self._peek().type not in (TokenType.RPAREN, TokenType.DOT)):
            specification = self._advance().value.upper()

        if self._consume_if(TokenType.FROM):
            arg = self._parse_expression()
        else:
            first = self._parse_expression()
            if self._consume_if(TokenType.FROM):
                character = first
                arg = self._parse_expression()
            elif specification:
                raise HQLSyntaxError("Expected FROM in TRIM", self._current())
            else:
                arg = first

        self._expect(TokenType.RPAREN, "Expected ')' to close TRIM")
        return FunctionCall(name="TRIM", args=[arg], trim_specification=specification,
                            trim_character=character)

    def _parse_type_name(self) -> str:
        """Nom de type pour CAST: mot, éventuellement suivi de (n[, m])."""
        type_name = self._parse_entity_name()
        if self._consume_if(TokenType.LPAREN):
            sizes = [self._expect(TokenType.INTEGER, "Expected type size").value]
            while self._consume_if(TokenType.COMMA):
                sizes.append(self._expect(TokenType.INTEGER, "Expected type size").value)
            self._expect(TokenType.RPAREN)
            type_name += f"({', '.join(sizes)})"
        return type_name

    def _parse_generic_function(self) -> FunctionCall:
        name = self._advance().value
        self._expect(TokenType.LPAREN)
        return FunctionCall(name=name, args=self._parse_argument_list(), known=False)

    def _parse_case_expression(self) -> CaseExpression:
        """Parse une expression CASE (simple ou recherchée)."""
        self._expect(TokenType.CASE)
        case = CaseExpression()

        if not self._check(TokenType.WHEN):
            case.operand = self._parse_expression()

        while self._consume_if(TokenType.WHEN):
            condition = self._parse_expression()
            self._expect(TokenType.THEN, "Expected THEN in CASE")
            result = self._parse_expression()
            case.when_clauses.append(WhenClause(condition=condition, result=result))

        if not case.when_clauses:
            raise HQLSyntaxError("CASE requires at least one WHEN", self._current())

        if self._consume_if(TokenType.ELSE):
            case.else_result = self._parse_expression()

        self._expect(TokenType.END, "Expected END to close CASE")
        return case


def parse(query: str, options: ParserOptions = None) -> Statement:
    """
    Fonction utilitaire pour parser du HQL.

    Args:
        query: La requête HQL à parser
        options: Options du parser

    Returns:
        L'instruction racine de l'AST
    """
    return HQLParser(options).parse(query)


def analyze(query: str, options: ParserOptions = None):
    """Parse et analyse une requête, retourne un QueryMetadata."""
    return HQLParser(options).analyze(query)


def is_valid(query: str) -> bool:
    """Vrai si la requête est syntaxiquement valide."""
    return HQLParser().is_valid(query)
