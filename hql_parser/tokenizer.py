"""
Tokenizer (Analyseur Lexical) pour HQL/JPQL.

Convertit une chaîne HQL en une séquence de tokens identifiables.
Les espaces et commentaires (-- et /* */) sont ignorés.
"""

import logging
from enum import Enum, auto
from dataclasses import dataclass
from typing import List, Optional, Iterator

from .errors import HQLLexerError

logger = logging.getLogger(__name__)


class TokenType(Enum):
    """Types de tokens HQL."""

    # Statements
    SELECT = auto()
    UPDATE = auto()
    DELETE = auto()
    INSERT = auto()
    INTO = auto()
    SET = auto()

    # Clauses
    FROM = auto()
    WHERE = auto()
    GROUP = auto()
    BY = auto()
    HAVING = auto()
    ORDER = auto()
    ASC = auto()
    DESC = auto()
    NULLS = auto()
    FIRST = auto()
    LAST = auto()
    DISTINCT = auto()
    AS = auto()
    NEW = auto()

    # Jointures
    JOIN = auto()
    INNER = auto()
    LEFT = auto()
    RIGHT = auto()
    OUTER = auto()
    FETCH = auto()
    ON = auto()

    # Prédicats et opérateurs logiques
    AND = auto()
    OR = auto()
    NOT = auto()
    IS = auto()
    NULL = auto()
    BETWEEN = auto()
    IN = auto()
    LIKE = auto()
    ESCAPE = auto()
    MEMBER = auto()
    OF = auto()
    EXISTS = auto()
    TRUE = auto()
    FALSE = auto()

    # CASE
    CASE = auto()
    WHEN = auto()
    THEN = auto()
    ELSE = auto()
    END = auto()

    # Fonctions
    AVG = auto()
    COUNT = auto()
    MAX = auto()
    MIN = auto()
    SUM = auto()
    UPPER = auto()
    LOWER = auto()
    TRIM = auto()
    LENGTH = auto()
    CONCAT = auto()
    SUBSTRING = auto()
    SIZE = auto()
    ABS = auto()
    SQRT = auto()
    MOD = auto()
    COALESCE = auto()
    NULLIF = auto()
    CAST = auto()
    CURRENT_DATE = auto()
    CURRENT_TIME = auto()
    CURRENT_TIMESTAMP = auto()

    # Littéraux
    INTEGER = auto()
    DECIMAL = auto()
    STRING = auto()
    IDENTIFIER = auto()
    NAMED_PARAMETER = auto()       # :name
    POSITIONAL_PARAMETER = auto()  # ? ou ?1

    # Opérateurs
    EQUALS = auto()           # =
    NOT_EQUALS = auto()       # <> ou !=
    LESS_THAN = auto()        # <
    GREATER_THAN = auto()     # >
    LESS_EQUAL = auto()       # <=
    GREATER_EQUAL = auto()    # >=
    PLUS = auto()             # +
    MINUS = auto()            # -
    STAR = auto()             # *
    DIVIDE = auto()           # /
    MODULO = auto()           # %
    CONCAT_OP = auto()        # ||

    # Ponctuation
    COMMA = auto()            # ,
    DOT = auto()              # .
    SEMICOLON = auto()        # ;
    LPAREN = auto()           # (
    RPAREN = auto()           # )

    EOF = auto()


# Mots-clés de fonctions: utilisables comme identifiants s'ils ne sont pas suivis de '('
FUNCTION_KEYWORDS = frozenset({
    TokenType.AVG, TokenType.COUNT, TokenType.MAX, TokenType.MIN, TokenType.SUM,
    TokenType.UPPER, TokenType.LOWER, TokenType.TRIM, TokenType.LENGTH,
    TokenType.CONCAT, TokenType.SUBSTRING, TokenType.SIZE, TokenType.ABS,
    TokenType.SQRT, TokenType.MOD, TokenType.COALESCE, TokenType.NULLIF,
    TokenType.CAST,
})

# Fonctions sans parenthèses
NILADIC_FUNCTIONS = frozenset({
    TokenType.CURRENT_DATE, TokenType.CURRENT_TIME, TokenType.CURRENT_TIMESTAMP,
})


@dataclass(frozen=True)
class Token:
    """Représente un token HQL."""
    type: TokenType
    value: str
    line: int
    column: int
    position: int  # Position absolue dans le texte

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, line={self.line}, col={self.column})"

    def is_word(self) -> bool:
        """Vrai pour un identifiant ou un mot-clé (tout mot est un identifiant après un '.')."""
        return self.type == TokenType.IDENTIFIER or self.value.lower() in HQLTokenizer.KEYWORDS


class HQLTokenizer:
    """Analyseur lexical pour HQL/JPQL."""

    # Mots-clés (insensibles à la casse)
    KEYWORDS = {
        'select': TokenType.SELECT,
        'update': TokenType.UPDATE,
        'delete': TokenType.DELETE,
        'insert': TokenType.INSERT,
        'into': TokenType.INTO,
        'set': TokenType.SET,
        'from': TokenType.FROM,
        'where': TokenType.WHERE,
        'group': TokenType.GROUP,
        'by': TokenType.BY,
        'having': TokenType.HAVING,
        'order': TokenType.ORDER,
        'asc': TokenType.ASC,
        'desc': TokenType.DESC,
        'nulls': TokenType.NULLS,
        'first': TokenType.FIRST,
        'last': TokenType.LAST,
        'distinct': TokenType.DISTINCT,
        'as': TokenType.AS,
        'new': TokenType.NEW,
        'join': TokenType.JOIN,
        'inner': TokenType.INNER,
        'left': TokenType.LEFT,
        'right': TokenType.RIGHT,
        'outer': TokenType.OUTER,
        'fetch': TokenType.FETCH,
        'on': TokenType.ON,
        'and': TokenType.AND,
        'or': TokenType.OR,
        'not': TokenType.NOT,
        'is': TokenType.IS,
        'null': TokenType.NULL,
        'between': TokenType.BETWEEN,
        'in': TokenType.IN,
        'like': TokenType.LIKE,
        'escape': TokenType.ESCAPE,
        'member': TokenType.MEMBER,
        'of': TokenType.OF,
        'exists': TokenType.EXISTS,
        'true': TokenType.TRUE,
        'false': TokenType.FALSE,
        'case': TokenType.CASE,
        'when': TokenType.WHEN,
        'then': TokenType.THEN,
        'else': TokenType.ELSE,
        'end': TokenType.END,
        # Fonctions
        'avg': TokenType.AVG,
        'count': TokenType.COUNT,
        'max': TokenType.MAX,
        'min': TokenType.MIN,
        'sum': TokenType.SUM,
        'upper': TokenType.UPPER,
        'lower': TokenType.LOWER,
        'trim': TokenType.TRIM,
        'length': TokenType.LENGTH,
        'concat': TokenType.CONCAT,
        'substring': TokenType.SUBSTRING,
        'size': TokenType.SIZE,
        'abs': TokenType.ABS,
        'sqrt': TokenType.SQRT,
        'mod': TokenType.MOD,
        'coalesce': TokenType.COALESCE,
        'nullif': TokenType.NULLIF,
        'cast': TokenType.CAST,
        'current_date': TokenType.CURRENT_DATE,
        'current_time': TokenType.CURRENT_TIME,
        'current_timestamp': TokenType.CURRENT_TIMESTAMP,
    }

    OPERATORS = {
        '=': TokenType.EQUALS,
        '<': TokenType.LESS_THAN,
        '>': TokenType.GREATER_THAN,
        '+': TokenType.PLUS,
        '-': TokenType.MINUS,
        '*': TokenType.STAR,
        '/': TokenType.DIVIDE,
        '%': TokenType.MODULO,
        ',': TokenType.COMMA,
        '.': TokenType.DOT,
        ';': TokenType.SEMICOLON,
        '(': TokenType.LPAREN,
        ')': TokenType.RPAREN,
    }

    TWO_CHAR_OPERATORS = {
        '<>': TokenType.NOT_EQUALS,
        '!=': TokenType.NOT_EQUALS,
        '<=': TokenType.LESS_EQUAL,
        '>=': TokenType.GREATER_EQUAL,
        '||': TokenType.CONCAT_OP,
    }

    NUMBER_SUFFIXES = 'lLdDfF'

    def __init__(self, query: str):
        """
        Initialise le tokenizer.

        Args:
            query: La requête HQL à tokenizer
        """
        self.query = query
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

    def _current_char(self) -> Optional[str]:
        """Retourne le caractère courant ou None si fin de chaîne."""
        if self.pos >= len(self.query):
            return None
        return self.query[self.pos]

    def _peek(self, offset: int = 1) -> Optional[str]:
        """Regarde le caractère à offset positions devant."""
        pos = self.pos + offset
        if pos >= len(self.query):
            return None
        return self.query[pos]

    def _advance(self, count: int = 1) -> str:
        """Avance de count caractères et retourne les caractères consommés."""
        result = self.query[self.pos:self.pos + count]
        for char in result:
            if char == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1
        return result

    def _is_identifier_char(self, char: Optional[str]) -> bool:
        return char is not None and (char.isalnum() or char in '_$')

    def _skip_whitespace(self):
        while self._current_char() is not None and self._current_char().isspace():
            self._advance()

    def _skip_single_line_comment(self):
        """Ignore un commentaire -- jusqu'à la fin de ligne."""
        self._advance(2)
        while self._current_char() is not None and self._current_char() != '\n':
            self._advance()

    def _skip_multi_line_comment(self):
        """Ignore un commentaire /* ... */ (non gourmand)."""
        start_line, start_col = self.line, self.column
        self._advance(2)
        while self._current_char() is not None:
            if self._current_char() == '*' and self._peek() == '/':
                self._advance(2)
                return
            self._advance()
        raise HQLLexerError("Unterminated block comment", start_line, start_col)

    def _read_string(self) -> Token:
        """Lit une chaîne entre apostrophes ('' échappe une apostrophe)."""
        start_line, start_col, start_pos = self.line, self.column, self.pos
        value = self._advance()

        while self._current_char() is not None:
            char = self._current_char()
            if char == "'":
                value += self._advance()
                # Échappement par doublement
                if self._current_char() == "'":
                    value += self._advance()
                else:
                    return Token(TokenType.STRING, value, start_line, start_col, start_pos)
            else:
                value += self._advance()

        raise HQLLexerError("Unterminated string literal", start_line, start_col)

    def _read_number(self) -> Token:
        """Lit un nombre entier ou décimal."""
        start_line, start_col, start_pos = self.line, self.column, self.pos
        value = ""
        is_decimal = False

        while self._current_char() is not None and self._current_char().isdigit():
            value += self._advance()

        # Partie décimale
        if self._current_char() == '.' and self._peek() is not None and self._peek().isdigit():
            is_decimal = True
            value += self._advance()
            while self._current_char() is not None and self._current_char().isdigit():
                value += self._advance()

        # Exposant
        if self._current_char() is not None and self._current_char() in 'eE':
            next_char = self._peek()
            if next_char is not None and (next_char.isdigit() or
                                          (next_char in '+-' and (self._peek(2) or '').isdigit())):
                is_decimal = True
                value += self._advance()
                if self._current_char() in '+-':
                    value += self._advance()
                while self._current_char() is not None and self._current_char().isdigit():
                    value += self._advance()

        # Suffixe de type Java (10L, 1.5D, 2F)
        if (self._current_char() is not None and self._current_char() in self.NUMBER_SUFFIXES
                and not self._is_identifier_char(self._peek())):
            if self._current_char() in 'dDfF':
                is_decimal = True
            value += self._advance()

        token_type = TokenType.DECIMAL if is_decimal else TokenType.INTEGER
        return Token(token_type, value, start_line, start_col, start_pos)

    def _read_identifier_or_keyword(self) -> Token:
        """Lit un identifiant ou un mot-clé."""
        start_line, start_col, start_pos = self.line, self.column, self.pos
        value = ""

        while self._is_identifier_char(self._current_char()):
            value += self._advance()

        token_type = self.KEYWORDS.get(value.lower(), TokenType.IDENTIFIER)
        return Token(token_type, value, start_line, start_col, start_pos)

    def _read_parameter(self) -> Token:
        """Lit un paramètre nommé (:name) ou positionnel (?, ?1)."""
        start_line, start_col, start_pos = self.line, self.column, self.pos
        prefix = self._advance()

        if prefix == '?':
            value = prefix
            while self._current_char() is not None and self._current_char().isdigit():
                value += self._advance()
            return Token(TokenType.POSITIONAL_PARAMETER, value, start_line, start_col, start_pos)

        char = self._current_char()
        if char is None or not (char.isalpha() or char in '_$'):
            raise HQLLexerError("Expected parameter name after ':'", start_line, start_col)

        value = prefix
        while self._is_identifier_char(self._current_char()):
            value += self._advance()
        return Token(TokenType.NAMED_PARAMETER, value, start_line, start_col, start_pos)

    def _read_operator_or_punctuation(self) -> Token:
        """Lit un opérateur ou un signe de ponctuation."""
        start_line, start_col, start_pos = self.line, self.column, self.pos
        char = self._current_char()
        two_char = char + (self._peek() or '')

        if two_char in self.TWO_CHAR_OPERATORS:
            self._advance(2)
            return Token(self.TWO_CHAR_OPERATORS[two_char], two_char, start_line, start_col, start_pos)

        if char in self.OPERATORS:
            self._advance()
            return Token(self.OPERATORS[char], char, start_line, start_col, start_pos)

        raise HQLLexerError(f"Unexpected character {char!r}", start_line, start_col)

    def tokenize(self) -> List[Token]:
        """
        Tokenize la requête complète.

        Returns:
            Liste de tokens terminée par EOF

        Raises:
            HQLLexerError: chaîne ou commentaire non terminé, caractère inconnu
        """
        self.tokens = []
        self.pos = 0
        self.line = 1
        self.column = 1

        while self.pos < len(self.query):
            char = self._current_char()

            if char.isspace():
                self._skip_whitespace()
                continue

            # Commentaires
            if char == '-' and self._peek() == '-':
                self._skip_single_line_comment()
                continue

            if char == '/' and self._peek() == '*':
                self._skip_multi_line_comment()
                continue

            if char == "'":
                self.tokens.append(self._read_string())
                continue

            if char.isdigit():
                self.tokens.append(self._read_number())
                continue

            if char.isalpha() or char in '_$':
                self.tokens.append(self._read_identifier_or_keyword())
                continue

            if char in ':?':
                self.tokens.append(self._read_parameter())
                continue

            self.tokens.append(self._read_operator_or_punctuation())

        self.tokens.append(Token(TokenType.EOF, '', self.line, self.column, self.pos))
        logger.debug("Tokenized %d characters into %d tokens", len(self.query), len(self.tokens))

        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Permet d'itérer sur les tokens."""
        if not self.tokens:
            self.tokenize()
        return iter(self.tokens)


def tokenize(query: str) -> List[Token]:
    """
    Fonction utilitaire pour tokenizer du HQL.

    Args:
        query: La requête HQL à tokenizer

    Returns:
        Liste de tokens
    """
    return HQLTokenizer(query).tokenize()
