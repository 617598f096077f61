"""
Exceptions du parser et du convertisseur HQL.

Deux familles distinctes:
- QueryParseError: entrée mal formée (lexicale ou syntaxique), avec position.
- ConversionError: la requête est valide mais ne peut pas être réécrite.
"""

from typing import Optional


class QueryParseError(Exception):
    """Erreur de parsing d'une requête HQL/JPQL."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        if line is not None:
            super().__init__(f"{message} at line {line}, column {column}")
        else:
            super().__init__(message)


class HQLLexerError(QueryParseError):
    """Erreur lexicale (chaîne non terminée, caractère inconnu...)."""


class HQLSyntaxError(QueryParseError):
    """Erreur de syntaxe levée par le parser."""

    def __init__(self, message: str, token=None):
        self.token = token
        if token is not None:
            super().__init__(message, token.line, token.column)
        else:
            super().__init__(message)


class ConversionError(Exception):
    """Échec de la conversion HQL -> SQL."""

    def __init__(self, message: str, statement: Optional[str] = None):
        self.message = message
        self.statement = statement
        super().__init__(message)


class UnsupportedFeatureError(ConversionError):
    """Construction acceptée par la grammaire mais non traduisible en SQL."""

    def __init__(self, feature: str, statement: Optional[str] = None):
        self.feature = feature
        super().__init__(f"{feature} is not supported for SQL conversion", statement)
