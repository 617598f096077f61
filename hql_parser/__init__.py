"""
HQL Parser - Parser HQL/JPQL et convertisseur vers PostgreSQL.

Ce module fournit:
- Tokenizer: Analyse lexicale du HQL
- AST Nodes: Représentation structurée des requêtes
- Parser: Analyse syntaxique et construction de l'AST
- Analyzer: Extraction des entités, alias, champs et paramètres
- Converter: Réécriture en SQL PostgreSQL via les correspondances entités/tables
- Export JSON: Conversion de l'AST et des métadonnées en JSON

Usage:
    from hql_parser import HQLParser, HQLToPostgreSQLConverter

    parser = HQLParser()
    metadata = parser.analyze("SELECT u FROM User u WHERE u.name = :name")
    print(metadata.get_entity_for_alias("u"))  # User

    converter = HQLToPostgreSQLConverter()
    converter.register_entity_mapping("User", "users")
    converter.register_field_mapping("User", "userName", "user_name")
    sql = converter.convert("SELECT u.userName FROM User u")
    print(sql)  # SELECT u.user_name FROM users u
"""

from .tokenizer import HQLTokenizer, Token, TokenType, tokenize
from .ast_nodes import *
from .errors import (
    QueryParseError, HQLLexerError, HQLSyntaxError, ConversionError, UnsupportedFeatureError,
)
from .config import ParserOptions, ConverterOptions, MappingConfig
from .metadata import QueryType, QueryMetadata, QueryMetadataBuilder, JoinPathInfo
from .analyzer import QueryAnalyzer
from .parser import HQLParser, parse, analyze, is_valid
from .relationships import JoinType, JoinMapping, RelationshipResolver
from .converter import HQLToPostgreSQLConverter, convert, to_snake_case
from .json_exporter import ASTToJSONExporter, to_json

__version__ = "1.0.0"
__all__ = [
    "HQLParser",
    "HQLTokenizer",
    "Token",
    "TokenType",
    "tokenize",
    "parse",
    "analyze",
    "is_valid",
    "QueryParseError",
    "HQLLexerError",
    "HQLSyntaxError",
    "ConversionError",
    "UnsupportedFeatureError",
    "ParserOptions",
    "ConverterOptions",
    "MappingConfig",
    "QueryType",
    "QueryMetadata",
    "QueryMetadataBuilder",
    "JoinPathInfo",
    "QueryAnalyzer",
    "JoinType",
    "JoinMapping",
    "RelationshipResolver",
    "HQLToPostgreSQLConverter",
    "convert",
    "to_snake_case",
    "ASTToJSONExporter",
    "to_json",
]
