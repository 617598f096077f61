#!/usr/bin/env python3
"""
HQL Parser - Script principal.

Analyse, valide ou convertit en PostgreSQL une requête HQL/JPQL depuis
la ligne de commande ou un fichier.

Usage:
    python -m hql_parser "SELECT u FROM User u"
    python -m hql_parser -f query.hql --convert -m mappings.json
    python -m hql_parser --validate "SELECT u FROM User u"
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import MappingConfig
from .converter import HQLToPostgreSQLConverter
from .errors import ConversionError, QueryParseError
from .json_exporter import ASTToJSONExporter, tokens_to_list
from .parser import HQLParser
from .tokenizer import HQLTokenizer

FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"


def setup_logging(verbose: bool = False):
    root = logging.getLogger()
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()

    logging.basicConfig(stream=sys.stderr, format=FORMAT,
                        level=logging.DEBUG if verbose else logging.WARNING)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hql_parser",
        description="Analyse des requêtes HQL/JPQL et conversion vers PostgreSQL.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemples:
  # Métadonnées d'une requête (mode par défaut)
  python -m hql_parser "SELECT u FROM User u WHERE u.age > :age"

  # Conversion vers PostgreSQL avec un fichier de correspondances
  python -m hql_parser --convert -m mappings.json "SELECT u.userName FROM User u"

  # Afficher seulement les tokens
  python -m hql_parser --tokens "SELECT u FROM User u"

  # Afficher l'AST
  python -m hql_parser --ast -f query.hql -o ast.json

  # Vérifier la syntaxe (code de sortie 0 ou 1)
  python -m hql_parser --validate "SELECT u FROM User u"
"""
    )

    parser.add_argument("query", nargs="?", help="Requête HQL à traiter")
    parser.add_argument("-f", "--file", type=str, help="Fichier contenant la requête HQL")
    parser.add_argument("-o", "--output", type=str, help="Fichier de sortie")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--tokens", action="store_true", help="Afficher seulement les tokens (analyse lexicale)")
    mode.add_argument("--ast", action="store_true", help="Afficher l'arbre syntaxique en JSON")
    mode.add_argument("--analyze", action="store_true", help="Afficher les métadonnées en JSON (défaut)")
    mode.add_argument("--convert", action="store_true", help="Convertir la requête en PostgreSQL")
    mode.add_argument("--validate", action="store_true", help="Afficher valid/invalid")

    parser.add_argument("-m", "--mappings", type=str,
                        help="Fichier JSON des correspondances entités/champs/relations (avec --convert)")
    parser.add_argument("--indent", type=int, default=2, help="Indentation du JSON (défaut: 2)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Journalisation détaillée (DEBUG)")

    return parser


def _read_query(args) -> str:
    if args.file:
        filepath = Path(args.file)
        if not filepath.exists():
            print(f"Erreur: Le fichier '{args.file}' n'existe pas.", file=sys.stderr)
            sys.exit(1)
        query = filepath.read_text(encoding='utf-8')
    elif args.query:
        query = args.query
    elif not sys.stdin.isatty():
        query = sys.stdin.read()
    else:
        print("Erreur: Aucune requête HQL fournie.", file=sys.stderr)
        print("Usage: python -m hql_parser \"SELECT u FROM User u\"", file=sys.stderr)
        print("       python -m hql_parser -f query.hql", file=sys.stderr)
        sys.exit(1)

    if not query or not query.strip():
        print("Erreur: La requête HQL est vide.", file=sys.stderr)
        sys.exit(1)

    return query


def _emit(text: str, output: str = None):
    if output:
        Path(output).write_text(text, encoding='utf-8')
        print(f"Résultat sauvegardé dans '{output}'")
    else:
        print(text)


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.verbose)

    query = _read_query(args)
    hql_parser = HQLParser()

    if args.validate:
        valid = hql_parser.is_valid(query)
        print("valid" if valid else "invalid")
        sys.exit(0 if valid else 1)

    try:
        if args.tokens:
            tokens = HQLTokenizer(query).tokenize()
            text = json.dumps({"tokens": tokens_to_list(tokens)}, indent=args.indent, ensure_ascii=False)

        elif args.ast:
            statement = hql_parser.parse(query)
            text = ASTToJSONExporter(indent=args.indent).export(statement)

        elif args.convert:
            converter = HQLToPostgreSQLConverter()
            if args.mappings:
                converter.apply_mappings(MappingConfig.from_file(args.mappings))
            text = converter.convert(query)

        else:
            metadata = hql_parser.analyze(query)
            text = json.dumps(metadata.to_dict(), indent=args.indent, ensure_ascii=False)

    except QueryParseError as e:
        print(f"Erreur de parsing: {e}", file=sys.stderr)
        sys.exit(1)
    except ConversionError as e:
        print(f"Erreur de conversion: {e}", file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(f"Erreur de configuration: {e}", file=sys.stderr)
        sys.exit(1)

    _emit(text, args.output)


if __name__ == "__main__":
    main()
