"""
Exporteur JSON pour l'AST HQL et les métadonnées d'analyse.
"""

import json
from typing import Any, Dict, List, Optional

from .ast_nodes import Statement
from .metadata import QueryMetadata
from .tokenizer import Token


class ASTToJSONExporter:
    """Exporte un AST HQL (et éventuellement ses métadonnées) vers JSON."""

    def __init__(self, indent: int = 2, include_metadata: bool = True, compact: bool = False):
        """
        Initialise l'exporteur.

        Args:
            indent: Indentation pour le JSON
            include_metadata: Inclure les métadonnées d'analyse quand elles sont fournies
            compact: Mode compact (une ligne, sans métadonnées)
        """
        self.indent = None if compact else indent
        self.include_metadata = include_metadata and not compact

    def export(self, statement: Statement, metadata: QueryMetadata = None) -> str:
        """
        Exporte une instruction en JSON.

        Args:
            statement: Racine de l'AST
            metadata: Résultat d'analyse optionnel

        Returns:
            Chaîne JSON
        """
        data = self._build_output(statement, metadata)
        return json.dumps(data, indent=self.indent, ensure_ascii=False)

    def export_to_dict(self, statement: Statement, metadata: QueryMetadata = None) -> Dict[str, Any]:
        return self._build_output(statement, metadata)

    def export_to_file(self, statement: Statement, filepath: str, metadata: QueryMetadata = None) -> None:
        """
        Exporte une instruction vers un fichier JSON.

        Args:
            statement: Racine de l'AST
            filepath: Chemin du fichier de sortie
            metadata: Résultat d'analyse optionnel
        """
        data = self._build_output(statement, metadata)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=self.indent, ensure_ascii=False)

    def _build_output(self, statement: Statement, metadata: Optional[QueryMetadata]) -> Dict[str, Any]:
        """Construit le dictionnaire de sortie."""
        output = {
            "statement": statement.to_dict()
        }

        if self.include_metadata and metadata is not None:
            output["metadata"] = metadata.to_dict()

        return output


def tokens_to_list(tokens: List[Token]) -> List[Dict[str, Any]]:
    """Forme sérialisable d'une liste de tokens (EOF exclu)."""
    return [
        {
            "type": token.type.name,
            "value": token.value,
            "line": token.line,
            "column": token.column,
        }
        for token in tokens
        if token.type.name != "EOF"
    ]


def to_json(statement: Statement, metadata: QueryMetadata = None, indent: int = 2,
            compact: bool = False) -> str:
    """
    Fonction utilitaire pour convertir un AST en JSON.

    Args:
        statement: Racine de l'AST
        metadata: Résultat d'analyse optionnel
        indent: Indentation pour le JSON
        compact: Mode compact

    Returns:
        Chaîne JSON
    """
    return ASTToJSONExporter(indent=indent, compact=compact).export(statement, metadata)


def to_dict(statement: Statement, metadata: QueryMetadata = None) -> Dict[str, Any]:
    """Fonction utilitaire pour convertir un AST en dictionnaire."""
    return ASTToJSONExporter().export_to_dict(statement, metadata)
