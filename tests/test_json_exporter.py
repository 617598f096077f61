"""
Tests de l'export JSON de l'AST.
"""

import json

import sys
sys.path.insert(0, '..')

from hql_parser import HQLParser, ASTToJSONExporter, to_json, tokenize
from hql_parser.json_exporter import to_dict, tokens_to_list


QUERY = "SELECT u.name FROM User u LEFT JOIN u.orders o WHERE o.total > :min ORDER BY u.name DESC"


class TestASTToJSONExporter:
    """Tests de l'exporteur."""

    def test_export_statement(self):
        stmt = HQLParser().parse(QUERY)
        data = json.loads(ASTToJSONExporter().export(stmt))

        statement = data["statement"]
        assert statement["node_type"] == "SelectStatement"
        assert statement["select"][0]["expression"] == {"node_type": "Path", "path": "u.name"}
        assert statement["from"][0]["entity"] == "User"
        assert statement["from"][0]["joins"][0]["kind"] == "LEFT"
        assert statement["order_by"][0]["direction"] == "DESC"
        assert "metadata" not in data

    def test_export_with_metadata(self):
        parser = HQLParser()
        stmt = parser.parse(QUERY)
        metadata = parser.analyze(QUERY)
        data = ASTToJSONExporter().export_to_dict(stmt, metadata)
        assert data["metadata"]["aliases"] == {"u": "User", "o": "Order"}
        assert data["metadata"]["parameters"] == ["min"]

    def test_compact_mode(self):
        stmt = HQLParser().parse(QUERY)
        metadata = HQLParser().analyze(QUERY)
        text = ASTToJSONExporter(compact=True).export(stmt, metadata)
        assert "\n" not in text
        assert "metadata" not in json.loads(text)

    def test_export_to_file(self, tmp_path):
        stmt = HQLParser().parse("DELETE FROM User u WHERE u.id = 1")
        path = tmp_path / "ast.json"
        ASTToJSONExporter().export_to_file(stmt, str(path))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["statement"]["node_type"] == "DeleteStatement"
        assert data["statement"]["alias"] == "u"

    def test_module_functions(self):
        stmt = HQLParser().parse("UPDATE User SET name = 'é'")
        assert "'é'" in to_json(stmt)
        assert to_dict(stmt)["statement"]["set"][0]["target"] == "name"

    def test_tokens_to_list(self):
        tokens = tokens_to_list(tokenize("SELECT u"))
        assert tokens == [
            {"type": "SELECT", "value": "SELECT", "line": 1, "column": 1},
            {"type": "IDENTIFIER", "value": "u", "line": 1, "column": 8},
        ]
