"""
Tests des métadonnées de relations et du RelationshipResolver.
"""

import pytest
import sys
sys.path.insert(0, '..')

from hql_parser.relationships import (
    JoinMapping, JoinType, RelationshipResolver, DEFAULT_COLLECTION_EXCEPTIONS,
)


class TestCollectionHeuristic:
    """Tests de la détection des propriétés collection."""

    @pytest.mark.parametrize("name", ["orders", "items", "projects", "Roles"])
    def test_plural_names(self, name):
        assert RelationshipResolver().is_collection_property(name) is True

    @pytest.mark.parametrize("name", ["user", "department", "status", "address", "Address", "s", ""])
    def test_singular_names(self, name):
        assert RelationshipResolver().is_collection_property(name) is False

    def test_custom_exceptions_replace_defaults(self):
        resolver = RelationshipResolver(exceptions=["Campaigns"])
        assert resolver.is_collection_property("campaigns") is False
        assert resolver.is_collection_property("status") is True

    def test_flag_overrides_name(self):
        resolver = RelationshipResolver()
        single = JoinMapping("items", "Item", "item_id", is_collection=False)
        many = JoinMapping("staff", "Person", "team_id", is_collection=True)
        assert resolver.is_collection_property("items", single) is False
        assert resolver.is_collection_property("staff", many) is True

    def test_default_exceptions(self):
        assert "status" in DEFAULT_COLLECTION_EXCEPTIONS
        assert "address" in DEFAULT_COLLECTION_EXCEPTIONS


class TestResolve:
    """Tests de la synthèse des conditions ON."""

    def test_collection(self):
        mapping = JoinMapping("orders", "Order", "user_id", "id", JoinType.LEFT, "users", "orders")
        condition = RelationshipResolver().resolve("u", "u.orders", "o", mapping)
        assert condition == "o.user_id = u.id"

    def test_direct_relation(self):
        mapping = JoinMapping("user", "User", "user_id", "id", JoinType.INNER, "orders", "users")
        condition = RelationshipResolver().resolve("o", "o.user", "u", mapping)
        assert condition == "o.user_id = u.id"

    def test_singular_ending_in_s(self):
        mapping = JoinMapping("status", "Status", "status_id")
        condition = RelationshipResolver().resolve("o", "o.status", "s", mapping)
        assert condition == "o.status_id = s.id"

    def test_custom_referenced_column(self):
        mapping = JoinMapping("owner", "Person", "owner_code", "code")
        assert RelationshipResolver().resolve("c", "c.owner", "p", mapping) == "c.owner_code = p.code"

    def test_no_mapping(self):
        assert RelationshipResolver().resolve("u", "u.orders", "o", None) is None


class TestJoinMapping:
    """Tests de JoinMapping."""

    def test_defaults(self):
        mapping = JoinMapping("user", "User", "user_id")
        assert mapping.referenced_column == "id"
        assert mapping.join_type == JoinType.INNER
        assert mapping.is_collection is None

    def test_from_dict(self):
        mapping = JoinMapping.from_dict("orders", {
            "target_entity": "Order",
            "join_column": "user_id",
            "join_type": "left",
            "target_table": "orders",
        })
        assert mapping == JoinMapping("orders", "Order", "user_id", "id", JoinType.LEFT,
                                      None, "orders")

    def test_to_dict_roundtrip(self):
        mapping = JoinMapping("items", "Item", "invoice_id", "id", JoinType.RIGHT,
                              "invoices", "items", True)
        assert JoinMapping.from_dict("items", mapping.to_dict()) == mapping

    def test_to_dict_omits_unset_optionals(self):
        assert JoinMapping("user", "User", "user_id").to_dict() == {
            "target_entity": "User",
            "join_column": "user_id",
            "referenced_column": "id",
            "join_type": "INNER",
        }

    @pytest.mark.parametrize("data", [
        {"join_column": "user_id"},
        {"target_entity": "User"},
    ])
    def test_missing_required_key(self, data):
        with pytest.raises(ValueError):
            JoinMapping.from_dict("user", data)

    def test_unknown_join_type(self):
        with pytest.raises(ValueError) as exc_info:
            JoinMapping.from_dict("user", {"target_entity": "User", "join_column": "user_id",
                                           "join_type": "CROSS"})
        assert "CROSS" in str(exc_info.value)
