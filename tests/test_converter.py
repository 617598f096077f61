"""
Tests de la conversion HQL -> PostgreSQL.
"""

import re

import pytest
import sys
sys.path.insert(0, '..')

from hql_parser import (
    HQLToPostgreSQLConverter, HQLParser, JoinMapping, JoinType, ConverterOptions,
    MappingConfig, QueryMetadataBuilder, QueryParseError, ConversionError,
    UnsupportedFeatureError, convert, to_snake_case,
)


@pytest.fixture
def converter():
    """Convertisseur avec les correspondances d'une application de démonstration."""
    conv = HQLToPostgreSQLConverter()

    conv.register_entity_mapping("User", "users")
    conv.register_entity_mapping("Order", "orders")
    conv.register_entity_mapping("Purchase", "purchases")
    conv.register_entity_mapping("Product", "products")
    conv.register_entity_mapping("Postage", "postage")
    conv.register_entity_mapping("PropertyListing", "property_listing")
    conv.register_entity_mapping("Commission", "commission")
    conv.register_entity_mapping("LogEntry", "log_entries")
    conv.register_entity_mapping("Session", "sessions")

    conv.register_field_mapping("User", "userName", "user_name")
    conv.register_field_mapping("User", "firstName", "first_name")
    conv.register_field_mapping("User", "lastName", "last_name")
    conv.register_field_mapping("User", "emailAddress", "email")
    conv.register_field_mapping("User", "lastLogin", "last_login_at")
    conv.register_field_mapping("User", "isActive", "active")
    conv.register_field_mapping("User", "lastModified", "updated_at")
    conv.register_field_mapping("User", "joinDate", "created_at")
    conv.register_field_mapping("Order", "orderDate", "order_date")
    conv.register_field_mapping("Order", "totalAmount", "total")
    conv.register_field_mapping("Purchase", "totalAmount", "total")
    conv.register_field_mapping("Purchase", "userId", "user_id")
    conv.register_field_mapping("Purchase", "createdDate", "created_at")
    conv.register_field_mapping("Purchase", "orderDate", "order_date")
    conv.register_field_mapping("Product", "productName", "name")
    conv.register_field_mapping("Product", "unitPrice", "price")
    conv.register_field_mapping("Postage", "isDeleted", "is_deleted")
    conv.register_field_mapping("Postage", "isActive", "is_active")
    conv.register_field_mapping("Postage", "postalCode", "postal_code")
    conv.register_field_mapping("PropertyListing", "agentId", "agent_id")
    conv.register_field_mapping("Commission", "propertyListingId", "property_listing_id")
    conv.register_field_mapping("Commission", "remainingCommission", "remaining_commission")
    conv.register_field_mapping("Commission", "totalCommission", "total_commission")
    conv.register_field_mapping("LogEntry", "createdAt", "created_at")
    conv.register_field_mapping("Session", "lastAccessTime", "last_access")

    return conv


# ============== SELECT ==============

class TestSelectConversion:
    """Tests de conversion des requêtes SELECT."""

    def test_simple_select(self, converter):
        sql = converter.convert("SELECT u FROM User u")
        assert sql == "SELECT u FROM users u"

    def test_field_mapping(self, converter):
        sql = converter.convert("SELECT u.userName FROM User u WHERE u.emailAddress = :email")
        assert sql == "SELECT u.user_name FROM users u WHERE u.email = :email"

    def test_order_by(self, converter):
        sql = converter.convert("SELECT u FROM User u ORDER BY u.firstName ASC")
        assert "ORDER BY u.first_name ASC" in sql

    def test_order_by_multiple(self, converter):
        sql = converter.convert("SELECT u FROM User u ORDER BY u.country ASC, u.lastName DESC")
        assert "ORDER BY u.country ASC, u.last_name DESC" in sql

    @pytest.mark.parametrize("hql,expected", [
        ("SELECT u FROM User u ORDER BY u.lastLogin DESC NULLS FIRST",
         "ORDER BY u.last_login_at DESC NULLS FIRST"),
        ("SELECT u FROM User u ORDER BY u.lastLogin ASC NULLS LAST",
         "ORDER BY u.last_login_at ASC NULLS LAST"),
    ])
    def test_order_by_nulls(self, converter, hql, expected):
        assert expected in converter.convert(hql)

    def test_distinct(self, converter):
        sql = converter.convert("SELECT DISTINCT u.lastName FROM User u")
        assert sql.startswith("SELECT DISTINCT u.last_name")

    def test_group_by_having(self, converter):
        sql = converter.convert(
            "SELECT u.country, COUNT(u) FROM User u GROUP BY u.country HAVING COUNT(u) > 5"
        )
        assert "GROUP BY u.country" in sql
        assert "HAVING COUNT(u) > 5" in sql

    def test_select_aliases(self, converter):
        sql = converter.convert("SELECT u.userName AS username, u.emailAddress AS email FROM User u")
        assert "u.user_name AS username" in sql
        assert "u.email AS email" in sql

    def test_unmapped_entity_falls_back_to_lowercase(self, converter):
        sql = converter.convert("SELECT c FROM Customer c")
        assert "FROM customer c" in sql

    def test_unmapped_field_falls_back_to_snake_case(self, converter):
        sql = converter.convert("SELECT u.unknownField FROM User u")
        assert "u.unknown_field" in sql

    def test_trailing_semicolon(self, converter):
        assert converter.convert("SELECT u FROM User u;") == "SELECT u FROM users u"

    def test_comparison_operators_kept(self, converter):
        sql = converter.convert(
            "SELECT u FROM User u WHERE u.age >= 18 AND u.age <= 65 AND u.status != 'INACTIVE'"
        )
        assert "u.age >= 18" in sql
        assert "u.age <= 65" in sql
        assert "u.status != 'INACTIVE'" in sql

    def test_not_equals_diamond_kept(self, converter):
        sql = converter.convert("SELECT u FROM User u WHERE u.status <> 'INACTIVE'")
        assert "u.status <> 'INACTIVE'" in sql


class TestJoinConversion:
    """Tests des jointures sans métadonnées de relation."""

    def test_inner_and_left_joins(self, converter):
        sql = converter.convert(
            "SELECT u.userName, o.totalAmount, p.productName "
            "FROM User u "
            "INNER JOIN u.orders o "
            "LEFT JOIN o.products p "
            "WHERE u.isActive = true"
        )
        assert "SELECT u.user_name, o.total, p.name" in sql
        assert "FROM users u" in sql
        assert "INNER JOIN orders o" in sql
        assert "LEFT JOIN products p" in sql
        assert "WHERE u.active = true" in sql

    def test_right_join(self, converter):
        sql = converter.convert("SELECT u.userName, o.totalAmount FROM User u RIGHT JOIN u.orders o")
        assert "RIGHT JOIN orders o" in sql
        assert "u.user_name" in sql
        assert "o.total" in sql

    def test_left_outer_join(self, converter):
        sql = converter.convert("SELECT u FROM User u LEFT OUTER JOIN u.orders o WHERE o.id IS NULL")
        assert "LEFT OUTER JOIN orders o" in sql
        assert "o.id IS NULL" in sql

    def test_explicit_on_with_entity_join(self, converter):
        sql = converter.convert(
            "SELECT SUM(CASE WHEN c.remainingCommission > 0 THEN COALESCE(c.remainingCommission, 0) ELSE 0 END), "
            "SUM(CASE WHEN c.totalCommission > 0 THEN COALESCE(c.totalCommission, 0) ELSE 0 END) "
            "FROM PropertyListing pl LEFT JOIN Commission c ON pl.id = c.propertyListingId "
            "WHERE pl.agentId = :agentId AND c.brokerageId = :brokerageId "
            "AND c.contractId = :contractId AND c.isActive = true AND c.isDeleted = false"
        )
        assert "SUM(CASE WHEN" in sql
        assert "ELSE 0 END" in sql
        assert "COALESCE" in sql
        assert "remaining_commission" in sql
        assert "FROM property_listing pl" in sql
        assert "LEFT JOIN commission c ON pl.id = c.property_listing_id" in sql
        assert "pl.agent_id = :agentId" in sql
        assert "c.brokerage_id = :brokerageId" in sql

    def test_fetch_join_without_alias_is_dropped(self, converter):
        converter.register_entity_mapping("Booking", "bookings")
        sql = converter.convert(
            "SELECT DISTINCT b FROM Booking b LEFT JOIN FETCH b.items "
            "WHERE b.customerId = :custId AND b.status = com.shop.Status.PENDING"
        )
        assert sql == ("SELECT DISTINCT b FROM bookings b "
                       "WHERE b.customer_id = :custId AND b.status = com.shop.Status.PENDING")

    def test_aliasless_join_rejected_when_configured(self):
        strict = HQLToPostgreSQLConverter(ConverterOptions(drop_aliasless_joins=False))
        with pytest.raises(UnsupportedFeatureError):
            strict.convert("SELECT b FROM Booking b LEFT JOIN FETCH b.items")


class TestImplicitJoins:
    """Tests de la synthèse des clauses ON à partir des relations."""

    @pytest.fixture
    def relational(self):
        conv = HQLToPostgreSQLConverter()
        conv.register_entity_mapping("User", "users")
        conv.register_entity_mapping("Order", "orders")
        conv.register_entity_mapping("OrderEntity", "orders")
        conv.set_relationship_metadata({
            "User": {
                "orders": JoinMapping("orders", "Order", "user_id", "id", JoinType.LEFT, "users", "orders"),
                "address": JoinMapping("address", "Address", "address_id", "id", JoinType.LEFT,
                                       "users", "addresses"),
            },
            "OrderEntity": {
                "user": JoinMapping("user", "User", "user_id", "id", JoinType.INNER, "orders", "users"),
                "status": JoinMapping("status", "Status", "status_id", "id", JoinType.INNER,
                                      "orders", "statuses"),
            },
        })
        return conv

    def test_collection_join_puts_foreign_key_on_target(self, relational):
        sql = relational.convert("SELECT u FROM User u JOIN u.orders o")
        assert sql == "SELECT u FROM users u JOIN orders o ON o.user_id = u.id"

    def test_explicit_on_is_not_duplicated(self, relational):
        sql = relational.convert(
            "SELECT u FROM User u JOIN u.orders o ON o.user_id = u.id AND o.status = 'ACTIVE'"
        )
        assert len(re.findall(r'\bON\b', sql)) == 1
        assert "ON o.user_id = u.id AND o.status = 'ACTIVE'" in sql

    def test_without_relationship_metadata(self):
        conv = HQLToPostgreSQLConverter()
        conv.register_entity_mapping("Order", "orders")
        sql = conv.convert("SELECT u FROM User u JOIN u.orders o")
        assert sql == "SELECT u FROM user u JOIN orders o"
        assert " ON " not in sql

    def test_join_table_inferred_from_path(self):
        sql = HQLToPostgreSQLConverter().convert("SELECT u FROM User u JOIN u.orders o")
        assert "JOIN order o" in sql

    def test_many_to_one_puts_foreign_key_on_source(self, relational):
        sql = relational.convert("SELECT o FROM OrderEntity o JOIN o.user u")
        assert sql == "SELECT o FROM orders o JOIN users u ON o.user_id = u.id"

    def test_right_join_with_relationship(self, relational):
        sql = relational.convert("SELECT u FROM User u RIGHT JOIN u.orders o")
        assert "RIGHT JOIN orders o ON o.user_id = u.id" in sql

    def test_singular_name_ending_in_s(self, relational):
        sql = relational.convert("SELECT o FROM OrderEntity o JOIN o.status s")
        assert "o.status_id = s.id" in sql
        assert "s.status_id = o.id" not in sql
        assert "JOIN statuses s" in sql

    def test_address_is_not_a_collection(self, relational):
        sql = relational.convert("SELECT u FROM User u LEFT JOIN u.address a")
        assert "LEFT JOIN addresses a ON u.address_id = a.id" in sql

    def test_is_collection_flag_overrides_heuristic(self):
        conv = HQLToPostgreSQLConverter()
        conv.set_relationship_metadata({
            "Invoice": {"items": JoinMapping("items", "Item", "items_id", is_collection=False)},
        })
        sql = conv.convert("SELECT i FROM Invoice i JOIN i.items it")
        assert "ON i.items_id = it.id" in sql

    def test_custom_collection_exceptions(self):
        conv = HQLToPostgreSQLConverter(ConverterOptions().with_exceptions("campaigns"))
        conv.set_relationship_metadata({
            "Ad": {"campaigns": JoinMapping("campaigns", "Campaign", "campaign_id")},
        })
        sql = conv.convert("SELECT a FROM Ad a JOIN a.campaigns c")
        assert "ON a.campaign_id = c.id" in sql

    def test_reset_relationship_metadata(self, relational):
        relational.set_relationship_metadata(None)
        sql = relational.convert("SELECT u FROM User u JOIN u.orders o")
        assert sql == "SELECT u FROM users u JOIN orders o"


# ============== UPDATE / DELETE ==============

class TestUpdateConversion:
    """Tests de conversion des UPDATE."""

    def test_simple_update(self, converter):
        sql = converter.convert("UPDATE User SET userName = :newName WHERE id = :userId")
        assert sql == "UPDATE users SET user_name = :newName WHERE id = :userId"

    def test_update_multiple_assignments(self, converter):
        sql = converter.convert(
            "UPDATE User SET userName = :newName, isActive = false, lastModified = CURRENT_TIMESTAMP "
            "WHERE id = :userId"
        )
        assert sql.startswith("UPDATE users")
        assert "user_name = :newName" in sql
        assert "active = false" in sql
        assert "updated_at = CURRENT_TIMESTAMP" in sql
        assert "WHERE id = :userId" in sql

    def test_update_without_where(self, converter):
        assert converter.convert("UPDATE User SET isActive = false") == "UPDATE users SET active = false"

    def test_update_with_arithmetic(self, converter):
        sql = converter.convert("UPDATE Product SET unitPrice = unitPrice * 1.1 WHERE category = :category")
        assert sql == "UPDATE products SET price = price * 1.1 WHERE category = :category"

    def test_update_with_between(self, converter):
        sql = converter.convert(
            "UPDATE Purchase SET status = 'ARCHIVED' WHERE orderDate BETWEEN :startDate AND :endDate"
        )
        assert sql.startswith("UPDATE purchases")
        assert "order_date BETWEEN :startDate AND :endDate" in sql

    def test_update_with_alias_and_positional_parameter(self, converter):
        sql = converter.convert(
            "update Postage p set p.isDeleted = true, p.isActive = false where p.postalCode = ?1"
        )
        assert sql == ("UPDATE postage p SET is_deleted = true, is_active = false "
                       "WHERE p.postal_code = ?1")

    def test_set_targets_are_unqualified(self, converter):
        converter.register_entity_mapping("Insurance", "insurance")
        converter.register_field_mapping("Insurance", "isDeleted", "is_deleted")
        converter.register_field_mapping("Insurance", "isActive", "is_active")
        converter.register_field_mapping("Insurance", "insurancePolicyId", "insurance_policy_id")

        sql = converter.convert(
            "update Insurance o set o.isDeleted = true, o.isActive = false where o.insurancePolicyId = ?1"
        )
        assert sql.startswith("UPDATE insurance o SET")
        assert "SET is_deleted = true" in sql
        assert "is_active = false" in sql
        assert "WHERE o.insurance_policy_id = ?1" in sql

    def test_entity_qualified_set_target_is_unqualified(self):
        conv = HQLToPostgreSQLConverter()
        conv.register_entity_mapping("User", "users")
        conv.register_field_mapping("User", "isActive", "active")

        sql = conv.convert("UPDATE User SET User.isActive = false WHERE User.id = 1")
        assert sql.startswith("UPDATE users SET active = false")
        assert "o.is_deleted = true" not in sql


class TestDeleteConversion:
    """Tests de conversion des DELETE."""

    def test_simple_delete(self, converter):
        sql = converter.convert("DELETE FROM User u WHERE u.id = :id")
        assert sql == "DELETE FROM users u WHERE u.id = :id"

    def test_delete_without_from_keyword(self, converter):
        assert converter.convert("DELETE User WHERE id = 1") == "DELETE FROM users WHERE id = 1"

    def test_delete_with_mapped_fields(self, converter):
        sql = converter.convert(
            "DELETE FROM Purchase p WHERE p.status = 'CANCELLED' AND p.createdDate < :cutoffDate"
        )
        assert sql.startswith("DELETE FROM purchases")
        assert "status = 'CANCELLED'" in sql
        assert "created_at < :cutoffDate" in sql

    def test_delete_with_in_list(self, converter):
        sql = converter.convert("DELETE FROM User u WHERE u.status IN ('INACTIVE', 'BANNED', 'DELETED')")
        assert sql.startswith("DELETE FROM users")
        assert "IN ('INACTIVE', 'BANNED', 'DELETED')" in sql

    @pytest.mark.parametrize("hql,expected_start,expected", [
        ("DELETE FROM Session s WHERE s.lastAccessTime IS NULL",
         "DELETE FROM sessions", "last_access IS NULL"),
        ("DELETE FROM Session s WHERE s.lastAccessTime IS NOT NULL",
         "DELETE FROM sessions", "last_access IS NOT NULL"),
        ("DELETE FROM LogEntry WHERE createdAt BETWEEN :startDate AND :endDate",
         "DELETE FROM log_entries", "created_at BETWEEN :startDate AND :endDate"),
        ("DELETE FROM LogEntry l WHERE l.level NOT BETWEEN 1 AND 3",
         "DELETE FROM log_entries", "level NOT BETWEEN 1 AND 3"),
    ])
    def test_delete_predicates(self, converter, hql, expected_start, expected):
        sql = converter.convert(hql)
        assert sql.startswith(expected_start)
        assert expected in sql


# ============== Expressions ==============

class TestExpressionConversion:
    """Tests de rendu des expressions."""

    def test_aggregates(self, converter):
        sql = converter.convert(
            "SELECT COUNT(u), SUM(u.salary), AVG(u.age), MAX(u.joinDate), MIN(u.joinDate) FROM User u"
        )
        assert "COUNT(u)" in sql
        assert "SUM(u.salary)" in sql
        assert "AVG(u.age)" in sql
        assert "MAX(u.created_at)" in sql
        assert "MIN(u.created_at)" in sql

    def test_count_star_and_distinct(self, converter):
        assert "COUNT(*)" in converter.convert("SELECT COUNT(*) FROM User u")
        assert "COUNT(DISTINCT u.country)" in converter.convert("SELECT COUNT(DISTINCT u.country) FROM User u")

    def test_string_functions(self, converter):
        sql = converter.convert("SELECT UPPER(u.firstName), LOWER(u.lastName), LENGTH(u.email) FROM User u")
        assert "UPPER(u.first_name)" in sql
        assert "LOWER(u.last_name)" in sql
        assert "LENGTH(u.email)" in sql

    def test_numeric_functions(self, converter):
        sql = converter.convert("SELECT ABS(p.balance), SQRT(p.amount) FROM Purchase p")
        assert "ABS(p.balance)" in sql
        assert "SQRT(p.amount)" in sql

    def test_coalesce(self, converter):
        sql = converter.convert("SELECT COALESCE(u.nickname, u.firstName, 'Unknown') FROM User u")
        assert "COALESCE(u.nickname, u.first_name, 'Unknown')" in sql

    def test_concat(self, converter):
        sql = converter.convert("SELECT CONCAT(u.firstName, ' ', u.lastName) FROM User u")
        assert "CONCAT(u.first_name, ' ', u.last_name)" in sql

    def test_concat_operator(self, converter):
        sql = converter.convert("SELECT u.firstName || u.lastName FROM User u")
        assert "u.first_name || u.last_name" in sql

    def test_trim_with_specification(self, converter):
        sql = converter.convert("SELECT TRIM(LEADING ' ' FROM u.firstName) FROM User u")
        assert "TRIM(LEADING ' ' FROM u.first_name)" in sql

    def test_cast(self, converter):
        assert "CAST(u.age AS string)" in converter.convert("SELECT CAST(u.age AS string) FROM User u")

    def test_unknown_function_kept(self, converter):
        sql = converter.convert("SELECT my_func(u.firstName) FROM User u")
        assert "my_func(u.first_name)" in sql

    @pytest.mark.parametrize("hql,expected", [
        ("SELECT CURRENT_DATE FROM User u", "SELECT CURRENT_DATE FROM"),
        ("SELECT CURRENT_TIME FROM User u", "SELECT CURRENT_TIME FROM"),
        ("UPDATE User SET lastModified = CURRENT_TIMESTAMP WHERE id = :id",
         "updated_at = CURRENT_TIMESTAMP"),
    ])
    def test_current_date_time(self, converter, hql, expected):
        assert expected in converter.convert(hql)

    @pytest.mark.parametrize("hql,expected", [
        ("SELECT u FROM User u WHERE u.emailAddress LIKE :pattern", "u.email LIKE :pattern"),
        ("SELECT u FROM User u WHERE u.emailAddress NOT LIKE '%@test.com'",
         "u.email NOT LIKE '%@test.com'"),
        ("SELECT u FROM User u WHERE u.userName LIKE :pattern ESCAPE '\\'",
         "u.user_name LIKE :pattern ESCAPE '\\'"),
    ])
    def test_like(self, converter, hql, expected):
        assert expected in converter.convert(hql)

    def test_not_in(self, converter):
        sql = converter.convert("SELECT u FROM User u WHERE u.status NOT IN ('DELETED', 'BANNED')")
        assert "u.status NOT IN ('DELETED', 'BANNED')" in sql

    def test_in_parameter_is_parenthesized(self, converter):
        sql = converter.convert("SELECT u FROM User u WHERE u.status IN :statuses")
        assert "u.status IN (:statuses)" in sql

    def test_parenthesized_conditions(self, converter):
        sql = converter.convert(
            "SELECT u FROM User u WHERE (u.age > 18 AND u.country = 'US') "
            "OR (u.verified = true AND u.premium = true)"
        )
        assert "(u.age > 18 AND u.country = 'US') OR (u.verified = true AND u.premium = true)" in sql

    def test_arithmetic(self, converter):
        sql = converter.convert(
            "SELECT u FROM User u WHERE u.salary * 12 > 100000 AND u.bonus + u.commission > 10000"
        )
        assert "u.salary * 12 > 100000" in sql
        assert "u.bonus + u.commission > 10000" in sql

    def test_parenthesized_arithmetic(self, converter):
        sql = converter.convert("SELECT u FROM User u WHERE (u.age + 5) * 2 > 50")
        assert "(u.age + 5) * 2 > 50" in sql

    def test_unary_minus(self, converter):
        assert "u.balance > -5" in converter.convert("SELECT u FROM User u WHERE u.balance > -5")

    def test_not(self, converter):
        assert "WHERE NOT u.deleted" in converter.convert("SELECT u FROM User u WHERE NOT u.deleted")

    def test_simple_case(self, converter):
        sql = converter.convert("SELECT CASE u.status WHEN 'A' THEN 1 ELSE 0 END FROM User u")
        assert "CASE u.status WHEN 'A' THEN 1 ELSE 0 END" in sql

    @pytest.mark.parametrize("hql,params", [
        ("SELECT u FROM User u WHERE u.userName = :name AND u.age > :minAge", [":name", ":minAge"]),
        ("SELECT u FROM User u WHERE u.userName = ?1 AND u.age > ?2", ["?1", "?2"]),
    ])
    def test_parameters_preserved(self, converter, hql, params):
        sql = converter.convert(hql)
        for param in params:
            assert param in sql

    def test_in_subquery(self, converter):
        sql = converter.convert(
            "SELECT u FROM User u WHERE u.id IN "
            "(SELECT p.userId FROM Purchase p WHERE p.totalAmount > 100)"
        )
        assert sql == ("SELECT u FROM users u WHERE u.id IN "
                       "(SELECT p.user_id FROM purchases p WHERE p.total > 100)")

    def test_exists_subquery(self, converter):
        sql = converter.convert(
            "SELECT u FROM User u WHERE EXISTS (SELECT p FROM Purchase p WHERE p.userId = u.id)"
        )
        assert "WHERE EXISTS (SELECT p FROM purchases p WHERE p.user_id = u.id)" in sql


class TestSpecialSelectItems:
    """Constructeurs et constantes qualifiées."""

    def test_enum_constant_preserved(self, converter):
        converter.register_entity_mapping("Booking", "bookings")
        sql = converter.convert(
            "SELECT COUNT(b) FROM Booking b WHERE b.status = com.travel.trade.Status.CONFIRMED"
        )
        assert "bookings b" in sql
        assert "b.status = com.travel.trade.Status.CONFIRMED" in sql

    def test_constructor_expression_flattened(self):
        conv = HQLToPostgreSQLConverter()
        conv.register_entity_mapping("Account", "account")
        conv.register_field_mapping("Account", "accountNumber", "account_number")

        hql = "SELECT NEW dto.AccountDTO(a.accountNumber, a.balance) FROM Account a"
        metadata = QueryMetadataBuilder(hql).add_entity("Account", "a").build()
        sql = conv.convert(hql, metadata)

        assert sql == "SELECT a.account_number, a.balance FROM account a"
        assert "NEW" not in sql
        assert "dto.AccountDTO" not in sql

    def test_constructor_without_arguments_is_unsupported(self, converter):
        with pytest.raises(UnsupportedFeatureError) as exc_info:
            converter.convert("SELECT NEW com.x.Dto() FROM User u")
        assert exc_info.value.feature == "NEW without arguments"

    def test_constructor_with_between(self):
        conv = HQLToPostgreSQLConverter()
        conv.register_entity_mapping("Transaction", "transaction")
        sql = conv.convert(
            "SELECT NEW dto.TransactionDTO(t.id, t.amount) FROM Transaction t "
            "WHERE t.date BETWEEN :start AND :end"
        )
        assert sql == ("SELECT t.id, t.amount FROM transaction t "
                       "WHERE t.date BETWEEN :start AND :end")


# ============== Erreurs ==============

class TestConversionErrors:
    """Tests des erreurs de conversion."""

    def test_parse_error_propagates(self, converter):
        with pytest.raises(QueryParseError):
            converter.convert("SELECT FROM User u")

    def test_size_is_unsupported(self, converter):
        with pytest.raises(UnsupportedFeatureError) as exc_info:
            converter.convert("SELECT u FROM User u WHERE SIZE(u.orders) > 2")
        assert exc_info.value.feature == "SIZE()"
        assert exc_info.value.statement == "SELECT"

    def test_member_of_is_unsupported(self, converter):
        with pytest.raises(UnsupportedFeatureError):
            converter.convert("SELECT u FROM User u WHERE :role MEMBER OF u.roles")

    def test_insert_is_unsupported(self, converter):
        with pytest.raises(UnsupportedFeatureError) as exc_info:
            converter.convert("INSERT INTO Archive (id, name) SELECT u.id, u.name FROM User u")
        assert "INSERT" in str(exc_info.value)

    def test_unsupported_is_a_conversion_error(self, converter):
        with pytest.raises(ConversionError):
            converter.convert("SELECT u FROM User u WHERE u NOT MEMBER OF u.friends")

    def test_unexpected_failure_is_wrapped(self, converter):
        with pytest.raises(ConversionError) as exc_info:
            converter.convert("SELECT u.name FROM User u", metadata=object())
        assert isinstance(exc_info.value.__cause__, AttributeError)


# ============== Utilitaires ==============

class TestUtilities:
    """Tests des fonctions utilitaires."""

    @pytest.mark.parametrize("name,expected", [
        ("userName", "user_name"),
        ("emailAddress", "email_address"),
        ("HTTPServer", "http_server"),
        ("already_snake", "already_snake"),
        ("lower", "lower"),
        ("", ""),
    ])
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected

    def test_convert_function_with_mappings(self):
        mappings = MappingConfig.from_dict({
            "entities": {"User": "users"},
            "fields": {"User": {"userName": "user_name"}},
        })
        assert convert("SELECT u.userName FROM User u", mappings) == "SELECT u.user_name FROM users u"

    def test_convert_with_precomputed_metadata(self, converter):
        hql = "SELECT u.userName FROM User u"
        metadata = HQLParser().analyze(hql)
        assert converter.convert(hql, metadata) == converter.convert(hql)

    def test_mappings_are_not_modified_by_conversion(self, converter):
        before = dict(converter.entity_to_table)
        converter.convert("SELECT c FROM Customer c")
        assert converter.entity_to_table == before

    def test_fallback_is_deterministic(self, converter):
        first = converter.convert("SELECT c FROM Customer c WHERE c.firstName = :n")
        second = converter.convert("SELECT c FROM Customer c WHERE c.firstName = :n")
        assert first == second == "SELECT c FROM customer c WHERE c.first_name = :n"
