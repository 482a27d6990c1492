"""Tests for entity codes and the foreign-key base-table walk."""

import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "packages" / "core_engine" / "src"))

from cg_core.catalog import SchemaCatalog
from cg_core.errors import CyclicReferenceError
from cg_core.records import make_record
from cg_core.relationships import (
    COMPOSITE_KEY,
    FILL_IN,
    PRIMARY_KEY,
    ROW_GUID,
    UNRESOLVED,
    RelationshipResolver,
)


def _resolver(*records, **kwargs) -> RelationshipResolver:
    return RelationshipResolver(SchemaCatalog(records), **kwargs)


class EntityCodeTests(unittest.TestCase):
    def test_single_primary_key(self) -> None:
        resolver = _resolver(
            make_record("Customer", "CustomerId", is_primary_key="1"),
            make_record("Customer", "Name"),
        )
        code = resolver.entity_code("Customer")
        self.assertEqual(PRIMARY_KEY, code.strategy)
        self.assertEqual(("Customerid",), code.columns)
        self.assertEqual('$"{input.Customerid}"', code.expression)

    def test_composite_key_keeps_declaration_order(self) -> None:
        resolver = _resolver(
            make_record("OrderLine", "OrderId", is_primary_key="1"),
            make_record("OrderLine", "Quantity"),
            make_record("OrderLine", "LineNumber", is_primary_key="1"),
        )
        code = resolver.entity_code("OrderLine")
        self.assertEqual(COMPOSITE_KEY, code.strategy)
        self.assertEqual('$"{input.Orderid}.{input.Linenumber}"', code.expression)

    def test_row_guid_wins_over_primary_key(self) -> None:
        resolver = _resolver(
            make_record("Customer", "CustomerId", is_primary_key="1"),
            make_record("Customer", "RowGuid"),
        )
        self.assertEqual(ROW_GUID, resolver.entity_code("Customer").strategy)
        self.assertEqual('$"{input.Rowguid}"', resolver.entity_code("Customer").expression)
        self.assertEqual(PRIMARY_KEY, resolver.entity_code("Customer", ignore_row_guid=True).strategy)

    def test_row_guid_column_is_configurable(self) -> None:
        resolver = _resolver(
            make_record("Customer", "CustomerId", is_primary_key="1"),
            make_record("Customer", "ExternalKey"),
            row_guid_column="externalkey",
        )
        self.assertEqual(("Externalkey",), resolver.entity_code("Customer").columns)

    def test_no_key_is_unresolved(self) -> None:
        resolver = _resolver(make_record("Log", "Message"))
        code = resolver.entity_code("Log")
        self.assertEqual(UNRESOLVED, code.strategy)
        self.assertFalse(code.resolved)
        self.assertEqual(FILL_IN, code.expression)

    def test_display_name_column(self) -> None:
        resolver = _resolver(make_record("Customer", "CustomerId"), make_record("Customer", "NAME"))
        self.assertEqual("NAME", resolver.display_name_column("Customer").column)
        self.assertIsNone(_resolver(make_record("Log", "Message")).display_name_column("Log"))


class BaseTableTests(unittest.TestCase):
    def test_one_hop(self) -> None:
        resolver = _resolver(
            make_record("Customer", "CustomerId", is_primary_key="1"),
            make_record("Order", "OrderId", is_primary_key="1"),
            make_record("Order", "CustomerId", foreign_key="Customer.CustomerId"),
        )
        base = resolver.resolve_base_table(resolver.catalog.find("Order", "CustomerId"))
        self.assertEqual("Customer", base.table)
        self.assertEqual("CustomerId", base.key_column)
        self.assertEqual(1, base.hop_count)
        self.assertEqual(("Order", "CustomerId", "CustomerId"), base.hops[0].as_tuple())

    def test_transitive_chain(self) -> None:
        resolver = _resolver(
            make_record("A", "Id", is_primary_key="1"),
            make_record("B", "AId", foreign_key="A.Id"),
            make_record("C", "BAId", foreign_key="B.AId"),
            make_record("D", "CBAId", foreign_key="C.BAId"),
        )
        base = resolver.resolve_base_table(resolver.catalog.find("D", "CBAId"))
        self.assertEqual("A", base.table)
        self.assertEqual("Id", base.key_column)
        self.assertEqual(3, base.hop_count)
        self.assertLessEqual(base.hop_count, len(resolver.catalog))
        self.assertIsNone(resolver.catalog.find(base.table, base.key_column).foreign_key)

    def test_target_never_described(self) -> None:
        resolver = _resolver(make_record("Order", "ShipperCode", foreign_key="Shipper.ShipperCode"))
        base = resolver.resolve_base_table(resolver.catalog.find("Order", "ShipperCode"))
        self.assertEqual("Shipper", base.table)
        self.assertEqual("ShipperCode", base.key_column)
        self.assertEqual('"/Shipper"', resolver.edge_target(resolver.catalog.find("Order", "ShipperCode").foreign_key))

    def test_target_lookup_ignores_case(self) -> None:
        resolver = _resolver(
            make_record("Customer", "CustomerID", is_primary_key="1"),
            make_record("Order", "CustomerId", foreign_key="customer.customerid"),
        )
        base = resolver.resolve_base_table(resolver.catalog.find("Order", "CustomerId"))
        self.assertEqual("Customer", base.table)
        self.assertEqual("CustomerID", base.key_column)

    def test_self_reference_to_key(self) -> None:
        resolver = _resolver(
            make_record("Employee", "EmployeeId", is_primary_key="1"),
            make_record("Employee", "ManagerId", foreign_key="Employee.EmployeeId"),
        )
        base = resolver.resolve_base_table(resolver.catalog.find("Employee", "ManagerId"))
        self.assertEqual("Employee", base.table)

    def test_cycle_raises(self) -> None:
        resolver = _resolver(
            make_record("Alpha", "AlphaId", foreign_key="Beta.BetaId"),
            make_record("Beta", "BetaId", foreign_key="Alpha.AlphaId"),
        )
        with self.assertRaises(CyclicReferenceError) as ctx:
            resolver.resolve_base_table(resolver.catalog.find("Alpha", "AlphaId"))
        self.assertEqual("Alpha", ctx.exception.table)
        self.assertEqual("CYCLIC_REFERENCE", ctx.exception.code)
        self.assertIn("Beta", ctx.exception.chain)

    def test_self_loop_raises(self) -> None:
        resolver = _resolver(make_record("Node", "ParentId", foreign_key="Node.ParentId"))
        with self.assertRaises(CyclicReferenceError):
            resolver.resolve_base_table(resolver.catalog.find("Node", "ParentId"))

    def test_hop_bound_matches_table_count(self) -> None:
        resolver = _resolver(make_record("A", "Id"), make_record("B", "Id"))
        self.assertEqual(3, resolver.max_hops)

    def test_column_without_reference(self) -> None:
        resolver = _resolver(make_record("A", "Id"))
        with self.assertRaises(ValueError):
            resolver.resolve_base_table(resolver.catalog.find("A", "Id"))


if __name__ == "__main__":
    unittest.main()
