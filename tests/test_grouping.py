import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "packages" / "core_engine" / "src"))

from cg_core.grouping import LITERAL, VOCABULARY, resolve_category
from cg_core.records import make_record


class CategoryTests(unittest.TestCase):
    def test_vocabulary_category(self) -> None:
        first = make_record("People", "PersonId", vocabulary_category="Person")
        category = resolve_category("People", first)
        self.assertEqual(VOCABULARY, category.kind)
        self.assertEqual("EntityType.Person", category.grouping)
        self.assertEqual("EntityType.Person", category.entity_type_path)
        self.assertEqual("Person", category.label)

    def test_custom_category_is_literal(self) -> None:
        first = make_record("OrderNote", "OrderNoteId", custom_category="Note")
        category = resolve_category("OrderNote", first)
        self.assertEqual(LITERAL, category.kind)
        self.assertEqual('"Note"', category.grouping)
        self.assertEqual('"/Note"', category.entity_type_path)

    def test_vocabulary_wins_over_custom(self) -> None:
        first = make_record("People", "PersonId", vocabulary_category="Person", custom_category="Human")
        self.assertEqual("EntityType.Person", resolve_category("People", first).grouping)

    def test_uncategorized_table_uses_normalized_name(self) -> None:
        first = make_record("dbo.customer_orders", "OrderId")
        category = resolve_category("dbo.customer_orders", first)
        self.assertEqual('"CustomerOrders"', category.grouping)
        self.assertEqual('"/CustomerOrders"', category.entity_type_path)

    def test_table_only_seen_as_foreign_key_target(self) -> None:
        category = resolve_category("Shipper", None)
        self.assertEqual(LITERAL, category.kind)
        self.assertEqual("Shipper", category.value)
        self.assertEqual('"/Shipper"', category.entity_type_path)


if __name__ == "__main__":
    unittest.main()
