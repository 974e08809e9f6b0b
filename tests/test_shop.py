"""Tests for the coin shop."""

from shop import SHOP_ITEMS, add_item, catalogue, purchase
from models import STREAK_FREEZE


class TestCatalogue:
    def test_items_carry_ids(self):
        ids = [item["id"] for item in catalogue()]
        assert ids == list(SHOP_ITEMS)
        assert SHOP_ITEMS["streak_freeze"]["cost"] == 1000


class TestPurchase:
    def test_freeze_purchase(self, make_student):
        student, error = purchase(make_student(coins=1500), "streak_freeze")
        assert error is None
        assert student.coins == 500
        assert student.streak_freezes == 1

    def test_freezes_stack_in_one_entry(self, make_student, freeze):
        student, _ = purchase(make_student(coins=1000, inventory=[freeze(2)]), "streak_freeze")
        assert len(student.inventory) == 1
        assert student.streak_freezes == 3

    def test_not_enough_coins(self, make_student):
        original = make_student(coins=999)
        student, error = purchase(original, "streak_freeze")
        assert error == "Not enough coins."
        assert student is original

    def test_unknown_item(self, make_student):
        student, error = purchase(make_student(coins=99999), "dragon")
        assert error == "Unknown item."
        assert student.coins == 99999

    def test_avatar_purchase_replaces_avatar(self, make_student):
        student, error = purchase(make_student(coins=3000), "avatar_ninja")
        assert error is None
        assert student.coins == 500
        assert student.avatar_url == SHOP_ITEMS["avatar_ninja"]["avatar_url"]
        assert student.inventory == []

    def test_exact_balance_is_enough(self, make_student):
        student, error = purchase(make_student(coins=10000), "avatar_mystery")
        assert error is None
        assert student.coins == 0


class TestAddItem:
    def test_new_item_type_gets_entry(self, make_student):
        student = add_item(make_student(), STREAK_FREEZE, 2)
        assert [(i.type, i.count) for i in student.inventory] == [(STREAK_FREEZE, 2)]
        assert student.inventory[0].id.startswith("inv-")
