"""Tests for the wishlist and product reviews."""

import pytest

from offkulture.accounts import AccountDirectory
from offkulture.errors import ValidationError
from offkulture.reviews import ReviewBook
from offkulture.wishlist import Wishlist


class TestWishlist:
    def test_toggle_adds_then_removes(self):
        wishlist = Wishlist()
        assert wishlist.toggle("M001") is True
        assert "M001" in wishlist
        assert wishlist.toggle("M001") is False
        assert not wishlist.is_member("M001")

    def test_keeps_insertion_order(self):
        wishlist = Wishlist()
        for product_id in ("W001", "A003", "B002"):
            wishlist.toggle(product_id)
        assert wishlist.product_ids == ["W001", "A003", "B002"]

    def test_duplicates_collapse_on_load(self):
        wishlist = Wishlist(["M001", "M001", "A001"])
        assert wishlist.to_list() == ["M001", "A001"]

    def test_remove(self):
        wishlist = Wishlist(["M001"])
        assert wishlist.remove("M001") is True
        assert wishlist.remove("M001") is False
        assert len(wishlist) == 0


class TestReviews:
    @pytest.fixture
    def account(self):
        return AccountDirectory().register("Thandi Nkosi", "thandi@example.com", "secret123")

    def test_add_and_average(self, account):
        book = ReviewBook()
        book.add("W001", account, 5, "Gorgeous dress")
        book.add("W001", account, 4, "  Runs a bit small  ")
        book.add("M001", account, 2, "Faded quickly")

        reviews = book.for_product("W001")
        assert [r.rating for r in reviews] == [5, 4]
        assert reviews[1].comment == "Runs a bit small"
        assert reviews[0].user_name == "Thandi Nkosi"
        assert book.average("W001") == 4.5
        assert book.average("A001") is None

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, account, rating):
        with pytest.raises(ValidationError):
            ReviewBook().add("W001", account, rating, "Hmm")

    def test_blank_comment(self, account):
        with pytest.raises(ValidationError):
            ReviewBook().add("W001", account, 3, "   ")

    def test_round_trip(self, account):
        book = ReviewBook()
        review = book.add("W001", account, 5, "Gorgeous dress")
        restored = ReviewBook.from_list(book.to_list())
        assert restored.for_product("W001")[0].id == review.id
