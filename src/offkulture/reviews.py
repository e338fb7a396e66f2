"""Product reviews."""

from typing import Any

from .errors import ValidationError
from .models import Account, ProductReview


class ReviewBook:
    """All reviews, in the order they were written."""

    def __init__(self, reviews: list[ProductReview] | None = None):
        self._reviews: list[ProductReview] = list(reviews or [])

    def __len__(self) -> int:
        return len(self._reviews)

    def add(self, product_id: str, account: Account, rating: int, comment: str) -> ProductReview:
        """
        Record a review.

        Raises:
            ValidationError: If the rating is outside 1..5 or the comment is blank.
        """
        if not 1 <= rating <= 5:
            raise ValidationError("rating", "must be between 1 and 5")
        if not comment or not comment.strip():
            raise ValidationError("comment", "required")
        review = ProductReview.create(
            product_id=product_id,
            user_id=account.id,
            user_name=account.name,
            rating=rating,
            comment=comment.strip(),
        )
        self._reviews.append(review)
        return review

    def for_product(self, product_id: str) -> list[ProductReview]:
        return [r for r in self._reviews if r.product_id == product_id]

    def average(self, product_id: str) -> float | None:
        reviews = self.for_product(product_id)
        if not reviews:
            return None
        return sum(r.rating for r in reviews) / len(reviews)

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self._reviews]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]]) -> "ReviewBook":
        return cls([ProductReview.from_dict(r) for r in data])
