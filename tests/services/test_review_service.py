"""Tests for review mutations and their effect on item aggregates"""
import random
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import NotFoundError, StorageError, ValidationError
from app.db.models.item import Item
from app.db.repositories import reviews as reviews_repo
from app.services import items as item_service
from app.services import reviews as review_service
from app.services.aggregation import aggregate_ratings


def _aggregate(db, item_id):
    item = db.get(Item, item_id)
    return item.average_rating, item.total_reviews


class TestCreateReview:

    def test_create_updates_aggregate(self, db, sample_item):
        """Item starts at 0/0, then 4 -> 4.0/1, then 2 -> 3.0/2"""
        assert _aggregate(db, sample_item.id) == (0, 0)

        first = review_service.create_review(db, sample_item.id, "user-1", 4, "Nice")
        assert _aggregate(db, sample_item.id) == (4.0, 1)

        review_service.create_review(db, sample_item.id, "user-2", 2, "Meh")
        assert _aggregate(db, sample_item.id) == (3.0, 2)

        assert first.id is not None
        assert first.created_at is not None
        assert first.updated_at is not None

    def test_create_trims_text_fields(self, db, sample_item):
        review = review_service.create_review(db, sample_item.id, " user-1 ", 5, "  Great  ", "  ")

        assert review.user_id == "user-1"
        assert review.title == "Great"
        assert review.comment is None

    @pytest.mark.parametrize("rating", [0, 6, 4.5, "five", None])
    def test_create_rejects_bad_rating(self, db, sample_item, rating):
        with pytest.raises(ValidationError) as exc_info:
            review_service.create_review(db, sample_item.id, "user-1", rating, "Title")

        assert exc_info.value.code == "INVALID_RATING"
        assert _aggregate(db, sample_item.id) == (0, 0)
        assert reviews_repo.count_reviews(db, sample_item.id) == 0

    def test_create_validation_order(self, db, sample_item):
        with pytest.raises(ValidationError) as exc_info:
            review_service.create_review(db, -1, "", 9, "")
        assert exc_info.value.code == "INVALID_ITEM_ID"

        with pytest.raises(ValidationError) as exc_info:
            review_service.create_review(db, sample_item.id, "", 9, "")
        assert exc_info.value.code == "INVALID_USER_ID"

        with pytest.raises(ValidationError) as exc_info:
            review_service.create_review(db, sample_item.id, "user-1", 3, " ")
        assert exc_info.value.code == "MISSING_TITLE"

    def test_create_for_missing_item_inserts_nothing(self, db, sample_item):
        with pytest.raises(NotFoundError) as exc_info:
            review_service.create_review(db, 999999, "user-1", 5, "Ghost")

        assert exc_info.value.status_code == 404
        assert reviews_repo.count_reviews(db, 999999) == 0
        assert review_service.list_reviews(db) == []


class TestUpdateReview:

    def test_comment_only_update_keeps_rating_title_and_aggregate(self, db, sample_item):
        review = review_service.create_review(db, sample_item.id, "user-1", 4, "Nice", "first")
        before = _aggregate(db, sample_item.id)

        with patch("app.services.reviews.recompute_item_aggregate") as mock_recompute:
            updated = review_service.update_review(db, review.id, {"comment": "second"})

        mock_recompute.assert_not_called()
        assert updated.comment == "second"
        assert updated.rating == 4
        assert updated.title == "Nice"
        assert _aggregate(db, sample_item.id) == before

    def test_rating_update_recomputes(self, db, sample_item):
        review = review_service.create_review(db, sample_item.id, "user-1", 4, "Nice")
        review_service.create_review(db, sample_item.id, "user-2", 2, "Meh")

        review_service.update_review(db, review.id, {"rating": 5})

        assert _aggregate(db, sample_item.id) == (3.5, 2)

    def test_update_missing_review(self, db):
        with pytest.raises(NotFoundError) as exc_info:
            review_service.update_review(db, 424242, {"rating": 3})
        assert exc_info.value.code == "REVIEW_NOT_FOUND"

    def test_update_rejects_bad_values(self, db, sample_item):
        review = review_service.create_review(db, sample_item.id, "user-1", 4, "Nice")

        with pytest.raises(ValidationError) as exc_info:
            review_service.update_review(db, review.id, {"rating": 7})
        assert exc_info.value.code == "INVALID_RATING"

        with pytest.raises(ValidationError) as exc_info:
            review_service.update_review(db, review.id, {"title": "  "})
        assert exc_info.value.code == "INVALID_TITLE"

        unchanged = review_service.get_review(db, review.id)
        assert (unchanged.rating, unchanged.title) == (4, "Nice")
        assert _aggregate(db, sample_item.id) == (4.0, 1)

    def test_comment_can_be_cleared(self, db, sample_item):
        review = review_service.create_review(db, sample_item.id, "user-1", 4, "Nice", "words")

        updated = review_service.update_review(db, review.id, {"comment": None})

        assert updated.comment is None


class TestDeleteReview:

    def test_delete_recomputes_down_to_zero(self, db, sample_item):
        four = review_service.create_review(db, sample_item.id, "user-1", 4, "Nice")
        two = review_service.create_review(db, sample_item.id, "user-2", 2, "Meh")

        assert review_service.delete_review(db, four.id) == four.id
        assert _aggregate(db, sample_item.id) == (2.0, 1)

        review_service.delete_review(db, two.id)
        average, total = _aggregate(db, sample_item.id)
        assert average == 0
        assert total == 0

    def test_delete_missing_review(self, db):
        with pytest.raises(NotFoundError):
            review_service.delete_review(db, 31337)

    def test_delete_rejects_bad_id(self, db):
        with pytest.raises(ValidationError) as exc_info:
            review_service.delete_review(db, 0)
        assert exc_info.value.code == "INVALID_ID"


class TestAggregateMatchesFullRescan:

    def test_random_mutation_sequence(self, db):
        rng = random.Random(20261019)
        items = [
            item_service.create_item(db, name=f"Item {n}", category="Books")
            for n in range(3)
        ]
        live_reviews = []

        for step in range(60):
            action = rng.choice(["create", "create", "update", "delete"])
            if action == "create" or not live_reviews:
                target = rng.choice(items)
                review = review_service.create_review(db, target.id, f"user-{step}", rng.randint(1, 5), "t")
                live_reviews.append(review.id)
            elif action == "update":
                review_service.update_review(db, rng.choice(live_reviews), {"rating": rng.randint(1, 5)})
            else:
                review_id = live_reviews.pop(rng.randrange(len(live_reviews)))
                review_service.delete_review(db, review_id)

            for item in items:
                expected_average, expected_total = aggregate_ratings(reviews_repo.get_ratings(db, item.id))
                average, total = _aggregate(db, item.id)
                assert total == expected_total
                assert average == pytest.approx(expected_average)


class TestConcurrency:

    def test_concurrent_creates_do_not_lose_updates(self, session_factory):
        with session_factory() as session:
            item_id = item_service.create_item(session, name="Popular", category="Games").id

        def submit(n):
            with session_factory() as session:
                return review_service.create_review(session, item_id, f"user-{n}", 5, "Five stars").id

        with ThreadPoolExecutor(max_workers=8) as pool:
            review_ids = list(pool.map(submit, range(24)))

        assert len(set(review_ids)) == 24
        with session_factory() as session:
            assert _aggregate(session, item_id) == (5.0, 24)

    def test_concurrent_mixed_mutations_match_full_rescan(self, session_factory):
        with session_factory() as session:
            item_id = item_service.create_item(session, name="Contested", category="Games").id
            seeded = [
                review_service.create_review(session, item_id, f"seed-{n}", 1, "Seeded").id
                for n in range(12)
            ]

        def delete(review_id):
            with session_factory() as session:
                review_service.delete_review(session, review_id)

        def rate_five(review_id):
            with session_factory() as session:
                review_service.update_review(session, review_id, {"rating": 5})

        def create(n):
            with session_factory() as session:
                review_service.create_review(session, item_id, f"new-{n}", 3, "Fresh")

        tasks = (
            [(delete, review_id) for review_id in seeded[:4]]
            + [(rate_five, review_id) for review_id in seeded[4:8]]
            + [(create, n) for n in range(8)]
        )
        random.Random(7).shuffle(tasks)

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(fn, arg) for fn, arg in tasks]
            for future in futures:
                future.result()

        with session_factory() as session:
            expected = aggregate_ratings(reviews_repo.get_ratings(session, item_id))
            average, total = _aggregate(session, item_id)

        # 4 untouched 1s, 4 updated to 5, 8 new 3s
        assert expected == (3.0, 16)
        assert total == 16
        assert average == pytest.approx(3.0)


class TestReviewRowLocking:

    def test_update_and_delete_lock_the_review_row(self, db, sample_item):
        review = review_service.create_review(db, sample_item.id, "user-1", 4, "Nice")

        with patch("app.services.reviews.reviews_repo.get_review", wraps=reviews_repo.get_review) as mock_get:
            review_service.update_review(db, review.id, {"rating": 2})
            review_service.delete_review(db, review.id)

        assert mock_get.call_count == 2
        for call in mock_get.call_args_list:
            assert call.kwargs == {"for_update": True}

    def test_second_delete_of_same_review_is_not_found(self, db, sample_item):
        review = review_service.create_review(db, sample_item.id, "user-1", 4, "Nice")
        review_service.delete_review(db, review.id)

        with pytest.raises(NotFoundError) as exc_info:
            review_service.delete_review(db, review.id)

        assert exc_info.value.code == "REVIEW_NOT_FOUND"
        assert _aggregate(db, sample_item.id) == (0, 0)


class TestStorageFailures:

    def test_failed_commit_applies_nothing(self, db, sample_item):
        item_id = sample_item.id
        locked = OperationalError("COMMIT", {}, Exception("database is locked"))

        with patch.object(db, "commit", side_effect=locked) as mock_commit:
            with pytest.raises(StorageError) as exc_info:
                review_service.create_review(db, item_id, "user-1", 5, "Lost")

        assert mock_commit.call_count == 3
        assert exc_info.value.status_code == 503
        assert reviews_repo.count_reviews(db, item_id) == 0
        assert _aggregate(db, item_id) == (0, 0)

    def test_transient_failure_is_retried(self, db, sample_item):
        item_id = sample_item.id
        real_commit = db.commit
        calls = {"count": 0}

        def flaky_commit():
            calls["count"] += 1
            if calls["count"] == 1:
                raise OperationalError("COMMIT", {}, Exception("database is locked"))
            real_commit()

        with patch.object(db, "commit", side_effect=flaky_commit):
            review = review_service.create_review(db, item_id, "user-1", 3, "Retried")

        assert calls["count"] == 2
        assert reviews_repo.count_reviews(db, item_id) == 1
        assert review.rating == 3
        assert _aggregate(db, item_id) == (3.0, 1)

    def test_unexpected_error_rolls_back_the_review_write(self, db, sample_item):
        item_id = sample_item.id

        with patch("app.services.reviews.recompute_item_aggregate", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                review_service.create_review(db, item_id, "user-1", 5, "Half done")

        assert reviews_repo.count_reviews(db, item_id) == 0
        assert _aggregate(db, item_id) == (0, 0)


class TestListReviews:

    def test_non_positive_limit_is_clamped(self, db, sample_item):
        for n in range(3):
            review_service.create_review(db, sample_item.id, f"user-{n}", 4, "Nice")

        assert len(review_service.list_reviews(db, limit=-5)) == 1
        assert len(review_service.list_reviews(db, limit=0)) == 3
