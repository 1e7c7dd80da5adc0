import argparse
import time

from app.core.errors import ReviewHubError
from app.db.repositories import items as items_repo
from app.db.repositories import reviews as reviews_repo
from app.db.session import SessionLocal
from app.services.aggregation import aggregate_ratings
from app.services.items import recompute_item


def log(message: str) -> None:
    ts = time.strftime("%Y-%m-%d %H:%M:%S")
    print(f"[{ts}] {message}", flush=True)


def find_drift(db, item_id: int) -> tuple[float, int, float, int] | None:
    item = items_repo.get_item(db, item_id)
    expected_average, expected_total = aggregate_ratings(reviews_repo.get_ratings(db, item_id))
    if abs(item.average_rating - expected_average) > 1e-9 or item.total_reviews != expected_total:
        return item.average_rating, item.total_reviews, expected_average, expected_total
    return None


def iter_item_id_batches(db, item_id: int | None, batch_size: int):
    if item_id is not None:
        yield [item_id]
        return

    after_id = 0
    while True:
        item_ids = items_repo.get_item_ids(db, after_id=after_id, batch_size=batch_size)
        if not item_ids:
            return
        yield item_ids
        after_id = item_ids[-1]


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Rebuild item rating aggregates from the reviews table."
    )
    parser.add_argument("--item-id", type=int, help="Only rebuild this item.")
    parser.add_argument("--batch-size", type=int, default=500)
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report items whose stored aggregate differs from their reviews, without writing.",
    )
    args = parser.parse_args()

    started = time.perf_counter()
    processed = 0
    drifted = 0
    failed = 0

    db = SessionLocal()
    try:
        for item_ids in iter_item_id_batches(db, args.item_id, args.batch_size):
            for item_id in item_ids:
                processed += 1
                if items_repo.get_item(db, item_id) is None:
                    log(f"Item {item_id} not found")
                    failed += 1
                    continue

                drift = find_drift(db, item_id)
                db.rollback()
                if drift is not None:
                    drifted += 1
                    stored_avg, stored_total, expected_avg, expected_total = drift
                    log(
                        f"Item {item_id}: stored ({stored_avg:.4f}, {stored_total}) "
                        f"expected ({expected_avg:.4f}, {expected_total})"
                    )

                if args.check:
                    continue

                try:
                    recompute_item(db, item_id)
                except ReviewHubError as exc:
                    failed += 1
                    log(f"Item {item_id}: {exc.code} {exc.message}")

            log(f"Processed {processed} item(s)...")
    finally:
        db.close()

    elapsed = time.perf_counter() - started
    action = "Checked" if args.check else "Rebuilt"
    log(f"{action} {processed} item(s) in {elapsed:.1f}s: {drifted} drifted, {failed} failed.")


if __name__ == "__main__":
    main()
