# Overview: Threaded tests for stock and sequence safety on a file-backed database.

"""
Concurrency tests.

Each worker thread gets its own app context (and therefore its own session
and connection) against a temporary SQLite file, so writers really contend
for the database lock.
"""
import os
import tempfile
import threading
import unittest

from billing import create_app
from billing.errors import InsufficientStock
from billing.extensions import db
from billing.models import Bill, Product
from billing.services import bill_service, products_service
from billing.services.concurrency import begin_write_transaction, run_with_retry
from billing.services.sequence_service import next_sequence


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "TRANSACTION_RETRY_ATTEMPTS": 5,
            "TRANSACTION_RETRY_BACKOFF": 0.01,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()
            product = products_service.create_product(
                {"name": "Chips", "localizedName": "சிப்ஸ்", "price": 10}
            )
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _stock(self, quantity):
        with self.app.app_context():
            products_service.adjust_stock(self.product_id, quantity)

    def _run_threads(self, count, target):
        barrier = threading.Barrier(count)
        results = []
        errors = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                barrier.wait()
                try:
                    value = target()
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                else:
                    with lock:
                        results.append(value)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results, errors

    def test_sequence_values_are_unique(self):
        def mint():
            def _op():
                begin_write_transaction()
                value = next_sequence("concurrency")
                db.session.commit()
                return value
            return run_with_retry(_op)

        results, errors = self._run_threads(8, mint)

        self.assertEqual(errors, [])
        self.assertEqual(sorted(results), list(range(1, 9)))

    def test_last_unit_is_sold_once(self):
        self._stock(1)

        def buy():
            return bill_service.create_bill(
                "Kavya", "9876543210", [{"productId": self.product_id, "quantity": 1}]
            ).bill_number

        results, errors = self._run_threads(2, buy)

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], InsufficientStock)

        with self.app.app_context():
            self.assertEqual(db.session.get(Product, self.product_id).stock, 0)
            self.assertEqual(db.session.query(Bill).count(), 1)

    def test_stock_never_oversold(self):
        self._stock(5)

        def buy():
            return bill_service.create_bill(
                "Kavya", "9876543210", [{"productId": self.product_id, "quantity": 1}]
            ).bill_number

        results, errors = self._run_threads(8, buy)

        self.assertEqual(len(results), 5)
        self.assertEqual(len(set(results)), 5)
        self.assertEqual(len(errors), 3)
        self.assertTrue(all(isinstance(e, InsufficientStock) for e in errors))

        with self.app.app_context():
            self.assertEqual(db.session.get(Product, self.product_id).stock, 0)


if __name__ == "__main__":
    unittest.main()
