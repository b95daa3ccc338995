"""Unit tests for user identifier generation."""

import threading
import unittest
import uuid
from datetime import datetime, timedelta, timezone

from domain.model.identifier import NIL_USER_ID, is_nil, new_user_id, user_id_timestamp


class TestIdentifier(unittest.TestCase):

    def test_ids_are_strictly_increasing(self):
        ids = [new_user_id() for _ in range(2000)]
        self.assertEqual(ids, sorted(ids, key=lambda u: u.int))
        self.assertEqual(len(set(ids)), len(ids))

    def test_returns_uuid(self):
        user_id = new_user_id()
        self.assertIsInstance(user_id, uuid.UUID)
        self.assertEqual(uuid.UUID(str(user_id)), user_id)

    def test_timestamp_prefix(self):
        before = datetime.now(timezone.utc) - timedelta(seconds=1)
        ts = user_id_timestamp(new_user_id())
        self.assertGreaterEqual(ts, before)
        self.assertLessEqual(ts, datetime.now(timezone.utc) + timedelta(seconds=1))

    def test_timestamp_of_known_id(self):
        user_id = uuid.UUID(int=(1_700_000_000_000 << 80) | 12345)
        self.assertEqual(user_id_timestamp(user_id), datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc))

    def test_concurrent_generation_is_unique(self):
        results: list[uuid.UUID] = []
        lock = threading.Lock()

        def worker():
            local = [new_user_id() for _ in range(500)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(set(results)), 2000)

    def test_is_nil(self):
        self.assertTrue(is_nil(None))
        self.assertTrue(is_nil(NIL_USER_ID))
        self.assertFalse(is_nil(new_user_id()))


if __name__ == '__main__':
    unittest.main()
