import unittest
from datetime import datetime, timedelta, timezone

from lootlab.time_utils import utcnow


class UtcNowTests(unittest.TestCase):
    def test_naive_utc(self):
        now = utcnow()
        reference = datetime.now(timezone.utc).replace(tzinfo=None)

        self.assertIsNone(now.tzinfo)
        self.assertLess(abs(reference - now), timedelta(seconds=5))


if __name__ == "__main__":
    unittest.main()
