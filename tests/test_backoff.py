import unittest

from richtext.cache.backoff import backoff_delay, backoff_schedule
from richtext.config import GOLDEN_RATIO


class TestBackoff(unittest.TestCase):
    def test_golden_ratio_growth(self):
        self.assertAlmostEqual(backoff_delay(1, base=1.0), GOLDEN_RATIO)
        d2 = backoff_delay(2, base=0.05)
        d3 = backoff_delay(3, base=0.05)
        self.assertAlmostEqual(d3 / d2, GOLDEN_RATIO)

    def test_max_delay_caps(self):
        self.assertEqual(backoff_delay(50, base=1.0, max_delay=5.0), 5.0)

    def test_negative_attempt(self):
        with self.assertRaises(ValueError):
            backoff_delay(-1, base=1.0)

    def test_schedule_has_one_delay_between_each_attempt(self):
        sched = backoff_schedule(3, base=0.05)
        self.assertEqual(len(sched), 2)
        self.assertAlmostEqual(sched[0], 0.05 * GOLDEN_RATIO)
        self.assertAlmostEqual(sched[1], 0.05 * GOLDEN_RATIO ** 2)
        self.assertEqual(backoff_schedule(1, base=0.05), [])

    def test_schedule_is_non_decreasing_under_cap(self):
        sched = backoff_schedule(12, base=0.05, max_delay=1.0)
        self.assertEqual(sched, sorted(sched))
        self.assertEqual(sched[-1], 1.0)


if __name__ == "__main__":
    unittest.main()
