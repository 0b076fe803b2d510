import unittest

from noteshub.services.presence import PresenceTracker


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestPresenceTracker(unittest.TestCase):

    def test_counts_viewers_inside_window(self):
        clock = FakeClock()
        tracker = PresenceTracker(window_seconds=60, clock=clock)

        self.assertEqual(tracker.heartbeat("a"), 1)
        self.assertEqual(tracker.heartbeat("b"), 2)
        self.assertEqual(tracker.heartbeat("a"), 2)

        clock.now += 45
        tracker.heartbeat("b")
        clock.now += 30
        self.assertEqual(tracker.online_count(), 1)


if __name__ == "__main__":
    unittest.main()
