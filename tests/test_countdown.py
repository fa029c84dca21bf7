"""Tests for services.countdown.Countdown."""

from conftest import BOTTLE, CORE, NEWSPAPER, WRAPPER
from puzzles.eco_sort import EcoSortChallenge, FailureReason, Verdict
from services.countdown import Countdown


class TestRun:
    def test_runs_until_expiry_then_releases(self, catalog):
        ch = EcoSortChallenge(catalog, duration_sec=3)
        ticks, releases = [], []
        cd = Countdown(ch, on_tick=lambda c: ticks.append(c.time_remaining),
                       on_release=releases.append, sleep=lambda s: None)
        cd.run()
        assert ticks == [2, 1, 0]
        assert ch.reason is FailureReason.EXPIRED
        assert releases == [ch]
        assert cd.released is True

    def test_sleeps_one_interval_per_tick(self, catalog):
        ch = EcoSortChallenge(catalog, duration_sec=2)
        slept = []
        Countdown(ch, sleep=slept.append, interval=1.0).run()
        assert slept == [1.0, 1.0]

    def test_stops_after_pass(self, catalog):
        ch = EcoSortChallenge(catalog, duration_sec=120)
        releases = []

        def sleep(_):
            # player finishes during the first second
            for bin_, item_id in [("recycling", BOTTLE), ("compost", CORE),
                                  ("recycling", NEWSPAPER), ("trash", WRAPPER)]:
                ch.place_item(bin_, item_id)

        cd = Countdown(ch, on_release=releases.append, sleep=sleep)
        cd.run()
        assert ch.verdict is Verdict.PASSED
        assert ch.time_remaining == 120
        assert releases == [ch]


class TestCancel:
    def test_cancel_releases_once(self, challenge):
        releases = []
        cd = Countdown(challenge, on_release=releases.append)
        assert cd.cancel() is True
        assert cd.cancel() is False
        assert releases == [challenge]

    def test_cancel_while_sleeping_skips_tick(self, challenge):
        ticks = []
        holder = {}

        def sleep(_):
            holder["cd"].cancel()

        cd = Countdown(challenge, on_tick=ticks.append, sleep=sleep)
        holder["cd"] = cd
        cd.run()
        assert ticks == []
        assert challenge.time_remaining == 120

    def test_cancelled_countdown_never_runs(self, challenge):
        cd = Countdown(challenge, sleep=lambda s: None)
        cd.cancel()
        cd.run()
        assert challenge.time_remaining == 120

    def test_terminal_then_dispose_releases_once(self, challenge):
        releases = []
        cd = Countdown(challenge, on_release=releases.append, sleep=lambda s: None)
        challenge.place_item("trash", BOTTLE)
        cd.run()
        cd.cancel()
        assert releases == [challenge]
