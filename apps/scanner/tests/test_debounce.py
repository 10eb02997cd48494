from apps.scanner.services import DebounceGuard


class TestDebounceGuard:

    def test_first_scan_accepted(self, clock):
        guard = DebounceGuard(window_seconds=1.5, clock=clock)

        assert guard.accept('abcd1234') is True

    def test_repeat_within_window_dropped(self, clock):
        guard = DebounceGuard(window_seconds=1.5, clock=clock)
        guard.accept('abcd1234')

        clock.advance(1.0)

        assert guard.accept('abcd1234') is False

    def test_repeat_after_window_accepted(self, clock):
        guard = DebounceGuard(window_seconds=1.5, clock=clock)
        guard.accept('abcd1234')

        clock.advance(1.5)

        assert guard.accept('abcd1234') is True

    def test_different_value_within_window_accepted(self, clock):
        guard = DebounceGuard(window_seconds=1.5, clock=clock)
        guard.accept('abcd1234')

        clock.advance(0.1)

        assert guard.accept('efgh5678') is True

    def test_dropped_repeats_do_not_extend_window(self, clock):
        guard = DebounceGuard(window_seconds=1.5, clock=clock)
        guard.accept('abcd1234')

        clock.advance(1.0)
        assert guard.accept('abcd1234') is False
        clock.advance(0.6)

        assert guard.accept('abcd1234') is True

    def test_reset_forgets_last_value(self, clock):
        guard = DebounceGuard(window_seconds=1.5, clock=clock)
        guard.accept('abcd1234')

        guard.reset()

        assert guard.accept('abcd1234') is True
