from solow_game.services.scheduler import RoundTimer


def test_round_timer_ticks_until_cancelled():
    spawned, ticks = [], []

    def on_tick(timer):
        ticks.append(timer)
        if len(ticks) == 3:
            timer.cancel()

    timer = RoundTimer(spawn=spawned.append, sleep=lambda s: None, interval=1, on_tick=on_tick)
    timer.start()
    timer.start()
    assert len(spawned) == 1

    spawned[0]()
    assert len(ticks) == 3
    assert all(t is timer for t in ticks)
    assert timer.cancelled


def test_cancel_during_sleep_skips_the_tick():
    spawned, ticks = [], []
    timer = None

    def sleep(_):
        timer.cancel()

    timer = RoundTimer(spawn=spawned.append, sleep=sleep, interval=1, on_tick=ticks.append)
    timer.start()
    spawned[0]()
    assert ticks == []


def test_failing_tick_does_not_kill_the_loop():
    spawned, calls = [], []

    def on_tick(timer):
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError('boom')
        timer.cancel()

    timer = RoundTimer(spawn=spawned.append, sleep=lambda s: None, interval=1, on_tick=on_tick)
    timer.start()
    spawned[0]()
    assert len(calls) == 2


def test_sleep_uses_interval():
    spawned, slept = [], []
    timer = RoundTimer(spawn=spawned.append, sleep=slept.append, interval=0.25,
                       on_tick=lambda t: t.cancel())
    timer.start()
    spawned[0]()
    assert slept == [0.25]


def test_stale_timer_ticks_are_dropped(make_coordinator, transport):
    c = make_coordinator(spawn=lambda fn: None, sleep=lambda s: None)
    c.join('Carol', 'sid-c')
    c.start_game()
    first = c.scheduler.timer
    assert first is not None and first.started

    c.tick(first)
    assert transport.payloads('timer_update', to='screens') == [{'timeRemaining': 29}]

    c.submit_investment('sid-c', 1)
    assert first.cancelled
    second = c.scheduler.timer
    assert second is not first
    assert c.session.current_round.number == 2

    assert c.tick(first) is None
    assert len(transport.payloads('timer_update', to='screens')) == 1
    c.tick(second)
    assert transport.payloads('timer_update', to='screens')[-1] == {'timeRemaining': 29}


def test_heartbeat_logs(make_coordinator, caplog):
    c = make_coordinator(heartbeat_ticks=2)
    c.join('Carol', 'sid-c')
    c.start_game()
    with caplog.at_level('INFO', logger='solow_game.services.scheduler'):
        for _ in range(4):
            c.tick()
    beats = [r for r in caplog.records if '[timer-heartbeat]' in r.getMessage()]
    assert len(beats) == 2
