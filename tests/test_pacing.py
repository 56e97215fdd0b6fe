from editorial_vitals.pacing import SleepPacer


def test_sleep_pacer_scales_and_skips_zero(monkeypatch):
    slept = []
    monkeypatch.setattr("editorial_vitals.pacing.time.sleep", slept.append)

    SleepPacer().pause(0.5)
    SleepPacer(scale=0.0).pause(2.0)
    SleepPacer(scale=2.0).pause(1.0)
    SleepPacer().pause(-1)

    assert slept == [0.5, 2.0]
