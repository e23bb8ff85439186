import json

import pygame
import pytest

from bouncesim import constants
from bouncesim import single
from bouncesim.collision import Bounds
from bouncesim.constants import DT, G
from bouncesim.kinematics import Projectile
from bouncesim.prefs import Preferences
from bouncesim.single import compute_scale, log_frame, periodic_timer, run_sim, world_to_screen


def test_headless_run_records_one_frame_per_tick():
    result = run_sim(display=False, duration=1.0)
    assert len(result.physics_log) == constants.TICKS_PER_SECOND
    assert result.elapsed == pytest.approx(1.0)
    assert result.bounces == 0
    assert result.bounds == Bounds()

    first = result.physics_log[0]
    assert set(first) == {"t", "x", "y", "vx", "vy", "speed", "KE", "PE", "TE", "bounces"}
    assert first["t"] == pytest.approx(DT)
    assert first["x"] == pytest.approx(30 * DT)
    assert first["vy"] == pytest.approx(90 - G * DT)


def test_headless_run_reports_launch_prediction():
    result = run_sim(initial_velocity=(30, 90), display=False, duration=0.5)
    assert result.predicted[0] == pytest.approx(2 * (90 / G) * 30)
    assert result.predicted[1] == pytest.approx(90 ** 2 / (2 * G))


def test_energy_is_conserved_before_first_bounce():
    result = run_sim(elasticity=1.0, display=False, duration=5.0)
    for frame in result.physics_log:
        assert frame["bounces"] == 0
        assert frame["TE"] == pytest.approx(0.5 * (30 ** 2 + 90 ** 2), rel=1e-9)


def test_long_run_bounces():
    result = run_sim(elasticity=1.0, display=False, duration=30.0)
    counts = [frame["bounces"] for frame in result.physics_log]
    assert result.bounces > 0
    assert counts == sorted(counts)
    assert counts[-1] == result.bounces


def test_inelastic_run_kills_horizontal_motion():
    result = run_sim(elasticity=0.0, display=False, duration=25.0)
    assert result.bounces > 0
    assert result.physics_log[-1]["vx"] == 0


def test_custom_bounds_are_used():
    bounds = Bounds(floor=0, ceiling=1000, left=0, right=100)
    result = run_sim(display=False, duration=5.0, bounds=bounds)
    # The right wall at x=100 is reached after 100/30 s
    assert result.bounces >= 1
    assert result.bounds is bounds


def test_elasticity_from_preferences(tmp_path):
    prefs = Preferences(tmp_path / "prefs.json")
    prefs.set("collision_elasticity", "0")
    result = run_sim(display=False, duration=25.0, prefs=prefs)
    assert result.physics_log[-1]["vx"] == 0


def test_log_frame_fields():
    p = Projectile.launch((1, 2), (3, 4))
    log = []
    log_frame(log, 0.5, p, 2)
    frame = log[0]
    assert frame["t"] == 0.5
    assert (frame["x"], frame["y"]) == (1, 2)
    assert frame["speed"] == pytest.approx(5)
    assert frame["KE"] == pytest.approx(12.5)
    assert frame["PE"] == pytest.approx(2 * G)
    assert frame["TE"] == pytest.approx(12.5 + 2 * G)
    assert frame["bounces"] == 2


def test_compute_scale():
    assert compute_scale((1500, 900), 550.0, 400.0, radius=50) == (pytest.approx(1300 / 550), pytest.approx(2.0))
    assert compute_scale((1500, 900), 0.0, -1.0) == (1.0, 1.0)


def test_world_to_screen_flips_y():
    assert world_to_screen(0, 0, (1.0, 2.0), 900, radius=50) == (50, 850)
    assert world_to_screen(10, 100, (2.0, 2.0), 900, radius=50) == (120, 650)


def test_periodic_timer_is_released(monkeypatch):
    calls = []
    monkeypatch.setattr(single.pygame.time, "set_timer", lambda event, millis: calls.append((event, millis)))

    with periodic_timer(single.TICK_EVENT, 1 / 24):
        assert calls == [(single.TICK_EVENT, 42)]
    assert calls[-1] == (single.TICK_EVENT, 0)

    calls.clear()
    with pytest.raises(RuntimeError):
        with periodic_timer(single.TICK_EVENT, 1 / 24):
            raise RuntimeError("boom")
    assert calls == [(single.TICK_EVENT, 42), (single.TICK_EVENT, 0)]


@pytest.fixture
def dummy_window(monkeypatch):
    """Headless SDL window with a recorded timer and a scripted event queue."""
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    timer_calls = []
    monkeypatch.setattr(single.pygame.time, "set_timer", lambda event, millis: timer_calls.append((event, millis)))

    def script(*batches):
        queue = [list(b) for b in batches]

        def get(*_args, **_kwargs):
            if queue:
                return queue.pop(0)
            return [pygame.event.Event(pygame.QUIT)]

        monkeypatch.setattr(single.pygame.event, "get", get)

    return script, timer_calls


def tick():
    return pygame.event.Event(single.TICK_EVENT)


def key(k):
    return pygame.event.Event(pygame.KEYDOWN, key=k)


def test_interactive_controls_update_preferences(tmp_path, dummy_window):
    script, timer_calls = dummy_window
    path = tmp_path / "prefs.json"
    prefs = Preferences(path, throttle=0)
    window = (600, 400)
    # Persist button sits at (WIDTH - 200, 20, 180, 40)
    click = pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(450, 40), button=1)

    script(
        [tick(), tick(), key(pygame.K_LEFT), key(pygame.K_LEFT), key(pygame.K_LEFT)],
        [key(pygame.K_RIGHT), tick()],
        [key(pygame.K_p)],
        [click],
        [key(pygame.K_p)],
    )
    result = run_sim(display=True, prefs=prefs, window_size=window)

    assert len(result.physics_log) == 3
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved == {"collision_elasticity": "90", "persist": "true"}
    assert prefs.elasticity == 0.9
    # Timer acquired on entry, released on quit
    assert timer_calls == [(single.TICK_EVENT, 42), (single.TICK_EVENT, 0)]


def test_interactive_elasticity_is_clamped(tmp_path, dummy_window):
    script, _ = dummy_window
    path = tmp_path / "prefs.json"
    prefs = Preferences(path, throttle=0)

    script([key(pygame.K_LEFT)] * 30, [key(pygame.K_RIGHT)] * 2)
    run_sim(display=True, prefs=prefs, window_size=(600, 400))
    assert prefs.elasticity_percent == 10

    script([key(pygame.K_RIGHT)] * 30)
    run_sim(display=True, prefs=prefs, window_size=(600, 400))
    assert json.loads(path.read_text(encoding="utf-8"))["collision_elasticity"] == "100"


def test_interactive_restart_rewinds_without_bounce(tmp_path, dummy_window):
    script, timer_calls = dummy_window
    prefs = Preferences(tmp_path / "prefs.json")

    script([tick()] * 30, [key(pygame.K_r)], [tick()] * 3, [key(pygame.K_ESCAPE)])
    result = run_sim(display=True, prefs=prefs, window_size=(600, 400))

    assert len(result.physics_log) == 3
    assert result.bounces == 0
    assert result.elapsed == pytest.approx(3 * DT)
    first = result.physics_log[0]
    assert first["t"] == pytest.approx(DT)
    assert first["x"] == pytest.approx(30 * DT)
    assert first["vy"] == pytest.approx(90 - G * DT)
    assert timer_calls[-1] == (single.TICK_EVENT, 0)
