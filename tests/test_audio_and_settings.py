from dataclasses import replace

import pytest

from audio import SAMPLE_RATE, build_tone_buffer, waveform_sample
from settings import DESKTOP, MOBILE, GameSettings, parse_args, settings_from_args


@pytest.mark.parametrize("waveform", ["sine", "square", "sawtooth", "triangle"])
def test_tone_buffer_length_and_range(waveform):
    buffer = build_tone_buffer(600, 0.3, waveform)
    assert len(buffer) == int(SAMPLE_RATE * 0.3)
    assert min(buffer) >= 0 and max(buffer) <= 255
    assert max(buffer) > 128


def test_tone_buffer_decays():
    buffer = build_tone_buffer(200, 0.5, "square")
    head = max(abs(sample - 128) for sample in buffer[:200])
    tail = max(abs(sample - 128) for sample in buffer[-200:])
    assert tail < head


def test_silent_and_unknown_tones():
    assert set(build_tone_buffer(0, 0.1)) == {128}
    with pytest.raises(ValueError):
        build_tone_buffer(440, 0.1, "noise")


def test_waveform_shapes():
    assert waveform_sample("square", 0.25) == 1.0
    assert waveform_sample("square", 0.75) == -1.0
    assert waveform_sample("sawtooth", 0.0) == -1.0
    assert waveform_sample("triangle", 0.5) == pytest.approx(1.0)
    assert waveform_sample("sine", 0.25) == pytest.approx(1.0)


def test_presets_and_derived_geometry():
    settings = GameSettings(width=800, height=600)
    assert settings.ground_threshold == 520
    assert settings.launch_pad == (400, 500)
    assert MOBILE.max_enemy_missiles < DESKTOP.max_enemy_missiles
    assert MOBILE.spawn_interval_floor_ms > DESKTOP.spawn_interval_floor_ms


@pytest.mark.parametrize(
    "overrides",
    [
        {"width": 0},
        {"max_interceptors": 0},
        {"control_mode": "mouse"},
        {"enemy_speed_range": (2.0, 1.0)},
        {"spawn_interval_floor_ms": 5000.0},
        {"ground_margin": 800.0},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValueError):
        replace(DESKTOP, **overrides)


def test_settings_from_command_line():
    args = parse_args(["--mobile", "--width", "640", "--celebration", "--variable-step", "--seed", "4"])
    settings = settings_from_args(args)
    assert settings.width == 640
    assert settings.max_interceptors == MOBILE.max_interceptors
    assert settings.control_mode == "touch"
    assert settings.celebration
    assert settings.variable_step
    assert not settings.single_interceptor
    assert args.seed == 4


def test_controls_flag_selects_arrows():
    settings = settings_from_args(parse_args(["--controls", "arrows", "--single-interceptor"]))
    assert settings.control_mode == "arrows"
    assert settings.single_interceptor
    assert settings.max_interceptors == DESKTOP.max_interceptors
