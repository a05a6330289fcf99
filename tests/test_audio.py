import random
from dataclasses import dataclass
from typing import Optional

import pytest

from clicksounds.audio import AudioError, AudioPlayer, PygameBackend, SoundBackend
from clicksounds.config import AudioEffectsConfig


@dataclass(eq=False)
class FakeHandle:
    path: str
    playing: bool = False
    volume: Optional[float] = None
    position: Optional[tuple] = None
    released: bool = False
    stopped: bool = False
    polls_left: Optional[int] = None


class FakeBackend(SoundBackend):
    def __init__(self, sync_polls=None, fail_paths=(), fail_effects=False):
        self.opened = False
        self.closed = False
        self.handles = []
        self.sync_polls = sync_polls
        self.fail_paths = set(fail_paths)
        self.fail_effects = fail_effects
        self.effects_calls = []

    def open(self):
        self.opened = True

    def load(self, filepath):
        if filepath in self.fail_paths:
            raise AudioError(f"cannot load {filepath}")
        handle = FakeHandle(filepath, polls_left=self.sync_polls)
        self.handles.append(handle)
        return handle

    def play(self, handle, volume, position):
        handle.playing = True
        handle.volume = volume
        handle.position = position

    def is_playing(self, handle):
        if handle.polls_left is not None:
            if handle.polls_left <= 0:
                handle.playing = False
            handle.polls_left -= 1
        return handle.playing

    def set_volume(self, handle, volume):
        handle.volume = volume

    def stop(self, handle):
        handle.playing = False
        handle.stopped = True

    def release(self, handle):
        handle.playing = False
        handle.released = True

    def configure_effects(self, effects):
        self.effects_calls.append(effects)
        if effects is not None and self.fail_effects:
            raise AudioError("effects unavailable")

    def close(self):
        self.closed = True


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def active_ids(audio):
    return [s.id for s in audio.active_sounds]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def player(backend, clock):
    audio = AudioPlayer(backend, clock=clock, rng=random.Random(1))
    audio.initialize()
    return audio


def test_initialize_opens_backend(backend):
    audio = AudioPlayer(backend)
    audio.initialize()
    assert backend.opened


def test_play_before_initialize_returns_none(backend):
    audio = AudioPlayer(backend)
    assert audio.play_sound("click.wav") is None
    assert backend.handles == []


def test_ids_start_at_one_and_increase(player):
    ids = [player.play_sound(name) for name in ("a.wav", "b.wav", "c.wav")]
    assert ids == [1, 2, 3]


def test_volume_is_scaled_by_master(player, backend):
    player.master_volume = 0.5
    sound_id = player.play_sound("a.wav", volume=0.5)
    assert sound_id == 1
    assert player.master_volume == pytest.approx(0.5)
    assert backend.handles[0].volume == pytest.approx(0.25)


@pytest.mark.parametrize("value, expected", [(1.5, 1.0), (-0.2, 0.0), (0.7, 0.7)])
def test_master_volume_is_clamped(player, value, expected):
    player.master_volume = value
    assert player.master_volume == pytest.approx(expected)


def test_limit_skips_extra_sounds(player, backend):
    player.max_concurrent_sounds = 2
    assert player.play_sound("a.wav") == 1
    assert player.play_sound("b.wav") == 2
    assert player.play_sound("c.wav") is None
    assert len(backend.handles) == 2


def test_finished_sounds_free_a_slot(player, backend):
    player.max_concurrent_sounds = 1
    first = player.play_sound("a.wav")
    backend.handles[0].playing = False
    second = player.play_sound("b.wav")
    assert (first, second) == (1, 2)
    assert backend.handles[0].released


def test_update_releases_finished_sounds(player, backend):
    player.play_sound("a.wav")
    player.play_sound("b.wav")
    backend.handles[0].playing = False
    player.update()
    assert active_ids(player) == [2]
    assert backend.handles[0].released
    assert not backend.handles[1].released


def test_load_failure_returns_none():
    backend = FakeBackend(fail_paths={"missing.wav"})
    audio = AudioPlayer(backend)
    audio.initialize()
    assert audio.play_sound("missing.wav") is None
    assert audio.active_sounds == []


def test_synchronous_play_waits_and_releases():
    backend = FakeBackend(sync_polls=3)
    audio = AudioPlayer(backend)
    audio.initialize()
    assert audio.play_sound("a.wav", async_=False) == 0
    handle = backend.handles[0]
    assert handle.released
    assert not handle.playing
    assert audio.active_sounds == []


def test_fade_out_reduces_volume_then_stops(player, backend, clock):
    sound_id = player.play_sound("a.wav", volume=1.0)
    assert sound_id == 1
    player.fade_out_sound(sound_id, 100)
    clock.now = 50
    player.update()
    handle = backend.handles[0]
    assert handle.volume == pytest.approx(0.5)
    assert not handle.stopped
    assert active_ids(player) == [sound_id]
    clock.now = 100
    player.update()
    assert handle.stopped
    player.update()
    assert player.active_sounds == []


def test_fade_volume_decreases_monotonically(player, backend, clock):
    sound_id = player.play_sound("a.wav", volume=0.8)
    assert sound_id == 1
    player.fade_out_sound(sound_id, 200)
    volumes = []
    for now in (20, 80, 150, 190):
        clock.now = now
        player.update()
        volumes.append(backend.handles[0].volume)
    assert active_ids(player) == [sound_id]
    assert volumes == sorted(volumes, reverse=True)
    assert all(0 < v < 0.8 for v in volumes)


def test_fade_is_not_restarted(player, backend, clock):
    sound_id = player.play_sound("a.wav")
    assert sound_id == 1
    player.fade_out_sound(sound_id, 100)
    clock.now = 60
    player.fade_out_sound(sound_id, 100)
    clock.now = 100
    player.update()
    assert backend.handles[0].stopped
    player.update()
    assert player.active_sounds == []


def test_fade_ignores_invalid_id(player, backend, clock):
    sound_id = player.play_sound("a.wav", volume=1.0)
    player.fade_out_sound(0, 10)
    clock.now = 50
    player.update()
    assert active_ids(player) == [sound_id]
    assert backend.handles[0].volume == pytest.approx(1.0)
    assert not backend.handles[0].stopped


def test_stop_sound_stops_only_that_sound(player, backend):
    first = player.play_sound("a.wav")
    second = player.play_sound("b.wav")
    player.stop_sound(second)
    assert backend.handles[1].stopped
    assert not backend.handles[0].stopped
    player.update()
    assert active_ids(player) == [first]


def test_no_spatial_position_without_spatializer(player, backend):
    sound_id = player.play_sound("a.wav")
    assert sound_id == 1
    assert active_ids(player) == [1]
    assert backend.handles[0].position is None


def test_random_spatial_positions_stay_in_field(player, backend):
    effects = AudioEffectsConfig(enable_spatializer=True, spatial_spread=2.0, listener_distance=1.0)
    player.set_audio_effects(effects)
    ids = [player.play_sound("a.wav") for _ in range(20)]
    assert ids == list(range(1, 21))
    positions = [h.position for h in backend.handles]
    assert len(set(positions)) > 1
    for x, y, z in positions:
        assert -2.0 <= x <= 2.0
        assert -1.0 <= y <= 1.0
        assert 0.0 <= z <= 2.0


def test_fixed_spatial_position_is_origin(player, backend):
    effects = AudioEffectsConfig(enable_spatializer=True, random_spatial_position=False)
    player.set_audio_effects(effects)
    sound_id = player.play_sound("a.wav")
    assert sound_id == 1
    assert active_ids(player) == [1]
    assert backend.handles[0].position == (0.0, 0.0, 0.0)


def test_effects_disabled_clears_chain(player, backend):
    player.set_audio_effects(AudioEffectsConfig())
    assert backend.effects_calls == [None]
    sound_id = player.play_sound("a.wav")
    assert sound_id == 1
    assert active_ids(player) == [1]
    assert backend.handles[0].position is None


def test_effects_enabled_are_passed_to_backend(player, backend):
    effects = AudioEffectsConfig(enable_echo=True)
    player.set_audio_effects(effects)
    assert backend.effects_calls == [effects]


def test_effects_failure_falls_back_to_none(clock):
    backend = FakeBackend(fail_effects=True)
    audio = AudioPlayer(backend, clock=clock)
    audio.initialize()
    effects = AudioEffectsConfig(enable_reverb=True)
    audio.set_audio_effects(effects)
    assert backend.effects_calls == [effects, None]


def test_cleanup_releases_and_closes(player, backend):
    player.play_sound("a.wav")
    player.play_sound("b.wav")
    player.cleanup()
    assert all(h.released for h in backend.handles)
    assert backend.closed
    assert player.active_sounds == []
    assert player.play_sound("c.wav") is None


def test_context_manager_opens_and_closes(backend):
    with AudioPlayer(backend) as audio:
        assert audio.play_sound("a.wav") == 1
        assert backend.opened
    assert backend.closed


def test_pygame_backend_load_requires_open():
    with pytest.raises(AudioError):
        PygameBackend().load("a.wav")


def test_pygame_backend_effects_require_open():
    with pytest.raises(AudioError):
        PygameBackend().configure_effects(AudioEffectsConfig(enable_echo=True))