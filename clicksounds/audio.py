"""Sound playback with per-sound fading, effects and spatial placement."""

from __future__ import annotations

import logging
import math
import os
import random
import threading
import time
from abc import ABC, abstractmethod
from array import array
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Sequence

from .config import AudioEffectsConfig

log = logging.getLogger(__name__)

Position = tuple[float, float, float]


class AudioError(Exception):
    """Raised when the audio device, a sound file or an effect cannot be used."""


class SoundBackend(ABC):
    """The device layer the player drives: loads, starts and stops sounds."""

    @abstractmethod
    def open(self) -> None:
        """Open the output device; raise AudioError on failure."""

    @abstractmethod
    def load(self, filepath: str) -> Any:
        """Load a sound file and return a handle for one playback."""

    @abstractmethod
    def play(self, handle: Any, volume: float, position: Optional[Position]) -> None:
        """Start playback of a handle at a volume and optional 3D position."""

    @abstractmethod
    def is_playing(self, handle: Any) -> bool:
        """Return whether the handle is still sounding."""

    @abstractmethod
    def set_volume(self, handle: Any, volume: float) -> None:
        """Change the volume of a playing handle."""

    @abstractmethod
    def stop(self, handle: Any) -> None:
        """Stop a handle's playback."""

    @abstractmethod
    def release(self, handle: Any) -> None:
        """Free everything held for a handle."""

    @abstractmethod
    def configure_effects(self, effects: Optional[AudioEffectsConfig]) -> None:
        """Set up echo and reverb, or remove them when ``effects`` is None."""

    @abstractmethod
    def close(self) -> None:
        """Close the output device."""


# Mixer sample formats: array typecode, zero offset, full-scale value.
_FORMATS: dict[int, tuple[str, int, float]] = {
    -8: ("b", 0, 127.0),
    8: ("B", 128, 127.0),
    -16: ("h", 0, 32767.0),
    16: ("H", 32768, 32767.0),
    32: ("f", 0, 1.0),
}

_COMB_TUNING = (1116, 1188, 1277, 1356, 1422, 1491, 1557, 1617)
_ALLPASS_TUNING = (556, 441, 341, 225)
_STEREO_SPREAD = 23
_FIXED_GAIN = 0.015
_SCALE_WET = 3.0
_SCALE_DRY = 2.0


class _Comb:
    __slots__ = ("buffer", "index", "store", "feedback", "damp")

    def __init__(self, size: int, feedback: float, damp: float) -> None:
        self.buffer = [0.0] * max(1, size)
        self.index = 0
        self.store = 0.0
        self.feedback = feedback
        self.damp = damp

    def process(self, sample: float) -> float:
        output = self.buffer[self.index]
        self.store = output * (1.0 - self.damp) + self.store * self.damp
        self.buffer[self.index] = sample + self.store * self.feedback
        self.index = (self.index + 1) % len(self.buffer)
        return output


class _Allpass:
    __slots__ = ("buffer", "index")

    def __init__(self, size: int) -> None:
        self.buffer = [0.0] * max(1, size)
        self.index = 0

    def process(self, sample: float) -> float:
        delayed = self.buffer[self.index]
        self.buffer[self.index] = sample + delayed * 0.5
        self.index = (self.index + 1) % len(self.buffer)
        return delayed - sample


def _reverb(
    left: Sequence[float],
    right: Sequence[float],
    sample_rate: int,
    effects: AudioEffectsConfig,
) -> tuple[list[float], list[float]]:
    scale = sample_rate / 44100
    feedback = effects.reverb_room_size * 0.28 + 0.7
    damp = effects.reverb_damping * 0.4
    # Wet is boosted more than dry by the reverb's internal scaling, so it is
    # brought down by 2/3 to keep the two balanced.
    wet = effects.reverb_wetness * (2.0 / 3.0) * _SCALE_WET
    dry = (1.0 - effects.reverb_wetness) * _SCALE_DRY
    width = effects.reverb_width
    wet1 = wet * (width / 2 + 0.5)
    wet2 = wet * ((1 - width) / 2)

    def bank(spread: int) -> tuple[list[_Comb], list[_Allpass]]:
        combs = [_Comb(int((t + spread) * scale), feedback, damp) for t in _COMB_TUNING]
        allpasses = [_Allpass(int((t + spread) * scale)) for t in _ALLPASS_TUNING]
        return combs, allpasses

    def run(sample: float, combs: list[_Comb], allpasses: list[_Allpass]) -> float:
        out = sum(comb.process(sample) for comb in combs)
        for allpass in allpasses:
            out = allpass.process(out)
        return out

    left_bank, right_bank = bank(0), bank(_STEREO_SPREAD)
    out_left: list[float] = []
    out_right: list[float] = []
    for l_in, r_in in zip(left, right):
        sample = (l_in + r_in) * _FIXED_GAIN
        l_wet = run(sample, *left_bank)
        r_wet = run(sample, *right_bank)
        out_left.append(l_wet * wet1 + r_wet * wet2 + l_in * dry)
        out_right.append(r_wet * wet1 + l_wet * wet2 + r_in * dry)
    return out_left, out_right


def _echo(samples: Sequence[float], delay: int, decay: float) -> list[float]:
    """Feedback delay: each repeat comes ``delay`` samples later, scaled by ``decay``."""
    line = list(samples)
    out = list(samples)
    for n in range(delay, len(line)):
        line[n] += decay * line[n - delay]
        out[n] += line[n - delay]
    return out


def _stereo_gains(position: Optional[Position]) -> tuple[float, float]:
    """Left and right gains for a source at ``position`` relative to the listener."""
    if position is None:
        return 1.0, 1.0
    x, y, z = position
    distance = math.sqrt(x * x + y * y + z * z)
    attenuation = 1.0 / max(distance, 1.0)
    pan = x / distance if distance > 0 else 0.0
    return attenuation * min(1.0, 1.0 - pan), attenuation * min(1.0, 1.0 + pan)


@dataclass(eq=False)
class _PygameHandle:
    sound: Any
    channel: Any = None
    gains: tuple[float, float] = (1.0, 1.0)


class PygameBackend(SoundBackend):
    """Plays sounds through the pygame mixer, with stereo panning for 3D positions."""

    def __init__(self, channels: int = 64, frequency: int = 44100) -> None:
        self._channels = channels
        self._frequency = frequency
        self._pygame: Any = None
        self._effects: Optional[AudioEffectsConfig] = None
        self._cache: dict[str, Any] = {}

    def _require_open(self) -> Any:
        if self._pygame is None:
            raise AudioError("mixer is not open")
        return self._pygame

    def open(self) -> None:
        os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
        import pygame

        try:
            pygame.mixer.init(frequency=self._frequency)
        except pygame.error as exc:
            raise AudioError(f"could not open audio device: {exc}") from exc
        pygame.mixer.set_num_channels(self._channels)
        self._pygame = pygame

    def load(self, filepath: str) -> _PygameHandle:
        pygame = self._require_open()
        sound = self._cache.get(filepath)
        if sound is None:
            try:
                sound = pygame.mixer.Sound(filepath)
            except (pygame.error, OSError) as exc:
                raise AudioError(f"could not load {filepath}: {exc}") from exc
            if self._effects is not None:
                sound = self._apply_effects(sound)
            self._cache[filepath] = sound
        return _PygameHandle(sound)

    def play(self, handle: _PygameHandle, volume: float, position: Optional[Position]) -> None:
        handle.gains = _stereo_gains(position)
        handle.channel = handle.sound.play()
        self.set_volume(handle, volume)

    def is_playing(self, handle: _PygameHandle) -> bool:
        channel = handle.channel
        return bool(
            channel is not None
            and channel.get_busy()
            and channel.get_sound() is handle.sound
        )

    def set_volume(self, handle: _PygameHandle, volume: float) -> None:
        if handle.channel is None:
            return
        left, right = (max(0.0, min(1.0, volume * gain)) for gain in handle.gains)
        handle.channel.set_volume(left, right)

    def stop(self, handle: _PygameHandle) -> None:
        if self.is_playing(handle):
            handle.channel.stop()

    def release(self, handle: _PygameHandle) -> None:
        self.stop(handle)
        handle.channel = None

    def configure_effects(self, effects: Optional[AudioEffectsConfig]) -> None:
        self._cache.clear()
        self._effects = None
        if effects is None:
            return
        pygame = self._require_open()
        frequency, fmt, _ = pygame.mixer.get_init()
        if fmt not in _FORMATS:
            raise AudioError(f"unsupported mixer sample format: {fmt}")
        if effects.enable_echo and int(effects.echo_delay * frequency) < 1:
            raise AudioError("echo delay must be at least one sample")
        self._effects = effects
        if effects.enable_echo:
            log.info("Echo effect initialized successfully")
        if effects.enable_reverb:
            log.info("Reverb effect initialized successfully")

    def close(self) -> None:
        self._cache.clear()
        if self._pygame is not None:
            self._pygame.mixer.quit()
            self._pygame = None

    def _apply_effects(self, sound: Any) -> Any:
        effects = self._effects
        assert effects is not None
        pygame = self._pygame
        frequency, fmt, count = pygame.mixer.get_init()
        typecode, offset, full_scale = _FORMATS[fmt]
        raw = array(typecode)
        raw.frombytes(sound.get_raw())
        channels = [[(v - offset) / full_scale for v in raw[c::count]] for c in range(count)]

        if effects.enable_reverb:
            tail = [0.0] * int(max(0.0, effects.reverb_decay_time) * frequency)
            channels = [samples + tail for samples in channels]
            right = channels[1] if count > 1 else channels[0]
            left_out, right_out = _reverb(channels[0], right, frequency, effects)
            channels = [left_out, right_out, *channels[2:]] if count > 1 else [left_out]

        if effects.enable_echo:
            delay = int(effects.echo_delay * frequency)
            tail = [0.0] * (delay * max(0, effects.echo_taps))
            channels = [_echo(samples + tail, delay, effects.echo_decay) for samples in channels]

        def encode(values: Iterator[float]) -> Iterator[Any]:
            for value in values:
                scaled = max(-1.0, min(1.0, value)) * full_scale + offset
                yield scaled if typecode == "f" else int(round(scaled))

        interleaved = (value for frame in zip(*channels) for value in frame)
        out = array(typecode, encode(interleaved))
        return pygame.mixer.Sound(buffer=out.tobytes())


@dataclass(eq=False)
class SoundInstance:
    """A sound the player is tracking until it finishes."""

    handle: Any
    id: int
    fading_out: bool = False
    original_volume: float = 1.0
    fade_start_ms: float = 0.0
    fade_duration_ms: float = 0.0
    position: Position = (0.0, 0.0, 0.0)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class AudioPlayer:
    """Plays overlapping sounds with a concurrency limit, master volume and fades."""

    def __init__(
        self,
        backend: Optional[SoundBackend] = None,
        *,
        clock: Callable[[], float] = _monotonic_ms,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._backend = backend if backend is not None else PygameBackend()
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        self._lock = threading.Lock()
        self._sounds: list[SoundInstance] = []
        self._max_concurrent = 32
        self._next_id = 1
        self._master_volume = 1.0
        self._effects: Optional[AudioEffectsConfig] = None
        self._open = False

    def __enter__(self) -> AudioPlayer:
        self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    @property
    def max_concurrent_sounds(self) -> int:
        return self._max_concurrent

    @max_concurrent_sounds.setter
    def max_concurrent_sounds(self, value: int) -> None:
        with self._lock:
            self._max_concurrent = value

    @property
    def master_volume(self) -> float:
        return self._master_volume

    @master_volume.setter
    def master_volume(self, value: float) -> None:
        self._master_volume = max(0.0, min(1.0, value))

    @property
    def active_sounds(self) -> list[SoundInstance]:
        """A snapshot of the sounds currently tracked."""
        with self._lock:
            return list(self._sounds)

    def initialize(self) -> None:
        """Open the output device; raises AudioError when it cannot be opened."""
        self._backend.open()
        self._open = True

    def play_sound(self, filepath: str, volume: float = 1.0, async_: bool = True) -> Optional[int]:
        """Play a file at ``volume`` times the master volume.

        Returns the id of a tracked asynchronous sound, 0 after a synchronous
        sound has finished, or None when the sound was not played.
        """
        if not self._open:
            return None
        final_volume = volume * self._master_volume
        with self._lock:
            self._cleanup_finished()
            self._update_fades()
            if len(self._sounds) >= self._max_concurrent:
                return None
            try:
                handle = self._backend.load(filepath)
            except AudioError as exc:
                log.error("%s", exc)
                return None
            if async_:
                instance = SoundInstance(handle, self._next_id, original_volume=final_volume)
                self._next_id += 1
                self._backend.play(handle, final_volume, self._spatial_position(instance))
                self._sounds.append(instance)
                return instance.id

        self._backend.play(handle, final_volume, None)
        try:
            while self._backend.is_playing(handle):
                time.sleep(0.001)
        finally:
            self._backend.release(handle)
        return 0

    def fade_out_sound(self, sound_id: int, duration_ms: float) -> None:
        """Start fading a tracked sound to silence over ``duration_ms``."""
        if not self._open or sound_id <= 0:
            return
        with self._lock:
            for instance in self._sounds:
                if instance.id == sound_id and not instance.fading_out:
                    instance.fading_out = True
                    instance.fade_start_ms = self._clock()
                    instance.fade_duration_ms = duration_ms
                    break

    def stop_sound(self, sound_id: int) -> None:
        """Stop a tracked sound immediately."""
        if not self._open or sound_id <= 0:
            return
        with self._lock:
            for instance in self._sounds:
                if instance.id == sound_id:
                    self._backend.stop(instance.handle)
                    break

    def update(self) -> None:
        """Drop finished sounds and advance fades; call regularly."""
        if not self._open:
            return
        with self._lock:
            self._cleanup_finished()
            self._update_fades()

    def set_audio_effects(self, effects: AudioEffectsConfig) -> None:
        """Apply an effects configuration, rebuilding the echo and reverb chain."""
        self._effects = effects
        if not (effects.enable_echo or effects.enable_reverb):
            self._backend.configure_effects(None)
            log.info("Audio effects disabled")
            return
        try:
            self._backend.configure_effects(effects)
        except AudioError as exc:
            log.error("Failed to initialize audio effects: %s", exc)
            self._backend.configure_effects(None)
        else:
            log.info("Audio effects applied successfully")

    def cleanup(self) -> None:
        """Release every sound and close the device."""
        if not self._open:
            return
        with self._lock:
            for instance in self._sounds:
                self._backend.release(instance.handle)
            self._sounds.clear()
            self._backend.configure_effects(None)
            self._backend.close()
            self._open = False

    def _spatial_position(self, instance: SoundInstance) -> Optional[Position]:
        effects = self._effects
        if effects is None or not effects.enable_spatializer:
            return None
        if effects.random_spatial_position:
            spread = effects.spatial_spread
            x = self._rng.uniform(-spread, spread)
            y = self._rng.uniform(-spread, spread) * 0.5
            z = effects.listener_distance + self._rng.uniform(-spread, spread) * 0.5
            instance.position = (x, y, z)
        return instance.position

    def _cleanup_finished(self) -> None:
        still_playing = []
        for instance in self._sounds:
            if self._backend.is_playing(instance.handle):
                still_playing.append(instance)
            else:
                self._backend.release(instance.handle)
        self._sounds = still_playing

    def _update_fades(self) -> None:
        now = self._clock()
        for instance in self._sounds:
            if not instance.fading_out:
                continue
            elapsed = now - instance.fade_start_ms
            if elapsed >= instance.fade_duration_ms:
                self._backend.stop(instance.handle)
                instance.fading_out = False
            else:
                progress = elapsed / instance.fade_duration_ms
                self._backend.set_volume(instance.handle, instance.original_volume * (1.0 - progress))