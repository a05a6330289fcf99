"""The application: turns mouse and keyboard events into sounds."""

from __future__ import annotations

import argparse
import logging
import random
import signal
import threading
import time
from typing import Any, Callable, Optional

from .audio import AudioError, AudioPlayer
from .config import Config, ConfigError
from .input_monitor import InputMonitor, KeyEvent, MouseButton, MouseEvent
from .watcher import FileWatcher

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.json"

_BUTTON_SOUNDS: dict[MouseButton, tuple[str, str]] = {
    MouseButton.LEFT: ("left_down", "left_up"),
    MouseButton.RIGHT: ("right_down", "right_up"),
    MouseButton.MIDDLE: ("middle_down", "middle_up"),
    MouseButton.X1: ("x1_down", "x1_up"),
    MouseButton.X2: ("x2_down", "x2_up"),
}
_SIDE_BUTTONS = frozenset({MouseButton.X1, MouseButton.X2})
_BUTTON_EVENTS = frozenset({MouseEvent.BUTTON_DOWN, MouseEvent.BUTTON_UP})


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class ClickSoundsApp:
    """Connects the input monitor, the audio player and the config watcher."""

    def __init__(
        self,
        audio_player: Optional[Any] = None,
        input_monitor: Optional[InputMonitor] = None,
        file_watcher: Optional[Any] = None,
        *,
        clock: Callable[[], float] = _monotonic_ms,
        rng: Optional[Any] = None,
    ) -> None:
        self.config = Config()
        self.audio_player = audio_player if audio_player is not None else AudioPlayer()
        self.input_monitor = input_monitor if input_monitor is not None else InputMonitor()
        self.file_watcher = file_watcher if file_watcher is not None else FileWatcher()
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        self._lock = threading.RLock()
        self._key_sounds: dict[int, int] = {}
        self._pressed_keys: set[int] = set()
        self._active_mouse_sounds: dict[MouseButton, int] = {}
        self._active_key_sounds: dict[int, int] = {}
        self._last_key: Optional[int] = None
        self._last_scroll_ms: Optional[float] = None
        self._last_press_ms: dict[int, float] = {}

    def initialize(self, config_path: str = DEFAULT_CONFIG_PATH) -> None:
        """Load the config and start the audio, input and watcher parts.

        Raises AudioError when the audio device cannot be opened.
        """
        self.config = Config.load_from_file(config_path)
        self.audio_player.initialize()
        self._apply_audio_settings()
        self.input_monitor.initialize()
        try:
            self.file_watcher.watch_file(self.config.filepath, self.on_config_changed)
        except OSError as exc:
            log.warning(
                "Failed to start config file watcher (%s). Hot reloading disabled.", exc
            )
        self.setup_callbacks()

    def _apply_audio_settings(self) -> None:
        audio = self.config.audio
        self.audio_player.max_concurrent_sounds = audio.max_concurrent_sounds
        self.audio_player.master_volume = audio.master_volume
        self.audio_player.set_audio_effects(audio.effects)

    def setup_callbacks(self) -> None:
        """Register input callbacks according to which devices are enabled."""
        monitor = self.input_monitor
        monitor.clear_callbacks()
        if self.config.mouse.enabled:
            monitor.mouse_callback = self.handle_mouse_event
        if self.config.keyboard.enabled:
            monitor.keyboard_callback = self.handle_keyboard_event
        monitor.update_callback = self.audio_player.update

    def on_config_changed(self, filepath: str) -> None:
        """Reload the config file and apply it to the running application."""
        log.info("Config file changed, reloading...")
        with self._lock:
            try:
                self.config.reload()
            except ConfigError as exc:
                log.error("Failed to reload config file: %s", exc)
                return
            self._apply_audio_settings()
            self._key_sounds.clear()
            self.setup_callbacks()
        log.info("Config hot reload completed successfully!")

    def handle_mouse_event(self, button: MouseButton, event: MouseEvent) -> None:
        """Play, or fade out, the sound for a mouse event."""
        with self._lock:
            mouse = self.config.mouse
            if event in _BUTTON_EVENTS:
                if mouse.enable_fade_out and event is MouseEvent.BUTTON_UP:
                    active = self._active_mouse_sounds.pop(button, None)
                    if active is not None:
                        self.audio_player.fade_out_sound(active, mouse.fade_out_duration_ms)
                        return
                if button in _SIDE_BUTTONS and not mouse.enable_side_buttons:
                    return
                down, up = _BUTTON_SOUNDS[button]
                sound_file = getattr(mouse, down if event is MouseEvent.BUTTON_DOWN else up)
            else:
                if not mouse.enable_scroll_wheel:
                    return
                now = self._clock()
                last = self._last_scroll_ms
                if last is not None and now - last < mouse.scroll_wheel_debounce_ms:
                    return
                self._last_scroll_ms = now
                sound_file = mouse.wheel_up if event is MouseEvent.WHEEL_UP else mouse.wheel_down

            if not sound_file:
                return
            sound_id = self.audio_player.play_sound(
                sound_file, mouse.volume, self.config.audio.async_playback
            )
            if mouse.enable_fade_out and event is MouseEvent.BUTTON_DOWN and sound_id:
                self._active_mouse_sounds[button] = sound_id

    def handle_keyboard_event(self, key_code: int, event: KeyEvent) -> None:
        """Play the key's sound on press and fade it on release when configured."""
        with self._lock:
            keyboard = self.config.keyboard
            if key_code in keyboard.excluded_keys:
                return
            if event is KeyEvent.DOWN:
                self._key_down(key_code)
            else:
                self._key_up(key_code)

    def _key_down(self, key_code: int) -> None:
        keyboard = self.config.keyboard
        now = self._clock()
        last = self._last_press_ms.get(key_code)
        if last is not None and now - last < keyboard.key_repeat_debounce_ms:
            return
        no_repeat = keyboard.disable_repeat or key_code in keyboard.no_repeat_keys
        if no_repeat and key_code in self._pressed_keys:
            return
        self._last_press_ms[key_code] = now
        self._pressed_keys.add(key_code)

        sounds = keyboard.sounds
        if not sounds:
            return
        if keyboard.totally_random_keypresses and self._last_key != key_code:
            self._key_sounds[key_code] = self._rng.randrange(len(sounds))
            self._last_key = key_code
        index = self._key_sounds.get(key_code)
        if index is None or index >= len(sounds):
            index = self._rng.randrange(len(sounds))
            self._key_sounds[key_code] = index

        sound_id = self.audio_player.play_sound(
            sounds[index], keyboard.volume, self.config.audio.async_playback
        )
        if keyboard.enable_fade_out and sound_id:
            self._active_key_sounds[key_code] = sound_id

    def _key_up(self, key_code: int) -> None:
        keyboard = self.config.keyboard
        self._pressed_keys.discard(key_code)
        self._last_press_ms.pop(key_code, None)
        if keyboard.enable_fade_out:
            active = self._active_key_sounds.pop(key_code, None)
            if active is not None:
                self.audio_player.fade_out_sound(active, keyboard.fade_out_duration_ms)

    def run(self) -> None:
        """Block, processing input and audio updates, until :meth:`stop`."""
        self.input_monitor.start_monitoring()

    def stop(self) -> None:
        """Stop watching the config, end monitoring and release audio."""
        self.file_watcher.stop_watching()
        self.input_monitor.stop_monitoring()
        self.audio_player.cleanup()


def main(argv: Optional[list[str]] = None) -> int:
    """Run the application until interrupted."""
    parser = argparse.ArgumentParser(
        prog="clicksounds",
        description="ClickSounds - Keyboard and mouse sound effects",
    )
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    print("ClickSounds started. Press Ctrl+C to exit.")

    app = ClickSoundsApp()
    try:
        app.initialize()
    except AudioError as exc:
        log.error("Failed to initialize audio player: %s", exc)
        return 1

    previous = signal.signal(signal.SIGINT, lambda signum, frame: app.stop())
    try:
        app.run()
    finally:
        signal.signal(signal.SIGINT, previous)
        app.stop()
    return 0