"""Configuration loaded from a JSON file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .keymap import get_key_code

log = logging.getLogger(__name__)

_SOUND_EXTENSIONS = frozenset({".wav", ".mp3", ".ogg", ".flac", ".m4a"})

_MOUSE_SOUNDS = (
    ("left_down", "left_down"), ("left_up", "left_up"),
    ("right_down", "right_down"), ("right_up", "right_up"),
    ("middle_down", "middle_down"), ("middle_up", "middle_up"),
    ("x1_down", "x1_down"), ("x1_up", "x1_up"),
    ("x2_down", "x2_down"), ("x2_up", "x2_up"),
    ("wheel_up", "wheel_up"), ("wheel_down", "wheel_down"),
)


class ConfigError(Exception):
    """Raised when a configuration cannot be read or has invalid values."""


@dataclass
class MouseConfig:
    enabled: bool = True
    sounds_dir: str = ""
    left_down: str = ""
    left_up: str = ""
    right_down: str = ""
    right_up: str = ""
    middle_down: str = ""
    middle_up: str = ""
    x1_down: str = ""
    x1_up: str = ""
    x2_down: str = ""
    x2_up: str = ""
    wheel_up: str = ""
    wheel_down: str = ""
    enable_scroll_wheel: bool = False
    enable_side_buttons: bool = False
    enable_fade_out: bool = False
    fade_out_duration_ms: int = 50
    scroll_wheel_debounce_ms: int = 50
    volume: float = 1.0


@dataclass
class KeyboardConfig:
    enabled: bool = True
    sounds_dir: str = ""
    random_sounds: bool = True
    totally_random_keypresses: bool = False
    disable_repeat: bool = False
    enable_fade_out: bool = False
    fade_out_duration_ms: int = 50
    key_repeat_debounce_ms: int = 50
    volume: float = 1.0
    no_repeat_keys: set[int] = field(default_factory=set)
    sounds: list[str] = field(default_factory=list)
    excluded_keys: set[int] = field(default_factory=set)


@dataclass
class AudioEffectsConfig:
    enable_reverb: bool = False
    reverb_wetness: float = 0.3
    reverb_room_size: float = 0.5
    reverb_decay_time: float = 1.0
    reverb_damping: float = 0.5
    reverb_width: float = 1.0
    enable_echo: bool = False
    echo_delay: float = 0.3
    echo_decay: float = 0.4
    echo_taps: int = 3
    enable_spatializer: bool = False
    random_spatial_position: bool = True
    spatial_spread: float = 2.0
    listener_distance: float = 1.0


@dataclass
class AudioConfig:
    async_playback: bool = True
    max_concurrent_sounds: int = 32
    master_volume: float = 1.0
    effects: AudioEffectsConfig = field(default_factory=AudioEffectsConfig)


def load_sounds_from_directory(directory: str | os.PathLike[str]) -> list[str]:
    """Return the paths of the audio files directly inside ``directory``, sorted."""
    path = Path(directory)
    if not path.is_dir():
        log.error("Directory not found: %s", os.fspath(directory))
        return []
    return sorted(
        str(entry)
        for entry in path.iterdir()
        if entry.is_file() and entry.suffix in _SOUND_EXTENSIONS
    )


def _section(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    if key not in data:
        return None
    value = data[key]
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be an object")
    return value


def _bool(section: dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a boolean")
    return value


def _number(section: dict[str, Any], key: str, default: Any, kind: type) -> Any:
    value = section.get(key, default)
    if not isinstance(value, (bool, int, float)):
        raise ConfigError(f"'{key}' must be a number")
    try:
        return kind(value)
    except (OverflowError, ValueError) as exc:
        raise ConfigError(f"'{key}' is out of range") from exc


def _int(section: dict[str, Any], key: str, default: int) -> int:
    return _number(section, key, default, int)


def _float(section: dict[str, Any], key: str, default: float) -> float:
    return _number(section, key, default, float)


def _str(section: dict[str, Any], key: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def _key_set(section: dict[str, Any], key: str) -> set[int]:
    if key not in section:
        return set()
    items = section[key]
    if not isinstance(items, list):
        raise ConfigError(f"'{key}' must be an array")
    codes: set[int] = set()
    for item in items:
        if isinstance(item, str):
            code = get_key_code(item)
            if code is not None:
                codes.add(code)
        elif isinstance(item, (int, float)) and not isinstance(item, bool):
            codes.add(int(item))
    return codes


def _parse_mouse(section: dict[str, Any]) -> MouseConfig:
    sounds_dir = _str(section, "sounds_dir", "sounds")
    mouse = MouseConfig(
        enabled=_bool(section, "enabled", True),
        sounds_dir=sounds_dir,
        enable_scroll_wheel=_bool(section, "enable_scroll_wheel", False),
        enable_side_buttons=_bool(section, "enable_side_buttons", False),
        enable_fade_out=_bool(section, "enable_fade_out", False),
        fade_out_duration_ms=_int(section, "fade_out_duration_ms", 50),
        scroll_wheel_debounce_ms=_int(section, "scroll_wheel_debounce_ms", 50),
        volume=_float(section, "volume", 1.0),
    )
    sounds = _section(section, "sounds")
    if sounds is not None:
        for attribute, key in _MOUSE_SOUNDS:
            setattr(mouse, attribute, f"{sounds_dir}/{_str(sounds, key, '')}")
    return mouse


def _parse_keyboard(section: dict[str, Any]) -> KeyboardConfig:
    keyboard = KeyboardConfig(
        enabled=_bool(section, "enabled", True),
        sounds_dir=_str(section, "sounds_dir", "sounds"),
        random_sounds=_bool(section, "random_sounds", True),
        totally_random_keypresses=_bool(section, "totally_random_keypresses", False),
        disable_repeat=_bool(section, "disable_repeat", False),
        enable_fade_out=_bool(section, "enable_fade_out", False),
        fade_out_duration_ms=_int(section, "fade_out_duration_ms", 50),
        key_repeat_debounce_ms=_int(section, "key_repeat_debounce_ms", 50),
        volume=_float(section, "volume", 1.0),
    )
    if keyboard.random_sounds:
        keyboard.sounds = load_sounds_from_directory(keyboard.sounds_dir)
    keyboard.no_repeat_keys = _key_set(section, "no_repeat_keys")
    keyboard.excluded_keys = _key_set(section, "excluded_keys")
    return keyboard


def _parse_effects(section: dict[str, Any]) -> AudioEffectsConfig:
    return AudioEffectsConfig(
        enable_reverb=_bool(section, "enable_reverb", False),
        reverb_wetness=_float(section, "reverb_wetness", 0.3),
        reverb_room_size=_float(section, "reverb_room_size", 0.5),
        reverb_decay_time=_float(section, "reverb_decay_time", 1.0),
        reverb_damping=_float(section, "reverb_damping", 0.5),
        reverb_width=_float(section, "reverb_width", 1.0),
        enable_echo=_bool(section, "enable_echo", False),
        echo_delay=_float(section, "echo_delay", 0.3),
        echo_decay=_float(section, "echo_decay", 0.4),
        echo_taps=_int(section, "echo_taps", 3),
        enable_spatializer=_bool(section, "enable_spatializer", False),
        random_spatial_position=_bool(section, "random_spatial_position", True),
        spatial_spread=_float(section, "spatial_spread", 2.0),
        listener_distance=_float(section, "listener_distance", 1.0),
    )


def _parse_audio(section: dict[str, Any]) -> AudioConfig:
    audio = AudioConfig(
        async_playback=_bool(section, "async_playback", True),
        max_concurrent_sounds=_int(section, "max_concurrent_sounds", 32),
        master_volume=_float(section, "master_volume", 1.0),
    )
    effects = _section(section, "effects")
    if effects is not None:
        audio.effects = _parse_effects(effects)
    return audio


def _read_json(filepath: str) -> Any:
    with open(filepath, encoding="utf-8") as handle:
        return json.load(handle)


@dataclass
class Config:
    mouse: MouseConfig = field(default_factory=MouseConfig)
    keyboard: KeyboardConfig = field(default_factory=KeyboardConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    filepath: str = ""

    @classmethod
    def from_dict(cls, data: Any, filepath: str | os.PathLike[str] = "") -> Config:
        """Build a configuration from parsed JSON data."""
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a JSON object")
        config = cls(filepath=os.fspath(filepath))
        if (mouse := _section(data, "mouse")) is not None:
            config.mouse = _parse_mouse(mouse)
        if (keyboard := _section(data, "keyboard")) is not None:
            config.keyboard = _parse_keyboard(keyboard)
        if (audio := _section(data, "audio")) is not None:
            config.audio = _parse_audio(audio)
        return config

    @classmethod
    def load_from_file(cls, filepath: str | os.PathLike[str]) -> Config:
        """Load a configuration, falling back to defaults when the file is unusable."""
        path = os.fspath(filepath)
        try:
            data = _read_json(path)
        except OSError:
            log.error("Could not open config file: %s", path)
            return cls(filepath=path)
        except json.JSONDecodeError as exc:
            log.error("Error loading config: %s", exc)
            return cls(filepath=path)
        try:
            return cls.from_dict(data, path)
        except ConfigError as exc:
            log.error("Error loading config: %s", exc)
            return cls(filepath=path)

    def reload(self) -> None:
        """Re-read the file this configuration came from, replacing all sections."""
        if not self.filepath:
            raise ConfigError("cannot reload config: no file path stored")
        try:
            data = _read_json(self.filepath)
        except OSError as exc:
            raise ConfigError(f"could not open config file for reload: {self.filepath}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"error reloading config: {exc}") from exc
        fresh = type(self).from_dict(data, self.filepath)
        self.mouse = fresh.mouse
        self.keyboard = fresh.keyboard
        self.audio = fresh.audio
        log.info("Config reloaded successfully from: %s", self.filepath)