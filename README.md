# clicksounds

clicksounds turns keyboard and mouse events into sound effects. It reads its
settings from a JSON file, plays sounds through the pygame mixer, and reloads
the settings while running whenever that file is modified.

## Installation

```
pip install clicksounds
```

## What it does not do

clicksounds does not capture keyboard or mouse input from the operating
system by itself. `clicksounds.input_monitor.InputMonitor` only routes events
that are handed to it through `emit_mouse` and `emit_key`, and runs a periodic
update loop. To hear sounds for real input, a program has to feed events from
an input source of its choice into the monitor (see "Library use" below).

## Command

```
clicksounds
```

The command loads `config.json` from the current directory, opens the audio
device, starts watching the config file for changes and runs the update loop
until you press Ctrl+C. With no input source attached it makes no sound. If
the audio device cannot be opened it exits with status 1.

```
clicksounds --help
```

shows the usage text.

## Configuration

The file has three sections, `mouse`, `keyboard` and `audio`. Every key is
optional; a missing key takes the default shown below. If the file is missing,
is not valid JSON or holds a value of the wrong type, `Config.load_from_file`
logs the problem and uses the defaults for everything.

```json
{
  "mouse": {
    "enabled": true,
    "sounds_dir": "sounds",
    "enable_scroll_wheel": false,
    "enable_side_buttons": false,
    "enable_fade_out": false,
    "fade_out_duration_ms": 50,
    "scroll_wheel_debounce_ms": 50,
    "volume": 1.0,
    "sounds": {
      "left_down": "left_down.wav",
      "left_up": "left_up.wav",
      "right_down": "right_down.wav",
      "right_up": "right_up.wav",
      "middle_down": "middle_down.wav",
      "middle_up": "middle_up.wav",
      "x1_down": "x1_down.wav",
      "x1_up": "x1_up.wav",
      "x2_down": "x2_down.wav",
      "x2_up": "x2_up.wav",
      "wheel_up": "wheel_up.wav",
      "wheel_down": "wheel_down.wav"
    }
  },
  "keyboard": {
    "enabled": true,
    "sounds_dir": "sounds",
    "random_sounds": true,
    "totally_random_keypresses": false,
    "disable_repeat": false,
    "enable_fade_out": false,
    "fade_out_duration_ms": 50,
    "key_repeat_debounce_ms": 50,
    "volume": 1.0,
    "no_repeat_keys": ["space", "enter"],
    "excluded_keys": ["f12"]
  },
  "audio": {
    "async_playback": true,
    "max_concurrent_sounds": 32,
    "master_volume": 1.0,
    "effects": {
      "enable_reverb": false,
      "reverb_wetness": 0.3,
      "reverb_room_size": 0.5,
      "reverb_decay_time": 1.0,
      "reverb_damping": 0.5,
      "reverb_width": 1.0,
      "enable_echo": false,
      "echo_delay": 0.3,
      "echo_decay": 0.4,
      "echo_taps": 3,
      "enable_spatializer": false,
      "random_spatial_position": true,
      "spatial_spread": 2.0,
      "listener_distance": 1.0
    }
  }
}
```

### Mouse sounds

Sound names under `mouse.sounds` are joined to `sounds_dir` with a `/`. The
side buttons (X1 and X2) only make sounds when `enable_side_buttons` is on.
The scroll wheel only makes sounds when `enable_scroll_wheel` is on, and then
at most once every `scroll_wheel_debounce_ms` milliseconds.

### Keyboard sounds

When `random_sounds` is on, every `.wav`, `.mp3`, `.ogg`, `.flac` and `.m4a`
file directly inside `sounds_dir` is available. Each key is given one of them
at random and keeps it. With `totally_random_keypresses` also on, a key is
given a new random sound whenever it is pressed after a different key.

A press of the same key within `key_repeat_debounce_ms` of the last one is
ignored. Keys in `no_repeat_keys` (or every key, when `disable_repeat` is on)
make no further sound while held down. Keys in `excluded_keys` never make a
sound. Both lists take key names such as `"a"`, `"space"`, `"lshift"`, `"f5"`
or `"numpad0"`, matched without regard to case, or numeric key codes; unknown
names are skipped. Names map to Windows virtual-key codes on Windows and to
Linux input event codes elsewhere.

### Fade-out

When `enable_fade_out` is on, releasing a button or key fades out the sound
its press started, over `fade_out_duration_ms` milliseconds. For the mouse the
fade takes the place of the release sound.

### Audio

`master_volume` is clamped to 0.0–1.0 and multiplies each sound's volume.
At most `max_concurrent_sounds` sounds are tracked at once; further sounds
are skipped. With `async_playback` off, each sound is played to the end before
the call returns.

Echo and reverb are applied to each sound when it is loaded. The spatializer
places each sound at a random position (when `random_spatial_position` is on)
and pans it between the left and right channels, quieter with distance.

## Library use

```python
from clicksounds.config import Config
from clicksounds.keymap import get_key_code, get_key_name

config = Config.load_from_file("config.json")
print(config.keyboard.volume)
print(get_key_code("Space", "linux"))  # 57
print(get_key_name(57, "linux"))       # space
```

`Config.from_dict` builds a configuration from already parsed JSON and raises
`ConfigError` on values of the wrong type; `Config.reload` re-reads the file
and raises `ConfigError` if it cannot.

Feeding events into the application:

```python
import threading

from clicksounds.app import ClickSoundsApp
from clicksounds.input_monitor import KeyEvent, MouseButton, MouseEvent

app = ClickSoundsApp()
app.initialize("config.json")
threading.Thread(target=app.run, daemon=True).start()

app.input_monitor.emit_key(get_key_code("a"), KeyEvent.DOWN)
app.input_monitor.emit_key(get_key_code("a"), KeyEvent.UP)
app.input_monitor.emit_mouse(MouseButton.LEFT, MouseEvent.BUTTON_DOWN)

app.stop()
```

`clicksounds.audio.AudioPlayer` can also be used on its own. It plays through
`PygameBackend` by default and accepts any `SoundBackend` implementation.
`clicksounds.watcher.FileWatcher` calls a function whenever one file is
modified.