import threading

import pytest

from clicksounds.watcher import FileWatcher


def _recorder():
    received = []
    fired = threading.Event()

    def callback(path):
        received.append(path)
        fired.set()

    return received, fired, callback


def test_modification_calls_back_with_watched_path(tmp_path):
    target = tmp_path / "config.json"
    target.write_text("{}")
    received, fired, callback = _recorder()
    watcher = FileWatcher()
    try:
        watcher.watch_file(str(target), callback)
        target.write_text('{"mouse": {}}')
        assert fired.wait(5)
    finally:
        watcher.stop_watching()
    assert received[0] == str(target)


def test_is_watching_follows_start_and_stop(tmp_path):
    target = tmp_path / "config.json"
    target.write_text("{}")
    watcher = FileWatcher()
    watcher.watch_file(target, lambda path: None)
    assert watcher.is_watching is True
    assert watcher.filepath == str(target)
    watcher.stop_watching()
    assert watcher.is_watching is False
    assert watcher.filepath is None


def test_missing_directory_raises(tmp_path):
    watcher = FileWatcher()
    with pytest.raises(FileNotFoundError):
        watcher.watch_file(tmp_path / "absent" / "config.json", lambda path: None)
    assert watcher.is_watching is False


def test_other_files_in_directory_are_ignored(tmp_path):
    target = tmp_path / "config.json"
    other = tmp_path / "other.json"
    target.write_text("{}")
    other.write_text("{}")
    received, fired, callback = _recorder()
    with FileWatcher() as watcher:
        watcher.watch_file(target, callback)
        other.write_text("[1]")
        target.write_text("[2]")
        assert fired.wait(5)
    assert set(received) == {str(target)}


def test_new_watch_replaces_previous(tmp_path):
    first = tmp_path / "first.json"
    second = tmp_path / "second.json"
    first.write_text("{}")
    second.write_text("{}")
    first_received, _, first_callback = _recorder()
    second_received, second_fired, second_callback = _recorder()
    with FileWatcher() as watcher:
        watcher.watch_file(first, first_callback)
        watcher.watch_file(second, second_callback)
        first.write_text("[1]")
        second.write_text("[2]")
        assert second_fired.wait(5)
        assert watcher.filepath == str(second)
    assert first_received == []
    assert set(second_received) == {str(second)}


def test_context_manager_stops_watching(tmp_path):
    target = tmp_path / "config.json"
    target.write_text("{}")
    with FileWatcher() as watcher:
        watcher.watch_file(target, lambda path: None)
        assert watcher.is_watching is True
    assert watcher.is_watching is False