import json

from polygon_annotation.utils.preferences import PreferenceStore


def test_in_memory():
    store = PreferenceStore()
    assert store.get("color") is None
    assert store.get("color", "#ff0000") == "#ff0000"
    store.set("color", "#00ff00")
    assert "color" in store
    assert store.get("color") == "#00ff00"


def test_persisted(tmp_path):
    path = tmp_path / "nested" / "prefs.json"
    PreferenceStore(path).set("color", "#0000ff")
    assert json.loads(path.read_text()) == {"color": "#0000ff"}
    assert PreferenceStore(path).get("color") == "#0000ff"


def test_corrupt_file_is_ignored(tmp_path, caplog):
    path = tmp_path / "prefs.json"
    path.write_text("{not json")
    store = PreferenceStore(path)
    assert store.get("color") is None
    assert "Could not read preferences" in caplog.text

    store.set("color", "#ffffff")
    assert PreferenceStore(path).get("color") == "#ffffff"


def test_non_object_file_is_ignored(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("[1, 2]")
    assert "color" not in PreferenceStore(path)
