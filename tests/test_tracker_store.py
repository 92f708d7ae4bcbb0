from psn_sdk_python import Tracker, TrackerStore


def test_merge_creates_trackers():
    store = TrackerStore()
    snapshot = store.merge([(0, {"position": (1.0, 2.0, 3.0)}), (1, {"name": "One"})])
    assert len(store) == 2
    assert 0 in store
    assert snapshot[0] == Tracker(0, position=(1.0, 2.0, 3.0))
    assert store.get(1).name == "One"
    assert store.get(5) is None


def test_absent_fields_keep_previous_value():
    store = TrackerStore()
    store.merge([(0, {"position": (1.0, 1.0, 1.0), "speed": (2.0, 2.0, 2.0)})])
    store.merge([(0, {"position": (3.0, 3.0, 3.0)})])
    store.merge([(0, {"name": "Zero"})])
    tracker = store.get(0)
    assert tracker.position == (3.0, 3.0, 3.0)
    assert tracker.speed == (2.0, 2.0, 2.0)
    assert tracker.name == "Zero"


def test_snapshots_do_not_change():
    store = TrackerStore()
    first = store.merge([(0, {"name": "A"})])
    store.merge([(0, {"name": "B"}), (1, {"name": "C"})])
    assert first[0].name == "A"
    assert 1 not in first
    assert store.snapshot()[0].name == "B"


def test_remove_and_clear():
    store = TrackerStore()
    store.merge([(0, {}), (1, {})])
    assert store.remove(0) is True
    assert store.remove(0) is False
    assert list(store.snapshot()) == [1]
    store.clear()
    assert len(store) == 0
