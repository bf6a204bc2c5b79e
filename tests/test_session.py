from datetime import datetime, timedelta, timezone

from teamctx.session import AUTO_SAVE_TOOL_CALL_INTERVAL, SessionTracker

START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_tracker(calls=0, name="query"):
    tracker = SessionTracker(started_at=START)
    for _ in range(calls):
        tracker.track_tool_call(name, {})
    return tracker


def test_track_tool_call_collects_files_and_feature():
    tracker = make_tracker()
    tracker.track_tool_call("get_file_history", {"file": "a.py", "files": ["b.py", 3], "feature": "login"})
    tracker.track_tool_call("scan_imports", '{"path": "src", "directory": ""}')
    assert list(tracker.files_touched) == ["a.py", "b.py", "src"]
    assert tracker.active_feature == "login"
    assert tracker.tool_calls == 2


def test_track_tool_call_tolerates_bad_json():
    tracker = make_tracker()
    tracker.track_tool_call("query", "not json")
    assert tracker.tool_calls == 1
    assert tracker.files_touched == {}


def test_tool_names_are_capped():
    tracker = make_tracker(calls=60)
    assert len(tracker.tool_names) == 50
    assert tracker.tool_calls == 60


def test_track_result_ids_routes_by_tool():
    tracker = make_tracker()
    tracker.track_result_ids("add_decision", {"id": "d1"})
    tracker.track_result_ids("start_feature", {"id": "feat"})
    tracker.track_result_ids("add_warning", {"id": ""})
    tracker.track_result_ids("add_warning", ["w1"])
    tracker.track_result_ids("query", {"id": "q"})
    assert tracker.decisions_made == ["d1"]
    assert tracker.features_started == ["feat"]
    assert tracker.warnings_added == []


def test_auto_save_triggers():
    assert make_tracker(calls=3).auto_save_trigger("query") is None
    assert make_tracker(calls=AUTO_SAVE_TOOL_CALL_INTERVAL).auto_save_trigger("query") == "checkpoint"
    assert make_tracker(calls=5).auto_save_trigger("add_decision") == "knowledge_created"
    assert make_tracker(calls=4).auto_save_trigger("add_warning") is None
    assert make_tracker(calls=1).auto_save_trigger("archive_feature") == "feature_lifecycle"


def test_should_save_thresholds():
    assert make_tracker(calls=4).should_save("session_end") is False
    assert make_tracker(calls=5).should_save("session_end") is True
    assert make_tracker(calls=3).should_save("feature_lifecycle") is True


def test_build_summary_parts():
    tracker = make_tracker()
    tracker.track_tool_call("search_code", {"path": "a.py"})
    tracker.track_tool_call("add_decision", {})
    tracker.track_result_ids("add_decision", {"id": "d1"})
    tracker.track_tool_call("start_feature", {})
    tracker.track_result_ids("start_feature", {"id": "login"})
    summary = tracker.build_summary("session_end", START + timedelta(minutes=5))
    assert summary.startswith("Session: 3 tool calls over 5m0s")
    assert "Activities: code exploration, knowledge capture" in summary
    assert "Features started: login" in summary
    assert summary.endswith("(auto-saved on session end)")


def test_key_points():
    tracker = make_tracker()
    tracker.track_tool_call("search_code", {})
    tracker.track_tool_call("search_code", {})
    tracker.track_tool_call("query", {})
    tracker.track_result_ids("add_decision", {"id": "d1"})
    assert tracker.key_points() == ["Used search_code 2 times", "Made 1 decision(s)"]


def test_mark_saved_resets_window():
    tracker = make_tracker(calls=7)
    saved_at = START + timedelta(hours=1)
    tracker.mark_saved("conv-1", saved_at)
    assert tracker.tool_calls_at_last_save == tracker.tool_calls
    assert tracker.save_count == 1
    assert tracker.last_checkpoint_id == "conv-1"
    assert tracker.window_start == saved_at
    assert tracker.should_save("session_end") is False