"""Tracking of tool calls in a session and the rules for auto-saving it."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

AUTO_SAVE_TOOL_CALL_INTERVAL = 25
_MAX_TOOL_NAMES = 50
_FILE_KEYS = ("path", "file", "file_path", "directory")

_RESULT_LISTS = {
    "add_decision": "decisions_made",
    "add_warning": "warnings_added",
    "add_insight": "insights_added",
    "add_pattern": "patterns_added",
    "start_feature": "features_started",
    "archive_feature": "features_archived",
}

_TRIGGER_NOTES = {
    "session_end": "(auto-saved on session end)",
    "checkpoint": "(auto-saved at checkpoint)",
    "knowledge_created": "(auto-saved after knowledge creation)",
    "feature_lifecycle": "(auto-saved on feature lifecycle event)",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_minutes(seconds: float) -> str:
    """Format a duration rounded to whole minutes, e.g. ``1h5m0s``."""
    minutes = int(abs(seconds) / 60 + 0.5)
    if seconds < 0:
        minutes = -minutes
    if minutes == 0:
        return "0s"
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(minutes), 60)
    if hours:
        return f"{sign}{hours}h{mins}m0s"
    return f"{sign}{mins}m0s"


@dataclass
class SessionTracker:
    """Tool calls and knowledge created since a session began."""

    started_at: datetime = field(default_factory=_now)
    tool_calls: int = 0
    tool_names: list[str] = field(default_factory=list)
    files_touched: dict[str, None] = field(default_factory=dict)
    decisions_made: list[str] = field(default_factory=list)
    warnings_added: list[str] = field(default_factory=list)
    insights_added: list[str] = field(default_factory=list)
    patterns_added: list[str] = field(default_factory=list)
    active_feature: str = ""
    last_save_at: datetime | None = None
    save_count: int = 0
    tool_calls_at_last_save: int = 0
    last_checkpoint_id: str = ""
    features_started: list[str] = field(default_factory=list)
    features_archived: list[str] = field(default_factory=list)

    @property
    def calls_since_last_save(self) -> int:
        return self.tool_calls - self.tool_calls_at_last_save

    @property
    def window_start(self) -> datetime:
        """Start of the window covered by the next save."""
        return self.last_save_at if self.last_save_at is not None else self.started_at

    def track_tool_call(self, tool_name: str, args: Any = None) -> None:
        """Record a call and pick up files and feature named in its arguments."""
        self.tool_calls += 1
        if len(self.tool_names) < _MAX_TOOL_NAMES:
            self.tool_names.append(tool_name)

        if isinstance(args, (str, bytes, bytearray)):
            try:
                args = json.loads(args)
            except ValueError:
                return
        if not isinstance(args, dict):
            return

        for key in _FILE_KEYS:
            value = args.get(key)
            if isinstance(value, str) and value:
                self.files_touched[value] = None
        files = args.get("files")
        if isinstance(files, list):
            for item in files:
                if isinstance(item, str):
                    self.files_touched[item] = None
        feature = args.get("feature")
        if isinstance(feature, str) and feature:
            self.active_feature = feature

    def track_result_ids(self, tool_name: str, result: Any) -> None:
        """Remember the id of a knowledge item a tool created."""
        if not isinstance(result, dict):
            return
        item_id = result.get("id")
        if not isinstance(item_id, str) or not item_id:
            return
        attribute = _RESULT_LISTS.get(tool_name)
        if attribute is not None:
            getattr(self, attribute).append(item_id)

    def auto_save_trigger(self, tool_name: str) -> str | None:
        """Return the trigger that a completed call fires, if any."""
        since = self.calls_since_last_save
        trigger = None
        if since >= AUTO_SAVE_TOOL_CALL_INTERVAL:
            trigger = "checkpoint"
        if tool_name in ("add_decision", "add_warning") and since >= 5:
            trigger = "knowledge_created"
        if tool_name in ("start_feature", "archive_feature"):
            trigger = "feature_lifecycle"
        return trigger

    def should_save(self, trigger: str) -> bool:
        """Whether enough calls have accumulated for a save on this trigger."""
        minimum = 3 if trigger == "feature_lifecycle" else 5
        return self.calls_since_last_save >= minimum

    def build_summary(self, trigger: str, now: datetime | None = None) -> str:
        """Describe the session in a line of human-readable sentences."""
        if now is None:
            now = _now()
        duration = _format_minutes((now - self.started_at).total_seconds())
        used = set(self.tool_names)

        parts = [f"Session: {self.tool_calls} tool calls over {duration}"]
        if self.files_touched:
            parts.append(f"{len(self.files_touched)} files touched")
        knowledge = (
            len(self.decisions_made)
            + len(self.warnings_added)
            + len(self.insights_added)
            + len(self.patterns_added)
        )
        if knowledge > 0:
            parts.append(f"{knowledge} knowledge items created")

        activity_rules = (
            ({"get_skeleton", "get_types", "search_code"}, "code exploration"),
            ({"add_decision", "add_warning", "add_pattern"}, "knowledge capture"),
            ({"index_file", "scan_imports"}, "indexing"),
            ({"find_experts", "get_file_history"}, "git analysis"),
            ({"query", "get_context"}, "context queries"),
        )
        activities = [label for tools, label in activity_rules if used & tools]
        if activities:
            parts.append("Activities: " + ", ".join(activities))

        if self.features_started:
            parts.append("Features started: " + ", ".join(self.features_started))
        if self.features_archived:
            parts.append("Features archived: " + ", ".join(self.features_archived))

        parts.append(_TRIGGER_NOTES.get(trigger, f"(auto-saved: {trigger})"))
        return ". ".join(parts)

    def key_points(self) -> list[str]:
        """List the notable facts of the session for a saved record."""
        usage: dict[str, int] = {}
        for name in self.tool_names:
            usage[name] = usage.get(name, 0) + 1
        points = [f"Used {tool} {count} times" for tool, count in usage.items() if count > 1]
        counted = (
            (self.decisions_made, "Made {} decision(s)"),
            (self.warnings_added, "Added {} warning(s)"),
            (self.insights_added, "Added {} insight(s)"),
            (self.features_started, "Started {} feature(s)"),
            (self.features_archived, "Archived {} feature(s)"),
        )
        points += [template.format(len(items)) for items, template in counted if items]
        return points

    def mark_saved(self, checkpoint_id: str, now: datetime | None = None) -> None:
        """Record that the session was just saved under an id."""
        self.tool_calls_at_last_save = self.tool_calls
        self.last_save_at = now if now is not None else _now()
        self.save_count += 1
        self.last_checkpoint_id = checkpoint_id