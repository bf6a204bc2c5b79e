"""Writing report files and sharing contributor activity across linked repositories."""

from __future__ import annotations

import json
import os
from typing import Any, Iterable

from .report import GitHistoryReport, GitSummary


def write_report_files(report: GitHistoryReport, knowledge_dir: str) -> None:
    """Write the report's parts as indented JSON files in the knowledge directory."""
    os.makedirs(knowledge_dir, exist_ok=True)
    files: dict[str, Any] = {
        "git-summary.json": report.summary.to_dict(),
        "git-experts.json": [e.to_dict() for e in report.experts],
        "git-risks.json": [r.to_dict() for r in report.risks],
        "git-correlations.json": [c.to_dict() for c in report.correlations],
    }
    for name, data in files.items():
        path = os.path.join(knowledge_dir, name)
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(data, indent=2, ensure_ascii=False))


def _load_summary(repo_path: str) -> GitSummary | None:
    path = os.path.join(repo_path, ".teamcontext", "knowledge", "git-summary.json")
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
        return GitSummary.from_dict(data)
    except (OSError, ValueError, TypeError, AttributeError):
        return None


def cross_reference_linked_repos(
    report: GitHistoryReport | None,
    linked_repo_paths: Iterable[str] | None,
) -> None:
    """Mark locally inactive contributors active when a linked repo shows them active."""
    paths = list(linked_repo_paths or [])
    if report is None or not paths:
        return

    by_email = {c.email: c for c in report.summary.contributors}
    for repo_path in paths:
        linked = _load_summary(repo_path)
        if linked is None:
            continue
        repo_name = os.path.basename(os.path.normpath(repo_path))
        for linked_contrib in linked.contributors:
            if not linked_contrib.active:
                continue
            local = by_email.get(linked_contrib.email)
            if local is None or local.active:
                continue
            local.active = True
            local.active_in_repo = repo_name

    active_in_repo = {
        c.email: c.active_in_repo for c in report.summary.contributors if c.active_in_repo
    }
    for directory in report.experts:
        for expert in directory.top_experts:
            if expert.active:
                continue
            repo_name = active_in_repo.get(expert.email)
            if repo_name is not None:
                expert.active = True
                expert.active_in_repo = repo_name