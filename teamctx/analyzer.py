"""Git history analysis: expertise, knowledge risk, co-change correlation and commit context."""

from __future__ import annotations

import os
import subprocess
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

from .history import (
    CommitContext,
    CommitInfo,
    Expert,
    FileCorrelation,
    FileExpertise,
    KnowledgeRisk,
    build_file_expertise,
    parse_commit_context,
    parse_commit_log,
)

_RISK_ORDER = {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3}
_CONTEXT_FORMAT = "--pretty=format:%H|%h|%an|%ae|%aI|%s"


def _git(repo_path: str, args: Sequence[str]) -> str:
    completed = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        encoding="utf-8",
        errors="replace",
        check=True,
    )
    return completed.stdout


def _months_ago(now: datetime, months: int) -> datetime:
    total = now.year * 12 + (now.month - 1) - months
    year, month_index = divmod(total, 12)
    first = now.replace(year=year, month=month_index + 1, day=1)
    return first + timedelta(days=now.day - 1)


def _directory(path: str) -> str:
    directory = os.path.dirname(path)
    return os.path.normpath(directory) if directory else "."


class HistoryAnalyzer:
    """Runs git in a repository and mines its history."""

    def __init__(self, repo_path: str) -> None:
        self.repo_path = repo_path

    def get_commit_history(self, since: datetime, limit: int = 0) -> list[CommitInfo]:
        """Return commits since a date, with numstat data."""
        args = ["log", "--since=" + since.strftime("%Y-%m-%d"), _CONTEXT_FORMAT, "--numstat"]
        if limit > 0:
            args += ["-n", str(limit)]
        return parse_commit_log(_git(self.repo_path, args))

    def get_file_expertise(self, file_path: str) -> FileExpertise:
        """Work out who knows a file best from its history."""
        output = _git(
            self.repo_path,
            ["log", "--follow", "--pretty=format:%H|%an|%ae|%aI", "--numstat", "--", file_path],
        )
        return build_file_expertise(file_path, output)

    def find_experts(self, files: Iterable[str] | None = None, area: str = "") -> list[Expert]:
        """Find the top experts for some files, or for files whose path mentions an area."""
        file_list = list(files or [])
        if area and not file_list:
            try:
                output = _git(self.repo_path, ["ls-files", f"*{area}*"])
            except (subprocess.CalledProcessError, OSError):
                output = ""
            file_list = output.strip().split("\n")

        expertises = []
        for file in file_list:
            if not file:
                continue
            try:
                expertises.append(self.get_file_expertise(file))
            except (subprocess.CalledProcessError, OSError):
                continue
        return aggregate_experts(expertises, len(file_list))

    def analyze_knowledge_risk(self) -> list[KnowledgeRisk]:
        """Report directories whose knowledge sits with too few or inactive people."""
        output = _git(self.repo_path, ["ls-files"])
        by_directory: dict[str, list[str]] = {}
        for file in output.strip().split("\n"):
            by_directory.setdefault(_directory(file), []).append(file)

        now = datetime.now(timezone.utc)
        risks = []
        for directory, dir_files in by_directory.items():
            if len(dir_files) < 2:
                continue
            experts = self.find_experts(dir_files, "")
            risk = classify_risk(directory, dir_files, experts)
            if experts:
                try:
                    latest = self.get_file_expertise(dir_files[0])
                except (subprocess.CalledProcessError, OSError):
                    latest = None
                if latest is not None:
                    _apply_last_activity(risk, latest.last_modified, now)
            if risk.risk_level != "LOW":
                risks.append(risk)

        risks.sort(key=lambda r: _RISK_ORDER.get(r.risk_level, 0))
        return risks

    def get_file_correlations(self, file_path: str, min_correlation: float) -> list[FileCorrelation]:
        """Find files that often change in the same commits as the given one."""
        output = _git(self.repo_path, ["log", "--pretty=format:%H", "--follow", "--", file_path])
        commit_files: list[list[str]] = []
        for commit in output.strip().split("\n"):
            if not commit:
                commit_files.append([])
                continue
            try:
                listing = _git(
                    self.repo_path,
                    ["diff-tree", "--no-commit-id", "--name-only", "-r", commit],
                )
            except (subprocess.CalledProcessError, OSError):
                commit_files.append([])
                continue
            commit_files.append(listing.strip().split("\n"))
        return compute_correlations(file_path, commit_files, min_correlation)

    def get_commit_context(self, file_path: str, lines: Sequence[int] | None = None) -> CommitContext:
        """Return the commits behind a file, or behind a range of its lines."""
        line_list = list(lines or [])
        if line_list:
            line_range = str(line_list[0])
            if len(line_list) > 1:
                line_range += "," + str(line_list[-1])
            args = ["log", "-L", f"{line_range}:{file_path}", _CONTEXT_FORMAT, "-n", "10"]
        else:
            args = ["log", "--follow", _CONTEXT_FORMAT, "-n", "10", "--", file_path]
        return parse_commit_context(file_path, line_list, _git(self.repo_path, args))


def aggregate_experts(expertises: Iterable[FileExpertise], file_count: int) -> list[Expert]:
    """Merge per-file contributor stats into the five strongest experts."""
    by_email: dict[str, Expert] = {}
    for expertise in expertises:
        for contrib in expertise.contributors:
            expert = by_email.get(contrib.email)
            if expert is None:
                by_email[contrib.email] = Expert(
                    name=contrib.name,
                    email=contrib.email,
                    score=contrib.ownership,
                    commits=contrib.commits,
                    files_touched=1,
                    is_active=contrib.is_active,
                )
                continue
            expert.commits += contrib.commits
            expert.files_touched += 1
            expert.score += contrib.ownership
            expert.is_active = expert.is_active or contrib.is_active

    experts = []
    for expert in by_email.values():
        if file_count > 0:
            expert.score /= file_count
        expert.reasons += [f"{expert.commits} commits", f"{expert.files_touched} files touched"]
        if not expert.is_active:
            expert.reasons.append("⚠️ Not active in last 3 months")
        experts.append(expert)

    experts.sort(key=lambda e: e.score, reverse=True)
    return experts[:5]


def classify_risk(area: str, files: Sequence[str], experts: Sequence[Expert]) -> KnowledgeRisk:
    """Rate how concentrated the knowledge of an area is, given its ranked experts."""
    risk = KnowledgeRisk(area=area, files=list(files))
    if not experts:
        risk.risk_level = "CRITICAL"
        risk.reason = "No contributors found in history"
        risk.mitigation = "Investigate - files may be untracked or very old"
        return risk

    top = experts[0]
    risk.primary_expert = top.name
    risk.expert_is_active = top.is_active
    if top.score > 0.8:
        if not top.is_active:
            risk.risk_level = "CRITICAL"
            risk.reason = f"Primary contributor ({top.name}) owns 80%+ and is inactive"
            risk.mitigation = "Urgent: Assign new maintainer, schedule knowledge transfer"
        else:
            risk.risk_level = "MEDIUM"
            risk.reason = "Single contributor owns 80%+ of this area"
            risk.mitigation = "Consider pairing to spread knowledge"
    elif not top.is_active:
        risk.risk_level = "HIGH"
        risk.reason = "Top contributor is no longer active"
        risk.mitigation = "Identify current maintainer or assign one"
    else:
        risk.risk_level = "LOW"
        risk.reason = "Knowledge is distributed among active contributors"
        risk.mitigation = "None needed"
    return risk


def _apply_last_activity(risk: KnowledgeRisk, last_modified: datetime, now: datetime) -> None:
    if last_modified < _months_ago(now, 6):
        risk.last_activity = "Over 6 months ago"
        if risk.risk_level != "CRITICAL":
            risk.risk_level = "HIGH"
            risk.reason += "; No recent activity"
    elif last_modified < _months_ago(now, 3):
        risk.last_activity = "3-6 months ago"
    else:
        risk.last_activity = "Within 3 months"


def compute_correlations(
    file_path: str,
    commit_files: Sequence[Sequence[str]],
    min_correlation: float,
) -> list[FileCorrelation]:
    """Rate other files by the share of the file's commits they also appear in."""
    total = len(commit_files)
    if total == 0:
        return []
    counts: Counter[str] = Counter(
        other for files in commit_files for other in files if other and other != file_path
    )

    correlations = []
    for other, count in counts.items():
        correlation = count / total
        if correlation < min_correlation:
            continue
        if count > 10:
            confidence = "high"
        elif count > 3:
            confidence = "medium"
        else:
            confidence = "low"
        correlations.append(
            FileCorrelation(
                file1=file_path,
                file2=other,
                co_changes=count,
                correlation=correlation,
                confidence=confidence,
            )
        )

    correlations.sort(key=lambda c: c.correlation, reverse=True)
    return correlations[:10]