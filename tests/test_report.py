from datetime import datetime, timezone

from teamctx.history import FileCorrelation, KnowledgeRisk
from teamctx.report import (
    ContributorInfo,
    DirectoryExpert,
    ExpertEntry,
    FileActivity,
    GitHistoryReport,
    GitSummary,
    parse_processor_log,
)

HASH_A = "a" * 40
HASH_B = "b" * 40


def test_parse_single_commit_with_numstat():
    output = f"{HASH_A}|aaaaaaa|Ann|ann@example.com|2024-01-02T03:04:05Z|Add feature\n7\t4\tsrc/app.py\n"
    commits = parse_processor_log(output)
    assert len(commits) == 1
    commit = commits[0]
    assert commit.hash == HASH_A
    assert commit.author == "Ann"
    assert commit.author_email == "ann@example.com"
    assert commit.message == "Add feature"
    assert commit.date == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert commit.insertions == 7
    assert commit.deletions == 4
    assert commit.files_changed == ["src/app.py"]


def test_parse_keeps_pipes_in_message():
    output = f"{HASH_A}|aaaaaaa|Ann|ann@example.com|2024-01-02T03:04:05Z|fix a|b thing"
    assert parse_processor_log(output)[0].message == "fix a|b thing"


def test_parse_binary_numstat_counts_nothing():
    output = f"{HASH_A}|aaaaaaa|Ann|ann@example.com|2024-01-02T03:04:05Z|Image\n-\t-\tlogo.png"
    commit = parse_processor_log(output)[0]
    assert commit.insertions == 0
    assert commit.files_changed == ["logo.png"]


def test_parse_multiple_commits_in_order():
    output = (
        f"{HASH_A}|aaaaaaa|Ann|ann@example.com|2024-02-01T00:00:00Z|second\n1\t1\tx.py\n\n"
        f"{HASH_B}|bbbbbbb|Bob|bob@example.com|2024-01-01T00:00:00Z|first\n2\t0\ty.py\n"
    )
    commits = parse_processor_log(output)
    assert [c.hash for c in commits] == [HASH_A, HASH_B]
    assert commits[1].files_changed == ["y.py"]


def test_parse_ignores_short_hash_headers_and_leading_numstat():
    output = "1\t1\torphan.py\nabc|a|Ann|ann@example.com|2024-01-01T00:00:00Z|msg\n"
    assert parse_processor_log(output) == []


def test_contributor_round_trip_and_keys():
    info = ContributorInfo(name="Ann", email="ann@example.com", commits=3, added=10, removed=2, active=True)
    data = info.to_dict()
    assert "active_in_repo" not in data
    assert data["lines_added"] == 10
    assert ContributorInfo.from_dict(data) == info
    linked = ContributorInfo(name="Ann", email="ann@example.com", active_in_repo="other")
    assert linked.to_dict()["active_in_repo"] == "other"


def test_expert_entry_round_trip():
    entry = ExpertEntry(
        name="Bob",
        email="bob@example.com",
        commits=4,
        ownership=0.5,
        active=False,
        last_commit=datetime(2023, 5, 6, 7, 8, 9, tzinfo=timezone.utc),
    )
    data = entry.to_dict()
    assert data["last_commit"] == "2023-05-06T07:08:09Z"
    assert ExpertEntry.from_dict(data) == entry


def test_directory_expert_round_trip():
    de = DirectoryExpert(
        directory="src",
        file_count=2,
        total_commits=5,
        top_experts=[ExpertEntry(name="Ann", email="ann@example.com", commits=5, ownership=1.0)],
    )
    assert DirectoryExpert.from_dict(de.to_dict()) == de


def test_summary_round_trip_and_null_lists():
    summary = GitSummary(
        total_commits=2,
        contributors=[ContributorInfo(name="Ann", email="ann@example.com", commits=2)],
        first_commit_date="2024-01-01T00:00:00Z",
        last_commit_date="2024-02-01T00:00:00Z",
        active_branch="main",
        top_files=[FileActivity(path="a.py", changes=2)],
    )
    assert GitSummary.from_dict(summary.to_dict()) == summary
    empty = GitSummary.from_dict({"contributors": None, "top_files": None})
    assert empty.contributors == [] and empty.top_files == []


def test_report_to_dict_includes_nested_records():
    report = GitHistoryReport(
        summary=GitSummary(total_commits=1, active_branch="main"),
        risks=[KnowledgeRisk(area="src", risk_level="HIGH")],
        correlations=[FileCorrelation(file1="a.py", file2="b.py", co_changes=9)],
        processed_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        commit_count=1,
        contributors=1,
    )
    data = report.to_dict()
    assert data["summary"]["active_branch"] == "main"
    assert data["risks"][0]["risk_level"] == "HIGH"
    assert data["correlations"][0]["file2"] == "b.py"
    assert data["processed_at"] == "2024-03-01T00:00:00Z"
    assert data["commit_count"] == 1