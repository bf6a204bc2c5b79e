import json
from datetime import datetime, timezone

from teamctx.history import KnowledgeRisk
from teamctx.linking import cross_reference_linked_repos, write_report_files
from teamctx.report import (
    ContributorInfo,
    DirectoryExpert,
    ExpertEntry,
    GitHistoryReport,
    GitSummary,
)


def make_report():
    return GitHistoryReport(
        summary=GitSummary(
            total_commits=4,
            contributors=[
                ContributorInfo(name="Ann", email="ann@example.com", commits=3, active=False),
                ContributorInfo(name="Ben", email="ben@example.com", commits=1, active=True),
            ],
            active_branch="main",
        ),
        experts=[
            DirectoryExpert(
                directory="src",
                file_count=2,
                total_commits=4,
                top_experts=[
                    ExpertEntry(
                        name="Ann",
                        email="ann@example.com",
                        commits=3,
                        ownership=0.75,
                        last_commit=datetime(2023, 1, 2, tzinfo=timezone.utc),
                    )
                ],
            )
        ],
        risks=[KnowledgeRisk(area="src", risk_level="HIGH", primary_expert="Ann")],
        processed_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def write_linked(root, name, contributors):
    knowledge = root / name / ".teamcontext" / "knowledge"
    knowledge.mkdir(parents=True)
    summary = GitSummary(contributors=contributors)
    (knowledge / "git-summary.json").write_text(json.dumps(summary.to_dict()), encoding="utf-8")
    return str(root / name)


def test_write_report_files_creates_all_files(tmp_path):
    target = tmp_path / "knowledge"
    write_report_files(make_report(), str(target))
    names = sorted(p.name for p in target.iterdir())
    assert names == [
        "git-correlations.json",
        "git-experts.json",
        "git-risks.json",
        "git-summary.json",
    ]


def test_written_summary_round_trips(tmp_path):
    report = make_report()
    write_report_files(report, str(tmp_path))
    data = json.loads((tmp_path / "git-summary.json").read_text(encoding="utf-8"))
    assert GitSummary.from_dict(data) == report.summary


def test_written_experts_and_risks_round_trip(tmp_path):
    report = make_report()
    write_report_files(report, str(tmp_path))
    experts = json.loads((tmp_path / "git-experts.json").read_text(encoding="utf-8"))
    risks = json.loads((tmp_path / "git-risks.json").read_text(encoding="utf-8"))
    assert [DirectoryExpert.from_dict(e) for e in experts] == report.experts
    assert [KnowledgeRisk.from_dict(r) for r in risks] == report.risks


def test_written_json_is_indented(tmp_path):
    write_report_files(make_report(), str(tmp_path))
    text = (tmp_path / "git-summary.json").read_text(encoding="utf-8")
    assert '\n  "total_commits"' in text


def test_cross_reference_marks_contributor_and_expert(tmp_path):
    report = make_report()
    linked = write_linked(
        tmp_path, "other", [ContributorInfo(name="Ann", email="ann@example.com", active=True)]
    )
    cross_reference_linked_repos(report, [linked])
    ann = report.summary.contributors[0]
    assert ann.active is True
    assert ann.active_in_repo == "other"
    expert = report.experts[0].top_experts[0]
    assert expert.active is True
    assert expert.active_in_repo == "other"


def test_cross_reference_ignores_inactive_linked_contributors(tmp_path):
    report = make_report()
    linked = write_linked(
        tmp_path, "other", [ContributorInfo(name="Ann", email="ann@example.com", active=False)]
    )
    cross_reference_linked_repos(report, [linked])
    assert report.summary.contributors[0].active is False
    assert report.experts[0].top_experts[0].active_in_repo == ""


def test_cross_reference_leaves_locally_active_alone(tmp_path):
    report = make_report()
    linked = write_linked(
        tmp_path, "other", [ContributorInfo(name="Ben", email="ben@example.com", active=True)]
    )
    cross_reference_linked_repos(report, [linked])
    assert report.summary.contributors[1].active_in_repo == ""


def test_cross_reference_skips_missing_and_broken_summaries(tmp_path):
    report = make_report()
    broken = tmp_path / "broken" / ".teamcontext" / "knowledge"
    broken.mkdir(parents=True)
    (broken / "git-summary.json").write_text("{not json", encoding="utf-8")
    good = write_linked(
        tmp_path, "good", [ContributorInfo(name="Ann", email="ann@example.com", active=True)]
    )
    cross_reference_linked_repos(
        report, [str(tmp_path / "missing"), str(tmp_path / "broken"), good]
    )
    assert report.summary.contributors[0].active_in_repo == "good"


def test_cross_reference_without_paths_changes_nothing():
    report = make_report()
    cross_reference_linked_repos(report, [])
    assert report == make_report()


def test_cross_reference_uses_base_name_of_trailing_slash_path(tmp_path):
    report = make_report()
    linked = write_linked(
        tmp_path, "sibling", [ContributorInfo(name="Ann", email="ann@example.com", active=True)]
    )
    cross_reference_linked_repos(report, [linked + "/"])
    assert report.summary.contributors[0].active_in_repo == "sibling"