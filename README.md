# teamctx

`teamctx` reads a Git repository's history and turns it into team knowledge:
who knows which parts of the code, where knowledge is concentrated in one
person, which files tend to change together, and why a piece of code looks
the way it does. It also scans source files for their imports and keeps
count of a working session's tool activity.

Everything that touches a repository runs the `git` executable on your
`PATH`; the package itself has no third-party dependencies. A failing `git`
call raises `subprocess.CalledProcessError`, except where noted below.

## What is inside

| Module | Purpose |
| --- | --- |
| `teamctx.changes` | Recent commits, per-file diffs, uncommitted changes, current branch |
| `teamctx.history` | Records for commits, expertise, experts, risks, correlations and commit context, plus their log parsers |
| `teamctx.analyzer` | `HistoryAnalyzer`: live per-file and per-area analysis |
| `teamctx.report` | Records for the whole-repository report and its log parser |
| `teamctx.processor` | One-pass analysis of the default branch into a `GitHistoryReport` |
| `teamctx.linking` | Writing report JSON files and cross-referencing activity in sibling repositories |
| `teamctx.imports` | Import scanning for TypeScript/JavaScript, Go and Python |
| `teamctx.session` | `SessionTracker`: counts tool calls, files touched and knowledge created |

All records are dataclasses with a `to_dict()` method giving JSON-ready
data; the report records, `KnowledgeRisk` and `FileCorrelation` also have
`from_dict()`.

## Recent changes

```python
from teamctx.changes import get_recent_changes, get_uncommitted_changes, get_branch

for change in get_recent_changes("/path/to/repo", "2 weeks ago", 20):
    print(change.short_hash, change.impact_level, change.message)

print("on branch", get_branch("/path/to/repo"))
for diff in get_uncommitted_changes("/path/to/repo"):
    print(diff.status, diff.path)
```

Each commit gets an impact level: `high` above 500 changed lines or 20
files, `medium` above 100 lines or 5 files, otherwise `low`.
`get_file_diff` compares a file with `HEAD~1` by default, splits the diff
into hunks of at most 2000 characters, and reports the file as `unchanged`
when `git diff` fails or prints nothing. The parsers (`parse_git_log`,
`parse_diff`, `parse_porcelain_status` and others) can be used on text you
already have.

## Who knows this code?

```python
from teamctx.analyzer import HistoryAnalyzer

analyzer = HistoryAnalyzer("/path/to/repo")

expertise = analyzer.get_file_expertise("internal/server.go")
print(expertise.churn_rate, expertise.last_modified_by)
for contributor in expertise.contributors:
    print(contributor.name, f"{contributor.ownership:.0%}", contributor.is_active)

for expert in analyzer.find_experts([], "auth"):
    print(expert.name, round(expert.score, 2), expert.reasons)
```

A contributor counts as active when they committed within the last three
months. Churn is `high` above 20 commits, `medium` above 5, else `low`.
`find_experts` looks up files matching `*area*` when no files are given,
skips files whose history cannot be read, and returns at most five people
ranked by score.

## Knowledge risks and co-changes

```python
for risk in analyzer.analyze_knowledge_risk():
    print(risk.risk_level, risk.area, risk.reason, risk.mitigation)

for corr in analyzer.get_file_correlations("internal/server.go", 0.3):
    print(corr.file2, corr.co_changes, corr.confidence)

context = analyzer.get_commit_context("internal/server.go", [10, 25])
print(context.summary, context.time_span)
```

Risks are ordered `CRITICAL`, `HIGH`, `MEDIUM`; areas rated `LOW` are left
out. Correlations are limited to the ten strongest. `classify_risk`,
`aggregate_experts` and `compute_correlations` do the same work on data you
supply, without running git.

## Whole-repository report

`process_git_history` reads up to 2000 commits of the default branch
(`origin/HEAD`, then `main`, then `master`, then `HEAD`) in a single pass,
falling back to `--all` if that fails, and computes a summary, per-directory
experts, risks and file correlations. If both reads fail it raises
`RuntimeError`. `build_report` computes the same report from commits parsed
with `teamctx.report.parse_processor_log`.

```python
from teamctx.processor import process_git_history
from teamctx.linking import write_report_files, cross_reference_linked_repos

report = process_git_history("/path/to/repo")
cross_reference_linked_repos(report, ["/path/to/sibling-repo"])
write_report_files(report, "/path/to/repo/.teamcontext/knowledge")
```

This writes `git-summary.json`, `git-experts.json`, `git-risks.json` and
`git-correlations.json`. `cross_reference_linked_repos` reads each linked
repository's `.teamcontext/knowledge/git-summary.json`; a contributor who is
inactive here but active there is marked active, with that repository's
directory name recorded in `active_in_repo`.

## Import scanning

```python
from teamctx.imports import scan_file, scan_text

for result in scan_file("src/app.ts"):
    print(result.import_type, result.imported)

print(scan_text("import os\nfrom .util import x\n", "pkg/mod.py", ".py"))
```

Files are scanned by extension: `.go` as Go, `.py` as Python, everything
else with the TypeScript/JavaScript patterns. Imports are classified as
`relative`, `builtin` or `package`; relative imports are resolved against
the importing file's directory.

## Session tracking

`SessionTracker` records each tool call with `track_tool_call`, picking up
the files (`path`, `file`, `file_path`, `directory`, `files`) and `feature`
named in its arguments, and with `track_result_ids` the IDs of decisions,
warnings, insights, patterns and features created. `auto_save_trigger`
reports when a save is due (every 25 calls, after knowledge creation, or on
a feature lifecycle event), `should_save` checks that enough calls have
accumulated, `build_summary` and `key_points` describe the session, and
`mark_saved` records that a save happened.

## What this package does not do

- It has no command-line program and no server; it is a library to call
  from your own code.
- `SessionTracker` only keeps counts and builds text. It does not store
  sessions, decisions, warnings or features anywhere; saving them is up to
  the caller.
- Cached lookups that read the report JSON files back to answer questions
  are not provided; `write_report_files` writes them and
  `cross_reference_linked_repos` reads the summary file only.