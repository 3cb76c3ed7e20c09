"""Tests for git log numstat parsing."""

from datetime import datetime, timedelta, timezone

from conftest import make_header, make_log

from git_report.history.parser import (
    LogParser,
    infer_change_type,
    parse_log,
    parse_raw_line,
    parse_timestamp,
    rename_destination,
    unquote_path,
)
from git_report.models import ChangeType, Commit, FileChange

SHA_A = "a" * 40
SHA_B = "b" * 40


def split_records(records):
    commits = [r for r in records if isinstance(r, Commit)]
    changes = [r for r in records if isinstance(r, FileChange)]
    return commits, changes


class TestHeaders:
    """Header line handling."""

    def test_single_commit_fields(self):
        """All header fields land on the Commit."""
        text = make_log(
            (
                {"sha": SHA_A, "name": "Alice", "email": "alice@example.com", "subject": "fix: a|b"},
                ["10\t2\tsrc/api/a.go"],
            )
        )
        commits, changes = split_records(list(parse_log(text, repository_id=7)))

        assert len(commits) == 1
        commit = commits[0]
        assert commit.hash == SHA_A
        assert commit.repository_id == 7
        assert commit.author_name == "Alice"
        assert commit.author_email == "alice@example.com"
        assert commit.message == "fix: a|b"
        assert commit.timestamp == datetime(2024, 3, 1, 14, 2, 11, tzinfo=timezone(timedelta(hours=1)))
        assert changes == [
            FileChange(SHA_A, "src/api/a.go", 10, 2, ChangeType.MODIFIED),
        ]

    def test_commit_precedes_its_changes(self):
        """Each Commit is yielded before its FileChanges."""
        text = make_log(
            ({"sha": SHA_A}, ["1\t0\ta.txt", "2\t0\tb.txt"]),
            ({"sha": SHA_B}, ["0\t3\tc.txt"]),
        )
        kinds = [
            (type(r).__name__, r.hash if isinstance(r, Commit) else r.commit_hash)
            for r in parse_log(text, 1)
        ]
        assert kinds == [
            ("Commit", SHA_A),
            ("FileChange", SHA_A),
            ("FileChange", SHA_A),
            ("Commit", SHA_B),
            ("FileChange", SHA_B),
        ]

    def test_header_with_too_few_fields_is_skipped(self):
        """A header with fewer than five fields is dropped, parsing continues."""
        text = "\n".join(
            [
                "\x00".join([SHA_A, "Alice", "alice@example.com"]),
                "5\t5\tignored.txt",
                make_header(SHA_B),
                "1\t1\tkept.txt",
            ]
        )
        parser = LogParser(1)
        commits, changes = split_records(list(parser.parse(text)))

        assert [c.hash for c in commits] == [SHA_B]
        assert [c.filepath for c in changes] == ["kept.txt"]
        assert parser.stats.skipped_headers == 1

    def test_unparsable_timestamp_drops_commit(self):
        """A bad date discards that commit and its stat lines only."""
        text = make_log(
            ({"sha": SHA_A, "date": "yesterday at noon"}, ["4\t0\tlost.txt"]),
            ({"sha": SHA_B}, ["1\t0\tfound.txt"]),
        )
        parser = LogParser(1)
        commits, changes = split_records(list(parser.parse(text)))

        assert [c.hash for c in commits] == [SHA_B]
        assert [c.filepath for c in changes] == ["found.txt"]
        assert parser.stats.skipped_headers == 1

    def test_commit_without_stats(self):
        """Merge commits have a header and no stat lines."""
        text = make_log(({"sha": SHA_A}, []), ({"sha": SHA_B}, ["1\t0\tx"]))
        commits, changes = split_records(list(parse_log(text, 1)))
        assert [c.hash for c in commits] == [SHA_A, SHA_B]
        assert len(changes) == 1


class TestStatLines:
    """Numstat line handling."""

    def test_binary_marker_skipped_without_breaking_commit(self):
        """A '-\\t-' line yields nothing; later lines in the commit still parse."""
        text = make_log(
            ({"sha": SHA_A}, ["-\t-\tlogo.png", "3\t1\tsrc/main.go", "0\t0\tempty.txt"]),
        )
        parser = LogParser(1)
        _, changes = split_records(list(parser.parse(text)))

        assert [c.filepath for c in changes] == ["src/main.go", "empty.txt"]
        assert parser.stats.skipped_binary == 1
        assert parser.stats.file_changes == 2

    def test_stat_line_before_any_header_ignored(self):
        text = "3\t1\torphan.txt\n" + make_log(({"sha": SHA_A}, ["1\t0\ta.txt"]))
        _, changes = split_records(list(parse_log(text, 1)))
        assert [c.filepath for c in changes] == ["a.txt"]

    def test_blank_and_junk_lines_ignored(self):
        text = make_log(({"sha": SHA_A}, ["", "   ", "not a stat line", "2\t2\tok.txt"]))
        _, changes = split_records(list(parse_log(text, 1)))
        assert [c.filepath for c in changes] == ["ok.txt"]

    def test_path_with_spaces_and_tabs_survives(self):
        text = make_log(({"sha": SHA_A}, ["1\t0\tdocs/my notes\tv2.md"]))
        _, changes = split_records(list(parse_log(text, 1)))
        assert changes[0].filepath == "docs/my notes\tv2.md"

    def test_rename_stores_destination(self):
        text = make_log(
            ({"sha": SHA_A}, ["0\t0\told/name.go => new/name.go", "2\t1\tsrc/{a => b}/x.go"]),
        )
        _, changes = split_records(list(parse_log(text, 1)))

        assert [(c.filepath, c.change_type) for c in changes] == [
            ("new/name.go", ChangeType.RENAMED),
            ("src/b/x.go", ChangeType.RENAMED),
        ]

    def test_accepts_iterable_of_lines(self):
        """Lines from a stream (with newlines attached) parse the same as text."""
        text = make_log(({"sha": SHA_A}, ["1\t0\ta.txt"]))
        lines = [line + "\n" for line in text.split("\n")]
        assert list(parse_log(lines, 1)) == list(parse_log(text, 1))

    def test_parse_is_restartable(self):
        text = make_log(({"sha": SHA_A}, ["1\t0\ta.txt"]))
        parser = LogParser(1)
        first = list(parser.parse(text))
        second = list(parser.parse(text))
        assert first == second
        assert parser.stats.commits == 1


class TestChangeTypeInference:
    def test_added(self):
        assert infer_change_type("a.txt", 5, 0) == ChangeType.ADDED

    def test_deleted(self):
        assert infer_change_type("a.txt", 0, 5) == ChangeType.DELETED

    def test_modified_mixed_and_empty(self):
        assert infer_change_type("a.txt", 3, 2) == ChangeType.MODIFIED
        assert infer_change_type("a.txt", 0, 0) == ChangeType.MODIFIED

    def test_rename_wins_over_counts(self):
        assert infer_change_type("a => b", 5, 0) == ChangeType.RENAMED


class TestGitStatusSignal:
    """Status letters from ``--raw`` lines take precedence over inference."""

    def test_explicit_modified_beats_count_guess(self):
        text = make_log(
            (
                {"sha": SHA_A},
                [
                    ":100644 100644 1111111 2222222 M\tsrc/append.go",
                    ":100644 100644 3333333 4444444 M\tsrc/trim.go",
                    "5\t0\tsrc/append.go",
                    "0\t4\tsrc/trim.go",
                ],
            )
        )
        parser = LogParser(1)
        _, changes = split_records(list(parser.parse(text)))

        assert [c.change_type for c in changes] == [ChangeType.MODIFIED, ChangeType.MODIFIED]
        assert parser.stats.signaled_types == 2

    def test_raw_lines_produce_no_records(self):
        text = make_log(({"sha": SHA_A}, [":000000 100644 0000000 1111111 A\tnew.txt"]))
        commits, changes = split_records(list(parse_log(text, 1)))
        assert len(commits) == 1
        assert changes == []

    def test_rename_status_keyed_by_destination(self):
        text = make_log(
            (
                {"sha": SHA_A},
                [
                    ":100644 100644 1111111 2222222 R087\tsrc/old/x.go\tsrc/new/x.go",
                    "3\t1\tsrc/{old => new}/x.go",
                ],
            )
        )
        _, (change,) = split_records(list(parse_log(text, 1)))
        assert (change.filepath, change.change_type) == ("src/new/x.go", ChangeType.RENAMED)

    def test_copy_and_type_change(self):
        text = make_log(
            (
                {"sha": SHA_A},
                [
                    ":100644 100644 1111111 1111111 C100\ta.txt\tb.txt",
                    ":100644 120000 2222222 3333333 T\tlink",
                    "0\t0\ta.txt => b.txt",
                    "1\t1\tlink",
                ],
            )
        )
        _, changes = split_records(list(parse_log(text, 1)))
        assert [c.change_type for c in changes] == [ChangeType.ADDED, ChangeType.MODIFIED]

    def test_status_does_not_leak_into_next_commit(self):
        text = make_log(
            ({"sha": SHA_A}, [":100644 100644 1111111 2222222 M\tx.go", "1\t0\tx.go"]),
            ({"sha": SHA_B}, ["1\t0\tx.go"]),
        )
        _, changes = split_records(list(parse_log(text, 1)))
        assert [c.change_type for c in changes] == [ChangeType.MODIFIED, ChangeType.ADDED]

    def test_quoted_raw_path_matches_quoted_stat_path(self):
        text = make_log(
            (
                {"sha": SHA_A},
                [':100644 100644 1111111 2222222 M\t"we\\"ird.txt"', '2\t0\t"we\\"ird.txt"'],
            )
        )
        _, (change,) = split_records(list(parse_log(text, 1)))
        assert change.filepath == 'we"ird.txt'
        assert change.change_type == ChangeType.MODIFIED

    def test_unmerged_status_falls_back_to_inference(self):
        assert parse_raw_line(":100644 100644 1111111 2222222 U\tx.go") is None
        assert parse_raw_line(":malformed") is None


class TestHelpers:
    def test_rename_destination_forms(self):
        assert rename_destination("plain/path.go") == "plain/path.go"
        assert rename_destination("a.go => b.go") == "b.go"
        assert rename_destination("src/{old => new}/f.py") == "src/new/f.py"
        assert rename_destination("src/{ => sub}/f.py") == "src/sub/f.py"
        assert rename_destination("src/{sub => }/f.py") == "src/f.py"
        assert rename_destination("{old => new}/f.py") == "new/f.py"

    def test_parse_timestamp(self):
        ts = parse_timestamp("2023-12-31 23:59:59 -0500")
        assert ts is not None
        assert ts.utcoffset() == timedelta(hours=-5)
        assert parse_timestamp("2023-12-31T23:59:59Z") is None

    def test_unquote_path(self):
        assert unquote_path("plain.txt") == "plain.txt"
        assert unquote_path('"we\\"ird.txt"') == 'we"ird.txt'
        assert unquote_path('"back\\\\slash"') == "back\\slash"
        assert unquote_path('"tab\\there"') == "tab\there"
        # octal escapes are UTF-8 bytes: "\303\251" is "é"
        assert unquote_path('"caf\\303\\251.md"') == "café.md"
        assert unquote_path('"') == '"'

    def test_quoted_rename_sides(self):
        assert rename_destination('"a\\"b.txt"') == 'a"b.txt'
        assert rename_destination('"old\\".txt" => "new\\".txt"') == 'new".txt'
        assert rename_destination('plain.txt => "odd\\".txt"') == 'odd".txt'
        assert rename_destination('"odd\\".txt" => plain.txt') == "plain.txt"
