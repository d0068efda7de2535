"""Tests for duplicate disposition."""

import tempfile
from pathlib import Path
from typing import Iterator, List, Sequence, Set

import pytest

from dupehunter.errors import ErrorKind, SelectionCancelledError
from dupehunter.finder import DuplicateGroup
from dupehunter.resolver import (
    ConsoleSelectionProvider,
    DispositionMode,
    DuplicateResolver,
    select_mode,
)


class ScriptedSelection:
    """Selection provider returning canned answers."""

    def __init__(self, answers: List[Set[int]]):
        self.answers = answers
        self.calls: List[Sequence[str]] = []

    def select(self, labels: Sequence[str]) -> Set[int]:
        self.calls.append(list(labels))
        if not self.answers:
            raise SelectionCancelledError("no more answers")
        return self.answers.pop(0)


@pytest.fixture
def tree() -> Iterator[Path]:
    """Directory with two duplicate groups: a1-a3 and b1-b2."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        for name in ("a1", "a2", "a3"):
            (root / name).write_bytes(b"aaa")
        for name in ("b1", "b2"):
            (root / name).write_bytes(b"bbbb")
        yield root


def groups_for(root: Path) -> List[DuplicateGroup]:
    return [
        DuplicateGroup("a" * 64, 3, [root / "a1", root / "a2", root / "a3"]),
        DuplicateGroup("b" * 64, 4, [root / "b1", root / "b2"]),
    ]


class TestSelectMode:
    """Tests for action mode precedence."""

    def test_no_flags(self) -> None:
        assert select_mode() is DispositionMode.NONE

    def test_dry_run_beats_everything(self) -> None:
        assert select_mode(True, True, True) is DispositionMode.DRY_RUN
        assert select_mode(dry_run=True, auto_delete=True) is DispositionMode.DRY_RUN

    def test_interactive_beats_auto_delete(self) -> None:
        assert (
            select_mode(interactive=True, auto_delete=True)
            is DispositionMode.INTERACTIVE
        )

    def test_auto_delete(self) -> None:
        assert select_mode(auto_delete=True) is DispositionMode.AUTO_DELETE


class TestReport:
    """Tests for report generation."""

    def test_format(self) -> None:
        groups = [
            DuplicateGroup("h1", 1, [Path("x/a"), Path("x/b")]),
            DuplicateGroup("h2", 1, [Path("c"), Path("d"), Path("e")]),
        ]

        assert DuplicateResolver.format_report(groups) == (
            "Duplicate Group 1:\n"
            "  x/a\n"
            "  x/b\n"
            "\n"
            "Duplicate Group 2:\n"
            "  c\n"
            "  d\n"
            "  e\n"
            "\n"
        )

    def test_report_written_with_other_modes(self, tree: Path) -> None:
        report = tree / "out.txt"
        resolver = DuplicateResolver(auto_delete=True, report_path=report)

        summary = resolver.resolve(groups_for(tree))

        text = report.read_text()
        assert text.count("Duplicate Group") == 2
        assert f"  {tree / 'a2'}\n" in text
        assert summary.report_path == report
        # Report lists the full groups even though duplicates were deleted after
        assert not (tree / "a2").exists()

    def test_empty_report_when_no_groups(self, tree: Path, capsys) -> None:
        report = tree / "out.txt"

        summary = DuplicateResolver(report_path=report).resolve([])

        assert report.read_text() == ""
        assert summary.report_path == report
        assert summary.group_count == 0
        assert "No duplicate files found." in capsys.readouterr().out

    def test_report_write_error_does_not_stop_run(self, tree: Path, capsys) -> None:
        report = tree / "missing-dir" / "out.txt"
        resolver = DuplicateResolver(auto_delete=True, report_path=report)

        summary = resolver.resolve(groups_for(tree))

        assert summary.report_path is None
        assert resolver.errors[0].kind is ErrorKind.REPORT_WRITE
        assert "Failed to generate report" in capsys.readouterr().err
        assert len(summary.deleted) == 3


class TestDryRun:
    """Tests for dry-run mode."""

    def test_lists_duplicates_without_deleting(self, tree: Path, capsys) -> None:
        resolver = DuplicateResolver(dry_run=True, auto_delete=True, interactive=True)

        summary = resolver.resolve(groups_for(tree))

        assert summary.mode is DispositionMode.DRY_RUN
        assert summary.group_count == 2
        assert summary.would_delete == [tree / "a2", tree / "a3", tree / "b2"]
        assert summary.deleted == []
        for name in ("a1", "a2", "a3", "b1", "b2"):
            assert (tree / name).exists()
        out = capsys.readouterr().out
        assert "would be deleted" in out
        assert str(tree / "b2") in out


class TestAutoDelete:
    """Tests for auto-delete mode."""

    def test_keeps_original_of_each_group(self, tree: Path) -> None:
        summary = DuplicateResolver(auto_delete=True).resolve(groups_for(tree))

        assert summary.deleted == [tree / "a2", tree / "a3", tree / "b2"]
        assert sorted(p.name for p in tree.iterdir()) == ["a1", "b1"]

    def test_deletion_failure_continues(self, tree: Path, capsys) -> None:
        (tree / "a2").unlink()
        resolver = DuplicateResolver(auto_delete=True)

        summary = resolver.resolve(groups_for(tree))

        assert summary.failed == [tree / "a2"]
        assert summary.deleted == [tree / "a3", tree / "b2"]
        assert resolver.error_count == 1
        assert resolver.errors[0].kind is ErrorKind.DELETION
        assert "Failed to delete" in capsys.readouterr().err


class TestInteractive:
    """Tests for interactive mode."""

    def test_deletes_only_selected(self, tree: Path) -> None:
        provider = ScriptedSelection([{1}, set()])
        resolver = DuplicateResolver(
            interactive=True, auto_delete=True, selection_provider=provider
        )

        summary = resolver.resolve(groups_for(tree))

        assert summary.mode is DispositionMode.INTERACTIVE
        assert summary.deleted == [tree / "a3"]
        assert provider.calls == [
            [str(tree / "a2"), str(tree / "a3")],
            [str(tree / "b2")],
        ]
        assert (tree / "a2").exists()
        assert (tree / "b2").exists()

    def test_out_of_range_indices_ignored(self, tree: Path) -> None:
        provider = ScriptedSelection([{0, 5}, {-1}])
        summary = DuplicateResolver(
            interactive=True, selection_provider=provider
        ).resolve(groups_for(tree))

        assert summary.deleted == [tree / "a2"]

    def test_provider_failure_propagates(self, tree: Path) -> None:
        provider = ScriptedSelection([{0, 1}])
        resolver = DuplicateResolver(interactive=True, selection_provider=provider)

        with pytest.raises(SelectionCancelledError):
            resolver.resolve(groups_for(tree))

        assert resolver.summary.deleted == [tree / "a2", tree / "a3"]
        assert (tree / "b2").exists()

    def test_displays_original_and_indexed_duplicates(
        self, tree: Path, capsys
    ) -> None:
        provider = ScriptedSelection([set(), set()])
        DuplicateResolver(interactive=True, selection_provider=provider).resolve(
            groups_for(tree)
        )

        out = capsys.readouterr().out
        assert f"[1] {tree / 'a2'}" in out
        assert f"[2] {tree / 'a3'}" in out
        assert str(tree / "a1") in out


class TestNoAction:
    """Tests for the no-flags mode."""

    def test_nothing_deleted(self, tree: Path, capsys) -> None:
        summary = DuplicateResolver().resolve(groups_for(tree))

        assert summary.mode is DispositionMode.NONE
        assert summary.group_count == 2
        assert summary.deleted == []
        assert len(list(tree.iterdir())) == 5
        out = capsys.readouterr().out
        assert "No action taken" in out
        assert "Found 2 groups of duplicates." in out


class TestConsoleSelectionProvider:
    """Tests for terminal selection parsing."""

    @staticmethod
    def provider(*answers: str) -> ConsoleSelectionProvider:
        replies = iter(answers)
        return ConsoleSelectionProvider(input_func=lambda prompt: next(replies))

    def test_one_based_numbers(self) -> None:
        assert self.provider("1 3").select(["a", "b", "c"]) == {0, 2}

    def test_commas_accepted(self) -> None:
        assert self.provider("2,3").select(["a", "b", "c"]) == {1, 2}

    def test_empty_means_none(self) -> None:
        assert self.provider("").select(["a"]) == set()

    def test_all(self) -> None:
        assert self.provider("a").select(["a", "b"]) == {0, 1}

    def test_invalid_input_reprompts(self, capsys) -> None:
        assert self.provider("x", "9", "2").select(["a", "b"]) == {1}
        out = capsys.readouterr().out
        assert "separated by spaces or commas" in out
        assert "Invalid input" in out
        assert "Invalid index: 9" in out

    def test_quit_cancels(self) -> None:
        with pytest.raises(SelectionCancelledError):
            self.provider("q").select(["a"])

    def test_eof_cancels(self) -> None:
        def no_input(prompt: str) -> str:
            raise EOFError

        with pytest.raises(SelectionCancelledError):
            ConsoleSelectionProvider(input_func=no_input).select(["a"])
