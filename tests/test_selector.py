"""Tests for the interactive selector"""
import pytest

from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.ui.selector import (
    CANCELLED,
    PENDING,
    SelectorApp,
    SelectorModel,
    TextualSelector,
    describe_worktree,
    filter_task_worktrees,
)


def record(path, branch, **kwargs):
    return WorktreeRecord(path=path, branch=branch, **kwargs)


class TestFilterTaskWorktrees:
    """Test which worktrees are offered for removal."""

    def test_keeps_task_branches_only(self):
        records = [
            record("/src/repo", "main", is_main=True),
            record("/src/repo-1", "1/impl"),
            record("/src/repo-feature", "feature/x"),
            record("/src/repo-2", "2/fix-login"),
            record("/src/repo-3", "3/impl", is_current=True),
            record("/src/repo-d", "", is_detached=True),
        ]
        assert [r.branch for r in filter_task_worktrees(records)] == ["1/impl", "2/fix-login"]

    def test_main_is_never_offered(self):
        assert filter_task_worktrees([record("/src/repo", "5/impl", is_main=True)]) == []

    def test_describe_worktree(self):
        assert describe_worktree(record("/src/repo-1", "1/impl")) == "/src/repo-1 (1/impl)"
        assert describe_worktree(record("/src/repo-1", "1/impl", is_current=True)).endswith("[current]")


class TestSelectorModel:
    """Test cursor movement and outcomes without a terminal."""

    def test_cursor_clamps_at_both_ends(self):
        model = SelectorModel(["a", "b", "c"])
        model.previous()
        assert model.cursor == 0
        for _ in range(5):
            model.next()
        assert model.cursor == 2
        assert model.current == "c"

    def test_select(self):
        model = SelectorModel(["a", "b"])
        assert model.outcome is PENDING
        assert not model.done
        model.next()
        model.select()
        assert model.done
        assert model.result() == "b"

    def test_cancel(self):
        model = SelectorModel(["a"])
        model.cancel()
        assert model.outcome is CANCELLED
        assert model.result() is None

    def test_empty_list(self):
        model = SelectorModel([])
        model.next()
        model.select()
        assert model.current is None
        assert not model.done
        assert model.result() is None


@pytest.mark.asyncio
async def test_app_enter_returns_highlighted_item():
    """j moves down, enter picks."""
    app = SelectorApp("Pick one:", ["first", "second", "third"])
    async with app.run_test() as pilot:
        await pilot.press("j")
        await pilot.press("down")
        await pilot.press("k")
        await pilot.press("enter")
    assert app.return_value == "second"


@pytest.mark.asyncio
async def test_app_quit_returns_none():
    """q cancels."""
    app = SelectorApp("Pick one:", ["first", "second"])
    async with app.run_test() as pilot:
        await pilot.press("down")
        await pilot.press("q")
    assert app.return_value is None
    assert app.model.outcome is CANCELLED


@pytest.mark.asyncio
async def test_app_uses_label():
    """Items are rendered through the label function."""
    records = [record("/src/repo-1", "1/impl")]
    app = SelectorApp("Pick:", records, label=describe_worktree)
    async with app.run_test() as pilot:
        assert "/src/repo-1 (1/impl)" in str(app._render_items())
        await pilot.press("enter")
    assert app.return_value is records[0]


def test_textual_selector_empty_list_returns_none():
    assert TextualSelector().choose("Pick:", []) is None
