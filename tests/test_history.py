"""Unit tests for the versioned list, edit history and shortcut resolution."""
import pytest
from hypothesis import given
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from nexus.history import (
    Adjustments,
    EditHistory,
    EditState,
    HistoryAction,
    VersionedList,
    resolve_shortcut,
)

operations = st.lists(
    st.one_of(
        st.tuples(st.just("push"), st.integers()),
        st.tuples(st.just("undo"), st.none()),
        st.tuples(st.just("redo"), st.none()),
    ),
    max_size=40,
)


class TestVersionedList:
    """Tests for VersionedList cursor semantics."""

    def test_empty_list(self):
        """Test that an empty list has cursor -1 and no current entry."""
        versions: VersionedList[str] = VersionedList()

        assert versions.cursor == -1
        assert versions.current is None
        assert not versions.can_undo
        assert not versions.can_redo
        assert len(versions) == 0
        assert not versions

    def test_initial_entries_put_cursor_at_tail(self):
        """Test that seeding with entries points the cursor at the last one."""
        versions = VersionedList(["A", "B", "C"])

        assert versions.cursor == 2
        assert versions.current == "C"

    def test_push_moves_cursor_to_new_entry(self):
        """Test that push appends and selects the new entry."""
        versions: VersionedList[str] = VersionedList()
        versions.push("A")
        versions.push("B")

        assert versions.entries == ["A", "B"]
        assert versions.cursor == 1

    def test_push_discards_forward_branch(self):
        """Test that pushing after undo drops every entry after the cursor."""
        versions = VersionedList(["A", "B", "C", "D"])
        versions.undo()
        versions.undo()
        assert versions.cursor == 1

        versions.push("E")

        assert versions.entries == ["A", "B", "E"]
        assert versions.cursor == 2
        assert not versions.can_redo

    def test_undo_at_first_entry_is_noop(self):
        """Test that undo at the first entry returns None and keeps the cursor."""
        versions = VersionedList(["A"])

        assert versions.undo() is None
        assert versions.cursor == 0

    def test_redo_at_last_entry_is_noop(self):
        """Test that redo at the tail returns None and keeps the cursor."""
        versions = VersionedList(["A", "B"])

        assert versions.redo() is None
        assert versions.cursor == 1

    def test_undo_then_redo(self):
        """Test stepping back and forward returns the neighbouring entries."""
        versions = VersionedList(["A", "B", "C"])

        assert versions.undo() == "B"
        assert versions.undo() == "A"
        assert versions.redo() == "B"
        assert versions.current == "B"

    def test_entries_is_a_copy(self):
        """Test that mutating the returned entries does not touch the list."""
        versions = VersionedList(["A"])
        versions.entries.append("B")

        assert len(versions) == 1

    def test_reset_and_clear(self):
        """Test that reset seeds a single entry and clear empties the list."""
        versions = VersionedList(["A", "B"])
        versions.reset("Z")

        assert versions.entries == ["Z"]
        assert versions.cursor == 0

        versions.clear()
        assert versions.cursor == -1
        assert versions.current is None

    @given(operations)
    def test_cursor_invariant_holds(self, ops):
        """Property test: the cursor is -1 iff empty, otherwise within bounds."""
        versions: VersionedList[int] = VersionedList()
        for name, value in ops:
            if name == "push":
                versions.push(value)
            else:
                getattr(versions, name)()

            if len(versions) == 0:
                assert versions.cursor == -1
            else:
                assert 0 <= versions.cursor < len(versions)
            assert versions.can_undo == (versions.cursor > 0)
            assert versions.can_redo == (versions.cursor < len(versions) - 1)

    @given(st.lists(st.integers(), min_size=2, max_size=20), st.data())
    def test_undo_then_redo_restores_current(self, items, data):
        """Property test: an undo followed by a redo returns to the same entry."""
        versions = VersionedList(items)
        steps = data.draw(st.integers(min_value=0, max_value=len(items) - 2))
        for _ in range(steps):
            versions.undo()

        before = (versions.cursor, versions.current)
        assert versions.undo() is not None
        versions.redo()

        assert (versions.cursor, versions.current) == before

    @given(st.lists(st.integers(), min_size=1, max_size=20), st.integers())
    def test_push_after_undo_truncates(self, items, value):
        """Property test: push after an undo replaces the forward branch."""
        versions = VersionedList(items)
        versions.undo()
        cursor = versions.cursor

        versions.push(value)

        assert versions.entries == items[: cursor + 1] + [value]
        assert versions.current == value


class TestEditHistory:
    """Tests for the editor's history stack."""

    def test_holds_edit_states(self):
        """Test that edit states keep their adjustments through undo."""
        history = EditHistory()
        base = EditState(result="data:image/png;base64,AAAA", prompt="sketch")
        history.push(base)
        history.push(base.with_adjustments(Adjustments(brightness=150)))

        restored = history.undo()

        assert restored == base
        assert restored.adjustments == Adjustments()

    def test_unavailable_navigation_returns_none(self):
        """Test that undo and redo on an empty history return None."""
        history = EditHistory()

        assert history.undo() is None
        assert history.redo() is None


class TestAdjustments:
    """Tests for adjustment parameters."""

    def test_defaults(self):
        """Test the neutral parameter values."""
        adjustments = Adjustments()

        assert adjustments.intensity == 100
        assert adjustments.brightness == 100
        assert adjustments.contrast == 100
        assert adjustments.saturation == 100
        assert adjustments.sepia == 0

    def test_css_filter(self):
        """Test the filter string built from the parameters."""
        adjustments = Adjustments(brightness=120, sepia=30)

        assert adjustments.css_filter() == "brightness(120%) contrast(100%) saturate(100%) sepia(30%)"

    @pytest.mark.parametrize("field,value", [
        ("intensity", 101),
        ("brightness", 201),
        ("sepia", -1),
    ])
    def test_out_of_range_fails(self, field, value):
        """Test that values outside their range fail validation."""
        with pytest.raises(ValueError):
            Adjustments(**{field: value})


class TestShortcuts:
    """Tests for undo/redo shortcut resolution."""

    @pytest.mark.parametrize("key,action", [
        ("ctrl+z", HistoryAction.UNDO),
        ("meta+z", HistoryAction.UNDO),
        ("cmd+Z", HistoryAction.UNDO),
        ("ctrl+shift+z", HistoryAction.REDO),
        ("meta+shift+z", HistoryAction.REDO),
        ("ctrl+y", HistoryAction.REDO),
        ("ctrl-y", HistoryAction.REDO),
    ])
    def test_history_shortcuts(self, key, action):
        """Test that modifier combinations map to undo and redo."""
        assert resolve_shortcut(key) is action

    @pytest.mark.parametrize("key", ["z", "shift+z", "y", "ctrl+x", "ctrl", "", "alt+z"])
    def test_other_keys_ignored(self, key):
        """Test that keys without a history meaning resolve to None."""
        assert resolve_shortcut(key) is None


class VersionedListMachine(RuleBasedStateMachine):
    """Stateful test: VersionedList tracks a model list and cursor."""

    def __init__(self):
        super().__init__()
        self.versions: VersionedList[int] = VersionedList()
        self.model: list[int] = []
        self.cursor = -1

    @rule(value=st.integers())
    def push(self, value):
        self.versions.push(value)
        self.model = self.model[: self.cursor + 1] + [value]
        self.cursor = len(self.model) - 1

    @rule()
    def undo(self):
        result = self.versions.undo()
        if self.cursor > 0:
            self.cursor -= 1
            assert result == self.model[self.cursor]
        else:
            assert result is None

    @rule()
    def redo(self):
        result = self.versions.redo()
        if self.cursor < len(self.model) - 1:
            self.cursor += 1
            assert result == self.model[self.cursor]
        else:
            assert result is None

    @invariant()
    def matches_model(self):
        assert self.versions.entries == self.model
        assert self.versions.cursor == self.cursor


TestVersionedListStateful = VersionedListMachine.TestCase
