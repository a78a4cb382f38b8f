"""Tests for blind spot and action plan grouping."""

from qlarity.coverage.grouping import group_action_plan, group_blind_spots, group_by
from qlarity.models.report import ActionItem, BlindSpot


def spot(reason: str, key: str = "f") -> BlindSpot:
    return BlindSpot(feature_key=key, display_name=key, reason=reason)


class TestGroupBy:
    """Tests for the generic size-ordered grouping."""

    def test_largest_group_first(self):
        groups = group_by(["b", "a", "a", "c", "a", "c"], key=lambda x: x)
        assert [(k, len(v)) for k, v in groups] == [("a", 3), ("c", 2), ("b", 1)]

    def test_ties_keep_first_occurrence_order(self):
        groups = group_by(["y", "x", "z", "x", "y", "z"], key=lambda x: x)
        assert [k for k, _ in groups] == ["y", "x", "z"]

    def test_empty(self):
        assert group_by([], key=lambda x: x) == []


class TestGroupBlindSpots:
    """Tests for grouping blind spots by reason."""

    def test_groups_by_reason(self):
        groups = group_blind_spots([spot("A", "1"), spot("B", "2"), spot("A", "3")])
        assert [k for k, _ in groups] == ["A", "B"]
        assert [s.feature_key for s in groups[0][1]] == ["1", "3"]
        assert len(groups[1][1]) == 1

    def test_reason_match_is_exact(self):
        groups = group_blind_spots([spot("No tests"), spot("no tests"), spot("No tests ")])
        assert len(groups) == 3


class TestGroupActionPlan:
    """Tests for the fixed criticality order."""

    def test_fixed_order_not_size_order(self):
        items = [
            ActionItem(description="l1", criticality="Low"),
            ActionItem(description="l2", criticality="Low"),
            ActionItem(description="l3", criticality="Low"),
            ActionItem(description="h1", criticality="High"),
        ]
        groups = group_action_plan(items)
        assert [k for k, _ in groups] == ["High", "Medium", "Low"]
        assert [i.description for i in groups[0][1]] == ["h1"]
        assert groups[1][1] == []
        assert [i.description for i in groups[2][1]] == ["l1", "l2", "l3"]

    def test_unrecognized_criticality_left_out(self):
        groups = group_action_plan([ActionItem(description="x", criticality="Urgent")])
        assert all(items == [] for _, items in groups)

    def test_accepts_generators(self):
        groups = group_action_plan(ActionItem(description=d, criticality="Medium") for d in "ab")
        assert len(groups[1][1]) == 2
