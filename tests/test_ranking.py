"""
Tests for ranking and truncation.
"""

from clinicmatch.ranking import rank

from conftest import make_scored


class TestRank:
    """Highest score first, two per room at most."""

    def test_orders_by_score_descending(self):
        scored = [make_scored("A", 10), make_scored("B", 30), make_scored("C", 20)]
        ranked = rank(scored, capacity=5)
        assert [sc.candidate.last_name for sc in ranked] == ["B", "C", "A"]

    def test_ties_keep_signup_order(self):
        scored = [make_scored("A", 5), make_scored("B", 9), make_scored("C", 5), make_scored("D", 5)]
        ranked = rank(scored, capacity=5)
        assert [sc.candidate.last_name for sc in ranked] == ["B", "A", "C", "D"]

    def test_truncates_to_twice_capacity(self):
        scored = [make_scored(str(i), i) for i in range(10)]
        for capacity in range(0, 7):
            assert len(rank(scored, capacity)) == min(10, 2 * capacity)

    def test_negative_capacity_is_empty(self):
        assert rank([make_scored("A", 1)], capacity=-2) == []

    def test_empty_pool(self):
        assert rank([], capacity=3) == []

    def test_does_not_mutate_input(self):
        scored = [make_scored("A", 1), make_scored("B", 2)]
        rank(scored, capacity=1)
        assert [sc.candidate.last_name for sc in scored] == ["A", "B"]
