"""Tests for grouping and ordering of form fields."""

from stickyforms.core.models import NormalizedParameter
from stickyforms.metadata.grouping import group_and_sort, group_label, sorted_parameters


def param(name: str, group: str = "default", order: int = 0) -> NormalizedParameter:
    return NormalizedParameter(name=name, type="text", label=name.upper(), group=group, order=order)


class TestGroupAndSort:
    def test_ties_keep_input_order(self) -> None:
        groups = group_and_sort([param("b", "g", 2), param("a", "g", 1), param("c", "g", 1)])

        assert len(groups) == 1
        assert [p.name for p in groups[0].parameters] == ["a", "c", "b"]

    def test_groups_in_first_seen_order(self) -> None:
        groups = group_and_sort([param("x", "Datos"), param("y"), param("z", "Datos")])

        assert [g.name for g in groups] == ["Datos", "default"]
        assert [p.name for p in groups[0].parameters] == ["x", "z"]

    def test_default_group_label(self) -> None:
        groups = group_and_sort([param("x"), param("y", "Envío")])

        assert groups[0].is_default is True
        assert groups[0].label == "Parámetros"
        assert groups[1].label == "Envío"
        assert group_label("Envío") == "Envío"

    def test_negative_order_sorts_first(self) -> None:
        groups = group_and_sort([param("a", order=0), param("b", order=-1)])
        assert [p.name for p in groups[0].parameters] == ["b", "a"]

    def test_empty(self) -> None:
        assert group_and_sort([]) == []


class TestSortedParameters:
    def test_flattens_in_render_order(self) -> None:
        params = [param("b", "g", 2), param("d"), param("a", "g", 1)]
        assert [p.name for p in sorted_parameters(params)] == ["a", "b", "d"]
