"""Partition normalized parameters into display groups."""

from collections.abc import Iterable

from stickyforms.core.models import DEFAULT_GROUP, DEFAULT_GROUP_LABEL, NormalizedParameter, ParameterGroup


def group_label(group_name: str) -> str:
    """Heading for a group; the default group gets a generic label."""
    return DEFAULT_GROUP_LABEL if group_name == DEFAULT_GROUP else group_name


def group_and_sort(parameters: Iterable[NormalizedParameter]) -> list[ParameterGroup]:
    """Group parameters by ``group`` and order each group by ``order``.

    Groups appear in the order their first member appears. Within a group,
    members with equal ``order`` keep their input order (sorted() is stable).

    Examples:
        >>> groups = group_and_sort(params)  # b(order 2), a(order 1), c(order 1)
        >>> [p.name for p in groups[0].parameters]
        ['a', 'c', 'b']
    """
    members: dict[str, list[NormalizedParameter]] = {}
    for parameter in parameters:
        members.setdefault(parameter.group, []).append(parameter)

    return [
        ParameterGroup(
            name=name,
            label=group_label(name),
            parameters=sorted(group, key=lambda p: p.order),
        )
        for name, group in members.items()
    ]


def sorted_parameters(parameters: Iterable[NormalizedParameter]) -> list[NormalizedParameter]:
    """Flatten group_and_sort back into a single render-ordered list."""
    return [parameter for group in group_and_sort(parameters) for parameter in group.parameters]
