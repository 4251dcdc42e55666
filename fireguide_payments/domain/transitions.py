"""Validación genérica de transiciones de estado."""

from collections.abc import Mapping
from enum import Enum
from typing import TypeVar

from fireguide_payments.domain.errors import InvalidStateError

S = TypeVar("S", bound=Enum)


def can_transition(allowed: Mapping[S, frozenset[S]], current: S, target: S) -> bool:
    return target in allowed.get(current, frozenset())


def assert_transition(
    entity: str,
    allowed: Mapping[S, frozenset[S]],
    current: S,
    target: S,
    operation: str,
) -> None:
    """
    Verifica que la transición current -> target esté permitida.

    Raises:
        InvalidStateError: Con los estados desde los que target es alcanzable.
    """
    if can_transition(allowed, current, target):
        return
    sources = sorted(state.value for state, targets in allowed.items() if target in targets)
    raise InvalidStateError(
        entity=entity,
        current_status=current.value,
        expected_status=sources or "ninguno",
        operation=operation,
    )
