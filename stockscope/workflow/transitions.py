"""Result types returned by the policy-gated workflows."""

from __future__ import annotations

from dataclasses import dataclass

from stockscope.models.enums import MovementType


@dataclass(frozen=True)
class StockMovement:
    """A stock change the data layer must record alongside the transition."""

    warehouse_id: str
    material_id: str
    type: MovementType
    quantity: float
    description: str


@dataclass(frozen=True)
class Transition:
    """
    Accepted state change of one entity.

    Produced only after every permission and validation check passed; the
    entity itself has already been updated in memory. ``persist_transition``
    writes it out.
    """

    entity_type: str
    entity_id: str
    tenant_id: str
    action: str
    from_state: str
    to_state: str
    details: str = ""
    movements: tuple[StockMovement, ...] = ()
