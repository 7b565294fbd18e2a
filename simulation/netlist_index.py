# simulation/netlist_index.py
"""
Net & Instance Index: Per-session lookup tables.

Maps every pin of the simulated view to the index of its net, and pairs each
simulated instance with its counterpart in the other view. The tables are
built from scratch for one session and discarded with it.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from core.component import ComponentInstance
from core.net import Net
from core.pin import Pin

logger = logging.getLogger(__name__)


class SessionIndex:
    """
    Read-only lookup tables of one simulation session.

    Pins are keyed by identity, so two pins with the same name on different
    parts never collide.
    """

    def __init__(self):
        self.nets: List[Net] = []
        self._net_of_pin: Dict[int, int] = {}
        self._counterpart_by_id: Dict[int, ComponentInstance] = {}

    def add_net(self, pins: Sequence[Pin]) -> Net:
        net = Net(len(self.nets), pins)
        self.nets.append(net)
        for pin in pins:
            self._net_of_pin[id(pin)] = net.index
        return net

    def net_of(self, pin: Pin) -> int:
        """Net index of a pin; unmapped pins read as ground."""
        return self._net_of_pin.get(id(pin), Net.GROUND)

    def is_mapped(self, pin: Pin) -> bool:
        return id(pin) in self._net_of_pin

    def pair(self, first: ComponentInstance, second: ComponentInstance) -> None:
        self._counterpart_by_id[id(first)] = second
        self._counterpart_by_id[id(second)] = first

    def counterpart(self, instance: ComponentInstance) -> Optional[ComponentInstance]:
        """The same part in the other view, or None if it was not matched."""
        return self._counterpart_by_id.get(id(instance))

    def __len__(self) -> int:
        return len(self.nets)


def _identity_key(item: ComponentInstance):
    if item.instance_id is not None:
        return ("id", item.instance_id)
    return ("title", item.title)


def build_session_index(nets: Sequence[Sequence[Pin]],
                        instances: Iterable[ComponentInstance],
                        other_view_items: Iterable[ComponentInstance]) -> SessionIndex:
    """
    Builds the index of one session.

    Args:
        nets: Pin equivalence classes; the position is the net index.
        instances: Simulated instances of the netlist view.
        other_view_items: Every item of the other view.

    Returns:
        SessionIndex: Net map plus the bidirectional counterpart table.
    """
    index = SessionIndex()
    for pins in nets:
        index.add_net(pins)

    table: Dict[tuple, ComponentInstance] = {}
    for item in other_view_items:
        if item.role.is_structural:
            continue
        table.setdefault(_identity_key(item), item)

    for instance in instances:
        other = table.get(_identity_key(instance))
        if other is None:
            logger.debug("No counterpart found for %s", instance.title)
            continue
        index.pair(instance, other)

    return index
