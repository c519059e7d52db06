"""Stock alert evaluation — pure business logic.

Derives trigger state and severity from an item's quantity and an alert's
threshold.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shelfspot.data.models import Alert, Item


class Severity(Enum):
    OK = "ok"
    LOW = "low"
    OUT = "out"


@dataclass
class TriggeredAlert:
    """An item paired with one of its alerts that currently fires."""

    item: Item
    alert: Alert


def is_triggered(item: Item, alert: Alert) -> bool:
    return alert.is_active and item.quantity <= alert.threshold


def severity(item: Item, alert: Alert) -> Severity:
    """OUT at zero stock, LOW when triggered with stock left, else OK."""
    if item.quantity == 0:
        return Severity.OUT
    if is_triggered(item, alert):
        return Severity.LOW
    return Severity.OK


def _units(quantity: int) -> str:
    return "unit" if quantity == 1 else "units"


def describe(item: Item, alert: Alert) -> str:
    """Deterministic message built only from severity, quantity and threshold."""
    level = severity(item, alert)
    if level is Severity.OUT:
        return f"Out of stock (0 {_units(0)} left, threshold {alert.threshold})"
    if level is Severity.LOW:
        return (
            f"Low stock: {item.quantity} {_units(item.quantity)} left "
            f"(threshold {alert.threshold})"
        )
    return (
        f"Stock OK: {item.quantity} {_units(item.quantity)} "
        f"(threshold {alert.threshold})"
    )


def alert_message(item: Item, alert: Alert) -> str:
    """Alert's own name if set, otherwise a default low-stock line."""
    if alert.name:
        return alert.name
    return f"Low stock: {item.name} ({item.quantity} left)"


def default_alert_name(item: Item, threshold: int) -> str:
    return f"Low stock alert - {item.name} (threshold: {threshold})"


def get_triggered_alerts(items: list[Item]) -> list[TriggeredAlert]:
    """Every (item, alert) pair whose alert currently fires, in input order."""
    return [
        TriggeredAlert(item=item, alert=alert)
        for item in items
        for alert in item.active_alerts
        if is_triggered(item, alert)
    ]


def has_triggered_alerts(item: Item) -> bool:
    return any(is_triggered(item, alert) for alert in item.active_alerts)


def _criticality(triggered: TriggeredAlert) -> float:
    # quantity / threshold; a zero threshold can only fire at zero stock
    if triggered.alert.threshold <= 0:
        return 0.0
    return triggered.item.quantity / triggered.alert.threshold


def sort_by_priority(triggered: list[TriggeredAlert]) -> list[TriggeredAlert]:
    """Most critical first (lowest quantity relative to threshold). Stable."""
    return sorted(triggered, key=_criticality)
