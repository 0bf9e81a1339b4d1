from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from blood.choices import BLOOD_GROUPS
from blood.exceptions import NotFound
from blood.models import ActionAuditLog, InventoryUnit
from blood.services import audit
from blood.services.access import Actor
from blood.services.storage import guarded_write

logger = logging.getLogger(__name__)


def _low_stock_threshold() -> int:
    return int(getattr(settings, 'INVENTORY_LOW_STOCK_THRESHOLD', 10))


def _expiring_window_days() -> int:
    return int(getattr(settings, 'INVENTORY_EXPIRING_WINDOW_DAYS', 7))


def add_inventory_unit(
    actor: Actor,
    *,
    bloodgroup: str,
    units: int,
    expiry_date: date,
    location: str = 'Main Storage',
) -> InventoryUnit:
    actor.require_admin()
    with guarded_write("add_inventory_unit"), transaction.atomic():
        unit = InventoryUnit.objects.create(
            bloodgroup=bloodgroup,
            units=units,
            expiry_date=expiry_date,
            location=location,
            status=InventoryUnit.STATUS_AVAILABLE,
        )
        audit.record_action(
            actor,
            ActionAuditLog.ACTION_ADD_INVENTORY,
            ActionAuditLog.ENTITY_INVENTORY,
            unit.id,
            status_after=unit.status,
            payload={'bloodgroup': bloodgroup, 'units': units},
        )
    logger.info("Inventory unit %s added: %s x%s expiring %s", unit.id, bloodgroup, units, expiry_date)
    return unit


def update_inventory_status(actor: Actor, unit_id: int, status: str) -> InventoryUnit:
    actor.require_admin()
    if status not in dict(InventoryUnit.STATUS_CHOICES):
        raise ValueError(f"Unknown inventory status: {status}")

    with guarded_write("update_inventory_status"), transaction.atomic():
        try:
            unit = InventoryUnit.objects.select_for_update().get(pk=unit_id)
        except InventoryUnit.DoesNotExist:
            raise NotFound("Inventory unit not found.")
        previous = unit.status
        unit.status = status
        unit.save(update_fields=['status', 'updated_at'])
        audit.record_action(
            actor,
            ActionAuditLog.ACTION_UPDATE_INVENTORY,
            ActionAuditLog.ENTITY_INVENTORY,
            unit.id,
            status_before=previous,
            status_after=status,
        )
    return unit


def inventory_summary(actor: Actor, today: Optional[date] = None) -> dict:
    """Available units per blood group plus the warning counts shown on the inventory tab."""

    actor.require_admin()
    today = today or timezone.localdate()
    threshold = _low_stock_threshold()

    rows = (
        InventoryUnit.objects.filter(status=InventoryUnit.STATUS_AVAILABLE, expiry_date__gte=today)
        .values('bloodgroup')
        .annotate(total=Sum('units'))
    )
    totals = {row['bloodgroup']: int(row['total'] or 0) for row in rows}

    expiring_cutoff = today + timedelta(days=_expiring_window_days())
    expiring_count = (
        InventoryUnit.objects.filter(status=InventoryUnit.STATUS_EXPIRING).count()
        + InventoryUnit.objects.filter(
            status=InventoryUnit.STATUS_AVAILABLE,
            expiry_date__gte=today,
            expiry_date__lte=expiring_cutoff,
        ).count()
    )

    groups = [
        {
            'bloodgroup': bg,
            'units': totals.get(bg, 0),
            'low': totals.get(bg, 0) < threshold,
        }
        for bg in BLOOD_GROUPS
    ]

    return {
        'groups': groups,
        'totals': totals,
        'total_units': sum(totals.values()),
        'available_groups': sum(1 for count in totals.values() if count > 0),
        'expiring_count': expiring_count,
        'low_stock_groups': sum(1 for group in groups if group['low']),
        'low_stock_threshold': threshold,
    }


def mark_expired_units(today: Optional[date] = None) -> int:
    """Flag available or expiring units whose expiry date has passed."""

    today = today or timezone.localdate()
    with guarded_write("mark_expired_units"):
        updated = InventoryUnit.objects.filter(
            status__in=[InventoryUnit.STATUS_AVAILABLE, InventoryUnit.STATUS_EXPIRING],
            expiry_date__lt=today,
        ).update(status=InventoryUnit.STATUS_EXPIRED, updated_at=timezone.now())
    if updated:
        logger.info("Marked %s inventory units as expired", updated)
    return updated
