from datetime import date, timedelta

from django.contrib.auth.models import User
from django.test import TestCase, override_settings

from blood.exceptions import Forbidden, NotFound
from blood.models import ActionAuditLog, InventoryUnit
from blood.services import inventory
from blood.services.access import ROLE_ADMIN, ROLE_USER, Actor
from blood.tasks import expire_inventory_units

TODAY = date(2024, 3, 1)


@override_settings(INVENTORY_LOW_STOCK_THRESHOLD=10, INVENTORY_EXPIRING_WINDOW_DAYS=7)
class InventoryServiceTests(TestCase):
    def setUp(self):
        admin = User.objects.create_superuser("admin", "admin@example.com", "pass1234")
        self.actor = Actor(user_id=admin.pk, role=ROLE_ADMIN)

    def _unit(self, bloodgroup, units, days_left, status=InventoryUnit.STATUS_AVAILABLE):
        return InventoryUnit.objects.create(
            bloodgroup=bloodgroup,
            units=units,
            expiry_date=TODAY + timedelta(days=days_left),
            status=status,
        )

    def test_summary_counts_available_units(self):
        self._unit("O+", 8, 20)
        self._unit("O+", 6, 3)
        self._unit("A-", 4, 30)
        self._unit("B+", 50, -1)
        self._unit("AB+", 30, 30, status=InventoryUnit.STATUS_USED)

        summary = inventory.inventory_summary(self.actor, today=TODAY)

        self.assertEqual(summary["totals"], {"O+": 14, "A-": 4})
        self.assertEqual(summary["total_units"], 18)
        self.assertEqual(summary["available_groups"], 2)
        self.assertEqual(summary["expiring_count"], 1)
        # Every group except O+ sits under the threshold
        self.assertEqual(summary["low_stock_groups"], 7)
        o_pos = next(row for row in summary["groups"] if row["bloodgroup"] == "O+")
        self.assertFalse(o_pos["low"])

    def test_add_unit_writes_audit_row(self):
        unit = inventory.add_inventory_unit(
            self.actor, bloodgroup="A+", units=5, expiry_date=TODAY + timedelta(days=35)
        )
        self.assertEqual(unit.status, InventoryUnit.STATUS_AVAILABLE)
        log = ActionAuditLog.objects.get()
        self.assertEqual(log.action, ActionAuditLog.ACTION_ADD_INVENTORY)
        self.assertEqual(log.entity_id, unit.id)
        self.assertEqual(log.payload, {"bloodgroup": "A+", "units": 5})

    def test_update_status(self):
        unit = self._unit("O-", 3, 10)
        inventory.update_inventory_status(self.actor, unit.id, InventoryUnit.STATUS_USED)
        unit.refresh_from_db()
        self.assertEqual(unit.status, InventoryUnit.STATUS_USED)

        with self.assertRaises(ValueError):
            inventory.update_inventory_status(self.actor, unit.id, "melted")
        with self.assertRaises(NotFound):
            inventory.update_inventory_status(self.actor, 9999, InventoryUnit.STATUS_USED)

    def test_donor_cannot_touch_inventory(self):
        donor = Actor(user_id=self.actor.user_id + 1, role=ROLE_USER)
        with self.assertRaises(Forbidden):
            inventory.inventory_summary(donor, today=TODAY)
        with self.assertRaises(Forbidden):
            inventory.add_inventory_unit(donor, bloodgroup="A+", units=1, expiry_date=TODAY)

    def test_mark_expired_units(self):
        stale = self._unit("A+", 2, -2)
        fresh = self._unit("A+", 2, 2)
        used = self._unit("A+", 2, -2, status=InventoryUnit.STATUS_USED)

        self.assertEqual(inventory.mark_expired_units(today=TODAY), 1)
        stale.refresh_from_db()
        fresh.refresh_from_db()
        used.refresh_from_db()
        self.assertEqual(stale.status, InventoryUnit.STATUS_EXPIRED)
        self.assertEqual(fresh.status, InventoryUnit.STATUS_AVAILABLE)
        self.assertEqual(used.status, InventoryUnit.STATUS_USED)

    def test_expire_task_uses_current_date(self):
        self._unit("B-", 1, -400)
        self.assertEqual(expire_inventory_units(), 1)
