from django.contrib.auth.models import AnonymousUser, User
from django.test import TestCase

from blood.exceptions import Forbidden, Unauthenticated
from blood.services.access import ROLE_ADMIN, ROLE_USER, Actor, resolve_actor


class ActorResolutionTests(TestCase):
	def test_anonymous_user_fails_closed(self):
		with self.assertRaises(Unauthenticated):
			resolve_actor(AnonymousUser())
		with self.assertRaises(Unauthenticated):
			resolve_actor(None)

	def test_superuser_resolves_to_admin(self):
		admin = User.objects.create_superuser("root", "root@example.com", "pass1234")
		actor = resolve_actor(admin)
		self.assertEqual(actor.role, ROLE_ADMIN)
		self.assertEqual(actor.user_id, admin.pk)
		self.assertTrue(actor.is_admin)

	def test_regular_user_resolves_to_user(self):
		donor = User.objects.create_user("donor", password="pass1234")
		actor = resolve_actor(donor)
		self.assertEqual(actor.role, ROLE_USER)
		self.assertFalse(actor.is_admin)


class ActorCapabilityTests(TestCase):
	def test_user_may_only_act_for_themselves(self):
		actor = Actor(user_id=7, role=ROLE_USER)
		self.assertTrue(actor.can_act_for(7))
		self.assertFalse(actor.can_act_for(8))
		actor.require_owner_or_admin(7)
		with self.assertRaises(Forbidden):
			actor.require_owner_or_admin(8)
		with self.assertRaises(Forbidden):
			actor.require_admin()

	def test_admin_may_act_for_anyone(self):
		actor = Actor(user_id=1, role=ROLE_ADMIN)
		self.assertTrue(actor.can_act_for(99))
		self.assertIs(actor.require_admin(), actor)
