"""Capability checks shared by every LifeDrop operation.

Views resolve the request user into an :class:`Actor` once; services only
ever see the actor and ask it what it may do.
"""

from __future__ import annotations

from dataclasses import dataclass

from blood.exceptions import Forbidden, Unauthenticated

ROLE_ADMIN = "admin"
ROLE_USER = "user"

DONOR_GROUP = "DONOR"


@dataclass(frozen=True)
class Actor:
	user_id: int
	role: str
	username: str = ""

	@property
	def is_admin(self) -> bool:
		return self.role == ROLE_ADMIN

	def can_act_for(self, user_id: int) -> bool:
		return self.is_admin or self.user_id == user_id

	def require_admin(self) -> "Actor":
		if not self.is_admin:
			raise Forbidden("Unauthorized: admin access required.")
		return self

	def require_owner_or_admin(self, user_id: int) -> "Actor":
		if not self.can_act_for(user_id):
			raise Forbidden()
		return self


def role_for(user) -> str:
	return ROLE_ADMIN if getattr(user, "is_superuser", False) else ROLE_USER


def resolve_actor(user) -> Actor:
	"""Turn a Django user into an :class:`Actor`; anonymous users fail closed."""

	if user is None or not getattr(user, "is_authenticated", False):
		raise Unauthenticated()
	return Actor(user_id=user.pk, role=role_for(user), username=user.get_username())
