"""Acting user/institution context resolution."""

from __future__ import annotations

from dataclasses import dataclass

from farmsync.remote.base import RemoteClient


class AuthorizationError(PermissionError):
	"""No authenticated user, or the user has no institution context."""

	def __init__(self, code: str, detail: str):
		super().__init__(detail)
		self.code = code
		self.detail = detail


@dataclass(frozen=True, slots=True)
class ActingContext:
	user_id: str
	institution_id: str


async def resolve_acting_context(remote: RemoteClient) -> ActingContext:
	"""Resolve the current user and their institution once per top-level call."""
	user = await remote.current_user()
	if user is None:
		raise AuthorizationError(code="auth_required", detail="User must be authenticated")

	rows = await remote.query("user_profiles", {"id": user["id"]})
	institution_id = rows[0].get("institution_id") if rows else None
	if not institution_id:
		raise AuthorizationError(
			code="institution_missing",
			detail="User must belong to an institution",
		)
	return ActingContext(user_id=str(user["id"]), institution_id=str(institution_id))
