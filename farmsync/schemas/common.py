"""Shared pydantic base for mirrored entities.

Attribute names are the remote column names (snake_case); aliases are the
camelCase keys used by the local mirror.  ``populate_by_name`` lets one
model parse either shape, which keeps the wire/mirror mapping symmetric.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

SERVER_MANAGED_FIELDS = frozenset({"id", "created_at", "updated_at"})


class MirrorModel(BaseModel):
	model_config = ConfigDict(
		alias_generator=to_camel,
		populate_by_name=True,
		from_attributes=True,
	)


class MirrorEntity(MirrorModel):
	id: str
	created_at: datetime | None = None
	updated_at: datetime | None = None


class OwnedEntity(MirrorEntity):
	user_id: str | None = None
	institution_id: str | None = None
