"""User model."""

from typing import Any, List, Mapping, Optional

from fluentrecords.adapters.filtering import loose_equal
from fluentrecords.context import ModelContext
from fluentrecords.models.attributes import FieldValue
from fluentrecords.models.base import BaseModel
from fluentrecords.queries.scopes import scope
from fluentrecords.queries.user_query import UserQuery
from fluentrecords.relations.resolvers import GroupResolver
from fluentrecords.utils.logging import get_logger

logger = get_logger(__name__)


class UserModel(BaseModel):
    """
    A user account.

    Group memberships live under ``GROUP_ID`` (also readable as
    ``user.groups``); ``GROUPS`` mirrors them for older callers and is never
    written back.
    """

    entity = "user"
    query_class = UserQuery
    relations = {"groups": GroupResolver()}
    field_aliases = {"groups": "GROUP_ID"}
    save_blacklist = ("ID", "GROUPS")

    @classmethod
    def current(cls, context: ModelContext, fields: Optional[Mapping[str, FieldValue]] = None) -> "UserModel":
        """Model for the user the context runs as (id None when anonymous)."""
        return cls(context, context.caller.user_id, fields)

    @scope
    def from_group(query, group_ids):
        ids = list(group_ids) if isinstance(group_ids, (list, tuple, set)) else [group_ids]
        if not ids:
            logger.debug("from_group called with no groups, stopping query")
            return query.stop_query()
        return query.filter({"GROUPS_ID": ids})

    @scope
    def active(query):
        return query.filter({"ACTIVE": "Y"})

    def get_groups(self) -> List[Any]:
        """Group ids of the user (cached)."""
        return self.get_related("groups")

    def refresh_groups(self) -> List[Any]:
        return self.refresh_related("groups")

    def is_current(self) -> bool:
        return GroupResolver.is_current(self)

    def is_authorized(self) -> bool:
        return self.is_current() and self.context.caller.authorized

    def has_role_with_id(self, role_id: Any) -> bool:
        return any(loose_equal(group_id, role_id) for group_id in self.get_groups())

    def is_admin(self) -> bool:
        return self.has_role_with_id(self.context.admin_group_id)
