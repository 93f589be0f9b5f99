from typing import TYPE_CHECKING, Dict, List, Optional

from fluentrecords.queries.base import BaseQuery

if TYPE_CHECKING:
    from fluentrecords.models.user import UserModel


class UserQuery(BaseQuery):
    """
    Query for users.

    Group filters may use GROUPS, GROUP_ID or GROUPS_ID; all of them reach
    the adapter as GROUPS_ID. Selecting any of those names loads each
    user's groups.
    """

    default_sort: Dict[str, str] = {"LAST_NAME": "ASC"}
    standard_fields: List[str] = [
        "ID",
        "LOGIN",
        "EMAIL",
        "NAME",
        "LAST_NAME",
        "SECOND_NAME",
        "ACTIVE",
        "DATE_REGISTER",
        "LAST_LOGIN",
        "PERSONAL_PHONE",
        "WORK_COMPANY",
        "WORK_POSITION",
        "XML_ID",
        "LID",
        "TIMESTAMP_X",
    ]
    filter_aliases: Dict[str, str] = {
        "GROUPS": "GROUPS_ID",
        "GROUP_ID": "GROUPS_ID",
    }
    props_wildcard = "UF_*"
    relation_select_fields: Dict[str, str] = {
        "GROUPS": "groups",
        "GROUP_ID": "groups",
        "GROUPS_ID": "groups",
    }

    def get_by_login(self, login: str) -> Optional["UserModel"]:
        """First user whose login matches exactly."""
        self.filter({"LOGIN_EQUAL_EXACT": login})
        return self.first()

    def get_by_email(self, email: str) -> Optional["UserModel"]:
        self.filter({"EMAIL": email})
        return self.first()
