"""Adapter contract between the model core and a legacy data source."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

Record = Dict[str, Any]


class Page(BaseModel):
    """Pagination descriptor passed to ``list_records``."""

    size: Optional[int] = Field(default=None, description="Rows per page, None for unlimited")
    number: int = Field(default=1, ge=1, description="1-based page number")

    @property
    def offset(self) -> int:
        if not self.size:
            return 0
        return (self.number - 1) * self.size


class CreateResult(BaseModel):
    """Outcome of an adapter create call."""

    id: Optional[Any] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.id is not None and self.error is None


class DataAdapter(ABC):
    """
    Operations the core requires from an external data source.

    Raw records are plain dicts keyed by upper-case field names. Adapters
    raise their own exceptions for connectivity, malformed filters or
    permission problems; the core never catches them.
    """

    @abstractmethod
    def list_records(
        self,
        filter: Dict[str, Any],
        sort: Dict[str, str],
        select: List[str],
        navigation: Optional[Page] = None,
    ) -> List[Record]:
        """
        List raw records.

        Args:
            filter: Field or operator-qualified key -> value
            sort: Ordered field -> ASC/DESC mapping
            select: Fields to include; may contain "PROPERTY_*" / "UF_*" wildcards
            navigation: Optional page descriptor

        Returns:
            Raw records in sort order
        """

    @abstractmethod
    def fetch_by_id(self, id: Any) -> Optional[Record]:
        """Fetch one raw record by primary key, or None when missing."""

    @abstractmethod
    def count(self, filter: Dict[str, Any]) -> int:
        """Count records matching ``filter``."""

    @abstractmethod
    def create(self, fields: Record) -> CreateResult:
        """Create a record and report the new id or a diagnostic message."""

    @abstractmethod
    def update(self, id: Any, fields: Record) -> bool:
        """Write ``fields`` onto an existing record."""

    def fetch_related_group(self, id: Any) -> List[Any]:
        """Group/membership ids of the entity ``id``."""
        raise NotImplementedError(f"{type(self).__name__} has no group relation")

    def fetch_related_hierarchy(self, id: Any, ids_only: bool = True) -> Union[List[Any], List[Record]]:
        """Tree containers (sections) the entity ``id`` belongs to."""
        raise NotImplementedError(f"{type(self).__name__} has no hierarchy relation")

    def update_properties(self, id: Any, values: Dict[str, Any], only_selected: bool = False) -> bool:
        """
        Write custom property values.

        With ``only_selected`` false the given values replace the whole
        property set; otherwise only the listed codes are touched.
        """
        raise NotImplementedError(f"{type(self).__name__} does not store properties")
