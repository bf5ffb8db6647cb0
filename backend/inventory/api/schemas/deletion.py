"""Result types reported by the product deletion workflow.

``DeletionCheck`` answers "may this product be hard deleted?" and is
computed fresh on every call. ``DeletionOutcome`` is the tagged result of
an actual deletion attempt; ``status`` says which branch was taken so
callers never have to parse ``message``.
"""

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class BlockingTable(BaseModel):
    """A dependent table holding rows that reference the product."""

    table_name: str
    row_count: int = Field(..., gt=0)
    description: str


class DeletionStatus(str, Enum):
    DELETED = "deleted"
    DEACTIVATED = "deactivated"
    NOT_FOUND = "not_found"
    BLOCKED = "blocked"
    CONSTRAINT_VIOLATION = "constraint_violation"
    ERROR = "error"


class DeletionCheck(BaseModel):
    can_delete: bool
    reason: str = ""
    blocking_tables: list[BlockingTable] = Field(default_factory=list)
    # Why the delete is refused; None when it may proceed. Not serialized.
    refusal: DeletionStatus | None = Field(None, exclude=True)


class DeletionOutcome(BaseModel):
    status: DeletionStatus
    message: str
    blocking_tables: list[BlockingTable] = Field(default_factory=list)

    @computed_field
    @property
    def success(self) -> bool:
        return self.status in (DeletionStatus.DELETED, DeletionStatus.DEACTIVATED)
