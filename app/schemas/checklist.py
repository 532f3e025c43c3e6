from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

COMMENTS_CATEGORY_ID = "comments"


class ChecklistStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    UNSET = "unset"


class ChecklistItemState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ChecklistStatus = ChecklistStatus.UNSET
    comment: str = ""

    @field_validator('status', mode='before')
    def null_is_unset(cls, v):
        # Older payloads encode "not answered" as null
        return ChecklistStatus.UNSET if v is None else v

    @field_validator('comment', mode='before')
    def null_comment(cls, v):
        return "" if v is None else v


class ChecklistItemPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[ChecklistStatus] = None
    comment: Optional[str] = None


# category id -> item id -> state, in definition order
ChecklistTree = Dict[str, Dict[str, ChecklistItemState]]


class ChecklistItemDefinition(BaseModel):
    id: str = Field(..., min_length=1)
    label: str


class ChecklistCategoryDefinition(BaseModel):
    id: str = Field(..., min_length=1)
    label: str
    items: List[ChecklistItemDefinition] = Field(default_factory=list)

    @property
    def is_comments(self) -> bool:
        return self.id == COMMENTS_CATEGORY_ID

    @field_validator('items')
    def unique_item_ids(cls, v):
        ids = [item.id for item in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Item ids must be unique within a category")
        return v


class ChecklistDefinition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    categories: List[ChecklistCategoryDefinition]
    inspection_types: List[str] = Field(..., alias="inspectionTypes", min_length=1)

    @field_validator('categories')
    def unique_category_ids(cls, v):
        ids = [category.id for category in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Category ids must be unique")
        return v

    def checklist_categories(self) -> List[ChecklistCategoryDefinition]:
        """Categories that carry pass/fail items (the comments category is free text)."""
        return [category for category in self.categories if not category.is_comments]
