"""Pydantic DTOs (Data Transfer Objects) for the Section feature."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SectionCreate(BaseModel):
    """Schema for creating a new section."""

    name: str = Field(..., min_length=1, max_length=50, examples=["Flash Information"])
    description: str = Field("", max_length=200)
    parent_id: str | None = Field(None, max_length=36)
    icon: str | None = Field(None, max_length=50, examples=["folder"])
    order: int = 0


class SectionUpdate(BaseModel):
    """Schema for updating a section — all fields optional.

    ``parent_id`` distinguishes "absent" from an explicit ``null`` (which
    moves the section to the root) through ``model_fields_set``.
    """

    name: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, max_length=200)
    parent_id: str | None = Field(None, max_length=36)
    icon: str | None = Field(None, max_length=50)
    order: int | None = None
    is_active: bool | None = None


class ReorderRequest(BaseModel):
    direction: str = Field(..., examples=["up", "down"])


class DeleteSectionRequest(BaseModel):
    """Body of a section deletion: the acting user's own email, retyped."""

    model_config = ConfigDict(populate_by_name=True)

    confirm_email: str | None = Field(None, alias="confirmEmail")


class SectionResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    name: str
    slug: str
    description: str
    icon: str
    order: int
    parent_id: str | None
    is_active: bool
    created_by: str
    article_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SectionTreeNode(SectionResponse):
    children: list["SectionTreeNode"] = []


class ArticleCountRebuild(BaseModel):
    sections: int


SectionTreeNode.model_rebuild()
