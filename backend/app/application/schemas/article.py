"""Pydantic DTOs (Data Transfer Objects) for the Article feature."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from app.domain.expiration import TemporaryDuration


class ArticleFileSchema(BaseModel):
    """Attachment metadata as produced by the upload middleware."""

    originalname: str
    filename: str
    path: str
    mimetype: str

    model_config = {"from_attributes": True}


class ArticleFileUpload(ArticleFileSchema):
    """Attachment metadata accepted from clients; the stored name must be a plain filename."""

    @field_validator("filename")
    @classmethod
    def _plain_filename(cls, value: str) -> str:
        # Stored names live directly under the upload directory
        if not value or "/" in value or "\\" in value or ".." in value:
            raise ValueError("filename must be a plain name without path separators or '..'")
        return value


class ArticleCreate(BaseModel):
    """Schema for creating a new article."""

    title: str = Field(..., min_length=1, max_length=200, examples=["Getting Started"])
    content: str = Field(..., min_length=1, examples=["This is a knowledge base article."])
    section_ids: list[str] = Field(default_factory=list)
    tags: list[str] | str | None = Field(None, examples=[["vpn", "remote access"]])
    files: list[ArticleFileUpload] = Field(default_factory=list)
    temporary_duration: str | None = Field(None, examples=["72h", "1w", "1m"])


class ArticleUpdate(BaseModel):
    """Schema for updating an existing article — all fields optional."""

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    section_ids: list[str] | None = None
    tags: list[str] | str | None = None
    files: list[ArticleFileUpload] | None = None
    temporary_duration: str | None = None
    is_temporary: bool | None = None


class AutoTagsUpdate(BaseModel):
    tags: list[str]


class ArticleViewSchema(BaseModel):
    user_id: str
    timestamp: datetime

    model_config = {"from_attributes": True}


class ArticleReadSchema(BaseModel):
    user_id: str
    read_at: datetime

    model_config = {"from_attributes": True}


class ArticleResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    article_id: str | None
    title: str
    content: str
    author_id: str
    section_ids: list[str]
    files: list[ArticleFileSchema]
    tags: list[str]
    auto_tags: list[str]
    is_temporary: bool
    expires_at: datetime | None
    temporary_duration: TemporaryDuration | None
    views: int
    viewed_by: list[ArticleViewSchema]
    reads: list[ArticleReadSchema]
    hidden: bool
    comment_ids: list[str]
    last_content_update: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def comment_count(self) -> int:
        return len(self.comment_ids)

    @computed_field
    @property
    def file_count(self) -> int:
        return len(self.files)


class PopularTag(BaseModel):
    tag: str
    count: int


class CleanupResult(BaseModel):
    deleted: int


class BulkArticlesRequest(BaseModel):
    """Admin bulk operation over a set of articles."""

    model_config = ConfigDict(populate_by_name=True)

    article_ids: list[str] = Field(..., alias="articleIds")


class BulkVisibilityRequest(BulkArticlesRequest):
    hidden: bool


class BulkResult(BaseModel):
    affected: int
