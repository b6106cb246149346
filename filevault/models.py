from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# parentId of a node placed at the top level of a user's tree
ROOT = "0"

FileType = Literal["folder", "file", "image"]
CONTENT_TYPES: tuple[FileType, ...] = ("file", "image")
FILE_TYPES: tuple[FileType, ...] = ("folder", *CONTENT_TYPES)

# Widths (in pixels) of the thumbnails generated for every uploaded image
THUMBNAIL_WIDTHS = (500, 250, 100)


class CamelModel(BaseModel):
    """Models that are stored and served with camelCase field names (userId, isPublic, ...)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(BaseModel):
    """For internal use only. Represents a registered user, including the password digest."""

    id: str
    email: str
    password: str


class FileNode(CamelModel):
    """A folder, file or image in a user's tree.

    local_path points to the blob on the content volume. It is only set for files and images,
    and it is never serialised: it is an internal detail of the blob store.
    """

    id: str
    user_id: str
    name: str
    type: FileType
    is_public: bool = False
    parent_id: str = ROOT
    local_path: str | None = Field(default=None, exclude=True)

    @field_validator("parent_id", mode="before")
    @classmethod
    def parent_as_string(cls, value):
        return str(value)

    @property
    def is_folder(self) -> bool:
        return self.type == "folder"

    @classmethod
    def from_document(cls, id: str, doc: dict) -> "FileNode":
        return cls.model_validate({**doc, "id": id})


class ThumbnailJob(CamelModel):
    user_id: str
    file_id: str
