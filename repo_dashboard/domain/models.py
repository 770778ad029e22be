import base64
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict

class RepositoryReference(BaseModel):
    """
    Validated owner/name pair identifying a GitHub repository.
    """
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="Login of the repository owner")
    name: str = Field(..., min_length=1, description="Name of the repository")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class RepositoryMetadata(BaseModel):
    """
    Immutable snapshot of a repository as returned by GET /repos/{owner}/{name}.
    A fresh fetch produces a new instance; existing snapshots are never updated.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Numeric GitHub repository ID")
    name: str
    full_name: str = Field(..., description="owner/name as reported by GitHub")
    description: Optional[str] = None
    html_url: str = Field(..., description="Web URL of the repository")
    owner_login: str
    owner_avatar_url: Optional[str] = None
    default_branch: str
    created_at: datetime
    updated_at: datetime
    pushed_at: Optional[datetime] = None
    size: int = Field(0, ge=0, description="Repository size in KB")
    language: Optional[str] = None


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "dir"


class DirectoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: EntryKind

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


class DirectoryListing(BaseModel):
    """
    Entries found at one path of a repository, directories first and then files,
    each group ordered by name.
    """
    model_config = ConfigDict(frozen=True)

    path: str = ""
    entries: Tuple[DirectoryEntry, ...] = ()


class FileContent(BaseModel):
    """
    A single file fetched from the contents endpoint. ``content`` is kept in its
    transport encoding; use ``decoded_content`` for display or storage.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    sha: str
    size: int = Field(0, ge=0)
    encoding: Optional[str] = None
    content: str = ""
    last_modified: Optional[datetime] = None

    def decoded_content(self) -> str:
        if self.encoding == "base64":
            # GitHub wraps the payload at 60 columns; b64decode drops the newlines.
            return base64.b64decode(self.content).decode("utf-8", errors="replace")
        return self.content


class PersistedRepository(BaseModel):
    """Row of the github_repositories table."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    full_name: str
    description: Optional[str] = None
    url: str
    owner_name: str
    owner_avatar: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    last_synced: Optional[datetime] = None


class PersistedFile(BaseModel):
    """Row of the repository_files table."""
    model_config = ConfigDict(frozen=True)

    id: int
    repository_id: int
    path: str
    filename: str
    content: str
    sha: str
    size: int
    last_modified: datetime
    last_synced: datetime


class ConnectionState(str, Enum):
    CHECKING = "checking"
    CONNECTED = "connected"
    NOT_CONNECTED = "not_connected"


class SchemaState(str, Enum):
    UNKNOWN = "unknown"
    PRESENT = "present"
    MISSING = "missing"


class DatabaseStatus(BaseModel):
    """Snapshot of what the dashboard knows about the database."""
    model_config = ConfigDict(frozen=True)

    connection: ConnectionState = ConnectionState.CHECKING
    schema_state: SchemaState = SchemaState.UNKNOWN
    repository_count: int = 0
    file_count: int = 0

    @property
    def is_ready(self) -> bool:
        return self.connection is ConnectionState.CONNECTED and self.schema_state is SchemaState.PRESENT
