"""
AUR data models.

Provides the normalized package record, the session token value, upload
request/outcome values and the fixed category and action tables shared by
every API client.
"""

import enum
import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import BinaryIO, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Ordinal -> category name, as numbered by the AUR. 0 and 1 are reserved.
CATEGORIES: Tuple[Optional[str], ...] = (
    None,
    None,
    "daemons",
    "devel",
    "editors",
    "emulators",
    "games",
    "gnome",
    "i18n",
    "kde",
    "lib",
    "modules",
    "multimedia",
    "network",
    "office",
    "science",
    "system",
    "x11",
    "xfce",
    "kernels",
)

CATEGORY_NAMES: Tuple[str, ...] = tuple(c for c in CATEGORIES if c is not None)

# Action symbol -> identifier understood by /packages.php
ACTIONS: Mapping[str, str] = MappingProxyType(
    {
        "vote": "do_Vote",
        "flag": "do_Flag",
        "notify": "do_Notify",
        "adopt": "do_Adopt",
        "disown": "do_Disown",
        "delete": "do_Delete",  # Trusted Users and developers only
        "unvote": "do_UnVote",
        "unflag": "do_UnFlag",
        "unnotify": "do_UnNotify",
    }
)

SESSION_MARKER = "AURSID="

_SESSION_PAIR_RE = re.compile(re.escape(SESSION_MARKER) + r"[^;,\s]*")


def category_name(index: int) -> Optional[str]:
    """Return the category name for an ordinal, or None if it has no name."""
    if 0 <= index < len(CATEGORIES):
        return CATEGORIES[index]
    return None


def category_index(name: str) -> Optional[str]:
    """Return the ordinal of a category name as a string, None if unknown."""
    if name not in CATEGORY_NAMES:
        return None
    return str(CATEGORIES.index(name))


class Package(BaseModel):
    """Normalized package record from search, msearch or info results."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int = Field(..., alias="ID", description="AUR package ID")
    name: str = Field(..., alias="Name", description="Package name")
    version: str = Field("", alias="Version", description="pkgver-pkgrel")
    category: Optional[str] = Field(
        None, alias="CategoryID", description="Category name, None if reserved"
    )
    description: str = Field("", alias="Description", description="Description")
    url: str = Field("", alias="URL", description="Upstream URL")
    license: str = Field("", alias="License", description="License")
    num_votes: int = Field(0, alias="NumVotes", ge=0, description="Vote count")
    out_of_date: bool = Field(
        False, alias="OutOfDate", description="Flagged out of date"
    )
    maintainer: Optional[str] = Field(
        None, alias="Maintainer", description="Maintainer (msearch only)"
    )

    @field_validator("version", "description", "url", "license", mode="before")
    @classmethod
    def _null_to_empty(cls, value):
        return "" if value is None else str(value)

    @field_validator("category", mode="before")
    @classmethod
    def _resolve_category(cls, value):
        if value is None or value in CATEGORY_NAMES:
            return value
        try:
            return category_name(int(value))
        except (TypeError, ValueError):
            return None

    @field_validator("num_votes", mode="before")
    @classmethod
    def _coerce_votes(cls, value):
        if value is None or value == "":
            return 0
        return int(value)

    @field_validator("out_of_date", mode="before")
    @classmethod
    def _derive_out_of_date(cls, value):
        # only the wire literal "1" marks a package out of date
        return value == "1"


@dataclass(frozen=True)
class Session:
    """Authenticated AUR session; the raw cookie text is never shown in repr."""

    cookie: str = field(repr=False)
    username: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return SESSION_MARKER in self.cookie

    @property
    def cookie_header(self) -> str:
        """The ``name=value`` pair to send back in the Cookie header."""
        match = _SESSION_PAIR_RE.search(self.cookie)
        if match:
            return match.group(0)
        return self.cookie.split(";", 1)[0].strip()


TarballSource = Union[str, os.PathLike, BinaryIO]


@dataclass(frozen=True)
class UploadRequest:
    """A tarball to submit, with optional category index and comment."""

    tarball: TarballSource
    category: Optional[str] = None
    comment: Optional[str] = None
    filename: Optional[str] = None


class Unresolved(enum.Enum):
    """Sentinel for write responses matching no known success/error marker."""

    UNRESOLVED = "unresolved"

    def __bool__(self) -> bool:
        return False


UNRESOLVED = Unresolved.UNRESOLVED

UNKNOWN_UPLOAD_ERROR = "Unknown error while uploading"


@dataclass(frozen=True)
class UploadOutcome:
    """Decoded result of a tarball submission."""

    filename: str
    package_id: Optional[int] = None
    message: Optional[str] = None
    unresolved: bool = False

    @property
    def succeeded(self) -> bool:
        return self.package_id is not None

    def describe(self) -> str:
        if self.succeeded:
            return f"Uploaded {self.filename} [{self.package_id}]"
        if self.unresolved or not self.message:
            return UNKNOWN_UPLOAD_ERROR
        return self.message
