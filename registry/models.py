"""
models.py

pydantic models for the registry document and api payloads, plus the
found/not-found lookup result returned by the manager.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


def repository_id_for(url: str) -> str:
    return hashlib.md5(url.encode("utf-8")).hexdigest()


class Repository(BaseModel):
    id: str = Field(..., frozen=True, description="stable identity, derived from the initial url when omitted")
    url: str
    type: str = Field("vcs")

    @model_validator(mode="before")
    @classmethod
    def _default_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id") and isinstance(data.get("url"), str):
            data = {**data, "id": repository_id_for(data["url"])}
        return data

    def get_id(self) -> str:
        return self.id

    def set_url(self, url: str) -> None:
        self.url = url


class Configuration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = "repo registry"
    homepage: str | None = None
    description: str | None = None
    require_all: bool = Field(False, alias="require-all")
    repositories: dict[str, Repository] = Field(default_factory=dict)

    @field_validator("repositories", mode="before")
    @classmethod
    def _key_by_id(cls, value: Any) -> Any:
        # stored as a list; later entries win on duplicate ids.
        # mappings are re-keyed by entry id, the key filling in a missing id.
        if isinstance(value, dict):
            value = [
                {**item, "id": key} if isinstance(item, dict) and not item.get("id") else item
                for key, item in value.items()
            ]
        if isinstance(value, list):
            keyed: dict[str, Any] = {}
            for item in value:
                repo = Repository.model_validate(item)
                keyed[repo.id] = repo
            return keyed
        return value

    @field_serializer("repositories")
    def _as_list(self, repositories: dict[str, Repository]) -> list[dict[str, Any]]:
        return [r.model_dump() for r in repositories.values()]

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


@dataclass(frozen=True)
class Found:
    repository: Repository

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True)
class NotFound:
    id: str

    @property
    def found(self) -> bool:
        return False


RepositoryLookup = Union[Found, NotFound]


class RepositoryCreate(BaseModel):
    id: str | None = Field(None, description="optional explicit id, defaults to a hash of the url")
    url: str = Field(..., min_length=1)
    type: str = Field("vcs")

    def to_repository(self) -> Repository:
        return Repository.model_validate(self.model_dump(exclude_none=True))


class RepositoryBatch(BaseModel):
    repositories: list[RepositoryCreate] = Field(default_factory=list)


class RepositoryUrlUpdate(BaseModel):
    url: str = Field(..., min_length=1)


class RepositoriesResponse(BaseModel):
    repositories: list[Repository]
