"""
Core type definitions for rbactree.

Records arrive from the listing collaborators in camelCase or snake_case,
so every field accepts both spellings. Bindings are frozen so they can be
hashed for de-duplication.
"""

from enum import StrEnum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class WorkspaceKind(StrEnum):
    """Kinds of workspaces reported by the listing API."""
    ROOT = "root"
    DEFAULT = "default"
    STANDARD = "standard"
    UNGROUPED_HOSTS = "ungrouped-hosts"


class SubjectType(StrEnum):
    """Principals a role can be bound to."""
    USER = "user"
    GROUP = "group"


class WorkspaceRecord(BaseModel):
    """
    A single workspace as returned by the listing collaborator.

    The root is the record whose ``parent_id`` is None. The API reports the
    root's parent as an empty string, which is normalised to None here.
    """
    id: str
    name: str
    description: str = ""
    parent_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("parent_id", "parentId"),
    )
    kind: WorkspaceKind = Field(
        default=WorkspaceKind.STANDARD,
        validation_alias=AliasChoices("kind", "type"),
    )

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("parent_id", mode="before")
    @classmethod
    def _empty_parent_is_root(cls, value):
        if value == "":
            return None
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, value):
        return value or ""

    @property
    def is_root_record(self) -> bool:
        return self.parent_id is None


class RoleBinding(BaseModel):
    """A role granted to a subject, anchored at exactly one workspace."""
    role_id: str = Field(validation_alias=AliasChoices("role_id", "roleId"))
    role_name: str = Field(default="", validation_alias=AliasChoices("role_name", "roleName"))
    subject_id: str = Field(validation_alias=AliasChoices("subject_id", "subjectId"))
    subject_type: SubjectType = Field(
        default=SubjectType.GROUP,
        validation_alias=AliasChoices("subject_type", "subjectType"),
    )
    workspace_id: str = Field(validation_alias=AliasChoices("workspace_id", "workspaceId"))

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class EffectiveBinding(BaseModel):
    """
    A binding as it applies to a target workspace.

    ``is_inherited`` is True whenever the binding is anchored somewhere
    other than the target itself.
    """
    role_id: str
    role_name: str
    subject_id: str
    subject_type: SubjectType
    source_workspace_id: str
    is_inherited: bool

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_binding(cls, binding: RoleBinding, target_id: str) -> "EffectiveBinding":
        return cls(
            role_id=binding.role_id,
            role_name=binding.role_name,
            subject_id=binding.subject_id,
            subject_type=binding.subject_type,
            source_workspace_id=binding.workspace_id,
            is_inherited=binding.workspace_id != target_id,
        )


class AttributeFilter(BaseModel):
    """Narrows a permission grant to a list of resource ids."""
    key: str = "group.id"
    operation: str = "in"
    value: List[Optional[str]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("value", mode="before")
    @classmethod
    def _scalar_to_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class ResourceDefinition(BaseModel):
    attribute_filter: AttributeFilter = Field(
        validation_alias=AliasChoices("attribute_filter", "attributeFilter"),
    )

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Permission(BaseModel):
    """
    One entry of the caller's access list.

    ``permission`` has the form ``application:resource:verb``; any segment
    may be ``*``. An empty ``resource_definitions`` list means the grant is
    not scoped to particular resources.
    """
    permission: str
    resource_definitions: List[ResourceDefinition] = Field(
        default_factory=list,
        validation_alias=AliasChoices("resource_definitions", "resourceDefinitions"),
    )

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @property
    def is_scoped(self) -> bool:
        return bool(self.resource_definitions)

    def scoped_ids(self) -> set:
        ids = set()
        for definition in self.resource_definitions:
            ids.update(v for v in definition.attribute_filter.value if v is not None)
        return ids
