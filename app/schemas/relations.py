from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, StrictInt


class RelationRow(BaseModel):
    """One active relation leaving a source object, with its target described."""

    relation_id: int = Field(..., description="Relation edge ID")
    object_from_id: int = Field(..., description="Source object ID")
    object_to_id: int = Field(..., description="Target object ID")
    object_relation_type_id: int = Field(..., description="Relation type ID")
    relation_type_code: str = Field(..., description="Relation type code")
    relation_type_name: str = Field(..., description="Translated relation type name")
    note: Optional[str] = Field(None, description="Free-text note on the edge")
    is_active: bool = Field(..., description="Edge liveness flag")
    created_at: Optional[datetime] = Field(None, description="Edge creation time")
    updated_at: Optional[datetime] = Field(None, description="Edge last update time")
    created_by: Optional[int] = Field(None, description="Object ID of the creator")
    from_object_type_id: Optional[int] = Field(None, description="Source object type ID")
    from_object_type_code: Optional[str] = Field(None, description="Source object type code")
    from_object_type_name: Optional[str] = Field(None, description="Translated source object type name")
    related_object_id: int = Field(..., description="Target object ID")
    object_type_id: int = Field(..., description="Target object type ID")
    object_type_code: str = Field(..., description="Target object type code")
    object_type_name: str = Field(..., description="Translated target object type name")
    object_status_id: Optional[int] = Field(None, description="Target object status ID")
    object_status_code: Optional[str] = Field(None, description="Target object status code")
    object_status_name: Optional[str] = Field(None, description="Translated target object status")
    related_entity_type: Optional[str] = Field(
        None, description="Entity code of the target, null when its type is not registered"
    )
    related_object_display_name: str = Field(..., description="Human-readable target name")
    attributes: Dict[str, Any] = Field(
        default_factory=dict, description="Entity columns of the target, keyed without alias prefix"
    )


class OrphanedRelation(BaseModel):
    """Active edge with an inactive or missing endpoint."""

    relation_id: int
    object_from_id: int
    object_to_id: int
    object_relation_type_id: int
    relation_type_code: Optional[str] = None
    relation_type_name: Optional[str] = None
    from_is_active: bool = Field(..., description="False when the source is inactive or missing")
    to_is_active: bool = Field(..., description="False when the target is inactive or missing")
    inactive_side: Literal["from", "to", "both"]
    created_at: Optional[datetime] = None


class DuplicateGroup(BaseModel):
    """Active edges sharing the same (from, to, type) triple."""

    object_from_id: int
    object_to_id: int
    object_relation_type_id: int
    relation_type_code: Optional[str] = None
    relation_type_name: Optional[str] = None
    duplicate_count: int = Field(..., ge=2)
    relation_ids: List[int] = Field(..., description="Member edge IDs in ascending order")


class InvalidRelation(BaseModel):
    """Edge whose endpoint types do not conform to its relation type."""

    relation_id: int
    object_from_id: int
    object_to_id: int
    object_relation_type_id: int
    relation_type_code: Optional[str] = None
    relation_type_name: Optional[str] = None
    actual_from_type_id: Optional[int] = None
    actual_from_type_code: Optional[str] = None
    actual_to_type_id: Optional[int] = None
    actual_to_type_code: Optional[str] = None
    expected_from_type_id: Optional[int] = None
    expected_from_type_code: Optional[str] = None
    expected_to_type_id: Optional[int] = None
    expected_to_type_code: Optional[str] = None
    violations: List[str] = Field(default_factory=list)


class MissingMirrorRelation(BaseModel):
    """Active edge whose relation type requires an inverse edge that is absent."""

    relation_id: int
    object_from_id: int
    object_to_id: int
    object_relation_type_id: int
    relation_type_code: Optional[str] = None
    relation_type_name: Optional[str] = None
    mirrored_type_id: int
    mirrored_type_code: Optional[str] = None
    mirrored_type_name: Optional[str] = None


class DataQualitySummary(BaseModel):
    """Finding counts across all relation scans."""

    orphaned: int = 0
    duplicate_groups: int = 0
    duplicate_relations: int = 0
    invalid: int = 0
    missing_mirrors: int = 0

    @property
    def total_issues(self) -> int:
        return self.orphaned + self.duplicate_groups + self.invalid + self.missing_mirrors


class BulkDeleteRequest(BaseModel):
    relation_ids: List[StrictInt] = Field(..., description="Relation IDs to soft-delete")


class BulkReassignRequest(BaseModel):
    relation_ids: List[StrictInt] = Field(..., description="Relation IDs to re-target")
    old_object_to_id: StrictInt = Field(..., description="Target the edges currently point at")
    new_object_to_id: StrictInt = Field(..., description="New target object")


class BulkUpdateTypeRequest(BaseModel):
    relation_ids: List[StrictInt] = Field(..., description="Relation IDs to retype")
    old_relation_type_id: StrictInt = Field(..., description="Current relation type of the edges")
    new_relation_type_id: StrictInt = Field(..., description="Relation type to switch to")


class BulkOperationResult(BaseModel):
    """Outcome of an all-or-nothing bulk remediation."""

    success: bool = True
    requested_count: int = Field(..., description="Distinct relation IDs in the request")
    affected_count: int = Field(..., description="Edges whose state changed")


class CreateRelationRequest(BaseModel):
    object_from_id: int
    object_to_id: int
    object_relation_type_id: int
    note: Optional[str] = Field(None, max_length=255)
    created_by: Optional[int] = None


class UpdateNoteRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=255)


class RelationRecord(BaseModel):
    """A stored relation edge as written."""

    model_config = {"from_attributes": True}

    id: int
    object_from_id: int
    object_to_id: int
    object_relation_type_id: int
    note: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[int] = None
