from .relations import (
    BulkDeleteRequest,
    BulkOperationResult,
    BulkReassignRequest,
    BulkUpdateTypeRequest,
    CreateRelationRequest,
    DataQualitySummary,
    DuplicateGroup,
    InvalidRelation,
    MissingMirrorRelation,
    OrphanedRelation,
    RelationRecord,
    RelationRow,
    UpdateNoteRequest,
)

__all__ = [
    "RelationRow",
    "RelationRecord",
    "CreateRelationRequest",
    "UpdateNoteRequest",
    "OrphanedRelation",
    "DuplicateGroup",
    "InvalidRelation",
    "MissingMirrorRelation",
    "DataQualitySummary",
    "BulkDeleteRequest",
    "BulkReassignRequest",
    "BulkUpdateTypeRequest",
    "BulkOperationResult",
]
