from app.services.relations.relation_query_builder import RelationQueryBuilder
from app.services.relations.relation_service import RelationService

__all__ = ["RelationQueryBuilder", "RelationService"]
