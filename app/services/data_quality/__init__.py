from app.services.data_quality.relation_scanner import RelationDataQualityScanner

__all__ = ["RelationDataQualityScanner"]
