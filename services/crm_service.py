"""
Read access to the mirrored CRM tables: file versions, document links and
the records they point at.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

import models
from config import config

USER_OBJECT_TYPE = "User"


class CrmService:
    def __init__(self, db: Session):
        self.db = db

    def get_content_version(self, content_version_id: str) -> Optional[models.ContentVersion]:
        return self.db.query(models.ContentVersion).filter_by(id=content_version_id).first()

    def get_record(self, record_id: str) -> Optional[models.CrmRecord]:
        return self.db.query(models.CrmRecord).filter_by(id=record_id).first()

    def resolve_object_type(self, record_id: str) -> str:
        """
        Object type name of a record ("Account", "Opportunity"...), used as the
        first Drive folder level.
        """
        record = self.get_record(record_id)
        if not record or not record.object_type:
            raise ValueError(f"Record {record_id} not found in CRM")
        return record.object_type

    def links_by_document(self, content_document_ids: Iterable[str]) -> Dict[str, List[str]]:
        """Linked entity ids per document, in link insertion order."""
        doc_ids = set(content_document_ids)
        if not doc_ids:
            return {}

        links = (
            self.db.query(models.ContentDocumentLink)
            .filter(models.ContentDocumentLink.content_document_id.in_(doc_ids))
            .order_by(models.ContentDocumentLink.id)
            .all()
        )
        grouped: Dict[str, List[str]] = defaultdict(list)
        for link in links:
            grouped[link.content_document_id].append(link.linked_entity_id)
        return dict(grouped)

    def record_types(self, record_ids: Iterable[str]) -> Dict[str, str]:
        """Object type per mirrored record; ids the CRM never announced are absent."""
        ids = set(record_ids)
        if not ids:
            return {}

        rows = self.db.query(models.CrmRecord.id, models.CrmRecord.object_type).filter(
            models.CrmRecord.id.in_(ids)
        )
        return {row.id: row.object_type for row in rows if row.object_type}

    def is_user(self, record_id: str, object_type: Optional[str] = None) -> bool:
        if object_type == USER_OBJECT_TYPE:
            return True
        prefix = config.USER_RECORD_ID_PREFIX
        return bool(prefix) and record_id.startswith(prefix)

