from ccswitch.batch.models import BatchItem, BatchOperation, BatchReport, ItemStatus
from ccswitch.batch.service import BatchOrchestrator

__all__ = [
    "BatchItem",
    "BatchOperation",
    "BatchOrchestrator",
    "BatchReport",
    "ItemStatus",
]
