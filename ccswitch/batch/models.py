from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ccswitch.apps.app_id import AppType
from ccswitch.errors import PartialBatchFailure


class BatchOperation(str, Enum):
    SWITCH = "switch"
    TEST = "test"
    SYNC = "sync"
    EDIT = "edit"
    REMOVE = "remove"
    IMPORT = "import"


class ItemStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class BatchItem:
    app_type: AppType | None
    name: str
    status: ItemStatus
    detail: str = ""
    latency_ms: float | None = None
    provider_id: str | None = None

    @property
    def label(self) -> str:
        if self.app_type is None:
            return self.name
        return f"{self.app_type.value}/{self.name}"


@dataclass
class BatchReport:
    operation: BatchOperation
    items: list[BatchItem] = field(default_factory=list)

    def add(
        self,
        app_type: AppType | None,
        name: str,
        status: ItemStatus,
        detail: str = "",
        *,
        latency_ms: float | None = None,
        provider_id: str | None = None,
    ) -> BatchItem:
        item = BatchItem(
            app_type=app_type,
            name=name,
            status=status,
            detail=detail,
            latency_ms=latency_ms,
            provider_id=provider_id,
        )
        self.items.append(item)
        return item

    def succeed(
        self,
        app_type: AppType | None,
        name: str,
        detail: str = "",
        **extra: Any,
    ) -> BatchItem:
        return self.add(app_type, name, ItemStatus.SUCCEEDED, detail, **extra)

    def fail(
        self, app_type: AppType | None, name: str, detail: str, **extra: Any
    ) -> BatchItem:
        return self.add(app_type, name, ItemStatus.FAILED, detail, **extra)

    def skip(
        self, app_type: AppType | None, name: str, detail: str, **extra: Any
    ) -> BatchItem:
        return self.add(app_type, name, ItemStatus.SKIPPED, detail, **extra)

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for item in self.items if item.status == status)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def succeeded(self) -> int:
        return self._count(ItemStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(ItemStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ItemStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[BatchItem]:
        return [item for item in self.items if item.status == ItemStatus.FAILED]

    def summary(self) -> dict[str, int]:
        return {
            "total": self.total,
            ItemStatus.SUCCEEDED.value: self.succeeded,
            ItemStatus.FAILED.value: self.failed,
            ItemStatus.SKIPPED.value: self.skipped,
        }

    def raise_for_failures(self) -> "BatchReport":
        if not self.ok:
            raise PartialBatchFailure(self)
        return self
