from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ccswitch.batch.models import BatchReport


class CCSwitchError(Exception):
    """Base user-facing application error."""


class NotFoundError(CCSwitchError):
    def __init__(self, what: str, ref: str) -> None:
        self.what = what
        self.ref = ref
        super().__init__(f"{what} not found: {ref}")


class DuplicateNameError(CCSwitchError):
    def __init__(self, app_type: str, name: str) -> None:
        self.app_type = app_type
        self.name = name
        super().__init__(f"Provider name already exists for {app_type}: {name}")


class ValidationError(CCSwitchError):
    pass


class StoreError(CCSwitchError):
    pass


class SyncFileError(CCSwitchError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class LiveConfigCorruptError(SyncFileError):
    pass


class InvalidConfigFormatError(LiveConfigCorruptError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid config format ({detail})")


class InvalidConfigSchemaError(LiveConfigCorruptError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid config schema ({detail})")


class ConfigIOError(SyncFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Config file I/O failed ({detail})")


class LivenessCheckFailed(CCSwitchError):
    pass


class PartialBatchFailure(CCSwitchError):
    def __init__(self, report: "BatchReport") -> None:
        self.report = report
        super().__init__(
            f"{report.operation.value}: {report.failed} of {report.total} "
            "item(s) failed"
        )
