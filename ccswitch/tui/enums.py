from enum import Enum

from ccswitch.batch.models import ItemStatus
from ccswitch.status import LiveSyncStatus


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


ITEM_STATUS_STYLE = {
    ItemStatus.SUCCEEDED: UIStyle.GREEN.value,
    ItemStatus.FAILED: UIStyle.RED.value,
    ItemStatus.SKIPPED: UIStyle.YELLOW.value,
}

LIVE_STATUS_STYLE = {
    LiveSyncStatus.SYNCED: UIStyle.GREEN.value,
    LiveSyncStatus.DRIFT: UIStyle.YELLOW.value,
    LiveSyncStatus.MISSING: UIStyle.MAGENTA.value,
    LiveSyncStatus.UNSET: UIStyle.DIM.value,
    LiveSyncStatus.ERROR: UIStyle.RED.value,
}
