from ccswitch.store.interface import IProviderStore
from ccswitch.store.sqlite import SQLiteProviderStore

__all__ = ["IProviderStore", "SQLiteProviderStore"]
