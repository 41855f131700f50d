from .catalog import DEFAULT_ACCOUNTS as DEFAULT_ACCOUNTS, WEAR_OPTIONS as WEAR_OPTIONS, PendingSkin as PendingSkin
from .name_cache import NameCache as NameCache, names_fetcher as names_fetcher
from .row_store import GoogleSheetsRowStore as GoogleSheetsRowStore, RowStore as RowStore
