from .auth import User, SessionToken
from .catalog import StockItem
from .inventory import InventoryEntry
from .requests import StockRequest, StockRequestItem, RequestSequence

__all__ = [
    'User', 'SessionToken',
    'StockItem',
    'InventoryEntry',
    'StockRequest', 'StockRequestItem', 'RequestSequence',
]
