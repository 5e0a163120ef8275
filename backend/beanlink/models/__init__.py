from .merchants import Merchant, Registration
from .documents import Bill, InventorySnapshot, ProductionLog
from .catalog import Supply, Product, BillOfMaterial
from .sequences import SyncSequence

__all__ = [
    'Merchant', 'Registration',
    'Bill', 'InventorySnapshot', 'ProductionLog',
    'Supply', 'Product', 'BillOfMaterial',
    'SyncSequence',
]
