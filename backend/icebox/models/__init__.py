from .inventory import InventoryLine
from .cash import CashEntry, CashLedgerHead
from .workers import Worker, Route
from .trips import WorkerTrip, WorkerTripLoadedItem, WorkerTripReturnedItem
from .owner_sales import OwnerSale, OwnerSaleLoadedItem, OwnerSaleReturnedItem
from .transfers import FreezerTransfer, FreezerTransferItem
from .payments import WorkerPayment
from .audit import AuditLogEntry

__all__ = [
    'InventoryLine',
    'CashEntry', 'CashLedgerHead',
    'Worker', 'Route',
    'WorkerTrip', 'WorkerTripLoadedItem', 'WorkerTripReturnedItem',
    'OwnerSale', 'OwnerSaleLoadedItem', 'OwnerSaleReturnedItem',
    'FreezerTransfer', 'FreezerTransferItem',
    'WorkerPayment',
    'AuditLogEntry',
]
