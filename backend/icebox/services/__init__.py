# Overview: Public use-case surface of the settlement engine.

from .cash_service import add_cash_entry, add_expense, add_withdrawal, consistency_check, get_current_balance
from .inventory_service import PileKey, add_stock, merge_add_inventory, subtract_inventory, update_alert
from .maintenance_service import recompute_worker_aggregates
from .owner_sale_service import complete_owner_sale, create_owner_sale
from .payment_service import pay_worker
from .transfer_service import transfer
from .trip_service import complete_trip, create_trip

__all__ = [
    'create_trip', 'complete_trip',
    'create_owner_sale', 'complete_owner_sale',
    'transfer',
    'pay_worker',
    'add_cash_entry', 'add_expense', 'add_withdrawal', 'get_current_balance', 'consistency_check',
    'PileKey', 'subtract_inventory', 'merge_add_inventory', 'add_stock', 'update_alert',
    'recompute_worker_aggregates',
]
