from receiptsplit.handlers.basic import basic_router
from receiptsplit.handlers.items import items_router
from receiptsplit.handlers.people import people_router
from receiptsplit.handlers.receipts import receipts_router
from receiptsplit.handlers.summary import summary_router

__all__ = [
    "basic_router",
    "items_router",
    "people_router",
    "receipts_router",
    "summary_router",
]
