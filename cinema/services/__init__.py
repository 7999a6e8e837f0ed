from cinema.services.box_office import BoxOffice
from cinema.services.catalog import CatalogLookup, SqlCatalog
from cinema.services.inventory import ScreeningInventory
from cinema.services.ledger import TicketLedger
from cinema.services.scheduler import ExpansionReport, ScheduleExpander, ScheduleRemovalReport

__all__ = [
    "BoxOffice",
    "CatalogLookup",
    "SqlCatalog",
    "ScreeningInventory",
    "TicketLedger",
    "ScheduleExpander",
    "ExpansionReport",
    "ScheduleRemovalReport",
]
