"""Domain layer for propledger."""

# Services are imported lazily: the database layer imports domain entities,
# and the services import the database layer.
_SERVICES = {
    "ChartOfAccountsService": "propledger.domain.chart",
    "JournalService": "propledger.domain.journal",
    "UtilityBillService": "propledger.domain.utility_bill",
    "UtilityReadingService": "propledger.domain.reading",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
