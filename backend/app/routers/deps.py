from __future__ import annotations

from fastapi import Depends

from app.services.reconcile import ReconciliationController
from app.store import TabularStore, get_store


def get_controller(store: TabularStore = Depends(get_store)) -> ReconciliationController:
    return ReconciliationController(store)
