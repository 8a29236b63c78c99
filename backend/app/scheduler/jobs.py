from app.observability.instrument import log_job
from app.services.reconcile import ReconciliationController
from app.store import get_store


@log_job("weekly-snapshot")
def take_weekly_snapshot() -> int:
    """
    Weekly snapshot job.

    Appends the current cumulative pulled metres per cable type to the Snapshots
    sheet so the dashboard can chart week-over-week pulling progress.
    Returns the id of the new snapshot.
    """
    snapshot, _ = ReconciliationController(get_store()).take_snapshot()
    return snapshot.id
