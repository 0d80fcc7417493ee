"""Exception hierarchy for hubdb-sync.

Collection reads raise ``UpstreamUnavailable`` / ``StoreUnavailable`` /
``MalformedPage`` and are fatal for a run.  Per-row writes raise
``StoreWriteFailed``, which the reconciler converts into a failed item
instead of aborting.  ``PublishFailed`` is reported but never undoes
applied changes.
"""


class HubDBSyncError(Exception):
    """Base class for all hubdb-sync errors."""


class PreconditionFailed(HubDBSyncError):
    """Missing credential or failed connectivity check."""


class UpstreamUnavailable(HubDBSyncError):
    """The catalog API could not be reached or returned an HTTP error."""


class MalformedPage(HubDBSyncError):
    """A page of results did not have the expected shape."""


class StoreUnavailable(HubDBSyncError):
    """A HubDB read or lookup failed at the transport level."""


class StoreWriteFailed(HubDBSyncError):
    """A single create, update or delete call against HubDB failed.

    Attributes:
        operation: ``"create"``, ``"update"`` or ``"delete"``.
        target: Row id or url_key the operation was addressed to.
    """

    def __init__(self, operation: str, target: str, detail: str = ""):
        self.operation = operation
        self.target = target
        self.detail = detail
        message = f"Failed to {operation} row {target}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class PublishFailed(HubDBSyncError):
    """Publishing the table draft failed."""
