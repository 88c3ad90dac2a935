"""Drive item-definition export jobs to completion."""

import logging
import threading
from typing import Any

from ..models.workspace import DefinitionPart
from .client import FabricClient
from .errors import JobCancelledError, JobFailedError, JobTimeoutError, RemoteError

logger = logging.getLogger(__name__)


class JobState:
    """Lifecycle states of one export job."""

    SUBMITTED = "Submitted"
    IMMEDIATE = "Immediate"
    ACCEPTED = "Accepted"
    POLLING = "Polling"
    SUCCEEDED = "Succeeded"
    RESULT_FETCHED = "ResultFetched"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    TIMED_OUT = "TimedOut"


# Monitor status values that mean "keep polling"
PENDING_STATUSES = ("NotStarted", "Running", "Undefined")


def parse_definition(body: dict[str, Any]) -> list[DefinitionPart]:
    """Extract the ordered parts from a getDefinition body."""
    definition = body.get("definition") or {}
    return [DefinitionPart.from_dict(part) for part in definition.get("parts") or []]


class ExportJobDriver:
    """Obtains an item's decoded definition, synchronous or long-running.

    One driver may be shared across threads; each ``export`` call keeps its
    own state and its submit/poll/fetch sequence is strictly ordered.
    """

    def __init__(
        self,
        client: FabricClient,
        poll_interval: float = 2.0,
        max_poll_attempts: int = 150,
    ) -> None:
        """Initialize the driver.

        Args:
            client: Remote client used for submit, poll and result calls
            poll_interval: Seconds to wait before each poll
            max_poll_attempts: Polls allowed before the job is abandoned
        """
        self.client = client
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts

    def _transition(self, item_id: str, state: str) -> None:
        logger.debug("Export %s -> %s", item_id, state)

    def export(
        self,
        token: str,
        workspace_id: str,
        item_id: str,
        cancel_event: threading.Event | None = None,
    ) -> list[DefinitionPart]:
        """Export one item's definition.

        Args:
            token: Bearer token
            workspace_id: Workspace ID
            item_id: Item ID
            cancel_event: Set by the caller to abandon the job

        Returns:
            Definition parts in the order the service returned them

        Raises:
            RemoteError: Submit answered something other than 200/202, or the
                result fetch failed
            JobFailedError: The job reached ``Failed``
            JobTimeoutError: ``max_poll_attempts`` polls without a terminal state
            JobCancelledError: ``cancel_event`` was set
        """
        cancel_event = cancel_event or threading.Event()
        if cancel_event.is_set():
            raise JobCancelledError(f"Export of {item_id} cancelled before submit", item_id)

        self._transition(item_id, JobState.SUBMITTED)
        response = self.client.request_definition(token, workspace_id, item_id)

        if response.status_code == 200:
            self._transition(item_id, JobState.IMMEDIATE)
            return parse_definition(response.body)

        if response.status_code != 202:
            raise RemoteError(
                f"Unexpected status {response.status_code} submitting export of {item_id}",
                response.status_code,
                response.body,
            )

        self._transition(item_id, JobState.ACCEPTED)
        if not response.location:
            raise RemoteError(
                f"Export of {item_id} accepted without a Location header",
                response.status_code,
            )

        delay = max(self.poll_interval, response.retry_after or 0)
        location = response.location

        for attempt in range(1, self.max_poll_attempts + 1):
            if cancel_event.wait(delay):
                self._transition(item_id, JobState.CANCELLED)
                raise JobCancelledError(f"Export of {item_id} cancelled while polling", item_id)

            self._transition(item_id, JobState.POLLING)
            state = self.client.get_operation_state(token, location)
            status = state.get("status")
            logger.debug("Export %s poll %d: %s", item_id, attempt, status)

            if status == "Succeeded":
                self._transition(item_id, JobState.SUCCEEDED)
                result = self.client.get_operation_result(token, location)
                self._transition(item_id, JobState.RESULT_FETCHED)
                return parse_definition(result)

            if status == "Failed":
                self._transition(item_id, JobState.FAILED)
                error = state.get("error") or {}
                detail = error.get("message") if isinstance(error, dict) else str(error)
                raise JobFailedError(
                    f"Export of {item_id} failed: {detail or 'no detail from service'}",
                    item_id,
                    error,
                )

            if status not in PENDING_STATUSES:
                logger.warning("Export %s: unexpected job status %r, still polling", item_id, status)

        self._transition(item_id, JobState.TIMED_OUT)
        raise JobTimeoutError(
            f"Export of {item_id} did not finish after {self.max_poll_attempts} polls",
            item_id,
            self.max_poll_attempts,
        )
