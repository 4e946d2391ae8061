"""Upload pipeline orchestration.

Runs authentication, validation and staging in order, then the post-write
actions. Which post-write failures abort the request is declared in
``UploadPipeline.post_write_actions`` rather than spread through control flow.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable

import structlog
from fastapi import Request

from services.upload_ingest.app.auth.jwt import verify_bearer_token
from services.upload_ingest.app.config import Settings
from services.upload_ingest.app.core.errors import (
    AuthError,
    UploadPipelineError,
    ValidationError,
)
from services.upload_ingest.app.core.state_machine import UploadState, UploadStateMachine
from services.upload_ingest.app.pipeline.notifier import UploadNotifier
from services.upload_ingest.app.pipeline.presence import PresenceCache
from services.upload_ingest.app.pipeline.staging import StagingSink
from services.upload_ingest.app.pipeline.validator import UploadForm, validate_upload_form
from shared.utils.logging import get_logger
from shared.utils.metrics import create_counter

logger = get_logger(__name__)

SUCCESS_BODY = "Uploaded successfully"
GENERIC_ERROR_BODY = "An internal error occurred"

UPLOAD_REQUESTS = create_counter(
    "upload_requests_total",
    "Upload requests by final state",
    ["outcome"],
)


class ActionPolicy(str, Enum):
    """How a post-write action failure affects the request."""

    REQUIRED = "required"  # failure aborts with 500
    BEST_EFFORT = "best_effort"  # failure is logged only


@dataclass(frozen=True)
class PostWriteAction:
    """A side effect that runs after the file is staged."""

    name: str
    policy: ActionPolicy
    run: Callable[[str], Awaitable[Any]]
    completes: UploadState  # state entered once the action has run


@dataclass
class UploadOutcome:
    """Result of one pipeline execution."""

    status_code: int
    body: str
    states: list[UploadState] = field(default_factory=list)
    composite_key: str | None = None
    staged_path: Path | None = None
    failed_actions: list[str] = field(default_factory=list)  # best-effort actions that failed
    error: UploadPipelineError | None = None

    @property
    def final_state(self) -> UploadState:
        return self.states[-1]


class UploadPipeline:
    """Composes the pipeline stages for a single upload request."""

    def __init__(
        self,
        settings: Settings,
        staging: StagingSink,
        presence: PresenceCache,
        notifier: UploadNotifier,
    ):
        """Initialize pipeline.

        Args:
            settings: Service settings (secret, size limit, error exposure)
            staging: Staging sink
            presence: Presence cache client
            notifier: Notification publisher
        """
        self.settings = settings
        self.staging = staging
        self.presence = presence
        self.notifier = notifier

    def post_write_actions(self) -> list[PostWriteAction]:
        """Ordered post-write actions and their failure policy."""
        return [
            PostWriteAction(
                name="presence_marker",
                policy=ActionPolicy.REQUIRED,
                run=self.presence.mark,
                completes=UploadState.CACHE_PENDING,
            ),
            PostWriteAction(
                name="upload_notification",
                policy=ActionPolicy.BEST_EFFORT,
                run=self.notifier.notify,
                completes=UploadState.NOTIFIED,
            ),
        ]

    async def run(
        self,
        request: Request,
        should_abort: Callable[[], Awaitable[bool]] | None = None,
    ) -> UploadOutcome:
        """Execute the pipeline for ``request``.

        Args:
            request: Incoming upload request
            should_abort: Polled during the staging copy, e.g. ``request.is_disconnected``

        Returns:
            Outcome with the HTTP status, body and visited states
        """
        machine = UploadStateMachine()
        form: UploadForm | None = None
        outcome = UploadOutcome(status_code=200, body=SUCCESS_BODY)

        try:
            verify_bearer_token(
                request.headers.get("Authorization"),
                self.settings.jwt_secret_key,
                self.settings.jwt_algorithms,
            )
            machine.transition(UploadState.AUTHENTICATED)

            form = await validate_upload_form(request, self.settings.max_upload_bytes)
            machine.transition(UploadState.VALIDATED)
            outcome.composite_key = form.composite_key

            with structlog.contextvars.bound_contextvars(
                origin=form.origin,
                upload_key=form.composite_key,
            ):
                staged = await self.staging.stage(
                    form.origin,
                    form.key,
                    form.file_name,
                    form.file,
                    should_abort=should_abort,
                )
                machine.transition(UploadState.STAGED)
                outcome.staged_path = staged.path

                await self._run_post_write_actions(machine, outcome, form.composite_key)

            machine.transition(UploadState.RESPONDED)

        except AuthError as e:
            machine.transition(UploadState.REJECTED_UNAUTHORIZED)
            logger.info("upload_rejected", reason="unauthorized", error=e.message)
            self._fail(outcome, e)
        except ValidationError as e:
            machine.transition(UploadState.REJECTED_BAD_REQUEST)
            logger.info("upload_rejected", reason="bad_request", error=e.message)
            self._fail(outcome, e)
        except UploadPipelineError as e:
            machine.transition(UploadState.FAILED_INTERNAL)
            logger.error(
                "upload_failed",
                error=e.message,
                error_type=type(e).__name__,
                key=outcome.composite_key,
            )
            self._fail(outcome, e)
        finally:
            if form is not None:
                await form.close()

        outcome.states = list(machine.history)
        UPLOAD_REQUESTS.labels(outcome=machine.state.value).inc()
        return outcome

    async def _run_post_write_actions(
        self,
        machine: UploadStateMachine,
        outcome: UploadOutcome,
        composite_key: str,
    ) -> None:
        """Run the action table in order. Best-effort failures are recorded and the state still advances."""
        for action in self.post_write_actions():
            try:
                await action.run(composite_key)
            except UploadPipelineError as e:
                if action.policy == ActionPolicy.REQUIRED:
                    raise
                outcome.failed_actions.append(action.name)
                logger.warning(
                    "post_write_action_failed",
                    action=action.name,
                    policy=action.policy.value,
                    key=composite_key,
                    error=e.message,
                )
            machine.transition(action.completes)

    def _fail(self, outcome: UploadOutcome, error: UploadPipelineError) -> None:
        outcome.status_code = error.status_code
        outcome.error = error
        if error.status_code >= 500 and not self.settings.expose_error_details:
            outcome.body = GENERIC_ERROR_BODY
        else:
            outcome.body = error.message
