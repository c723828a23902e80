"""Startup stage transitions enforced by the entry point."""

from time import perf_counter

from conduit.common.logging import logger, startup_stage_ctx
from conduit.common.metrics import startup_stage_seconds


UNCONFIGURED = "UNCONFIGURED"
CONFIGURED = "CONFIGURED"
POOL_READY = "POOL_READY"
REGISTRY_COMPOSED = "REGISTRY_COMPOSED"
SEEDED = "SEEDED"
SERVING = "SERVING"
STOPPED = "STOPPED"
FAILED = "FAILED"

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    UNCONFIGURED: {CONFIGURED, FAILED},
    CONFIGURED: {POOL_READY, FAILED},
    POOL_READY: {REGISTRY_COMPOSED, FAILED},
    REGISTRY_COMPOSED: {SEEDED, SERVING, FAILED},
    SEEDED: {SERVING, FAILED},
    SERVING: {STOPPED, FAILED},
    STOPPED: set(),
    FAILED: set(),
}


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the startup sequence."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")


class StartupTracker:
    """Walks the process through its startup stages exactly once.

    Every transition is validated, logged as a single line and timed into the
    `startup_stage_seconds` histogram.
    """

    def __init__(self, service_name: str = "conduit-api") -> None:
        self.service_name = service_name
        self.stage = UNCONFIGURED
        self.history: list[str] = [UNCONFIGURED]
        self._entered_at = perf_counter()

    def advance(self, new: str, message: str | None = None) -> None:
        validate_transition(self.stage, new)
        elapsed = max(0.0, perf_counter() - self._entered_at)
        startup_stage_seconds.labels(service=self.service_name, stage=new).observe(elapsed)
        previous = self.stage
        self.stage = new
        self.history.append(new)
        self._entered_at = perf_counter()
        startup_stage_ctx.set(new)
        if message is None:
            message = f"startup stage {previous} -> {new}"
        logger.info(message)

    def fail(self, error: BaseException) -> None:
        """Move to FAILED from any non-terminal stage and log the cause."""

        previous = self.stage
        validate_transition(previous, FAILED)
        self.stage = FAILED
        self.history.append(FAILED)
        startup_stage_ctx.set(FAILED)
        logger.error("startup failed during %s: %s", previous, error)

    @property
    def terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.stage]
