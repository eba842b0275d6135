"""Session bootstrap: resolve the current user without hanging the first view."""

import asyncio

import structlog
from pydantic import BaseModel

from hpc_club.dashboard import ViewState, resolve_view
from hpc_club.exceptions import AuthError
from hpc_club.identity.service import IdentityService
from hpc_club.models.user import User

logger = structlog.get_logger()

# Lookups that lost the race; kept referenced until they finish on their own.
_abandoned: set[asyncio.Task] = set()


class BootstrapResult(BaseModel):
    view: ViewState
    user: User | None = None
    timed_out: bool = False


def _discard(task: asyncio.Task) -> None:
    _abandoned.add(task)

    def _finished(t: asyncio.Task) -> None:
        _abandoned.discard(t)
        if not t.cancelled() and t.exception() is not None:
            logger.debug("abandoned_session_lookup_failed", error=str(t.exception()))

    task.add_done_callback(_finished)


class SessionBootstrapper:
    """Races the current-user lookup against a timeout.

    A lookup that loses the race is left running and its result ignored; the
    caller falls back to the logged-out state. The whole bootstrap is
    additionally bounded by a safety timeout.

    Args:
        identity: Identity service used for the lookup.
        check_timeout: Seconds allowed for the user lookup.
        safety_timeout: Upper bound for the whole bootstrap.
    """

    def __init__(
        self,
        identity: IdentityService,
        check_timeout: float = 5.0,
        safety_timeout: float = 8.0,
    ):
        self.identity = identity
        self.check_timeout = check_timeout
        self.safety_timeout = safety_timeout

    async def _lookup(self, token: str | None) -> BootstrapResult:
        if not token:
            return BootstrapResult(view=resolve_view(None))

        task = asyncio.ensure_future(self.identity.get_user(token))
        done, _ = await asyncio.wait({task}, timeout=self.check_timeout)
        if not done:
            _discard(task)
            logger.warning("session_check_timed_out", timeout=self.check_timeout)
            return BootstrapResult(view=resolve_view(None), timed_out=True)

        try:
            user = task.result()
        except AuthError as e:
            logger.info("session_invalid", reason=e.message)
            return BootstrapResult(view=resolve_view(None))
        except Exception:
            logger.exception("session_check_failed")
            return BootstrapResult(view=resolve_view(None))
        return BootstrapResult(view=resolve_view(user), user=user)

    async def bootstrap(self, token: str | None) -> BootstrapResult:
        """Resolve the initial view for a (possibly missing) session token."""
        inner = asyncio.ensure_future(self._lookup(token))
        done, _ = await asyncio.wait({inner}, timeout=self.safety_timeout)
        if not done:
            _discard(inner)
            logger.warning("session_bootstrap_safety_timeout", timeout=self.safety_timeout)
            return BootstrapResult(view=ViewState.LANDING, timed_out=True)
        return inner.result()
