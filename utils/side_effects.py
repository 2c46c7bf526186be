import logging
from concurrent.futures import ThreadPoolExecutor

from flask import has_app_context

from models import db

logger = logging.getLogger(__name__)


class SideEffectDispatcher:
    """
    Runs post-commit side effects (emails, calendar mirroring).

    Each task gets its own failure boundary: exceptions are logged and
    dropped, never re-raised to the request that scheduled them.
    With ``max_workers=0`` tasks run inline in the caller's app context.
    """

    def __init__(self, app, max_workers: int = 4):
        self.app = app
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="side-effect") if max_workers > 0 else None

    @property
    def inline(self) -> bool:
        return self._executor is None

    def dispatch(self, name: str, fn, *args, **kwargs):
        if self._executor is None:
            self._run(name, fn, args, kwargs)
            return None
        return self._executor.submit(self._run, name, fn, args, kwargs)

    def _run(self, name, fn, args, kwargs):
        if has_app_context():
            self._guarded(name, fn, args, kwargs)
            return
        with self.app.app_context():
            self._guarded(name, fn, args, kwargs)

    def _guarded(self, name, fn, args, kwargs):
        try:
            fn(*args, **kwargs)
        except Exception:
            logger.exception("Side effect %s failed", name)
            db.session.rollback()

    def shutdown(self, wait: bool = True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
