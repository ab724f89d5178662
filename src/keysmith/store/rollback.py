"""Best-effort removal of entries written by a failed multi-step save."""

import logging
from collections.abc import Callable
from types import TracebackType

from keysmith.domain.states import ItemClass
from keysmith.errors import StoreError
from keysmith.metrics import keysmith_metrics
from keysmith.store.base import CredentialStore

logger = logging.getLogger(__name__)


class Rollback:
    """Track entries saved in a block; delete them if the block raises.

    Failures of the rollback deletions are logged and never replace the
    original exception. ``undo`` runs only once its entry is deleted.
    """

    def __init__(self, store: CredentialStore, component: str) -> None:
        self._store = store
        self._component = component
        self._saved: list[tuple[str, ItemClass, Callable[[], None] | None]] = []

    def track(
        self,
        label: str,
        item_class: ItemClass,
        undo: Callable[[], None] | None = None,
    ) -> None:
        self._saved.append((label, item_class, undo))

    def __enter__(self) -> "Rollback":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc_type is None or not self._saved:
            return False

        keysmith_metrics.record_rollback(self._component)
        for label, item_class, undo in reversed(self._saved):
            try:
                self._store.delete(label, item_class)
            except StoreError as e:
                logger.warning(
                    "rollback_delete_failed",
                    extra={
                        "component": self._component,
                        "label": label,
                        "item_class": str(item_class),
                        "error": str(e),
                    },
                )
                continue
            if undo is not None:
                undo()
        logger.info(
            "rollback_completed",
            extra={"component": self._component, "entries": len(self._saved)},
        )
        return False
