"""
Abonnements aux changements de données (équivalent léger d'un listener temps réel).

Les services publient un événement après chaque écriture commitée ;
le contrôleur du tableau de bord s'abonne pour rafraîchir ses instantanés.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

STUDENTS = "students"
COMPANIES = "companies"
NOTIFICATIONS = "notifications"


@dataclass(frozen=True)
class ChangeEvent:
    collection: str
    kind: str                   # created, updated, deleted, imported, restored
    doc_id: Optional[str] = None


Listener = Callable[[ChangeEvent], None]


class ChangeFeed:
    """Bus en mémoire : collection → listeners abonnés."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, collection: str, listener: Listener) -> Callable[[], None]:
        """Abonne `listener` et retourne la fonction de désabonnement."""
        with self._lock:
            self._listeners[collection].append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners[collection]:
                    self._listeners[collection].remove(listener)

        return unsubscribe

    def publish(self, collection: str, kind: str, doc_id: Optional[str] = None) -> None:
        """
        Notifie tous les abonnés de la collection.
        L'échec d'un listener est journalisé et n'empêche pas les suivants.
        """
        event = ChangeEvent(collection=collection, kind=kind, doc_id=doc_id)
        with self._lock:
            listeners = list(self._listeners[collection])

        for listener in listeners:
            try:
                listener(event)
            except Exception as exc:
                logger.error("Listener en échec sur %s (%s) : %s", collection, kind, exc)

    def listener_count(self, collection: str) -> int:
        with self._lock:
            return len(self._listeners[collection])


feed = ChangeFeed()
