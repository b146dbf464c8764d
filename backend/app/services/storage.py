"""
Stockage objet hiérarchique sur disque local.

Les chemins sont de la forme `profilePictures/<id>/profile.jpg`. Les URLs de
téléchargement sont signées (HMAC) et expirent après STORAGE_URL_TTL_SECONDS.
"""

import hashlib
import hmac
import logging
import mimetypes
import time
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import List, Optional
from urllib.parse import quote, urlencode

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass
class ListResult:
    """Résultat d'un listing : sous-dossiers directs et objets directs."""
    prefixes: List[str] = field(default_factory=list)
    items: List[str] = field(default_factory=list)


class ObjectStore:
    def __init__(
        self,
        base_dir: str,
        secret_key: str,
        public_base_url: str,
        url_ttl_seconds: int = 3600,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.secret_key = secret_key.encode("utf-8")
        self.public_base_url = public_base_url.rstrip("/")
        self.url_ttl_seconds = url_ttl_seconds

    def _resolve(self, path: str) -> Path:
        """Refuse les chemins absolus ou remontant hors du répertoire racine."""
        parts = PurePosixPath(path.strip("/")).parts
        if not parts or any(p in ("..", ".") for p in parts):
            raise ValueError(f"Chemin de stockage invalide : {path}")
        return self.base_dir.joinpath(*parts)

    def put(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("Objet écrit : %s (%d octets)", path, len(data))
        return path

    def get(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotFoundError(path)
        return target.read_bytes()

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except ValueError:
            return False

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        target.unlink()
        return True

    def list(self, prefix: str = "") -> ListResult:
        """Listing d'un niveau de la hiérarchie (pas de récursion)."""
        directory = self._resolve(prefix) if prefix.strip("/") else self.base_dir
        result = ListResult()
        if not directory.is_dir():
            return result

        base = prefix.strip("/")
        for entry in sorted(directory.iterdir()):
            full = f"{base}/{entry.name}" if base else entry.name
            if entry.is_dir():
                result.prefixes.append(full)
            else:
                result.items.append(full)
        return result

    @staticmethod
    def content_type(path: str) -> str:
        return mimetypes.guess_type(path)[0] or "application/octet-stream"

    def _signature(self, path: str, expires: int) -> str:
        message = f"{path.strip('/')}:{expires}".encode("utf-8")
        return hmac.new(self.secret_key, message, hashlib.sha256).hexdigest()

    def download_url(self, path: str, now: Optional[float] = None) -> str:
        expires = int((now if now is not None else time.time()) + self.url_ttl_seconds)
        query = urlencode({"expires": expires, "signature": self._signature(path, expires)})
        return f"{self.public_base_url}/api/v1/storage/{quote(path.strip('/'))}?{query}"

    def verify(self, path: str, expires: int, signature: str, now: Optional[float] = None) -> bool:
        if expires < (now if now is not None else time.time()):
            return False
        return hmac.compare_digest(self._signature(path, expires), signature)


def get_object_store() -> ObjectStore:
    """Dépendance FastAPI — stockage configuré depuis les settings."""
    return ObjectStore(
        base_dir=settings.STORAGE_DIR,
        secret_key=settings.SECRET_KEY,
        public_base_url=settings.PUBLIC_BASE_URL,
        url_ttl_seconds=settings.STORAGE_URL_TTL_SECONDS,
    )
