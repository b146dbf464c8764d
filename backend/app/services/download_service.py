"""
Résolution du téléchargement d'une pièce justificative.

- URL data: → octets décodés
- URL http(s) → contenu récupéré côté serveur
- Échec de récupération → redirection vers l'URL d'origine
"""

import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote_to_bytes

import httpx

from app.config import settings
from app.schemas.requirement import UploadedFile

logger = logging.getLogger(__name__)


@dataclass
class DownloadResult:
    """Soit un contenu à renvoyer, soit une URL vers laquelle rediriger."""
    filename: str
    content: Optional[bytes] = None
    media_type: str = "application/octet-stream"
    redirect_url: Optional[str] = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect_url is not None


def decode_data_url(url: str) -> tuple:
    """Retourne (octets, type MIME) d'une URL data:. Lève ValueError si malformée."""
    if not url.startswith("data:") or "," not in url:
        raise ValueError("URL data: invalide")
    header, payload = url[5:].split(",", 1)
    params = header.split(";")
    media_type = params[0] or "text/plain"
    if "base64" in params[1:]:
        try:
            return base64.b64decode(payload, validate=True), media_type
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Contenu base64 invalide : {exc}") from exc
    return unquote_to_bytes(payload), media_type


def _filename(uploaded: UploadedFile, media_type: str) -> str:
    if "." in uploaded.name:
        return uploaded.name
    extension = mimetypes.guess_extension(media_type) or ""
    return f"{uploaded.name}{extension}"


def resolve_download(uploaded: UploadedFile, client: Optional[httpx.Client] = None) -> DownloadResult:
    """
    Prépare la réponse de téléchargement d'un fichier déjà validé comme appartenant à l'élève.
    `client` permet d'injecter un client httpx (tests).
    """
    url = uploaded.url

    if url.startswith("data:"):
        content, media_type = decode_data_url(url)
        return DownloadResult(filename=_filename(uploaded, media_type), content=content, media_type=media_type)

    if not url.lower().startswith(("http://", "https://")):
        raise ValueError(f"Schéma d'URL non supporté : {url[:30]}")

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=settings.DOWNLOAD_TIMEOUT_SECONDS, follow_redirects=True)
    try:
        response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        # Repli : le navigateur ouvrira directement l'URL
        logger.warning("Téléchargement de %s impossible, redirection : %s", uploaded.name, exc)
        return DownloadResult(filename=uploaded.name, redirect_url=url)
    finally:
        if owns_client:
            client.close()

    media_type = response.headers.get("content-type", "application/octet-stream").split(";", 1)[0]
    return DownloadResult(
        filename=_filename(uploaded, media_type),
        content=response.content,
        media_type=media_type,
    )
