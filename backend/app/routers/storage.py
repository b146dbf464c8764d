"""
Router du stockage objet.
Téléchargement via URL signée : pas de session administrateur, la signature fait office d'autorisation.
Listing et suppression : super admin uniquement.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from app.dependencies import require_super_admin
from app.schemas.storage import StorageListing
from app.services.storage import ObjectStore, get_object_store

router = APIRouter(prefix="/api/v1/storage", tags=["Stockage"])


@router.get(
    "",
    response_model=StorageListing,
    summary="Lister un dossier du stockage",
    dependencies=[Depends(require_super_admin)],
)
def list_objects(
    prefix: str = "",
    store: ObjectStore = Depends(get_object_store),
):
    try:
        result = store.list(prefix)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return StorageListing(prefix=prefix.strip("/"), prefixes=result.prefixes, items=result.items)


@router.get("/{path:path}", summary="Télécharger un objet stocké")
def download_object(
    path: str,
    expires: int = Query(...),
    signature: str = Query(...),
    store: ObjectStore = Depends(get_object_store),
):
    if not store.verify(path, expires, signature):
        raise HTTPException(status_code=403, detail="Lien de téléchargement invalide ou expiré.")
    if not store.exists(path):
        raise HTTPException(status_code=404, detail="Objet introuvable.")
    return Response(content=store.get(path), media_type=store.content_type(path))


@router.delete(
    "/{path:path}",
    status_code=204,
    summary="Supprimer un objet stocké",
    dependencies=[Depends(require_super_admin)],
)
def delete_object(path: str, store: ObjectStore = Depends(get_object_store)):
    try:
        deleted = store.delete(path)
    except ValueError:
        deleted = False
    if not deleted:
        raise HTTPException(status_code=404, detail="Objet introuvable.")
