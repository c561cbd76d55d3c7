# api/dependencies.py

import logging

from fastapi import Header, HTTPException

from services.database import get_organization_by_api_key

logger = logging.getLogger(__name__)


def verify_api_key(x_api_key: str = Header(...)) -> str:
    """
    Header attendu : X-API-KEY.
    Retourne l'organization_id de l'agence propriétaire de la clé.
    """
    organization = get_organization_by_api_key(x_api_key)

    if organization is None:
        # Jamais la clé complète dans les logs
        logger.warning(f"API key refusée : {x_api_key[:4]}…")
        raise HTTPException(status_code=401, detail="Non autorisé")

    return organization["id"]


def assert_organization_access(
    request_organization_id: str, auth_organization_id: str
) -> None:
    """
    L'URL porte un organization_id : il doit être celui de la clé.
    Une agence ne lit jamais le tableau de bord d'une autre.
    """
    if str(request_organization_id) != str(auth_organization_id):
        logger.warning(
            f"Accès refusé : clé de {auth_organization_id} "
            f"sur {request_organization_id}"
        )
        raise HTTPException(status_code=403, detail="Forbidden")
