# orchestrator/profile.py

import logging
import math

from services.database import get_organization

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# CONFIG PAR DÉFAUT
# Si un paramètre n'est pas dans le profil de l'agence,
# on utilise ces valeurs.
# ─────────────────────────────────────────

DEFAULT_SCORING_CONFIG = {
    "high_value_threshold": 300_000,    # badge High Value (€)
    "alert_preview_size": 3,            # lignes affichées par carte
    "max_smart_actions": 4,
    "max_notifications": 6,
    "stage_distribution_size": 5,
}


def _coerce(organization_id: str, key: str, value, default):
    """
    Une surcharge doit être un nombre positif ou nul.
    Sinon on garde le default et on le signale.
    """
    if isinstance(value, bool):
        number = None
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = None

    if number is None or not math.isfinite(number) or number < 0:
        logger.warning(
            f"Paramètre de scoring invalide pour {organization_id} : "
            f"{key}={value!r}, default {default} utilisé"
        )
        return default

    return int(number) if isinstance(default, int) else number


# ─────────────────────────────────────────
# LECTURE DU PROFIL
# ─────────────────────────────────────────

def get_organization_profile(organization_id: str) -> dict:
    """
    Retourne le profil d'une agence.
    Fusionne la config de scoring stockée avec les defaults.

    Structure retournée :
    {
        "organization": {...},      # données de base
        "scoring_config": {...}     # defaults + surcharges de l'agence
    }

    Dict vide si l'agence est introuvable.
    """
    try:
        organization = get_organization(organization_id)
    except Exception as e:
        logger.error(f"Erreur get_organization_profile {organization_id} : {e}")
        return {}

    if not organization:
        logger.error(f"Organisation introuvable : {organization_id}")
        return {}

    stored = organization.get("scoring_config") or {}
    unknown = set(stored) - set(DEFAULT_SCORING_CONFIG)
    if unknown:
        logger.warning(
            f"Paramètres de scoring ignorés pour {organization_id} : "
            f"{sorted(unknown)}"
        )

    merged = {
        key: (
            _coerce(organization_id, key, stored[key], default)
            if key in stored else default
        )
        for key, default in DEFAULT_SCORING_CONFIG.items()
    }

    return {
        "organization": {
            "id": organization["id"],
            "name": organization.get("name", ""),
        },
        "scoring_config": merged
    }


def get_scoring_config(organization_id: str) -> dict:
    """
    Raccourci : uniquement la config de scoring.
    Retombe sur les defaults si le profil est illisible.
    """
    profile = get_organization_profile(organization_id)
    if not profile:
        return dict(DEFAULT_SCORING_CONFIG)
    return profile["scoring_config"]
