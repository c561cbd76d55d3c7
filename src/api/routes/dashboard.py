# api/routes/dashboard.py

import logging

from fastapi import APIRouter, HTTPException, Query, Depends

from api.dependencies import verify_api_key, assert_organization_access
from models import serialize

router = APIRouter()
logger = logging.getLogger(__name__)


def _build(organization_id: str, views=None, dismissed: list[str] = ()):
    """
    Vérifie que l'agence existe puis calcule les vues demandées.
    Le profil lu ici fournit la config : l'agence n'est lue qu'une fois.
    """
    from orchestrator.profile import get_organization_profile
    from orchestrator.dashboard import build_dashboard

    profile = get_organization_profile(organization_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Organisation introuvable")

    return build_dashboard(
        organization_id,
        dismissed_ids=dismissed,
        config=profile["scoring_config"],
        views=views
    )


@router.get("/overview/{organization_id}")
def get_overview(
    organization_id: str,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    assert_organization_access(organization_id, auth_organization_id)

    try:
        return _build(organization_id).to_dict()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur get_overview {organization_id} : {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/kpis/{organization_id}")
def get_kpis(
    organization_id: str,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    assert_organization_access(organization_id, auth_organization_id)

    try:
        result = _build(organization_id, views=["kpis"])
        return {
            "computed_at": result.computed_at.isoformat(),
            "kpis": serialize(result.kpis)
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur get_kpis {organization_id} : {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/alerts/{organization_id}")
def get_alerts(
    organization_id: str,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    assert_organization_access(organization_id, auth_organization_id)

    try:
        result = _build(organization_id, views=["alerts"])
        return {
            "computed_at": result.computed_at.isoformat(),
            "alerts": serialize(result.alerts)
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur get_alerts {organization_id} : {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/actions/{organization_id}")
def get_actions(
    organization_id: str,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    assert_organization_access(organization_id, auth_organization_id)

    try:
        result = _build(organization_id, views=["smart_actions"])
        return {
            "computed_at": result.computed_at.isoformat(),
            "actions": serialize(result.smart_actions),
            "count": len(result.smart_actions)
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur get_actions {organization_id} : {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/pipeline/{organization_id}")
def get_pipeline(
    organization_id: str,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    assert_organization_access(organization_id, auth_organization_id)

    try:
        result = _build(organization_id, views=["pipeline"])
        return {
            "computed_at": result.computed_at.isoformat(),
            "pipeline": serialize(result.pipeline)
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur get_pipeline {organization_id} : {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/notifications/{organization_id}")
def get_notifications(
    organization_id: str,
    dismissed: list[str] = Query([]),
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    assert_organization_access(organization_id, auth_organization_id)

    try:
        result = _build(organization_id, views=["notifications"], dismissed=dismissed)
        return {
            "notifications": serialize(result.notifications),
            "unread_count": len(result.notifications)
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur get_notifications {organization_id} : {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/contacts/{organization_id}/badges")
def get_contact_badges(
    organization_id: str,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    assert_organization_access(organization_id, auth_organization_id)

    try:
        result = _build(organization_id, views=["contact_badges"])
        return {"badges": serialize(result.contact_badges)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur get_contact_badges {organization_id} : {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/deals/{organization_id}/health")
def get_deal_health(
    organization_id: str,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    assert_organization_access(organization_id, auth_organization_id)

    try:
        result = _build(organization_id, views=["deal_health"])
        return {"health": serialize(result.deal_health)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur get_deal_health {organization_id} : {e}")
        raise HTTPException(status_code=500, detail=str(e))
