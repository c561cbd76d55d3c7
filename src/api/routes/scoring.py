# api/routes/scoring.py

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel

from api.dependencies import verify_api_key
from insights.base import parse_date, utcnow
from models import Contact, Deal, serialize

router = APIRouter()
logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# MODÈLES DE REQUÊTE
# Les dates restent des strings : même parse que pour Supabase
# ─────────────────────────────────────────

class DealHealthRequest(BaseModel):
    id: str = "adhoc"
    updated_at: Optional[str] = None
    probability: Optional[int] = None
    expected_close_date: Optional[str] = None
    stage: Optional[str] = None
    now: Optional[str] = None       # horloge figée (aperçu, tests)


class DealAmount(BaseModel):
    amount: Optional[float] = None


class ContactBadgesRequest(BaseModel):
    id: str = "adhoc"
    last_contact_date: Optional[str] = None
    next_followup_date: Optional[str] = None
    deals: list[DealAmount] = []
    now: Optional[str] = None


def _resolve_now(value: Optional[str]):
    if value is None:
        return utcnow()
    now = parse_date(value)
    if now is None:
        raise HTTPException(status_code=422, detail=f"Date invalide : {value}")
    return now


# ─────────────────────────────────────────
# ROUTES
# ─────────────────────────────────────────

@router.post("/deal-health")
def score_deal(
    body: DealHealthRequest,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    """Score de santé d'un deal pas encore enregistré (formulaire)."""
    from insights.deal_health import evaluate_deal_health

    now = _resolve_now(body.now)
    deal = Deal.from_row(body.model_dump(exclude={"now"}))

    return serialize(evaluate_deal_health(deal, now))


@router.post("/contact-badges")
def score_contact(
    body: ContactBadgesRequest,
    auth_organization_id: str = Depends(verify_api_key),
) -> dict:
    from insights.badges import get_contact_badges
    from orchestrator.profile import get_scoring_config

    now = _resolve_now(body.now)
    contact = Contact.from_row(body.model_dump(exclude={"now"}))

    config = get_scoring_config(auth_organization_id)
    badges = get_contact_badges(
        contact, now, high_value_threshold=config["high_value_threshold"]
    )
    return {"contact_id": contact.id, "badges": serialize(badges)}
