# insights/smart_actions.py

"""
Actions recommandées du tableau de bord.

Ordre de détection = ordre d'affichage :
1. Contacts froids à relancer
2. Deals stagnants
3. Activités du jour
4. Leads chauds non qualifiés

Le résultat est tronqué à MAX_SMART_ACTIONS cartes,
sans re-tri par priorité : les premières détections gagnent.
"""

from datetime import datetime
from typing import Optional

from insights.base import days_since, is_same_day
from models import (
    Contact, Deal, Activity, PipelineStage,
    SmartAction, ActionPriority
)

MAX_SMART_ACTIONS = 4

COLD_CONTACT_DAYS   = 10
STAGNANT_DEAL_DAYS  = 7
STAGNANT_HIGH_COUNT = 3
HOT_LEAD_URGENCY    = 8


def _plural(count: int, suffix: str = "s") -> str:
    return suffix if count > 1 else ""


def _others(shown: int, total: int) -> str:
    return f" et {total - shown} autres" if total > shown else ""


# ─────────────────────────────────────────
# DÉTECTEURS
# Chacun retourne une carte ou None
# ─────────────────────────────────────────

def cold_contacts_action(
    contacts: list[Contact], now: datetime
) -> Optional[SmartAction]:
    cold = []
    for contact in contacts:
        if contact.is_terminal:
            continue
        days = days_since(contact.updated_at, now)
        if days is not None and days >= COLD_CONTACT_DAYS:
            cold.append(contact)

    if not cold:
        return None

    # Les plus anciens d'abord : ce sont eux que la carte nomme
    cold.sort(key=lambda c: c.updated_at)

    names = ", ".join(c.full_name for c in cold[:3])
    return SmartAction(
        id="cold-contacts",
        priority=ActionPriority.HIGH,
        icon="phone",
        title=f"{len(cold)} contact{_plural(len(cold))} à relancer",
        description=(
            f"{names}{_others(3, len(cold))} "
            f"n'ont pas été contactés depuis {COLD_CONTACT_DAYS}+ jours"
        ),
        action_label="Relancer",
        route="/contacts",
        count=len(cold)
    )


def stagnant_deals_action(
    deals: list[Deal], now: datetime
) -> Optional[SmartAction]:
    stagnant = []
    for deal in deals:
        if deal.is_terminal:
            continue
        days = days_since(deal.updated_at, now)
        if days is not None and days >= STAGNANT_DEAL_DAYS:
            stagnant.append(deal)

    if not stagnant:
        return None

    stagnant.sort(key=lambda d: d.updated_at)

    count = len(stagnant)
    names = " et ".join(d.name for d in stagnant[:2])
    return SmartAction(
        id="stagnant-deals",
        priority=(
            ActionPriority.HIGH if count >= STAGNANT_HIGH_COUNT
            else ActionPriority.MEDIUM
        ),
        icon="trending-down",
        title=f"{count} deal{_plural(count)} bloqué{_plural(count)}",
        description=(
            f"{names}{_others(2, count)} "
            f"n'ont pas évolué depuis {STAGNANT_DEAL_DAYS} jours"
        ),
        action_label="Voir",
        route="/deals",
        count=count
    )


def today_activities_action(
    activities: list[Activity], now: datetime
) -> Optional[SmartAction]:
    today = [
        a for a in activities
        if is_same_day(a.date, now) and not a.is_done
    ]
    if not today:
        return None

    # La prochaine activité de la journée en description
    today.sort(key=lambda a: a.date)
    next_activity = today[0]

    count = len(today)
    return SmartAction(
        id="today-activity",
        priority=ActionPriority.URGENT,
        icon="calendar",
        title=f"{count} activité{_plural(count)} aujourd'hui",
        description=(
            next_activity.description
            or next_activity.name
            or "Activité à préparer"
        ),
        action_label="Préparer",
        route="/activities",
        count=count
    )


def hot_leads_action(contacts: list[Contact]) -> Optional[SmartAction]:
    leads = [
        c for c in contacts
        if (c.urgency_score or 0) >= HOT_LEAD_URGENCY
        and c.pipeline_stage == PipelineStage.NOUVEAU
    ]
    if not leads:
        return None

    count = len(leads)
    return SmartAction(
        id="urgent-leads",
        priority=ActionPriority.HIGH,
        icon="users",
        title=f"{count} lead{_plural(count)} chaud{_plural(count)}",
        description="Prospects avec score élevé en attente de qualification",
        action_label="Qualifier",
        route="/contacts",
        count=count
    )


# ─────────────────────────────────────────
# POINT D'ENTRÉE
# ─────────────────────────────────────────

def compute_smart_actions(
    contacts: list[Contact],
    deals: list[Deal],
    activities: list[Activity],
    now: datetime,
    max_actions: int = MAX_SMART_ACTIONS
) -> list[SmartAction]:
    detected = [
        cold_contacts_action(contacts, now),
        stagnant_deals_action(deals, now),
        today_activities_action(activities, now),
        hot_leads_action(contacts),
    ]
    return [action for action in detected if action is not None][:max_actions]
