# insights/alerts.py

"""
Alertes & SLA.

Trois catégories détectées sur l'ensemble des données :
→ Deals bloqués       : non terminés, pas de mise à jour depuis 15j+
→ Contacts à relancer : relance prévue avant aujourd'hui (début de journée)
→ SLA dépassés        : activités encore "planifié" créées il y a 7j+

Deux niveaux de sévérité :
→ par carte (chaque catégorie se classe seule)
→ pour le panneau entier (les trois catégories ensemble)

Les sévérités se calculent toujours sur les listes complètes,
jamais sur l'aperçu tronqué affiché.
"""

import logging
from datetime import datetime
from typing import Optional

from insights.base import days_since, days_between, start_of_day
from models import (
    Contact, Deal, Activity, ActivityStatus,
    AlertItem, AlertGroup, AlertPanel, AlertCategory, Severity
)

logger = logging.getLogger(__name__)

BLOCKED_DEAL_DAYS = 15
SLA_BREACH_DAYS   = 7

ALERT_PREVIEW_SIZE = 3

# Seuils "critique" par carte
BLOCKED_DEALS_CRITICAL    = 3
OVERDUE_CONTACTS_CRITICAL = 5
SLA_BREACHES_CRITICAL     = 5


# ─────────────────────────────────────────
# DÉTECTION
# ─────────────────────────────────────────

def find_blocked_deals(deals: list[Deal], now: datetime) -> list[AlertItem]:
    items = []
    for deal in deals:
        if deal.is_terminal:
            continue
        days = days_since(deal.updated_at, now)
        if days is None or days < BLOCKED_DEAL_DAYS:
            continue
        items.append(AlertItem(
            id=deal.id,
            label=deal.name,
            sublabel=f"{days}j bloqué",
            amount=deal.amount
        ))
    return items


def find_overdue_contacts(
    contacts: list[Contact], now: datetime
) -> list[AlertItem]:
    today = start_of_day(now)
    items = []
    for contact in contacts:
        followup = contact.next_followup_date
        if followup is None or not followup < today:
            continue
        items.append(AlertItem(
            id=contact.id,
            label=contact.full_name,
            sublabel=f"{days_between(today, followup)}j de retard"
        ))
    return items


def find_sla_breaches(
    activities: list[Activity], now: datetime
) -> list[AlertItem]:
    items = []
    for activity in activities:
        if activity.status != ActivityStatus.PLANIFIE:
            continue
        days = days_since(activity.created_at, now)
        if days is None or days < SLA_BREACH_DAYS:
            continue
        items.append(AlertItem(
            id=activity.id,
            label=activity.name,
            sublabel=f"{days}j en attente",
            priority=activity.priority.value if activity.priority else None
        ))
    return items


# ─────────────────────────────────────────
# SÉVÉRITÉ
# ─────────────────────────────────────────

def card_severity(count: int, critical_threshold: int) -> Severity:
    if count == 0:
        return Severity.INFO
    if count >= critical_threshold:
        return Severity.CRITICAL
    return Severity.WARNING


def overall_severity(
    blocked_deals: int, overdue_contacts: int, sla_breaches: int
) -> Severity:
    if (blocked_deals >= BLOCKED_DEALS_CRITICAL
            or sla_breaches >= SLA_BREACHES_CRITICAL):
        return Severity.CRITICAL
    if overdue_contacts >= OVERDUE_CONTACTS_CRITICAL or blocked_deals >= 1:
        return Severity.WARNING
    return Severity.INFO


def _build_group(
    category: AlertCategory,
    items: list[AlertItem],
    critical_threshold: int,
    title: str,
    route: str,
    preview_size: int
) -> AlertGroup:
    return AlertGroup(
        category=category,
        severity=card_severity(len(items), critical_threshold),
        title=title,
        action_label="Voir détails",
        route=route,
        count=len(items),
        record_ids=[item.id for item in items],
        preview=items[:preview_size],
        remaining=max(0, len(items) - preview_size)
    )


# ─────────────────────────────────────────
# PANNEAU
# ─────────────────────────────────────────

def compute_alerts(
    contacts: list[Contact],
    deals: list[Deal],
    activities: list[Activity],
    now: datetime,
    preview_size: Optional[int] = None
) -> AlertPanel:
    preview_size = ALERT_PREVIEW_SIZE if preview_size is None else preview_size

    blocked = find_blocked_deals(deals, now)
    overdue = find_overdue_contacts(contacts, now)
    breaches = find_sla_breaches(activities, now)

    logger.debug(
        f"[alerts] {len(blocked)} deals bloqués, "
        f"{len(overdue)} contacts en retard, {len(breaches)} SLA"
    )

    return AlertPanel(
        blocked_deals=_build_group(
            AlertCategory.BLOCKED_DEAL, blocked, BLOCKED_DEALS_CRITICAL,
            "Deals Bloqués", "/deals", preview_size
        ),
        overdue_contacts=_build_group(
            AlertCategory.OVERDUE_CONTACT, overdue, OVERDUE_CONTACTS_CRITICAL,
            "Contacts à Relancer", "/contacts?filter=overdue", preview_size
        ),
        sla_breaches=_build_group(
            AlertCategory.SLA_BREACH, breaches, SLA_BREACHES_CRITICAL,
            "SLA Dépassés", "/activities", preview_size
        ),
        severity=overall_severity(len(blocked), len(overdue), len(breaches))
    )
