# insights/notifications.py

from datetime import datetime
from typing import Iterable

from insights.base import (
    days_since, hours_since, start_of_day, format_relative_date
)
from models import (
    Contact, Deal, Activity, SmartNotification, NotificationType
)

MAX_NOTIFICATIONS = 6

NEW_CONTACT_HOURS   = 24
STAGNANT_DEAL_DAYS  = 10
MAX_STAGNANT_NOTICES = 2


def compute_notifications(
    contacts: list[Contact],
    deals: list[Deal],
    activities: list[Activity],
    now: datetime,
    dismissed_ids: Iterable[str] = (),
    max_notifications: int = MAX_NOTIFICATIONS
) -> list[SmartNotification]:
    """
    Fil de notifications de la cloche.

    → info    : nouveaux contacts des dernières 24h
    → warning : jusqu'à 2 deals inactifs depuis 10j+ (les plus anciens)
    → success : la dernière activité terminée
    → error   : activités passées non terminées

    Les notifications écartées par l'utilisateur sont retirées
    avant la troncature.
    """
    result = []

    # Nouveaux contacts, le plus récent d'abord
    new_contacts = sorted(
        (
            c for c in contacts
            if c.created_at is not None
            and hours_since(c.created_at, now) <= NEW_CONTACT_HOURS
        ),
        key=lambda c: c.created_at,
        reverse=True
    )
    if new_contacts:
        count = len(new_contacts)
        plural = count > 1
        result.append(SmartNotification(
            id="new-contacts",
            type=NotificationType.INFO,
            message=(
                f"{count} nouveau{'x' if plural else ''} "
                f"contact{'s' if plural else ''} "
                f"capturé{'s' if plural else ''}"
            ),
            description=new_contacts[0].full_name,
            time=format_relative_date(new_contacts[0].created_at, now),
            route="/contacts"
        ))

    # Deals inactifs, le plus ancien d'abord
    stagnant = sorted(
        (
            d for d in deals
            if not d.is_terminal
            and d.updated_at is not None
            and days_since(d.updated_at, now) >= STAGNANT_DEAL_DAYS
        ),
        key=lambda d: d.updated_at
    )
    for deal in stagnant[:MAX_STAGNANT_NOTICES]:
        result.append(SmartNotification(
            id=f"stagnant-{deal.id}",
            type=NotificationType.WARNING,
            message=f'Deal "{deal.name}" inactif',
            description=(
                f"Aucune mise à jour depuis "
                f"{days_since(deal.updated_at, now)} jours"
            ),
            time=format_relative_date(deal.updated_at, now),
            route="/deals"
        ))

    # Dernière activité terminée
    completed = sorted(
        (a for a in activities if a.is_done),
        key=lambda a: a.completed_at or a.created_at or datetime.min,
        reverse=True
    )
    if completed:
        activity = completed[0]
        result.append(SmartNotification(
            id=f"completed-{activity.id}",
            type=NotificationType.SUCCESS,
            message=activity.name or "Activité complétée",
            description=activity.description,
            time=format_relative_date(
                activity.completed_at or activity.created_at, now
            ),
            route="/activities"
        ))

    # Activités en retard
    today = start_of_day(now)
    overdue = [
        a for a in activities
        if a.date is not None and a.date < today and not a.is_done
    ]
    if overdue:
        count = len(overdue)
        result.append(SmartNotification(
            id="overdue-activities",
            type=NotificationType.ERROR,
            message=f"{count} activité{'s' if count > 1 else ''} en retard",
            description="À traiter en priorité",
            time="Urgent",
            route="/activities"
        ))

    dismissed = set(dismissed_ids)
    return [n for n in result if n.id not in dismissed][:max_notifications]
