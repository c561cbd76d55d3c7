# insights/badges.py

from datetime import datetime

from insights.base import days_since
from models import Contact, SmartBadge, BadgeType

HOT_MAX_DAYS  = 2
COLD_MIN_DAYS = 14          # strictement au-delà
HIGH_VALUE_THRESHOLD = 300_000


def get_contact_badges(
    contact: Contact,
    now: datetime,
    high_value_threshold: float = HIGH_VALUE_THRESHOLD
) -> list[SmartBadge]:
    """
    Badges d'un contact, recalculés à chaque appel.

    Les quatre règles sont indépendantes :
    → Chaud   : dernier contact il y a 2 jours ou moins
    → Froid   : dernier contact il y a plus de 14 jours
    → Relance : prochaine relance aujourd'hui ou dépassée
    → High Value : au moins un deal au-dessus du seuil

    Sans last_contact_date, ni chaud ni froid.
    """
    badges = []

    days_since_contact = days_since(contact.last_contact_date, now)
    if days_since_contact is not None:
        if days_since_contact <= HOT_MAX_DAYS:
            badges.append(SmartBadge(
                type=BadgeType.HOT, label="Chaud", icon="🔥", color="destructive"
            ))
        elif days_since_contact > COLD_MIN_DAYS:
            badges.append(SmartBadge(
                type=BadgeType.COLD, label="Froid", icon="❄️", color="info"
            ))

    followup = contact.next_followup_date
    if followup is not None and followup.date() <= now.date():
        badges.append(SmartBadge(
            type=BadgeType.FOLLOWUP, label="Relance", icon="⏰", color="warning"
        ))

    if any((d.amount or 0) > high_value_threshold for d in contact.deals):
        badges.append(SmartBadge(
            type=BadgeType.HIGH_VALUE, label="High Value", icon="💰", color="success"
        ))

    return badges
