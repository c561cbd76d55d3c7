# insights/base.py

"""
Outils communs à tous les calculs d'insights.

Règle d'or : aucun calcul ne lit l'horloge lui-même.
`now` est lu une seule fois par passe d'évaluation (orchestrator)
puis transmis à chaque fonction. Deux calculs d'une même passe
voient donc exactement le même instant.
"""

import math
from datetime import date, datetime, timezone
from typing import Optional


SECONDS_PER_DAY  = 86400
SECONDS_PER_HOUR = 3600

MONTHS_FR = [
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc."
]


# ─────────────────────────────────────────
# HORLOGE
# ─────────────────────────────────────────

def utcnow() -> datetime:
    """L'horloge système, en UTC naive comme toutes les dates parsées."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ─────────────────────────────────────────
# PARSE DATE : CENTRALISÉ ICI
# ─────────────────────────────────────────

def parse_date(value) -> Optional[datetime]:
    """
    Parse universelle des dates venant de Supabase.

    Gère :
    → datetime / date natifs Python
    → ISO 8601 avec ou sans timezone, avec ou sans "Z"
    → Strings "YYYY-MM-DD"

    Retourne toujours un datetime UTC naive, ou None.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    try:
        s = str(value).strip().replace("Z", "+00:00")

        if "T" in s or " " in s:
            dt = datetime.fromisoformat(s)
            if dt.tzinfo is not None:
                dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
            return dt

        # Date seule
        if len(s) >= 10:
            return datetime.strptime(s[:10], "%Y-%m-%d")

        return None

    except (ValueError, TypeError):
        return None


# ─────────────────────────────────────────
# FENÊTRES DE TEMPS
# Jours et heures entiers, tronqués vers zéro :
# un écart négatif reste négatif.
# ─────────────────────────────────────────

def _whole_units(later: datetime, earlier: datetime, unit_seconds: int) -> int:
    delta = later - earlier
    seconds = delta.days * SECONDS_PER_DAY + delta.seconds
    if seconds >= 0:
        return seconds // unit_seconds
    return -((-seconds) // unit_seconds)


def days_between(later: datetime, earlier: datetime) -> int:
    return _whole_units(later, earlier, SECONDS_PER_DAY)


def days_since(value, now: datetime) -> Optional[int]:
    """Jours entiers écoulés depuis `value`. None si la date est absente."""
    dt = parse_date(value)
    if dt is None:
        return None
    return days_between(now, dt)


def days_until(value, now: datetime) -> Optional[int]:
    """Jours entiers restants avant `value` (négatif si dépassé)."""
    dt = parse_date(value)
    if dt is None:
        return None
    return days_between(dt, now)


def hours_since(value, now: datetime) -> Optional[int]:
    dt = parse_date(value)
    if dt is None:
        return None
    return _whole_units(now, dt, SECONDS_PER_HOUR)


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(now: datetime) -> datetime:
    return start_of_day(now).replace(day=1)


def start_of_previous_month(now: datetime) -> datetime:
    first = start_of_month(now)
    if first.month == 1:
        return first.replace(year=first.year - 1, month=12)
    return first.replace(month=first.month - 1)


def is_same_day(value, now: datetime) -> bool:
    dt = parse_date(value)
    if dt is None:
        return False
    return dt.date() == now.date()


# ─────────────────────────────────────────
# NUMÉRIQUE
# ─────────────────────────────────────────

def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Arrondi commercial (2.5 → 3), pas l'arrondi bancaire de round()."""
    return int(math.floor(value + 0.5))


def mean(values: list) -> float:
    return sum(values) / len(values) if values else 0.0


# ─────────────────────────────────────────
# AFFICHAGE
# ─────────────────────────────────────────

def format_date_fr(value) -> str:
    dt = parse_date(value)
    if dt is None:
        return ""
    return f"{dt.day} {MONTHS_FR[dt.month - 1]} {dt.year}"


def format_relative_date(value, now: datetime) -> str:
    """
    Libellé relatif en français, comme dans le fil de notifications.
    Aujourd'hui / Hier / Il y a N jours / Il y a N semaines / date.
    """
    diff_days = days_since(value, now)
    if diff_days is None:
        return ""

    if diff_days == 0:
        return "Aujourd'hui"
    if diff_days == 1:
        return "Hier"
    if 1 < diff_days < 7:
        return f"Il y a {diff_days} jours"
    if 7 <= diff_days < 30:
        weeks = diff_days // 7
        return f"Il y a {weeks} semaine{'s' if weeks > 1 else ''}"
    return format_date_fr(value)
