# insights/kpis.py

"""
Indicateurs du haut du tableau de bord.

→ CA et commissions : deals vendus uniquement
→ Deals actifs / leads actifs : hors vendu et perdu
→ Activités : du jour, à faire (planifié), terminées aujourd'hui
→ Sparklines 7 jours, du plus ancien à aujourd'hui

Un jour = le jour calendaire de `now`, comme partout ailleurs.
"""

from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from insights.base import is_same_day
from models import (
    Contact, Deal, Activity, ActivityStatus, PipelineStage, DashboardKpis
)

SPARKLINE_DAYS = 7


def sparkline_days(now: datetime, size: int = SPARKLINE_DAYS) -> list[date]:
    today = now.date()
    return [today - timedelta(days=size - 1 - i) for i in range(size)]


def daily_totals(
    records: Iterable,
    when: Callable[[object], Optional[datetime]],
    now: datetime,
    value: Callable[[object], float] = lambda record: 1,
    size: int = SPARKLINE_DAYS
) -> list:
    """Somme de `value` par jour, sur les `size` derniers jours."""
    days = sparkline_days(now, size)
    index = {day: i for i, day in enumerate(days)}
    totals = [0] * size

    for record in records:
        dt = when(record)
        if dt is None or dt.date() not in index:
            continue
        totals[index[dt.date()]] += value(record)

    return totals


def compute_kpis(
    contacts: list[Contact],
    deals: list[Deal],
    activities: list[Activity],
    now: datetime
) -> DashboardKpis:
    sold = [d for d in deals if d.stage == PipelineStage.VENDU]

    return DashboardKpis(
        revenue=sum(d.amount or 0 for d in sold),
        commissions=sum(d.commission_amount or 0 for d in sold),
        active_deals=sum(1 for d in deals if not d.is_terminal),
        active_leads=sum(1 for c in contacts if not c.is_terminal),
        today_activities=sum(1 for a in activities if is_same_day(a.date, now)),
        todo_activities=sum(
            1 for a in activities if a.status == ActivityStatus.PLANIFIE
        ),
        completed_today=sum(
            1 for a in activities if a.is_done and is_same_day(a.date, now)
        ),
        # Un deal vendu compte le jour de sa dernière mise à jour
        revenue_sparkline=daily_totals(
            sold, lambda d: d.updated_at, now, value=lambda d: d.amount or 0
        ),
        deals_sparkline=daily_totals(deals, lambda d: d.created_at, now),
        contacts_sparkline=daily_totals(contacts, lambda c: c.created_at, now),
        activities_sparkline=daily_totals(activities, lambda a: a.date, now),
    )
