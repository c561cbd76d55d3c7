# models.py

import logging
import unicodedata
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional

from insights.base import parse_date

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# ENUMS
# ─────────────────────────────────────────

class PipelineStage(str, Enum):
    """
    Étapes du pipeline, communes aux contacts et aux deals.
    Doivent correspondre exactement à l'enum de la base.
    """
    NOUVEAU           = "nouveau"
    QUALIFICATION     = "qualification"
    ESTIMATION        = "estimation"
    MANDAT            = "mandat"
    COMMERCIALISATION = "commercialisation"
    VISITE            = "visite"
    OFFRE             = "offre"
    NEGOCIATION       = "negociation"
    COMPROMIS         = "compromis"
    FINANCEMENT       = "financement"
    ACTE              = "acte"
    VENDU             = "vendu"      # terminal : gagné
    PERDU             = "perdu"      # terminal : perdu

    @classmethod
    def parse(cls, value) -> Optional["PipelineStage"]:
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        raw = _strip_accents(str(value).strip().lower())
        raw = _STAGE_ALIASES.get(raw, raw)
        try:
            return cls(raw)
        except ValueError:
            logger.warning(f"Stage inconnu ignoré : {value!r}")
            return None

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStage.VENDU, PipelineStage.PERDU)

    @property
    def is_advanced(self) -> bool:
        return self in ADVANCED_STAGES

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]


def _strip_accents(value: str) -> str:
    """Retire les accents : "Négociation" → "negociation"."""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


# Anciennes valeurs encore présentes dans certaines lignes
_STAGE_ALIASES = {
    "won":  "vendu",
    "lost": "perdu",
    "lead": "nouveau",
}

ADVANCED_STAGES = (
    PipelineStage.OFFRE,
    PipelineStage.NEGOCIATION,
    PipelineStage.COMPROMIS,
)

STAGE_LABELS = {
    PipelineStage.NOUVEAU:           "Nouveau",
    PipelineStage.QUALIFICATION:     "Qualification",
    PipelineStage.ESTIMATION:        "Estimation",
    PipelineStage.MANDAT:            "Mandat signé",
    PipelineStage.COMMERCIALISATION: "Commercialisation",
    PipelineStage.VISITE:            "Visites en cours",
    PipelineStage.OFFRE:             "Offre déposée",
    PipelineStage.NEGOCIATION:       "Négociation",
    PipelineStage.COMPROMIS:         "Compromis",
    PipelineStage.FINANCEMENT:       "Financement",
    PipelineStage.ACTE:              "Acte",
    PipelineStage.VENDU:             "Vendu ✅",
    PipelineStage.PERDU:             "Perdu ❌",
}


def is_terminal_stage(stage: Optional[PipelineStage]) -> bool:
    """Vendu ou perdu. Le même prédicat pour les contacts et les deals."""
    return stage is not None and stage.is_terminal


class ActivityStatus(str, Enum):
    PLANIFIE = "planifie"
    EN_COURS = "en_cours"
    TERMINE  = "termine"
    ANNULE   = "annule"

    @classmethod
    def parse(cls, value) -> Optional["ActivityStatus"]:
        if not value:
            return None
        if isinstance(value, cls):
            return value
        raw = str(value).strip()
        raw = _ACTIVITY_STATUS_ALIASES.get(raw, raw.lower())
        try:
            return cls(raw)
        except ValueError:
            logger.warning(f"Statut d'activité inconnu ignoré : {value!r}")
            return None


_ACTIVITY_STATUS_ALIASES = {
    "Planifié": "planifie",
    "En cours": "en_cours",
    "Terminé":  "termine",
    "Annulé":   "annule",
}


class ActivityPriority(str, Enum):
    BASSE   = "basse"
    NORMALE = "normale"
    HAUTE   = "haute"
    URGENTE = "urgente"

    @classmethod
    def parse(cls, value) -> Optional["ActivityPriority"]:
        try:
            return cls(str(value).strip().lower()) if value else None
        except ValueError:
            return None


class BadgeType(str, Enum):
    HOT        = "hot"
    COLD       = "cold"
    FOLLOWUP   = "followup"
    HIGH_VALUE = "high-value"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING  = "warning"
    INFO     = "info"


class AlertCategory(str, Enum):
    BLOCKED_DEAL    = "blocked-deal"
    OVERDUE_CONTACT = "overdue-contact"
    SLA_BREACH      = "sla-breach"


class ActionPriority(str, Enum):
    URGENT = "urgent"
    HIGH   = "high"
    MEDIUM = "medium"
    LOW    = "low"


class Momentum(str, Enum):
    FORT   = "Fort"
    MODERE = "Modéré"
    FAIBLE = "Faible"


class NotificationType(str, Enum):
    WARNING = "warning"
    SUCCESS = "success"
    INFO    = "info"
    ERROR   = "error"


# ─────────────────────────────────────────
# ENTITÉS (lecture seule, issues de Supabase)
# ─────────────────────────────────────────

def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


@dataclass
class Deal:
    id: str
    name: str = ""
    organization_id: str = ""
    contact_id: Optional[str] = None

    # Valeur
    amount: Optional[float] = None
    probability: Optional[int] = None         # 0-100
    commission_amount: Optional[float] = None

    # Pipeline
    stage: Optional[PipelineStage] = None

    # Dates
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    expected_close_date: Optional[datetime] = None
    actual_close_date: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Deal":
        return cls(
            id=str(row.get("id", "")),
            name=row.get("name") or "",
            organization_id=row.get("organization_id") or "",
            contact_id=row.get("contact_id"),
            amount=_to_float(row.get("amount")),
            probability=_to_int(row.get("probability")),
            commission_amount=_to_float(row.get("commission_amount")),
            stage=PipelineStage.parse(row.get("stage")),
            created_at=parse_date(row.get("created_at")),
            updated_at=parse_date(row.get("updated_at")),
            expected_close_date=parse_date(row.get("expected_close_date")),
            actual_close_date=parse_date(row.get("actual_close_date")),
        )

    @property
    def is_terminal(self) -> bool:
        return is_terminal_stage(self.stage)


@dataclass
class Contact:
    id: str
    full_name: str = ""
    organization_id: str = ""

    # Pipeline
    pipeline_stage: Optional[PipelineStage] = None
    urgency_score: Optional[int] = None       # 0-10

    # Dates
    last_contact_date: Optional[datetime] = None
    next_followup_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Deals liés (pour le badge high value)
    deals: list[Deal] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> "Contact":
        return cls(
            id=str(row.get("id", "")),
            full_name=row.get("full_name") or "",
            organization_id=row.get("organization_id") or "",
            pipeline_stage=PipelineStage.parse(row.get("pipeline_stage")),
            urgency_score=_to_int(row.get("urgency_score")),
            last_contact_date=parse_date(row.get("last_contact_date")),
            next_followup_date=parse_date(row.get("next_followup_date")),
            created_at=parse_date(row.get("created_at")),
            updated_at=parse_date(row.get("updated_at")),
            deals=[
                d if isinstance(d, Deal) else Deal.from_row(d)
                for d in (row.get("deals") or [])
            ],
        )

    @property
    def is_terminal(self) -> bool:
        return is_terminal_stage(self.pipeline_stage)


@dataclass
class Activity:
    id: str
    name: str = ""
    description: str = ""
    organization_id: str = ""

    status: Optional[ActivityStatus] = None
    priority: Optional[ActivityPriority] = None

    # Dates
    date: Optional[datetime] = None           # date prévue
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Activity":
        return cls(
            id=str(row.get("id", "")),
            name=row.get("name") or "",
            description=row.get("description") or "",
            organization_id=row.get("organization_id") or "",
            status=ActivityStatus.parse(row.get("status")),
            priority=ActivityPriority.parse(row.get("priority")),
            date=parse_date(row.get("date")),
            created_at=parse_date(row.get("created_at")),
            completed_at=parse_date(row.get("completed_at")),
        )

    @property
    def is_done(self) -> bool:
        return self.status == ActivityStatus.TERMINE


@dataclass
class Snapshot:
    """Les trois collections d'une organisation, lues ensemble."""
    organization_id: str
    contacts: list[Contact] = field(default_factory=list)
    deals: list[Deal] = field(default_factory=list)
    activities: list[Activity] = field(default_factory=list)


# ─────────────────────────────────────────
# OBJETS DÉRIVÉS (jamais persistés)
# ─────────────────────────────────────────

@dataclass
class SmartBadge:
    type: BadgeType
    label: str
    icon: str
    color: str           # destructive | info | warning | success


@dataclass
class DealHealth:
    deal_id: str
    score: int           # 0-100
    label: str           # Bon | Attention | Critique
    color: str


@dataclass
class AlertItem:
    id: str
    label: str
    sublabel: str
    amount: Optional[float] = None
    priority: Optional[str] = None


@dataclass
class AlertGroup:
    category: AlertCategory
    severity: Severity
    title: str
    action_label: str
    route: str
    count: int                                       # ensemble complet
    record_ids: list[str] = field(default_factory=list)
    preview: list[AlertItem] = field(default_factory=list)   # tronqué
    remaining: int = 0


@dataclass
class AlertPanel:
    blocked_deals: AlertGroup
    overdue_contacts: AlertGroup
    sla_breaches: AlertGroup
    severity: Severity

    @property
    def total(self) -> int:
        return (
            self.blocked_deals.count
            + self.overdue_contacts.count
            + self.sla_breaches.count
        )

    @property
    def groups(self) -> list[AlertGroup]:
        return [self.blocked_deals, self.overdue_contacts, self.sla_breaches]


@dataclass
class SmartAction:
    id: str
    priority: ActionPriority
    icon: str
    title: str
    description: str
    action_label: str
    route: str
    count: int = 0


@dataclass
class StageShare:
    stage: str
    name: str
    total: float
    percentage: int


@dataclass
class PipelineHealthSnapshot:
    weighted_value: float = 0.0
    conversion_rate: int = 0
    avg_commission: float = 0.0
    deals_this_month: int = 0
    percentage_change: int = 0
    deals_count: int = 0                     # deals actifs
    stage_distribution: list[StageShare] = field(default_factory=list)
    health_score: int = 0
    velocity_days: int = 45
    stalled_count: int = 0
    momentum: Momentum = Momentum.FAIBLE


@dataclass
class DashboardKpis:
    revenue: float = 0.0                     # montants des deals vendus
    commissions: float = 0.0
    active_deals: int = 0
    active_leads: int = 0
    today_activities: int = 0
    todo_activities: int = 0                 # statut planifié
    completed_today: int = 0

    # 7 jours, du plus ancien à aujourd'hui
    revenue_sparkline: list[float] = field(default_factory=list)
    deals_sparkline: list[int] = field(default_factory=list)
    contacts_sparkline: list[int] = field(default_factory=list)
    activities_sparkline: list[int] = field(default_factory=list)


@dataclass
class SmartNotification:
    id: str
    type: NotificationType
    message: str
    description: str = ""
    time: str = ""
    route: str = ""


# ─────────────────────────────────────────
# SÉRIALISATION
# ─────────────────────────────────────────

def serialize(obj):
    """
    Convertit un dataclass (ou une liste de dataclasses) en dict JSON.
    Gère les datetime → str et les Enum → valeur string.
    Les propriétés calculées d'AlertPanel sont ajoutées.
    """
    def clean(value):
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return {k: clean(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [clean(i) for i in value]
        return value

    if isinstance(obj, (list, tuple)):
        return [serialize(item) for item in obj]

    if isinstance(obj, dict):
        return {k: serialize(v) for k, v in obj.items()}

    if hasattr(obj, "__dataclass_fields__"):
        raw = clean(asdict(obj))
        if isinstance(obj, AlertPanel):
            raw["total"] = obj.total
        return raw

    return clean(obj)
