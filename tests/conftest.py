# tests/conftest.py

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from models import Contact, Deal, Activity, Snapshot


# ─────────────────────────────────────────
# HORLOGE FIGÉE
# Mercredi 18 mars 2026, 10h00 UTC.
# Toutes les données sont relatives à cet instant.
# ─────────────────────────────────────────

NOW = datetime(2026, 3, 18, 10, 0, 0)


def _ago(days: float = 0, hours: float = 0) -> str:
    return (NOW - timedelta(days=days, hours=hours)).isoformat() + "Z"


def _in(days: float = 0, hours: float = 0) -> str:
    return (NOW + timedelta(days=days, hours=hours)).isoformat() + "Z"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def organization_id():
    return "org-agence-lyon-123"


# ─────────────────────────────────────────
# FIXTURES : DONNÉES RÉALISTES
# Des lignes comme Supabase les renvoie vraiment.
# ─────────────────────────────────────────

@pytest.fixture
def sample_contact_rows(organization_id):
    """
    5 contacts.
    Mix de chaud, froid, jamais contacté, vendu, tout nouveau.
    """
    return [
        # Chaud, relance prévue cet après-midi, deal > 300k
        {
            "id": "contact_001",
            "organization_id": organization_id,
            "full_name": "Sophie Laurent",
            "pipeline_stage": "visite",
            "urgency_score": 6,
            "last_contact_date": _ago(days=1),
            "next_followup_date": _in(hours=5),
            "created_at": _ago(days=45),
            "updated_at": _ago(days=1),
        },
        # Froid, relance en retard de 3 jours
        {
            "id": "contact_002",
            "organization_id": organization_id,
            "full_name": "Jean Petit",
            "pipeline_stage": "qualification",
            "urgency_score": 3,
            "last_contact_date": _ago(days=20),
            "next_followup_date": (NOW - timedelta(days=3)).date().isoformat(),
            "created_at": _ago(days=90),
            "updated_at": _ago(days=12),
        },
        # Jamais contacté, lead chaud
        {
            "id": "contact_003",
            "organization_id": organization_id,
            "full_name": "Claire Martin",
            "pipeline_stage": "nouveau",
            "urgency_score": 9,
            "last_contact_date": None,
            "next_followup_date": None,
            "created_at": _ago(days=4),
            "updated_at": _ago(days=2),
        },
        # Vendu depuis longtemps
        {
            "id": "contact_004",
            "organization_id": organization_id,
            "full_name": "Marc Dubois",
            "pipeline_stage": "vendu",
            "urgency_score": 2,
            "last_contact_date": _ago(days=30),
            "next_followup_date": None,
            "created_at": _ago(days=120),
            "updated_at": _ago(days=40),
        },
        # Capturé ce matin
        {
            "id": "contact_005",
            "organization_id": organization_id,
            "full_name": "Nadia Benali",
            "pipeline_stage": "nouveau",
            "urgency_score": 8,
            "last_contact_date": None,
            "next_followup_date": None,
            "created_at": _ago(hours=5),
            "updated_at": _ago(hours=5),
        },
    ]


@pytest.fixture
def sample_deal_rows(organization_id):
    """
    5 deals : 3 actifs, 1 vendu, 1 perdu.
    """
    return [
        # Actif récent, en négociation, excellent
        {
            "id": "deal_001",
            "organization_id": organization_id,
            "contact_id": "contact_001",
            "name": "Appartement T3 Lyon 6e",
            "amount": 320000,
            "probability": 80,
            "stage": "negociation",
            "commission_amount": 9600,
            "created_at": _ago(days=20),
            "updated_at": _ago(days=1),
            "expected_close_date": _in(days=10),
            "actual_close_date": None,
        },
        # Actif bloqué depuis 20 jours, clôture dépassée
        {
            "id": "deal_002",
            "organization_id": organization_id,
            "contact_id": "contact_002",
            "name": "Maison Villeurbanne",
            "amount": 280000,
            "probability": 40,
            "stage": "visite",
            "commission_amount": None,
            "created_at": _ago(days=60),
            "updated_at": _ago(days=20),
            "expected_close_date": _ago(days=5),
            "actual_close_date": None,
        },
        # Vendu il y a 40 jours, cycle de 60 jours
        {
            "id": "deal_003",
            "organization_id": organization_id,
            "contact_id": "contact_004",
            "name": "Villa Écully",
            "amount": 450000,
            "probability": 100,
            "stage": "vendu",
            "commission_amount": 13500,
            "created_at": _ago(days=100),
            "updated_at": _ago(days=40),
            "expected_close_date": None,
            "actual_close_date": _ago(days=40),
        },
        # Perdu il y a 25 jours, cycle de 25 jours
        {
            "id": "deal_004",
            "organization_id": organization_id,
            "contact_id": "contact_002",
            "name": "Studio Croix-Rousse",
            "amount": 150000,
            "probability": 20,
            "stage": "perdu",
            "commission_amount": 0,
            "created_at": _ago(days=50),
            "updated_at": _ago(days=25),
            "expected_close_date": None,
            "actual_close_date": _ago(days=25),
        },
        # Mandat signé, rien depuis 9 jours
        {
            "id": "deal_005",
            "organization_id": organization_id,
            "contact_id": None,
            "name": "Loft Confluence",
            "amount": 500000,
            "probability": 60,
            "stage": "mandat",
            "commission_amount": None,
            "created_at": _ago(days=30),
            "updated_at": _ago(days=9),
            "expected_close_date": None,
            "actual_close_date": None,
        },
    ]


@pytest.fixture
def sample_activity_rows(organization_id):
    return [
        # Visite cet après-midi
        {
            "id": "act_001",
            "organization_id": organization_id,
            "name": "Visite Appartement T3",
            "description": "Visite avec Sophie Laurent à 14h",
            "status": "planifie",
            "priority": "haute",
            "date": _in(hours=4),
            "created_at": _ago(days=2),
            "completed_at": None,
        },
        # Jamais traitée : SLA dépassé et en retard
        {
            "id": "act_002",
            "organization_id": organization_id,
            "name": "Relance notaire",
            "description": None,
            "status": "planifie",
            "priority": "normale",
            "date": _ago(days=8),
            "created_at": _ago(days=10),
            "completed_at": None,
        },
        # Terminée hier
        {
            "id": "act_003",
            "organization_id": organization_id,
            "name": "Signature compromis",
            "description": "Compromis Villa Écully signé",
            "status": "termine",
            "priority": "urgente",
            "date": _ago(days=1),
            "created_at": _ago(days=3),
            "completed_at": _ago(days=1),
        },
        # En cours, prévue demain
        {
            "id": "act_004",
            "organization_id": organization_id,
            "name": "Appel vendeur",
            "description": None,
            "status": "en_cours",
            "priority": "basse",
            "date": _in(days=1),
            "created_at": _ago(days=8),
            "completed_at": None,
        },
    ]


@pytest.fixture
def sample_deals(sample_deal_rows):
    return [Deal.from_row(row) for row in sample_deal_rows]


@pytest.fixture
def sample_contacts(sample_contact_rows, sample_deals):
    contacts = []
    for row in sample_contact_rows:
        contact = Contact.from_row(row)
        contact.deals = [d for d in sample_deals if d.contact_id == contact.id]
        contacts.append(contact)
    return contacts


@pytest.fixture
def sample_activities(sample_activity_rows):
    return [Activity.from_row(row) for row in sample_activity_rows]


@pytest.fixture
def sample_snapshot(organization_id, sample_contacts, sample_deals,
                    sample_activities):
    return Snapshot(
        organization_id=organization_id,
        contacts=sample_contacts,
        deals=sample_deals,
        activities=sample_activities
    )


@pytest.fixture
def mock_supabase(organization_id, sample_contact_rows, sample_deal_rows,
                  sample_activity_rows):
    """
    Mock Supabase complet.
    Toutes les requêtes retournent des données de test.
    On ne touche jamais la vraie base pendant les tests.
    """
    with patch("services.database.get_client") as mock_get_client:
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client

        def table_mock(table_name):
            table = MagicMock()

            data_map = {
                "contacts": sample_contact_rows,
                "deals": sample_deal_rows,
                "activities": sample_activity_rows,
                "organizations": [{
                    "id": organization_id,
                    "name": "Agence Presqu'île",
                    "api_key": "test-api-key",
                    "scoring_config": {"high_value_threshold": 400000},
                }],
            }

            # Chaîne de méthodes fluide
            query = MagicMock()
            query.select.return_value = query
            query.eq.return_value = query
            query.neq.return_value = query
            query.lt.return_value = query
            query.gte.return_value = query
            query.order.return_value = query
            query.limit.return_value = query

            # Execute retourne les données correspondant à la table
            query.execute.return_value = MagicMock(
                data=data_map.get(table_name, [])
            )

            table.select.return_value = query
            return table

        mock_client.table.side_effect = table_mock
        yield mock_client
