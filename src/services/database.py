# services/database.py

import os
import logging
from typing import Optional

from supabase import create_client, Client

from models import Contact, Deal, Activity, Snapshot

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# CONNEXION
# ─────────────────────────────────────────

def get_client() -> Client:
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_SERVICE_KEY"]
    return create_client(url, key)


# ─────────────────────────────────────────
# LECTURE
# Toujours filtrée par organisation : jamais de fuite
# d'une agence à l'autre.
# ─────────────────────────────────────────

def get(
    table: str,
    organization_id: str,
    filters: Optional[dict] = None,
    select: str = "*"
) -> list:
    """
    Récupère des enregistrements pour une organisation donnée.
    filters : dict optionnel de conditions supplémentaires
              ex: {"stage": "offre", "assigned_to": "abc"}
              Les valeurs None sont ignorées.
    """
    if not organization_id:
        raise ValueError("Organisation non trouvée")

    client = get_client()

    query = (
        client.table(table)
        .select(select)
        .eq("organization_id", organization_id)
    )

    if filters:
        for key, value in filters.items():
            if value is not None:
                query = query.eq(key, value)

    result = query.execute()
    return result.data or []


def get_organization(organization_id: str) -> Optional[dict]:
    client = get_client()

    result = (
        client.table("organizations")
        .select("*")
        .eq("id", organization_id)
        .limit(1)
        .execute()
    )

    return result.data[0] if result.data else None


def get_organization_by_api_key(api_key: str) -> Optional[dict]:
    """
    Une API key par agence.
    La colonne organizations.api_key est propre à ce service :
    le schéma du CRM ne l'a pas.
    """
    api_key = (api_key or "").strip()
    if not api_key:
        return None

    client = get_client()

    result = (
        client.table("organizations")
        .select("id, name")
        .eq("api_key", api_key)
        .limit(1)
        .execute()
    )

    return result.data[0] if result.data else None


# ─────────────────────────────────────────
# SNAPSHOT
# Les trois collections lues ensemble, avant tout calcul
# ─────────────────────────────────────────

def load_snapshot(organization_id: str) -> Snapshot:
    """
    Charge contacts, deals et activités d'une organisation.
    Les deals sont rattachés à leur contact (badge high value).
    """
    contact_rows  = get("contacts", organization_id)
    deal_rows     = get("deals", organization_id)
    activity_rows = get("activities", organization_id)

    deals = [Deal.from_row(row) for row in deal_rows]

    deals_by_contact: dict[str, list[Deal]] = {}
    for deal in deals:
        if deal.contact_id:
            deals_by_contact.setdefault(deal.contact_id, []).append(deal)

    contacts = []
    for row in contact_rows:
        contact = Contact.from_row(row)
        contact.deals = deals_by_contact.get(contact.id, [])
        contacts.append(contact)

    activities = [Activity.from_row(row) for row in activity_rows]

    logger.info(
        f"Snapshot {organization_id} — {len(contacts)} contacts, "
        f"{len(deals)} deals, {len(activities)} activités"
    )

    return Snapshot(
        organization_id=organization_id,
        contacts=contacts,
        deals=deals,
        activities=activities
    )
