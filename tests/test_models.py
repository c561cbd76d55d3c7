# tests/test_models.py

import pytest
from datetime import datetime

from insights.alerts import compute_alerts
from models import (
    Deal, Contact, Activity, PipelineStage, ActivityStatus, ActivityPriority,
    SmartBadge, BadgeType, Momentum, PipelineHealthSnapshot,
    is_terminal_stage, serialize
)


class TestPipelineStage:

    @pytest.mark.parametrize("raw, expected", [
        ("vendu", PipelineStage.VENDU),
        ("won", PipelineStage.VENDU),
        ("WON", PipelineStage.VENDU),
        ("lost", PipelineStage.PERDU),
        ("lead", PipelineStage.NOUVEAU),
        (" Negociation ", PipelineStage.NEGOCIATION),
        ("négociation", PipelineStage.NEGOCIATION),
        ("Négociation", PipelineStage.NEGOCIATION),
        ("compromis", PipelineStage.COMPROMIS),
        ("Vendu", PipelineStage.VENDU),
        (PipelineStage.OFFRE, PipelineStage.OFFRE),
    ])
    def test_parse_aliases(self, raw, expected):
        assert PipelineStage.parse(raw) == expected

    def test_unknown_stage_is_none(self):
        assert PipelineStage.parse("signature") is None
        assert PipelineStage.parse(None) is None
        assert PipelineStage.parse("") is None

    def test_terminal_predicate_shared(self):
        """Même prédicat pour contacts et deals."""
        assert is_terminal_stage(PipelineStage.VENDU)
        assert is_terminal_stage(PipelineStage.PERDU)
        assert not is_terminal_stage(PipelineStage.COMPROMIS)
        assert not is_terminal_stage(None)

        deal = Deal(id="d", stage=PipelineStage.VENDU)
        contact = Contact(id="c", pipeline_stage=PipelineStage.VENDU)
        assert deal.is_terminal and contact.is_terminal

    def test_advanced_stages(self):
        advanced = [s for s in PipelineStage if s.is_advanced]
        assert advanced == [
            PipelineStage.OFFRE, PipelineStage.NEGOCIATION, PipelineStage.COMPROMIS
        ]

    def test_every_stage_has_label(self):
        for stage in PipelineStage:
            assert stage.label


class TestActivityEnums:

    @pytest.mark.parametrize("raw, expected", [
        ("termine", ActivityStatus.TERMINE),
        ("Terminé", ActivityStatus.TERMINE),
        ("En cours", ActivityStatus.EN_COURS),
        ("PLANIFIE", ActivityStatus.PLANIFIE),
        ("archivé", None),
        (None, None),
    ])
    def test_status_parse(self, raw, expected):
        assert ActivityStatus.parse(raw) == expected

    def test_priority_parse(self):
        assert ActivityPriority.parse("Haute") == ActivityPriority.HAUTE
        assert ActivityPriority.parse("critique") is None


class TestFromRow:

    def test_deal_from_row(self, sample_deal_rows):
        deal = Deal.from_row(sample_deal_rows[0])

        assert deal.id == "deal_001"
        assert deal.amount == 320000.0
        assert deal.probability == 80
        assert deal.stage == PipelineStage.NEGOCIATION
        assert deal.updated_at == datetime(2026, 3, 17, 10, 0)
        assert deal.actual_close_date is None

    def test_deal_from_row_tolerates_bad_values(self):
        deal = Deal.from_row({
            "id": 42,
            "amount": "abc",
            "probability": "75.0",
            "stage": "inconnu",
            "updated_at": "pas une date",
        })

        assert deal.id == "42"
        assert deal.amount is None
        assert deal.probability == 75
        assert deal.stage is None
        assert deal.updated_at is None
        assert deal.name == ""

    def test_deal_from_row_accented_stage(self):
        """Un libellé accentué saisi à la main reste un stage avancé."""
        deal = Deal.from_row({"id": "d", "stage": "Négociation"})
        assert deal.stage == PipelineStage.NEGOCIATION
        assert deal.stage.is_advanced

    def test_contact_from_row_date_only_followup(self, sample_contact_rows):
        contact = Contact.from_row(sample_contact_rows[1])

        assert contact.next_followup_date == datetime(2026, 3, 15)
        assert contact.last_contact_date == datetime(2026, 2, 26, 10, 0)
        assert contact.deals == []

    def test_contact_from_row_nested_deals(self):
        contact = Contact.from_row({
            "id": "c",
            "deals": [{"id": "d1", "amount": 500000}],
        })
        assert contact.deals[0].amount == 500000

    def test_activity_from_row(self, sample_activity_rows):
        activity = Activity.from_row(sample_activity_rows[2])

        assert activity.is_done
        assert activity.priority == ActivityPriority.URGENTE
        assert activity.completed_at == datetime(2026, 3, 17, 10, 0)

    def test_activity_missing_description_is_empty(self, sample_activity_rows):
        activity = Activity.from_row(sample_activity_rows[1])
        assert activity.description == ""
        assert not activity.is_done


class TestSerialize:

    def test_enums_and_dates(self):
        data = serialize(PipelineHealthSnapshot(momentum=Momentum.MODERE))
        assert data["momentum"] == "Modéré"
        assert data["velocity_days"] == 45

        deal = serialize(Deal(id="d", updated_at=datetime(2026, 3, 1, 8, 30)))
        assert deal["updated_at"] == "2026-03-01T08:30:00"
        assert deal["stage"] is None

    def test_dict_of_lists(self):
        badges = {
            "c1": [SmartBadge(BadgeType.HOT, "Chaud", "🔥", "destructive")]
        }
        assert serialize(badges) == {
            "c1": [{
                "type": "hot", "label": "Chaud",
                "icon": "🔥", "color": "destructive"
            }]
        }

    def test_alert_panel_total(self, sample_contacts, sample_deals,
                               sample_activities, now):
        panel = compute_alerts(
            sample_contacts, sample_deals, sample_activities, now
        )
        data = serialize(panel)

        assert data["total"] == 3
        assert data["severity"] == "warning"
        assert data["blocked_deals"]["category"] == "blocked-deal"
        assert data["blocked_deals"]["preview"][0]["amount"] == 280000.0
