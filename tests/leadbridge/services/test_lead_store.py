"""Tests for leadbridge.services.lead_store."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from leadbridge.config import (
    LEAD_CALLING_CUSTOMER, LEAD_COMPLETED, LEAD_DECLINED, LEAD_FAILED,
    LEAD_NOTIFIED, LEAD_RECEIVED, LEAD_SKIPPED_DND,
)
from leadbridge.models.lead import LeadEntity
from leadbridge.services.lead_store import find_lead, get_lead, save_lead, update_lead_status

RECEIVED_AT = datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)


class TestSaveLead:

    def test_saves_with_received_status(self, make_lead):
        save_lead(make_lead(), received_at=RECEIVED_AT)
        stored = get_lead('lead-1001', RECEIVED_AT)
        assert stored is not None
        assert stored.status == LEAD_RECEIVED
        assert stored.partition_key == '2026-10-19'
        assert stored.row_key == 'lead-1001'
        assert stored.customer_name == 'Jane Citizen'
        assert stored.call_id is None

    def test_partition_is_utc_date(self, make_lead):
        # 23:30 on the 18th in UTC is already the 19th in Sydney
        received = datetime(2026, 10, 18, 23, 30, tzinfo=timezone.utc)
        save_lead(make_lead(), received_at=received)
        assert get_lead('lead-1001', received).partition_key == '2026-10-18'

    def test_resubmission_resets_to_received(self, make_lead):
        save_lead(make_lead(), received_at=RECEIVED_AT)
        update_lead_status('lead-1001', LEAD_FAILED, received_at=RECEIVED_AT)

        save_lead(make_lead(job_type='Electrical'), received_at=RECEIVED_AT)

        stored = get_lead('lead-1001', RECEIVED_AT)
        assert stored.status == LEAD_RECEIVED
        assert stored.job_type == 'Electrical'

    def test_every_write_bumps_entity_tag(self, make_lead):
        save_lead(make_lead(), received_at=RECEIVED_AT)
        first = get_lead('lead-1001', RECEIVED_AT).version
        update_lead_status('lead-1001', LEAD_NOTIFIED, received_at=RECEIVED_AT)
        assert get_lead('lead-1001', RECEIVED_AT).version > first

    def test_store_failure_raises(self, make_lead):
        broken = MagicMock()
        broken.get.side_effect = RuntimeError('database unavailable')
        with patch('leadbridge.services.lead_store.get_session', return_value=broken):
            with pytest.raises(RuntimeError):
                save_lead(make_lead(), received_at=RECEIVED_AT)
        broken.rollback.assert_called_once()

    def test_to_dict_uses_camel_case(self, make_lead):
        save_lead(make_lead(), received_at=RECEIVED_AT)
        data = get_lead('lead-1001', RECEIVED_AT).to_dict()
        assert data['leadId'] == 'lead-1001'
        assert data['tradiePhone'] == '+61412345678'
        assert data['status'] == LEAD_RECEIVED


class TestFindLead:

    def test_finds_lead_from_earlier_day(self, make_lead):
        now = datetime.now(timezone.utc)
        save_lead(make_lead(), received_at=now - timedelta(days=3))
        assert find_lead('lead-1001', now=now) is not None

    def test_ignores_leads_outside_window(self, make_lead):
        now = datetime.now(timezone.utc)
        save_lead(make_lead(), received_at=now - timedelta(days=10))
        assert find_lead('lead-1001', now=now) is None

    def test_unknown_lead(self):
        assert find_lead('nope') is None


class TestUpdateLeadStatus:

    @pytest.fixture
    def stored(self, make_lead):
        save_lead(make_lead(), received_at=RECEIVED_AT)
        return 'lead-1001'

    def test_records_call_id(self, stored):
        assert update_lead_status(stored, LEAD_NOTIFIED, received_at=RECEIVED_AT, call_id='CA1')
        lead = get_lead(stored, RECEIVED_AT)
        assert lead.status == LEAD_NOTIFIED
        assert lead.call_id == 'CA1'

    def test_full_happy_path(self, stored):
        for status in (LEAD_NOTIFIED, LEAD_CALLING_CUSTOMER, LEAD_COMPLETED):
            assert update_lead_status(stored, status, received_at=RECEIVED_AT) is True
        assert get_lead(stored, RECEIVED_AT).status == LEAD_COMPLETED

    @pytest.mark.parametrize('status', [LEAD_SKIPPED_DND, LEAD_FAILED])
    def test_received_can_be_closed_without_call(self, stored, status):
        assert update_lead_status(stored, status, received_at=RECEIVED_AT) is True

    def test_declined_after_notified(self, stored):
        update_lead_status(stored, LEAD_NOTIFIED, received_at=RECEIVED_AT)
        assert update_lead_status(stored, LEAD_DECLINED, received_at=RECEIVED_AT) is True

    def test_rejects_backward_transition(self, stored):
        update_lead_status(stored, LEAD_NOTIFIED, received_at=RECEIVED_AT)
        update_lead_status(stored, LEAD_COMPLETED, received_at=RECEIVED_AT)

        assert update_lead_status(stored, LEAD_NOTIFIED, received_at=RECEIVED_AT) is False
        assert get_lead(stored, RECEIVED_AT).status == LEAD_COMPLETED

    def test_rejects_skipping_notified(self, stored):
        assert update_lead_status(stored, LEAD_CALLING_CUSTOMER, received_at=RECEIVED_AT) is False
        assert get_lead(stored, RECEIVED_AT).status == LEAD_RECEIVED

    def test_same_status_is_accepted(self, stored):
        assert update_lead_status(stored, LEAD_RECEIVED, received_at=RECEIVED_AT) is True

    def test_probes_when_date_unknown(self, make_lead):
        now = datetime.now(timezone.utc)
        save_lead(make_lead(), received_at=now - timedelta(days=2))
        assert update_lead_status('lead-1001', LEAD_NOTIFIED, now=now) is True
        assert find_lead('lead-1001', now=now).status == LEAD_NOTIFIED

    def test_unknown_lead_returns_false(self):
        assert update_lead_status('ghost', LEAD_NOTIFIED) is False

    def test_stale_entity_tag_is_rejected(self, stored, session_factory):
        # Loaded before the other writer commits, so it holds the old version
        stale = session_factory()
        stale.get(LeadEntity, ('2026-10-19', stored))

        assert update_lead_status(stored, LEAD_NOTIFIED, received_at=RECEIVED_AT, call_id='CA1') is True

        with patch('leadbridge.services.lead_store.get_session', return_value=stale):
            assert update_lead_status(stored, LEAD_FAILED, received_at=RECEIVED_AT) is False

        lead = get_lead(stored, RECEIVED_AT)
        assert lead.status == LEAD_NOTIFIED
        assert lead.call_id == 'CA1'
