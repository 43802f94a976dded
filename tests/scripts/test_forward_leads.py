"""Tests for scripts/forward_leads.py — the relay CLI."""
import json
from unittest.mock import MagicMock, patch

import pytest

from scripts import forward_leads
from leadbridge.services.seen_leads import SeenLeadTracker


@pytest.fixture
def leads_file(tmp_path):
    path = tmp_path / 'leads.json'
    path.write_text(json.dumps([{'leadId': 'a'}, {'leadId': 'b'}]))
    return str(path)


@pytest.fixture
def cli_redis(fake_redis):
    with patch.object(forward_leads, 'redis_client', fake_redis), \
            patch.object(forward_leads, 'configure_logging'):
        yield fake_redis


@pytest.fixture
def posted():
    resp = MagicMock(ok=True, status_code=200)
    resp.json.return_value = {'success': True}
    with patch('leadbridge.services.relay.requests.post', return_value=resp) as post:
        yield post


class TestForwardLeadsCli:

    def test_forwards_and_prints_summary(self, leads_file, cli_redis, posted, capsys):
        code = forward_leads.main([leads_file, '--tradie-phone', '0412 345 678', '--dnd', '21', '7'])

        assert code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary['forwarded'] == ['a', 'b']
        body = posted.call_args.kwargs['json']
        assert body['tradiePhone'] == '+61412345678'
        assert body['dndStartHour'] == 21

    def test_rerun_skips_seen(self, leads_file, cli_redis, posted, capsys):
        forward_leads.main([leads_file, '--tradie-phone', '0412345678'])
        capsys.readouterr()
        forward_leads.main([leads_file, '--tradie-phone', '0412345678'])
        assert json.loads(capsys.readouterr().out)['skipped'] == 2

    def test_reset_forgets_seen(self, cli_redis):
        SeenLeadTracker(cli_redis).mark_seen('a')
        assert forward_leads.main(['--reset']) == 0
        assert SeenLeadTracker(cli_redis).seen_ids() == []

    def test_invalid_phone_exits(self, leads_file, cli_redis):
        with pytest.raises(SystemExit):
            forward_leads.main([leads_file, '--tradie-phone', '12345'])

    def test_half_dnd_window_exits(self, leads_file, cli_redis):
        with pytest.raises(SystemExit):
            forward_leads.main([leads_file, '--tradie-phone', '0412345678', '--dnd', '21', ''])
