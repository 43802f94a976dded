"""Tests for the partition key helpers in leadbridge.database."""
from datetime import datetime, timedelta, timezone

from leadbridge.database import partition_key_for, recent_partition_keys


class TestPartitionKeys:

    def test_utc_date(self):
        assert partition_key_for(datetime(2026, 10, 19, 23, 59, tzinfo=timezone.utc)) == '2026-10-19'

    def test_offset_converted_to_utc(self):
        sydney = timezone(timedelta(hours=11))
        # 08:00 on the 20th in Sydney is still the 19th in UTC
        assert partition_key_for(datetime(2026, 10, 20, 8, 0, tzinfo=sydney)) == '2026-10-19'

    def test_naive_is_utc(self):
        assert partition_key_for(datetime(2026, 1, 2, 3, 4)) == '2026-01-02'

    def test_recent_keys_today_first(self):
        now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
        assert recent_partition_keys(7, now) == [
            '2026-03-02', '2026-03-01', '2026-02-28', '2026-02-27',
            '2026-02-26', '2026-02-25', '2026-02-24',
        ]
