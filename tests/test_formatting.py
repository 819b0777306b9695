from datetime import datetime, timedelta, timezone

from udyoga_setu.utils.formatting import format_experience, format_job_type, format_salary_range, time_ago

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestSalary:
    def test_range_uses_indian_grouping(self):
        assert format_salary_range(150000, 1200000) == "₹1,50,000 - ₹12,00,000"

    def test_min_only(self):
        assert format_salary_range(15000, None) == "₹15,000+"

    def test_max_only(self):
        assert format_salary_range(None, 900) == "Up to ₹900"

    def test_unspecified(self):
        assert format_salary_range(None, None) == "Salary not specified"


class TestLabels:
    def test_job_type(self):
        assert format_job_type("full-time") == "Full-time"
        assert format_job_type("gig") == "gig"

    def test_experience(self):
        assert format_experience("entry") == "Entry Level (0-2 years)"
        assert format_experience("unknown") == "unknown"


class TestTimeAgo:
    def test_minutes(self):
        assert time_ago(NOW - timedelta(minutes=5), now=NOW) == "5m ago"

    def test_future_clamps_to_zero(self):
        assert time_ago(NOW + timedelta(minutes=5), now=NOW) == "0m ago"

    def test_hours(self):
        assert time_ago((NOW - timedelta(hours=3)).isoformat(), now=NOW) == "3h ago"

    def test_days(self):
        assert time_ago(NOW - timedelta(days=2), now=NOW) == "2d ago"

    def test_older_than_a_week_shows_date(self):
        assert time_ago("2025-02-01T08:00:00+00:00", now=NOW) == "01/02/2025"

    def test_naive_timestamp_is_utc(self):
        assert time_ago("2025-03-10T11:00:00", now=NOW) == "1h ago"
