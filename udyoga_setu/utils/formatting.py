"""
Display helpers for job cards and dashboards.
"""

from datetime import datetime
from typing import Optional

from udyoga_setu.utils.timeutils import parse_timestamp, utcnow

JOB_TYPE_LABELS = {
    "full-time": "Full-time",
    "part-time": "Part-time",
    "contract": "Contract",
    "internship": "Internship",
    "temporary": "Temporary",
    "remote": "Remote",
}

EXPERIENCE_LABELS = {
    "entry": "Entry Level (0-2 years)",
    "junior": "Junior Level (1-3 years)",
    "mid": "Mid Level (2-5 years)",
    "senior": "Senior Level (5-10 years)",
    "lead": "Lead/Principal (10+ years)",
    "executive": "Executive (15+ years)",
}


def _rupees(amount: float) -> str:
    # Indian digit grouping: 1,50,000
    whole = str(int(round(amount)))
    if len(whole) <= 3:
        return whole
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_salary_range(salary_min: Optional[float], salary_max: Optional[float]) -> str:
    if salary_min and salary_max:
        return f"₹{_rupees(salary_min)} - ₹{_rupees(salary_max)}"
    if salary_min:
        return f"₹{_rupees(salary_min)}+"
    if salary_max:
        return f"Up to ₹{_rupees(salary_max)}"
    return "Salary not specified"


def format_job_type(job_type: str) -> str:
    return JOB_TYPE_LABELS.get(job_type, job_type)


def format_experience(level: str) -> str:
    return EXPERIENCE_LABELS.get(level, level)


def time_ago(value, now: datetime = None) -> str:
    """'5m ago', '3h ago', '2d ago', or the date for anything older than a week."""
    posted = parse_timestamp(value)
    now = now or utcnow()
    minutes = int((now - posted).total_seconds() // 60)
    if minutes < 60:
        return f"{max(minutes, 0)}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    return posted.strftime("%d/%m/%Y")
