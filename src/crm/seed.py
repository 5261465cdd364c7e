"""Demo book of business: clients and tasks dated relative to a reference time."""

from __future__ import annotations

from datetime import datetime, timedelta

from src.crm.models import (
    AIActionType,
    AICompletionData,
    Client,
    Task,
    TaskPriority,
    TaskStatus,
)


def _at(reference: datetime, days: int, hour: int, minute: int = 0) -> datetime:
    """Return ``reference``'s calendar day shifted by ``days`` at ``hour:minute``."""
    day = reference.replace(hour=0, minute=0, second=0, microsecond=0)
    return day + timedelta(days=days, hours=hour, minutes=minute)


def seed_clients(reference: datetime) -> list[Client]:
    return [
        Client(
            id="1",
            name="Michael Johnson",
            email="michael.johnson@example.com",
            phone="416-555-0142",
            segment="High Net Worth",
            risk_profile="Moderate",
            portfolio_value=1_250_000,
            last_contact=_at(reference, -14, 10),
            next_meeting=_at(reference, 6, 14),
            notes="Prefers quarterly reviews in person. Holds concentrated Canadian bank positions.",
            tags=["portfolio", "annual-review"],
        ),
        Client(
            id="2",
            name="Sarah Chen",
            email="sarah.chen@example.com",
            phone="647-555-0198",
            segment="Mass Affluent",
            risk_profile="Aggressive",
            portfolio_value=420_000,
            last_contact=_at(reference, -3, 15),
            notes="Maximises RRSP room every year. $18,500 contribution room remaining.",
            tags=["rrsp", "tax-planning"],
        ),
        Client(
            id="3",
            name="David and Emily Williams",
            email="williams.family@example.com",
            phone="905-555-0117",
            segment="High Net Worth",
            risk_profile="Conservative",
            portfolio_value=850_000,
            last_contact=_at(reference, -1, 16),
            next_meeting=_at(reference, 40, 10),
            notes="Planning retirement at 65 in eight years. Interested in pension income splitting.",
            tags=["retirement"],
        ),
        Client(
            id="4",
            name="Robert Thompson",
            email="r.thompson@example.com",
            phone="416-555-0173",
            segment="Retail",
            risk_profile="Moderate",
            portfolio_value=95_000,
            last_contact=_at(reference, -30, 11),
            tags=["tfsa"],
        ),
        Client(
            id="5",
            name="Priya Patel",
            email="priya.patel@example.com",
            phone="647-555-0150",
            segment="Mass Affluent",
            risk_profile="Conservative",
            portfolio_value=310_000,
            last_contact=_at(reference, -60, 9),
            notes="Annual review of life and disability coverage due.",
            tags=["insurance"],
        ),
    ]


def seed_tasks(reference: datetime) -> list[Task]:
    return [
        Task(
            id="1",
            title="Review Johnson Portfolio Q4 Performance",
            description="Quarterly review of portfolio performance and rebalancing recommendations",
            status=TaskStatus.NEEDS_REVIEW,
            due_date=_at(reference, 0, 14),
            client_id="1",
            client_name="Michael Johnson",
            priority=TaskPriority.HIGH,
            tags=["portfolio", "quarterly-review"],
            created_at=_at(reference, -3, 9),
            updated_at=_at(reference, 0, 8, 30),
            ai_completed=True,
            ai_action_type=AIActionType.PORTFOLIO_REVIEW,
            ai_completion_data=AICompletionData(
                completed_at=_at(reference, 0, 8, 30),
                summary="Portfolio analysis complete with rebalancing recommendations",
                details=(
                    "The portfolio has returned 7.2% YTD. Allocation is 65% equities, "
                    "30% fixed income, 5% cash. Recommend reducing equity exposure by 5% "
                    "by trimming Canadian bank positions and adding government bonds."
                ),
                confidence=92,
            ),
        ),
        Task(
            id="2",
            title="Draft Email: Chen RRSP Contribution Reminder",
            description="Send annual RRSP contribution reminder to Sarah Chen",
            status=TaskStatus.NEEDS_REVIEW,
            due_date=_at(reference, 0, 10),
            client_id="2",
            client_name="Sarah Chen",
            priority=TaskPriority.MEDIUM,
            tags=["email", "rrsp", "tax-planning"],
            created_at=_at(reference, -2, 10),
            updated_at=_at(reference, 0, 7, 15),
            ai_completed=True,
            ai_action_type=AIActionType.EMAIL_DRAFT,
            ai_completion_data=AICompletionData(
                completed_at=_at(reference, 0, 7, 15),
                summary="RRSP contribution reminder email drafted",
                details=(
                    "Subject: RRSP Contribution Deadline Approaching\n\nHi Sarah,\n\n"
                    "You have $18,500 remaining in RRSP contribution room. Contributing "
                    "the full amount could save you approximately $7,400 in taxes. "
                    "Could we book a short call to plan your contribution?\n\nBest regards"
                ),
                confidence=88,
            ),
        ),
        Task(
            id="3",
            title="Prepare Meeting Notes: Williams Retirement Planning",
            description="Document discussion and action items from the retirement planning session",
            status=TaskStatus.NEEDS_REVIEW,
            due_date=_at(reference, 0, 16),
            client_id="3",
            client_name="David and Emily Williams",
            priority=TaskPriority.MEDIUM,
            tags=["meeting-notes", "retirement"],
            created_at=_at(reference, -1, 15, 30),
            updated_at=_at(reference, 0, 9, 45),
            ai_completed=True,
            ai_action_type=AIActionType.MEETING_NOTES,
            ai_completion_data=AICompletionData(
                completed_at=_at(reference, 0, 9, 45),
                summary="Meeting notes compiled with action items",
                details=(
                    "Target retirement age 65. Current savings $850,000. Desired income "
                    "$80,000/year. Action items: run projection scenarios, discuss pension "
                    "income splitting, review estate documents."
                ),
                confidence=95,
            ),
        ),
        Task(
            id="4",
            title="Follow-up Call: Thompson TFSA Investment",
            description="Call Robert Thompson to discuss TFSA investment options",
            status=TaskStatus.PENDING,
            due_date=_at(reference, 0, 11),
            client_id="4",
            client_name="Robert Thompson",
            priority=TaskPriority.HIGH,
            tags=["call", "tfsa"],
            created_at=_at(reference, -2, 14),
            updated_at=_at(reference, -2, 14),
        ),
        Task(
            id="5",
            title="Review Patel Insurance Coverage",
            description="Annual review of life and disability insurance coverage",
            status=TaskStatus.PENDING,
            due_date=_at(reference, 0, 15),
            client_id="5",
            client_name="Priya Patel",
            priority=TaskPriority.MEDIUM,
            tags=["insurance", "annual-review"],
            created_at=_at(reference, -1, 9),
            updated_at=_at(reference, -1, 9),
        ),
        Task(
            id="6",
            title="Quarterly Market Commentary",
            description="Prepare and send Q4 market commentary to all clients",
            status=TaskStatus.IN_PROGRESS,
            due_date=_at(reference, 1, 17),
            priority=TaskPriority.MEDIUM,
            tags=["market-commentary", "quarterly"],
            created_at=_at(reference, -3, 10),
            updated_at=_at(reference, 0, 8),
        ),
        Task(
            id="7",
            title="Schedule Johnson Annual Review Meeting",
            description="Book meeting room and send calendar invite for annual review",
            status=TaskStatus.PENDING,
            due_date=_at(reference, 1, 9),
            client_id="1",
            client_name="Michael Johnson",
            priority=TaskPriority.LOW,
            tags=["scheduling", "annual-review"],
            created_at=_at(reference, -1, 11),
            updated_at=_at(reference, -1, 11),
        ),
        Task(
            id="8",
            title="Update Chen Portfolio Holdings",
            description="Update portfolio management system with recent trades",
            status=TaskStatus.COMPLETED,
            due_date=_at(reference, -1, 12),
            client_id="2",
            client_name="Sarah Chen",
            priority=TaskPriority.MEDIUM,
            tags=["portfolio", "data-entry"],
            created_at=_at(reference, -2, 9),
            updated_at=_at(reference, -1, 10, 30),
            completed_at=_at(reference, -1, 10, 30),
        ),
        Task(
            id="9",
            title="Tax Loss Harvesting Review",
            description="Review all portfolios for tax loss harvesting opportunities",
            status=TaskStatus.PENDING,
            due_date=_at(reference, 2, 16),
            priority=TaskPriority.HIGH,
            tags=["tax-planning", "year-end"],
            created_at=_at(reference, 0, 8),
            updated_at=_at(reference, 0, 8),
        ),
        Task(
            id="10",
            title="Compliance: Q4 Trade Confirmations",
            description="Verify all Q4 trade confirmations have been sent to clients",
            status=TaskStatus.PENDING,
            due_date=_at(reference, 4, 17),
            priority=TaskPriority.HIGH,
            tags=["compliance", "quarterly"],
            created_at=_at(reference, 0, 9),
            updated_at=_at(reference, 0, 9),
        ),
    ]
