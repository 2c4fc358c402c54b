from .allocator import AllocationPlan, AllocationResult, AssignmentAllocator, WorkQueue
from .contacts import ContactRepository, ContactSummary, RegistrationResult
from .historical import ATTENDED, PENDING, BaseStats, HistoricalBaseView, classify
from .ledger import ActivityLedger, TimelinePoint
from .state_machine import ContactStateMachine, OutcomeResult, OutcomeSubmission, resolve_composite
from .team_report import TeamAllocationReport, TeamMemberProgress

__all__ = [
    "AllocationPlan",
    "AllocationResult",
    "AssignmentAllocator",
    "WorkQueue",
    "ContactRepository",
    "ContactSummary",
    "RegistrationResult",
    "ATTENDED",
    "PENDING",
    "BaseStats",
    "HistoricalBaseView",
    "classify",
    "ActivityLedger",
    "TimelinePoint",
    "ContactStateMachine",
    "OutcomeResult",
    "OutcomeSubmission",
    "resolve_composite",
    "TeamAllocationReport",
    "TeamMemberProgress",
]
