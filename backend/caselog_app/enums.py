"""
Słowniki wartości dla case'ów (TextChoices).

Wartości (value) są identyczne z tymi, których używa zdalny serwis case'ów,
etykiety (label) są wyświetlane na dashboardach.
"""

from django.db import models


class TaskType(models.TextChoices):
    POD = "pod", "POD"
    CLIENT_MEETING = "clientMeeting", "Client Meeting"
    TRAINING_FEEDBACK_NEW_TEAM_MEMBER = (
        "trainingFeedbackNewTeamMember",
        "Training Feedback - New Team Member",
    )
    CLIENT_SIDE_TRAINING = "clientSideTraining", "Client Side Training"
    SUPPORT_EMR_TICKETS = "supportEMRTickets", "Support EMR Tickets"
    FEEDBACK_REVIEW = "feedbackReview", "Feedback/Review"
    INTERNAL_TRAINING = "internalTraining", "Internal Training (EQX)"
    INTERNAL_TEAM_MEETING = "internalTeamMeeting", "Internal Team Meeting"
    TRAINING_NEW_TEAM_MEMBER = "trainingNewTeamMember", "Training - New Team Member"
    BREAK_15 = "break15", "Break - 15"
    BREAK_30 = "break30", "Break - 30"


class CaseOrigin(models.TextChoices):
    CHAT = "chat", "Chat"
    EMAIL = "email", "Email"
    VOICE_CALL = "voiceCall", "Voice Call"


class CaseType(models.TextChoices):
    NEW = "new", "New"
    FOLLOWUP = "followup", "Followup"
    REASSIGNED = "reassigned", "Reassigned"


class AssistanceNeeded(models.TextChoices):
    NO = "no", "No"
    EQUINOX = "equinox", "Equinox"
    ONSHORE = "onshore", "Onshore"


class TicketStatus(models.TextChoices):
    NEW = "new", "New"
    RESOLVED = "resolved", "Resolved"
    PENDING = "pending", "Pending"
    ESCALATED = "escalated", "Escalated"
    OPEN = "open", "Open"
    TRANSFERRED = "transferred", "Transferred"
    ON_HOLD = "onHold", "On Hold"


class EscalationTransferType(models.TextChoices):
    NA = "na", "N/A"
    ESCALATED = "escalated", "Escalated"
    TRANSFERRED = "transferred", "Transferred"


class Department(models.TextChoices):
    CAS = "cas", "CAS"
    CRM = "crm", "CRM"
    CSM = "csm", "CSM"
    ERX = "erx", "eRX"
    LAB = "lab", "Lab"
    MAT = "mat", "MAT"
    PSA = "psa", "PSA"
    ACCOUNTING = "accounting", "Accounting"
    EMR_SUPPORT = "emrSupport", "EMR Support"
    PRODUCT_ENHANCEMENT = "productEnhancement", "Product Enhancement"
    PDMP = "pdmp", "PDMP"
    BILLING = "billing", "Billing"
    SALES = "sales", "Sales"
    CLIENT_ADVOCATES = "clientAdvocates", "Client Advocates"
    CLEANUP = "cleanup", "Cleanup"


# Eskalacja/transfer wymaga wskazania działu docelowego
DESTINATION_REQUIRED_TYPES = frozenset({
    EscalationTransferType.ESCALATED.value,
    EscalationTransferType.TRANSFERRED.value,
})
