"""
Enrollment Services Package - DSP (Digital Solutions Platform)

Geschäftslogik des Einschreibungs-Lebenszyklus:
- enrollment_workflow: idempotente Einschreibung aus verifizierten Zahlungs-Callbacks
- trainer_assignment: Trainer-Zuweisung mit Benachrichtigungen
- progress: Stufen-Fortschritt und Stornierung

Author: DSP Development Team
Version: 1.0.0
"""

from .enrollment_workflow import EnrollmentWorkflow, EnrollmentOutcome, OutcomeStatus
from .trainer_assignment import TrainerAssignmentCoordinator, AssignmentResult
from .progress import EnrollmentProgressService
