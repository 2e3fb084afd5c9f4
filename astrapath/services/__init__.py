"""Services layer for the AstraPath companion core."""

from .capability_gate import CapabilityGate
from .companion_service import CompanionController
from .emergency_dialer import EmergencyDialer
from .escalation_service import EscalationStateMachine
from .listening_supervisor import ListeningSupervisor
from .notices import NoticePublisher
from .recording_manager import RecordingManager
from .sos_service import SosService

__all__ = [
    "CapabilityGate",
    "CompanionController",
    "EmergencyDialer",
    "EscalationStateMachine",
    "ListeningSupervisor",
    "NoticePublisher",
    "RecordingManager",
    "SosService",
]
