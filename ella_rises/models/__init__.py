# Database models
from .participant import Participant, ParticipantRole
from .event import EventTemplate, EventOccurrence
from .registration import Registration, RegistrationStatus
from .survey import Survey, NPSBucket
from .milestone import Milestone
from .donation import Donation
