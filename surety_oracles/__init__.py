"""
FlightSurety Oracles — simulated oracle pool for the FlightSuretyApp contract.
"""

from .dispatcher import EventIndex, ResponseDispatcher, SubmissionOutcome
from .events import EventDecodeError, OracleReport, OracleRequest, OracleResponseRequested
from .listener import EventListener, SubscriptionState
from .pool import DuplicateIdentity, Identity, IdentityPool, RegistrationStatus, UnknownIdentity
from .registrar import Registrar, RegistrationError

__version__ = "1.0.0"
