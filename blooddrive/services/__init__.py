from .errors import (
    DonationError, ValidationError, NotFound, InvalidTransition, DonorIneligible,
    CapacityExceeded, EventInPast, AlreadyTested, AlreadyDispositioned, Conflict
)
