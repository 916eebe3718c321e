"""Proximity domain exports."""

from .dispatch import ConnectionRegistry, FanoutDispatcher, dispatcher, registry
from .models import PROXIMITY_EVENT, LocationUpdateResult, Profile, ProximitySuggestion, UpdateState
from .service import update_location

__all__ = [
	"ConnectionRegistry",
	"FanoutDispatcher",
	"LocationUpdateResult",
	"PROXIMITY_EVENT",
	"Profile",
	"ProximitySuggestion",
	"UpdateState",
	"dispatcher",
	"registry",
	"update_location",
]
