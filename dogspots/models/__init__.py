from dogspots.models.users import User
from dogspots.models.locations import Location
from dogspots.models.suggestions import LocationSuggestion
from dogspots.models.favorites import Favorite
from dogspots.models.reviews import Review

__all__ = ["User", "Location", "LocationSuggestion", "Favorite", "Review"]
