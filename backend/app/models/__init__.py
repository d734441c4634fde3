from app.models.user import User
from app.models.token import TokenBalance, TokenTransaction
from app.models.custom_trip import CustomTripRequest
from app.models.job import Job, JobApplication
from app.models.trip import Trip
from app.models.booking import Booking
from app.models.review import Review
from app.models.notification import Notification
from app.models.contact import ContactMessage

__all__ = [
    "User", "TokenBalance", "TokenTransaction", "CustomTripRequest",
    "Job", "JobApplication", "Trip", "Booking", "Review",
    "Notification", "ContactMessage",
]
