from app.schemas.common import ApiResponse
from app.schemas.user import UserCreate, UserResponse, UserLogin, Token
from app.schemas.token import TokenPackage, TokenPurchase, TokenGrant, TokenBalanceResponse
from app.schemas.job import JobCreate, JobUpdate, JobResponse, JobApplicationCreate
from app.schemas.trip import TripCreate, TripUpdate, TripResponse, ReviewCreate
from app.schemas.booking import BookingCreate, BookingResponse

__all__ = [
    "ApiResponse",
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "TokenPackage", "TokenPurchase", "TokenGrant", "TokenBalanceResponse",
    "JobCreate", "JobUpdate", "JobResponse", "JobApplicationCreate",
    "TripCreate", "TripUpdate", "TripResponse", "ReviewCreate",
    "BookingCreate", "BookingResponse",
]
