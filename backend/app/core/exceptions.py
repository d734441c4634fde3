"""
Domain errors raised by the service layer.

Every error is an HTTPException carrying a status code, a stable `code`
for programmatic consumers and a human-readable default message. The
handlers in app.main render them as {"message": ..., "error": code}.
"""

from typing import Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "bad_request"
    message: str = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.message)


class ValidationFailed(AppError):
    code = "validation_error"
    message = "Validation failed"


# Not found

class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Resource not found"


class UserNotFound(NotFound):
    code = "user_not_found"
    message = "User not found"


class TripNotFound(NotFound):
    code = "trip_not_found"
    message = "Trip not found"


class BookingNotFound(NotFound):
    code = "booking_not_found"
    message = "Booking not found"


class JobNotFound(NotFound):
    code = "job_not_found"
    message = "Job not found or not available"


class ApplicationNotFound(NotFound):
    code = "application_not_found"
    message = "Job application not found"


class CustomTripNotFound(NotFound):
    code = "custom_trip_not_found"
    message = "Custom trip request not found"


class NotificationNotFound(NotFound):
    code = "notification_not_found"
    message = "Notification not found"


class ContactMessageNotFound(NotFound):
    code = "contact_message_not_found"
    message = "Contact message not found"


class NotAuthorized(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_authorized"
    message = "You are not allowed to perform this action"


# Token ledger

class InvalidPackage(AppError):
    code = "invalid_package"
    message = "Invalid token package"


class InsufficientBalance(AppError):
    code = "insufficient_balance"
    message = "Insufficient token balance"


class InsufficientTokens(AppError):
    code = "insufficient_tokens"
    message = "Insufficient tokens to create job post"


# State conflicts (reported as 400, not 409)

class InsufficientSeats(AppError):
    code = "insufficient_seats"
    message = "Not enough seats available"


class DuplicateApplication(AppError):
    code = "duplicate_application"
    message = "You have already applied for this job"


class AlreadyCancelled(AppError):
    code = "already_cancelled"
    message = "Booking already cancelled"


class DuplicateReview(AppError):
    code = "duplicate_review"
    message = "Review already submitted for this booking"


class HasApplications(AppError):
    code = "has_applications"
    message = "Cannot delete job with existing applications"


class HasBookings(AppError):
    code = "has_bookings"
    message = "Cannot modify trip with existing bookings"


class JobNotOpen(AppError):
    code = "job_not_open"
    message = "Cannot update closed or filled job"


class InvalidStatusTransition(AppError):
    code = "invalid_status_transition"
    message = "Status change not allowed from the current state"


# Authentication

class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"
    message = "Invalid email or password"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class EmailAlreadyRegistered(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "email_taken"
    message = "Email already registered"
