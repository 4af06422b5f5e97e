# barbershop/errors.py
"""
Booking failures.

Each failure carries a stable machine-readable ``code``; the HTTP layer maps
codes to status codes and messages (see ``barbershop.main.ERROR_STATUS``).
"""


class BookingError(Exception):
    code = "BOOKING_ERROR"
    message = "Booking operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.detail = message or self.message


# Input errors
class InvalidStart(BookingError):
    code = "INVALID_START"
    message = "The provided start time is not a valid date/time"


# Not-found errors
class ClientProfileNotFound(BookingError):
    code = "CLIENT_PROFILE_NOT_FOUND"
    message = "No client profile for this user"


class ServiceNotFound(BookingError):
    code = "SERVICE_NOT_FOUND"
    message = "Service not found or inactive"


class AppointmentNotFound(BookingError):
    code = "APPOINTMENT_NOT_FOUND"
    message = "Appointment not found"


# Conflict errors
class SlotNotAvailable(BookingError):
    code = "SLOT_NOT_AVAILABLE"
    message = "The selected time is not an available slot"


class SlotAlreadyTaken(BookingError):
    code = "SLOT_ALREADY_TAKEN"
    message = "The selected time is already booked"


class ClientDailyLimit(BookingError):
    code = "CLIENT_DAILY_LIMIT"
    message = "Only one appointment per day is allowed"


class AppointmentNotCancelable(BookingError):
    code = "APPOINTMENT_NOT_CANCELABLE"
    message = "This appointment cannot be cancelled"


class AppointmentNotReschedulable(BookingError):
    code = "APPOINTMENT_NOT_RESCHEDULABLE"
    message = "This appointment cannot be rescheduled"


# Lost the race on the final conditional update; safe to retry from the top
class AppointmentCancelFailed(BookingError):
    code = "APPOINTMENT_CANCEL_FAILED"
    message = "The appointment could not be cancelled"


class AppointmentRescheduleFailed(BookingError):
    code = "APPOINTMENT_RESCHEDULE_FAILED"
    message = "The appointment could not be rescheduled"
