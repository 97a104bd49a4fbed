"""Domain errors raised by the booking services.

Each error carries the HTTP status and the message shown to the customer. The
application renders them as ``{"message": ...}``.
"""


class BookingError(Exception):
    status_code = 400
    message = 'Request could not be completed.'

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class NoActiveSubscription(BookingError):
    message = "You don't have an active subscription. Please subscribe first."


class NoCreditsRemaining(BookingError):
    message = 'You have no consultations left. Please purchase a top-up to continue.'


class SlotAlreadyBooked(BookingError):
    message = 'This slot has already been booked. Please select another time.'


class SlotUnavailable(BookingError):
    message = 'This slot is not available. Please select another time.'


class InvalidBookingWindow(BookingError):
    message = 'Appointments can only be booked within the allowed booking window.'


class AlreadyCanceled(BookingError):
    message = 'Appointment is already canceled'


class InvalidConsultationCount(BookingError):
    message = 'Consultations must be a positive integer between 0 and 1000'


class NotAppointmentOwner(BookingError):
    status_code = 403
    message = 'Only the account that booked this appointment can cancel it.'


class AppointmentNotFound(BookingError):
    status_code = 404
    message = 'Appointment not found'


class SubscriptionNotFound(BookingError):
    status_code = 404
    message = 'Subscription not found'


class BlockedSlotNotFound(BookingError):
    status_code = 404
    message = 'Blocked slot not found'


class SettingsNotConfigured(BookingError):
    status_code = 500
    message = 'Appointment settings not configured'
