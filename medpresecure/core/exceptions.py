# medpresecure/core/exceptions.py


class BookingError(Exception):
    """Base class for appointment booking failures"""


class SlotConflictError(BookingError):
    """The requested slot is already taken for this doctor"""

    def __init__(self, doctor_id: str, appointment_datetime):
        self.doctor_id = doctor_id
        self.appointment_datetime = appointment_datetime
        super().__init__("This time slot was just booked. Please select another time.")


class StorageError(BookingError):
    """Backend failure (connectivity, permission, quota)"""


class BookingValidationError(BookingError):
    """Malformed booking input, rejected before a transaction is opened"""


class TransactionContentionError(StorageError):
    """A commit lost a write conflict against a concurrent transaction"""


class AppointmentNotFoundError(BookingError):
    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__(f"Appointment with ID {appointment_id} not found")


class InsightsGenerationError(Exception):
    """The language model returned no usable prescription insights"""
