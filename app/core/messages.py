from app.domain.availability import DateRange


class Messages:
    """
    Centralized store for user-facing messages.
    """

    @property
    def SELECT_DATES(self) -> str:
        return "Please select check-in and check-out dates."

    @property
    def CHECK_OUT_AFTER_CHECK_IN(self) -> str:
        return "Please choose a check-out date after the check-in date."

    @property
    def DATES_UNAVAILABLE(self) -> str:
        return "Dates unavailable: this room is already booked during the dates you selected."

    @property
    def DATES_TAKEN(self) -> str:
        return "The room is not available for the selected dates. Please choose new dates."

    @property
    def SIGN_IN_REQUIRED(self) -> str:
        return "Please sign in before booking a room."

    @property
    def SUBMISSION_IN_PROGRESS(self) -> str:
        return "Your booking is already being processed."

    @property
    def BOOKING_CONFIRMED(self) -> str:
        return 'Booking confirmed 🎉 You can review it under "Booking history".'

    def booking_failed(self, detail: str) -> str:
        return f"Booking could not be completed: {detail}"

    def conflict_lines(self, conflicts: list[DateRange]) -> list[str]:
        return [
            f"• {r.check_in.strftime('%d/%m/%Y')} to {r.check_out.strftime('%d/%m/%Y')}"
            for r in conflicts
        ]


messages = Messages()
