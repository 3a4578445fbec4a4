"""User-facing booking texts (Swedish first, English where the push gateway shows both)"""

from string import Template

from ...shared.datetime_helper import convert_to_hours_mins, format_due

REQUIRED_FIELD = "Du måste fylla in alla fält"
REQUIRED_CHOICE = "Du måste göra ett val här"
TRANSLATOR_CANNOT_BOOK = "Translator cannot create a booking"
BOOKING_IN_PAST = "Can't create booking in the past"
ADD_COMMENT = "Please, add comment"
RECORD_UPDATED = "Record updated!"

ALREADY_BOOKED_AT_TIME = "Du har redan en bokning den tiden! Bokningen är inte accepterad."
ALREADY_ACCEPTED_BY_OTHER = "Denna tolkning har redan accepterats av annan tolk."
ALREADY_BOOKED_SHORT = "Du har redan en bokning den tiden."
ONLY_TRANSLATORS_ACCEPT = "Only translators can accept bookings"


def phone_cancellation_message(phone: str) -> str:
    return (
        "Du kan inte avboka en bokning som sker inom 24 timmar genom DigitalTolk. "
        f"Vänligen ring på {phone} och gör din avbokning över telefon. Tack!"
    )


def acceptance_failed(reason: str, duration: int, due) -> str:
    return f"{reason} {duration}min {format_due(due)}. Du har inte fått denna tolkning"


def accepted_with_id_message(language: str, duration: int, due) -> str:
    return f"Du har nu accepterat och fått bokningen för {language}tolk {duration}min {format_due(due)}"


def reopening_comment(job_id: int) -> str:
    return f"This booking is a reopening of booking #{job_id}"


# Push texts


def new_booking_push(language: str, duration: int, due, immediate: bool) -> dict:
    if immediate:
        return {
            "sv": f"Ny akutbokning för {language} tolk {duration}min",
            "en": f"New emergency booking for {language} interpreter {duration}min",
        }
    return {
        "sv": f"Ny bokning för {language} tolk {duration}min {format_due(due)}",
        "en": f"New booking for {language} interpreter {duration}min {format_due(due)}",
    }


def job_accepted_push() -> dict:
    return {
        "sv": "Din bokning har accepterats av en tolk.",
        "en": "Your booking has been accepted by an interpreter.",
    }


def customer_cancelled_push(language: str, duration: int, due) -> dict:
    return {
        "sv": (
            f"Kunden har avbokat bokningen för {language}tolk, {duration}min, {format_due(due)}. "
            "Var god och kolla dina tidigare bokningar för detaljer."
        ),
        "en": (
            f"The customer has cancelled the booking for {language} interpreter, {duration}min, "
            f"{format_due(due)}. Please check your previous bookings for details."
        ),
    }


def translator_cancelled_push(language: str, duration: int, due) -> dict:
    return {
        "sv": (
            f"Er {language}tolk, {duration}min {format_due(due)}, har avbokat tolkningen. "
            "Vi letar nu efter en ny tolk som kan ersätta denne. Tack."
        ),
        "en": (
            f"Your {language} interpreter, {duration}min {format_due(due)}, has cancelled. "
            "We are now looking for a replacement. Thank you."
        ),
    }


def expired_push(language: str, duration: int, due) -> dict:
    return {
        "sv": (
            f"Tyvärr har ingen tolk accepterat er bokning: ({language}, {duration}min, {format_due(due)}). "
            "Vänligen pröva boka om tiden."
        ),
        "en": (
            f"Unfortunately no interpreter accepted your booking: ({language}, {duration}min, "
            f"{format_due(due)}). Please try booking another time."
        ),
    }


def session_reminder_push(language: str, duration: int, due, physical: bool) -> dict:
    kind_sv = "platstolkningen" if physical else "telefontolkningen"
    kind_en = "on-site interpretation" if physical else "phone interpretation"
    return {
        "sv": (
            f"Du har nu fått {kind_sv} för {language} kl {duration} den {format_due(due)}. "
            "Vänligen säkerställ att du är förberedd för den tiden. Tack!"
        ),
        "en": (
            f"You now have the {kind_en} for {language}, {duration}min on {format_due(due)}. "
            "Please make sure you are prepared. Thank you!"
        ),
    }


# Email subjects


def subject_job_created(job_id: int) -> str:
    return f"Vi har mottagit er tolkbokning. Bokningsnr: #{job_id}"


def subject_session_ended(job_id: int) -> str:
    return f"Information om avslutad tolkning för bokningsnummer # {job_id}"


def subject_job_accepted(job_id: int) -> str:
    return f"Bekräftelse - tolk har accepterat er bokning (bokning # {job_id})"


def subject_job_reopened(language: str, job_id: int) -> str:
    return f"Vi har nu återöppnat er bokning av {language}tolk för bokning #{job_id}"


def subject_translator_changed(job_id: int) -> str:
    return f"Meddelande om tilldelning av tolkuppdrag för uppdrag # {job_id}"


def subject_job_changed(job_id: int) -> str:
    return f"Meddelande om ändring av tolkbokning för uppdrag # {job_id}"


def subject_booking_cancelled(job_id: int) -> str:
    return f"Booking Cancelled: #{job_id}"


def subject_withdrawn(job_id: int) -> str:
    return f"Information om avbokad tolkning för bokningsnummer # {job_id}"


def subject_session_completed(job_id: int) -> str:
    return f"Session Completed for Job #{job_id}"


# SMS bodies

SMS_PHONE_TEMPLATE = Template(
    "Bokningsbekräftelse: Telefontolkning ${date} kl ${time}, ${duration}. "
    "Svara via appen, bokning #${jobId}."
)
SMS_PHYSICAL_TEMPLATE = Template(
    "Bokningsbekräftelse: Platstolkning i ${city} ${date} kl ${time}, ${duration}. "
    "Svara via appen, bokning #${jobId}."
)


def render_sms(job, city) -> str:
    """
    Pick the on-site or phone SMS body for a job.

    Raises:
        KeyError: If a template placeholder cannot be filled
    """
    physical = job.customer_physical_type == "yes" and job.customer_phone_type == "no"
    template = SMS_PHYSICAL_TEMPLATE if physical else SMS_PHONE_TEMPLATE
    return template.substitute(
        date=job.due.strftime("%d.%m.%Y"),
        time=job.due.strftime("%H:%M"),
        duration=convert_to_hours_mins(job.duration),
        city=city or "",
        jobId=job.id,
    )
