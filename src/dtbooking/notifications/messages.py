"""Swedish push, SMS, email-subject and response texts."""

from dtbooking.config import settings

PUSH_TITLE = "DigitalTolk"

# Booking submission
FILL_ALL_FIELDS = "Du måste fylla in alla fält"
MAKE_A_CHOICE = "Du måste göra ett val här"
TRANSLATOR_CANNOT_BOOK = "Översättare kan inte skapa bokning"
CANNOT_BOOK_IN_PAST = "Kan inte skapa bokning i det förflutna"

# Acceptance
ALREADY_BOOKED = "Du har redan en bokning den tiden! Bokningen är inte accepterad."
REOPENED = "Tolk cancelled!"


def already_booked_at(due: str) -> str:
    return f"Du har redan en bokning den tiden {due}. Du har inte fått denna tolkning"


def already_accepted_by_other(language: str, duration: int, due: str) -> str:
    return (
        f"Denna {language} tolkning {duration}min {due} har redan accepterats av annan tolk. "
        "Du har inte fått denna tolkning"
    )


def accepted_with_id(language: str, duration: int, due: str) -> str:
    return f"Du har nu accepterat och fått bokningen för {language} tolk {duration}min {due}"


def late_cancellation() -> str:
    return (
        "Du kan inte avboka en bokning som sker inom 24 timmar genom DigitalTolk. "
        f"Vänligen ring på {settings.support_phone} och gör din avbokning over telefon. Tack!"
    )


# Push texts


def suitable_job_push(language: str, duration: int, due: str, immediate: bool) -> str:
    if immediate:
        return f"Ny akutbokning för {language}tolk {duration}min"
    return f"Ny bokning för {language}tolk {duration}min {due}"


def session_start_remind_push(language: str, due: str, duration: int, town: str | None, physical: bool) -> str:
    day, _, clock = due.partition(" ")
    if physical:
        return (
            f"Detta är en påminnelse om att du har en {language}tolkning (på plats i {town or ''}) "
            f"kl {clock} på {day} som vara i {duration} min. "
            "Lycka till och kom ihåg att ge feedback efter utförd tolkning!"
        )
    return (
        f"Detta är en påminnelse om att du har en {language}tolkning (telefon) kl {clock} på {day} "
        f"som vara i {duration} min.Lycka till och kom ihåg att ge feedback efter utförd tolkning!"
    )


def expired_push(language: str, duration: int, due: str) -> str:
    return (
        f"Tyvärr har ingen tolk accepterat er bokning: ({language}, {duration}min, {due}). "
        "Vänligen pröva boka om tiden."
    )


def job_accepted_push(language: str, duration: int, due: str) -> str:
    return (
        f"Din bokning för {language} translators, {duration}min, {due} har accepterats av en tolk. "
        "Vänligen öppna appen för att se detaljer om tolken."
    )


def customer_cancelled_push(language: str, duration: int, due: str) -> str:
    return (
        f"Kunden har avbokat bokningen för {language}tolk, {duration}min, {due}. "
        "Var god och kolla dina tidigare bokningar för detaljer."
    )


def translator_cancelled_push(language: str, duration: int, due: str) -> str:
    return (
        f"Er {language}tolk, {duration}min {due}, har avbokat tolkningen. "
        "Vi letar nu efter en ny tolk som kan ersätta denne. Tack."
    )


# SMS texts


def phone_job_sms(date: str, time: str, duration: str, job_id: int) -> str:
    return (
        f"Vi har ett nytt telefontolkuppdrag åt dig. Datum: {date}, tid: {time}, längd: {duration}. "
        f"Uppdrag #{job_id}. Öppna appen för att acceptera."
    )


def physical_job_sms(date: str, time: str, town: str, duration: str, job_id: int) -> str:
    return (
        f"Vi har ett nytt platstolkuppdrag i {town} åt dig. Datum: {date}, tid: {time}, längd: {duration}. "
        f"Uppdrag #{job_id}. Öppna appen för att acceptera."
    )


# Email subjects


def subject_job_created(job_id: int) -> str:
    return f"Vi har mottagit er tolkbokning. Bokningsnr: #{job_id}"


def subject_job_accepted(job_id: int) -> str:
    return f"Bekräftelse - tolk har accepterat er bokning (bokning # {job_id})"


def subject_job_cancelled(job_id: int) -> str:
    return f"Avbokning av bokningsnr: #{job_id}"


def subject_session_ended(job_id: int) -> str:
    return f"Information om avslutad tolkning för bokningsnummer #{job_id}"


def subject_translator_changed(job_id: int) -> str:
    return f"Meddelande om tilldelning av tolkuppdrag för uppdrag #{job_id}"


def subject_booking_changed(job_id: int) -> str:
    return f"Meddelande om ändring av tolkbokning för uppdrag #{job_id}"


def subject_reopened(language: str, duration: int, job_id: int) -> str:
    return f"Vi har nu återöppnat er bokning av {language}tolk för {duration}min (bokning # {job_id})"
