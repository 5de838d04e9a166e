"""HTML bodies for the booking emails."""

from html import escape

from openhouse.models.notification import BookingContext
from openhouse.utils.config import AppConfig


def _when(context: BookingContext) -> str:
    return (
        f"{context.open_house.event_date.strftime('%d/%m/%Y')} "
        f"{context.time_slot.start_time.strftime('%H:%M')} - "
        f"{context.time_slot.end_time.strftime('%H:%M')}"
    )


def client_confirmation(context: BookingContext) -> tuple[str, str]:
    """Subject and body of the confirmation sent to the client."""
    subject = f"Conferma prenotazione Open House - {context.listing.title}"
    questionnaire = ""
    if AppConfig.QUESTIONNAIRE_URL:
        questionnaire = (
            f'<p>Per ricevere la brochure compila il '
            f'<a href="{escape(AppConfig.QUESTIONNAIRE_URL)}">questionario</a>.</p>'
        )
    body = (
        f"<p>Gentile {escape(context.client.full_name)},</p>"
        f"<p>la tua visita a <strong>{escape(context.listing.title)}</strong> "
        f"({escape(context.listing.location)}) è confermata per il {escape(_when(context))}.</p>"
        f"{questionnaire}"
        f"<p>{escape(context.agent.full_name)}<br>{escape(context.agent.email)}</p>"
    )
    return subject, body


def agent_notification(context: BookingContext) -> tuple[str, str]:
    """Subject and body of the new-booking notice sent to the listing agent."""
    subject = f"Nuova prenotazione Open House - {context.listing.title}"
    note = ""
    if context.booking.client_note:
        note = f"<p>Messaggio: {escape(context.booking.client_note)}</p>"
    body = (
        f"<p>Nuova prenotazione per <strong>{escape(context.listing.title)}</strong>, "
        f"{escape(_when(context))}.</p>"
        f"<p>{escape(context.client.full_name)}<br>"
        f"{escape(context.client.email)}<br>"
        f"{escape(context.client.phone or '')}</p>"
        f"{note}"
        f'<p><a href="{escape(AppConfig.SITE_URL)}/dashboard/bookings">Gestisci prenotazioni</a></p>'
    )
    return subject, body


def brochure(context: BookingContext) -> tuple[str, str]:
    """Subject and body of the brochure email sent after the questionnaire."""
    subject = f"Brochure - {context.listing.title}"
    link = ""
    if context.listing.brochure_url:
        link = f'<p><a href="{escape(context.listing.brochure_url)}">Scarica la brochure</a></p>'
    body = (
        f"<p>Gentile {escape(context.client.full_name)},</p>"
        f"<p>grazie per aver compilato il questionario. "
        f"Ecco la brochure di <strong>{escape(context.listing.title)}</strong>.</p>"
        f"{link}"
    )
    return subject, body
