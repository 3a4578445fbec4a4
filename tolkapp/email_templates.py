"""
MJML Email Templates
Booking notification emails, keyed by template name
"""

from typing import Callable, Optional

THEME = {
    "primary": "#1d4ed8",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}

LOGO_URL = "https://digitaltolk.se/images/logo.png"


def get_base_template(title: str, preview_text: str, content_sections: str) -> str:
    """Base MJML template wrapper for all emails"""
    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-image src="{LOGO_URL}" alt="DigitalTolk" width="140px" padding="0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              DigitalTolk - tolkförmedling
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _greeting(payload: dict) -> str:
    return f"<mj-text>Hej {payload.get('name') or ''},</mj-text>"


def _job_details(payload: dict) -> str:
    rows = [
        ("Bokningsnummer", f"#{payload.get('job_id')}"),
        ("Språk", payload.get("language")),
        ("Datum och tid", payload.get("due")),
        ("Längd", f"{payload.get('duration')} min"),
    ]
    if payload.get("town"):
        rows.append(("Ort", payload["town"]))
    lines = "<br/>".join(f"<strong>{label}:</strong> {value}" for label, value in rows if value)
    return f"""
    <mj-text padding="16px 0" color="{THEME['text_muted']}">
      {lines}
    </mj-text>
    """


def _simple(title: str, body: str) -> Callable[[dict], str]:
    def render(payload: dict) -> str:
        content = f"""
        {_greeting(payload)}
        <mj-text>{body.format(**payload)}</mj-text>
        {_job_details(payload)}
        """
        return get_base_template(title=title.format(**payload), preview_text=title.format(**payload), content_sections=content)

    return render


def session_ended_template(payload: dict) -> str:
    """Session summary; for_text says whether the time is used for invoicing or salary"""
    content = f"""
    {_greeting(payload)}
    <mj-text>
      Tolkningen för bokning #{payload.get('job_id')} är nu avslutad.
      Registrerad tid: <strong>{payload.get('session_time')}</strong>.
    </mj-text>
    <mj-text color="{THEME['text_muted']}">
      Tiden ligger till grund för {payload.get('for_text')}.
    </mj-text>
    {_job_details(payload)}
    """
    return get_base_template(
        title="Avslutad tolkning",
        preview_text=f"Tolkning #{payload.get('job_id')} är avslutad",
        content_sections=content,
    )


def job_changed_date_template(payload: dict) -> str:
    content = f"""
    {_greeting(payload)}
    <mj-text>
      Tiden för bokning #{payload.get('job_id')} har ändrats
      från <strong>{payload.get('old_due')}</strong> till <strong>{payload.get('due')}</strong>.
    </mj-text>
    {_job_details(payload)}
    """
    return get_base_template(title="Ändrad tid", preview_text="Tiden för din bokning har ändrats", content_sections=content)


def job_changed_lang_template(payload: dict) -> str:
    content = f"""
    {_greeting(payload)}
    <mj-text>
      Språket för bokning #{payload.get('job_id')} har ändrats
      från <strong>{payload.get('old_language')}</strong> till <strong>{payload.get('language')}</strong>.
    </mj-text>
    {_job_details(payload)}
    """
    return get_base_template(title="Ändrat språk", preview_text="Språket för din bokning har ändrats", content_sections=content)


TEMPLATES: dict[str, Callable[[dict], str]] = {
    "job-created": _simple(
        "Vi har mottagit er tolkbokning",
        "Tack för er bokning. Vi meddelar er så snart en tolk har accepterat uppdraget.",
    ),
    "job-accepted": _simple(
        "En tolk har accepterat er bokning",
        "Er bokning har accepterats av {translator_name}.",
    ),
    "job-change-status-to-customer": _simple(
        "Er bokning är återöppnad",
        "Vi har återöppnat er bokning och letar nu efter en tolk.",
    ),
    "session-ended": session_ended_template,
    "job-changed-translator-customer": _simple(
        "Ny tolk för er bokning",
        "Er bokning har tilldelats {translator_name}.",
    ),
    "job-changed-translator-old-translator": _simple(
        "Uppdrag tilldelat annan tolk",
        "Uppdraget har tilldelats en annan tolk och ligger inte längre i din kalender.",
    ),
    "job-changed-translator-new-translator": _simple(
        "Nytt tolkuppdrag",
        "Du har tilldelats detta uppdrag.",
    ),
    "job-changed-date": job_changed_date_template,
    "job-changed-lang": job_changed_lang_template,
    "status-changed-from-pending-or-assigned-customer": _simple(
        "Er bokning är avbokad",
        "Bokningen har avbokats av DigitalTolk.",
    ),
    "job-cancel-translator": _simple(
        "Uppdrag avbokat",
        "Uppdraget har avbokats och du behöver inte genomföra det.",
    ),
}


def render_template(template: str, payload: Optional[dict] = None) -> str:
    """
    Build the MJML document for a named template.

    Raises:
        KeyError: If the template name is unknown
    """
    payload = {key: ("" if value is None else value) for key, value in (payload or {}).items()}
    payload.setdefault("translator_name", "")
    return TEMPLATES[template](payload)
