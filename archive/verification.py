"""Public verification certificate rendering.

Builds the standalone, printable RTL HTML pages served by
``GET /api/verify/{id}`` and the QR redirect target pointing at them.
Every value taken from a stored document is HTML-escaped.
"""

from datetime import date
from html import escape
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from msgspec import Struct


PLACEHOLDER = "▍▍▍▍▍▍▍▍▍▍"
NOT_FOUND_MARKER = "الإيصال غير موجود"

_ICONS_CSS = "https://cdn.jsdelivr.net/npm/bootstrap-icons@1.11.3/font/bootstrap-icons.min.css"

_BASE_STYLE = """
      @page{size:A4;margin:8mm}
      body{font-family:Tajawal,Arial,sans-serif;background:#ffffff;color:#0f172a;padding:0}
      p{margin:0;line-height:1.35}
      .card{background:#fff;border:1px solid #e2e8f0;border-radius:8px;padding:12px;margin:auto;max-width:210mm;min-height:297mm;box-sizing:border-box}
      .row{display:grid;grid-template-columns:1fr 1fr;gap:10px}
      .h{font-weight:700;margin:6px 0}
      .mono{font-family:monospace}
      .muted{color:#64748b;font-size:12px}
      .sep{margin:6px 0;border-top:1px dashed #cbd5e1}
      .badge{display:inline-flex;align-items:center;gap:6px;padding:4px 8px;border-radius:999px;font-weight:700;font-size:12px}
      .badge.ok{background:#ecfeff;color:#0e7490}
      .badge.bad{background:#fff7ed;color:#b45309;border:1px solid #fde68a}
      .warn{background:#fef2f2;border:1px solid #fecaca;color:#991b1b;padding:8px;border-radius:8px;font-weight:700;margin:8px 0}
"""


class VerificationDefaults(Struct, kw_only=True):
    """Branding used when the settings row leaves a field empty."""
    license_number: str = "LIC-9821-LY"
    office_title: str = "محرر عقود"
    responsible_editor: str = "فتحي عبد الجواد"


class _Branding(Struct):
    office_title: str
    license_number: str
    show_license: bool
    responsible_editor: str


def _text(value: Any) -> str:
    """Escaped display text, or the placeholder for empty values."""
    if value is None:
        return PLACEHOLDER
    text = str(value).strip()
    if not text:
        return PLACEHOLDER
    return escape(text)


def _display_date(value: Any) -> str:
    if not value:
        return PLACEHOLDER
    raw = str(value)
    try:
        return date.fromisoformat(raw[:10]).strftime("%d/%m/%Y")
    except ValueError:
        return escape(raw)


def _branding(settings: Optional[Dict[str, Any]], defaults: VerificationDefaults) -> _Branding:
    settings = settings or {}
    office_title = str(settings.get("officeTitle") or "").strip() or defaults.office_title
    responsible = (
        str(settings.get("responsibleEditorName") or "").strip() or defaults.responsible_editor
    )
    return _Branding(
        office_title=office_title,
        license_number=str(settings.get("licenseNumber") or defaults.license_number),
        show_license=settings.get("showLicenseNumber") is not False,
        responsible_editor=responsible,
    )


def _license_line(branding: _Branding) -> str:
    if not branding.show_license:
        return ""
    return (
        '<div class="muted">رقم الترخيص: '
        f'<strong class="mono">{escape(branding.license_number)}</strong></div>'
    )


def _party_block(label: str, party: Any) -> str:
    party = party if isinstance(party, dict) else {}
    return f"""
        <div>
          <div class="muted">{label}</div>
          <div>
            <div>الاسم: <strong>{_text(party.get("name"))}</strong></div>
            <div>نوع الهوية: <strong>{_text(party.get("idType"))}</strong></div>
            <div>رقم الهوية: <strong class="mono">{_text(party.get("idNumber"))}</strong></div>
            <div>الرقم الوطني: <strong class="mono">{_text(party.get("nationalId"))}</strong></div>
            <div>رقم الهاتف: <strong class="mono">{_text(party.get("phone"))}</strong></div>
          </div>
        </div>"""


def _page(title: str, body: str, status: str) -> str:
    return f"""<!doctype html>
<html lang="ar" dir="rtl">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width,initial-scale=1">
    <title>{title}</title>
    <link rel="stylesheet" href="{_ICONS_CSS}">
    <style>{_BASE_STYLE}    </style>
  </head>
  <body data-verification="{status}">
{body}
  </body>
</html>"""


def render_certificate(
    contract: Dict[str, Any],
    settings: Optional[Dict[str, Any]] = None,
    defaults: Optional[VerificationDefaults] = None
) -> str:
    """Render the verification certificate of a stored contract.

    Args:
        contract: Contract document as stored
        settings: First system_settings document, if any
        defaults: Branding fallbacks

    Returns:
        Complete HTML page
    """
    branding = _branding(settings, defaults or VerificationDefaults())
    ref = escape(str(contract.get("id", "")))

    body = f"""    <div class="card">
      <div style="display:flex;justify-content:space-between;align-items:center">
        <h1 class="h" style="display:flex;align-items:center;gap:8px">
          <i class="bi bi-patch-check-fill" style="color:#16a34a"></i>
          <span>تحقق من الإيصال</span>
        </h1>
        <span class="badge ok">
          <i class="bi bi-shield-check" style="color:#16a34a"></i>
          <span>موثق من قاعدة البيانات</span>
        </span>
      </div>
      <div class="muted mono">REF: #{ref}</div>
      <div class="muted"><strong>{escape(branding.office_title)}</strong></div>
      {_license_line(branding)}
      <div class="muted">المحرر المسؤول: <strong>{escape(branding.responsible_editor)}</strong></div>
      <div class="warn">تحذير: أي شطب أو تعديل باليد يلغي هذه الوثيقة</div>
      <div class="sep"></div>
      <div class="row">
        <div>
          <div class="muted">العنوان</div>
          <div class="h">{_text(contract.get("title"))}</div>
        </div>
        <div>
          <div class="muted">نوع العقد</div>
          <div class="h">{_text(contract.get("type"))}</div>
        </div>
      </div>
      <div class="row">
        <div>
          <div class="muted">تاريخ التحرير</div>
          <div class="h mono">{_display_date(contract.get("creationDate"))}</div>
        </div>
        <div>
          <div class="muted">الحالة</div>
          <div class="h">{_text(contract.get("status"))}</div>
        </div>
      </div>
      <div class="sep"></div>
      <div class="row">{_party_block("الطرف الأول", contract.get("party1"))}{_party_block("الطرف الثاني", contract.get("party2"))}
      </div>
    </div>"""

    return _page(f"تحقق من الإيصال #{ref}", body, "verified")


def render_not_found(
    contract_id: Any,
    settings: Optional[Dict[str, Any]] = None,
    defaults: Optional[VerificationDefaults] = None
) -> str:
    """Render the page shown when a verification id has no contract."""
    branding = _branding(settings, defaults or VerificationDefaults())
    ref = escape(str(contract_id))

    body = f"""    <div class="card">
      <div style="display:flex;justify-content:space-between;align-items:center">
        <h1 class="h" style="display:flex;align-items:center;gap:8px">
          <i class="bi bi-x-circle-fill" style="color:#dc2626"></i>
          <span>{NOT_FOUND_MARKER}</span>
        </h1>
        <span class="badge bad">
          <i class="bi bi-shield-exclamation" style="color:#b45309"></i>
          <span>تعذر التوثيق</span>
        </span>
      </div>
      <div class="muted mono">REF: #{ref}</div>
      <div class="muted"><strong>{escape(branding.office_title)}</strong></div>
      {_license_line(branding)}
      <div class="sep"></div>
      <div class="warn">لم يتم العثور على هذا الإيصال في قاعدة البيانات.</div>
    </div>"""

    return _page(f"{NOT_FOUND_MARKER} #{ref}", body, "not-found")


def build_qr_url(verify_url: str, service_url: str, size: str = "120x120") -> str:
    """Address of the third-party QR image encoding ``verify_url``."""
    return f"{service_url}?{urlencode({'size': size, 'data': verify_url})}"
