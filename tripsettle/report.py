"""
Report Module

Builds the downloadable settlement report for a trip: members, expense
history, member balances and who pays whom. The HTML is converted to PDF
with xhtml2pdf.

Functions:
    build_settlement_report_html: Render the report as HTML.
    render_settlement_report_pdf: Render the report as PDF bytes.
"""

import io
import logging
from datetime import date
from html import escape

from xhtml2pdf import pisa

from tripsettle.utils import format_currency

logger = logging.getLogger(__name__)


REPORT_STYLE = """
    body { font-family: Arial, sans-serif; padding: 20px; color: #333; }
    h1 { color: #667eea; border-bottom: 2px solid #667eea; padding-bottom: 10px; }
    h2 { color: #444; margin-top: 25px; }
    table { width: 100%; border-collapse: collapse; margin: 15px 0; }
    th, td { border: 1px solid #ddd; padding: 10px; text-align: left; }
    th { background: #667eea; color: white; }
    .footer { margin-top: 30px; text-align: center; color: #888; font-size: 12px; }
"""


def build_settlement_report_html(trip, members: list, expenses: list, financials: list, plan: list) -> str:
    """
    Render the settlement report as an HTML document.

    Args:
        trip: The Trip.
        members: List of Member objects.
        expenses: List of Expense objects.
        financials: Output of compute_financials().
        plan: Output of compute_settlement_plan().

    Returns:
        str: A complete HTML document.
    """
    currency = trip.base_currency
    id_to_name = {m.id: m.display_name for m in members}

    def money(amount) -> str:
        return escape(format_currency(amount, currency))

    expense_rows = "".join(
        f"<tr><td>{escape(e.date or '')}</td><td>{escape(e.description)}</td>"
        f"<td>{escape(e.category)}</td><td>{money(e.amount)}</td>"
        f"<td>{escape(id_to_name.get(e.paid_by, e.paid_by))}</td></tr>"
        for e in expenses
    ) or '<tr><td colspan="5">No expenses recorded</td></tr>'

    balance_rows = "".join(
        f"<tr><td>{escape(f.member_name)}</td><td>{money(f.total_paid)}</td>"
        f"<td>{money(f.total_share)}</td><td>{money(f.net_balance)}</td></tr>"
        for f in financials
    ) or '<tr><td colspan="4">No members</td></tr>'

    settlement_lines = "<br>".join(
        f"<strong>{escape(t.from_name)}</strong> pays <strong>{escape(t.to_name)}</strong> {money(t.amount)}"
        for t in plan
    ) or "<p>Everyone is settled up.</p>"

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>{REPORT_STYLE}</style>
</head>
<body>
    <h1>{escape(trip.name)}</h1>
    <p><strong>Destination:</strong> {escape(trip.destination)}
       ({escape(trip.start_date or '')} to {escape(trip.end_date or '')})</p>
    <p><strong>Generated:</strong> {date.today().strftime('%B %d, %Y')}</p>

    <h2>Members</h2>
    <p>{escape(', '.join(m.display_name for m in members))}</p>

    <h2>Expense History</h2>
    <table>
        <tr><th>Date</th><th>Description</th><th>Category</th><th>Amount</th><th>Paid By</th></tr>
        {expense_rows}
    </table>

    <h2>Balances</h2>
    <table>
        <tr><th>Member</th><th>Paid</th><th>Share</th><th>Net</th></tr>
        {balance_rows}
    </table>

    <h2>Who Pays Whom</h2>
    {settlement_lines}

    <div class="footer">
        <p>Generated by TripSettle</p>
    </div>
</body>
</html>
"""


def render_settlement_report_pdf(trip, members: list, expenses: list, financials: list, plan: list) -> bytes:
    """
    Render the settlement report as PDF.

    Raises:
        RuntimeError: If xhtml2pdf reports a conversion error.
    """
    html_content = build_settlement_report_html(trip, members, expenses, financials, plan)

    pdf_buffer = io.BytesIO()
    result = pisa.CreatePDF(io.StringIO(html_content), dest=pdf_buffer)
    if result.err:
        logger.error("PDF generation failed for trip %s", trip.id)
        raise RuntimeError("could not generate PDF report")

    return pdf_buffer.getvalue()
