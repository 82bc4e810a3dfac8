"""
TripSettle - FastAPI Web Backend

This module serves as the main entry point for the collaborative trip
planning API.

Features:
    - RESTful API for trips, members, expenses, itinerary and packing lists
    - Integration with Firebase Firestore backend
    - Deterministic balance and settlement calculation on every request
    - Recording of settlement payments
    - Advisory AI settlement suggestions and PDF reports

Endpoints:
    POST   /trips                                   - Create a new trip
    GET    /trips/{trip_id}                         - Get trip details
    GET    /users/{uid}/trips                       - List a user's trips
    GET    /trips/{trip_id}/members                 - List members
    POST   /trips/{trip_id}/members                 - Invite member by email
    DELETE /trips/{trip_id}/members/{member_id}     - Remove member
    GET    /trips/{trip_id}/expenses                - List expenses
    POST   /trips/{trip_id}/expenses                - Add expense
    DELETE /trips/{trip_id}/expenses/{expense_id}   - Delete expense
    GET    /trips/{trip_id}/payments                - List recorded payments
    POST   /trips/{trip_id}/payments                - Record a payment
    GET    /trips/{trip_id}/settlement              - Balances and settlement plan
    POST   /trips/{trip_id}/settlement/suggest      - AI settlement suggestion
    GET    /trips/{trip_id}/settlement/report.pdf   - PDF settlement report
    GET    /trips/{trip_id}/overview                - Spending overview
    GET    /trips/{trip_id}/itinerary               - List itinerary events
    POST   /trips/{trip_id}/itinerary               - Add itinerary event
    GET    /trips/{trip_id}/packing                 - List packing items
    POST   /trips/{trip_id}/packing                 - Add packing item
    PATCH  /trips/{trip_id}/packing/{item_id}       - Toggle packed

Usage:
    uvicorn tripsettle.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from tripsettle.analytics import generate_overview
from tripsettle.config.firebase_config import get_db
from tripsettle.config.settings import settings
from tripsettle.errors import SuggestionError
from tripsettle.expenses import add_expense, delete_expense, get_expenses
from tripsettle.itinerary import add_event, get_events
from tripsettle.members import get_members, invite_member, remove_member
from tripsettle.packing import add_packing_item, get_packing_items, packing_progress, toggle_packed
from tripsettle.payments import get_recorded_payments, record_payment
from tripsettle.report import render_settlement_report_pdf
from tripsettle.settlement import compute_settlement_plan
from tripsettle.splitter import compute_financials
from tripsettle.suggestion import suggest_settlement
from tripsettle.trips import create_trip, get_trip, list_user_trips
from tripsettle.utils import explain_member_share

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class TripCreate(BaseModel):
    """Request model for creating a new trip."""
    name: str = Field(..., min_length=1, description="Trip name")
    destination: str = Field(..., min_length=1, description="Destination")
    start_date: str = Field(..., pattern=DATE_PATTERN, description="Start date (YYYY-MM-DD)")
    end_date: str = Field(..., pattern=DATE_PATTERN, description="End date (YYYY-MM-DD)")
    owner_id: str = Field(..., min_length=1, description="uid of the creating user")
    base_currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Currency code")
    description: str = Field("", description="Optional description")


class MemberInvite(BaseModel):
    """Request model for inviting a member."""
    email: str = Field(..., min_length=3, description="Email of an existing user")


class ExpenseCreate(BaseModel):
    """Request model for adding an expense."""
    description: str = Field(..., min_length=1, max_length=100)
    amount: float = Field(..., gt=0, description="Expense amount (must be > 0)")
    paid_by: str = Field(..., min_length=1, description="Member ID of payer")
    participants: list[str] = Field(..., min_length=1, description="Member IDs sharing the cost")
    date: str = Field(..., pattern=DATE_PATTERN, description="Expense date (YYYY-MM-DD)")
    category: str = Field(..., description="Expense category")
    split_type: str = Field("equally", description="Only 'equally' is supported")
    notes: Optional[str] = Field(None, max_length=500)


class PaymentCreate(BaseModel):
    """Request model for recording a payment, usually a confirmed plan transaction."""
    from_user_id: str = Field(..., min_length=1)
    to_user_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    recorded_by: str = Field(..., min_length=1)
    notes: Optional[str] = None


class EventCreate(BaseModel):
    """Request model for adding an itinerary event."""
    title: str = Field(..., min_length=1)
    type: str
    date: str = Field(..., pattern=DATE_PATTERN)
    time: Optional[str] = None
    end_date: Optional[str] = Field(None, pattern=DATE_PATTERN)
    location: Optional[str] = None
    notes: Optional[str] = None


class PackingItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    added_by: str = Field(..., min_length=1)
    assignee: Optional[str] = None


class PackingToggle(BaseModel):
    checked_by: str = Field(..., min_length=1)


class SettlementResponse(BaseModel):
    """Response model for balances and settlement plan."""
    currency: str
    financials: list
    transactions: list
    explanations: list


class SuggestionRequest(BaseModel):
    model: Optional[str] = Field(None, description="Override the configured chat model")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="TripSettle",
    description="Collaborative trip planning with deterministic debt settlement",
    version="1.0.0"
)


# =============================================================================
# Helper Functions
# =============================================================================

def _http_error(e: Exception) -> HTTPException:
    """Map a domain exception to an HTTPException."""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, LookupError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, SuggestionError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, RuntimeError):
        return HTTPException(status_code=503, detail=str(e))
    logger.exception("Unhandled error")
    return HTTPException(status_code=500, detail=str(e))


def _load_settlement_inputs(trip_id: str):
    """
    Fetch everything the balance calculation needs.

    All four reads must succeed; there is no partial-data mode.
    """
    trip = get_trip(trip_id)
    members = get_members(trip_id)
    expenses = get_expenses(trip_id)
    payments = get_recorded_payments(trip_id)
    return trip, members, expenses, payments


# =============================================================================
# Trips and Members
# =============================================================================

@app.post("/trips", status_code=201)
async def create_new_trip(trip_data: TripCreate):
    """Create a trip; the creator becomes its owner and first member."""
    try:
        trip = create_trip(
            name=trip_data.name,
            destination=trip_data.destination,
            start_date=trip_data.start_date,
            end_date=trip_data.end_date,
            owner_id=trip_data.owner_id,
            base_currency=trip_data.base_currency,
            description=trip_data.description,
        )
        return trip.to_dict()
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}")
async def get_trip_details(trip_id: str):
    try:
        return get_trip(trip_id).to_dict()
    except Exception as e:
        raise _http_error(e)


@app.get("/users/{uid}/trips")
async def list_trips_for_user(uid: str):
    """Trips the user belongs to, latest start date first."""
    try:
        return [t.to_dict() for t in list_user_trips(uid)]
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}/members")
async def list_members(trip_id: str):
    try:
        return [m.to_dict() for m in get_members(trip_id)]
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/members")
async def invite_trip_member(trip_id: str, invite: MemberInvite, response: Response):
    """
    Invite an existing user by email.

    Returns 201 when the user was added and 200 when already a member.
    """
    try:
        member, already_member = invite_member(trip_id, invite.email)
        response.status_code = 200 if already_member else 201
        return {"member": member.to_dict(), "alreadyMember": already_member}
    except Exception as e:
        raise _http_error(e)


@app.delete("/trips/{trip_id}/members/{member_id}", status_code=204)
async def remove_trip_member(trip_id: str, member_id: str, acting_user_id: str):
    try:
        remove_member(trip_id, member_id, acting_user_id)
    except Exception as e:
        raise _http_error(e)


# =============================================================================
# Expenses and Payments
# =============================================================================

@app.get("/trips/{trip_id}/expenses")
async def list_expenses(trip_id: str):
    try:
        return [e.to_dict() for e in get_expenses(trip_id)]
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/expenses", status_code=201)
async def add_trip_expense(trip_id: str, expense_data: ExpenseCreate):
    """
    Add an expense to a trip.

    Request flow:
        1. Validate input using Pydantic model
        2. Call add_expense() for membership, category and split checks
        3. Return created expense data
    """
    try:
        expense = add_expense(
            trip_id=trip_id,
            description=expense_data.description,
            amount=expense_data.amount,
            paid_by=expense_data.paid_by,
            participants=expense_data.participants,
            date=expense_data.date,
            category=expense_data.category,
            split_type=expense_data.split_type,
            notes=expense_data.notes,
        )
        return expense.to_dict()
    except Exception as e:
        raise _http_error(e)


@app.delete("/trips/{trip_id}/expenses/{expense_id}", status_code=204)
async def delete_trip_expense(trip_id: str, expense_id: str):
    try:
        delete_expense(trip_id, expense_id)
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}/payments")
async def list_payments(trip_id: str):
    try:
        return [p.to_dict() for p in get_recorded_payments(trip_id)]
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/payments", status_code=201)
async def record_trip_payment(trip_id: str, payment_data: PaymentCreate):
    """Append a recorded payment; the next settlement run picks it up."""
    try:
        payment = record_payment(
            trip_id=trip_id,
            from_user_id=payment_data.from_user_id,
            to_user_id=payment_data.to_user_id,
            amount=payment_data.amount,
            recorded_by=payment_data.recorded_by,
            notes=payment_data.notes,
        )
        return payment.to_dict()
    except Exception as e:
        raise _http_error(e)


# =============================================================================
# Settlement
# =============================================================================

@app.get("/trips/{trip_id}/settlement", response_model=SettlementResponse)
async def get_trip_settlement(trip_id: str):
    """
    Calculate balances and the settlement plan for a trip.

    Request flow:
        1. Fetch trip, members, expenses and recorded payments
        2. Calculate balances (splitter.py)
        3. Plan settlement transactions (settlement.py)
        4. Explain each member's share (utils.py)
        5. Return results; nothing is persisted
    """
    try:
        trip, members, expenses, payments = _load_settlement_inputs(trip_id)

        financials = compute_financials(members, expenses, payments)
        plan = compute_settlement_plan(financials, strict=False)
        explanations = [explain_member_share(m.id, members, expenses) for m in members]

        return SettlementResponse(
            currency=trip.base_currency,
            financials=[f.to_dict() for f in financials],
            transactions=[t.to_dict() for t in plan],
            explanations=explanations,
        )
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/settlement/suggest")
async def suggest_trip_settlement(trip_id: str, request: Optional[SuggestionRequest] = None):
    """Advisory AI settlement suggestion, returned next to the computed plan."""
    try:
        _, members, expenses, payments = _load_settlement_inputs(trip_id)
        suggestion = suggest_settlement(
            members,
            expenses,
            payments,
            model=request.model if request else None,
        )
        return suggestion.to_dict()
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}/settlement/report.pdf")
async def export_settlement_report(trip_id: str):
    try:
        trip, members, expenses, payments = _load_settlement_inputs(trip_id)
        financials = compute_financials(members, expenses, payments)
        plan = compute_settlement_plan(financials, strict=False)
    except Exception as e:
        raise _http_error(e)

    try:
        pdf = render_settlement_report_pdf(trip, members, expenses, financials, plan)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))

    filename = f"{trip.name.replace(' ', '_')}_settlement.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@app.get("/trips/{trip_id}/overview")
async def get_trip_overview(trip_id: str, current_user_id: Optional[str] = None):
    try:
        members = get_members(trip_id)
        expenses = get_expenses(trip_id)
        return generate_overview(expenses, members, current_user_id)
    except Exception as e:
        raise _http_error(e)


# =============================================================================
# Itinerary and Packing List
# =============================================================================

@app.get("/trips/{trip_id}/itinerary")
async def list_itinerary(trip_id: str):
    try:
        return [e.to_dict() for e in get_events(trip_id)]
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/itinerary", status_code=201)
async def add_itinerary_event(trip_id: str, event_data: EventCreate):
    try:
        event = add_event(
            trip_id=trip_id,
            title=event_data.title,
            event_type=event_data.type,
            date=event_data.date,
            time=event_data.time,
            end_date=event_data.end_date,
            location=event_data.location,
            notes=event_data.notes,
        )
        return event.to_dict()
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}/packing")
async def list_packing_items(trip_id: str):
    try:
        items = get_packing_items(trip_id)
        packed, total = packing_progress(items)
        return {"items": [i.to_dict() for i in items], "packed": packed, "total": total}
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/packing", status_code=201)
async def add_trip_packing_item(trip_id: str, item_data: PackingItemCreate):
    try:
        item = add_packing_item(trip_id, item_data.name, item_data.added_by, item_data.assignee)
        return item.to_dict()
    except Exception as e:
        raise _http_error(e)


@app.patch("/trips/{trip_id}/packing/{item_id}")
async def toggle_trip_packing_item(trip_id: str, item_id: str, toggle: PackingToggle):
    try:
        return toggle_packed(trip_id, item_id, toggle.checked_by).to_dict()
    except Exception as e:
        raise _http_error(e)


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {
        "status": "healthy",
        "service": "TripSettle",
        "firestore": get_db() is not None,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tripsettle.main:app", host="127.0.0.1", port=8000, reload=True)
