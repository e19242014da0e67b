"""
Analytics API Endpoints

- GET /api/analytics/dashboard             Organizer overview
- GET /api/analytics/claims/daily?days=N   Daily claims (1-365 days)
- GET /api/analytics/trend/monthly?months=N  Monthly claims and campaigns (1-24 months)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from poap_gateway.api.common import ok
from poap_gateway.db.database import get_db
from poap_gateway.middleware.auth import AuthContext, authenticate
from poap_gateway.services import analytics

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/dashboard")
def dashboard(auth: AuthContext = Depends(authenticate), db: Session = Depends(get_db)):
    return ok(analytics.dashboard_stats(db, auth.organizer_id))


@router.get("/claims/daily")
def claims_daily(
    days: int = Query(30, ge=1, le=365),
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    return ok(analytics.daily_claims(db, auth.organizer_id, days))


@router.get("/trend/monthly")
def trend_monthly(
    months: int = Query(12, ge=1, le=24),
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    return ok(analytics.monthly_trend(db, auth.organizer_id, months))
