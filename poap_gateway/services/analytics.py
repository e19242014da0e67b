"""
Organizer analytics.

Every figure counts confirmed claims only and is scoped to one organizer.
Date bucketing happens in Python so the same queries run on SQLite and
PostgreSQL.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Dict, List

from sqlalchemy import case, distinct, func
from sqlalchemy.orm import Session

from poap_gateway.models import CLAIM_CONFIRMED, Campaign, Claim
from poap_gateway.models.common import iso, utcnow
from poap_gateway.relayer.solana import lamports_to_sol

RECENT_CLAIMS_LIMIT = 10
TOP_CAMPAIGNS_LIMIT = 5


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _confirmed(query, organizer_id: str):
    """Restrict a query over Claim to the organizer's confirmed claims."""
    return (
        query.select_from(Claim)
        .join(Campaign, Claim.campaign_id == Campaign.id)
        .filter(Campaign.organizer_id == organizer_id, Claim.status == CLAIM_CONFIRMED)
    )


def _confirmed_claims(db: Session, organizer_id: str):
    return _confirmed(db.query(Claim), organizer_id)


def _shift_months(moment: datetime, months: int) -> datetime:
    """First day of the month `months` away from `moment` (negative = past)."""
    index = moment.year * 12 + (moment.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def daily_series(claims: List[Claim], days: int, now: datetime) -> List[Dict]:
    """Zero-filled per-day claim counts for the last `days` days, oldest first."""
    today = _start_of_day(now)
    buckets = defaultdict(list)
    for claim in claims:
        buckets[claim.claimed_at.date()].append(claim.user_public_key)

    series = []
    for offset in range(days - 1, -1, -1):
        day = (today - timedelta(days=offset)).date()
        wallets = buckets.get(day, [])
        series.append({
            "date": day.isoformat(),
            "claims": len(wallets),
            "unique_users": len(set(wallets)),
        })
    return series


def campaign_analytics(db: Session, campaign: Campaign) -> Dict:
    now = utcnow()
    today = _start_of_day(now)
    claims = (
        db.query(Claim)
        .filter(Claim.campaign_id == campaign.id, Claim.status == CLAIM_CONFIRMED)
        .all()
    )

    total = len(claims)
    total_gas = sum(c.gas_cost or 0 for c in claims)
    remaining = None
    if campaign.max_claims is not None:
        remaining = max(campaign.max_claims - total, 0)

    daily = [
        {"date": point["date"], "claims": point["claims"]}
        for point in daily_series(claims, 30, now)
    ]

    return {
        "campaign": {
            "id": campaign.id,
            "name": campaign.name,
            "maxClaims": campaign.max_claims,
        },
        "claims": {
            "total": total,
            "today": sum(1 for c in claims if c.claimed_at >= today),
            "thisWeek": sum(1 for c in claims if c.claimed_at >= now - timedelta(days=7)),
            "thisMonth": sum(1 for c in claims if c.claimed_at >= now - timedelta(days=30)),
            "remaining": remaining,
        },
        "gas": {
            "totalCost": total_gas,
            "averageCost": round(total_gas / total) if total else 0,
            "totalCostSOL": lamports_to_sol(total_gas),
        },
        "dailyClaims": daily,
    }


def dashboard_stats(db: Session, organizer_id: str) -> Dict:
    today = _start_of_day(utcnow())

    total_campaigns, active_campaigns = (
        db.query(
            func.count(Campaign.id),
            func.coalesce(func.sum(case((Campaign.is_active.is_(True), 1), else_=0)), 0),
        )
        .filter(Campaign.organizer_id == organizer_id)
        .one()
    )

    total_claims, unique_users, total_gas, claims_today = (
        _confirmed(db.query(
            func.count(Claim.id),
            func.count(distinct(Claim.user_public_key)),
            func.coalesce(func.sum(Claim.gas_cost), 0),
            func.coalesce(func.sum(case((Claim.claimed_at >= today, 1), else_=0)), 0),
        ), organizer_id)
        .one()
    )

    claim_count = func.count(Claim.id).label("claims")
    top = (
        _confirmed(db.query(Campaign.id, Campaign.name, claim_count), organizer_id)
        .group_by(Campaign.id, Campaign.name)
        .order_by(claim_count.desc())
        .limit(TOP_CAMPAIGNS_LIMIT)
        .all()
    )

    recent = (
        _confirmed(db.query(Claim, Campaign.name), organizer_id)
        .order_by(Claim.claimed_at.desc())
        .limit(RECENT_CLAIMS_LIMIT)
        .all()
    )

    return {
        "totalCampaigns": total_campaigns,
        "activeCampaigns": int(active_campaigns),
        "totalClaims": total_claims,
        "claimsToday": int(claims_today),
        "uniqueUsers": unique_users,
        "totalGasCostSOL": lamports_to_sol(int(total_gas)),
        "recentClaims": [
            {
                "id": claim.id,
                "campaignName": campaign_name,
                "userWallet": claim.user_public_key,
                "claimedAt": iso(claim.claimed_at),
                "transactionSignature": claim.transaction_hash,
            }
            for claim, campaign_name in recent
        ],
        "topCampaigns": [
            {"id": campaign_id, "name": name, "claims": count}
            for campaign_id, name, count in top
        ],
    }


def daily_claims(db: Session, organizer_id: str, days: int = 30) -> List[Dict]:
    now = utcnow()
    since = _start_of_day(now) - timedelta(days=days - 1)
    claims = _confirmed_claims(db, organizer_id).filter(Claim.claimed_at >= since).all()
    return daily_series(claims, days, now)


def monthly_trend(db: Session, organizer_id: str, months: int = 12) -> List[Dict]:
    now = utcnow()
    since = _shift_months(now, -(months - 1))

    claims = _confirmed_claims(db, organizer_id).filter(Claim.claimed_at >= since).all()
    created = (
        db.query(Campaign.created_at)
        .filter(Campaign.organizer_id == organizer_id, Campaign.created_at >= since)
        .all()
    )

    claim_months = Counter(c.claimed_at.strftime("%Y-%m") for c in claims)
    campaign_months = Counter(row[0].strftime("%Y-%m") for row in created)

    trend = []
    for offset in range(months - 1, -1, -1):
        key = _shift_months(now, -offset).strftime("%Y-%m")
        trend.append({
            "month": key,
            "claims": claim_months.get(key, 0),
            "campaigns": campaign_months.get(key, 0),
        })
    return trend


def claim_counts(db: Session, campaign_ids: List[str]) -> Dict[str, int]:
    """Confirmed claims per campaign for a page of campaigns."""
    if not campaign_ids:
        return {}
    rows = (
        db.query(Claim.campaign_id, func.count(Claim.id))
        .filter(Claim.campaign_id.in_(campaign_ids), Claim.status == CLAIM_CONFIRMED)
        .group_by(Claim.campaign_id)
        .all()
    )
    return {campaign_id: count for campaign_id, count in rows}
