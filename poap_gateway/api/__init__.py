"""
POAP Gateway API Endpoints

This package contains all FastAPI routers for the gateway:
- auth: Organizer registration, login, profile and API keys (/api/auth)
- campaigns: Campaign CRUD, per-campaign analytics and claims (/api/campaigns)
- images: Campaign image upload (POST /api/campaigns/{id}/image)
- analytics: Organizer dashboard aggregates (/api/analytics)
- integrations: ApiKey-authenticated read access (/api/integrations)
- poap: Public claiming (POST /api/poap/claim, public campaign view)
- relayer: Relayer stats and legacy NFT claim endpoints (/api/relayer, /api/nft)
- system: Health, stats, migration status and docs
"""
