from .database import get_db, engine, AsyncSessionLocal, init_db
from .models import (
    Base, User, UserSession, Report,
    BrandMission, BrandVision, BrandValue, BrandTargetMarket, BrandBackground,
    BRAND_MODELS,
)
