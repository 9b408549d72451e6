"""Seed data: default categories and the Dev Studio system app."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from devstudio.conversation.replies import WELCOME
from devstudio.core.config import settings
from devstudio.db.models import MODERATION_APPROVED, Category, MiniApp


@dataclass(frozen=True)
class CategorySeed:
    name: str
    slug: str
    description: str
    icon: str
    display_order: int


DEFAULT_CATEGORIES = (
    CategorySeed("AI", "ai", "AI-powered applications", "🤖", 1),
    CategorySeed("Games", "games", "Play-to-earn games and entertainment", "🎮", 2),
    CategorySeed("Trading", "trading", "Trading and market analysis tools", "📊", 3),
    CategorySeed("DePIN", "depin", "Decentralized Physical Infrastructure", "🌐", 4),
    CategorySeed("DeFi", "defi", "Decentralized Finance applications", "💎", 5),
    CategorySeed("NFT", "nft", "NFT marketplaces and collections", "🖼️", 6),
    CategorySeed("Staking", "staking", "Staking and yield farming", "🔒", 7),
    CategorySeed("Services", "services", "Various utility services", "🛠️", 8),
)

DEVSTUDIO_TITLE = "Dev Studio"
DEVSTUDIO_ICON = "⚡"
DEVSTUDIO_SUBTITLE = "Build and manage your own apps"
DEVSTUDIO_DESCRIPTION = (
    "Dev Studio is the official app for developers. Create mini apps, "
    "configure commands and get API tokens for your integrations."
)
# System token; never handed out to a user.
DEVSTUDIO_API_TOKEN = "SYSTEM_DEVSTUDIO_TOKEN"


def ensure_default_categories(db: Session) -> list[Category]:
    """Insert any missing default category (matched by slug)."""
    existing = set(db.scalars(select(Category.slug)).all())
    for seed in DEFAULT_CATEGORIES:
        if seed.slug in existing:
            continue
        db.add(
            Category(
                name=seed.name,
                slug=seed.slug,
                description=seed.description,
                icon=seed.icon,
                display_order=seed.display_order,
            )
        )
    db.commit()
    return list(db.scalars(select(Category).order_by(Category.display_order.asc())).all())


def get_devstudio_app(db: Session) -> MiniApp | None:
    return db.scalar(
        select(MiniApp).where(MiniApp.bot_username == settings.DEVSTUDIO_USERNAME)
    )


def ensure_devstudio_app(db: Session) -> MiniApp:
    """Return the Dev Studio system app, creating it on first boot."""
    app = get_devstudio_app(db)
    if app is not None:
        return app

    categories = ensure_default_categories(db)
    services = next((c for c in categories if c.slug == "services"), categories[-1])

    app = MiniApp(
        title=DEVSTUDIO_TITLE,
        subtitle=DEVSTUDIO_SUBTITLE,
        description=DEVSTUDIO_DESCRIPTION,
        icon=DEVSTUDIO_ICON,
        category_id=services.id,
        creator_id=None,
        bot_username=settings.DEVSTUDIO_USERNAME,
        welcome_message=WELCOME,
        api_token=DEVSTUDIO_API_TOKEN,
        moderation_status=MODERATION_APPROVED,
        is_verified=True,
    )
    db.add(app)
    db.commit()
    db.refresh(app)
    return app
