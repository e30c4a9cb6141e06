from .auth_routes import auth_bp
from .core_routes import core
from .campaign_routes import campaigns
from .campaign_content_routes import campaign_content
from .claim_routes import claims
from .public_routes import public
from .admin_routes import admin_bp

__all__ = [
    "auth_bp",
    "core",
    "campaigns",
    "campaign_content",
    "claims",
    "public",
    "admin_bp",
]
