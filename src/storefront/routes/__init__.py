from storefront.routes.alerts import alerts_bp
from storefront.routes.notifications import notifications_bp
from storefront.routes.reservations import reservations_bp

__all__ = ["reservations_bp", "notifications_bp", "alerts_bp"]
