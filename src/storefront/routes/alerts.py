from flask import Blueprint

from storefront.routes.schemas import LowStockAlertSchema
from storefront.routes.utils import get_service, json_response, load_body
from storefront.schemas.stock_schemas import AlertDetail, LowStockAlertEnvelope
from storefront.services.low_stock_alert_service import LowStockAlerter

alerts_bp = Blueprint("alerts", __name__)

_alert_schema = LowStockAlertSchema()


@alerts_bp.route("", methods=["POST"])
def low_stock_alerts():
    """
    Check the posted stock levels and email the admin about low items.

    Meant to be called by a cron job or on stock updates; repeated calls
    inside the cooldown window send nothing new.
    """
    alerter = get_service(LowStockAlerter)
    alerter.ensure_configured()

    data = load_body(_alert_schema, "Invalid low stock alert request", allow_empty=True)
    alerted = alerter.dispatch_alerts(**data)

    return json_response(LowStockAlertEnvelope(
        alerts_sent=len(alerted),
        details=[AlertDetail(product_id=key.product_id, variant_id=key.variant_id) for key in alerted],
    ))
