from flask import Blueprint

from storefront.routes.schemas import CreateReservationSchema
from storefront.routes.utils import get_service, json_response, load_body
from storefront.schemas.stock_schemas import (
    ReservationEnvelope, ReservationResponse, SweepEnvelope
)
from storefront.services.reservation_service import ReservationStore

reservations_bp = Blueprint("reservations", __name__)

_create_schema = CreateReservationSchema()


def _reservation_envelope(reservation, message=None) -> ReservationEnvelope:
    return ReservationEnvelope(
        reservation=ReservationResponse.model_validate(reservation.to_dict()),
        message=message,
    )


@reservations_bp.route("", methods=["POST"])
def create_reservation():
    """Hold variant stock for the duration of a checkout."""
    data = load_body(_create_schema, "variantId, productId, and quantity (positive) are required")
    reservation = get_service(ReservationStore).create(**data)
    return json_response(_reservation_envelope(reservation, "Reservation created successfully"), 201)


@reservations_bp.route("/<reservation_id>", methods=["GET"])
def get_reservation(reservation_id: str):
    reservation = get_service(ReservationStore).get(reservation_id)
    return json_response(_reservation_envelope(reservation))


@reservations_bp.route("/<reservation_id>", methods=["DELETE"])
def release_reservation(reservation_id: str):
    reservation = get_service(ReservationStore).release(reservation_id)
    return json_response(_reservation_envelope(reservation, "Reservation released successfully"))


@reservations_bp.route("/expire", methods=["POST"])
def expire_reservations():
    """Maintenance hook: sweep expired holds (cron / scheduler)."""
    cleaned = get_service(ReservationStore).sweep()
    return json_response(SweepEnvelope(cleaned=cleaned))
