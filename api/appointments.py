import logging
from datetime import datetime, timezone

from flask import Blueprint, g, jsonify, request

from api.container import services
from models.appointment import Appointment, AppointmentStatus
from models.schemas.appointment import AppointmentOutSchema, AppointmentRequestSchema
from utils.constants import CREATE_APPOINTMENT, DATETIME_FMT
from utils.decorators import permissions_required
from utils.notifier import send_appointment_confirmation

logger = logging.getLogger(__name__)

bp = Blueprint("appointments", __name__)

appointment_request_schema = AppointmentRequestSchema()
appointment_out_schema = AppointmentOutSchema()


def _appointment_code() -> str:
    # millisecond timestamp, e.g. TXN1715000000123
    return "TXN" + str(int(datetime.now(timezone.utc).timestamp() * 1000))


@bp.post("/appointment/register")
@permissions_required([CREATE_APPOINTMENT])
def register_appointment():
    """
    Book an appointment; a confirmation is sent shortly after
    ---
    tags:
      - Appointments
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [start_time]
          properties:
            start_time: { type: string, example: "2026-01-10 09:30:00" }
            message: { type: string }
            is_online: { type: boolean }
    responses:
      201: { description: Created }
      403: { description: Missing create_appointment permission }
      422: { description: Validation error }
    """
    payload = request.get_json(silent=True) or {}
    data = appointment_request_schema.load(payload)

    principal = g.current_user
    appointment = Appointment(
        code=_appointment_code(),
        status=AppointmentStatus.PENDING,
        start_time=data["start_time"],
        message=data.get("message"),
        is_online=data["is_online"],
        total_price=0,
        user_id=principal.user_id,
        created_by=principal.user_id,
    )
    svc = services()
    svc.storage.new(appointment)
    svc.storage.save()
    logger.info("appointment %s booked by %s", appointment.code, principal.user_id)

    svc.notifier.schedule(
        send_appointment_confirmation,
        principal.email,
        appointment.code,
        appointment.start_time.strftime(DATETIME_FMT),
    )
    return jsonify({"data": appointment_out_schema.dump(appointment)}), 201
