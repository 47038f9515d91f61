import json
import logging
import stripe
from flask import Blueprint, current_app, jsonify, request
from mentorhub.models import Payment
from mentorhub.services import reconciliation
from mentorhub.services.context import RequestContext
from mentorhub.services.errors import NotFound
from mentorhub.utils.audit import log_admin_action
from mentorhub.utils.decorators import role_required, request_context, json_body

logger = logging.getLogger(__name__)

bp = Blueprint('payments', __name__, url_prefix='/payments')

GATEWAY_OUTCOMES = {
    'payment_intent.succeeded': True,
    'payment_intent.payment_failed': False
}

@bp.route('', methods=['POST'])
@role_required('student', 'admin')
def create_payment():
    ctx = request_context()
    data = json_body()

    # Students always go through the gateway; admins may book a payment as already settled.
    status = Payment.PENDING
    if ctx.is_admin and data.get('status') == Payment.COMPLETED:
        status = Payment.COMPLETED

    payment = reconciliation.record_payment(
        ctx,
        enrollment_id=data.get('enrollmentId'),
        amount=data.get('amount'),
        payer_id=data.get('payerId') if ctx.is_admin else ctx.user_id,
        assignment_id=data.get('assignmentId'),
        status=status,
        description=data.get('description')
    )
    if ctx.is_admin:
        log_admin_action(ctx, 'create', 'payment', payment.id, {'amount': payment.amount, 'status': payment.status})
    return jsonify(payment.to_dict()), 201

@bp.route('/webhook', methods=['POST'])
def gateway_webhook():
    payload = request.get_data(as_text=True)
    signature = request.headers.get('Stripe-Signature')
    secret = current_app.config.get('PAYMENT_WEBHOOK_SECRET')

    if not signature or not secret:
        return jsonify({'error': 'Missing signature or webhook secret'}), 400

    try:
        stripe.WebhookSignature.verify_header(
            payload, signature, secret, current_app.config.get('PAYMENT_WEBHOOK_TOLERANCE', 300)
        )
    except stripe.SignatureVerificationError as e:
        logger.error(f'Webhook signature verification failed: {e}')
        return jsonify({'error': 'Invalid signature'}), 400

    try:
        event = json.loads(payload)
    except ValueError:
        return jsonify({'error': 'Invalid payload'}), 400
    if not isinstance(event, dict):
        logger.warning(f'Webhook payload is not an event object: {type(event).__name__}')
        return jsonify({'error': 'Invalid payload'}), 400

    event_type = event.get('type')
    if event_type not in GATEWAY_OUTCOMES:
        logger.warning(f'Unhandled event type: {event_type}')
        return jsonify({'received': True})

    intent = (event.get('data') or {}).get('object') or {}
    payment_id = (intent.get('metadata') or {}).get('paymentId')
    if not payment_id:
        logger.warning(f'Missing paymentId in {event_type} metadata')
        return jsonify({'received': True})

    try:
        payment, processed = reconciliation.capture_payment_result(
            RequestContext.system(),
            int(payment_id),
            GATEWAY_OUTCOMES[event_type],
            reference=intent.get('id')
        )
    except (NotFound, ValueError):
        logger.warning(f'Webhook for unknown payment {payment_id} ignored')
        return jsonify({'received': True})

    return jsonify({'received': True, 'processed': processed, 'status': payment.status})
