from flask import Blueprint, jsonify, request
from mentorhub.services import discounts
from mentorhub.utils.audit import log_admin_action
from mentorhub.utils.decorators import role_required, request_context, json_body
from mentorhub.utils.helpers import money

bp = Blueprint('discounts', __name__, url_prefix='/discounts')

@bp.route('', methods=['GET'])
@role_required('admin')
def list_discounts():
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 10, type=int)
    return jsonify(discounts.list_discounts(request_context(), page=page, per_page=limit))

@bp.route('', methods=['POST'])
@role_required('admin')
def create_discount():
    ctx = request_context()
    data = json_body()
    discount = discounts.create_discount(
        ctx,
        code=data.get('code'),
        name=data.get('name'),
        type=data.get('type'),
        value=data.get('value'),
        description=data.get('description'),
        min_amount=data.get('minAmount'),
        max_discount=data.get('maxDiscount'),
        usage_limit=data.get('usageLimit'),
        start_date=data.get('startDate'),
        end_date=data.get('endDate'),
        terms_and_conditions=data.get('termsAndConditions'),
        is_active=data.get('isActive', True)
    )
    log_admin_action(ctx, 'create', 'discount', discount.id, {'code': discount.code})
    return jsonify(discount.to_dict()), 201

@bp.route('/apply', methods=['POST'])
@role_required('admin')
def apply_discount():
    ctx = request_context()
    data = json_body()
    result = discounts.apply_discount(
        ctx,
        code=data.get('discountCode'),
        enrollment_id=data.get('enrollmentId'),
        price=data.get('coursePrice')
    )
    discount = result['discount']
    log_admin_action(ctx, 'apply_discount', 'enrollment', result['enrollment'].id, {
        'code': discount.code,
        'discount_amount': result['discountAmount']
    })
    return jsonify({
        'success': True,
        'discountAmount': money(result['discountAmount']),
        'finalAmount': money(result['finalAmount']),
        'discount': {
            'code': discount.code,
            'name': discount.name,
            'termsAndConditions': discount.terms_and_conditions
        },
        'enrollment': result['enrollment'].to_dict()
    })

@bp.route('/apply', methods=['DELETE'])
@role_required('admin')
def remove_discount():
    ctx = request_context()
    data = json_body()
    result = discounts.remove_discount(ctx, data.get('enrollmentId'))
    log_admin_action(ctx, 'remove_discount', 'enrollment', result['enrollment'].id, {
        'code': result['discount'].code,
        'restored_amount': result['restoredAmount']
    })
    return jsonify({
        'success': True,
        'restoredAmount': money(result['restoredAmount']),
        'enrollment': result['enrollment'].to_dict()
    })
