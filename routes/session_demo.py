"""
Session demo endpoints (JSON): raw session contents, a session-scoped cart
and a visit counter.
"""
from flask import Blueprint, request, session, jsonify

from extensions import session_manager
from middleware.session_middleware import login_required, current_record
from utils.helpers import utc_timestamp

session_bp = Blueprint('session_bp', __name__, url_prefix='/session')

MAX_TRACKED_VISITS = 10


def _payload():
    """Request body as a dict, or None when a JSON body is not an object."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else None
    return request.form.to_dict()


def _bad_payload():
    return jsonify({'error': 'Request body must be a JSON object'}), 400


def _sid():
    return session_manager.session_id(session)


@session_bp.route('/info', methods=['GET'])
@login_required
def info():
    return jsonify({
        'sessionId': _sid(),
        'session': dict(session),
        'cookies': request.headers.get('Cookie'),
        'timestamp': utc_timestamp()
    })


@session_bp.route('/set', methods=['POST'])
def set_value():
    data = _payload()
    if data is None:
        return _bad_payload()
    key = data.get('key')
    value = data.get('value')

    if not key or value is None:
        return jsonify({
            'error': 'Both key and value are required',
            'received': {'key': key, 'value': value}
        }), 400

    stored = dict(session.get('data') or {})
    stored[key] = value
    session['data'] = stored

    return jsonify({
        'message': 'Session data set successfully',
        'sessionId': _sid(),
        'data': stored,
        'timestamp': utc_timestamp()
    })


@session_bp.route('/get/<key>', methods=['GET'])
def get_value(key):
    stored = session.get('data') or {}
    return jsonify({
        'key': key,
        'value': stored.get(key),
        'sessionId': _sid(),
        'allSessionData': stored,
        'timestamp': utc_timestamp()
    })


@session_bp.route('/clear', methods=['DELETE'])
def clear():
    session_manager.terminate(session)
    return jsonify({
        'message': 'Session cleared successfully',
        'timestamp': utc_timestamp()
    })


@session_bp.route('/cart/add', methods=['POST'])
def cart_add():
    data = _payload()
    if data is None:
        return _bad_payload()
    product_id = data.get('productId')
    product_name = data.get('productName')

    if not product_id or not product_name:
        return jsonify({'error': 'Product ID and name are required'}), 400

    try:
        quantity = int(data.get('quantity', 1))
    except (TypeError, ValueError):
        return jsonify({'error': 'Quantity must be a whole number'}), 400
    if quantity < 1:
        return jsonify({'error': 'Quantity must be at least 1'}), 400

    cart = list(session.get('cart') or [])
    existing = next((item for item in cart if item['productId'] == product_id), None)
    if existing:
        existing['quantity'] += quantity
    else:
        cart.append({
            'productId': product_id,
            'productName': product_name,
            'quantity': quantity,
            'addedAt': utc_timestamp()
        })
    session['cart'] = cart

    return jsonify({
        'message': 'Item added to cart',
        'cart': cart,
        'cartCount': len(cart),
        'sessionId': _sid(),
        'timestamp': utc_timestamp()
    })


@session_bp.route('/cart', methods=['GET'])
def cart_view():
    cart = session.get('cart') or []
    return jsonify({
        'cart': cart,
        'cartCount': len(cart),
        'totalItems': sum(item['quantity'] for item in cart),
        'sessionId': _sid(),
        'timestamp': utc_timestamp()
    })


@session_bp.route('/cart/clear', methods=['DELETE'])
def cart_clear():
    session['cart'] = []
    return jsonify({
        'message': 'Cart cleared successfully',
        'cart': [],
        'sessionId': _sid(),
        'timestamp': utc_timestamp()
    })


@session_bp.route('/visit', methods=['POST'])
def visit():
    data = _payload()
    if data is None:
        return _bad_payload()
    visits = list(session.get('visits') or [])
    visit_count = session.get('visit_count', 0) + 1

    visits.append({
        'page': data.get('page') or request.referrer or 'unknown',
        'timestamp': utc_timestamp(),
        'userAgent': request.headers.get('User-Agent')
    })
    visits = visits[-MAX_TRACKED_VISITS:]

    session['visits'] = visits
    session['visit_count'] = visit_count

    record = current_record()
    return jsonify({
        'message': 'Visit tracked',
        'visitCount': visit_count,
        'currentSession': {
            'sessionId': _sid(),
            'visits': visits,
            'startTime': record.login_time.isoformat() if record else 'Unknown'
        },
        'timestamp': utc_timestamp()
    })
