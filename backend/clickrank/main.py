from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from clickrank.errors import AuthFailure, EmailAlreadyInUse
from clickrank.services.auth import authenticate, register as register_user
from clickrank.services.sessions import session_binder, anonymous_required

main = Blueprint('main', __name__)


def form_data():
    """Request fields from a JSON object body or a classic form post."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form


def _text(data, key):
    value = data.get(key)
    return value if isinstance(value, str) else ''


@main.route('/')
@login_required
def index():
    name = current_user.user.name
    return jsonify({'message': f'Welcome, {name}!', 'name': name})


@main.route('/login', methods=['GET'])
@anonymous_required
def login_form():
    return jsonify({'fields': ['email', 'password']})


@main.route('/login', methods=['POST'])
@anonymous_required
def login():
    data = form_data()
    try:
        user = authenticate(_text(data, 'email'), _text(data, 'password'))
    except AuthFailure as exc:
        current_app.logger.info(f"[login] failed kind={exc.kind}")
        return jsonify({'error': 'Invalid email or password'}), 401

    bound = session_binder.bind(user)
    login_user(bound)
    return jsonify({'message': 'Logged in successfully.', 'user': user.to_dict()})


@main.route('/register', methods=['GET'])
@anonymous_required
def register_form():
    return jsonify({'fields': ['name', 'email', 'password']})


@main.route('/register', methods=['POST'])
@anonymous_required
def register():
    data = form_data()
    try:
        user = register_user(_text(data, 'name'), _text(data, 'email'), _text(data, 'password'))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    except EmailAlreadyInUse:
        current_app.logger.info("[register] rejected duplicate email")
        return jsonify({'error': 'Registration failed. Email may already be in use.'}), 409

    current_app.logger.info(f"[register] user={user.id}")
    return jsonify({'message': 'User created successfully', 'user': user.to_dict()}), 201


@main.route('/logout', methods=['POST', 'DELETE'])
@login_required
def logout():
    token = current_user.get_id()
    logout_user()
    session_binder.unbind(token)
    return jsonify({'message': 'Logged out successfully.'})
