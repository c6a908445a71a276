from functools import wraps

from flask import (
    Blueprint,
    current_app,
    jsonify,
    make_response,
    request,
    session,
)

from infocard.helpers import get_admin_tab, get_settings_url
from infocard.nonces import (
    DEFAULT_MAX_AGE,
    RESET_OPTIONS_ACTION,
    SAVE_OPTIONS_ACTION,
    IntegrityTokenInvalid,
    create_token,
    verify_token,
)
from infocard.sanitize import sanitize_document
from infocard.settings.forms import parse_nested_form

settings_bp = Blueprint('settings', __name__, url_prefix='/admin/settings')

FORM_DATA_FIELD = 'formData'
SAVE_TOKEN_FIELD = 'saveNonce'
RESET_TOKEN_FIELD = 'resetNonce'

MANAGE_OPTIONS = 'manage_options'

ROLE_CAPABILITIES: dict[str, set[str]] = {
    'ADMIN': {MANAGE_OPTIONS},
    'USER': set(),
}


def _options_store():
    return current_app.config['OPTIONS_STORE']


def _session_user() -> str:
    return str(session.get('user_id') or session.get('username') or '')


def current_user_can(capability: str) -> bool:
    role = (session.get('role') or session.get('username') or '').upper()
    return capability in ROLE_CAPABILITIES.get(role, set())


def capability_required(capability: str):
    """Reject callers lacking ``capability`` with an empty 403 response."""

    def decorator(view):
        @wraps(view)
        def wrapped_view(**kwargs):
            if not current_user_can(capability):
                current_app.logger.warning(
                    "Denied %s %s for role %r",
                    request.method,
                    request.path,
                    session.get('role'),
                )
                return make_response('', 403)
            return view(**kwargs)

        return wrapped_view

    return decorator


def _issue_token(action: str) -> str:
    return create_token(current_app.secret_key, action, _session_user())


def _verify_request_token(token, action: str) -> None:
    max_age = current_app.config.get('INTEGRITY_TOKEN_MAX_AGE') or DEFAULT_MAX_AGE
    verify_token(
        current_app.secret_key,
        token,
        action,
        _session_user(),
        max_age=max_age,
    )


def _failure(message: str, status_code: int):
    return make_response(jsonify({'success': False, 'message': message}), status_code)


def _posted_settings() -> tuple[dict, str | None]:
    """Return the submitted settings payload and its save token.

    JSON bodies carry ``formData`` as an object; classic form posts use
    bracketed field names.  The token may sit beside the payload or inside it.
    """
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        posted = data.get(FORM_DATA_FIELD)
        token = data.get(SAVE_TOKEN_FIELD)
    else:
        posted = parse_nested_form(request.form, FORM_DATA_FIELD)
        token = request.form.get(SAVE_TOKEN_FIELD)

    posted = dict(posted) if isinstance(posted, dict) else {}
    nested_token = posted.pop(SAVE_TOKEN_FIELD, None)
    return posted, token or nested_token


@settings_bp.route('', methods=['GET'])
@capability_required(MANAGE_OPTIONS)
def settings_page():
    store = _options_store()
    tab = get_admin_tab(request.args.get('tab')) or 'home'
    return jsonify(
        {
            'options': store.get_options(),
            'defaults': store.get_defaults(),
            'tab': tab,
            'settingsUrl': get_settings_url(tab),
            'branding': current_app.config['BRANDING'].as_dict(),
            SAVE_TOKEN_FIELD: _issue_token(SAVE_OPTIONS_ACTION),
            RESET_TOKEN_FIELD: _issue_token(RESET_OPTIONS_ACTION),
        }
    )


@settings_bp.route('/save', methods=['POST'])
@capability_required(MANAGE_OPTIONS)
def save_options():
    posted, token = _posted_settings()

    try:
        _verify_request_token(token, SAVE_OPTIONS_ACTION)
    except IntegrityTokenInvalid as exc:
        current_app.logger.warning("Settings save rejected: %s", exc)
        return _failure('Integrity token verification failed', 400)

    validated = sanitize_document(posted)
    if not _options_store().update_options(validated):
        return _failure('Options could not be saved', 500)

    current_app.logger.info("Settings saved by %s", _session_user() or 'unknown user')
    return jsonify({'success': True, 'message': 'Options saved'})


@settings_bp.route('/reset', methods=['POST'])
@capability_required(MANAGE_OPTIONS)
def reset_options():
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        token = data.get(RESET_TOKEN_FIELD)
    else:
        token = request.form.get(RESET_TOKEN_FIELD)

    try:
        _verify_request_token(token, RESET_OPTIONS_ACTION)
    except IntegrityTokenInvalid as exc:
        current_app.logger.warning("Settings reset rejected: %s", exc)
        return _failure('Integrity token verification failed', 400)

    store = _options_store()
    if not store.update_options(store.get_defaults()):
        return _failure('Options could not be reset', 500)

    current_app.logger.info("Settings reset by %s", _session_user() or 'unknown user')
    return jsonify({'success': True, 'message': 'Options reset'})
