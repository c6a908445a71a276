import os

from flask import (
    Blueprint,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from werkzeug.security import check_password_hash, generate_password_hash

auth_bp = Blueprint('auth', __name__)

REQUIRED_USERS = {
    'USER': 'USER_PASSWORD',
    'ADMIN': 'ADMIN_PASSWORD',
}


def _load_environment_users() -> dict[str, str]:
    return {
        role: generate_password_hash(os.environ[env_key])
        for role, env_key in REQUIRED_USERS.items()
        if os.environ.get(env_key)
    }


ENVIRONMENT_USERS = _load_environment_users()


@auth_bp.route('/', methods=['GET', 'POST'])
@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        submitted_username = (request.form.get('username') or '').strip()
        password = request.form.get('password') or ''
        normalized_username = submitted_username.upper()

        if (
            normalized_username in ENVIRONMENT_USERS
            and check_password_hash(ENVIRONMENT_USERS[normalized_username], password)
        ):
            session['username'] = submitted_username or normalized_username
            session['role'] = normalized_username
            return redirect(url_for('settings.settings_page'))
        flash('Invalid credentials.')
    return render_template('login.html')


@auth_bp.route('/logout')
def logout():
    session.pop('username', None)
    session.pop('role', None)
    session.pop('user_id', None)
    return redirect(url_for('auth.login'))
