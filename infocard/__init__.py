import os

from flask import Flask, current_app, session
from supabase import create_client

from .auth.routes import auth_bp
from .branding import Branding
from .nonces import DEFAULT_MAX_AGE
from .options import DEFAULT_OPTION_NAME, OptionsStore, SupabaseBackend
from .settings.routes import settings_bp


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def create_app():
    app = Flask(
        __name__,
        template_folder="../templates",
    )
    app.secret_key = os.environ["SECRET_KEY"]

    supabase = create_client(
        os.environ["SUPABASE_URL"],
        os.environ["SUPABASE_SERVICE_KEY"],
    )
    app.config["SUPABASE"] = supabase
    app.config["SUPABASE_URL"] = os.environ["SUPABASE_URL"]
    app.config["INTEGRITY_TOKEN_MAX_AGE"] = _int_from_env(
        "INTEGRITY_TOKEN_MAX_AGE", DEFAULT_MAX_AGE
    )

    store = OptionsStore(
        SupabaseBackend(supabase),
        option_name=os.environ.get("SETTINGS_OPTION_NAME") or DEFAULT_OPTION_NAME,
    )
    store.init()
    app.config["OPTIONS_STORE"] = store
    app.config["BRANDING"] = Branding()

    app.register_blueprint(auth_bp)
    app.register_blueprint(settings_bp)

    @app.context_processor
    def inject_user_context():
        return {
            "username": session.get("username"),
            "user_role": session.get("role") or session.get("username"),
            "branding": app.config["BRANDING"].as_dict(),
        }

    return app


def get_supabase():
    return current_app.config["SUPABASE"]


def get_options_store() -> OptionsStore:
    return current_app.config["OPTIONS_STORE"]


def get_branding() -> Branding:
    return current_app.config["BRANDING"]
