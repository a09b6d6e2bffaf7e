import os


def _env_flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///focus_together.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Session backend: "sql" (Flask-SQLAlchemy tables) or "memory" (process-local dict)
    SESSION_STORE = os.environ.get('SESSION_STORE', 'sql')
    # Advance through every elapsed phase on a ping instead of one step per ping
    PHASE_CATCH_UP = _env_flag('PHASE_CATCH_UP')
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Callable returning ms since epoch; None selects the wall clock
    CLOCK = None
