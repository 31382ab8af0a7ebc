# Overview: Flask extension instances for database, migrations and sessions.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .services.session_service import InMemorySessionStore

db = SQLAlchemy()
migrate = Migrate()

# Token -> identity map; the only process-local state, never consulted by core services
sessions = InMemorySessionStore()
