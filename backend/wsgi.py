# backend/wsgi.py
from textbook_exchange import create_app

app = create_app()
