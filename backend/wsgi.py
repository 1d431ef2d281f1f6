# backend/wsgi.py
from bstock import create_app

app = create_app()
