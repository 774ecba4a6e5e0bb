# backend/wsgi.py
from shopfront import create_app

app = create_app()
