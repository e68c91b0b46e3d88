# backend/wsgi.py
from icebox import create_app

app = create_app()
