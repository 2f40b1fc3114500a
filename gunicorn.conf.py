# gunicorn.conf.py
import os

from blog.config import env_int

bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"
workers = env_int("WEB_CONCURRENCY", 2)
timeout = env_int("GUNICORN_TIMEOUT", 30)
loglevel = os.environ.get("GUNICORN_LOGLEVEL", "info")
wsgi_app = "wsgi:application"
