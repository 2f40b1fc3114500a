# wsgi.py
from typing import Any

from blog import create_app

application: Any = create_app()
