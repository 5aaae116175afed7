"""
WSGI config for the transitops project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "transitops.settings")

application = get_wsgi_application()
