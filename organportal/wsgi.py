"""
WSGI config for the organ portal project.

Exposes the WSGI callable as a module-level variable named
``application``.  Realtime notification pushes need the ASGI entry
point in ``organportal.asgi`` instead.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'organportal.settings')

application = get_wsgi_application()
