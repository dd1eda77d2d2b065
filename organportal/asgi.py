"""
ASGI entry point: Django over HTTP plus the hospital notification socket.

Settings must be configured and Django set up before the consumer module
is imported, because it pulls in models through the realtime service.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "organportal.settings")

import django  # noqa: E402
django.setup()  # noqa: E402

from channels.auth import AuthMiddlewareStack  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402
from django.core.asgi import get_asgi_application  # noqa: E402
from django.urls import path  # noqa: E402

from coordination.realtime.consumers import HospitalNotificationsConsumer  # noqa: E402

application = ProtocolTypeRouter({
    "http": get_asgi_application(),
    "websocket": AllowedHostsOriginValidator(
        AuthMiddlewareStack(
            URLRouter([
                path("ws/notifications/", HospitalNotificationsConsumer.as_asgi()),
            ])
        )
    ),
})
