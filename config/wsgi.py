"""
WSGI config for the Donation Scanner project.

Scan sessions are held in process memory, so serve the scanner endpoints
from a single worker process or route each operator to the same worker.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_wsgi_application()
