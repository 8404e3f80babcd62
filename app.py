"""
WSGI entry point.

Usage:
    # Any WSGI server, e.g.
    flask --app app:application run

    # Development server
    FLASK_ENV=development python app.py
"""

import os

from request_guard.app import create_app

application = create_app()
app = application


if __name__ == '__main__':
    application.run(
        host=os.getenv('FLASK_HOST', '127.0.0.1'),
        port=int(os.getenv('FLASK_PORT', '3000')),
        debug=application.config['DEBUG']
    )
