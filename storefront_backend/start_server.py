#!/usr/bin/env python3
"""
Start the Storefront Backend server

Gunicorn entry point: storefront_backend.start_server:app
"""

import os
import sys

from storefront_backend.app import create_app

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', '5000'))

    print("Starting Storefront Backend...")
    print(f"MongoDB URI: {app.config.get('MONGO_URI')}")
    print(f"Server will be available at: http://localhost:{port}")
    print("Press Ctrl+C to stop the server")

    try:
        app.run(debug=True, host='0.0.0.0', port=port)
    except KeyboardInterrupt:
        print("\nServer stopped by user")
        sys.exit(0)
