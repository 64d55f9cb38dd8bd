#!/usr/bin/env python3
"""
Shop floor dashboard API

Development server:
    FLASK_CONFIG=development python run.py

Production:
    gunicorn -w 4 -b 0.0.0.0:5000 "shopfloor:create_app('production')"
"""

import os
from shopfloor import create_app

app = create_app(os.environ.get('FLASK_CONFIG', 'development'))

if __name__ == '__main__':
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))

    app.logger.info('Shop floor API %s on %s:%d (plant time %s)',
                    app.config['SHOPFLOOR_VERSION'], host, port, app.config['PLANT_TIMEZONE'])
    app.run(host=host, port=port, debug=app.config.get('DEBUG', False))
