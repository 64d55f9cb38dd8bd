import os
from datetime import timedelta

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    """Base configuration"""
    SHOPFLOOR_VERSION = '1.0.0'
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'shopfloor.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session configuration (operators stay signed in for a full day)
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)

    # CSRF token travels in the X-CSRFToken header from the SPA
    WTF_CSRF_TIME_LIMIT = None

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Report header
    COMPANY_NAME = os.environ.get('COMPANY_NAME') or 'Shop Floor Dashboard'

    # OEE
    PLANNED_SHIFT_MINUTES = 420  # 8 hour shift net of 60 minutes of breaks
    PLANT_TIMEZONE = os.environ.get('PLANT_TIMEZONE') or 'America/New_York'

    # Shift schedule seeded into the database on first start
    DEFAULT_SHIFTS = [
        ('Day', '06:30', '14:30'),
        ('Evening', '14:30', '22:30'),
        ('Night', '22:30', '06:30'),
    ]
    DEFAULT_BREAKS = [
        ('Day break', '09:00', '09:15'),
        ('Day lunch', '11:30', '12:00'),
        ('Day break', '13:00', '13:15'),
        ('Evening break', '17:00', '17:15'),
        ('Evening lunch', '19:00', '19:30'),
        ('Evening break', '21:00', '21:15'),
        ('Night break', '01:00', '01:15'),
        ('Night lunch', '03:00', '03:30'),
        ('Night break', '05:00', '05:15'),
    ]

    # Operator created when the operators table is empty
    DEFAULT_OPERATOR = {
        'name': 'Shift Supervisor',
        'initials': 'ADM',
        'shift': 'Day',
        'password': os.environ.get('DEFAULT_OPERATOR_PASSWORD') or 'admin123',
    }


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    # In production, ensure SECRET_KEY and DATABASE_URL are set via environment variables


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'WARNING'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
