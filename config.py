"""
Configuration file for the Cell Locator daemon
Edit these values according to your setup
"""

# Serial Port Configuration
SERIAL_PORT = '/dev/ttyUSB0'  # Windows: COM1, COM2, etc. | Linux: /dev/ttyUSB0, /dev/ttyS0, etc.
SERIAL_BAUD = 9600  # SIM800L default

# WiFi (primary network)
WIFI_SSID = 'YOUR_WIFI_SSID'
WIFI_PASSWORD = 'YOUR_WIFI_PASSWORD'
WIFI_INTERFACE = None  # e.g. 'wlan0', None lets NetworkManager choose
WIFI_MAX_WAIT = 10  # Seconds to wait for WiFi before falling back to GPRS
WIFI_POLL_INTERVAL = 0.5

# GPRS fallback
APN = 'YOUR_APN'
APN_USER = ''
APN_PASSWORD = ''
NETWORK_REGISTRATION_TIMEOUT = 60  # Seconds to wait for +CREG registration

# Cell survey
SURVEY_ATTEMPTS = 5
SURVEY_DELAY = 2.0  # Seconds between survey attempts
ASSUMED_CARRIER_MHZ = 900  # Used only for the rough distance estimate

# Google APIs
GOOGLE_API_KEY = 'YOUR_GOOGLE_API_KEY'
GEOLOCATION_URL = 'https://www.googleapis.com/geolocation/v1/geolocate'
GEOCODE_URL = 'https://maps.googleapis.com/maps/api/geocode/json'
HTTP_CONNECT_TIMEOUT = 10
HTTP_READ_TIMEOUT = 20

# SMS settings
PHONE_NUMBER = '+1234567890'

# Email settings
EMAIL_ENABLED = False
EMAIL_TO = 'recipient@example.com'
EMAIL_FROM = 'your_email@example.com'
EMAIL_PASSWORD = 'your_email_password'  # Use an app password for Gmail
SMTP_SERVER = 'smtp.gmail.com'
SMTP_PORT = 465

# Trigger
TRIGGER_DEBOUNCE = 0.05  # Seconds

# Logging Settings
LOG_LEVEL = 'INFO'  # Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_TO_CONSOLE = True
LOG_MAX_BYTES = 5 * 1024 * 1024  # 5MB per log file
LOG_BACKUP_COUNT = 10
