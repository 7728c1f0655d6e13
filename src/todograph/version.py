VERSION = "0.4.0"
APP_SCHEMA_VERSION = "0.4.0"
