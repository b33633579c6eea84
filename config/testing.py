SECRET_KEY = "test-secret"

STORE_BACKEND = "memory"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "church_crm_test",
}

DEBUG = False
TESTING = True

LOG_LEVEL = "WARNING"
JSON_LOGS = False

AUTO_INIT_DB = False
