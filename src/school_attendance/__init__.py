"""School attendance package.

Organized by feature modules (attendance, reports, ...) with a thin Flask
controller layer over service/repository layers backed by MySQL.
"""
