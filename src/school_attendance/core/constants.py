"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EDIT_WINDOW_HOURS = 24
SCHOOL_WEEK_DAYS = 5

DATE_FORMAT = "%Y-%m-%d"

ATTENDANCE_CSV_HEADER = ("Fecha", "Alumno", "Estado", "Tema")
HISTORY_CSV_HEADER = ("Fecha", "Tema", "Presentes", "Faltas", "Tardanzas", "Justificados")
DEFAULT_CSV_ENCODING = "utf-8"

# MySQL ER_DUP_ENTRY
MYSQL_DUPLICATE_ENTRY = 1062
